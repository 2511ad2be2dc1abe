from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Literal

import numpy as np

from fogview.core import geometry_utils
from fogview.core.view_basis import WORLD_UP, ViewBasis
from fogview.viewers.camera.camera_state import CameraStateManager
from fogview.viewers.controllers.input_state import InputState

logger = logging.getLogger(__name__)

EditKind = Literal['zoom', 'orbit', 'pan']


@dataclass(frozen=True)
class CameraEdit:
    """
    One camera edit of a frame.

    ``apply(eye, center, basis)`` returns the new (eye, center).
    """
    kind: EditKind
    apply: Callable[[np.ndarray, np.ndarray, ViewBasis], tuple[np.ndarray, np.ndarray]]


@dataclass(frozen=True, eq=False)
class CameraUpdate:
    eye: np.ndarray
    center: np.ndarray
    dirty: bool


class CameraController:
    """
    Arcball camera: orbit, pan and zoom driven by per-frame pointer deltas.

    Bindings:
    - primary button: orbit around the center
    - secondary button, or primary + modifier: pan in view space
    - tertiary button: zoom along the view direction
    """

    def __init__(
            self,
            state_manager: CameraStateManager,
            *,
            orbit_deg_per_unit: float = 10.0,
            pan_speed: float = 0.75,
    ) -> None:
        self.state = state_manager
        self.orbit_deg_per_unit = orbit_deg_per_unit
        self.pan_speed = pan_speed

    def compute_edits(self, frame_input: InputState, dt: float) -> list[CameraEdit]:
        """
        Build the ordered list of edits that are active for this frame.

        Zoom, orbit and pan are independent and may all fire in the same frame;
        they are applied in that order.
        """
        dx, dy = frame_input.dx, frame_input.dy
        edits: list[CameraEdit] = []

        if frame_input.tertiary:
            def zoom(eye, center, basis):
                return eye + basis.forward * (-dy * dt), center
            edits.append(CameraEdit('zoom', zoom))

        if frame_input.primary and not frame_input.modifier:
            yaw = math.radians(-self.orbit_deg_per_unit * dx * dt)
            pitch = math.radians(-self.orbit_deg_per_unit * dy * dt)

            def orbit(eye, center, basis):
                eye = geometry_utils.transform_point(
                    geometry_utils.rotation_about_point(yaw, WORLD_UP, center), eye)
                # pitch: axis-angle about basis.right through the origin
                eye = geometry_utils.transform_point(geometry_utils.rotation_matrix(pitch, basis.right), eye)
                return eye, center
            edits.append(CameraEdit('orbit', orbit))

        if frame_input.secondary or (frame_input.primary and frame_input.modifier):
            def pan(eye, center, basis):
                translation = (basis.right * (-self.pan_speed * dx * dt)
                               + basis.up * (self.pan_speed * dy * dt))
                return eye + translation, center + translation
            edits.append(CameraEdit('pan', pan))

        return edits

    def advance(self, frame_input: InputState, dt: float) -> CameraUpdate:
        """
        Apply this frame's edits to the camera.

        All edits use the basis of the camera at the start of the frame. When any
        edit fired the basis and view matrix are rebuilt and the view sinks are
        notified.

        :param frame_input: Input snapshot of the frame
        :param dt: Elapsed frame time in seconds
        :return: New eye, center and whether the view changed
        :raises DegenerateBasisError: if the edited camera has no defined basis;
            the camera state is left unchanged
        """
        edits = self.compute_edits(frame_input, dt)
        if not edits:
            return CameraUpdate(self.state.eye, self.state.center, dirty=False)

        basis = self.state.basis
        eye, center = self.state.eye, self.state.center
        for edit in edits:
            eye, center = edit.apply(eye, center, basis)

        self.state.set_eye_center(eye, center)
        logger.debug("Camera %s: eye=%s center=%s",
                     "+".join(e.kind for e in edits), eye.tolist(), center.tolist())
        return CameraUpdate(self.state.eye, self.state.center, dirty=True)

    def get_distance(self) -> float:
        """Get the distance between the camera eye and center."""
        return geometry_utils.calculate_distance(self.state.eye, self.state.center)
