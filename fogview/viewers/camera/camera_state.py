"""Camera state management separated from UI concerns."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from typing import Callable

import numpy as np

from fogview.core import geometry_utils
from fogview.core.view_basis import ViewBasis, recompute_view_basis

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class CameraState:
    "Immutable camera eye/center and projection parameters. fovy is in degrees."
    eye: np.ndarray = field(default_factory=lambda: np.array([2.0, 0.5, -2.0]))
    center: np.ndarray = field(default_factory=lambda: np.zeros(3))
    fovy: float = 60.0
    aspect: float = 16.0 / 9.0
    near: float = 0.01
    far: float = 10.0

    def __post_init__(self):
        object.__setattr__(self, "eye", geometry_utils.as_vector3(self.eye))
        object.__setattr__(self, "center", geometry_utils.as_vector3(self.center))

    def with_eye_center(self, eye: np.ndarray, center: np.ndarray) -> CameraState:
        return replace(self, eye=eye, center=center)

    def projection_matrix(self) -> np.ndarray:
        return geometry_utils.perspective(math.radians(self.fovy), self.aspect, self.near, self.far)

    def __str__(self) -> str:
        return (f"Eye: {np.round(self.eye, 3).tolist()}, "
                f"Center: {np.round(self.center, 3).tolist()}")


@dataclass(frozen=True, eq=False)
class ViewUpdate:
    """What view sinks receive whenever the view matrix is rebuilt."""
    eye: np.ndarray
    center: np.ndarray
    up: np.ndarray
    view: np.ndarray


class CameraStateManager:
    """
    Manages camera state (eye, center, projection) independently.

    Responsible for:
    - Holding the current CameraState and its derived basis / view matrix.
    - Callbacks (view sinks) for view changes.
    - Don't have concerns about UI.
    """

    def __init__(self, state: CameraState | None = None,
                 fallback_axis: geometry_utils.Vector3 | None = None):
        self._fallback_axis = fallback_axis
        self._state: CameraState = state or CameraState()
        self._basis: ViewBasis = recompute_view_basis(
            self._state.eye, self._state.center, fallback_axis=fallback_axis)
        self._view: np.ndarray = geometry_utils.look_at(
            self._state.eye, self._state.center, self._basis.up)
        self._on_view_changed_callbacks: list[Callable[[ViewUpdate], None]] = []

    @property
    def state(self) -> CameraState:
        """Get current camera state."""
        return self._state

    @property
    def eye(self) -> np.ndarray:
        return self._state.eye.copy()

    @property
    def center(self) -> np.ndarray:
        return self._state.center.copy()

    @property
    def basis(self) -> ViewBasis:
        """View basis derived from the current eye and center."""
        return self._basis

    @property
    def view_matrix(self) -> np.ndarray:
        return self._view.copy()

    @property
    def projection_matrix(self) -> np.ndarray:
        return self._state.projection_matrix()

    @property
    def fallback_axis(self) -> geometry_utils.Vector3 | None:
        return self._fallback_axis

    def set_eye_center(self, eye: geometry_utils.Vector3, center: geometry_utils.Vector3) -> ViewBasis:
        """
        Move the camera.

        The basis and view matrix are recomputed before anything is stored, so a
        degenerate position leaves the state untouched.

        :param eye: New camera position
        :param center: New point of focus
        :return: The new view basis
        :raises DegenerateBasisError: if the basis is undefined for the new position
        """
        new_state = self._state.with_eye_center(eye, center)
        basis = recompute_view_basis(new_state.eye, new_state.center, fallback_axis=self._fallback_axis)
        view = geometry_utils.look_at(new_state.eye, new_state.center, basis.up)

        self._state = new_state
        self._basis = basis
        self._view = view
        self._notify_view_changed()
        return basis

    def current_view_update(self) -> ViewUpdate:
        return ViewUpdate(eye=self.eye, center=self.center, up=self._basis.up.copy(), view=self.view_matrix)

    def add_view_changed_callback(self, callback: Callable[[ViewUpdate], None]) -> None:
        """
        Add a view sink.

        Callback signature: callback(update: ViewUpdate) -> None
        """
        self._on_view_changed_callbacks.append(callback)

    def remove_view_changed_callback(self, callback: Callable[[ViewUpdate], None]) -> None:
        """Remove a view sink."""
        self._on_view_changed_callbacks.remove(callback)

    def _notify_view_changed(self) -> None:
        """Notify view sinks of camera changes."""
        update = self.current_view_update()
        for callback in self._on_view_changed_callbacks:
            try:
                callback(update)
            except Exception:
                logger.exception("Error in view sink %r", callback)
