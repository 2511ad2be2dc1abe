"""Node transform controller - view-aligned edits of a scene node's local transform."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np

from fogview.core import geometry_utils
from fogview.core.errors import SingularWorldAlignmentError
from fogview.core.scene_node import TransformableNode
from fogview.core.view_basis import ViewBasis
from fogview.viewers.controllers.input_state import InputState

logger = logging.getLogger(__name__)

# Below this |det| the world rotation+scale is treated as singular.
SINGULAR_DET_EPSILON = 1e-12


@dataclass(frozen=True, eq=False)
class TransformEdit:
    """
    Edit of one frame. ``None`` fields are inactive.

    :ivar rotate_about_up_deg: Rotation about the view up axis
    :ivar rotate_about_right_deg: Rotation about the view right axis
    :ivar translate: World-aligned translation vector
    :ivar scale_factor: Uniform scale applied in local space
    """
    rotate_about_up_deg: float | None = None
    rotate_about_right_deg: float | None = None
    translate: np.ndarray | None = None
    scale_factor: float | None = None

    @property
    def rotates(self) -> bool:
        return self.rotate_about_up_deg is not None

    @property
    def translates(self) -> bool:
        return self.translate is not None

    @property
    def scales(self) -> bool:
        return self.scale_factor is not None


def world_alignment(world: np.ndarray | None) -> tuple[np.ndarray, np.ndarray]:
    """
    Isolate the rotation+scale of a world transform and invert it.

    :param world: World transform of the node, or None for the root
    :return: (world_rotation_scale, world_rotation_scale_inverse)
    :raises SingularWorldAlignmentError: if the rotation+scale is not invertible
    """
    if world is None:
        return geometry_utils.identity(), geometry_utils.identity()

    rotation_scale = np.array(world, dtype=np.float64)
    rotation_scale[:3, 3] = 0.0
    det = np.linalg.det(rotation_scale)
    if not math.isfinite(det) or abs(det) < SINGULAR_DET_EPSILON:
        raise SingularWorldAlignmentError(f"World rotation/scale is singular (det={det})")
    try:
        inverse = np.linalg.inv(rotation_scale)
    except np.linalg.LinAlgError as e:
        raise SingularWorldAlignmentError(str(e)) from e
    return rotation_scale, inverse


class NodeTransformController:
    """
    Rotate, translate and scale a scene node relative to the view.

    Bindings:
    - primary button: rotate about the view up / right axes
    - secondary button, or primary + modifier: translate along view right / up
    - tertiary button: uniform scale around the node's local origin
    """

    def __init__(self, *, rotate_deg_per_unit: float = 10.0, translate_speed: float = 0.75) -> None:
        self.rotate_deg_per_unit = rotate_deg_per_unit
        self.translate_speed = translate_speed

    def compute_edit(self, basis: ViewBasis, frame_input: InputState, dt: float) -> TransformEdit | None:
        """Derive this frame's edit, or None when no trigger is active."""
        dx, dy = frame_input.dx, frame_input.dy
        scale_factor = None
        rotate_up = rotate_right = None
        translate = None

        if frame_input.tertiary:
            scale_factor = 1.0 + dy * dt

        if frame_input.primary and not frame_input.modifier:
            rotate_up = self.rotate_deg_per_unit * dx * dt
            rotate_right = self.rotate_deg_per_unit * dy * dt

        if frame_input.secondary or (frame_input.primary and frame_input.modifier):
            translate = (basis.right * (self.translate_speed * dx * dt)
                         + basis.up * (-self.translate_speed * dy * dt))

        if scale_factor is None and rotate_up is None and translate is None:
            return None
        return TransformEdit(
            rotate_about_up_deg=rotate_up,
            rotate_about_right_deg=rotate_right,
            translate=translate,
            scale_factor=scale_factor,
        )

    @staticmethod
    def edit_matrices(edit: TransformEdit, basis: ViewBasis) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Matrices of an edit; inactive parts are identity.

        :return: (scale, rotate, translate)
        """
        scale = rotate = translate = geometry_utils.identity()
        if edit.scales:
            scale = geometry_utils.scaling_matrix(edit.scale_factor)
        if edit.rotates:
            rotation_up = geometry_utils.rotation_matrix(math.radians(edit.rotate_about_up_deg), basis.up)
            rotation_right = geometry_utils.rotation_matrix(math.radians(edit.rotate_about_right_deg), basis.right)
            rotate = rotation_right @ rotation_up
        if edit.translates:
            translate = geometry_utils.translation_matrix(edit.translate)
        return scale, rotate, translate

    def advance(
            self,
            local: np.ndarray,
            world: np.ndarray | None,
            basis: ViewBasis,
            frame_input: InputState,
            dt: float,
    ) -> np.ndarray:
        """
        New local transform of a node.

        Read right to left: align the node with the world (W), apply the
        view-aligned rotation then translation, remove the alignment (W^-1) and
        finally scale in local space.

            local' = local @ S @ W^-1 @ T @ R @ W

        :param local: Current local transform
        :param world: Current world transform, or None for the root
        :param basis: View basis of the camera
        :param frame_input: Input snapshot of the frame
        :param dt: Elapsed frame time in seconds
        :return: The new local transform (``local`` itself when nothing is active)
        :raises SingularWorldAlignmentError: if the world rotation+scale is singular
        """
        edit = self.compute_edit(basis, frame_input, dt)
        if edit is None:
            return local

        world_rotation_scale, world_rotation_scale_inverse = world_alignment(world)
        scale, rotate, translate = self.edit_matrices(edit, basis)

        return (np.asarray(local, dtype=np.float64) @ scale @ world_rotation_scale_inverse
                @ translate @ rotate @ world_rotation_scale)

    def apply(self, node: TransformableNode, basis: ViewBasis, frame_input: InputState, dt: float) -> bool:
        """
        Edit ``node`` in place.

        :return: True when the node's local transform was replaced
        """
        local = node.local_transform
        new_local = self.advance(local, node.world_transform(), basis, frame_input, dt)
        if new_local is local:
            return False
        node.local_transform = new_local
        logger.debug("Node %s transformed", getattr(node, "name", node))
        return True
