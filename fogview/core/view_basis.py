"""View-space basis derived from the camera eye and center."""
from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from fogview.core import geometry_utils
from fogview.core.errors import DegenerateBasisError, GeometryError

WORLD_UP = np.array([0.0, 1.0, 0.0])
WORLD_UP.setflags(write=False)

# Reference axis used instead of WORLD_UP when the camera looks straight up or down.
WORLD_FORWARD = np.array([0.0, 0.0, -1.0])
WORLD_FORWARD.setflags(write=False)


@dataclass(frozen=True, eq=False)
class ViewBasis:
    """Orthonormal camera frame. ``forward`` points from center toward eye."""
    forward: np.ndarray
    right: np.ndarray
    up: np.ndarray

    def as_matrix(self) -> np.ndarray:
        """3x3 matrix with right, up, forward as columns."""
        return np.column_stack([self.right, self.up, self.forward])


def recompute_view_basis(
        eye: geometry_utils.Vector3,
        center: geometry_utils.Vector3,
        *,
        fallback_axis: geometry_utils.Vector3 | None = None,
) -> ViewBasis:
    """
    Derive (forward, right, up) from eye and center.

    forward = normalize(eye - center)
    right   = normalize(cross(WORLD_UP, forward))
    up      = normalize(cross(forward, right))

    :param eye: Camera position
    :param center: Point of focus
    :param fallback_axis: Reference axis used when forward is parallel to WORLD_UP.
        When None, that case raises.
    :raises DegenerateBasisError: eye == center, or forward parallel to the reference axis
    """
    try:
        forward = geometry_utils.normalize_vector(geometry_utils.direction_vector(center, eye))
    except GeometryError as e:
        raise DegenerateBasisError(f"Eye and center coincide: {np.asarray(eye).tolist()}") from e

    try:
        right = geometry_utils.normalize_vector(np.cross(WORLD_UP, forward))
    except GeometryError as e:
        if fallback_axis is None:
            raise DegenerateBasisError(
                f"View direction {forward.tolist()} is parallel to world up") from e
        try:
            right = geometry_utils.normalize_vector(
                np.cross(geometry_utils.as_vector3(fallback_axis), forward))
        except GeometryError as e2:
            raise DegenerateBasisError(
                f"View direction {forward.tolist()} is parallel to the fallback axis") from e2

    up = geometry_utils.normalize_vector(np.cross(forward, right))
    return ViewBasis(forward=forward, right=right, up=up)
