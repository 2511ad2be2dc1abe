"""Core components layer - shared, view-independent functionality."""

from fogview.core.errors import (
    DegenerateBasisError,
    FogviewError,
    GeometryError,
    InvalidSampleError,
    SingularWorldAlignmentError,
)
from fogview.core.noise_field import NoiseField
from fogview.core.noise_volume import NoiseVolumeModel, build_noise_volume
from fogview.core.scene_node import SceneNode
from fogview.core.view_basis import WORLD_FORWARD, WORLD_UP, ViewBasis, recompute_view_basis

__all__ = [
    "DegenerateBasisError",
    "FogviewError",
    "GeometryError",
    "InvalidSampleError",
    "SingularWorldAlignmentError",
    "NoiseField",
    "NoiseVolumeModel",
    "build_noise_volume",
    "SceneNode",
    "WORLD_FORWARD",
    "WORLD_UP",
    "ViewBasis",
    "recompute_view_basis",
]
