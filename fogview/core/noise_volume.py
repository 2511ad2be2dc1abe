"""
NoiseVolumeModel - quantized noise density volume.

設計原則:
- ボリュームは1つの uint8 配列 (k, j, i) として保持する
- C-order で平坦化すると i + j*size + k*size*size の並びになる
- VTK への変換は to_vtk_image() でのみ行う (複製はその時だけ)
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np

from fogview.core.noise_field import NoiseField
from fogview.utils.log_util import log_io

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VolumeExtent:
    """ボリュームの範囲情報"""
    x_min: int
    x_max: int
    y_min: int
    y_max: int
    z_min: int
    z_max: int

    @classmethod
    def from_shape(cls, shape: tuple[int, int, int]) -> "VolumeExtent":
        """Extent of a (k, j, i) shaped array."""
        nz, ny, nx = shape
        return cls(0, nx - 1, 0, ny - 1, 0, nz - 1)

    def as_vtk_extent(self) -> tuple[int, int, int, int, int, int]:
        return self.x_min, self.x_max, self.y_min, self.y_max, self.z_min, self.z_max

    def get_dimension(self, axis: int) -> int:
        """指定軸のサンプル数を返す (0=x, 1=y, 2=z)"""
        if axis == 0:
            return self.x_max - self.x_min + 1
        elif axis == 1:
            return self.y_max - self.y_min + 1
        elif axis == 2:
            return self.z_max - self.z_min + 1
        raise ValueError(f"Invalid axis: {axis}")


def quantize(samples: np.ndarray) -> np.ndarray:
    """Map noise samples to 8-bit values: clamp(sample * 256, 0, 255)."""
    return np.clip(np.asarray(samples, dtype=np.float64) * 256.0, 0.0, 255.0).astype(np.uint8)


def mip_level_count(size: int) -> int:
    """Number of mip levels of a cubic texture of edge ``size`` (base level included)."""
    return int(math.floor(math.log2(size))) + 1


@log_io(level=logging.DEBUG)
def build_noise_volume(
        noise: NoiseField,
        size: int = 32,
        frequency: float = 1.0,
        offset: float = 0.0,
) -> np.ndarray:
    """
    Sample ``noise`` on a size^3 lattice and quantize it to uint8.

    Voxel (i, j, k) samples the field at (i*frequency + offset, j*frequency + offset,
    k*frequency + offset). Gradient noise vanishes at integer lattice points, so
    ``frequency=1.0`` with ``offset=0.0`` gives an all-zero volume.

    :param noise: Noise field to sample
    :param size: Edge length of the cubic volume
    :param frequency: Lattice units per voxel
    :param offset: Constant shift applied to every coordinate
    :return: uint8 array of shape (size, size, size) indexed [k, j, i]
    """
    if isinstance(size, bool) or not isinstance(size, (int, np.integer)) or size <= 0:
        raise ValueError(f"Volume size must be a positive integer, got {size!r}")

    axis = np.arange(size, dtype=np.float64) * frequency + offset
    k, j, i = np.meshgrid(axis, axis, axis, indexing="ij")
    samples = noise.sample_grid(i, j, k)
    return quantize(samples)


class NoiseVolumeModel:
    """
    共有ノイズボリュームモデル

    量子化済みの uint8 ボリュームとメタデータを保持し、
    テクスチャ転送側には vtkImageData として渡す。
    """

    def __init__(
            self,
            data: np.ndarray,
            spacing: tuple[float, float, float] = (1.0, 1.0, 1.0),
            origin: tuple[float, float, float] = (0.0, 0.0, 0.0),
    ) -> None:
        data = np.asarray(data)
        if data.ndim != 3 or data.dtype != np.uint8:
            raise ValueError(f"Expected a 3D uint8 volume, got {data.dtype} with shape {data.shape}")
        self._data = data
        self._extent = VolumeExtent.from_shape(data.shape)
        self._spacing = tuple(float(s) for s in spacing)
        self._origin = tuple(float(o) for o in origin)
        self._scalar_range = (int(data.min()), int(data.max())) if data.size else (0, 0)

        logger.info(
            "NoiseVolumeModel: extent=%s, spacing=%s, origin=%s, scalar_range=%s",
            self._extent.as_vtk_extent(), self._spacing, self._origin, self._scalar_range
        )

    @classmethod
    def from_noise(
            cls,
            noise: NoiseField,
            size: int = 32,
            frequency: float = 1.0,
            offset: float = 0.0,
    ) -> "NoiseVolumeModel":
        """Build the volume from a noise field."""
        return cls(build_noise_volume(noise, size=size, frequency=frequency, offset=offset))

    @property
    def data(self) -> np.ndarray:
        return self._data

    @property
    def extent(self) -> VolumeExtent:
        return self._extent

    @property
    def spacing(self) -> tuple[float, float, float]:
        return self._spacing

    @property
    def origin(self) -> tuple[float, float, float]:
        return self._origin

    @property
    def scalar_range(self) -> tuple[int, int]:
        return self._scalar_range

    @property
    def mip_levels(self) -> int:
        return mip_level_count(max(self._data.shape))

    def to_vtk_image(self):
        """Convert to a single-component ``vtkImageData`` (x fastest)."""
        from fogview.utils import vtk_helpers

        return vtk_helpers.volume_to_vtk_image(self._data, spacing=self._spacing, origin=self._origin)
