"""
NoiseField - deterministic 3D gradient noise.

The permutation table is built once per instance from an injectable random
source, so two fields built from the same seed produce the same values.
"""
from __future__ import annotations

import logging
import math
from typing import Sequence

import numpy as np

from fogview.core.errors import InvalidSampleError

logger = logging.getLogger(__name__)

TABLE_SIZE = 256

# 12 edge directions of a cube.
GRADIENTS = np.array(
    [
        [1, 1, 0], [-1, 1, 0], [1, -1, 0], [-1, -1, 0],
        [1, 0, 1], [-1, 0, 1], [1, 0, -1], [-1, 0, -1],
        [0, 1, 1], [0, -1, 1], [0, 1, -1], [0, -1, -1],
    ],
    dtype=np.float64,
)
GRADIENTS.setflags(write=False)


def fade(t):
    """Quintic fade curve 6t^5 - 15t^4 + 10t^3."""
    return t * t * t * (t * (t * 6 - 15) + 10)


def lerp(t, a, b):
    """Linear interpolation between ``a`` (t=0) and ``b`` (t=1)."""
    return a + t * (b - a)


def _validate_permutation(permutation: Sequence[int]) -> np.ndarray:
    table = np.asarray(permutation)
    if table.ndim != 1 or table.size not in (TABLE_SIZE, 2 * TABLE_SIZE):
        raise ValueError(
            f"Permutation table must have {TABLE_SIZE} or {2 * TABLE_SIZE} entries, got shape {table.shape}")
    if not np.issubdtype(table.dtype, np.integer):
        raise ValueError("Permutation table must contain integers")
    if table.size == 2 * TABLE_SIZE:
        if not np.array_equal(table[:TABLE_SIZE], table[TABLE_SIZE:]):
            raise ValueError("A 512-entry permutation table must repeat its first half")
        table = table[:TABLE_SIZE]
    if not np.array_equal(np.sort(table), np.arange(TABLE_SIZE)):
        raise ValueError("Permutation table must be a permutation of 0..255")
    return table.astype(np.int64)


class NoiseField:
    """
    Continuous pseudo-random scalar field over R^3.

    Values are approximately in [-1, 1] and exactly 0 at integer lattice points.

    :param seed: Seed for ``numpy.random.default_rng`` (ignored when ``rng`` is given)
    :param rng: Random generator used to shuffle the permutation table
    :param permutation: Fixed table of 256 entries (or 512, duplicated) used instead of shuffling
    """

    def __init__(
            self,
            *,
            seed: int | None = None,
            rng: np.random.Generator | None = None,
            permutation: Sequence[int] | None = None,
    ) -> None:
        if permutation is not None:
            base = _validate_permutation(permutation)
            source = "injected"
        else:
            rng = rng if rng is not None else np.random.default_rng(seed)
            base = rng.permutation(TABLE_SIZE).astype(np.int64)
            source = f"seed={seed}" if seed is not None else "generator"

        # Doubled so lookups like p[A + 1] never wrap.
        self._perm = np.concatenate([base, base])
        self._perm.setflags(write=False)
        logger.debug("NoiseField created (%s)", source)

    @property
    def permutation(self) -> np.ndarray:
        """The 512-entry (read-only) permutation table."""
        return self._perm

    def sample(self, x: float, y: float, z: float) -> float:
        """
        Sample the field at (x, y, z).

        :raises InvalidSampleError: if any coordinate is not finite
        """
        for name, value in (("x", x), ("y", y), ("z", z)):
            if not math.isfinite(value):
                raise InvalidSampleError(f"Non-finite noise coordinate {name}={value}")

        fx, fy, fz = math.floor(x), math.floor(y), math.floor(z)
        X, Y, Z = fx & 255, fy & 255, fz & 255
        x, y, z = x - fx, y - fy, z - fz

        u, v, w = fade(x), fade(y), fade(z)

        p = self._perm
        A = p[X] + Y
        AA = p[A] + Z
        AB = p[A + 1] + Z
        B = p[X + 1] + Y
        BA = p[B] + Z
        BB = p[B + 1] + Z

        def grad_dot(h: int, dx: float, dy: float, dz: float) -> float:
            g = GRADIENTS[p[h] % 12]
            return g[0] * dx + g[1] * dy + g[2] * dz

        x1 = lerp(u, grad_dot(AA, x, y, z), grad_dot(BA, x - 1, y, z))
        x2 = lerp(u, grad_dot(AB, x, y - 1, z), grad_dot(BB, x - 1, y - 1, z))
        y1 = lerp(v, x1, x2)

        x3 = lerp(u, grad_dot(AA + 1, x, y, z - 1), grad_dot(BA + 1, x - 1, y, z - 1))
        x4 = lerp(u, grad_dot(AB + 1, x, y - 1, z - 1), grad_dot(BB + 1, x - 1, y - 1, z - 1))
        y2 = lerp(v, x3, x4)

        return float(lerp(w, y1, y2))

    def sample_grid(self, x, y, z) -> np.ndarray:
        """
        Vectorized :meth:`sample` over arrays of equal shape.

        :param x: x coordinates (array-like)
        :param y: y coordinates (array-like)
        :param z: z coordinates (array-like)
        :return: array of noise values with the broadcast shape of the inputs
        """
        x, y, z = np.broadcast_arrays(
            np.asarray(x, dtype=np.float64),
            np.asarray(y, dtype=np.float64),
            np.asarray(z, dtype=np.float64),
        )
        if not (np.isfinite(x).all() and np.isfinite(y).all() and np.isfinite(z).all()):
            raise InvalidSampleError("Non-finite noise coordinate in grid")

        fx, fy, fz = np.floor(x), np.floor(y), np.floor(z)
        X = fx.astype(np.int64) & 255
        Y = fy.astype(np.int64) & 255
        Z = fz.astype(np.int64) & 255
        x, y, z = x - fx, y - fy, z - fz

        u, v, w = fade(x), fade(y), fade(z)

        p = self._perm
        A = p[X] + Y
        AA = p[A] + Z
        AB = p[A + 1] + Z
        B = p[X + 1] + Y
        BA = p[B] + Z
        BB = p[B + 1] + Z

        def grad_dot(h, dx, dy, dz):
            g = GRADIENTS[p[h] % 12]
            return g[..., 0] * dx + g[..., 1] * dy + g[..., 2] * dz

        x1 = lerp(u, grad_dot(AA, x, y, z), grad_dot(BA, x - 1, y, z))
        x2 = lerp(u, grad_dot(AB, x, y - 1, z), grad_dot(BB, x - 1, y - 1, z))
        y1 = lerp(v, x1, x2)

        x3 = lerp(u, grad_dot(AA + 1, x, y, z - 1), grad_dot(BA + 1, x - 1, y, z - 1))
        x4 = lerp(u, grad_dot(AB + 1, x, y - 1, z - 1), grad_dot(BB + 1, x - 1, y - 1, z - 1))
        y2 = lerp(v, x3, x4)

        return lerp(w, y1, y2)
