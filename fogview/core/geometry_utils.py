"""Geometry utility functions for vector and matrix operations.

Matrices are 4x4 float64 numpy arrays in column-vector convention:
``p' = M @ p`` and ``A @ B`` applies ``B`` first.
"""
from __future__ import annotations

import math
from typing import Sequence

import numpy as np

from fogview.core.errors import GeometryError

EPSILON = 1e-9

Vector3 = Sequence[float] | np.ndarray


def as_vector3(vector: Vector3) -> np.ndarray:
    """
    Convert a 3-component sequence to a float64 numpy array.

    :param vector: Vector (x, y, z)
    :return: numpy array of shape (3,)
    """
    arr = np.asarray(vector, dtype=np.float64)
    if arr.shape != (3,):
        raise ValueError(f"Expected a 3-component vector, got shape {arr.shape}")
    return arr.copy()


def direction_vector(start_point: Vector3, end_point: Vector3) -> np.ndarray:
    """Calculate the direction vector between two points."""
    return as_vector3(end_point) - as_vector3(start_point)


def calculate_distance(start_point: Vector3, end_point: Vector3) -> float:
    """
    Calculate the distance between two points.

    :param start_point: Starting point (x, y, z)
    :param end_point: Ending point (x, y, z)
    :return: Distance between the two points
    """
    return calculate_norm(direction_vector(start_point, end_point))


def calculate_norm(vector: Vector3) -> float:
    """
    Calulate the norm of a vector.

    :param vector: Vector (x, y, z)
    :return: Magnitude of the vector
    """
    return float(np.linalg.norm(np.asarray(vector, dtype=np.float64)))


def normalize_vector(vector: Vector3) -> np.ndarray:
    """
    Normalize a 3D vector.

    :param vector: Vector (x, y, z)
    :return: Normalized vector (x, y, z)
    :raises GeometryError: if the vector has (near) zero length
    """
    v = as_vector3(vector)
    norm = calculate_norm(v)
    if norm < EPSILON or not math.isfinite(norm):
        raise GeometryError(f"Cannot normalize vector of length {norm}: {v.tolist()}")
    return v / norm


def identity() -> np.ndarray:
    return np.eye(4, dtype=np.float64)


def translation_matrix(offset: Vector3) -> np.ndarray:
    """Matrix translating by ``offset``."""
    m = identity()
    m[:3, 3] = as_vector3(offset)
    return m


def scaling_matrix(factors: Vector3 | float) -> np.ndarray:
    """Matrix scaling by ``factors`` (a scalar means uniform scale)."""
    if np.isscalar(factors):
        factors = (factors, factors, factors)
    m = identity()
    m[0, 0], m[1, 1], m[2, 2] = as_vector3(factors)
    return m


def rotation_matrix(angle_rad: float, axis: Vector3) -> np.ndarray:
    """
    Right-handed rotation of ``angle_rad`` about ``axis`` through the origin.

    :param angle_rad: Rotation angle in radians
    :param axis: Rotation axis, normalized here
    :return: 4x4 rotation matrix
    """
    x, y, z = normalize_vector(axis)
    c = math.cos(angle_rad)
    s = math.sin(angle_rad)
    t = 1.0 - c
    m = identity()
    m[:3, :3] = [
        [x * x * t + c, x * y * t - z * s, x * z * t + y * s],
        [y * x * t + z * s, y * y * t + c, y * z * t - x * s],
        [z * x * t - y * s, z * y * t + x * s, z * z * t + c],
    ]
    return m


def rotation_about_point(angle_rad: float, axis: Vector3, pivot: Vector3) -> np.ndarray:
    """Rotation about the line through ``pivot`` along ``axis``."""
    p = as_vector3(pivot)
    return translation_matrix(p) @ rotation_matrix(angle_rad, axis) @ translation_matrix(-p)


def transform_point(matrix: np.ndarray, point: Vector3) -> np.ndarray:
    """Transform a point (w = 1) by a 4x4 matrix."""
    p = np.append(as_vector3(point), 1.0)
    return (matrix @ p)[:3]


def look_at(eye: Vector3, center: Vector3, up: Vector3) -> np.ndarray:
    """
    View matrix looking from ``eye`` toward ``center`` (OpenGL convention).

    :param eye: Camera position
    :param center: Point of focus
    :param up: Approximate up direction
    :return: 4x4 view matrix
    """
    e = as_vector3(eye)
    z_axis = normalize_vector(e - as_vector3(center))
    x_axis = normalize_vector(np.cross(as_vector3(up), z_axis))
    y_axis = np.cross(z_axis, x_axis)

    view = identity()
    view[0, :3] = x_axis
    view[1, :3] = y_axis
    view[2, :3] = z_axis
    view[:3, 3] = [-np.dot(x_axis, e), -np.dot(y_axis, e), -np.dot(z_axis, e)]
    return view


def perspective(fovy_rad: float, aspect: float, near: float, far: float) -> np.ndarray:
    """
    Perspective projection matrix (OpenGL clip space, depth in [-1, 1]).

    :param fovy_rad: Vertical field of view in radians
    :param aspect: Aspect ratio width/height
    :param near: Near clipping plane
    :param far: Far clipping plane
    """
    f = 1.0 / math.tan(fovy_rad / 2.0)
    proj = np.zeros((4, 4), dtype=np.float64)
    proj[0, 0] = f / aspect
    proj[1, 1] = f
    proj[2, 2] = (far + near) / (near - far)
    proj[2, 3] = (2.0 * far * near) / (near - far)
    proj[3, 2] = -1.0
    return proj
