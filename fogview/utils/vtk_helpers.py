"""Adapters handing core results (volumes, matrices, camera frames) to VTK objects."""
from __future__ import annotations

import logging

import numpy as np
from vtkmodules.util.numpy_support import numpy_to_vtk, vtk_to_numpy
from vtkmodules.vtkCommonCore import VTK_UNSIGNED_CHAR
from vtkmodules.vtkCommonDataModel import vtkImageData
from vtkmodules.vtkCommonMath import vtkMatrix4x4
from vtkmodules.vtkRenderingCore import vtkCamera

from fogview.viewers.camera.camera_state import ViewUpdate

logger = logging.getLogger(__name__)


def volume_to_vtk_image(
        volume: np.ndarray,
        spacing: tuple[float, float, float] = (1.0, 1.0, 1.0),
        origin: tuple[float, float, float] = (0.0, 0.0, 0.0),
) -> vtkImageData:
    """
    Wrap a (k, j, i) uint8 volume as a single-component vtkImageData.

    :param volume: uint8 array indexed [k, j, i]
    :return: vtkImageData with dimensions (i, j, k)
    """
    volume = np.ascontiguousarray(volume, dtype=np.uint8)
    nz, ny, nx = volume.shape

    image = vtkImageData()
    image.SetDimensions(nx, ny, nz)
    image.SetSpacing(*spacing)
    image.SetOrigin(*origin)

    # C-order flattening of [k, j, i] is x fastest, as VTK expects.
    vtk_arr = numpy_to_vtk(volume.ravel(order="C"), deep=True, array_type=VTK_UNSIGNED_CHAR)
    vtk_arr.SetName("density")
    image.GetPointData().SetScalars(vtk_arr)
    image.Modified()
    return image


def vtk_image_to_numpy(image: vtkImageData) -> np.ndarray:
    """
    Convert a single-component vtkImageData back to a [k, j, i] numpy array.

    :return: Numpy array
    """
    nx, ny, nz = image.GetDimensions()
    arr = vtk_to_numpy(image.GetPointData().GetScalars())
    return arr.reshape((nz, ny, nx))


def numpy_to_vtk_matrix(matrix: np.ndarray) -> vtkMatrix4x4:
    """Copy a 4x4 numpy matrix into a vtkMatrix4x4."""
    m = np.asarray(matrix, dtype=np.float64)
    out = vtkMatrix4x4()
    for i in range(4):
        for j in range(4):
            out.SetElement(i, j, float(m[i, j]))
    return out


def vtk_matrix_to_numpy(matrix: vtkMatrix4x4) -> np.ndarray:
    return np.array([[matrix.GetElement(i, j) for j in range(4)] for i in range(4)])


class VtkCameraSink:
    """
    View sink pushing camera updates into a vtkCamera.

    Register with ``CameraStateManager.add_view_changed_callback(sink)``.
    """

    def __init__(self, camera: vtkCamera | None = None) -> None:
        self.camera = camera if camera is not None else vtkCamera()
        self.updates = 0

    def __call__(self, update: ViewUpdate) -> None:
        self.camera.SetPosition(*update.eye)
        self.camera.SetFocalPoint(*update.center)
        self.camera.SetViewUp(*update.up)
        self.updates += 1
        logger.debug("vtkCamera updated: position=%s", tuple(update.eye))

    def set_projection(self, fovy_deg: float, near: float, far: float) -> None:
        self.camera.SetViewAngle(fovy_deg)
        self.camera.SetClippingRange(near, far)
