import numpy as np
import pytest

from fogview.core import geometry_utils
from fogview.core.errors import DegenerateBasisError, GeometryError
from fogview.core.view_basis import WORLD_FORWARD, WORLD_UP, recompute_view_basis


def _assert_orthonormal(basis):
    for v in (basis.forward, basis.right, basis.up):
        assert np.linalg.norm(v) == pytest.approx(1.0)
    assert np.dot(basis.forward, basis.right) == pytest.approx(0.0, abs=1e-12)
    assert np.dot(basis.forward, basis.up) == pytest.approx(0.0, abs=1e-12)
    assert np.dot(basis.right, basis.up) == pytest.approx(0.0, abs=1e-12)


def test_axis_aligned_basis():
    basis = recompute_view_basis((0.0, 0.0, 5.0), (0.0, 0.0, 0.0))
    np.testing.assert_allclose(basis.forward, [0.0, 0.0, 1.0])
    np.testing.assert_allclose(basis.right, [1.0, 0.0, 0.0])
    np.testing.assert_allclose(basis.up, [0.0, 1.0, 0.0])


@pytest.mark.parametrize("eye, center", [
    ((2.0, 0.5, -2.0), (0.0, 0.0, 0.0)),
    ((1.0, 3.0, 1.0), (0.5, -1.0, 2.0)),
    ((-4.0, -2.0, 0.1), (0.0, 0.0, 0.0)),
])
def test_basis_is_orthonormal(eye, center):
    basis = recompute_view_basis(eye, center)
    _assert_orthonormal(basis)
    expected = geometry_utils.normalize_vector(np.subtract(eye, center))
    np.testing.assert_allclose(basis.forward, expected)
    np.testing.assert_allclose(np.cross(basis.right, basis.up), basis.forward, atol=1e-12)


def test_eye_equals_center_raises():
    with pytest.raises(DegenerateBasisError):
        recompute_view_basis((1.0, 1.0, 1.0), (1.0, 1.0, 1.0))


@pytest.mark.parametrize("eye", [(0.0, 5.0, 0.0), (0.0, -2.0, 0.0)])
def test_looking_along_world_up_raises(eye):
    with pytest.raises(DegenerateBasisError) as exc:
        recompute_view_basis(eye, (0.0, 0.0, 0.0))
    assert isinstance(exc.value, GeometryError)


def test_fallback_axis_resolves_vertical_view():
    basis = recompute_view_basis((0.0, 5.0, 0.0), (0.0, 0.0, 0.0), fallback_axis=WORLD_FORWARD)
    _assert_orthonormal(basis)
    np.testing.assert_allclose(basis.forward, WORLD_UP)
    assert np.all(np.isfinite(basis.as_matrix()))


def test_fallback_axis_parallel_to_forward_raises():
    with pytest.raises(DegenerateBasisError):
        recompute_view_basis((0.0, 3.0, 0.0), (0.0, 0.0, 0.0), fallback_axis=(0.0, 2.0, 0.0))
