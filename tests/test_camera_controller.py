import numpy as np
import pytest

from fogview.core import geometry_utils
from fogview.core.errors import DegenerateBasisError
from fogview.core.view_basis import WORLD_FORWARD
from fogview.utils.vtk_helpers import VtkCameraSink
from fogview.viewers.camera.camera_controller import CameraController
from fogview.viewers.camera.camera_state import CameraState, CameraStateManager
from fogview.viewers.controllers.input_state import InputState


@pytest.fixture
def state():
    return CameraStateManager(CameraState(eye=(0.0, 0.0, 5.0), center=(0.0, 0.0, 0.0)))


@pytest.fixture
def controller(state):
    return CameraController(state, orbit_deg_per_unit=10.0, pan_speed=0.75)


@pytest.fixture
def sink_calls(state):
    calls = []
    state.add_view_changed_callback(calls.append)
    return calls


def test_default_camera_state():
    state = CameraStateManager()
    np.testing.assert_allclose(state.eye, [2.0, 0.5, -2.0])
    np.testing.assert_allclose(state.center, [0.0, 0.0, 0.0])
    assert state.state.fovy == 60.0
    assert state.projection_matrix.shape == (4, 4)


def test_idle_frame_changes_nothing(controller, state, sink_calls):
    view_before = state.view_matrix
    update = controller.advance(InputState.idle(), dt=0.016)

    assert update.dirty is False
    np.testing.assert_array_equal(update.eye, [0.0, 0.0, 5.0])
    np.testing.assert_array_equal(state.view_matrix, view_before)
    assert sink_calls == []


def test_motion_without_buttons_changes_nothing(controller, sink_calls):
    update = controller.advance(InputState(dx=4.0, dy=-2.0), dt=1.0)
    assert update.dirty is False
    assert sink_calls == []


def test_zoom_moves_eye_along_forward(controller, state):
    """eye=(0,0,5), dy=1, dt=1 -> eye=(0,0,4)"""
    update = controller.advance(InputState(tertiary=True, dy=1.0), dt=1.0)

    assert update.dirty is True
    np.testing.assert_allclose(update.eye, [0.0, 0.0, 4.0])
    np.testing.assert_allclose(update.center, [0.0, 0.0, 0.0])
    assert controller.get_distance() == pytest.approx(4.0)


def test_orbit_yaw_around_world_up(controller):
    update = controller.advance(InputState(primary=True, dx=9.0), dt=1.0)
    np.testing.assert_allclose(update.eye, [-5.0, 0.0, 0.0], atol=1e-12)
    np.testing.assert_allclose(update.center, [0.0, 0.0, 0.0])


def test_orbit_yaw_preserves_distance_to_off_origin_center():
    state = CameraStateManager(CameraState(eye=(2.0, 0.5, -2.0), center=(0.5, 0.2, 0.1)))
    controller = CameraController(state)
    distance = controller.get_distance()

    for dx in (1.0, -3.0, 0.2):
        controller.advance(InputState(primary=True, dx=dx), dt=0.1)
        assert controller.get_distance() == pytest.approx(distance)
    np.testing.assert_allclose(state.center, [0.5, 0.2, 0.1])


def test_orbit_pitch_rotates_about_right_axis_through_origin():
    """パン済みカメラ (center が原点外) のピッチは原点を通る right 軸まわり"""
    state = CameraStateManager(CameraState(eye=(0.0, 2.0, 5.0), center=(0.0, 2.0, 0.0)))
    controller = CameraController(state)

    update = controller.advance(InputState(primary=True, dy=3.0), dt=1.0)

    # -30 deg about (1, 0, 0): y = 2 cos30 + 5 sin30, z = -2 sin30 + 5 cos30
    c, s = np.cos(np.radians(30.0)), np.sin(np.radians(30.0))
    np.testing.assert_allclose(update.eye, [0.0, 2.0 * c + 5.0 * s, -2.0 * s + 5.0 * c], atol=1e-12)
    np.testing.assert_allclose(update.eye, [0.0, 4.2320508, 3.3301270], atol=1e-6)
    np.testing.assert_allclose(update.center, [0.0, 2.0, 0.0])


def test_pan_moves_eye_and_center_together(controller):
    update = controller.advance(InputState(secondary=True, dx=1.0, dy=2.0), dt=1.0)
    # right=(1,0,0), up=(0,1,0)
    expected_shift = np.array([-0.75, 1.5, 0.0])
    np.testing.assert_allclose(update.eye, np.array([0.0, 0.0, 5.0]) + expected_shift)
    np.testing.assert_allclose(update.center, expected_shift)


def test_primary_with_modifier_pans(controller):
    edits = controller.compute_edits(InputState(primary=True, modifier=True, dx=1.0), dt=1.0)
    assert [e.kind for e in edits] == ["pan"]


def test_edits_are_ordered_zoom_orbit_pan(controller):
    frame = InputState(primary=True, secondary=True, tertiary=True, dx=1.0, dy=1.0)
    assert [e.kind for e in controller.compute_edits(frame, dt=1.0)] == ["zoom", "orbit", "pan"]


def test_combined_edits_use_start_of_frame_basis(controller, state):
    """同一フレーム内のエディットはフレーム開始時の基底を使う"""
    basis = state.basis
    frame = InputState(tertiary=True, secondary=True, dx=1.0, dy=1.0)
    eye, center = state.eye, state.center
    for edit in controller.compute_edits(frame, dt=1.0):
        eye, center = edit.apply(eye, center, basis)

    update = controller.advance(frame, dt=1.0)
    np.testing.assert_allclose(update.eye, eye)
    np.testing.assert_allclose(update.center, center)


def test_degenerate_orbit_leaves_state_unchanged(controller, state, sink_calls):
    """真上に回り込むと基底が定義できない -> 例外、状態は変わらない"""
    view_before = state.view_matrix
    with pytest.raises(DegenerateBasisError):
        controller.advance(InputState(primary=True, dy=-9.0), dt=1.0)

    np.testing.assert_array_equal(state.eye, [0.0, 0.0, 5.0])
    np.testing.assert_array_equal(state.view_matrix, view_before)
    assert sink_calls == []


def test_degenerate_orbit_with_fallback_axis():
    state = CameraStateManager(CameraState(eye=(0.0, 0.0, 5.0), center=(0.0, 0.0, 0.0)),
                               fallback_axis=WORLD_FORWARD)
    controller = CameraController(state)
    update = controller.advance(InputState(primary=True, dy=-9.0), dt=1.0)

    assert update.dirty is True
    assert abs(update.eye[1]) == pytest.approx(5.0)
    assert np.all(np.isfinite(state.view_matrix))


def test_sink_receives_view_update(controller, state, sink_calls):
    controller.advance(InputState(tertiary=True, dy=1.0), dt=1.0)

    assert len(sink_calls) == 1
    update = sink_calls[0]
    np.testing.assert_allclose(update.eye, [0.0, 0.0, 4.0])
    np.testing.assert_allclose(update.up, [0.0, 1.0, 0.0])
    np.testing.assert_allclose(update.view, state.view_matrix)


def test_view_matrix_maps_eye_to_origin(controller, state):
    controller.advance(InputState(primary=True, dx=1.3, dy=0.4), dt=1.0)
    np.testing.assert_allclose(
        geometry_utils.transform_point(state.view_matrix, state.eye), [0.0, 0.0, 0.0], atol=1e-12)
    # center lies on the -z axis in view space
    center_view = geometry_utils.transform_point(state.view_matrix, state.center)
    np.testing.assert_allclose(center_view[:2], [0.0, 0.0], atol=1e-12)
    assert center_view[2] < 0.0


def test_failing_sink_does_not_block_others(state, controller):
    received = []

    def broken(update):
        raise RuntimeError("sink failure")

    state.add_view_changed_callback(broken)
    state.add_view_changed_callback(received.append)
    controller.advance(InputState(tertiary=True, dy=1.0), dt=1.0)
    assert len(received) == 1


def test_remove_view_changed_callback(state, controller, sink_calls):
    state.remove_view_changed_callback(sink_calls.append)
    controller.advance(InputState(tertiary=True, dy=1.0), dt=1.0)
    assert sink_calls == []


def test_vtk_camera_sink_follows_camera(state, controller):
    sink = VtkCameraSink()
    sink.set_projection(60.0, 0.01, 10.0)
    state.add_view_changed_callback(sink)

    controller.advance(InputState(tertiary=True, dy=1.0), dt=1.0)

    assert sink.updates == 1
    np.testing.assert_allclose(sink.camera.GetPosition(), [0.0, 0.0, 4.0])
    np.testing.assert_allclose(sink.camera.GetFocalPoint(), [0.0, 0.0, 0.0])
    assert sink.camera.GetViewAngle() == pytest.approx(60.0)
    np.testing.assert_allclose(sink.camera.GetClippingRange(), [0.01, 10.0])
