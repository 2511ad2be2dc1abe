import logging
from pathlib import Path

import numpy as np
import pytest
from PySide6.QtCore import QSettings

from fogview import main as fogview_main
from fogview.app import app_settings_manager as asm
from fogview.app import logging_setup
from fogview.core.scene_node import SceneNode
from fogview.viewers.controllers.input_state import InputState, MouseButton
from fogview.viewers.controllers.interaction_controller import InteractionMode


@pytest.fixture
def settings(tmp_path: Path, monkeypatch):
    path = tmp_path / "fogview.ini"
    monkeypatch.setattr(asm, "QSettings", lambda org, app: QSettings(str(path), QSettings.IniFormat))
    return asm.AppSettingsManager()


@pytest.fixture
def viewer(settings):
    settings.set_camera_eye((0.0, 0.0, 5.0))
    return fogview_main.build_viewer(settings, seed=1, size=8)


def test_build_viewer_wires_components(viewer):
    assert viewer.volume.data.shape == (8, 8, 8)
    assert isinstance(viewer.scene, SceneNode)
    assert viewer.scene.find("volume") is not None
    assert viewer.interaction.current_mode is InteractionMode.CAMERA
    # initial view pushed to the vtk camera
    assert viewer.camera_sink.updates == 1
    np.testing.assert_allclose(viewer.camera_sink.camera.GetPosition(), [0.0, 0.0, 5.0])


def test_noise_overrides_are_not_persisted(settings):
    fogview_main.build_viewer(settings, seed=3, size=4, frequency=0.5)
    assert settings.noise.size == 32
    assert settings.noise.seed is None


def test_same_seed_same_volume(settings):
    a = fogview_main.build_viewer(settings, seed=9, size=6)
    b = fogview_main.build_viewer(settings, seed=9, size=6)
    np.testing.assert_array_equal(a.volume.data, b.volume.data)


def test_tracked_input_drives_camera(viewer):
    viewer.input.press(MouseButton.RIGHT, 10.0, 10.0)
    viewer.input.move(10.0, 11.0)

    assert viewer.frames.update(viewer.input.snapshot(), dt=1.0) is True
    np.testing.assert_allclose(viewer.camera_state.eye, [0.0, 0.0, 4.0])
    assert viewer.camera_sink.updates == 2


def test_selected_node_follows_viewer(viewer):
    viewer.interaction.set_mode(InteractionMode.SCENE_NODE)
    assert viewer.frames.update(InputState(secondary=True, dx=1.0), dt=1.0) is False

    viewer.selected_node = viewer.scene.find("volume")
    assert viewer.frames.update(InputState(secondary=True, dx=1.0), dt=1.0) is True
    assert viewer.selected_node.local_transform[0, 3] == pytest.approx(0.75)


def test_main_returns_zero(settings, tmp_path, monkeypatch):
    monkeypatch.setattr(logging_setup, "default_log_dir", lambda app_name: tmp_path)
    try:
        assert fogview_main.main(["--seed", "2", "--size", "4", "--log-level", "DEBUG"]) == 0
    finally:
        root = logging.getLogger()
        for h in list(root.handlers):
            root.removeHandler(h)
    assert (tmp_path / "fogview.log").exists()


@pytest.mark.parametrize("eye", [(0.0, 5.0, 0.0), (0.0, 0.0, 0.0)])
def test_unusable_stored_camera_falls_back_to_default(settings, eye, caplog):
    """基底が作れない保存済みカメラ位置でも起動でき、既定位置に戻る"""
    settings.set_camera_eye(eye)
    assert settings.camera.eye == eye

    with caplog.at_level(logging.WARNING, logger="fogview.main"):
        viewer = fogview_main.build_viewer(settings, seed=1, size=4)

    np.testing.assert_allclose(viewer.camera_state.eye, [2.0, 0.5, -2.0])
    np.testing.assert_allclose(viewer.camera_state.center, [0.0, 0.0, 0.0])
    assert any("Unusable camera position" in r.getMessage() for r in caplog.records)


def test_vertical_stored_camera_kept_with_fallback_axis(settings):
    settings.set_camera_eye((0.0, 5.0, 0.0))
    settings.set_allow_basis_fallback(True)
    viewer = fogview_main.build_viewer(settings, seed=1, size=4)
    np.testing.assert_allclose(viewer.camera_state.eye, [0.0, 5.0, 0.0])


@pytest.mark.parametrize("argv", [
    ["--size", "0"],
    ["--size", "513"],
    ["--size", "many"],
    ["--frequency", "0"],
    ["--frequency", "nan"],
    ["--frequency", "-1.5"],
    ["--seed", "-3"],
])
def test_invalid_cli_overrides_exit_with_usage_error(argv, capsys):
    with pytest.raises(SystemExit) as exc:
        fogview_main.main(argv)
    assert exc.value.code == 2
    assert "fogview: error:" in capsys.readouterr().err


def test_valid_cli_overrides_are_parsed():
    args = fogview_main._parse_args(["--seed", "4", "--size", "16", "--frequency", "0.25"])
    assert (args.seed, args.size, args.frequency) == (4, 16, 0.25)
