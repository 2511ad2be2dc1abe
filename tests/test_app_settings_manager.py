from pathlib import Path

import pytest
from PySide6.QtCore import QSettings

from fogview.app import app_settings_manager as asm


@pytest.fixture
def ini_path(tmp_path: Path, monkeypatch):
    """QSettings を一時フォルダの INI に差し替え、テスト間の汚染を防ぐ。"""
    path = tmp_path / "fogview.ini"
    monkeypatch.setattr(asm, "QSettings", lambda org, app: QSettings(str(path), QSettings.IniFormat))
    return path


@pytest.fixture
def mgr(ini_path):
    return asm.AppSettingsManager()


def test_defaults(mgr):
    assert mgr.run_mode is asm.RunMode.PRODUCTION
    assert mgr.dev_mode is False
    assert mgr.logging_level == "INFO"
    assert mgr.camera.eye == (2.0, 0.5, -2.0)
    assert mgr.camera.allow_basis_fallback is False
    assert mgr.interaction.rotation_deg_per_unit == 10.0
    assert mgr.interaction.pan_speed == 0.75
    assert mgr.noise.seed is None
    assert mgr.noise.size == 32
    assert mgr.noise.frequency == 0.125


def test_setters_persist(ini_path, mgr):
    mgr.set_run_mode("development")
    mgr.set_camera_eye((0.0, 1.0, 4.0))
    mgr.set_allow_basis_fallback(True)
    mgr.set_noise_seed(7)
    mgr.set_noise_size(16)
    mgr.set_pan_speed(1.5)

    reloaded = asm.AppSettingsManager()
    assert reloaded.dev_mode is True
    assert reloaded.camera.eye == (0.0, 1.0, 4.0)
    assert reloaded.camera.allow_basis_fallback is True
    assert reloaded.noise.seed == 7
    assert reloaded.noise.size == 16
    assert reloaded.interaction.pan_speed == 1.5


def test_invalid_values_fall_back(mgr):
    mgr.set_logging_level("chatty")
    mgr.set_noise_size(0)
    mgr.set_noise_frequency(float("nan"))
    mgr.set_camera_center("1,2")
    mgr.set_run_mode("nope")

    assert mgr.logging_level == "INFO"
    assert mgr.noise.size == 32
    assert mgr.noise.frequency == 0.125
    assert mgr.camera.center == (0.0, 0.0, 0.0)
    assert mgr.run_mode is asm.RunMode.PRODUCTION


def test_vec3_accepts_string(mgr):
    mgr.set_camera_center("0.5, 0, -1")
    assert mgr.camera.center == (0.5, 0.0, -1.0)


def test_seed_none_round_trip(ini_path, mgr):
    mgr.set_noise_seed(3)
    mgr.set_noise_seed(None)
    assert asm.AppSettingsManager().noise.seed is None


def test_reset_section(mgr):
    mgr.set_noise_size(8)
    mgr.set_pan_speed(2.0)
    mgr.reset_section("noise")

    assert mgr.noise.size == 32
    assert mgr.interaction.pan_speed == 2.0
    with pytest.raises(ValueError):
        mgr.reset_section("shortcuts")


def test_reset_all_to_default(mgr):
    mgr.set_noise_size(8)
    mgr.set_logging_level("DEBUG")
    mgr.reset_all_to_default()
    assert mgr.noise.size == 32
    assert mgr.logging_level == "INFO"


def test_to_dict(mgr):
    data = mgr.to_dict()
    assert set(data) == set(asm.SECTIONS)
    assert data["general"]["run_mode"] == "production"
    assert data["noise"]["frequency"] == 0.125
