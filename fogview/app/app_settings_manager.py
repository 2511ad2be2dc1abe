from __future__ import annotations
from dataclasses import dataclass, asdict, field
from enum import Enum
from typing import Any, Dict
import math
from PySide6.QtCore import QSettings
import logging

logger = logging.getLogger(__name__)

ORG_DOMAIN = "fogview.org"
APP_NAME = "fogview"

SECTIONS = ("general", "camera", "interaction", "noise")

MAX_VOLUME_SIZE = 512
MAX_NOISE_FREQUENCY = 256.0


class RunMode(str, Enum):
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    VERBOSE = "verbose"

    def __str__(self):
        return self.value
    def __repr__(self):
        return self.value


# ----------------------
# デフォルト設定
# ----------------------
DEFAULTS: Dict[str, Any] = {
    "general": {
        "run_mode": RunMode.PRODUCTION.value,
        "logging_level": "INFO",  # "DEBUG", "INFO", "WARNING", "ERROR"
    },
    "camera": {
        "eye": (2.0, 0.5, -2.0),
        "center": (0.0, 0.0, 0.0),
        "fovy": 60.0,
        "aspect": 16.0 / 9.0,
        "near": 0.01,
        "far": 10.0,
        "allow_basis_fallback": False,
    },
    "interaction": {
        "rotation_deg_per_unit": 10.0,
        "pan_speed": 0.75,
    },
    "noise": {
        "seed": None,
        "size": 32,
        "frequency": 0.125,
    },
}

# ---------------------
# Data model
# ---------------------
@dataclass
class GeneralConfig:
    run_mode: RunMode = RunMode.PRODUCTION
    logging_level: str = "INFO"

@dataclass
class CameraConfig:
    eye: tuple[float, float, float] = (2.0, 0.5, -2.0)
    center: tuple[float, float, float] = (0.0, 0.0, 0.0)
    fovy: float = 60.0
    aspect: float = 16.0 / 9.0
    near: float = 0.01
    far: float = 10.0
    allow_basis_fallback: bool = False

@dataclass
class InteractionConfig:
    rotation_deg_per_unit: float = 10.0
    pan_speed: float = 0.75

@dataclass
class NoiseConfig:
    seed: int | None = None
    size: int = 32
    frequency: float = 0.125

@dataclass
class AppSettingsData:
    general: GeneralConfig = field(default_factory=GeneralConfig)
    camera: CameraConfig = field(default_factory=CameraConfig)
    interaction: InteractionConfig = field(default_factory=InteractionConfig)
    noise: NoiseConfig = field(default_factory=NoiseConfig)

# ----------------------
# Utility
# ----------------------
def _truthy(s: Any) -> bool:
    if isinstance(s, bool):
        return s
    return str(s).strip().lower() in ("1", "true", "yes", "on")


def _validate_run_mode(v: Any) -> RunMode:
    if isinstance(v, RunMode):
        return v
    mode = str(v).strip().lower()
    try:
        return RunMode(mode)
    except ValueError:
        return RunMode(DEFAULTS["general"]["run_mode"])

def _validate_logging_level(v: str) -> str:
    v = str(v).upper()
    return v if v in ("DEBUG", "INFO", "WARNING", "ERROR") else "INFO"

def _validate_float(v: Any, default: float, lo: float, hi: float, *, lo_inclusive: bool = False) -> float:
    """範囲外・変換不能ならデフォルトへフォールバック"""
    try:
        f = float(v)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(f):
        return default
    above = f >= lo if lo_inclusive else f > lo
    return f if (above and f <= hi) else default

def _validate_vec3(v: Any, default: tuple[float, float, float]) -> tuple[float, float, float]:
    """"1,2,3" / [1, 2, 3] / ("1", "2", "3") を受け付ける"""
    if isinstance(v, str):
        v = v.split(",")
    try:
        values = tuple(float(x) for x in v)
    except (TypeError, ValueError):
        return default
    if len(values) != 3 or not all(math.isfinite(x) for x in values):
        return default
    return values

def _validate_seed(v: Any) -> int | None:
    if v is None or (isinstance(v, str) and v.strip().lower() in ("", "none")):
        return None
    try:
        seed = int(v)
    except (TypeError, ValueError):
        return None
    return seed if seed >= 0 else None

def _validate_size(v: Any) -> int:
    try:
        size = int(v)
    except (TypeError, ValueError):
        return DEFAULTS["noise"]["size"]
    return size if 1 <= size <= MAX_VOLUME_SIZE else DEFAULTS["noise"]["size"]


_VALIDATORS = {
    "general/run_mode": lambda v: _validate_run_mode(v).value,
    "general/logging_level": _validate_logging_level,
    "camera/eye": lambda v: _validate_vec3(v, DEFAULTS["camera"]["eye"]),
    "camera/center": lambda v: _validate_vec3(v, DEFAULTS["camera"]["center"]),
    "camera/fovy": lambda v: _validate_float(v, DEFAULTS["camera"]["fovy"], 0.0, 179.0),
    "camera/aspect": lambda v: _validate_float(v, DEFAULTS["camera"]["aspect"], 0.0, 100.0),
    "camera/near": lambda v: _validate_float(v, DEFAULTS["camera"]["near"], 0.0, 1.0e6),
    "camera/far": lambda v: _validate_float(v, DEFAULTS["camera"]["far"], 0.0, 1.0e6),
    "camera/allow_basis_fallback": _truthy,
    "interaction/rotation_deg_per_unit": lambda v: _validate_float(
        v, DEFAULTS["interaction"]["rotation_deg_per_unit"], 0.0, 360.0),
    "interaction/pan_speed": lambda v: _validate_float(v, DEFAULTS["interaction"]["pan_speed"], 0.0, 100.0),
    "noise/seed": _validate_seed,
    "noise/size": _validate_size,
    "noise/frequency": lambda v: _validate_float(v, DEFAULTS["noise"]["frequency"], 0.0, MAX_NOISE_FREQUENCY),
}


# ---------------------
# AppSettingManager
# ---------------------
class AppSettingsManager:
    """
    アプリケーションの設定を管理するクラス。
    デフォルトのコード内のDEFAULTS を読み込む。
    読み込み時はに検証し、範囲外の値はフォールバック
    set_* は設定すると QSettings に即時保存される。
    """
    def __init__(self, org_domain: str = ORG_DOMAIN, app_name: str = APP_NAME):
        self._settings = QSettings(org_domain, app_name)
        self._data = self._load_effective()

    # 読み取り
    @property
    def data(self) -> AppSettingsData:
        return self._data

    @property
    def run_mode(self) -> RunMode:
        return self._data.general.run_mode

    @property
    def dev_mode(self) -> bool:
        return self.run_mode is RunMode.DEVELOPMENT

    @property
    def logging_level(self) -> str:
        return self._data.general.logging_level

    @property
    def camera(self) -> CameraConfig:
        return self._data.camera

    @property
    def interaction(self) -> InteractionConfig:
        return self._data.interaction

    @property
    def noise(self) -> NoiseConfig:
        return self._data.noise

    # 書き込み
    def set_run_mode(self, v: str | RunMode) -> None:
        mode = _validate_run_mode(v)
        self._settings.setValue("general/run_mode", mode.value)
        self._data.general.run_mode = mode

    def set_logging_level(self, v: str) -> None:
        self._set("general/logging_level", v)

    def set_camera_eye(self, v) -> None:
        self._set("camera/eye", v)

    def set_camera_center(self, v) -> None:
        self._set("camera/center", v)

    def set_allow_basis_fallback(self, v: bool) -> None:
        self._set("camera/allow_basis_fallback", v)

    def set_rotation_deg_per_unit(self, v: float) -> None:
        self._set("interaction/rotation_deg_per_unit", v)

    def set_pan_speed(self, v: float) -> None:
        self._set("interaction/pan_speed", v)

    def set_noise_seed(self, v: int | None) -> None:
        self._set("noise/seed", v)

    def set_noise_size(self, v: int) -> None:
        self._set("noise/size", v)

    def set_noise_frequency(self, v: float) -> None:
        self._set("noise/frequency", v)

    # Reset
    def reset_all_to_default(self) -> None:
        """ユーザー設定を全削除"""
        for section in SECTIONS:
            self._settings.remove(section)
        self._data = self._load_effective()

    def reset_section(self, section: str) -> None:
        """特定のセクションのみを規定値へ"""
        if section not in SECTIONS:
            raise ValueError(f"Invalid section: {section}")
        self._settings.remove(section)
        self._data = self._load_effective()

    def to_dict(self) -> dict[str, Any]:
        data = {section: asdict(getattr(self._data, section)) for section in SECTIONS}
        data["general"]["run_mode"] = self._data.general.run_mode.value
        return data

    # ---------- 内部実装 ---------------
    def _set(self, key: str, v: Any) -> None:
        """検証してから QSettings とモデルの両方へ反映する"""
        value = _VALIDATORS[key](v)
        section, name = key.split("/")
        stored = ",".join(str(x) for x in value) if isinstance(value, tuple) else value
        # QSettings (INI) cannot hold None.
        self._settings.setValue(key, "none" if stored is None else stored)
        if key == "general/run_mode":
            value = RunMode(value)
        setattr(getattr(self._data, section), name, value)

    def _load_effective(self) -> AppSettingsData:
        """DEFAULTS をベースに QSettings の上書きを反映、検証、モデル化"""
        merged = self._apply_qsettings_overrides(DEFAULTS)
        return self._make_model_from(merged)

    def _apply_qsettings_overrides(self, base: dict[str, Any]) -> dict[str, Any]:
        """
        Read the dict based settings and apply QSettings overrides.
        :param base:
        :return: apply QSettings overrides
        """
        merged = {section: dict(base.get(section, {})) for section in SECTIONS}
        for key, validate in _VALIDATORS.items():
            v = self._settings.value(key, None)
            if v is not None:
                section, name = key.split("/")
                merged[section][name] = validate(v)
        return merged

    def _make_model_from(self, merged: dict[str, Any]) -> AppSettingsData:
        """
        making model from merged dict and returning merged AppSettingsData
        :param merged:
        :return: merged AppSettingsData
        """
        def get(section: str, name: str):
            return _VALIDATORS[f"{section}/{name}"](merged[section].get(name, DEFAULTS[section][name]))

        return AppSettingsData(
            general=GeneralConfig(
                run_mode=RunMode(get("general", "run_mode")),
                logging_level=get("general", "logging_level"),
            ),
            camera=CameraConfig(
                eye=get("camera", "eye"),
                center=get("camera", "center"),
                fovy=get("camera", "fovy"),
                aspect=get("camera", "aspect"),
                near=get("camera", "near"),
                far=get("camera", "far"),
                allow_basis_fallback=get("camera", "allow_basis_fallback"),
            ),
            interaction=InteractionConfig(
                rotation_deg_per_unit=get("interaction", "rotation_deg_per_unit"),
                pan_speed=get("interaction", "pan_speed"),
            ),
            noise=NoiseConfig(
                seed=get("noise", "seed"),
                size=get("noise", "size"),
                frequency=get("noise", "frequency"),
            ),
        )
