from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


CONFIG_ENV_VAR = "POSTURECOACH_CONFIG"
_DEFAULT_PATH = Path(__file__).resolve().parent.parent / "posture_engine.yaml"


class Thresholds(BaseModel):
    model_config = ConfigDict(extra="forbid")

    head_roll_deg: float = Field(default=12.0, gt=0)
    head_pitch_down: float = 0.060
    head_pitch_up: float = 0.030
    shoulders_uneven_y: float = Field(default=0.030, gt=0)
    shoulders_depth_z: float = Field(default=0.14, gt=0)
    forward_head_z: float = Field(default=0.18, gt=0)
    body_lean_x: float = Field(default=0.050, gt=0)
    slouch_neck_ratio: float = Field(default=0.75, gt=0)
    slouch_neck_hard_min: float = 0.12
    too_close_mul: float = Field(default=1.35, gt=0)
    too_far_mul: float = Field(default=0.75, gt=0)
    # Frames whose weakest shoulder is below this are treated as sensor noise.
    min_shoulder_visibility: float = Field(default=0.05, ge=0, le=1)


class CalibrationConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    samples: int = Field(default=60, gt=0)


class DebounceConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    persist_ms: float = Field(default=450.0, ge=0)
    clear_ms: float = Field(default=650.0, ge=0)


class CoachingConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    window_ms: float = Field(default=120_000.0, gt=0)
    bad_dominance_ms: float = Field(default=90_000.0, gt=0)
    continuous_bad_ms: float = Field(default=120_000.0, gt=0)
    cooldown_ms: float = Field(default=360_000.0, ge=0)


class AlertConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    persist_ms: float = Field(default=900.0, ge=0)
    cooldown_ms: float = Field(default=3_500.0, ge=0)


class EngineConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    # 0 disables the frame-rate cap (offline replay).
    fps_cap: float = Field(default=30.0, ge=0)
    # True when the preview is selfie-mirrored, so left/right match the user.
    mirror: bool = True
    enable_face: bool = True

    thresholds: Thresholds = Field(default_factory=Thresholds)
    calibration: CalibrationConfig = Field(default_factory=CalibrationConfig)
    debounce: DebounceConfig = Field(default_factory=DebounceConfig)
    coaching: CoachingConfig = Field(default_factory=CoachingConfig)
    alerts: AlertConfig = Field(default_factory=AlertConfig)

    @property
    def min_frame_interval_ms(self) -> float:
        if self.fps_cap <= 0:
            return 0.0
        return 1000.0 / self.fps_cap


def resolve_config_path(path: Optional[Path] = None) -> Path:
    if path is not None:
        return Path(path)
    env_path = os.environ.get(CONFIG_ENV_VAR, "").strip()
    if env_path:
        return Path(env_path)
    return _DEFAULT_PATH


def load_engine_config(path: Optional[Path] = None) -> EngineConfig:
    cfg_path = resolve_config_path(path)
    if not cfg_path.exists():
        return EngineConfig()
    try:
        data = yaml.safe_load(cfg_path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError):
        return EngineConfig()
    if not isinstance(data, dict):
        return EngineConfig()
    # Values that are present but wrong should fail loudly.
    return EngineConfig.model_validate(data)
