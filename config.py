"""
config.py

Typed configuration loading and validation for beatlane.

Design goals
- Load at most one UTF-8 JSON config file
- Validate with pydantic (defaults included, a missing file means all defaults)
- Support environment variable overrides
- No other I/O beyond reading the config file (no directory creation)

Config file location
- If BEATLANE_CONFIG_PATH is set, that file is used.
- Otherwise beatlane searches these paths in order and uses the first one that exists:
  1) ./beatlane_config.json (current working directory)
  2) <user config dir>/beatlane/beatlane_config.json

Example config file (beatlane_config.json)
{
  "analysis": {
    "threshold_multiplier": 1.5,
    "progress_interval_frames": 200
  },
  "chart": {
    "seed": 1234,
    "difficulty": "hard"
  },
  "judge": {
    "perfect_seconds": 0.05,
    "great_seconds": 0.10,
    "good_seconds": 0.15,
    "manual_offset_seconds": 0.05
  }
}
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from platformdirs import user_config_dir
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

import spectrum


def _default_min_intervals() -> Dict[str, float]:
    return {"bass": 0.12, "mid_low": 0.10, "mid_high": 0.10, "high": 0.08}


class AnalysisConfig(BaseModel):
    fft_size: int = Field(default=1024, description="Analysis window length in samples. Power of two.")
    hop_size: int = Field(default=512, ge=1, description="Samples between consecutive analysis frames.")
    threshold_window_frames: int = Field(default=10, ge=1, description="Frames averaged for the adaptive threshold.")
    threshold_multiplier: float = Field(default=1.5, ge=0.0)
    threshold_floor: float = Field(default=0.001, ge=0.0, description="Added to the threshold so silence stays quiet.")
    progress_interval_frames: int = Field(default=200, ge=1, description="Frames between progress reports and yields.")
    min_interval_seconds: Dict[str, float] = Field(default_factory=_default_min_intervals)

    @field_validator("fft_size")
    @classmethod
    def validate_fft_size(cls, value: int) -> int:
        if not spectrum.is_power_of_two(value):
            raise ValueError("fft_size must be a power of two")
        return value

    @field_validator("min_interval_seconds")
    @classmethod
    def validate_min_intervals(cls, value: Dict[str, float]) -> Dict[str, float]:
        merged = _default_min_intervals()
        for band_name, seconds in value.items():
            key = str(band_name).strip().lower()
            if key not in merged:
                raise ValueError(f"unknown band {band_name!r}; expected one of {sorted(merged)}")
            if float(seconds) < 0.0:
                raise ValueError(f"min interval for {key} must be non-negative")
            merged[key] = float(seconds)
        return merged


class ChartConfig(BaseModel):
    lane_count: int = Field(default=4, ge=1)
    recent_lane_window_seconds: float = Field(default=0.2, ge=0.0, description="Lanes used this recently are avoided.")
    onset_lane_window_seconds: float = Field(default=0.3, ge=0.0, description="Same rule for single-band charts.")
    min_same_lane_spacing_seconds: float = Field(default=0.1, ge=0.0)
    dedupe_decimals: int = Field(default=2, ge=0)
    mobile_min_gap_seconds: float = Field(default=0.25, ge=0.0)
    seed: Optional[int] = Field(default=None, description="Set for reproducible charts. None draws a fresh seed.")
    difficulty: str = Field(default="normal", description="easy, normal or hard.")
    difficulty_level: Optional[float] = Field(
        default=None, ge=0.0, le=1.0, description="Explicit retention level. None uses the difficulty's level."
    )


class JudgeConfig(BaseModel):
    perfect_seconds: float = Field(default=0.05, ge=0.0)
    great_seconds: float = Field(default=0.10, ge=0.0)
    good_seconds: float = Field(default=0.15, ge=0.0)
    note_appear_seconds: float = Field(default=2.0, gt=0.0, description="Lookahead before a note becomes active.")
    manual_offset_seconds: float = Field(default=0.05, description="Extra latency compensation on top of the device's.")
    end_grace_seconds: float = Field(default=0.5, ge=0.0, description="Delay after playback ends before the result.")
    tick_interval_ms: int = Field(default=16, ge=1, description="Host tick period for the Qt driver.")

    @model_validator(mode="after")
    def validate_window_order(self) -> "JudgeConfig":
        if not (self.perfect_seconds <= self.great_seconds <= self.good_seconds):
            raise ValueError("judgement windows must satisfy perfect <= great <= good")
        return self


class AppConfig(BaseModel):
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)
    chart: ChartConfig = Field(default_factory=ChartConfig)
    judge: JudgeConfig = Field(default_factory=JudgeConfig)


def _default_config_candidates() -> List[Path]:
    config_directory = Path(user_config_dir("beatlane", "beatlane"))
    return [
        Path.cwd() / "beatlane_config.json",
        config_directory / "beatlane_config.json",
    ]


def _resolve_config_path() -> Optional[Path]:
    explicit_path_text = os.environ.get("BEATLANE_CONFIG_PATH", "").strip()
    if explicit_path_text:
        return Path(explicit_path_text)

    for candidate_path in _default_config_candidates():
        if candidate_path.exists():
            return candidate_path
    return None


def _read_json_file_utf8(config_path: Path) -> Dict[str, Any]:
    try:
        raw_text = config_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise
    except OSError as exception:
        raise OSError(f"Failed to read config file: {config_path}. Error: {exception}") from exception

    try:
        parsed = json.loads(raw_text)
    except json.JSONDecodeError as exception:
        raise ValueError(f"Config file is not valid JSON: {config_path}. Error: {exception}") from exception

    if not isinstance(parsed, dict):
        raise ValueError(f"Config file root must be a JSON object: {config_path}")

    return parsed


def _apply_environment_overrides(config_dict: Dict[str, Any]) -> Dict[str, Any]:
    """
    Environment overrides are optional. The config file is the primary source of truth.

    Override variables:
    - BEATLANE_CHART_SEED
    - BEATLANE_CHART_DIFFICULTY_LEVEL
    - BEATLANE_JUDGE_MANUAL_OFFSET_SECONDS
    - BEATLANE_JUDGE_END_GRACE_SECONDS
    - BEATLANE_ANALYSIS_PROGRESS_INTERVAL_FRAMES
    """
    def ensure_nested(config_root: Dict[str, Any], section_name: str) -> Dict[str, Any]:
        section = config_root.get(section_name)
        if isinstance(section, dict):
            return section
        section = {}
        config_root[section_name] = section
        return section

    updated_config = dict(config_dict)

    analysis_section = ensure_nested(updated_config, "analysis")
    chart_section = ensure_nested(updated_config, "chart")
    judge_section = ensure_nested(updated_config, "judge")

    def override_int(env_name: str, target_dict: Dict[str, Any], key_name: str) -> None:
        value_text = os.environ.get(env_name, "").strip()
        if not value_text:
            return
        try:
            target_dict[key_name] = int(value_text)
        except ValueError:
            return

    def override_float(env_name: str, target_dict: Dict[str, Any], key_name: str) -> None:
        value_text = os.environ.get(env_name, "").strip()
        if not value_text:
            return
        try:
            target_dict[key_name] = float(value_text)
        except ValueError:
            return

    override_int("BEATLANE_CHART_SEED", chart_section, "seed")
    override_float("BEATLANE_CHART_DIFFICULTY_LEVEL", chart_section, "difficulty_level")
    override_float("BEATLANE_JUDGE_MANUAL_OFFSET_SECONDS", judge_section, "manual_offset_seconds")
    override_float("BEATLANE_JUDGE_END_GRACE_SECONDS", judge_section, "end_grace_seconds")
    override_int("BEATLANE_ANALYSIS_PROGRESS_INTERVAL_FRAMES", analysis_section, "progress_interval_frames")

    return updated_config


def load_config(config_path: Optional[Path] = None) -> Tuple[AppConfig, Optional[Path]]:
    resolved_path = config_path if config_path is not None else _resolve_config_path()
    json_dict = _read_json_file_utf8(resolved_path) if resolved_path is not None else {}
    json_dict = _apply_environment_overrides(json_dict)

    try:
        config = AppConfig.model_validate(json_dict)
    except ValidationError as exception:
        source = str(resolved_path) if resolved_path is not None else "defaults and environment"
        raise ValueError(f"Config validation failed for {source}:\n{exception}") from exception

    return config, resolved_path


@lru_cache(maxsize=1)
def get_config() -> Tuple[AppConfig, Optional[Path]]:
    return load_config()

