"""
config.py

Typed configuration loading and validation for ShapeSeq.

Design goals
- Load at most one UTF-8 JSON config file
- Validate with pydantic (defaults included)
- Support environment variable overrides
- No other I/O beyond reading the config file (no directory creation)

Config file location
- If SHAPESEQ_CONFIG_PATH is set, that file is used.
- Otherwise ShapeSeq searches these paths in order and uses the first one that exists:
  1) ./shapeseq_config.json (current working directory)
  2) <user config dir>/ShapeSeq/ShapeSeq/shapeseq_config.json
- When no file exists the built-in defaults are used (120 BPM, 4 beats per bar).

Example config file (shapeseq_config.json)
{
  "sequencer": {
    "tempo_bpm": 120.0,
    "beats_per_bar": 4,
    "shape_radius": 250.0,
    "bounds_half_extent": 300.0,
    "emit_skipped_taps": false
  },
  "clock": {
    "tick_interval_ms": 16,
    "sample_rate": 44100
  },
  "logging": {
    "level": "INFO"
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
from pydantic import BaseModel, Field, ValidationError, field_validator

from sequence_models import DEFAULT_NUM_NODES, DEFAULT_TEMPO_BPM, MAX_NUM_NODES, MIN_NUM_NODES


class SequencerSettings(BaseModel):
    tempo_bpm: float = Field(default=DEFAULT_TEMPO_BPM, gt=0.0, description="Tempo in beats per minute.")
    beats_per_bar: int = Field(
        default=DEFAULT_NUM_NODES,
        ge=MIN_NUM_NODES,
        le=MAX_NUM_NODES,
        description="Time signature numerator. Also the number of nodes in the shape.",
    )
    shape_radius: float = Field(default=250.0, gt=0.0, description="Radius used when the shape is reset.")
    bounds_half_extent: Optional[float] = Field(
        default=300.0,
        description="Dragged nodes are clamped to a square of this half extent. null disables clamping.",
    )
    emit_skipped_taps: bool = Field(
        default=False,
        description="Tap every node passed in one cycle instead of only the last one.",
    )

    @field_validator("bounds_half_extent")
    @classmethod
    def validate_bounds(cls, value: Optional[float]) -> Optional[float]:
        if value is None:
            return None
        if value <= 0.0:
            raise ValueError("bounds_half_extent must be positive or null")
        return float(value)


class ClockSettings(BaseModel):
    tick_interval_ms: int = Field(default=16, ge=1, le=1000, description="QTimer interval for the sequencer clock.")
    sample_rate: int = Field(default=44100, ge=8000, description="Sample rate used for note-on frame offsets.")


class LoggingSettings(BaseModel):
    level: str = Field(default="INFO", description="DEBUG, INFO, WARNING or ERROR")

    @field_validator("level")
    @classmethod
    def validate_level(cls, value: str) -> str:
        normalized = (value or "").strip().upper()
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR"}
        if normalized not in allowed:
            raise ValueError("level must be one of: DEBUG, INFO, WARNING, ERROR")
        return normalized


class AppConfig(BaseModel):
    sequencer: SequencerSettings = Field(default_factory=SequencerSettings)
    clock: ClockSettings = Field(default_factory=ClockSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


def _default_config_candidates() -> List[Path]:
    config_directory = Path(user_config_dir("ShapeSeq", "ShapeSeq"))
    return [
        Path.cwd() / "shapeseq_config.json",
        config_directory / "shapeseq_config.json",
    ]


def _resolve_config_path() -> Optional[Path]:
    explicit_path_text = os.environ.get("SHAPESEQ_CONFIG_PATH", "").strip()
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
    - SHAPESEQ_TEMPO_BPM
    - SHAPESEQ_BEATS_PER_BAR
    - SHAPESEQ_EMIT_SKIPPED_TAPS
    - SHAPESEQ_TICK_INTERVAL_MS
    - SHAPESEQ_LOG_LEVEL
    """
    def ensure_nested(config_root: Dict[str, Any], section_name: str) -> Dict[str, Any]:
        section = config_root.get(section_name)
        if isinstance(section, dict):
            section = dict(section)
        else:
            section = {}
        config_root[section_name] = section
        return section

    updated_config = dict(config_dict)

    sequencer_section = ensure_nested(updated_config, "sequencer")
    clock_section = ensure_nested(updated_config, "clock")
    logging_section = ensure_nested(updated_config, "logging")

    def override_string(env_name: str, target_dict: Dict[str, Any], key_name: str) -> None:
        value_text = os.environ.get(env_name, "")
        if value_text.strip():
            target_dict[key_name] = value_text.strip()

    def override_number(env_name: str, target_dict: Dict[str, Any], key_name: str, cast) -> None:
        value_text = os.environ.get(env_name, "").strip()
        if not value_text:
            return
        try:
            target_dict[key_name] = cast(value_text)
        except ValueError:
            return

    def override_bool(env_name: str, target_dict: Dict[str, Any], key_name: str) -> None:
        value_text = os.environ.get(env_name, "").strip().lower()
        if not value_text:
            return
        truthy = {"1", "true", "yes", "on"}
        falsy = {"0", "false", "no", "off"}
        if value_text in truthy:
            target_dict[key_name] = True
        elif value_text in falsy:
            target_dict[key_name] = False

    override_number("SHAPESEQ_TEMPO_BPM", sequencer_section, "tempo_bpm", float)
    override_number("SHAPESEQ_BEATS_PER_BAR", sequencer_section, "beats_per_bar", int)
    override_bool("SHAPESEQ_EMIT_SKIPPED_TAPS", sequencer_section, "emit_skipped_taps")

    override_number("SHAPESEQ_TICK_INTERVAL_MS", clock_section, "tick_interval_ms", int)

    override_string("SHAPESEQ_LOG_LEVEL", logging_section, "level")

    return updated_config


def load_config(config_path: Optional[Path] = None) -> Tuple[AppConfig, Optional[Path]]:
    """Returns the validated config and the file it came from (None when running on defaults)."""
    resolved_path = config_path if config_path is not None else _resolve_config_path()
    json_dict: Dict[str, Any] = {}
    if resolved_path is not None:
        json_dict = _read_json_file_utf8(resolved_path)
    json_dict = _apply_environment_overrides(json_dict)

    try:
        config = AppConfig.model_validate(json_dict)
    except ValidationError as exception:
        source = str(resolved_path) if resolved_path is not None else "defaults"
        raise ValueError(f"Config validation failed for {source}:\n{exception}") from exception

    return config, resolved_path


@lru_cache(maxsize=1)
def get_config() -> Tuple[AppConfig, Optional[Path]]:
    return load_config()


def to_json(config: AppConfig) -> str:
    return json.dumps(config.model_dump(), ensure_ascii=False, indent=2)


def main() -> int:
    try:
        config, resolved_path = load_config()
    except Exception as exception:
        error_payload = {"ok": False, "error": str(exception)}
        print(json.dumps(error_payload, ensure_ascii=False, indent=2))
        return 2

    output_payload = {
        "ok": True,
        "config_path": str(resolved_path) if resolved_path is not None else None,
        "config": json.loads(to_json(config)),
    }
    print(json.dumps(output_payload, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
