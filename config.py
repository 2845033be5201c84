"""
config.py

Typed configuration loading and validation for Note Drill.

Behavior
- One optional UTF-8 JSON file, validated by pydantic models whose defaults cover every field
- NOTE_DRILL_* environment variables override single fields
- With no file the defaults are used, so a fresh install starts without setup
- Loading only reads. Directories are created by the stores and by the editor helper

Config file location
- If NOTE_DRILL_CONFIG_PATH is set, that file is used (and must exist).
- Otherwise Note Drill searches these paths in order and uses the first one that exists:
  1) ./note_drill_config.json (current working directory)
  2) <user config dir>/NoteDrill/NoteDrill/note_drill_config.json
  3) <user config dir>/NoteDrill/NoteDrill/config.json
- If none exists, the built-in defaults are used.

Example config file (note_drill_config.json)
{
  "pacing": {
    "feedback_delay_seconds": 0.15,
    "level_up_delay_seconds": 2.0,
    "completion_delay_seconds": 3.5
  },
  "instrument": {
    "mode": "violin",
    "show_note_names": true,
    "show_all_notes": false
  },
  "storage": {
    "data_dir": null,
    "state_file_name": "note_drill_state.json",
    "profiles_file_name": "note_drill_profiles.json"
  },
  "audio": {
    "enabled": true,
    "volume": 0.5
  }
}
"""

from __future__ import annotations

import json
import os
import subprocess
import sys
from functools import lru_cache
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from platformdirs import user_config_dir
from pydantic import BaseModel, Field, ValidationError, field_validator

APP_NAME = "NoteDrill"
APP_AUTHOR = "NoteDrill"
CONFIG_FILE_NAME = "note_drill_config.json"
INSTRUMENT_MODES = ("piano", "violin")


class PacingConfig(BaseModel):
    feedback_delay_seconds: float = Field(default=0.15, ge=0.0, description="Pause after an answer before the next note.")
    level_up_delay_seconds: float = Field(default=2.0, ge=0.0, description="Level-up banner time before the next level loads.")
    completion_delay_seconds: float = Field(default=3.5, ge=0.0, description="Banner time after the final level.")


class InstrumentConfig(BaseModel):
    mode: str = Field(default="piano", description="piano or violin")
    show_note_names: bool = Field(default=True, description="Label answer keys with note names.")
    show_all_notes: bool = Field(default=False, description="Offer every catalog note as an answer, not only the level's.")

    @field_validator("mode")
    @classmethod
    def validate_mode(cls, value: str) -> str:
        mode = (value or "").strip().lower()
        if mode not in INSTRUMENT_MODES:
            raise ValueError(f"mode must be one of: {', '.join(INSTRUMENT_MODES)}")
        return mode


class StorageConfig(BaseModel):
    data_dir: Optional[str] = Field(default=None, description="Directory for saved progress. Default: user data dir.")
    state_file_name: str = Field(default="note_drill_state.json")
    profiles_file_name: str = Field(default="note_drill_profiles.json")

    @field_validator("data_dir")
    @classmethod
    def normalize_optional_path(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        trimmed = value.strip()
        return trimmed or None


class AudioConfig(BaseModel):
    enabled: bool = Field(default=True)
    volume: float = Field(default=0.5, ge=0.0, le=1.0)


class AppConfig(BaseModel):
    pacing: PacingConfig = Field(default_factory=PacingConfig)
    instrument: InstrumentConfig = Field(default_factory=InstrumentConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    audio: AudioConfig = Field(default_factory=AudioConfig)


def _default_config_candidates() -> List[Path]:
    user_directory = Path(user_config_dir(APP_NAME, APP_AUTHOR))
    return [Path.cwd() / CONFIG_FILE_NAME, user_directory / CONFIG_FILE_NAME, user_directory / "config.json"]


def _resolve_config_path() -> Optional[Path]:
    explicit = os.environ.get("NOTE_DRILL_CONFIG_PATH", "").strip()
    if explicit:
        return Path(explicit)
    return next((candidate for candidate in _default_config_candidates() if candidate.exists()), None)


def _read_config_object(config_path: Path) -> Dict[str, Any]:
    """Parse the config file. A missing file propagates FileNotFoundError."""
    try:
        text = config_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise
    except OSError as exception:
        raise OSError(f"Could not read config file {config_path}: {exception}") from exception

    try:
        document = json.loads(text)
    except json.JSONDecodeError as exception:
        raise ValueError(f"Config file {config_path} is not valid JSON: {exception}") from exception

    if not isinstance(document, dict):
        raise ValueError(f"Config file {config_path} must contain a JSON object at the top level")
    return document


_TRUE_WORDS = frozenset({"1", "true", "yes", "on"})
_FALSE_WORDS = frozenset({"0", "false", "no", "off"})


def _parse_float(raw: str) -> Optional[float]:
    try:
        return float(raw)
    except ValueError:
        return None


def _parse_bool(raw: str) -> Optional[bool]:
    word = raw.lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    return None


# (variable, section, key, parser)
ENVIRONMENT_OVERRIDES: Tuple[Tuple[str, str, str, Callable[[str], Any]], ...] = (
    ("NOTE_DRILL_FEEDBACK_DELAY_SECONDS", "pacing", "feedback_delay_seconds", _parse_float),
    ("NOTE_DRILL_LEVEL_UP_DELAY_SECONDS", "pacing", "level_up_delay_seconds", _parse_float),
    ("NOTE_DRILL_INSTRUMENT_MODE", "instrument", "mode", str),
    ("NOTE_DRILL_SHOW_NOTE_NAMES", "instrument", "show_note_names", _parse_bool),
    ("NOTE_DRILL_DATA_DIR", "storage", "data_dir", str),
    ("NOTE_DRILL_AUDIO_ENABLED", "audio", "enabled", _parse_bool),
    ("NOTE_DRILL_AUDIO_VOLUME", "audio", "volume", _parse_float),
)


def _apply_environment_overrides(document: Dict[str, Any]) -> Dict[str, Any]:
    """
    Layer NOTE_DRILL_* variables over the file contents.

    Empty variables are skipped. A value its parser rejects (for example
    NOTE_DRILL_AUDIO_VOLUME=loud) is ignored and the file or default value stays.
    """
    merged = dict(document)
    for variable, section_name, key, parse in ENVIRONMENT_OVERRIDES:
        raw = os.environ.get(variable, "").strip()
        if not raw:
            continue
        value = parse(raw)
        if value is None:
            continue
        section = merged.get(section_name)
        section = dict(section) if isinstance(section, dict) else {}
        section[key] = value
        merged[section_name] = section
    return merged


def load_config(config_path: Optional[Path] = None) -> Tuple[AppConfig, Optional[Path]]:
    source_path = config_path if config_path is not None else _resolve_config_path()
    document = _read_config_object(source_path) if source_path is not None else {}
    document = _apply_environment_overrides(document)

    try:
        app_config = AppConfig.model_validate(document)
    except ValidationError as exception:
        origin = str(source_path) if source_path is not None else "defaults and environment"
        raise ValueError(f"Config validation failed for {origin}:\n{exception}") from exception

    return app_config, source_path


@lru_cache(maxsize=1)
def get_config() -> Tuple[AppConfig, Optional[Path]]:
    return load_config()


def to_json(config: AppConfig) -> str:
    return json.dumps(config.model_dump(), ensure_ascii=False, indent=2)


def default_config_write_path() -> Path:
    return _default_config_candidates()[1]


def _launch_with_system_viewer(path: Path) -> None:
    if sys.platform.startswith("win"):
        os.startfile(str(path))
        return
    opener = "open" if sys.platform == "darwin" else "xdg-open"
    subprocess.run([opener, str(path)], check=False)


def open_config_json_in_editor(config_path: Optional[Path] = None) -> Path:
    """Open the active config file, writing a defaults file first when none exists yet."""
    if config_path is not None:
        target = Path(config_path)
    else:
        target = get_config()[1] or default_config_write_path()

    target = target.expanduser().resolve()
    if not target.exists():
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(to_json(AppConfig()), encoding="utf-8")

    _launch_with_system_viewer(target)
    return target


def main() -> int:
    try:
        app_config, source_path = load_config()
    except (OSError, ValueError) as exception:
        print(json.dumps({"ok": False, "error": str(exception)}, indent=2))
        return 2

    report = {
        "ok": True,
        "config_path": None if source_path is None else str(source_path),
        "config": app_config.model_dump(mode="json"),
    }
    print(json.dumps(report, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
