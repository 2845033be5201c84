# -*- coding: utf-8 -*-
########################
# state_store.py
########################
# Purpose:
# - Persist GameState between sessions as UTF-8 JSON.
# - Persist learner profiles (per-profile GameState, display preferences, instrument mode, level records).
#
# Design notes:
# - No Qt usage. Pure file I/O and pydantic validation.
# - Reads and writes raise StateStoreReadError / StateStoreWriteError internally. The public store methods
#   translate them: a corrupt or unreadable file reads as "no state" (and is removed), a failed save is
#   logged and reported as False. Callers never see these exceptions.
# - Writes go to a temp file in the same directory, then os.replace, so a crash never leaves half a file.
# - Wire shape uses camelCase keys so files written by older builds keep loading.
#
########################
# Interfaces:
# Public exceptions:
# - StateStoreError(Exception)
# - StateStoreReadError(StateStoreError)
# - StateStoreWriteError(StateStoreError)
#
# Public models:
# - DisplayPreferences(show_note_names: bool, show_all_notes: bool)
# - LevelRecord(highest_streak: int)
# - Profile(id, name, game_state, created_at, last_used, display_preferences, level_records, instrument_mode)
#
# Public classes:
# - class JsonStateStore
#   - __init__(path: pathlib.Path)
#   - load() -> Optional[GameState]
#   - save(state: GameState) -> bool
#   - clear() -> None
# - class ProfileStore
#   - __init__(path: pathlib.Path, *, clock: Callable[[], float] = time.time)
#   - create_profile(name: str) -> Profile
#   - remove_profile(profile_id: str) -> bool
#   - rename_profile(profile_id: str, name: str) -> bool
#   - set_active_profile(profile_id: str) -> bool
#   - active_profile() -> Optional[Profile]
#   - get_profile(profile_id: str) -> Optional[Profile]
#   - find_profile_by_name(name: str) -> Optional[Profile]
#   - all_profiles() -> list[Profile]
#   - update_display_preferences(*, show_note_names: Optional[bool] = None, show_all_notes: Optional[bool] = None) -> bool
#   - update_instrument_mode(mode: str) -> bool
#   - update_level_record(level_index: int, streak: int, *, profile_id: Optional[str] = None) -> bool
#   - save_game_state(state: Optional[GameState], *, profile_id: Optional[str] = None) -> bool
#   - clear_all_profiles() -> None
# - class ProfileGameStateStore (GameStateStore bound to one profile id at construction)
#   - __init__(profile_store: ProfileStore, profile_id: Optional[str] = None)
#   - load() -> Optional[GameState]
#   - save(state: GameState) -> bool
#   - clear() -> None
#
# Inputs:
# - File paths from paths.py.
#
# Outputs:
# - GameState for SessionController; Profile records for DrillWindow.
#
########################

from __future__ import annotations

import json
import logging
import os
import tempfile
import time
import uuid
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from config import INSTRUMENT_MODES
from game_state import GameState
from progress_evaluator import current_streak

logger = logging.getLogger(__name__)


class StateStoreError(Exception):
    """Base error for saved-state reading and writing."""


class StateStoreReadError(StateStoreError):
    """Raised when a saved file exists but cannot be read, parsed or validated."""


class StateStoreWriteError(StateStoreError):
    """Raised when a saved file cannot be written."""


def _read_json_object(path: Path) -> Optional[Dict[str, Any]]:
    if not path.exists():
        return None
    try:
        raw_text = path.read_text(encoding="utf-8")
    except OSError as exception:
        raise StateStoreReadError(f"Failed to read {path}: {exception}") from exception

    try:
        parsed = json.loads(raw_text)
    except json.JSONDecodeError as exception:
        raise StateStoreReadError(f"Saved file is not valid JSON: {path}: {exception}") from exception

    if not isinstance(parsed, dict):
        raise StateStoreReadError(f"Saved file root must be a JSON object: {path}")
    return parsed


def _write_json_atomic(path: Path, payload: Dict[str, Any]) -> None:
    text = json.dumps(payload, ensure_ascii=False, indent=2)
    temp_name: Optional[str] = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        file_descriptor, temp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
        with os.fdopen(file_descriptor, "w", encoding="utf-8", newline="\n") as handle:
            handle.write(text)
        os.replace(temp_name, path)
        temp_name = None
    except OSError as exception:
        raise StateStoreWriteError(f"Failed to write {path}: {exception}") from exception
    finally:
        if temp_name is not None:
            try:
                os.unlink(temp_name)
            except OSError:
                pass


def _remove_file(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        return
    except OSError as exception:
        logger.warning("Could not remove %s: %s", path, exception)


# -----------------
# Single-state store
# -----------------


class JsonStateStore:
    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> Optional[GameState]:
        payload = _read_json_object(self._path)
        if payload is None:
            return None
        try:
            return GameState.from_json_dict(payload)
        except ValidationError as exception:
            raise StateStoreReadError(f"Saved state failed validation: {self._path}: {exception}") from exception

    def load(self) -> Optional[GameState]:
        try:
            return self._read()
        except StateStoreReadError as exception:
            logger.warning("Discarding unreadable saved state: %s", exception)
            _remove_file(self._path)
            return None

    def save(self, state: GameState) -> bool:
        try:
            _write_json_atomic(self._path, state.to_json_dict())
        except StateStoreWriteError as exception:
            logger.warning("Saving state failed: %s", exception)
            return False
        return True

    def clear(self) -> None:
        _remove_file(self._path)


# -----------------
# Profiles
# -----------------


class DisplayPreferences(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    show_note_names: bool = Field(default=True, alias="showNoteNames")
    show_all_notes: bool = Field(default=False, alias="showAllNotes")


class LevelRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    highest_streak: int = Field(default=0, alias="highestStreak", ge=0)


class Profile(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    name: str
    game_state: Optional[GameState] = Field(default=None, alias="gameState")
    created_at: int = Field(default=0, alias="createdAt")
    last_used: int = Field(default=0, alias="lastUsed")
    display_preferences: DisplayPreferences = Field(default_factory=DisplayPreferences, alias="displayPreferences")
    level_records: Dict[str, LevelRecord] = Field(default_factory=dict, alias="levelRecords")
    instrument_mode: str = Field(default="piano", alias="instrumentMode")

    @field_validator("level_records", mode="before")
    @classmethod
    def normalize_level_keys(cls, value: Any) -> Any:
        if value is None:
            return {}
        if isinstance(value, dict):
            return {str(key): record for key, record in value.items()}
        return value

    @field_validator("instrument_mode")
    @classmethod
    def validate_instrument_mode(cls, value: str) -> str:
        normalized = (value or "").strip().lower()
        return normalized if normalized in INSTRUMENT_MODES else "piano"

    def highest_streak(self, level_index: int) -> int:
        record = self.level_records.get(str(int(level_index)))
        return record.highest_streak if record is not None else 0


class ProfilesFile(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    active_profile_id: Optional[str] = Field(default=None, alias="activeProfileId")
    profiles: List[Profile] = Field(default_factory=list)

    @field_validator("profiles", mode="before")
    @classmethod
    def profiles_none_to_list(cls, value: Any) -> Any:
        return [] if value is None else value


def _clean_name(name: str) -> str:
    cleaned = " ".join((name or "").split())
    if not cleaned:
        raise ValueError("Profile name must not be empty")
    return cleaned


class ProfileStore:
    """
    Profiles file: {"activeProfileId": str|null, "profiles": [Profile, ...]}.

    Every mutation is written through immediately. Accessors return deep copies so callers cannot
    change stored profiles behind the store's back.
    """

    def __init__(self, path: Path, *, clock: Callable[[], float] = time.time) -> None:
        self._path = Path(path)
        self._clock = clock
        self._data = self._load()

    @property
    def path(self) -> Path:
        return self._path

    def _now_ms(self) -> int:
        return int(round(float(self._clock()) * 1000.0))

    def _load(self) -> ProfilesFile:
        try:
            payload = _read_json_object(self._path)
            if payload is None:
                return ProfilesFile()
            try:
                data = ProfilesFile.model_validate(payload)
            except ValidationError as exception:
                raise StateStoreReadError(f"Profiles failed validation: {self._path}: {exception}") from exception
        except StateStoreReadError as exception:
            logger.warning("Discarding unreadable profiles file: %s", exception)
            _remove_file(self._path)
            return ProfilesFile()

        known_ids = {profile.id for profile in data.profiles}
        if data.active_profile_id not in known_ids:
            data.active_profile_id = data.profiles[0].id if data.profiles else None
        return data

    def _persist(self) -> bool:
        try:
            _write_json_atomic(self._path, self._data.model_dump(mode="json", by_alias=True))
        except StateStoreWriteError as exception:
            logger.warning("Saving profiles failed: %s", exception)
            return False
        return True

    def _find(self, profile_id: str) -> Optional[Profile]:
        for profile in self._data.profiles:
            if profile.id == profile_id:
                return profile
        return None

    def _active(self) -> Optional[Profile]:
        if self._data.active_profile_id is None:
            return None
        return self._find(self._data.active_profile_id)

    def _target(self, profile_id: Optional[str]) -> Optional[Profile]:
        return self._active() if profile_id is None else self._find(profile_id)

    # -----------------
    # Queries
    # -----------------

    def all_profiles(self) -> List[Profile]:
        return [profile.model_copy(deep=True) for profile in self._data.profiles]

    def active_profile(self) -> Optional[Profile]:
        active = self._active()
        return active.model_copy(deep=True) if active is not None else None

    def get_profile(self, profile_id: str) -> Optional[Profile]:
        profile = self._find(profile_id)
        return profile.model_copy(deep=True) if profile is not None else None

    def find_profile_by_name(self, name: str) -> Optional[Profile]:
        wanted = " ".join((name or "").split()).casefold()
        for profile in self._data.profiles:
            if profile.name.casefold() == wanted:
                return profile.model_copy(deep=True)
        return None

    # -----------------
    # Mutations
    # -----------------

    def create_profile(self, name: str) -> Profile:
        now_ms = self._now_ms()
        profile = Profile(
            id=uuid.uuid4().hex,
            name=_clean_name(name),
            created_at=now_ms,
            last_used=now_ms,
        )
        self._data.profiles.append(profile)
        if self._data.active_profile_id is None:
            self._data.active_profile_id = profile.id
        self._persist()
        logger.info("Created profile %r", profile.name)
        return profile.model_copy(deep=True)

    def remove_profile(self, profile_id: str) -> bool:
        profile = self._find(profile_id)
        if profile is None:
            return False
        self._data.profiles.remove(profile)
        if self._data.active_profile_id == profile_id:
            self._data.active_profile_id = self._data.profiles[0].id if self._data.profiles else None
        self._persist()
        return True

    def rename_profile(self, profile_id: str, name: str) -> bool:
        profile = self._find(profile_id)
        if profile is None:
            return False
        profile.name = _clean_name(name)
        self._persist()
        return True

    def set_active_profile(self, profile_id: str) -> bool:
        profile = self._find(profile_id)
        if profile is None:
            return False
        profile.last_used = self._now_ms()
        self._data.active_profile_id = profile.id
        self._persist()
        return True

    def update_display_preferences(
        self,
        *,
        show_note_names: Optional[bool] = None,
        show_all_notes: Optional[bool] = None,
    ) -> bool:
        profile = self._active()
        if profile is None:
            return False
        if show_note_names is not None:
            profile.display_preferences.show_note_names = bool(show_note_names)
        if show_all_notes is not None:
            profile.display_preferences.show_all_notes = bool(show_all_notes)
        return self._persist()

    def update_instrument_mode(self, mode: str) -> bool:
        profile = self._active()
        normalized = (mode or "").strip().lower()
        if profile is None or normalized not in INSTRUMENT_MODES:
            return False
        profile.instrument_mode = normalized
        return self._persist()

    def update_level_record(self, level_index: int, streak: int, *, profile_id: Optional[str] = None) -> bool:
        """Raise a profile's best streak for a level (the active profile by default). Lower streaks leave the record alone."""
        profile = self._target(profile_id)
        if profile is None:
            return False
        key = str(int(level_index))
        record = profile.level_records.get(key)
        if record is None:
            record = LevelRecord()
            profile.level_records[key] = record
        if int(streak) <= record.highest_streak:
            return False
        record.highest_streak = int(streak)
        return self._persist()

    def save_game_state(self, state: Optional[GameState], *, profile_id: Optional[str] = None) -> bool:
        profile = self._target(profile_id)
        if profile is None:
            return False
        profile.game_state = state.model_copy(deep=True) if state is not None else None
        profile.last_used = self._now_ms()
        return self._persist()

    def clear_all_profiles(self) -> None:
        self._data = ProfilesFile()
        _remove_file(self._path)


class ProfileGameStateStore:
    """GameStateStore bound to one profile, the active one unless an id is given.

    The binding is fixed at construction so a session keeps writing to its own
    profile after another profile becomes active.
    """

    def __init__(self, profile_store: ProfileStore, profile_id: Optional[str] = None) -> None:
        self._profiles = profile_store
        if profile_id is None:
            active = profile_store.active_profile()
            profile_id = active.id if active is not None else None
        self._profile_id = profile_id

    @property
    def profile_id(self) -> Optional[str]:
        return self._profile_id

    def load(self) -> Optional[GameState]:
        if self._profile_id is None:
            return None
        profile = self._profiles.get_profile(self._profile_id)
        if profile is None:
            return None
        return profile.game_state

    def save(self, state: GameState) -> bool:
        if self._profile_id is None:
            return False
        saved = self._profiles.save_game_state(state, profile_id=self._profile_id)
        self._profiles.update_level_record(
            state.current_level_index,
            current_streak(state.recent_attempts),
            profile_id=self._profile_id,
        )
        return saved

    def clear(self) -> None:
        if self._profile_id is not None:
            self._profiles.save_game_state(None, profile_id=self._profile_id)


def _run_unit_tests() -> None:
    from game_state import Attempt

    directory = Path(tempfile.mkdtemp(prefix="note_drill_store_"))

    store = JsonStateStore(directory / "state.json")
    assert store.load() is None

    state = GameState.fresh()
    state.current_level_index = 3
    state.record_note_result("Fsharp4", False)
    state.append_attempt(Attempt(is_correct=True, time_spent=1.25, timestamp=10.0), max_length=5)
    assert store.save(state)
    assert store.load() == state

    (directory / "state.json").write_text("{not json", encoding="utf-8")
    assert store.load() is None
    assert not (directory / "state.json").exists()

    profiles = ProfileStore(directory / "profiles.json", clock=lambda: 1.0)
    first = profiles.create_profile("  Ada  ")
    assert first.name == "Ada"
    assert profiles.active_profile() is not None

    adapter = ProfileGameStateStore(profiles)
    assert adapter.save(state)
    assert adapter.load() == state
    assert profiles.active_profile().highest_streak(3) == 1  # type: ignore[union-attr]

    reopened = ProfileStore(directory / "profiles.json")
    assert reopened.active_profile().game_state == state  # type: ignore[union-attr]


if __name__ == "__main__":
    _run_unit_tests()
    print("state_store.py: ok")
