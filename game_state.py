# -*- coding: utf-8 -*-
########################
# game_state.py
########################
# Purpose:
# - Session-scoped data models: Attempt, NoteStats and GameState.
# - Defines the persisted GameState wire shape (camelCase JSON keys).
#
# Design notes:
# - Keep these models stable. Prefer extending with new optional fields rather than breaking changes.
# - Missing fields default to empty/zero so older saved files still load.
# - No Qt usage. pydantic models, validated on load.
#
########################
# Interfaces:
# Public models:
# - Attempt(is_correct: bool, time_spent: float, timestamp: float)
# - NoteStats(correct: int, incorrect: int)
#   - total -> int
#   - error_rate -> float
# - GameState(current_level_index, is_game_running, note_history, recent_attempts, last_problem_start_time)
#   - fresh() -> GameState
#   - to_json_dict() -> dict
#   - from_json_dict(payload: dict) -> GameState
#   - record_note_result(note_id: str, is_correct: bool) -> None
#   - append_attempt(attempt: Attempt, *, max_length: int) -> None
#   - clear_attempts() -> None
#
# Inputs/Outputs:
# - Exchanged between SessionController, NoteScheduler (history weighting) and state_store.py.
#
########################

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Attempt(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    is_correct: bool = Field(alias="isCorrect")
    time_spent: float = Field(alias="timeSpent", ge=0.0)
    timestamp: float = Field(default=0.0)


class NoteStats(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    correct: int = Field(default=0, ge=0)
    incorrect: int = Field(default=0, ge=0)

    @property
    def total(self) -> int:
        return int(self.correct) + int(self.incorrect)

    @property
    def error_rate(self) -> float:
        if self.total <= 0:
            return 0.0
        return float(self.incorrect) / float(self.total)


class GameState(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    current_level_index: int = Field(default=0, alias="currentLevelIndex", ge=0)
    is_game_running: bool = Field(default=False, alias="isGameRunning")
    note_history: Dict[str, NoteStats] = Field(default_factory=dict, alias="noteHistory")
    recent_attempts: List[Attempt] = Field(default_factory=list, alias="recentAttempts")
    last_problem_start_time: Optional[float] = Field(default=None, alias="lastProblemStartTime")

    # Older saves wrote null for an empty history or window.
    @field_validator("note_history", mode="before")
    @classmethod
    def history_none_to_dict(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("recent_attempts", mode="before")
    @classmethod
    def attempts_none_to_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @classmethod
    def fresh(cls) -> "GameState":
        return cls()

    def to_json_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_json_dict(cls, payload: Dict[str, Any]) -> "GameState":
        return cls.model_validate(payload)

    def record_note_result(self, note_id: str, is_correct: bool) -> None:
        stats = self.note_history.get(note_id)
        if stats is None:
            stats = NoteStats()
            self.note_history[note_id] = stats
        if is_correct:
            stats.correct += 1
        else:
            stats.incorrect += 1

    def append_attempt(self, attempt: Attempt, *, max_length: int) -> None:
        self.recent_attempts.append(attempt)
        limit = max(0, int(max_length))
        overflow = len(self.recent_attempts) - limit
        if overflow > 0:
            del self.recent_attempts[:overflow]

    def clear_attempts(self) -> None:
        self.recent_attempts.clear()


def _run_unit_tests() -> None:
    state = GameState.fresh()
    state.record_note_result("F4", True)
    state.record_note_result("F4", False)
    assert state.note_history["F4"].total == 2
    assert abs(state.note_history["F4"].error_rate - 0.5) < 1e-9

    for index in range(5):
        state.append_attempt(Attempt(is_correct=True, time_spent=1.0, timestamp=float(index)), max_length=3)
    assert [a.timestamp for a in state.recent_attempts] == [2.0, 3.0, 4.0]

    payload = state.to_json_dict()
    assert "currentLevelIndex" in payload and "recentAttempts" in payload
    assert GameState.from_json_dict(payload) == state

    legacy = GameState.from_json_dict({"currentLevelIndex": 2, "isGameRunning": False, "noteHistory": {}})
    assert legacy.recent_attempts == []
    assert GameState.from_json_dict({"recentAttempts": None}).recent_attempts == []


if __name__ == "__main__":
    _run_unit_tests()
    print("game_state.py: ok")
