# -*- coding: utf-8 -*-
########################
# session_controller.py
########################
# Purpose:
# - Own the drill session state machine: NOT_STARTED -> RUNNING -> (LEVEL_UP) -> RUNNING ... -> COMPLETED.
# - Record each answer, update note history and the scheduler's mistake table, check mastery,
#   move between levels and persist GameState after every change.
#
# Design notes:
# - No Qt usage. Collaborators (renderer, answer selector, audio, feedback, store) are plain protocols so the
#   controller runs headless in tests and inside the Qt window alike.
# - Pacing delays go through a Deferrer callable (delay_seconds, callback). Qt passes QTimer.singleShot;
#   tests pass ImmediateDeferrer or ManualDeferrer. Deferred steps are never cancelled.
# - At most one deferred step is in flight. Answers submitted while one is pending are ignored.
# - close() retires a controller that is being replaced. Its deferred steps still fire but do nothing.
# - A level index equal to the level count means the course is completed.
# - The controller keeps a reference to the active NoteScheduler and never touches its pool or mistake table
#   directly; a new scheduler is built on every level load.
# - Invalid level indices, corrupt saves and failed saves are logged and degrade to a no-op or fresh state.
#
########################
# Interfaces:
# Public enums:
# - SessionPhase(NOT_STARTED, RUNNING, LEVEL_UP, COMPLETED)
#
# Public protocols:
# - Renderer: render_note(note: Note) -> None, clear() -> None
# - AnswerSelector: show_choices(notes: Sequence[Note]) -> None, set_input_enabled(enabled: bool) -> None
# - AudioFeedback: play_correct(note: Note) -> None, play_incorrect() -> None, play_level_up() -> None
# - GameStateStore: load() -> Optional[GameState], save(state: GameState) -> bool, clear() -> None
# - FeedbackSink: show_message(text: str, tone: str) -> None, show_progress(snapshot: ProgressSnapshot) -> None,
#                 show_level(level: LevelDefinition, index: int, count: int) -> None
#
# Public types:
# - Deferrer = Callable[[float, Callable[[], None]], None]
# - ImmediateDeferrer, ManualDeferrer
#
# Public classes:
# - class SessionController
#   - start() -> None
#   - submit_answer(selected: Note) -> Optional[bool]
#   - transition_step() -> None
#   - set_level(index: int) -> bool
#   - reset() -> None
#   - set_note_filter(predicate: Optional[Callable[[Note], bool]]) -> None
#   - set_show_all_notes(enabled: bool) -> None
#   - close() -> None
#   - phase -> SessionPhase
#   - is_closed -> bool
#   - current_level -> Optional[LevelDefinition]
#   - current_level_index -> int
#   - levels -> list[LevelDefinition]
#   - state -> GameState (copy)
#   - current_note() -> Optional[Note]
#   - answer_choices() -> list[Note]
#   - progress_snapshot() -> ProgressSnapshot
#
# Inputs:
# - Level list from curriculum.build_levels, a GameStateStore, PacingConfig from config.py.
#
# Outputs:
# - Calls into the collaborators; persisted GameState.
#
########################

from __future__ import annotations

import logging
import random
import time
from enum import Enum
from typing import Callable, List, Optional, Protocol, Sequence, Tuple

from config import PacingConfig
from curriculum import LevelDefinition
from game_state import Attempt, GameState
from note_catalog import Note
from note_scheduler import NoteScheduler
from progress_evaluator import ProgressSnapshot, is_level_complete, progress_snapshot

logger = logging.getLogger(__name__)

TONE_INFO = "info"
TONE_CORRECT = "correct"
TONE_INCORRECT = "incorrect"
TONE_LEVEL_UP = "level_up"
TONE_COMPLETE = "complete"

COMPLETION_MESSAGE = "Congratulations! You've completed all levels!"


class SessionPhase(str, Enum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    LEVEL_UP = "level_up"
    COMPLETED = "completed"


class Renderer(Protocol):
    def render_note(self, note: Note) -> None: ...

    def clear(self) -> None: ...


class AnswerSelector(Protocol):
    def show_choices(self, notes: Sequence[Note]) -> None: ...

    def set_input_enabled(self, enabled: bool) -> None: ...


class AudioFeedback(Protocol):
    def play_correct(self, note: Note) -> None: ...

    def play_incorrect(self) -> None: ...

    def play_level_up(self) -> None: ...


class GameStateStore(Protocol):
    def load(self) -> Optional[GameState]: ...

    def save(self, state: GameState) -> bool: ...

    def clear(self) -> None: ...


class FeedbackSink(Protocol):
    def show_message(self, text: str, tone: str) -> None: ...

    def show_progress(self, snapshot: ProgressSnapshot) -> None: ...

    def show_level(self, level: LevelDefinition, index: int, count: int) -> None: ...


Deferrer = Callable[[float, Callable[[], None]], None]


class ImmediateDeferrer:
    """Runs deferred steps synchronously, ignoring the delay."""

    def __call__(self, delay_seconds: float, callback: Callable[[], None]) -> None:
        callback()


class ManualDeferrer:
    """Queues deferred steps until run_next() or run_all() is called."""

    def __init__(self) -> None:
        self._queue: List[Tuple[float, Callable[[], None]]] = []

    def __call__(self, delay_seconds: float, callback: Callable[[], None]) -> None:
        self._queue.append((float(delay_seconds), callback))

    @property
    def pending_count(self) -> int:
        return len(self._queue)

    @property
    def pending_delays(self) -> List[float]:
        return [delay for delay, _callback in self._queue]

    def run_next(self) -> bool:
        if not self._queue:
            return False
        _delay, callback = self._queue.pop(0)
        callback()
        return True

    def run_all(self, *, limit: int = 100) -> int:
        ran = 0
        while ran < limit and self.run_next():
            ran += 1
        return ran


class SessionController:
    def __init__(
        self,
        levels: Sequence[LevelDefinition],
        *,
        store: Optional[GameStateStore] = None,
        renderer: Optional[Renderer] = None,
        selector: Optional[AnswerSelector] = None,
        audio: Optional[AudioFeedback] = None,
        feedback: Optional[FeedbackSink] = None,
        deferrer: Optional[Deferrer] = None,
        pacing: Optional[PacingConfig] = None,
        clock: Callable[[], float] = time.time,
        note_filter: Optional[Callable[[Note], bool]] = None,
        catalog_notes: Sequence[Note] = (),
        show_all_notes: bool = False,
        rng: Optional[random.Random] = None,
    ) -> None:
        if not levels:
            raise ValueError("SessionController needs at least one level")

        self._levels: List[LevelDefinition] = list(levels)
        self._store = store
        self._renderer = renderer
        self._selector = selector
        self._audio = audio
        self._feedback = feedback
        self._deferrer: Deferrer = deferrer if deferrer is not None else ImmediateDeferrer()
        self._pacing = pacing if pacing is not None else PacingConfig()
        self._clock = clock
        self._note_filter = note_filter
        self._catalog_notes: List[Note] = list(catalog_notes)
        self._show_all_notes = bool(show_all_notes)
        self._rng = rng if rng is not None else random.Random()

        self._phase = SessionPhase.NOT_STARTED
        self._scheduler: Optional[NoteScheduler] = None
        self._note_displayed_at: Optional[float] = None
        self._step_pending = False
        self._closed = False

        self._state = self._load_state()
        if self._state.current_level_index >= len(self._levels):
            self._phase = SessionPhase.COMPLETED

    # -----------------
    # State
    # -----------------

    def _load_state(self) -> GameState:
        if self._store is None:
            return GameState.fresh()

        loaded = self._store.load()
        if loaded is None:
            return GameState.fresh()

        # An index equal to the level count means every level was completed.
        if loaded.current_level_index > len(self._levels):
            logger.warning(
                "Saved level index %d is past the last level (%d levels); treating the course as completed",
                loaded.current_level_index,
                len(self._levels),
            )
            loaded.current_level_index = len(self._levels)
        if loaded.current_level_index == len(self._levels):
            loaded.is_game_running = False
            loaded.clear_attempts()
        return loaded

    def _persist(self) -> None:
        if self._store is None or self._closed:
            return
        if not self._store.save(self._state):
            logger.warning("Progress was not saved; continuing with in-memory state")

    # -----------------
    # Queries
    # -----------------

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def levels(self) -> List[LevelDefinition]:
        return list(self._levels)

    @property
    def current_level_index(self) -> int:
        return self._state.current_level_index

    @property
    def current_level(self) -> Optional[LevelDefinition]:
        index = self._state.current_level_index
        if 0 <= index < len(self._levels):
            return self._levels[index]
        return None

    @property
    def state(self) -> GameState:
        return self._state.model_copy(deep=True)

    @property
    def scheduler(self) -> Optional[NoteScheduler]:
        return self._scheduler

    def current_note(self) -> Optional[Note]:
        if self._scheduler is None:
            return None
        return self._scheduler.current_note()

    def answer_choices(self) -> List[Note]:
        if self._show_all_notes and self._catalog_notes:
            return list(self._catalog_notes)
        if self._scheduler is not None:
            return self._scheduler.available_notes()
        level = self.current_level
        return list(level.notes) if level is not None else []

    def progress_snapshot(self) -> ProgressSnapshot:
        level = self.current_level if self.current_level is not None else self._levels[-1]
        return progress_snapshot(self._state.recent_attempts, level.required_streak, level.max_average_time)

    # -----------------
    # Collaborator calls
    # -----------------

    def _message(self, text: str, tone: str) -> None:
        if self._feedback is not None:
            self._feedback.show_message(text, tone)

    def _publish_progress(self) -> None:
        if self._feedback is not None:
            self._feedback.show_progress(self.progress_snapshot())

    def _set_input_enabled(self, enabled: bool) -> None:
        if self._selector is not None:
            self._selector.set_input_enabled(enabled)

    def _display_current_note(self) -> None:
        if self._scheduler is None:
            return
        note = self._scheduler.current_note()
        self._note_displayed_at = self._clock()
        self._state.last_problem_start_time = self._note_displayed_at
        if self._renderer is not None:
            self._renderer.render_note(note)
        self._set_input_enabled(True)

    # -----------------
    # Level loading
    # -----------------

    def _load_level(self) -> bool:
        level = self.current_level
        if level is None:
            logger.warning("No level at index %d", self._state.current_level_index)
            self._scheduler = None
            return False

        if not level.notes:
            logger.warning("Level %d (%s) has no notes; nothing to drill", level.level_id, level.name)
            self._scheduler = None
            return False

        self._scheduler = NoteScheduler(
            level,
            self._state.current_level_index,
            curriculum=self._levels,
            note_filter=self._note_filter,
            note_history=self._state.note_history,
            rng=self._rng,
        )
        logger.info("Loaded level %d: %s", self._state.current_level_index + 1, level.name)

        if self._feedback is not None:
            self._feedback.show_level(level, self._state.current_level_index, len(self._levels))
        if self._selector is not None:
            self._selector.show_choices(self.answer_choices())
        self._publish_progress()
        return True

    # -----------------
    # Operations
    # -----------------

    def close(self) -> None:
        """Retire this controller. Deferred steps that fire later do nothing and nothing more is saved."""
        self._closed = True
        self._step_pending = False
        self._scheduler = None

    def start(self) -> None:
        if self._closed or self._phase == SessionPhase.RUNNING:
            return
        if self._phase == SessionPhase.COMPLETED:
            self._message(COMPLETION_MESSAGE, TONE_COMPLETE)
            return

        self._phase = SessionPhase.RUNNING
        self._step_pending = False
        self._state.is_game_running = True
        if self._load_level():
            self._message("", TONE_INFO)
            self._display_current_note()
        self._persist()

    def submit_answer(self, selected: Note) -> Optional[bool]:
        """Score one answer. Returns None when no note is waiting for an answer."""
        if self._closed or self._phase != SessionPhase.RUNNING or self._scheduler is None or self._step_pending:
            logger.debug("Ignoring answer %s in phase %s", selected.note_id, self._phase.value)
            return None

        level = self._scheduler.level()
        current = self._scheduler.current_note()
        is_correct = selected.same_pitch(current)

        now = self._clock()
        started = self._note_displayed_at if self._note_displayed_at is not None else now
        time_spent = max(0.0, float(now) - float(started))

        self._state.record_note_result(current.note_id, is_correct)
        self._state.append_attempt(
            Attempt(is_correct=is_correct, time_spent=time_spent, timestamp=float(now)),
            max_length=level.required_streak + 1,
        )
        self._scheduler.record_mistake(current, is_correct)
        self._persist()

        if is_correct:
            self._message(f"Correct! That's {current.label}", TONE_CORRECT)
            if self._audio is not None:
                self._audio.play_correct(current)
        else:
            self._message(f"Incorrect. That was {current.label}, not {selected.label}", TONE_INCORRECT)
            if self._audio is not None:
                self._audio.play_incorrect()
        self._publish_progress()

        self._step_pending = True
        self._set_input_enabled(False)
        self._deferrer(self._pacing.feedback_delay_seconds, self.transition_step)
        return is_correct

    def transition_step(self) -> None:
        if self._closed:
            return
        self._step_pending = False
        if self._phase != SessionPhase.RUNNING or self._scheduler is None:
            return

        level = self._scheduler.level()
        if is_level_complete(self._state.recent_attempts, level.required_streak, level.max_average_time):
            self._level_up()
            return

        self._scheduler.advance()
        self._display_current_note()
        self._persist()

    def _level_up(self) -> None:
        next_index = self._state.current_level_index + 1
        self._state.current_level_index = next_index
        self._state.clear_attempts()
        self._scheduler = None
        self._set_input_enabled(False)
        if self._audio is not None:
            self._audio.play_level_up()

        if next_index < len(self._levels):
            self._phase = SessionPhase.LEVEL_UP
            self._persist()
            logger.info("Level up: moving to level %d", next_index + 1)
            self._message(f"Level Up! Moving to level {next_index + 1}", TONE_LEVEL_UP)
            self._publish_progress()
            self._deferrer(self._pacing.level_up_delay_seconds, self._finish_level_up)
            return

        self._phase = SessionPhase.COMPLETED
        self._state.is_game_running = False
        self._persist()
        logger.info("All %d levels completed", len(self._levels))
        self._message(COMPLETION_MESSAGE, TONE_COMPLETE)
        self._publish_progress()
        self._deferrer(self._pacing.completion_delay_seconds, self._finish_completion)

    def _finish_level_up(self) -> None:
        if self._closed or self._phase != SessionPhase.LEVEL_UP:
            return
        self._phase = SessionPhase.RUNNING
        if self._load_level():
            self._message("", TONE_INFO)
            self._display_current_note()
        self._persist()

    def _finish_completion(self) -> None:
        if self._closed or self._phase != SessionPhase.COMPLETED:
            return
        if self._renderer is not None:
            self._renderer.clear()

    def set_level(self, index: int) -> bool:
        if self._closed:
            return False
        target = int(index)
        if target < 0 or target >= len(self._levels):
            logger.warning("Ignoring level index %d (valid range 0..%d)", target, len(self._levels) - 1)
            return False

        self._state.current_level_index = target
        self._state.clear_attempts()
        self._step_pending = False

        if self._phase in (SessionPhase.RUNNING, SessionPhase.LEVEL_UP):
            self._phase = SessionPhase.RUNNING
            if self._load_level():
                self._display_current_note()
        else:
            if self._phase == SessionPhase.COMPLETED:
                self._phase = SessionPhase.NOT_STARTED
            self._scheduler = None
            level = self.current_level
            if self._feedback is not None and level is not None:
                self._feedback.show_level(level, target, len(self._levels))
            self._publish_progress()
        self._persist()
        return True

    def reset(self) -> None:
        if self._closed:
            return
        self._state = GameState.fresh()
        self._phase = SessionPhase.NOT_STARTED
        self._scheduler = None
        self._note_displayed_at = None
        self._step_pending = False
        if self._store is not None:
            self._store.clear()
        if self._renderer is not None:
            self._renderer.clear()
        self._set_input_enabled(False)
        self._message("", TONE_INFO)
        level = self.current_level
        if self._feedback is not None and level is not None:
            self._feedback.show_level(level, 0, len(self._levels))
        self._publish_progress()

    def set_note_filter(self, predicate: Optional[Callable[[Note], bool]]) -> None:
        self._note_filter = predicate
        if self._phase == SessionPhase.RUNNING and self._scheduler is not None and not self._step_pending:
            if self._load_level():
                self._display_current_note()
                self._persist()

    def set_show_all_notes(self, enabled: bool) -> None:
        self._show_all_notes = bool(enabled)
        if self._selector is not None:
            self._selector.show_choices(self.answer_choices())
