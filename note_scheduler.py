# -*- coding: utf-8 -*-
########################
# note_scheduler.py
########################
# Purpose:
# - Decide which note to ask next inside the active level.
# - Owns the level's weighted note pool and the mistaken-notes decay table.
#
# Design notes:
# - No Qt usage. Pure gameplay logic.
# - One scheduler per loaded level. It is discarded on level change and never shared.
# - This module is the sole owner of the pool and mistake table; other modules only query it.
# - Selection draws one of four candidate pools by probability mass, then a note uniformly inside it:
#   - recently learned (0.40, level index >= 5 only)
#   - mistaken (0.30)
#   - new note (0.20)
#   - general pool (remaining mass)
# - Never repeats the previous pitch when the level has more than one. Redraws are bounded; after that the
#   general pool minus the previous pitch is used, and a repeat is accepted only if nothing else is left.
# - An optional note filter (instrument reachability) narrows every pool. If it removes every note,
#   the level's unfiltered notes are used and a warning is logged.
#
########################
# Interfaces:
# Public dataclasses:
# - MistakeEntry(note: Note, consecutive_correct: int = 0)
#
# Public classes:
# - class NoteScheduler
#   - __init__(level: LevelDefinition, level_index: int, *, curriculum: Sequence[LevelDefinition] = (),
#              note_filter: Optional[Callable[[Note], bool]] = None,
#              note_history: Optional[Mapping[str, NoteStats]] = None,
#              rng: Optional[random.Random] = None)
#   - level() -> LevelDefinition
#   - level_index() -> int
#   - current_note() -> Note
#   - last_note() -> Optional[Note]
#   - advance() -> Note
#   - record_mistake(note: Note, was_correct: bool) -> None
#   - available_notes() -> list[Note]
#   - mistaken_notes() -> list[Note]
#   - mistake_entry(note: Note) -> Optional[MistakeEntry]
#   - recently_learned_notes() -> list[Note]
#   - note_pool() -> list[Note]
#   - candidate_pools() -> list[tuple[str, float, list[Note]]]
#
# Inputs:
# - LevelDefinition (from curriculum.build_levels) and its index.
# - Lifetime note history (GameState.note_history) for remedial weighting.
#
# Outputs:
# - The current note for SessionController and the renderer.
#
########################

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from curriculum import LevelDefinition, learned_notes_of, new_note_of
from game_state import NoteStats
from note_catalog import Note, distinct_pitch_count

logger = logging.getLogger(__name__)

RECENTLY_LEARNED_WEIGHT = 0.40
MISTAKEN_WEIGHT = 0.30
NEW_NOTE_WEIGHT = 0.20

RECENT_LEVEL_WINDOW = 5
RECENTLY_LEARNED_MIN_LEVEL_INDEX = 5

MISTAKE_CLEAR_STREAK = 3
MAX_REDRAW_ATTEMPTS = 10

LEARNED_NOTE_COPIES = 4
MAX_EXTRA_COPIES = 5

POOL_RECENTLY_LEARNED = "recently_learned"
POOL_MISTAKEN = "mistaken"
POOL_NEW_NOTE = "new_note"
POOL_GENERAL = "general"


@dataclass
class MistakeEntry:
    note: Note
    consecutive_correct: int = 0


def _unique_pitches(notes: Sequence[Note]) -> List[Note]:
    seen = set()
    unique: List[Note] = []
    for note in notes:
        if note.pitch_key in seen:
            continue
        seen.add(note.pitch_key)
        unique.append(note)
    return unique


def extra_copies_for(stats: Optional[NoteStats]) -> int:
    """Extra pool copies for a note the learner keeps missing (0 to MAX_EXTRA_COPIES)."""
    if stats is None:
        return 0
    rate = stats.error_rate
    if rate <= 0.0:
        return 0
    return min(MAX_EXTRA_COPIES, int(math.ceil(rate * MAX_EXTRA_COPIES)))


class NoteScheduler:
    def __init__(
        self,
        level: LevelDefinition,
        level_index: int,
        *,
        curriculum: Sequence[LevelDefinition] = (),
        note_filter: Optional[Callable[[Note], bool]] = None,
        note_history: Optional[Mapping[str, NoteStats]] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        if not level.notes:
            raise ValueError(f"Level {level.level_id} has no notes to schedule")

        self._level = level
        self._level_index = int(level_index)
        self._note_filter = note_filter
        self._rng = rng if rng is not None else random.Random()

        self._available = self._filtered_level_notes()
        self._available_keys = {note.pitch_key for note in self._available}
        self._has_alternatives = distinct_pitch_count(self._available) > 1

        self._pool = self._build_pool(note_history or {})
        self._recently_learned = self._restrict(self._recent_new_notes(curriculum))
        self._mistakes: Dict[str, MistakeEntry] = {}

        self._current_note: Optional[Note] = None
        self._last_note: Optional[Note] = None
        self.advance()

    # -----------------
    # Construction helpers
    # -----------------

    def _filtered_level_notes(self) -> List[Note]:
        notes = list(self._level.notes)
        if self._note_filter is None:
            return notes
        filtered = [note for note in notes if self._note_filter(note)]
        if not filtered:
            logger.warning(
                "Note filter removed every note of level %s (%s); using the unfiltered note set",
                self._level.level_id,
                self._level.name,
            )
            return notes
        return filtered

    def _restrict(self, notes: Sequence[Note]) -> List[Note]:
        return [note for note in _unique_pitches(notes) if note.pitch_key in self._available_keys]

    def _recent_new_notes(self, curriculum: Sequence[LevelDefinition]) -> List[Note]:
        if self._level_index < RECENTLY_LEARNED_MIN_LEVEL_INDEX:
            return []
        start = max(0, self._level_index - RECENT_LEVEL_WINDOW)
        recent: List[Note] = []
        for index in range(start, min(self._level_index, len(curriculum))):
            new_note = new_note_of(curriculum[index])
            if new_note is not None:
                recent.append(new_note)
        return recent

    def _available_new_note(self) -> Optional[Note]:
        new_note = new_note_of(self._level)
        if new_note is None or new_note.pitch_key not in self._available_keys:
            return None
        return new_note

    def _build_pool(self, note_history: Mapping[str, NoteStats]) -> List[Note]:
        pool: List[Note] = []
        new_note = self._available_new_note()
        learned = self._restrict(learned_notes_of(self._level)) if new_note is not None else []

        if new_note is not None and learned:
            # Each learned note gets LEARNED_NOTE_COPIES, the new note one copy per learned note: 20/80.
            for note in learned:
                pool.extend([note] * LEARNED_NOTE_COPIES)
            pool.extend([new_note] * len(learned))
        else:
            pool.extend(_unique_pitches(self._available))

        for note in _unique_pitches(self._available):
            pool.extend([note] * extra_copies_for(note_history.get(note.note_id)))

        return pool

    # -----------------
    # Queries
    # -----------------

    def level(self) -> LevelDefinition:
        return self._level

    def level_index(self) -> int:
        return self._level_index

    def current_note(self) -> Note:
        if self._current_note is None:
            return self.advance()
        return self._current_note

    def last_note(self) -> Optional[Note]:
        return self._last_note

    def available_notes(self) -> List[Note]:
        return list(self._available)

    def mistaken_notes(self) -> List[Note]:
        return self._restrict([entry.note for entry in self._mistakes.values()])

    def mistake_entry(self, note: Note) -> Optional[MistakeEntry]:
        return self._mistakes.get(note.note_id)

    def recently_learned_notes(self) -> List[Note]:
        return list(self._recently_learned)

    def note_pool(self) -> List[Note]:
        return list(self._pool)

    def candidate_pools(self) -> List[Tuple[str, float, List[Note]]]:
        """Pools in priority order with their probability mass. Empty pools carry no mass."""
        pools: List[Tuple[str, float, List[Note]]] = []
        remaining = 1.0

        if self._level_index >= RECENTLY_LEARNED_MIN_LEVEL_INDEX and self._recently_learned:
            pools.append((POOL_RECENTLY_LEARNED, RECENTLY_LEARNED_WEIGHT, list(self._recently_learned)))
            remaining -= RECENTLY_LEARNED_WEIGHT

        mistaken = self.mistaken_notes()
        if mistaken:
            pools.append((POOL_MISTAKEN, MISTAKEN_WEIGHT, mistaken))
            remaining -= MISTAKEN_WEIGHT

        new_note = self._available_new_note()
        if new_note is not None:
            pools.append((POOL_NEW_NOTE, NEW_NOTE_WEIGHT, [new_note]))
            remaining -= NEW_NOTE_WEIGHT

        pools.append((POOL_GENERAL, max(0.0, remaining), list(self._pool)))
        return pools

    # -----------------
    # Selection
    # -----------------

    def _draw(self) -> Note:
        pools = self.candidate_pools()
        roll = self._rng.random()

        chosen_name, chosen_notes = POOL_GENERAL, list(self._pool)
        cumulative = 0.0
        for pool_name, weight, notes in pools:
            cumulative += weight
            if roll < cumulative:
                chosen_name, chosen_notes = pool_name, notes
                break

        if not chosen_notes:
            chosen_name, chosen_notes = POOL_GENERAL, list(self._pool)

        note = self._rng.choice(chosen_notes)
        logger.debug("Drew %s from %s pool (roll=%.3f)", note.note_id, chosen_name, roll)
        return note

    def advance(self) -> Note:
        candidate = self._draw()

        if self._has_alternatives:
            redraws = 0
            while candidate.same_pitch(self._last_note) and redraws < MAX_REDRAW_ATTEMPTS:
                candidate = self._draw()
                redraws += 1
            if candidate.same_pitch(self._last_note):
                others = [note for note in self._pool if not note.same_pitch(self._last_note)]
                if others:
                    candidate = self._rng.choice(others)
                else:
                    logger.debug("Accepting repeat of %s after %d redraws", candidate.note_id, redraws)

        self._current_note = candidate
        self._last_note = candidate
        return candidate

    def record_mistake(self, note: Note, was_correct: bool) -> None:
        key = note.note_id
        if not was_correct:
            self._mistakes[key] = MistakeEntry(note=note, consecutive_correct=0)
            return

        entry = self._mistakes.get(key)
        if entry is None:
            return
        entry.consecutive_correct += 1
        if entry.consecutive_correct >= MISTAKE_CLEAR_STREAK:
            del self._mistakes[key]


def _run_unit_tests() -> None:
    from curriculum import ProgressionLevel
    from note_catalog import TREBLE

    note_f = Note(name="F", clef=TREBLE, position=1, is_space=True, octave=4)
    note_a = Note(name="A", clef=TREBLE, position=2, is_space=True, octave=4)
    level = ProgressionLevel(
        level_id=1,
        name="Learning A 4",
        description="",
        clef=TREBLE,
        notes=(note_f, note_a),
        required_streak=10,
        max_average_time=5.0,
        new_note=note_a,
        learned_notes=(note_f,),
    )
    scheduler = NoteScheduler(level, 1, rng=random.Random(7))

    pool = scheduler.note_pool()
    assert pool.count(note_a) * 5 == len(pool)

    previous = scheduler.current_note()
    for _ in range(50):
        current = scheduler.advance()
        assert not current.same_pitch(previous)
        previous = current

    scheduler.record_mistake(note_f, False)
    assert scheduler.mistaken_notes() == [note_f]
    scheduler.record_mistake(note_f, True)
    scheduler.record_mistake(note_f, False)
    assert scheduler.mistake_entry(note_f).consecutive_correct == 0  # type: ignore[union-attr]
    for _ in range(3):
        scheduler.record_mistake(note_f, True)
    assert scheduler.mistake_entry(note_f) is None

    fallback = NoteScheduler(level, 1, note_filter=lambda note: False, rng=random.Random(1))
    assert fallback.available_notes() == [note_f, note_a]


if __name__ == "__main__":
    _run_unit_tests()
    print("note_scheduler.py: ok")
