# -*- coding: utf-8 -*-
########################
# curriculum.py
########################
# Purpose:
# - Build the ordered list of practice levels from a NoteCatalog.
# - Each progression level adds exactly one new pitch to the growing known set.
# - Mastery thresholds (required streak, max average answer time) tighten with level number.
#
# Design notes:
# - No Qt usage. Pure, deterministic, side-effect free. Calling build_levels twice gives equal results.
# - Levels are a tagged variant: IntroductoryLevel, ProgressionLevel, MasterLevel.
#   Only ProgressionLevel carries new_note and learned_notes, so callers go through new_note_of().
# - List index is the level id and defines progression order.
#
########################
# Interfaces:
# Public dataclasses:
# - IntroductoryLevel(level_id, name, description, clef, notes, required_streak, max_average_time)
# - ProgressionLevel(... same ..., new_note: Note, learned_notes: tuple[Note, ...])
# - MasterLevel(... same as IntroductoryLevel ...)
#
# Public functions:
# - mastery_thresholds(level_number: int) -> tuple[int, float]
# - pedagogical_order(catalog: NoteCatalog) -> list[Note]
# - build_levels(catalog: NoteCatalog) -> list[LevelDefinition]
# - new_note_of(level: LevelDefinition) -> Optional[Note]
# - learned_notes_of(level: LevelDefinition) -> tuple[Note, ...]
#
# Inputs:
# - NoteCatalog (explicitly constructed by the caller).
#
# Outputs:
# - Level definitions consumed by NoteScheduler and SessionController.
#
########################

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, List, Optional, Sequence, Tuple, Union

from note_catalog import BASS, TREBLE, Note, NoteCatalog

FIRST_LEVEL_STREAK = 15
FIRST_LEVEL_MAX_AVERAGE_TIME = 6.0
LAST_SCALED_LEVEL_STREAK = 35
LAST_SCALED_LEVEL_MAX_AVERAGE_TIME = 1.0
LAST_SCALED_LEVEL_NUMBER = 50
MASTER_MAX_AVERAGE_TIME = 1.0


@dataclass(frozen=True)
class IntroductoryLevel:
    kind: ClassVar[str] = "introductory"

    level_id: int
    name: str
    description: str
    clef: str
    notes: Tuple[Note, ...]
    required_streak: int
    max_average_time: float


@dataclass(frozen=True)
class ProgressionLevel:
    kind: ClassVar[str] = "progression"

    level_id: int
    name: str
    description: str
    clef: str
    notes: Tuple[Note, ...]
    required_streak: int
    max_average_time: float
    new_note: Note
    learned_notes: Tuple[Note, ...]


@dataclass(frozen=True)
class MasterLevel:
    kind: ClassVar[str] = "master"

    level_id: int
    name: str
    description: str
    clef: str
    notes: Tuple[Note, ...]
    required_streak: int
    max_average_time: float


LevelDefinition = Union[IntroductoryLevel, ProgressionLevel, MasterLevel]


def new_note_of(level: LevelDefinition) -> Optional[Note]:
    if isinstance(level, ProgressionLevel):
        return level.new_note
    return None


def learned_notes_of(level: LevelDefinition) -> Tuple[Note, ...]:
    if isinstance(level, ProgressionLevel):
        return level.learned_notes
    return ()


def mastery_thresholds(level_number: int) -> Tuple[int, float]:
    """Linear interpolation from level 1 to level 50, clamped on both ends.

    level_number is 1-based (level index + 1).
    """
    span = float(LAST_SCALED_LEVEL_NUMBER - 1)
    progress = (float(level_number) - 1.0) / span
    progress = min(1.0, max(0.0, progress))

    streak = FIRST_LEVEL_STREAK + (LAST_SCALED_LEVEL_STREAK - FIRST_LEVEL_STREAK) * progress
    max_time = FIRST_LEVEL_MAX_AVERAGE_TIME - (FIRST_LEVEL_MAX_AVERAGE_TIME - LAST_SCALED_LEVEL_MAX_AVERAGE_TIME) * progress
    return int(round(streak)), round(max_time, 3)


def _sorted_by_pitch(notes: Sequence[Note], *, descending: bool = False) -> List[Note]:
    return sorted(notes, key=lambda note: note.midi_number, reverse=descending)


def _treble_spaces(catalog: NoteCatalog) -> List[Note]:
    return _sorted_by_pitch(
        [note for note in catalog.naturals(TREBLE) if note.is_space and not note.is_ledger]
    )


def pedagogical_order(catalog: NoteCatalog) -> List[Note]:
    """Notes introduced one per level, after the opening treble spaces level.

    Order: treble lines, treble ledger below, bass spaces then lines, treble ledger above,
    bass ledger, treble sharps, bass sharps.
    """
    treble_naturals = catalog.naturals(TREBLE)
    bass_naturals = catalog.naturals(BASS)

    treble_lines = _sorted_by_pitch([n for n in treble_naturals if not n.is_space and not n.is_ledger])
    treble_below = _sorted_by_pitch([n for n in treble_naturals if n.is_below_staff], descending=True)
    bass_spaces = _sorted_by_pitch([n for n in bass_naturals if n.is_space and not n.is_ledger])
    bass_lines = _sorted_by_pitch([n for n in bass_naturals if not n.is_space and not n.is_ledger])
    treble_above = _sorted_by_pitch([n for n in treble_naturals if n.is_above_staff])
    bass_ledger = _sorted_by_pitch([n for n in bass_naturals if n.is_ledger], descending=True)
    treble_sharps = _sorted_by_pitch(catalog.sharps(TREBLE))
    bass_sharps = _sorted_by_pitch(catalog.sharps(BASS))

    return (
        treble_lines
        + treble_below
        + bass_spaces
        + bass_lines
        + treble_above
        + bass_ledger
        + treble_sharps
        + bass_sharps
    )


def _level_name(new_note: Note, previous_clef: str) -> str:
    if new_note.clef != previous_clef:
        return f"Introduction to {new_note.clef.capitalize()} Clef: {new_note.label}"
    return f"Learning {new_note.label}"


def build_levels(catalog: NoteCatalog) -> List[LevelDefinition]:
    levels: List[LevelDefinition] = []

    base_notes = tuple(_treble_spaces(catalog))
    streak, max_time = mastery_thresholds(1)
    levels.append(
        IntroductoryLevel(
            level_id=0,
            name="Treble Clef Spaces",
            description="Learn the notes in the spaces of the treble clef (F, A, C, E)",
            clef=TREBLE,
            notes=base_notes,
            required_streak=streak,
            max_average_time=max_time,
        )
    )

    progression = pedagogical_order(catalog)
    if not progression:
        return levels

    known: Tuple[Note, ...] = base_notes
    previous_clef = TREBLE
    for new_note in progression:
        level_id = len(levels)
        streak, max_time = mastery_thresholds(level_id + 1)
        levels.append(
            ProgressionLevel(
                level_id=level_id,
                name=_level_name(new_note, previous_clef),
                description=f"Learn the note {new_note.label} on the {new_note.clef} clef",
                clef=new_note.clef,
                notes=known + (new_note,),
                required_streak=streak,
                max_average_time=max_time,
                new_note=new_note,
                learned_notes=known,
            )
        )
        known = known + (new_note,)
        previous_clef = new_note.clef

    level_id = len(levels)
    streak, _max_time = mastery_thresholds(level_id + 1)
    levels.append(
        MasterLevel(
            level_id=level_id,
            name="Master Level",
            description="Practice all notes on both the treble and bass clefs",
            clef=TREBLE,
            notes=known,
            required_streak=streak,
            max_average_time=MASTER_MAX_AVERAGE_TIME,
        )
    )
    return levels


def _run_unit_tests() -> None:
    catalog = NoteCatalog.standard()
    levels = build_levels(catalog)

    assert isinstance(levels[0], IntroductoryLevel)
    assert [n.note_id for n in levels[0].notes] == ["F4", "A4", "C5", "E5"]
    assert isinstance(levels[-1], MasterLevel)
    assert levels[-1].max_average_time == MASTER_MAX_AVERAGE_TIME
    assert len(levels[-1].notes) == len(catalog)

    first = levels[1]
    assert isinstance(first, ProgressionLevel)
    assert first.new_note.note_id == "E4"
    assert first.learned_notes == levels[0].notes

    for index, level in enumerate(levels):
        assert level.level_id == index

    assert mastery_thresholds(1) == (15, 6.0)
    assert mastery_thresholds(50) == (35, 1.0)
    assert mastery_thresholds(80) == (35, 1.0)

    assert build_levels(catalog) == levels
    assert len(build_levels(NoteCatalog.empty())) == 1


if __name__ == "__main__":
    _run_unit_tests()
    print("curriculum.py: ok")
