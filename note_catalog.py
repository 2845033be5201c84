# -*- coding: utf-8 -*-
########################
# note_catalog.py
########################
# Purpose:
# - Static table of every playable pitch: name, clef, staff position, octave, optional accidental.
# - Pitch identity helpers (canonical note ids) used as map keys across the trainer.
#
# Design notes:
# - No Qt usage. Pure data.
# - NoteCatalog is constructed explicitly and is immutable after construction.
#   Callers pass it to the curriculum builder and scheduler instead of reaching for a global.
# - Pitch identity ignores clef, staff position and is_space. Those are display attributes.
#
########################
# Interfaces:
# Public dataclasses:
# - Note(name: str, clef: str, position: int, is_space: bool, octave: int, accidental: Optional[str] = None)
#   - note_id -> str
#   - pitch_key -> tuple[str, Optional[str], int]
#   - same_pitch(other: Note) -> bool
#   - label -> str
#   - is_ledger, is_below_staff, is_above_staff -> bool
#   - midi_number -> int
#   - frequency_hz -> float
#
# Public classes:
# - class NoteCatalog
#   - standard() -> NoteCatalog
#   - empty() -> NoteCatalog
#   - get(name, accidental, octave) -> Optional[Note]
#   - find(note_id: str) -> Optional[Note]
#   - all_notes() -> list[Note]
#   - by_clef(clef: str) -> list[Note]
#   - naturals(clef: str) -> list[Note]
#   - sharps(clef: str) -> list[Note]
#   - in_octave_range(start_octave: int, end_octave: int) -> list[Note]
#
# Public functions:
# - make_note_id(name: str, accidental: Optional[str], octave: int) -> str
# - distinct_pitch_count(notes: Iterable[Note]) -> int
#
# Inputs:
# - None (table is built from module constants).
#
# Outputs:
# - Note values consumed by curriculum.py, note_scheduler.py, fingerboard.py and the Qt widgets.
#
########################

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

TREBLE = "treble"
BASS = "bass"

SHARP = "sharp"
FLAT = "flat"
NATURAL = "natural"

NOTE_NAMES = ("C", "D", "E", "F", "G", "A", "B")

_ACCIDENTAL_SYMBOLS = {
    SHARP: "#",
    FLAT: "♭",
    NATURAL: "♮",
}

_SEMITONES_FROM_C = {"C": 0, "D": 2, "E": 4, "F": 5, "G": 7, "A": 9, "B": 11}

# Staff positions: lines and spaces share a number, is_space tells them apart.
# position <= 0 sits below the staff, position > 5 above it.
_STAFF_POSITIONS: Dict[str, Dict[str, Tuple[int, bool]]] = {
    TREBLE: {
        "C6": (8, False),
        "B5": (7, True),
        "A5": (7, False),
        "G5": (6, True),
        "F5": (5, False),
        "E5": (4, True),
        "D5": (4, False),
        "C5": (3, True),
        "B4": (3, False),
        "A4": (2, True),
        "G4": (2, False),
        "F4": (1, True),
        "E4": (1, False),
        "D4": (0, True),
        "C4": (0, False),
    },
    BASS: {
        "A3": (5, False),
        "G3": (4, True),
        "F3": (4, False),
        "E3": (3, True),
        "D3": (3, False),
        "C3": (2, True),
        "B2": (2, False),
        "A2": (1, True),
        "G2": (1, False),
        "F2": (0, True),
        "E2": (0, False),
        "D2": (-1, True),
        "C2": (-1, False),
    },
}


def make_note_id(name: str, accidental: Optional[str], octave: int) -> str:
    return f"{name}{accidental or ''}{int(octave)}"


@dataclass(frozen=True)
class Note:
    name: str
    clef: str
    position: int
    is_space: bool
    octave: int
    accidental: Optional[str] = None

    @property
    def note_id(self) -> str:
        return make_note_id(self.name, self.accidental, self.octave)

    @property
    def pitch_key(self) -> Tuple[str, Optional[str], int]:
        return (self.name, self.accidental, int(self.octave))

    def same_pitch(self, other: Optional["Note"]) -> bool:
        if other is None:
            return False
        return self.pitch_key == other.pitch_key

    @property
    def label(self) -> str:
        symbol = _ACCIDENTAL_SYMBOLS.get(self.accidental or "", "")
        return f"{self.name}{symbol} {self.octave}"

    @property
    def is_ledger(self) -> bool:
        return self.position <= 0 or self.position > 5

    @property
    def is_below_staff(self) -> bool:
        return self.position <= 0

    @property
    def is_above_staff(self) -> bool:
        return self.position > 5

    @property
    def midi_number(self) -> int:
        offset = _SEMITONES_FROM_C[self.name]
        if self.accidental == SHARP:
            offset += 1
        elif self.accidental == FLAT:
            offset -= 1
        return 12 * (int(self.octave) + 1) + offset

    @property
    def frequency_hz(self) -> float:
        return 440.0 * (2.0 ** ((self.midi_number - 69) / 12.0))


def distinct_pitch_count(notes: Iterable[Note]) -> int:
    return len({note.pitch_key for note in notes})


class NoteCatalog:
    """Immutable lookup of every playable note, keyed by note id.

    Build it once with NoteCatalog.standard() and hand the instance to whoever needs it.
    """

    def __init__(self, notes: Iterable[Note]) -> None:
        ordered: Dict[str, Note] = {}
        for note in notes:
            ordered.setdefault(note.note_id, note)
        self._notes: Tuple[Note, ...] = tuple(ordered.values())
        self._by_id: Dict[str, Note] = dict(ordered)

    @classmethod
    def standard(cls) -> "NoteCatalog":
        notes: List[Note] = []
        for octave in range(2, 7):
            for name in NOTE_NAMES:
                if octave == 6 and name != "C":
                    continue
                clef = BASS if octave < 4 else TREBLE
                position_info = _STAFF_POSITIONS[clef].get(f"{name}{octave}")
                if position_info is None:
                    continue
                position, is_space = position_info
                notes.append(Note(name=name, clef=clef, position=position, is_space=is_space, octave=octave))
                if name not in ("E", "B"):
                    notes.append(
                        Note(
                            name=name,
                            clef=clef,
                            position=position,
                            is_space=is_space,
                            octave=octave,
                            accidental=SHARP,
                        )
                    )
        return cls(notes)

    @classmethod
    def empty(cls) -> "NoteCatalog":
        return cls(())

    def __len__(self) -> int:
        return len(self._notes)

    def __contains__(self, note: object) -> bool:
        if not isinstance(note, Note):
            return False
        return note.note_id in self._by_id

    def get(self, name: str, accidental: Optional[str], octave: int) -> Optional[Note]:
        return self._by_id.get(make_note_id(name, accidental, octave))

    def find(self, note_id: str) -> Optional[Note]:
        return self._by_id.get(str(note_id))

    def all_notes(self) -> List[Note]:
        return list(self._notes)

    def by_clef(self, clef: str) -> List[Note]:
        return [note for note in self._notes if note.clef == clef]

    def naturals(self, clef: str) -> List[Note]:
        return [note for note in self._notes if note.clef == clef and note.accidental is None]

    def sharps(self, clef: str) -> List[Note]:
        return [note for note in self._notes if note.clef == clef and note.accidental == SHARP]

    def in_octave_range(self, start_octave: int, end_octave: int) -> List[Note]:
        return [note for note in self._notes if int(start_octave) <= note.octave <= int(end_octave)]


def _run_unit_tests() -> None:
    catalog = NoteCatalog.standard()

    c4 = catalog.get("C", None, 4)
    assert c4 is not None
    assert c4.clef == TREBLE and c4.position == 0 and not c4.is_space
    assert c4.is_ledger and c4.is_below_staff

    f_sharp = catalog.get("F", SHARP, 4)
    assert f_sharp is not None
    assert f_sharp.note_id == "Fsharp4"
    assert f_sharp.label == "F# 4"
    assert catalog.get("E", SHARP, 4) is None

    assert abs(catalog.get("A", None, 4).frequency_hz - 440.0) < 1e-9  # type: ignore[union-attr]

    moved = Note(name="C", clef=BASS, position=9, is_space=True, octave=4)
    assert moved.same_pitch(c4)
    assert distinct_pitch_count([c4, moved, f_sharp]) == 2

    assert len(NoteCatalog.empty()) == 0


if __name__ == "__main__":
    _run_unit_tests()
    print("note_catalog.py: ok")
