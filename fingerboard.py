# -*- coding: utf-8 -*-
########################
# fingerboard.py
########################
# Purpose:
# - Violin fingerboard geometry: which catalog notes can be played on the four strings in first position.
# - Provides the reachability predicate NoteScheduler uses as its note filter in violin mode.
#
# Design notes:
# - No Qt usage. Pure lookup.
# - Strings top to bottom: E5, A4, D4, G3. Each string offers the open note plus 7 semitones.
# - Semitone steps produce sharps only. Notes missing from the catalog are skipped.
#
########################
# Interfaces:
# Public dataclasses:
# - FingerboardString(name: str, octave: int)
# - FingerPosition(string: FingerboardString, semitone: int, note: Note)
#
# Public functions:
# - note_for_position(catalog: NoteCatalog, string: FingerboardString, semitone: int) -> Optional[Note]
# - fingerboard_positions(catalog: NoteCatalog) -> list[FingerPosition]
# - note_on_fingerboard(catalog: NoteCatalog, note: Note) -> bool
# - violin_filter(catalog: NoteCatalog) -> Callable[[Note], bool]
#
# Inputs:
# - NoteCatalog.
#
# Outputs:
# - Grid of playable positions for FingerboardWidget, and the scheduler filter predicate.
#
########################

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional

from note_catalog import SHARP, Note, NoteCatalog

CHROMATIC = ("C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B")
SEMITONES_PER_STRING = 8
FINGER_MARKERS = (2, 4, 5, 7)


@dataclass(frozen=True)
class FingerboardString:
    name: str
    octave: int


@dataclass(frozen=True)
class FingerPosition:
    string: FingerboardString
    semitone: int
    note: Note


VIOLIN_STRINGS = (
    FingerboardString(name="E", octave=5),
    FingerboardString(name="A", octave=4),
    FingerboardString(name="D", octave=4),
    FingerboardString(name="G", octave=3),
)


def note_for_position(catalog: NoteCatalog, string: FingerboardString, semitone: int) -> Optional[Note]:
    target_index = CHROMATIC.index(string.name) + int(semitone)
    target_octave = int(string.octave) + target_index // 12
    target_name = CHROMATIC[target_index % 12]

    accidental = None
    if target_name.endswith("#"):
        target_name = target_name[0]
        accidental = SHARP

    return catalog.get(target_name, accidental, target_octave)


def fingerboard_positions(catalog: NoteCatalog) -> List[FingerPosition]:
    positions: List[FingerPosition] = []
    for string in VIOLIN_STRINGS:
        for semitone in range(SEMITONES_PER_STRING):
            note = note_for_position(catalog, string, semitone)
            if note is not None:
                positions.append(FingerPosition(string=string, semitone=semitone, note=note))
    return positions


def note_on_fingerboard(catalog: NoteCatalog, note: Note) -> bool:
    return any(position.note.same_pitch(note) for position in fingerboard_positions(catalog))


def violin_filter(catalog: NoteCatalog) -> Callable[[Note], bool]:
    reachable = {position.note.pitch_key for position in fingerboard_positions(catalog)}

    def is_reachable(note: Note) -> bool:
        return note.pitch_key in reachable

    return is_reachable


def _run_unit_tests() -> None:
    catalog = NoteCatalog.standard()

    g3 = catalog.get("G", None, 3)
    c2 = catalog.get("C", None, 2)
    b5 = catalog.get("B", None, 5)
    assert g3 is not None and c2 is not None and b5 is not None

    assert note_on_fingerboard(catalog, g3)
    assert not note_on_fingerboard(catalog, c2)
    # E string reaches up to B5 (7 semitones).
    assert note_on_fingerboard(catalog, b5)

    open_e = note_for_position(catalog, VIOLIN_STRINGS[0], 0)
    assert open_e is not None and open_e.note_id == "E5"

    predicate = violin_filter(catalog)
    assert predicate(g3) and not predicate(c2)


if __name__ == "__main__":
    _run_unit_tests()
    print("fingerboard.py: ok")
