from fingerboard import (
    SEMITONES_PER_STRING,
    VIOLIN_STRINGS,
    fingerboard_positions,
    note_for_position,
    note_on_fingerboard,
    violin_filter,
)
from note_catalog import SHARP


def test_open_strings(catalog):
    open_notes = [note_for_position(catalog, string, 0).note_id for string in VIOLIN_STRINGS]
    assert open_notes == ["E5", "A4", "D4", "G3"]


def test_semitone_steps_cross_octaves(catalog):
    a_string = VIOLIN_STRINGS[1]
    assert note_for_position(catalog, a_string, 1).note_id == "Asharp4"
    assert note_for_position(catalog, a_string, 3).note_id == "C5"


def test_positions_cover_four_strings(catalog):
    positions = fingerboard_positions(catalog)
    assert all(0 <= position.semitone < SEMITONES_PER_STRING for position in positions)

    by_string = {
        string.name: [position.note.note_id for position in positions if position.string == string]
        for string in VIOLIN_STRINGS
    }
    assert by_string == {
        "E": ["E5", "F5", "Fsharp5", "G5", "Gsharp5", "A5", "Asharp5", "B5"],
        "A": ["A4", "Asharp4", "B4", "C5", "Csharp5", "D5", "Dsharp5", "E5"],
        "D": ["D4", "Dsharp4", "E4", "F4", "Fsharp4", "G4", "Gsharp4", "A4"],
        # The catalog has no B3, so the G string skips its fourth semitone.
        "G": ["G3", "Gsharp3", "A3", "Asharp3", "C4", "Csharp4", "D4"],
    }
    assert len(positions) == len(VIOLIN_STRINGS) * SEMITONES_PER_STRING - 1


def test_missing_catalog_note_leaves_a_gap(catalog):
    g_string = VIOLIN_STRINGS[3]
    assert catalog.get("B", None, 3) is None
    assert note_for_position(catalog, g_string, 4) is None
    assert note_for_position(catalog, g_string, 5).note_id == "C4"


def test_reachability(catalog):
    assert note_on_fingerboard(catalog, catalog.get("G", None, 3))
    assert note_on_fingerboard(catalog, catalog.get("B", None, 5))
    assert note_on_fingerboard(catalog, catalog.get("F", SHARP, 4))
    assert not note_on_fingerboard(catalog, catalog.get("C", None, 2))
    assert not note_on_fingerboard(catalog, catalog.get("C", None, 6))


def test_filter_predicate(catalog):
    reachable = violin_filter(catalog)
    assert reachable(catalog.get("D", None, 4))
    assert not reachable(catalog.get("F", None, 3))
