import pytest

staff_widget = pytest.importorskip("staff_widget")

from note_catalog import BASS, TREBLE, Note  # noqa: E402


def _note(name, octave, clef=TREBLE):
    return Note(name=name, clef=clef, position=0, is_space=False, octave=octave)


def test_steps_from_bottom_line():
    assert staff_widget.note_step(_note("E", 4)) == 0
    assert staff_widget.note_step(_note("F", 5)) == staff_widget.TOP_LINE_STEP
    assert staff_widget.note_step(_note("G", 2, BASS)) == 0
    assert staff_widget.note_step(_note("A", 3, BASS)) == staff_widget.TOP_LINE_STEP


def test_ledger_lines():
    assert staff_widget.ledger_steps(staff_widget.note_step(_note("C", 4))) == [-2]
    assert staff_widget.ledger_steps(staff_widget.note_step(_note("D", 4))) == []
    assert staff_widget.ledger_steps(staff_widget.note_step(_note("G", 5))) == []
    assert staff_widget.ledger_steps(staff_widget.note_step(_note("C", 6))) == [10, 12]
    assert staff_widget.ledger_steps(staff_widget.note_step(_note("C", 2, BASS))) == [-2, -4]
