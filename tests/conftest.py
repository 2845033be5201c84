import random

import pytest

from curriculum import IntroductoryLevel, MasterLevel, ProgressionLevel
from note_catalog import TREBLE, Note, NoteCatalog


@pytest.fixture
def catalog():
    return NoteCatalog.standard()


@pytest.fixture
def note_f():
    return Note(name="F", clef=TREBLE, position=1, is_space=True, octave=4)


@pytest.fixture
def note_a():
    return Note(name="A", clef=TREBLE, position=2, is_space=True, octave=4)


@pytest.fixture
def note_c():
    return Note(name="C", clef=TREBLE, position=3, is_space=True, octave=5)


@pytest.fixture
def short_levels(note_f, note_a, note_c):
    """Three quick levels: streak 3 under 5 seconds each."""
    return [
        IntroductoryLevel(
            level_id=0,
            name="Two Spaces",
            description="",
            clef=TREBLE,
            notes=(note_f, note_a),
            required_streak=3,
            max_average_time=5.0,
        ),
        ProgressionLevel(
            level_id=1,
            name="Learning C 5",
            description="",
            clef=TREBLE,
            notes=(note_f, note_a, note_c),
            required_streak=3,
            max_average_time=5.0,
            new_note=note_c,
            learned_notes=(note_f, note_a),
        ),
        MasterLevel(
            level_id=2,
            name="Master Level",
            description="",
            clef=TREBLE,
            notes=(note_f, note_a, note_c),
            required_streak=3,
            max_average_time=1.0,
        ),
    ]


@pytest.fixture
def rng():
    return random.Random(1234)
