import logging
import random

import pytest

from curriculum import IntroductoryLevel, build_levels
from game_state import NoteStats
from note_catalog import TREBLE
from note_scheduler import (
    MISTAKEN_WEIGHT,
    NEW_NOTE_WEIGHT,
    POOL_GENERAL,
    POOL_MISTAKEN,
    POOL_NEW_NOTE,
    POOL_RECENTLY_LEARNED,
    RECENTLY_LEARNED_WEIGHT,
    NoteScheduler,
    extra_copies_for,
)


class _FirstChoiceRandom(random.Random):
    """Always lands in the general pool and always picks the first candidate."""

    def random(self):
        return 0.999

    def choice(self, seq):
        return seq[0]


def test_pool_is_twenty_eighty(short_levels, note_f, note_c):
    level = short_levels[1]
    scheduler = NoteScheduler(level, 1, rng=random.Random(3))
    pool = scheduler.note_pool()
    new_share = pool.count(note_c) / len(pool)
    assert abs(new_share - 0.20) <= 0.1
    assert pool.count(note_f) == pool.count(note_c) * 2


def test_history_adds_copies_for_missed_notes(short_levels, note_f, note_a, note_c):
    history = {"F4": NoteStats(correct=1, incorrect=1)}
    scheduler = NoteScheduler(short_levels[1], 1, note_history=history, rng=random.Random(3))
    pool = scheduler.note_pool()
    assert pool.count(note_f) == 4 + 3
    assert pool.count(note_a) == 4
    assert pool.count(note_c) == 2


def test_extra_copies_are_capped():
    assert extra_copies_for(None) == 0
    assert extra_copies_for(NoteStats(correct=4, incorrect=0)) == 0
    assert extra_copies_for(NoteStats(correct=0, incorrect=9)) == 5
    assert extra_copies_for(NoteStats(correct=9, incorrect=1)) == 1


def test_levels_without_new_note_are_even(short_levels, note_f, note_a):
    scheduler = NoteScheduler(short_levels[0], 0, rng=random.Random(3))
    assert sorted(n.note_id for n in scheduler.note_pool()) == ["A4", "F4"]


def test_no_immediate_repeat_on_real_levels(catalog):
    levels = build_levels(catalog)
    for index in (0, 1, 9, len(levels) - 1):
        scheduler = NoteScheduler(levels[index], index, curriculum=levels, rng=random.Random(index))
        previous = scheduler.current_note()
        for _ in range(300):
            current = scheduler.advance()
            assert not current.same_pitch(previous)
            previous = current


def test_no_repeat_with_adversarial_random(short_levels):
    scheduler = NoteScheduler(short_levels[0], 0, rng=_FirstChoiceRandom())
    previous = scheduler.current_note()
    for _ in range(20):
        current = scheduler.advance()
        assert not current.same_pitch(previous)
        previous = current


def test_single_pitch_level_repeats(note_f):
    level = IntroductoryLevel(
        level_id=0,
        name="One",
        description="",
        clef=TREBLE,
        notes=(note_f,),
        required_streak=3,
        max_average_time=5.0,
    )
    scheduler = NoteScheduler(level, 0, rng=random.Random(0))
    assert scheduler.advance() == note_f
    assert scheduler.advance() == note_f


def test_current_note_is_never_empty(short_levels):
    scheduler = NoteScheduler(short_levels[1], 1, rng=random.Random(0))
    assert scheduler.current_note() is not None
    assert scheduler.last_note() == scheduler.current_note()


def test_empty_level_is_rejected():
    level = IntroductoryLevel(
        level_id=0, name="Empty", description="", clef=TREBLE, notes=(), required_streak=3, max_average_time=5.0
    )
    with pytest.raises(ValueError):
        NoteScheduler(level, 0)


def test_mistake_decay(short_levels, note_f):
    scheduler = NoteScheduler(short_levels[1], 1, rng=random.Random(0))
    scheduler.record_mistake(note_f, False)
    for _ in range(2):
        scheduler.record_mistake(note_f, True)
    assert scheduler.mistake_entry(note_f).consecutive_correct == 2

    scheduler.record_mistake(note_f, False)
    assert scheduler.mistake_entry(note_f).consecutive_correct == 0
    assert scheduler.mistaken_notes() == [note_f]

    for _ in range(3):
        scheduler.record_mistake(note_f, True)
    assert scheduler.mistake_entry(note_f) is None
    assert scheduler.mistaken_notes() == []


def test_correct_answer_without_entry_is_ignored(short_levels, note_a):
    scheduler = NoteScheduler(short_levels[1], 1, rng=random.Random(0))
    scheduler.record_mistake(note_a, True)
    assert scheduler.mistake_entry(note_a) is None


def test_candidate_pools_and_weights(catalog, note_f):
    levels = build_levels(catalog)
    scheduler = NoteScheduler(levels[6], 6, curriculum=levels, rng=random.Random(0))
    scheduler.record_mistake(note_f, False)

    pools = {name: (weight, notes) for name, weight, notes in scheduler.candidate_pools()}
    assert pools[POOL_RECENTLY_LEARNED][0] == RECENTLY_LEARNED_WEIGHT
    assert {note.note_id for note in pools[POOL_RECENTLY_LEARNED][1]} == {"E4", "G4", "B4", "D5", "F5"}
    assert pools[POOL_MISTAKEN] == (MISTAKEN_WEIGHT, [note_f])
    assert [note.note_id for note in pools[POOL_NEW_NOTE][1]] == ["D4"]
    assert pools[POOL_NEW_NOTE][0] == NEW_NOTE_WEIGHT
    assert abs(pools[POOL_GENERAL][0] - 0.1) < 1e-9


def test_recently_learned_needs_level_five(catalog):
    levels = build_levels(catalog)
    scheduler = NoteScheduler(levels[4], 4, curriculum=levels, rng=random.Random(0))
    assert scheduler.recently_learned_notes() == []
    names = [name for name, _weight, _notes in scheduler.candidate_pools()]
    assert names == [POOL_NEW_NOTE, POOL_GENERAL]


def test_filter_narrows_pools(short_levels, note_c):
    scheduler = NoteScheduler(
        short_levels[1],
        1,
        note_filter=lambda note: note.name == "C",
        rng=random.Random(0),
    )
    assert scheduler.available_notes() == [note_c]
    assert set(scheduler.note_pool()) == {note_c}
    assert scheduler.current_note() == note_c


def test_filter_that_removes_everything_falls_back(short_levels, caplog):
    with caplog.at_level(logging.WARNING, logger="note_scheduler"):
        scheduler = NoteScheduler(short_levels[1], 1, note_filter=lambda note: False, rng=random.Random(0))
    assert scheduler.available_notes() == list(short_levels[1].notes)
    assert "unfiltered" in caplog.text


def test_new_note_share_of_draws(short_levels, note_c):
    scheduler = NoteScheduler(short_levels[1], 1, rng=random.Random(42))
    draws = [scheduler.advance() for _ in range(3000)]
    share = sum(1 for note in draws if note == note_c) / len(draws)
    # 0.20 from the new-note pool plus its share of the general pool, shaped by the no-repeat rule.
    assert 0.2 < share < 0.5
