from game_state import Attempt
from progress_evaluator import (
    GOAL_MET,
    NONE,
    PROGRESS,
    average_time,
    current_streak,
    is_level_complete,
    progress_snapshot,
    speed_status,
    streak_status,
)


def _attempts(count, *, correct=True, seconds=2.0):
    return [Attempt(is_correct=correct, time_spent=seconds) for _ in range(count)]


def test_ten_fast_correct_attempts_complete():
    assert is_level_complete(_attempts(10), 10, 5.0)


def test_one_miss_in_window_blocks_completion():
    attempts = _attempts(10)
    attempts[3] = Attempt(is_correct=False, time_spent=2.0)
    assert not is_level_complete(attempts, 10, 5.0)


def test_slow_attempts_block_completion():
    assert not is_level_complete(_attempts(10, seconds=6.0), 10, 5.0)


def test_too_few_attempts():
    assert not is_level_complete(_attempts(9), 10, 5.0)
    assert not is_level_complete([], 10, 5.0)


def test_mean_equal_to_limit_does_not_pass():
    assert not is_level_complete(_attempts(10, seconds=5.0), 10, 5.0)


def test_only_the_tail_counts():
    attempts = _attempts(1, correct=False, seconds=60.0) + _attempts(10)
    assert current_streak(attempts) == 10
    assert is_level_complete(attempts, 10, 5.0)


def test_timing_window_is_last_required_attempts():
    # 12 correct: two slow ones at the front fall outside the 10-attempt window.
    attempts = _attempts(2, seconds=30.0) + _attempts(10, seconds=1.0)
    assert is_level_complete(attempts, 10, 5.0)
    assert average_time(attempts, 10) == 1.0


def test_zero_requirement_never_completes():
    assert not is_level_complete(_attempts(5), 0, 5.0)


def test_streak_status_thresholds():
    assert streak_status(10, 10) == GOAL_MET
    assert streak_status(5, 10) == PROGRESS
    assert streak_status(4, 10) == NONE


def test_speed_status_thresholds():
    assert speed_status(0.0, 5.0) == NONE
    assert speed_status(4.9, 5.0) == GOAL_MET
    assert speed_status(7.0, 5.0) == PROGRESS
    assert speed_status(7.5, 5.0) == NONE


def test_snapshot():
    snapshot = progress_snapshot(_attempts(6), 10, 5.0)
    assert snapshot.streak == 6
    assert snapshot.average_time == 2.0
    assert snapshot.streak_status == PROGRESS
    assert snapshot.speed_status == GOAL_MET
    assert not snapshot.is_complete
