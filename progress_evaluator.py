# -*- coding: utf-8 -*-
########################
# progress_evaluator.py
########################
# Purpose:
# - Decide whether the active level's mastery criteria are met.
# - Mastery is dual: a streak of consecutive correct answers and a mean answer time under a limit.
# - Report streak and speed progress for UI styling.
#
# Design notes:
# - No Qt usage. Pure gameplay logic.
# - Only the tail of the attempt sequence matters. Attempts before the current streak are ignored.
# - Strict less-than on the time limit: a mean exactly equal to max_average_time does not pass.
#
########################
# Interfaces:
# Public constants:
# - GOAL_MET = "goal_met", PROGRESS = "progress", NONE = "none"
#
# Public dataclasses:
# - ProgressSnapshot(streak: int, average_time: float, required_streak: int, max_average_time: float,
#                    streak_status: str, speed_status: str, is_complete: bool)
#
# Public functions:
# - current_streak(attempts: Sequence[Attempt]) -> int
# - average_time(attempts: Sequence[Attempt], window: int) -> float
# - is_level_complete(attempts: Sequence[Attempt], required_streak: int, max_average_time: float) -> bool
# - streak_status(streak: int, required_streak: int) -> str
# - speed_status(average_seconds: float, max_average_time: float) -> str
# - progress_snapshot(attempts, required_streak, max_average_time) -> ProgressSnapshot
#
# Inputs:
# - Ordered Attempt sequence (oldest first) from GameState.recent_attempts.
#
# Outputs:
# - Completion decision for SessionController, snapshot for streak and speed labels.
#
########################

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from game_state import Attempt

GOAL_MET = "goal_met"
PROGRESS = "progress"
NONE = "none"

SPEED_PROGRESS_FACTOR = 1.5


@dataclass(frozen=True)
class ProgressSnapshot:
    streak: int
    average_time: float
    required_streak: int
    max_average_time: float
    streak_status: str
    speed_status: str
    is_complete: bool


def current_streak(attempts: Sequence[Attempt]) -> int:
    streak = 0
    for attempt in reversed(attempts):
        if not attempt.is_correct:
            break
        streak += 1
    return streak


def average_time(attempts: Sequence[Attempt], window: int) -> float:
    """Mean time_spent over the last `window` attempts (fewer if the sequence is shorter)."""
    size = int(window)
    if size <= 0 or not attempts:
        return 0.0
    tail = list(attempts)[-size:]
    return sum(float(attempt.time_spent) for attempt in tail) / float(len(tail))


def is_level_complete(attempts: Sequence[Attempt], required_streak: int, max_average_time: float) -> bool:
    required = int(required_streak)
    if required <= 0:
        return False
    if current_streak(attempts) < required:
        return False
    return average_time(attempts, required) < float(max_average_time)


def streak_status(streak: int, required_streak: int) -> str:
    if int(streak) >= int(required_streak):
        return GOAL_MET
    if float(streak) >= float(required_streak) / 2.0:
        return PROGRESS
    return NONE


def speed_status(average_seconds: float, max_average_time: float) -> str:
    average_value = float(average_seconds)
    limit = float(max_average_time)
    if average_value <= 0.0:
        return NONE
    if average_value < limit:
        return GOAL_MET
    if average_value < limit * SPEED_PROGRESS_FACTOR:
        return PROGRESS
    return NONE


def progress_snapshot(
    attempts: Sequence[Attempt],
    required_streak: int,
    max_average_time: float,
) -> ProgressSnapshot:
    streak = current_streak(attempts)
    average_seconds = average_time(attempts, required_streak)
    return ProgressSnapshot(
        streak=streak,
        average_time=average_seconds,
        required_streak=int(required_streak),
        max_average_time=float(max_average_time),
        streak_status=streak_status(streak, required_streak),
        speed_status=speed_status(average_seconds, max_average_time),
        is_complete=is_level_complete(attempts, required_streak, max_average_time),
    )


def _run_unit_tests() -> None:
    fast = [Attempt(is_correct=True, time_spent=2.0) for _ in range(10)]
    assert is_level_complete(fast, 10, 5.0)
    assert not is_level_complete(fast[:9], 10, 5.0)

    with_miss = list(fast)
    with_miss[4] = Attempt(is_correct=False, time_spent=2.0)
    assert not is_level_complete(with_miss, 10, 5.0)

    slow = [Attempt(is_correct=True, time_spent=6.0) for _ in range(10)]
    assert not is_level_complete(slow, 10, 5.0)

    # Old slow misses before the streak do not count against it.
    history = [Attempt(is_correct=False, time_spent=30.0)] + fast
    assert current_streak(history) == 10
    assert is_level_complete(history, 10, 5.0)

    snapshot = progress_snapshot(fast[:6], 10, 5.0)
    assert snapshot.streak_status == PROGRESS
    assert snapshot.speed_status == GOAL_MET
    assert not snapshot.is_complete


if __name__ == "__main__":
    _run_unit_tests()
    print("progress_evaluator.py: ok")
