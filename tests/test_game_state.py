from game_state import Attempt, GameState, NoteStats


def test_fresh_state_defaults():
    state = GameState.fresh()
    assert state.current_level_index == 0
    assert not state.is_game_running
    assert state.note_history == {}
    assert state.recent_attempts == []
    assert state.last_problem_start_time is None


def test_wire_shape_uses_camel_case():
    state = GameState.fresh()
    state.record_note_result("F4", True)
    state.append_attempt(Attempt(is_correct=True, time_spent=1.5, timestamp=3.0), max_length=4)
    payload = state.to_json_dict()
    assert payload["currentLevelIndex"] == 0
    assert payload["isGameRunning"] is False
    assert payload["noteHistory"] == {"F4": {"correct": 1, "incorrect": 0}}
    assert payload["recentAttempts"] == [{"isCorrect": True, "timeSpent": 1.5, "timestamp": 3.0}]


def test_missing_and_null_fields_default():
    state = GameState.from_json_dict({"currentLevelIndex": 4, "noteHistory": None, "recentAttempts": None})
    assert state.current_level_index == 4
    assert state.note_history == {}
    assert state.recent_attempts == []


def test_unknown_fields_are_ignored():
    state = GameState.from_json_dict({"currentLevelIndex": 1, "somethingNew": [1, 2, 3]})
    assert state.current_level_index == 1


def test_window_truncates_from_front():
    state = GameState.fresh()
    for index in range(6):
        state.append_attempt(Attempt(is_correct=True, time_spent=1.0, timestamp=float(index)), max_length=4)
    assert [attempt.timestamp for attempt in state.recent_attempts] == [2.0, 3.0, 4.0, 5.0]
    state.clear_attempts()
    assert state.recent_attempts == []


def test_note_stats_error_rate():
    assert NoteStats().error_rate == 0.0
    stats = NoteStats(correct=3, incorrect=1)
    assert stats.total == 4
    assert stats.error_rate == 0.25
