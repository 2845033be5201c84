import json
import logging

from game_state import Attempt, GameState
from state_store import JsonStateStore, ProfileGameStateStore, ProfileStore


def _sample_state():
    state = GameState.fresh()
    state.current_level_index = 7
    state.is_game_running = True
    state.record_note_result("Csharp5", False)
    state.record_note_result("F4", True)
    for index in range(3):
        state.append_attempt(
            Attempt(is_correct=index != 1, time_spent=0.75 + index, timestamp=1000.0 + index),
            max_length=10,
        )
    state.last_problem_start_time = 1002.5
    return state


def test_missing_file_loads_nothing(tmp_path):
    assert JsonStateStore(tmp_path / "state.json").load() is None


def test_round_trip(tmp_path):
    store = JsonStateStore(tmp_path / "nested" / "state.json")
    state = _sample_state()
    assert store.save(state)
    assert store.load() == state


def test_round_trip_empty_state(tmp_path):
    store = JsonStateStore(tmp_path / "state.json")
    state = GameState.fresh()
    assert store.save(state)
    assert store.load() == state


def test_saved_file_is_camel_case_json(tmp_path):
    path = tmp_path / "state.json"
    JsonStateStore(path).save(_sample_state())
    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["currentLevelIndex"] == 7
    assert list(payload["noteHistory"]) == ["Csharp5", "F4"]


def test_corrupt_file_is_discarded(tmp_path, caplog):
    path = tmp_path / "state.json"
    path.write_text("{broken", encoding="utf-8")
    with caplog.at_level(logging.WARNING, logger="state_store"):
        assert JsonStateStore(path).load() is None
    assert not path.exists()
    assert "unreadable" in caplog.text


def test_invalid_values_are_discarded(tmp_path):
    path = tmp_path / "state.json"
    path.write_text(json.dumps({"currentLevelIndex": -3}), encoding="utf-8")
    assert JsonStateStore(path).load() is None


def test_non_object_root_is_discarded(tmp_path):
    path = tmp_path / "state.json"
    path.write_text("[1, 2]", encoding="utf-8")
    assert JsonStateStore(path).load() is None


def test_failed_save_returns_false(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    store = JsonStateStore(blocker / "state.json")
    assert store.save(GameState.fresh()) is False


def test_clear(tmp_path):
    store = JsonStateStore(tmp_path / "state.json")
    store.clear()
    store.save(GameState.fresh())
    store.clear()
    assert store.load() is None


def test_first_profile_becomes_active(tmp_path):
    profiles = ProfileStore(tmp_path / "profiles.json", clock=lambda: 10.0)
    assert profiles.active_profile() is None

    ada = profiles.create_profile("Ada")
    profiles.create_profile("Grace")
    active = profiles.active_profile()
    assert active.id == ada.id
    assert active.created_at == 10000
    assert [profile.name for profile in profiles.all_profiles()] == ["Ada", "Grace"]


def test_profile_names_are_cleaned(tmp_path):
    profiles = ProfileStore(tmp_path / "profiles.json")
    assert profiles.create_profile("  Ada   Lovelace ").name == "Ada Lovelace"
    try:
        profiles.create_profile("   ")
    except ValueError:
        pass
    else:
        raise AssertionError("blank profile name accepted")
    assert profiles.find_profile_by_name("ada lovelace") is not None


def test_switch_rename_and_remove(tmp_path):
    profiles = ProfileStore(tmp_path / "profiles.json")
    ada = profiles.create_profile("Ada")
    grace = profiles.create_profile("Grace")

    assert profiles.set_active_profile(grace.id)
    assert profiles.active_profile().id == grace.id
    assert not profiles.set_active_profile("missing")

    assert profiles.rename_profile(grace.id, "Grace H")
    assert profiles.active_profile().name == "Grace H"

    assert profiles.remove_profile(grace.id)
    assert profiles.active_profile().id == ada.id
    assert not profiles.remove_profile(grace.id)


def test_preferences_and_instrument(tmp_path):
    profiles = ProfileStore(tmp_path / "profiles.json")
    profiles.create_profile("Ada")
    assert profiles.update_display_preferences(show_all_notes=True)
    assert profiles.update_instrument_mode("Violin")
    assert not profiles.update_instrument_mode("tuba")

    reopened = ProfileStore(tmp_path / "profiles.json")
    active = reopened.active_profile()
    assert active.display_preferences.show_all_notes
    assert active.display_preferences.show_note_names
    assert active.instrument_mode == "violin"


def test_level_record_only_rises(tmp_path):
    profiles = ProfileStore(tmp_path / "profiles.json")
    profiles.create_profile("Ada")
    assert profiles.update_level_record(2, 5)
    assert not profiles.update_level_record(2, 3)
    assert profiles.active_profile().highest_streak(2) == 5
    assert profiles.active_profile().highest_streak(9) == 0


def test_profiles_wire_shape(tmp_path):
    path = tmp_path / "profiles.json"
    profiles = ProfileStore(path)
    profiles.create_profile("Ada")
    profiles.update_level_record(0, 4)
    payload = json.loads(path.read_text(encoding="utf-8"))
    profile = payload["profiles"][0]
    assert payload["activeProfileId"] == profile["id"]
    assert profile["levelRecords"] == {"0": {"highestStreak": 4}}
    assert profile["displayPreferences"] == {"showNoteNames": True, "showAllNotes": False}
    assert profile["gameState"] is None


def test_corrupt_profiles_file_starts_empty(tmp_path):
    path = tmp_path / "profiles.json"
    path.write_text("nope", encoding="utf-8")
    profiles = ProfileStore(path)
    assert profiles.all_profiles() == []
    assert not path.exists()


def test_clear_all_profiles(tmp_path):
    path = tmp_path / "profiles.json"
    profiles = ProfileStore(path)
    profiles.create_profile("Ada")
    profiles.clear_all_profiles()
    assert profiles.all_profiles() == []
    assert profiles.active_profile() is None
    assert not path.exists()


def test_profile_game_state_adapter(tmp_path):
    profiles = ProfileStore(tmp_path / "profiles.json")
    unbound = ProfileGameStateStore(profiles)
    assert unbound.profile_id is None
    assert unbound.load() is None
    assert unbound.save(GameState.fresh()) is False

    ada = profiles.create_profile("Ada")
    adapter = ProfileGameStateStore(profiles)
    assert adapter.profile_id == ada.id
    state = _sample_state()
    assert adapter.save(state)
    assert adapter.load() == state
    assert profiles.active_profile().highest_streak(7) == 1

    adapter.clear()
    assert adapter.load() is None


def test_adapter_stays_on_its_profile(tmp_path):
    profiles = ProfileStore(tmp_path / "profiles.json")
    ada = profiles.create_profile("Ada")
    grace = profiles.create_profile("Grace")
    adapter = ProfileGameStateStore(profiles)

    profiles.set_active_profile(grace.id)
    state = _sample_state()
    assert adapter.save(state)

    assert profiles.get_profile(grace.id).game_state is None
    assert profiles.get_profile(grace.id).highest_streak(7) == 0
    assert profiles.get_profile(ada.id).game_state == state
    assert profiles.get_profile(ada.id).highest_streak(7) == 1
    assert adapter.load() == state

    profiles.remove_profile(ada.id)
    assert adapter.load() is None
    assert adapter.save(state) is False
    assert profiles.get_profile(grace.id).game_state is None


def test_accessors_return_copies(tmp_path):
    profiles = ProfileStore(tmp_path / "profiles.json")
    profiles.create_profile("Ada")
    copy = profiles.active_profile()
    copy.name = "Changed"
    assert profiles.active_profile().name == "Ada"
