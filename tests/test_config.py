import json

import pytest

import config
import paths

_ENV_NAMES = (
    "NOTE_DRILL_CONFIG_PATH",
    "NOTE_DRILL_FEEDBACK_DELAY_SECONDS",
    "NOTE_DRILL_LEVEL_UP_DELAY_SECONDS",
    "NOTE_DRILL_INSTRUMENT_MODE",
    "NOTE_DRILL_SHOW_NOTE_NAMES",
    "NOTE_DRILL_DATA_DIR",
    "NOTE_DRILL_AUDIO_ENABLED",
    "NOTE_DRILL_AUDIO_VOLUME",
)


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    for name in _ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(
        config,
        "_default_config_candidates",
        lambda: [tmp_path / "note_drill_config.json", tmp_path / "user" / "note_drill_config.json"],
    )


def _write_config(path, payload):
    path.write_text(json.dumps(payload), encoding="utf-8")


def test_defaults_without_a_config_file():
    app_config, resolved_path = config.load_config()
    assert resolved_path is None
    assert app_config.pacing.feedback_delay_seconds == 0.15
    assert app_config.pacing.level_up_delay_seconds == 2.0
    assert app_config.instrument.mode == "piano"
    assert app_config.storage.state_file_name == "note_drill_state.json"
    assert app_config.audio.volume == 0.5


def test_first_existing_candidate_is_used(tmp_path):
    _write_config(tmp_path / "note_drill_config.json", {"instrument": {"mode": " Violin "}})
    app_config, resolved_path = config.load_config()
    assert resolved_path == tmp_path / "note_drill_config.json"
    assert app_config.instrument.mode == "violin"


def test_explicit_path_from_environment(tmp_path, monkeypatch):
    explicit = tmp_path / "elsewhere.json"
    _write_config(explicit, {"audio": {"enabled": False}})
    monkeypatch.setenv("NOTE_DRILL_CONFIG_PATH", str(explicit))
    app_config, resolved_path = config.load_config()
    assert resolved_path == explicit
    assert app_config.audio.enabled is False


def test_missing_explicit_path_raises(tmp_path, monkeypatch):
    monkeypatch.setenv("NOTE_DRILL_CONFIG_PATH", str(tmp_path / "missing.json"))
    with pytest.raises(FileNotFoundError):
        config.load_config()


def test_invalid_json_raises_value_error(tmp_path):
    (tmp_path / "note_drill_config.json").write_text("{oops", encoding="utf-8")
    with pytest.raises(ValueError, match="not valid JSON"):
        config.load_config()


def test_invalid_mode_raises_value_error(tmp_path):
    _write_config(tmp_path / "note_drill_config.json", {"instrument": {"mode": "tuba"}})
    with pytest.raises(ValueError, match="validation failed"):
        config.load_config()


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("NOTE_DRILL_INSTRUMENT_MODE", "violin")
    monkeypatch.setenv("NOTE_DRILL_SHOW_NOTE_NAMES", "off")
    monkeypatch.setenv("NOTE_DRILL_AUDIO_VOLUME", "0.8")
    monkeypatch.setenv("NOTE_DRILL_FEEDBACK_DELAY_SECONDS", "0.3")
    app_config, _path = config.load_config()
    assert app_config.instrument.mode == "violin"
    assert app_config.instrument.show_note_names is False
    assert app_config.audio.volume == 0.8
    assert app_config.pacing.feedback_delay_seconds == 0.3


def test_malformed_overrides_are_ignored(monkeypatch):
    monkeypatch.setenv("NOTE_DRILL_AUDIO_VOLUME", "loud")
    monkeypatch.setenv("NOTE_DRILL_AUDIO_ENABLED", "maybe")
    app_config, _path = config.load_config()
    assert app_config.audio.volume == 0.5
    assert app_config.audio.enabled is True


def test_paths_follow_storage_config(tmp_path, monkeypatch):
    monkeypatch.setenv("NOTE_DRILL_DATA_DIR", str(tmp_path / "data"))
    app_config, _path = config.load_config()
    assert paths.data_dir(app_config) == tmp_path / "data"
    assert paths.state_file_path(app_config) == tmp_path / "data" / "note_drill_state.json"
    assert paths.profiles_file_path(app_config) == tmp_path / "data" / "note_drill_profiles.json"
    assert not (tmp_path / "data").exists()


def test_default_data_dir_is_platform_dir():
    app_config = config.AppConfig()
    assert paths.data_dir(app_config).name == "NoteDrill"
    assert paths.tones_dir().parent == paths.cache_dir()


def test_main_prints_config(capsys):
    assert config.main() == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["ok"] is True
    assert payload["config"]["instrument"]["mode"] == "piano"


def test_text_overrides_are_trimmed(tmp_path, monkeypatch):
    monkeypatch.setenv("NOTE_DRILL_DATA_DIR", f"  {tmp_path / 'progress'}  ")
    monkeypatch.setenv("NOTE_DRILL_INSTRUMENT_MODE", "  VIOLIN ")
    app_config, _path = config.load_config()
    assert app_config.storage.data_dir == str(tmp_path / "progress")
    assert app_config.instrument.mode == "violin"
