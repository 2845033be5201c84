# -*- coding: utf-8 -*-
########################
# paths.py
########################
# Purpose:
# - Central filesystem path helpers for the app.
# - Defines where saved progress, profiles and generated tone files live.
#
# Design notes:
# - Keep path derivation consistent across modules.
# - No Qt usage. Return pathlib.Path only.
# - Directories are not created here. Stores create their parent directory when they write.
#
########################
# Interfaces:
# Public functions:
# - data_dir(config: AppConfig) -> pathlib.Path
# - cache_dir() -> pathlib.Path
# - tones_dir() -> pathlib.Path
# - state_file_path(config: AppConfig) -> pathlib.Path
# - profiles_file_path(config: AppConfig) -> pathlib.Path
#
# Inputs:
# - AppConfig.storage (optional data_dir override and file names).
#
# Outputs:
# - Paths used by state_store.py and audio_feedback.py.
#
########################

from __future__ import annotations

from pathlib import Path

from platformdirs import user_cache_dir, user_data_dir

from config import APP_AUTHOR, APP_NAME, AppConfig


def data_dir(config: AppConfig) -> Path:
    """Return the directory that holds saved progress (not created automatically)."""
    if config.storage.data_dir:
        return Path(config.storage.data_dir).expanduser()
    return Path(user_data_dir(APP_NAME, APP_AUTHOR))


def cache_dir() -> Path:
    return Path(user_cache_dir(APP_NAME, APP_AUTHOR))


def tones_dir() -> Path:
    """Return the directory for synthesized feedback tones (not created automatically)."""
    return cache_dir() / "tones"


def state_file_path(config: AppConfig) -> Path:
    return data_dir(config) / config.storage.state_file_name


def profiles_file_path(config: AppConfig) -> Path:
    return data_dir(config) / config.storage.profiles_file_name
