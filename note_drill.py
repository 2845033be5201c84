"""
note_drill.py

Real entrypoint that launches the drill application.

Integration
- Configures logging
- Loads config and paths
- Builds the note catalog, the level list and the stores
- Instantiates the main window (which owns the session controller) and starts the Qt event loop

--run-tests runs every pure module's self-check without starting Qt.
"""

from __future__ import annotations

import argparse
import logging
import random
import sys
from typing import Optional

import curriculum
import fingerboard
import game_state
import note_catalog
import note_scheduler
import progress_evaluator
import state_store
from config import get_config
from paths import profiles_file_path, state_file_path, tones_dir

logger = logging.getLogger("note_drill")

_SELF_CHECK_MODULES = (
    note_catalog,
    curriculum,
    game_state,
    progress_evaluator,
    note_scheduler,
    fingerboard,
    state_store,
)


def _run_self_checks() -> int:
    for module in _SELF_CHECK_MODULES:
        module._run_unit_tests()
        print(f"{module.__name__}.py: ok")
    return 0


def _select_profile(profiles: state_store.ProfileStore, name: Optional[str]) -> None:
    if not name:
        return
    profile = profiles.find_profile_by_name(name)
    if profile is None:
        profile = profiles.create_profile(name)
    profiles.set_active_profile(profile.id)


def main() -> int:
    argument_parser = argparse.ArgumentParser(description="Note Drill: adaptive staff reading practice")
    argument_parser.add_argument("--run-tests", action="store_true", help="Run module self-checks and exit.")
    argument_parser.add_argument("--reset", action="store_true", help="Forget saved progress before starting.")
    argument_parser.add_argument("--level", type=int, default=None, help="Jump to level N (1-based).")
    argument_parser.add_argument("--profile", default=None, help="Use (or create) the named profile.")
    argument_parser.add_argument("--fullscreen", action="store_true", help="Start in fullscreen.")
    argument_parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity.",
    )
    parsed_args = argument_parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, parsed_args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if parsed_args.run_tests:
        return _run_self_checks()

    try:
        app_config, config_path = get_config()
    except (OSError, ValueError) as exception:
        print(f"Config error: {exception}", file=sys.stderr)
        return 2
    logger.info("Config: %s", config_path if config_path is not None else "defaults")

    catalog = note_catalog.NoteCatalog.standard()
    levels = curriculum.build_levels(catalog)

    json_store = state_store.JsonStateStore(state_file_path(app_config))
    profiles = state_store.ProfileStore(profiles_file_path(app_config))
    try:
        _select_profile(profiles, parsed_args.profile)
    except ValueError as exception:
        print(f"Profile error: {exception}", file=sys.stderr)
        return 2

    # Qt modules load only for the interactive session.
    from PyQt6.QtWidgets import QApplication

    from audio_feedback import create_audio_feedback
    from main_window import DrillWindow, build_game_state_store

    if parsed_args.reset:
        build_game_state_store(profiles, json_store).clear()

    qt_application = QApplication(sys.argv)

    audio = create_audio_feedback(app_config.audio, directory=tones_dir(), parent=qt_application)

    window = DrillWindow(
        config=app_config,
        catalog=catalog,
        levels=levels,
        store=json_store,
        profiles=profiles,
        audio=audio,
        rng=random.Random(),
    )
    window.resize(960, 720)
    window.show()

    if parsed_args.fullscreen:
        window.showFullScreen()

    if parsed_args.level is not None:
        if not window.controller().set_level(int(parsed_args.level) - 1):
            print(f"Level {parsed_args.level} does not exist (1..{len(levels)})", file=sys.stderr)

    return int(qt_application.exec())


if __name__ == "__main__":
    raise SystemExit(main())
