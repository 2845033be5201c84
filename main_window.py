# -*- coding: utf-8 -*-
########################
# main_window.py
########################
# Purpose:
# - Primary Qt window and UI host for the drill.
# - Owns its menus, the staff, the answer controls and the progress labels, and wires them to a SessionController.
#
# Design notes:
# - DrillWindow stays thin: every gameplay decision lives in SessionController.
# - DrillWindow implements the FeedbackSink protocol (show_message, show_progress, show_level).
# - Pacing delays are QTimer.singleShot calls handed to the controller as its Deferrer.
# - Switching profile rebuilds the controller so it loads that profile's saved state. The old controller is closed first.
#
########################
# Interfaces:
# Public classes:
# - class DrillWindow(PyQt6.QtWidgets.QMainWindow)
#   - controller() -> SessionController
#   - FeedbackSink:
#     - show_message(text: str, tone: str) -> None
#     - show_progress(snapshot: ProgressSnapshot) -> None
#     - show_level(level: LevelDefinition, index: int, count: int) -> None
#   - Menu actions:
#     - on_action_start(), on_action_reset(), on_action_fullscreen_toggle(), on_action_preferences(),
#       on_action_exit(), on_action_new_profile(), on_action_rename_profile(), on_action_delete_profile()
#
# Inputs:
# - AppConfig, NoteCatalog and level list, optional ProfileStore, GameStateStore, AudioFeedback.
#
# Outputs:
# - Manages Qt widgets and forwards learner input to SessionController.
#
########################
# Unit Tests:
# - Keep as manual UI smoke:
#   - python note_drill.py
# - Gameplay behavior is covered headless by tests/test_session_controller.py.
########################

from __future__ import annotations

import logging
import random
from typing import Any, Callable, Optional

from PyQt6.QtCore import QTimer, Qt
from PyQt6.QtGui import QAction, QActionGroup, QKeyEvent
from PyQt6.QtWidgets import (
    QComboBox,
    QHBoxLayout,
    QInputDialog,
    QLabel,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QStackedWidget,
    QVBoxLayout,
    QWidget,
)

from answer_controls import FingerboardWidget, PianoKeyboardWidget
from config import AppConfig, open_config_json_in_editor
from curriculum import LevelDefinition
from fingerboard import violin_filter
from note_catalog import NoteCatalog
from progress_evaluator import GOAL_MET, PROGRESS, ProgressSnapshot
from session_controller import (
    TONE_COMPLETE,
    TONE_CORRECT,
    TONE_INCORRECT,
    TONE_LEVEL_UP,
    GameStateStore,
    SessionController,
    SessionPhase,
)
from staff_widget import StaffWidget
from state_store import ProfileGameStateStore, ProfileStore

logger = logging.getLogger(__name__)

MODE_PIANO = "piano"
MODE_VIOLIN = "violin"

_TONE_COLORS = {
    TONE_CORRECT: "#1f8a3a",
    TONE_INCORRECT: "#b3261e",
    TONE_LEVEL_UP: "#1c5fb8",
    TONE_COMPLETE: "#7b3fb0",
}

_STATUS_COLORS = {
    GOAL_MET: "#1f8a3a",
    PROGRESS: "#c77700",
}

_DEFAULT_STATUS_COLOR = "#555555"


def qt_deferrer(delay_seconds: float, callback: Callable[[], None]) -> None:
    QTimer.singleShot(max(0, int(round(float(delay_seconds) * 1000.0))), callback)


class DrillWindow(QMainWindow):
    def __init__(
        self,
        *,
        config: AppConfig,
        catalog: NoteCatalog,
        levels: list,
        store: GameStateStore,
        profiles: Optional[ProfileStore] = None,
        audio: Any = None,
        rng: Optional[random.Random] = None,
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self.setWindowTitle("Note Drill")

        self._config = config
        self._catalog = catalog
        self._levels = list(levels)
        self._store = store
        self._profiles = profiles
        self._audio = audio
        self._rng = rng

        self._instrument_mode = config.instrument.mode
        self._show_note_names = config.instrument.show_note_names
        self._show_all_notes = config.instrument.show_all_notes
        self._load_profile_preferences()

        self._build_widgets()
        self._build_menus()

        self._controller: Optional[SessionController] = None
        self._rebuild_controller()

    # -----------------
    # Construction
    # -----------------

    def _load_profile_preferences(self) -> None:
        if self._profiles is None:
            return
        profile = self._profiles.active_profile()
        if profile is None:
            return
        self._instrument_mode = profile.instrument_mode
        self._show_note_names = profile.display_preferences.show_note_names
        self._show_all_notes = profile.display_preferences.show_all_notes

    def _build_widgets(self) -> None:
        central = QWidget(self)

        self._level_combo = QComboBox(central)
        for index, level in enumerate(self._levels):
            self._level_combo.addItem(f"{index + 1}. {level.name}")
        self._level_combo.activated.connect(self._on_level_chosen)

        self._start_button = QPushButton("Start", central)
        self._start_button.clicked.connect(self.on_action_start)
        self._reset_button = QPushButton("Reset", central)
        self._reset_button.clicked.connect(self.on_action_reset)

        self._profile_label = QLabel("", central)
        self._profile_label.setAlignment(Qt.AlignmentFlag.AlignRight | Qt.AlignmentFlag.AlignVCenter)

        self._description_label = QLabel("", central)
        self._description_label.setWordWrap(True)

        self._staff = StaffWidget(parent=central)

        self._feedback_label = QLabel("", central)
        self._feedback_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._feedback_label.setMinimumHeight(28)

        self._streak_label = QLabel("", central)
        self._speed_label = QLabel("", central)

        self._piano = PianoKeyboardWidget(show_note_names=self._show_note_names, parent=central)
        self._fingerboard = FingerboardWidget(self._catalog, show_note_names=self._show_note_names, parent=central)
        self._piano.noteChosen.connect(self._on_note_chosen)
        self._fingerboard.noteChosen.connect(self._on_note_chosen)

        self._answer_stack = QStackedWidget(central)
        self._answer_stack.addWidget(self._piano)
        self._answer_stack.addWidget(self._fingerboard)

        header = QHBoxLayout()
        header.setSpacing(8)
        header.addWidget(QLabel("Level", central))
        header.addWidget(self._level_combo, 1)
        header.addWidget(self._start_button)
        header.addWidget(self._reset_button)
        header.addWidget(self._profile_label)

        progress_row = QHBoxLayout()
        progress_row.addWidget(self._streak_label)
        progress_row.addStretch(1)
        progress_row.addWidget(self._speed_label)

        root_layout = QVBoxLayout(central)
        root_layout.setContentsMargins(16, 12, 16, 12)
        root_layout.setSpacing(10)
        root_layout.addLayout(header)
        root_layout.addWidget(self._description_label)
        root_layout.addWidget(self._staff, 1)
        root_layout.addWidget(self._feedback_label)
        root_layout.addLayout(progress_row)
        root_layout.addWidget(self._answer_stack)

        self.setCentralWidget(central)

    def _build_menus(self) -> None:
        menu_bar = self.menuBar()

        file_menu = menu_bar.addMenu("&File")
        self._add_action(file_menu, "Start", self.on_action_start, shortcut="Return")
        self._add_action(file_menu, "Reset Progress", self.on_action_reset)
        file_menu.addSeparator()
        self._add_action(file_menu, "Preferences...", self.on_action_preferences)
        self._add_action(file_menu, "Exit", self.on_action_exit)

        view_menu = menu_bar.addMenu("&View")
        self._add_action(view_menu, "Fullscreen", self.on_action_fullscreen_toggle, shortcut="F11")
        self._note_names_action = self._add_action(view_menu, "Show Note Names", self._on_toggle_note_names)
        self._note_names_action.setCheckable(True)
        self._note_names_action.setChecked(self._show_note_names)
        self._all_notes_action = self._add_action(view_menu, "Show All Notes", self._on_toggle_all_notes)
        self._all_notes_action.setCheckable(True)
        self._all_notes_action.setChecked(self._show_all_notes)

        instrument_menu = menu_bar.addMenu("&Instrument")
        instrument_group = QActionGroup(self)
        instrument_group.setExclusive(True)
        self._piano_action = self._add_action(instrument_menu, "Piano", lambda: self._set_instrument_mode(MODE_PIANO))
        self._violin_action = self._add_action(instrument_menu, "Violin", lambda: self._set_instrument_mode(MODE_VIOLIN))
        for action in (self._piano_action, self._violin_action):
            action.setCheckable(True)
            instrument_group.addAction(action)

        self._profiles_menu = menu_bar.addMenu("&Profiles")
        self._profiles_menu.aboutToShow.connect(self._populate_profiles_menu)
        self._populate_profiles_menu()

    def _add_action(self, menu: Any, text: str, handler: Callable[[], None], *, shortcut: Optional[str] = None) -> QAction:
        action = QAction(text, self)
        if shortcut:
            action.setShortcut(shortcut)
        action.triggered.connect(lambda _checked=False: handler())
        menu.addAction(action)
        return action

    def _populate_profiles_menu(self) -> None:
        self._profiles_menu.clear()
        if self._profiles is None:
            disabled = QAction("Profiles are off", self)
            disabled.setEnabled(False)
            self._profiles_menu.addAction(disabled)
            return

        active = self._profiles.active_profile()
        for profile in self._profiles.all_profiles():
            action = QAction(profile.name, self)
            action.setCheckable(True)
            action.setChecked(active is not None and profile.id == active.id)
            action.triggered.connect(lambda _checked=False, profile_id=profile.id: self._switch_profile(profile_id))
            self._profiles_menu.addAction(action)

        self._profiles_menu.addSeparator()
        self._add_action(self._profiles_menu, "New Profile...", self.on_action_new_profile)
        self._add_action(self._profiles_menu, "Rename Profile...", self.on_action_rename_profile)
        self._add_action(self._profiles_menu, "Delete Profile", self.on_action_delete_profile)

    def _rebuild_controller(self) -> None:
        # Pending QTimer callbacks of the old controller still fire; close() makes them no-ops.
        if self._controller is not None:
            self._controller.close()
        self._controller = SessionController(
            self._levels,
            store=build_game_state_store(self._profiles, self._store),
            renderer=self._staff,
            selector=self._active_selector(),
            audio=self._audio,
            feedback=self,
            deferrer=qt_deferrer,
            pacing=self._config.pacing,
            note_filter=self._note_filter(),
            catalog_notes=self._catalog.all_notes(),
            show_all_notes=self._show_all_notes,
            rng=self._rng,
        )
        self._apply_instrument_widgets()
        self._staff.clear()
        self._piano.set_input_enabled(False)
        self._fingerboard.set_input_enabled(False)
        self.show_message("", "info")

        level = self._controller.current_level
        if level is not None:
            self.show_level(level, self._controller.current_level_index, len(self._levels))
        else:
            self._description_label.setText(f"All {len(self._levels)} levels completed. Pick a level or reset to practice again.")
        self.show_progress(self._controller.progress_snapshot())
        self._refresh_profile_label()

    # -----------------
    # Accessors
    # -----------------

    def controller(self) -> SessionController:
        assert self._controller is not None
        return self._controller

    def _active_selector(self) -> Any:
        return self._fingerboard if self._instrument_mode == MODE_VIOLIN else self._piano

    def _note_filter(self) -> Optional[Callable]:
        if self._instrument_mode == MODE_VIOLIN:
            return violin_filter(self._catalog)
        return None

    def _refresh_profile_label(self) -> None:
        profile = self._profiles.active_profile() if self._profiles is not None else None
        self._profile_label.setText(f"Profile: {profile.name}" if profile is not None else "")

    def _apply_instrument_widgets(self) -> None:
        is_violin = self._instrument_mode == MODE_VIOLIN
        self._answer_stack.setCurrentWidget(self._fingerboard if is_violin else self._piano)
        self._violin_action.setChecked(is_violin)
        self._piano_action.setChecked(not is_violin)

    # -----------------
    # FeedbackSink
    # -----------------

    def show_message(self, text: str, tone: str) -> None:
        color = _TONE_COLORS.get(tone, _DEFAULT_STATUS_COLOR)
        self._feedback_label.setStyleSheet(f"color: {color}; font-size: 18px; font-weight: bold;")
        self._feedback_label.setText(text)

    def show_progress(self, snapshot: ProgressSnapshot) -> None:
        streak_color = _STATUS_COLORS.get(snapshot.streak_status, _DEFAULT_STATUS_COLOR)
        speed_color = _STATUS_COLORS.get(snapshot.speed_status, _DEFAULT_STATUS_COLOR)
        self._streak_label.setStyleSheet(f"color: {streak_color};")
        self._speed_label.setStyleSheet(f"color: {speed_color};")
        self._streak_label.setText(f"Streak: {snapshot.streak} / {snapshot.required_streak}")
        self._speed_label.setText(
            f"Average time: {snapshot.average_time:.2f}s (goal under {snapshot.max_average_time:.2f}s)"
        )

    def show_level(self, level: LevelDefinition, index: int, count: int) -> None:
        self._level_combo.blockSignals(True)
        self._level_combo.setCurrentIndex(int(index))
        self._level_combo.blockSignals(False)
        self._description_label.setText(f"Level {index + 1} of {count}: {level.name}. {level.description}")

    # -----------------
    # Menu actions
    # -----------------

    def on_action_start(self) -> None:
        self.controller().start()

    def on_action_reset(self) -> None:
        answer = QMessageBox.question(self, "Reset Progress", "Forget all progress and start again from level 1?")
        if answer != QMessageBox.StandardButton.Yes:
            return
        self.controller().reset()

    def on_action_fullscreen_toggle(self) -> None:
        if self.isFullScreen():
            self.showNormal()
        else:
            self.showFullScreen()

    def on_action_preferences(self) -> None:
        opened_path = open_config_json_in_editor()
        self.statusBar().showMessage("Opened config: " + str(opened_path), 5000)

    def on_action_exit(self) -> None:
        self.close()

    def on_action_new_profile(self) -> None:
        if self._profiles is None:
            return
        name, accepted = QInputDialog.getText(self, "New Profile", "Name:")
        if not accepted:
            return
        try:
            profile = self._profiles.create_profile(name)
        except ValueError as exception:
            QMessageBox.warning(self, "New Profile", str(exception))
            return
        self._switch_profile(profile.id)

    def on_action_rename_profile(self) -> None:
        if self._profiles is None:
            return
        active = self._profiles.active_profile()
        if active is None:
            return
        name, accepted = QInputDialog.getText(self, "Rename Profile", "Name:", text=active.name)
        if not accepted:
            return
        try:
            self._profiles.rename_profile(active.id, name)
        except ValueError as exception:
            QMessageBox.warning(self, "Rename Profile", str(exception))
            return
        self._refresh_profile_label()

    def on_action_delete_profile(self) -> None:
        if self._profiles is None:
            return
        active = self._profiles.active_profile()
        if active is None:
            return
        answer = QMessageBox.question(self, "Delete Profile", f"Delete profile {active.name} and its progress?")
        if answer != QMessageBox.StandardButton.Yes:
            return
        self._profiles.remove_profile(active.id)
        self._load_profile_preferences()
        self._sync_preference_actions()
        self._rebuild_controller()

    # -----------------
    # Internal wiring
    # -----------------

    def _switch_profile(self, profile_id: str) -> None:
        if self._profiles is None or not self._profiles.set_active_profile(profile_id):
            return
        self._load_profile_preferences()
        self._sync_preference_actions()
        self._rebuild_controller()

    def _sync_preference_actions(self) -> None:
        self._note_names_action.setChecked(self._show_note_names)
        self._all_notes_action.setChecked(self._show_all_notes)
        self._piano.set_show_note_names(self._show_note_names)
        self._fingerboard.set_show_note_names(self._show_note_names)

    def _on_level_chosen(self, index: int) -> None:
        self.controller().set_level(int(index))

    def _on_note_chosen(self, note: object) -> None:
        self.controller().submit_answer(note)  # type: ignore[arg-type]

    def _on_toggle_note_names(self) -> None:
        self._show_note_names = bool(self._note_names_action.isChecked())
        self._piano.set_show_note_names(self._show_note_names)
        self._fingerboard.set_show_note_names(self._show_note_names)
        if self._profiles is not None:
            self._profiles.update_display_preferences(show_note_names=self._show_note_names)

    def _on_toggle_all_notes(self) -> None:
        self._show_all_notes = bool(self._all_notes_action.isChecked())
        self.controller().set_show_all_notes(self._show_all_notes)
        if self._profiles is not None:
            self._profiles.update_display_preferences(show_all_notes=self._show_all_notes)

    def _set_instrument_mode(self, mode: str) -> None:
        if mode == self._instrument_mode:
            return
        self._instrument_mode = mode
        if self._profiles is not None:
            self._profiles.update_instrument_mode(mode)

        # The controller keeps its selector for its lifetime, so an instrument change rebuilds it.
        was_running = self.controller().phase in (SessionPhase.RUNNING, SessionPhase.LEVEL_UP)
        self._rebuild_controller()
        if was_running:
            self.controller().start()
        logger.info("Instrument mode set to %s", mode)

    def keyPressEvent(self, event: Optional[QKeyEvent]) -> None:
        if event is None:
            return

        if event.key() == Qt.Key.Key_Escape:
            if self.isFullScreen():
                self.showNormal()
                event.accept()
                return

        super().keyPressEvent(event)


def build_game_state_store(profiles: Optional[ProfileStore], fallback: GameStateStore) -> GameStateStore:
    active = profiles.active_profile() if profiles is not None else None
    if profiles is not None and active is not None:
        return ProfileGameStateStore(profiles, active.id)
    return fallback
