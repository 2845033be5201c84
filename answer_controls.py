"""\
answer_controls.py

Onscreen answer inputs for the drill.

PianoKeyboardWidget and FingerboardWidget both satisfy the session controller's AnswerSelector
protocol (show_choices, set_input_enabled) and emit noteChosen(Note) when the learner picks a key.
The window connects noteChosen to SessionController.submit_answer.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from PyQt6.QtCore import Qt, pyqtSignal
from PyQt6.QtWidgets import QFrame, QGridLayout, QHBoxLayout, QLabel, QPushButton, QVBoxLayout, QWidget

from fingerboard import FINGER_MARKERS, SEMITONES_PER_STRING, VIOLIN_STRINGS, FingerPosition, fingerboard_positions
from note_catalog import Note, NoteCatalog

_WHITE_KEY_STYLE = (
    "QPushButton {"
    "  background: rgb(250, 250, 250); color: rgb(20, 20, 24);"
    "  border: 1px solid rgb(60, 60, 70); border-radius: 4px;"
    "  min-width: 34px; min-height: 90px;"
    "}"
    "QPushButton:pressed { background: rgb(200, 220, 255); }"
    "QPushButton:disabled { color: rgb(150, 150, 150); }"
)

_BLACK_KEY_STYLE = (
    "QPushButton {"
    "  background: rgb(30, 30, 36); color: rgb(240, 240, 240);"
    "  border: 1px solid rgb(10, 10, 10); border-radius: 4px;"
    "  min-width: 30px; min-height: 56px;"
    "}"
    "QPushButton:pressed { background: rgb(70, 90, 140); }"
    "QPushButton:disabled { color: rgb(110, 110, 110); }"
)

_FRET_STYLE = (
    "QPushButton {"
    "  background: rgb(92, 60, 36); color: rgb(250, 240, 220);"
    "  border: 1px solid rgb(50, 30, 16); border-radius: 6px;"
    "  min-width: 42px; min-height: 28px;"
    "}"
    "QPushButton[marker=\"true\"] { background: rgb(128, 88, 52); }"
    "QPushButton:pressed { background: rgb(190, 150, 90); }"
    "QPushButton:disabled { background: rgb(70, 52, 40); color: rgb(120, 110, 100); }"
)


def _key_text(note: Note, show_note_names: bool) -> str:
    return note.label if show_note_names else ""


class PianoKeyboardWidget(QFrame):
    noteChosen = pyqtSignal(object)

    def __init__(self, *, show_note_names: bool = True, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setObjectName("pianoKeyboard")

        self._show_note_names = bool(show_note_names)
        self._input_enabled = False
        self._choices: List[Note] = []
        self._buttons: List[QPushButton] = []

        self._sharp_row = QHBoxLayout()
        self._sharp_row.setSpacing(4)
        self._natural_row = QHBoxLayout()
        self._natural_row.setSpacing(4)

        root_layout = QVBoxLayout(self)
        root_layout.setContentsMargins(8, 8, 8, 8)
        root_layout.setSpacing(4)
        root_layout.addLayout(self._sharp_row)
        root_layout.addLayout(self._natural_row)

    def choices(self) -> List[Note]:
        return list(self._choices)

    def set_show_note_names(self, enabled: bool) -> None:
        self._show_note_names = bool(enabled)
        self.show_choices(self._choices)

    def show_choices(self, notes: Sequence[Note]) -> None:
        unique: Dict[tuple, Note] = {}
        for note in notes:
            unique.setdefault(note.pitch_key, note)
        self._choices = sorted(unique.values(), key=lambda note: note.midi_number)

        for button in self._buttons:
            button.setParent(None)
            button.deleteLater()
        self._buttons = []

        for note in self._choices:
            button = QPushButton(_key_text(note, self._show_note_names), self)
            if note.accidental:
                button.setStyleSheet(_BLACK_KEY_STYLE)
                self._sharp_row.addWidget(button)
            else:
                button.setStyleSheet(_WHITE_KEY_STYLE)
                self._natural_row.addWidget(button)
            button.setToolTip(note.label)
            button.setEnabled(self._input_enabled)
            button.clicked.connect(lambda _checked=False, chosen=note: self.noteChosen.emit(chosen))
            self._buttons.append(button)

    def set_input_enabled(self, enabled: bool) -> None:
        self._input_enabled = bool(enabled)
        for button in self._buttons:
            button.setEnabled(self._input_enabled)


class FingerboardWidget(QFrame):
    """Four strings by eight semitone positions. Positions outside the current choices stay disabled."""

    noteChosen = pyqtSignal(object)

    def __init__(self, catalog: NoteCatalog, *, show_note_names: bool = True, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setObjectName("violinFingerboard")

        self._show_note_names = bool(show_note_names)
        self._input_enabled = False
        self._choice_keys: set = set()
        self._positions: List[FingerPosition] = fingerboard_positions(catalog)
        self._buttons: List[tuple] = []

        grid = QGridLayout(self)
        grid.setContentsMargins(8, 8, 8, 8)
        grid.setHorizontalSpacing(4)
        grid.setVerticalSpacing(6)

        for row, string in enumerate(VIOLIN_STRINGS):
            string_label = QLabel(f"{string.name}{string.octave}", self)
            string_label.setAlignment(Qt.AlignmentFlag.AlignRight | Qt.AlignmentFlag.AlignVCenter)
            grid.addWidget(string_label, row, 0)

        for position in self._positions:
            row = VIOLIN_STRINGS.index(position.string)
            button = QPushButton(_key_text(position.note, self._show_note_names), self)
            button.setStyleSheet(_FRET_STYLE)
            button.setProperty("marker", "true" if position.semitone in FINGER_MARKERS else "false")
            button.setToolTip(f"{position.note.label} ({position.string.name} string, +{position.semitone})")
            button.setEnabled(False)
            button.clicked.connect(lambda _checked=False, chosen=position.note: self.noteChosen.emit(chosen))
            grid.addWidget(button, row, 1 + position.semitone)
            self._buttons.append((position, button))

        for column in range(SEMITONES_PER_STRING):
            grid.setColumnStretch(1 + column, 1)

    def set_show_note_names(self, enabled: bool) -> None:
        self._show_note_names = bool(enabled)
        for position, button in self._buttons:
            button.setText(_key_text(position.note, self._show_note_names))

    def show_choices(self, notes: Sequence[Note]) -> None:
        self._choice_keys = {note.pitch_key for note in notes}
        self._refresh_enabled()

    def set_input_enabled(self, enabled: bool) -> None:
        self._input_enabled = bool(enabled)
        self._refresh_enabled()

    def _refresh_enabled(self) -> None:
        for position, button in self._buttons:
            button.setEnabled(self._input_enabled and position.note.pitch_key in self._choice_keys)
