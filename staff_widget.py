# -*- coding: utf-8 -*-
########################
# staff_widget.py
########################
# Purpose:
# - Qt widget that draws one note on a five-line staff.
# - Implements the session controller's Renderer protocol (render_note, clear).
#
########################
# Key Logic:
# - Vertical placement counts diatonic steps (half-spaces) up from the clef's bottom line (E4 treble, G2 bass):
#   - staff lines sit on steps 0, 2, 4, 6, 8
#   - ledger lines are drawn on every even step between the staff and the note
# - The clef glyph follows note.clef. Sharps, flats and naturals draw left of the notehead.
# - Repaints only on change. No animation timer.
#
########################
# Interfaces:
# Public dataclasses:
# - StaffStyle(half_space_pixels: float, line_width: float, notehead_width_factor: float, ...)
#
# Public classes:
# - class StaffWidget(PyQt6.QtWidgets.QWidget)
#   - render_note(note: Note) -> None
#   - clear() -> None
#   - current_note() -> Optional[Note]
#
# Inputs:
# - Note from SessionController.
#
# Outputs:
# - Painted staff on the widget surface.
#
########################

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from PyQt6.QtCore import QPointF, QRectF, QSize, Qt
from PyQt6.QtGui import QBrush, QColor, QFont, QPainter, QPen
from PyQt6.QtWidgets import QSizePolicy, QWidget

from note_catalog import BASS, FLAT, NATURAL, NOTE_NAMES, SHARP, TREBLE, Note

TOP_LINE_STEP = 8

_CLEF_GLYPHS = {
    TREBLE: "\U0001D11E",
    BASS: "\U0001D122",
}

_ACCIDENTAL_GLYPHS = {
    SHARP: "♯",
    FLAT: "♭",
    NATURAL: "♮",
}


@dataclass(frozen=True)
class StaffStyle:
    half_space_pixels: float = 12.0
    line_width: float = 2.0
    notehead_width_factor: float = 2.6
    staff_width_pixels: float = 360.0
    ledger_extra_pixels: float = 10.0
    background_rgb: Tuple[int, int, int] = (250, 248, 240)
    ink_rgb: Tuple[int, int, int] = (20, 20, 24)


_BOTTOM_LINE = {
    TREBLE: ("E", 4),
    BASS: ("G", 2),
}


def _diatonic_index(name: str, octave: int) -> int:
    return int(octave) * 7 + NOTE_NAMES.index(name)


def note_step(note: Note) -> int:
    bottom_name, bottom_octave = _BOTTOM_LINE.get(note.clef, _BOTTOM_LINE[TREBLE])
    return _diatonic_index(note.name, note.octave) - _diatonic_index(bottom_name, bottom_octave)


def ledger_steps(step: int) -> List[int]:
    if step < 0:
        lowest = step if step % 2 == 0 else step + 1
        return list(range(-2, lowest - 1, -2))
    if step > TOP_LINE_STEP:
        highest = step if step % 2 == 0 else step - 1
        return list(range(TOP_LINE_STEP + 2, highest + 1, 2))
    return []


class StaffWidget(QWidget):
    def __init__(self, *, style: Optional[StaffStyle] = None, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self._style = style or StaffStyle()
        self._note: Optional[Note] = None
        self._clef = TREBLE
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)

    def sizeHint(self) -> QSize:  # type: ignore[override]
        half_space = self._style.half_space_pixels
        return QSize(int(self._style.staff_width_pixels + 80), int(half_space * 28))

    def current_note(self) -> Optional[Note]:
        return self._note

    def render_note(self, note: Note) -> None:
        self._note = note
        self._clef = note.clef
        self.update()

    def clear(self) -> None:
        self._note = None
        self.update()

    # -----------------
    # Painting
    # -----------------

    def _geometry(self) -> tuple:
        half_space = float(self._style.half_space_pixels)
        staff_width = min(float(self._style.staff_width_pixels), float(self.width()) - 40.0)
        left = (float(self.width()) - staff_width) / 2.0
        bottom_line_y = float(self.height()) / 2.0 + half_space * (TOP_LINE_STEP / 2.0)
        return half_space, left, staff_width, bottom_line_y

    def paintEvent(self, event) -> None:  # type: ignore[override]
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing, True)
        painter.fillRect(self.rect(), QBrush(QColor(*self._style.background_rgb)))

        half_space, left, staff_width, bottom_line_y = self._geometry()

        pen = QPen(QColor(*self._style.ink_rgb))
        pen.setWidthF(float(self._style.line_width))
        painter.setPen(pen)
        for step in range(0, TOP_LINE_STEP + 1, 2):
            y = bottom_line_y - step * half_space
            painter.drawLine(QPointF(left, y), QPointF(left + staff_width, y))

        self._paint_clef(painter, half_space, left, bottom_line_y)

        if self._note is not None:
            self._paint_note(painter, self._note, half_space, left, staff_width, bottom_line_y)

        painter.end()

    def _paint_clef(self, painter: QPainter, half_space: float, left: float, bottom_line_y: float) -> None:
        glyph = _CLEF_GLYPHS.get(self._clef, _CLEF_GLYPHS[TREBLE])
        font = QFont()
        font.setPixelSize(int(half_space * (7.5 if self._clef != BASS else 4.0)))
        painter.save()
        painter.setFont(font)
        top = bottom_line_y - (TOP_LINE_STEP + 3) * half_space
        box = QRectF(left + 4.0, top, half_space * 5.0, (TOP_LINE_STEP + 6) * half_space)
        painter.drawText(box, int(Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignVCenter), glyph)
        painter.restore()

    def _paint_note(
        self,
        painter: QPainter,
        note: Note,
        half_space: float,
        left: float,
        staff_width: float,
        bottom_line_y: float,
    ) -> None:
        step = note_step(note)
        center_x = left + staff_width * 0.6
        center_y = bottom_line_y - step * half_space
        head_width = half_space * float(self._style.notehead_width_factor)
        head_height = half_space * 2.0

        pen = QPen(QColor(*self._style.ink_rgb))
        pen.setWidthF(float(self._style.line_width))
        painter.setPen(pen)
        ledger_half = head_width / 2.0 + float(self._style.ledger_extra_pixels)
        for ledger in ledger_steps(step):
            y = bottom_line_y - ledger * half_space
            painter.drawLine(QPointF(center_x - ledger_half, y), QPointF(center_x + ledger_half, y))

        painter.save()
        painter.translate(center_x, center_y)
        painter.rotate(-20.0)
        painter.setBrush(QBrush(QColor(*self._style.ink_rgb)))
        painter.drawEllipse(QPointF(0.0, 0.0), head_width / 2.0, head_height / 2.0)
        painter.restore()

        glyph = _ACCIDENTAL_GLYPHS.get(note.accidental or "")
        if glyph:
            font = QFont()
            font.setPixelSize(int(half_space * 3.2))
            painter.save()
            painter.setFont(font)
            box = QRectF(center_x - head_width * 1.9, center_y - half_space * 2.5, head_width, half_space * 5.0)
            painter.drawText(box, int(Qt.AlignmentFlag.AlignCenter), glyph)
            painter.restore()


def _run_unit_tests() -> None:

    assert note_step(Note(name="E", clef=TREBLE, position=1, is_space=False, octave=4)) == 0
    assert note_step(Note(name="F", clef=TREBLE, position=5, is_space=False, octave=5)) == TOP_LINE_STEP

    middle_c = Note(name="C", clef=TREBLE, position=0, is_space=False, octave=4)
    assert ledger_steps(note_step(middle_c)) == [-2]
    d4 = Note(name="D", clef=TREBLE, position=0, is_space=True, octave=4)
    assert ledger_steps(note_step(d4)) == []
    c6 = Note(name="C", clef=TREBLE, position=8, is_space=False, octave=6)
    assert ledger_steps(note_step(c6)) == [10, 12]


if __name__ == "__main__":
    _run_unit_tests()
    print("staff_widget.py: ok")
