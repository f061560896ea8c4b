# audio_annote/widgets/rating_bar.py
from __future__ import annotations

from typing import List, Optional

from PyQt5.QtCore import Qt, pyqtSignal
from PyQt5.QtGui import QFont
from PyQt5.QtWidgets import QHBoxLayout, QLabel, QToolButton, QWidget

from ..domain import AnnotatorConfig, RatingAttribute

_ICON_CHARS = {
    "star": ("★", "☆"),
    "heart": ("♥", "♡"),
    "fire": ("\U0001F525", "·"),
    "smile": ("☺", "·"),
}


class RatingBar(QWidget):
    """Row of clickable icons bound to a RatingAttribute. Clicking the current value clears it."""
    rating_changed = pyqtSignal(int)

    def __init__(self, attr: RatingAttribute, cfg: Optional[AnnotatorConfig] = None, parent: Optional[QWidget] = None):
        super().__init__(parent)
        self._attr = attr
        self._cfg = cfg
        self._buttons: List[QToolButton] = []

        lay = QHBoxLayout(self)
        lay.setContentsMargins(0, 0, 0, 0)
        lay.setSpacing(2)

        font = QFont(self.font())
        font.setPixelSize(attr.icon_size(cfg))
        for value in range(1, attr.max_rating + 1):
            btn = QToolButton(self)
            btn.setAutoRaise(True)
            btn.setFont(font)
            btn.setCursor(Qt.PointingHandCursor)
            btn.clicked.connect(lambda _checked=False, v=value: self._on_clicked(v))
            lay.addWidget(btn)
            self._buttons.append(btn)

        self._hotkey_label = QLabel(f"[{attr.hotkey}]" if attr.hotkey else "")
        self._hotkey_label.setStyleSheet("font-size: 9px;")
        lay.addWidget(self._hotkey_label)
        lay.addStretch()

        self.refresh()

    def attribute(self) -> RatingAttribute:
        return self._attr

    def refresh(self) -> None:
        on, off = _ICON_CHARS.get(self._attr.icon, _ICON_CHARS["star"])
        for i, btn in enumerate(self._buttons, start=1):
            btn.setText(on if i <= self._attr.rating else off)
        self.setToolTip(self._attr.selected_string())

    def advance(self) -> None:
        self._attr.on_hotkey()
        self.refresh()
        self.rating_changed.emit(self._attr.rating)

    def _on_clicked(self, value: int) -> None:
        self._attr.handle_rate(0 if value == self._attr.rating else value)
        self.refresh()
        self.rating_changed.emit(self._attr.rating)
