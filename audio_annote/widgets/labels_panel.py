# audio_annote/widgets/labels_panel.py
from __future__ import annotations

from typing import List, Optional

from PyQt5.QtCore import Qt, pyqtSignal
from PyQt5.QtGui import QColor
from PyQt5.QtWidgets import (
    QGroupBox,
    QHBoxLayout,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QMessageBox,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from ..domain import AnnotatorConfig, get_label_color_hex


class LabelsPanel(QGroupBox):
    """
    Label list with palette swatches. Checked labels are the "active" ones a
    new drag-select region receives; with none checked, drag-select is refused.

    Emits:
      - active_labels_changed(list[str])
      - labels_changed() whenever the label list is modified
    """
    active_labels_changed = pyqtSignal(list)
    labels_changed = pyqtSignal()

    def __init__(self, cfg: AnnotatorConfig, parent: Optional[QWidget] = None):
        super().__init__("Labels", parent)
        self._cfg = cfg
        self._build_ui()
        self.refresh()

    # ---------------- UI ----------------

    def _build_ui(self) -> None:
        layout = QVBoxLayout()
        layout.setContentsMargins(6, 6, 6, 6)
        layout.setSpacing(6)
        self.setLayout(layout)

        self.list = QListWidget()
        self.list.itemChanged.connect(self._on_item_changed)
        layout.addWidget(self.list, stretch=1)

        add_row = QHBoxLayout()
        add_row.setSpacing(4)
        self.name_input = QLineEdit()
        self.name_input.setPlaceholderText("Label name")
        self.name_input.returnPressed.connect(self._on_add_label)
        self.btn_add = QPushButton("Add Label")
        self.btn_add.clicked.connect(self._on_add_label)
        add_row.addWidget(self.name_input, stretch=1)
        add_row.addWidget(self.btn_add)
        layout.addLayout(add_row)

        self.btn_delete = QPushButton("Delete Selected Label")
        self.btn_delete.clicked.connect(self._on_delete_selected)
        layout.addWidget(self.btn_delete)

        for btn in (self.btn_add, self.btn_delete):
            btn.setCursor(Qt.PointingHandCursor)

    # ---------------- Public API ----------------

    def set_config(self, cfg: AnnotatorConfig) -> None:
        self._cfg = cfg
        self.refresh()

    def labels(self) -> List[str]:
        return list(self._cfg.labels)

    def active_labels(self) -> List[str]:
        out: List[str] = []
        for i in range(self.list.count()):
            item = self.list.item(i)
            if item.checkState() == Qt.Checked:
                out.append(item.data(Qt.UserRole))
        return out

    def refresh(self) -> None:
        active = set(self.active_labels())
        self.list.blockSignals(True)
        try:
            self.list.clear()
            for name in self._cfg.labels:
                item = QListWidgetItem(name)
                item.setData(Qt.UserRole, name)
                item.setData(Qt.DecorationRole, QColor(get_label_color_hex(name, self._cfg)))
                item.setFlags(item.flags() | Qt.ItemIsUserCheckable)
                item.setCheckState(Qt.Checked if name in active else Qt.Unchecked)
                self.list.addItem(item)
        finally:
            self.list.blockSignals(False)

    # ---------------- Internals ----------------

    def _on_item_changed(self, _item: QListWidgetItem) -> None:
        self.active_labels_changed.emit(self.active_labels())

    def _on_add_label(self) -> None:
        name = self.name_input.text().strip()
        if not name:
            QMessageBox.warning(self, "Invalid", "Label name cannot be empty.")
            return
        if name in self._cfg.labels:
            QMessageBox.information(self, "Exists", f"Label '{name}' already exists.")
            return

        self._cfg.labels.append(name)
        # Ensure a stable color assignment exists
        get_label_color_hex(name, self._cfg)
        self.name_input.clear()
        self.refresh()
        self.labels_changed.emit()

    def _on_delete_selected(self) -> None:
        item = self.list.currentItem()
        if item is None:
            return
        name = item.data(Qt.UserRole)
        resp = QMessageBox.question(
            self,
            "Delete Label?",
            f"Delete label '{name}'?\n\nExisting regions keep it.",
            QMessageBox.Yes | QMessageBox.No,
            QMessageBox.No,
        )
        if resp != QMessageBox.Yes:
            return
        self._cfg.labels = [x for x in self._cfg.labels if x != name]
        self.refresh()
        self.labels_changed.emit()
        self.active_labels_changed.emit(self.active_labels())
