# audio_annote/main_window.py
from __future__ import annotations

import os
from logging import getLogger
from typing import List, Optional

from PyQt5.QtCore import Qt, QTimer
from PyQt5.QtGui import QKeySequence
from PyQt5.QtWidgets import (
    QFileDialog,
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QMenu,
    QMessageBox,
    QPushButton,
    QShortcut,
    QSlider,
    QSplitter,
    QToolButton,
    QVBoxLayout,
    QWidget,
)

from .bridge import RegionBridge
from .document import AnnotationDocument, HydrationReport
from .domain import AnnotatorConfig, RatingAttribute
from .interfaces import PlaybackHandle
from .persistence import (
    default_document_path,
    load_config,
    load_document,
    save_config,
    save_document,
)
from .playback import TRANSPORT_PLAY, PlaybackController
from .regions import LabelAuthorizer, RegionStore
from .tasks import TaskQueue
from .timeline import seconds_to_time_str
from .widgets.audio_surface import AudioSurface
from .widgets.labels_panel import LabelsPanel
from .widgets.rating_bar import RatingBar
from .widgets.waveform_view import WaveformView

logger = getLogger(__name__)


class MainWindow(QMainWindow):
    def __init__(self, root_dir: Optional[str] = None):
        super().__init__()
        self.setWindowTitle("Audio-Annote (Audio Region Annotation Tool)")
        self.resize(1400, 700)

        self.root_dir: Optional[str] = None
        self.cfg: AnnotatorConfig = load_config(root_dir) or AnnotatorConfig()
        self.audio_path: Optional[str] = None
        self.document_path: Optional[str] = None
        self._handle: Optional[PlaybackHandle] = None
        self._playing = False

        # Deferred work runs on the next Qt event-loop pass.
        self.queue = TaskQueue(wake=lambda: QTimer.singleShot(0, self.queue.run_pending))

        self.authorizer = LabelAuthorizer(self.cfg)
        self.store = RegionStore(self.cfg, authorizer=self.authorizer, styler=self.authorizer.style, parent=self)
        self.rating = RatingAttribute(
            name=self.cfg.rating_name,
            to_name=self.cfg.to_name,
            max_rating=self.cfg.rating_max,
            hotkey=self.cfg.rating_hotkey,
        )
        self.document = AnnotationDocument(self.store, [self.rating], self.cfg)

        # Autosave debounce: many store signals per gesture -> one write.
        self._autosave_timer = QTimer(self)
        self._autosave_timer.setSingleShot(True)
        self._autosave_timer.setInterval(400)
        self._autosave_timer.timeout.connect(self._autosave_document)

        self._build_ui()

        self.surface = AudioSurface(self.waveform, self.cfg, parent=self)
        self.controller = PlaybackController(self.surface, self.cfg, observer=self, parent=self)
        self.bridge = RegionBridge(self.store, self.surface, self.controller, self.queue, self.cfg, parent=self)
        self._wire()

        self.set_root_dir(root_dir)
        self._update_enabled_state()

    # ---------------- UI ----------------

    def _build_ui(self) -> None:
        central = QWidget()
        self.setCentralWidget(central)

        main_layout = QVBoxLayout(central)
        main_layout.setContentsMargins(6, 6, 6, 6)
        main_layout.setSpacing(6)

        # ===== Top: root + audio + document =====
        top = QHBoxLayout()
        top.setSpacing(10)
        main_layout.addLayout(top)

        root_box = QGroupBox("Data Root")
        root_lay = QHBoxLayout(root_box)
        root_lay.setContentsMargins(6, 6, 6, 6)
        self.root_label = QLabel("Not set")
        self.btn_set_root = QPushButton("Select Root")
        self.btn_set_root.clicked.connect(self._choose_root_dir)
        root_lay.addWidget(self.root_label, stretch=1)
        root_lay.addWidget(self.btn_set_root)
        top.addWidget(root_box, stretch=3)

        doc_box = QGroupBox("Audio")
        doc_lay = QHBoxLayout(doc_box)
        doc_lay.setContentsMargins(6, 6, 6, 6)
        self.btn_open_audio = QPushButton("Open Audio")
        self.btn_open_doc = QPushButton("Open Annotations")
        self.btn_save_doc = QPushButton("Save Annotations")
        self.btn_open_audio.clicked.connect(self._choose_audio)
        self.btn_open_doc.clicked.connect(self._choose_document)
        self.btn_save_doc.clicked.connect(self._save_document_as)
        self.audio_label = QLabel("No audio loaded")
        self.audio_label.setTextInteractionFlags(Qt.TextSelectableByMouse)
        doc_lay.addWidget(self.btn_open_audio)
        doc_lay.addWidget(self.btn_open_doc)
        doc_lay.addWidget(self.btn_save_doc)
        doc_lay.addStretch()
        doc_lay.addWidget(self.audio_label)
        top.addWidget(doc_box, stretch=5)

        # ===== Middle: waveform (left) + labels/rating (right) =====
        split = QSplitter(Qt.Horizontal)
        main_layout.addWidget(split, stretch=1)

        left = QWidget()
        left_lay = QVBoxLayout(left)
        left_lay.setContentsMargins(0, 0, 0, 0)
        left_lay.setSpacing(6)

        self.waveform = WaveformView(self.cfg)
        left_lay.addWidget(self.waveform, stretch=1)

        # Transport row
        play_bar = QHBoxLayout()
        play_bar.setSpacing(8)
        self.btn_play = QPushButton("Play")
        self.btn_play.clicked.connect(self._toggle_play)
        self.timeline_label = QLabel("00:00 / 00:00")
        play_bar.addWidget(self.btn_play)
        play_bar.addSpacing(12)
        play_bar.addWidget(self.timeline_label)
        play_bar.addStretch()

        # Zoom: out button, slider, in button
        self.btn_zoom_out = QToolButton()
        self.btn_zoom_out.setText("-")
        self.btn_zoom_out.setToolTip("Zoom out")
        self.zoom_slider = QSlider(Qt.Horizontal)
        self.zoom_slider.setRange(self.cfg.zoom_min, self.cfg.zoom_max)
        self.zoom_slider.setSingleStep(self.cfg.zoom_step)
        self.zoom_slider.setPageStep(self.cfg.zoom_step * 5)
        self.zoom_slider.setValue(self.cfg.clamp_zoom(self.cfg.zoom_initial))
        self.zoom_slider.setMinimumWidth(220)
        self.btn_zoom_in = QToolButton()
        self.btn_zoom_in.setText("+")
        self.btn_zoom_in.setToolTip("Zoom in")
        play_bar.addWidget(QLabel("Zoom"))
        play_bar.addWidget(self.btn_zoom_out)
        play_bar.addWidget(self.zoom_slider)
        play_bar.addWidget(self.btn_zoom_in)

        # Volume slider (0..1 in 0.1 steps, mapped to 0..10)
        self.volume_slider = QSlider(Qt.Horizontal)
        self.volume_slider.setRange(0, 10)
        self.volume_slider.setValue(10)
        self.volume_slider.setMaximumWidth(120)
        play_bar.addSpacing(12)
        play_bar.addWidget(QLabel("Volume"))
        play_bar.addWidget(self.volume_slider)

        # Speed dropdown
        self.btn_speed = QToolButton()
        self.btn_speed.setText("Speed 1.0")
        self.btn_speed.setPopupMode(QToolButton.InstantPopup)
        speed_menu = QMenu(self.btn_speed)
        for key, speed in self.cfg.speed_menu.items():
            act = speed_menu.addAction(f"{speed:g}")
            act.triggered.connect(lambda _checked=False, k=key: self.controller.set_speed_from_menu(k))
        self.btn_speed.setMenu(speed_menu)
        play_bar.addSpacing(12)
        play_bar.addWidget(self.btn_speed)

        left_lay.addLayout(play_bar)

        # Region actions
        region_bar = QHBoxLayout()
        self.btn_delete_region = QPushButton("Delete Selected Region")
        self.btn_delete_region.clicked.connect(self._delete_selected_regions)
        self.region_label = QLabel("Regions: 0")
        region_bar.addWidget(self.btn_delete_region)
        region_bar.addStretch()
        region_bar.addWidget(self.region_label)
        left_lay.addLayout(region_bar)

        # Right side: labels + rating
        right = QWidget()
        right_lay = QVBoxLayout(right)
        right_lay.setContentsMargins(0, 0, 0, 0)
        self.labels_panel = LabelsPanel(self.cfg)
        right_lay.addWidget(self.labels_panel, stretch=1)

        rating_box = QGroupBox("Rating")
        rating_lay = QVBoxLayout(rating_box)
        rating_lay.setContentsMargins(6, 6, 6, 6)
        self.rating_bar = RatingBar(self.rating, self.cfg)
        rating_lay.addWidget(self.rating_bar)
        right_lay.addWidget(rating_box)

        split.addWidget(left)
        split.addWidget(right)
        split.setStretchFactor(0, 12)
        split.setStretchFactor(1, 3)

        for btn in (
            self.btn_set_root, self.btn_open_audio, self.btn_open_doc, self.btn_save_doc,
            self.btn_play, self.btn_zoom_in, self.btn_zoom_out, self.btn_speed, self.btn_delete_region,
        ):
            btn.setCursor(Qt.PointingHandCursor)

    def _wire(self) -> None:
        # Surface events -> bridge / controller
        self.waveform.region_created.connect(self.bridge.on_region_created)
        self.waveform.region_update_started.connect(self.bridge.on_region_update_started)
        self.waveform.region_updated.connect(self.bridge.on_region_updated)
        self.waveform.region_clicked.connect(self.bridge.on_region_clicked)
        self.waveform.region_double_clicked.connect(self.bridge.on_region_double_clicked)
        self.waveform.region_hover_enter.connect(self.bridge.on_hover_enter)
        self.waveform.region_hover_leave.connect(self.bridge.on_hover_leave)
        self.waveform.region_removed.connect(self.bridge.on_region_removed)

        self.surface.ready.connect(self.controller.on_ready)
        self.surface.played.connect(self.controller.on_play)
        self.surface.paused.connect(self.controller.on_pause)
        self.surface.position_changed.connect(self.controller.on_position)

        # Transport controls -> controller
        self.zoom_slider.valueChanged.connect(self._on_zoom_slider)
        self.btn_zoom_in.clicked.connect(self.controller.zoom_in)
        self.btn_zoom_out.clicked.connect(self.controller.zoom_out)
        self.volume_slider.valueChanged.connect(lambda v: self.controller.set_volume(v / 10.0))
        self.controller.state_changed.connect(self._on_playback_state)

        # Domain -> UI refresh + autosave
        for sig in (self.store.region_added, self.store.region_changed, self.store.region_removed):
            sig.connect(self._on_store_changed)
        self.store.cleared.connect(self._on_store_changed)
        self.rating_bar.rating_changed.connect(lambda _v: self._schedule_autosave())

        self.labels_panel.active_labels_changed.connect(self.authorizer.set_active_labels)
        self.labels_panel.labels_changed.connect(self._save_config)

        # Hotkeys
        QShortcut(QKeySequence(Qt.Key_Space), self, activated=self._toggle_play)
        QShortcut(QKeySequence(QKeySequence.Delete), self, activated=self._delete_selected_regions)
        QShortcut(QKeySequence(QKeySequence.ZoomIn), self, activated=self.controller.zoom_in)
        QShortcut(QKeySequence(QKeySequence.ZoomOut), self, activated=self.controller.zoom_out)
        if self.rating.hotkey:
            QShortcut(QKeySequence(self.rating.hotkey), self, activated=self.rating_bar.advance)

    # ---------------- Transport observer ----------------

    def on_ready(self, handle: PlaybackHandle) -> None:
        self._handle = handle
        self._update_enabled_state()
        self._on_playback_state()

    def on_transport_change(self, event: str) -> None:
        self._playing = event == TRANSPORT_PLAY
        self.btn_play.setText("Pause" if self._playing else "Play")

    # ---------------- Root dir / config ----------------

    def _choose_root_dir(self) -> None:
        d = QFileDialog.getExistingDirectory(self, "Select Data Root")
        if d:
            self.set_root_dir(d)

    def set_root_dir(self, root_dir: Optional[str]) -> None:
        if not root_dir:
            self.root_label.setText("Not set")
            return
        self.root_dir = root_dir
        self.root_label.setText(root_dir)

        cfg = load_config(root_dir)
        if cfg is not None:
            # Labels and their colors come from the root; engine tuning stays as constructed.
            self.cfg.labels = cfg.labels
            self.cfg.label_color_map = cfg.label_color_map
        self.labels_panel.set_config(self.cfg)
        self._save_config()

    def _save_config(self) -> None:
        if not self.root_dir:
            return
        try:
            save_config(self.cfg, self.root_dir)
        except OSError as e:
            QMessageBox.warning(self, "Save config failed", str(e))

    # ---------------- Audio / documents ----------------

    def _choose_audio(self) -> None:
        path, _ = QFileDialog.getOpenFileName(
            self, "Open Audio", self.root_dir or "", "Audio (*.wav *.mp3 *.ogg *.flac *.m4a);;All files (*)"
        )
        if path:
            self.open_audio(path)

    def open_audio(self, path: str) -> None:
        self._flush_autosave()
        self.store.clear()
        self.rating.unselect_all()
        self.rating_bar.refresh()
        # Clearing the previous track is not an edit of the new one.
        self._autosave_timer.stop()

        self._handle = None
        self.audio_path = path
        self.document.source = path
        self.document_path = default_document_path(path)
        self.audio_label.setText(os.path.basename(path))
        self.controller.load(path)

        if os.path.exists(self.document_path):
            self.open_document(self.document_path)
        self._update_enabled_state()

    def _choose_document(self) -> None:
        path, _ = QFileDialog.getOpenFileName(
            self, "Open Annotations", os.path.dirname(self.document_path or "") or (self.root_dir or ""),
            "Annotations (*.json)",
        )
        if path:
            self.open_document(path)

    def open_document(self, path: str) -> Optional[HydrationReport]:
        try:
            report = load_document(self.document, path)
        except (OSError, ValueError) as e:
            QMessageBox.warning(self, "Open failed", f"Could not read {path}:\n\n{e}")
            return None

        # hydration itself is not an edit
        self._autosave_timer.stop()
        self.document_path = path
        self.rating_bar.refresh()
        if report.skipped:
            lines = [f"#{s.index} ({s.entry_id or 'no id'}): {s.reason}" for s in report.skipped[:20]]
            QMessageBox.warning(
                self,
                "Partially loaded",
                f"{len(report.skipped)} entr(ies) could not be loaded and were skipped:\n\n" + "\n".join(lines),
            )
        if not self.audio_path and self.document.source and os.path.exists(self.document.source):
            self.audio_path = self.document.source
            self.audio_label.setText(os.path.basename(self.audio_path))
            self.controller.load(self.audio_path)
        return report

    def _save_document_as(self) -> None:
        path, _ = QFileDialog.getSaveFileName(
            self, "Save Annotations", self.document_path or "", "Annotations (*.json)"
        )
        if not path:
            return
        self.document_path = path
        self._autosave_document()

    def _schedule_autosave(self) -> None:
        if self.document_path:
            self._autosave_timer.start()

    def _flush_autosave(self) -> None:
        if self._autosave_timer.isActive():
            self._autosave_timer.stop()
            self._autosave_document()

    def _autosave_document(self) -> None:
        if not self.document_path:
            return
        try:
            save_document(self.document, self.document_path)
        except (OSError, ValueError) as e:
            QMessageBox.warning(self, "Autosave failed", str(e))

    # ---------------- Handlers ----------------

    def _toggle_play(self) -> None:
        if self._handle is None:
            return
        if self._playing:
            self._handle.pause()
        else:
            self._handle.play()

    def _delete_selected_regions(self) -> None:
        removed: List[str] = self.bridge.delete_selected()
        if removed:
            logger.debug("deleted %d region(s)", len(removed))

    def _on_zoom_slider(self, value: int) -> None:
        zoom = self.controller.set_zoom(value)
        if self.zoom_slider.value() != zoom:
            self.zoom_slider.blockSignals(True)
            self.zoom_slider.setValue(zoom)
            self.zoom_slider.blockSignals(False)

    def _on_store_changed(self, *_args) -> None:
        self.region_label.setText(f"Regions: {len(self.store)}")
        self.btn_delete_region.setEnabled(bool(self.store.selected()))
        self._schedule_autosave()

    def _on_playback_state(self) -> None:
        st = self.controller.state
        self.timeline_label.setText(
            f"{seconds_to_time_str(st.position_seconds)} / {seconds_to_time_str(st.duration_seconds)}"
        )
        self.btn_speed.setText(f"Speed {st.speed_multiplier:g}")
        if self.zoom_slider.value() != st.zoom_px_per_second:
            self.zoom_slider.blockSignals(True)
            self.zoom_slider.setValue(st.zoom_px_per_second)
            self.zoom_slider.blockSignals(False)

    def _update_enabled_state(self) -> None:
        has_audio = bool(self.audio_path)
        ready = self._handle is not None
        self.btn_play.setEnabled(ready)
        self.btn_save_doc.setEnabled(has_audio)
        for w in (self.zoom_slider, self.btn_zoom_in, self.btn_zoom_out, self.volume_slider, self.btn_speed):
            w.setEnabled(has_audio)
        self.btn_delete_region.setEnabled(bool(self.store.selected()))

    def closeEvent(self, event):
        self._flush_autosave()
        self._save_config()
        super().closeEvent(event)
