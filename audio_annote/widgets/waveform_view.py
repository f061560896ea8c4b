# audio_annote/widgets/waveform_view.py
from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from PyQt5.QtCore import Qt, QRect, QPoint, pyqtSignal
from PyQt5.QtGui import QColor, QPainter, QPen, QFontMetrics
from PyQt5.QtWidgets import QMenu, QScrollArea, QToolTip, QWidget

from ..domain import AnnotatorConfig, with_alpha
from ..timeline import format_label, notches


@dataclass
class _Artifact:
    artifact_id: str
    start: float
    end: float
    color: str
    selected: bool = False
    highlighted: bool = False
    pending: bool = False  # drawn by a drag-select, not yet confirmed by the bridge
    tooltip: str = ""


class _WaveformCanvas(QWidget):
    region_created = pyqtSignal(str, float, float)  # (artifact_id, start, end)
    region_update_started = pyqtSignal(str)
    region_updated = pyqtSignal(str, float, float)  # drag/resize ended
    region_clicked = pyqtSignal(str)
    region_double_clicked = pyqtSignal(str)
    region_hover_enter = pyqtSignal(str)
    region_hover_leave = pyqtSignal(str)
    region_removed = pyqtSignal(str)                # user deleted the artifact on the view
    seek_requested = pyqtSignal(float)              # click on empty waveform (seconds)

    _ids = itertools.count(1)

    def __init__(self, cfg: AnnotatorConfig, parent: Optional[QWidget] = None):
        super().__init__(parent)
        self._cfg = cfg

        # Data
        self._artifacts: Dict[str, _Artifact] = {}
        self._duration: float = 0.0
        self._px_per_sec: float = float(cfg.zoom_initial)
        self._playhead: float = 0.0

        # Styling/layout
        self._pad_x = 10
        self._ruler_h = 24
        self._wave_gap = 4
        self._handle_w = 6

        # Gesture state
        self._drag_mode: Optional[str] = None  # "select" | "move" | "left" | "right" | None
        self._drag_id: Optional[str] = None
        self._drag_origin: Tuple[float, float] = (0.0, 0.0)
        self._press_x: int = 0
        self._moved: bool = False

        self._hover_id: Optional[str] = None
        self._cursor_x: Optional[int] = None

        self.setMouseTracking(True)
        self.setFocusPolicy(Qt.ClickFocus)
        self._cursor_mode: str = ""
        self._resize_to_content()

    def _set_cursor_mode(self, mode: str) -> None:
        """Avoid repeatedly setting the same cursor (prevents flicker)."""
        if mode == self._cursor_mode:
            return
        self._cursor_mode = mode
        if mode == "hand":
            self.setCursor(Qt.PointingHandCursor)
        elif mode == "resize":
            self.setCursor(Qt.SizeHorCursor)
        elif mode == "arrow":
            self.setCursor(Qt.ArrowCursor)
        else:
            self.unsetCursor()

    # ---------------- Public API ----------------

    def set_duration(self, seconds: float) -> None:
        self._duration = max(0.0, float(seconds or 0.0))
        self._resize_to_content()
        self.update()

    def duration(self) -> float:
        return self._duration

    def set_zoom(self, px_per_sec: float) -> None:
        self._px_per_sec = max(1.0, float(px_per_sec))
        self._resize_to_content()
        self.update()

    def zoom(self) -> float:
        return self._px_per_sec

    def set_playhead(self, seconds: float) -> None:
        self._playhead = max(0.0, float(seconds))
        self.update()

    def playhead(self) -> float:
        return self._playhead

    def draw_region(self, start: float, end: float, color: str) -> str:
        artifact_id = self._new_artifact_id()
        s, e = sorted((float(start), float(end)))
        self._artifacts[artifact_id] = _Artifact(artifact_id=artifact_id, start=s, end=e, color=color)
        self.update()
        return artifact_id

    def patch_region(self, artifact_id: str, **props: Any) -> None:
        art = self._artifacts.get(artifact_id)
        if art is None:
            return
        for key in ("start", "end"):
            if key in props and props[key] is not None:
                setattr(art, key, float(props[key]))
        if props.get("color"):
            art.color = str(props["color"])
        for key in ("selected", "highlighted"):
            if key in props:
                setattr(art, key, bool(props[key]))
        if "tooltip" in props:
            art.tooltip = str(props["tooltip"] or "")
        art.pending = False
        self.update()

    def discard_region(self, artifact_id: str) -> None:
        if self._artifacts.pop(artifact_id, None) is None:
            return
        if self._hover_id == artifact_id:
            self._hover_id = None
        if self._drag_id == artifact_id:
            self._drag_id = None
            self._drag_mode = None
        self.update()

    def artifact_bounds(self, artifact_id: str) -> Optional[Tuple[float, float]]:
        art = self._artifacts.get(artifact_id)
        return (art.start, art.end) if art is not None else None

    def artifact_ids(self) -> List[str]:
        return list(self._artifacts.keys())

    def artifact_props(self, artifact_id: str) -> Optional[Dict[str, Any]]:
        art = self._artifacts.get(artifact_id)
        if art is None:
            return None
        return {
            "start": art.start,
            "end": art.end,
            "color": art.color,
            "selected": art.selected,
            "highlighted": art.highlighted,
            "pending": art.pending,
            "tooltip": art.tooltip,
        }

    # ---------------- Geometry helpers ----------------

    def _new_artifact_id(self) -> str:
        return f"wavereg-{next(self._ids)}"

    def _resize_to_content(self) -> None:
        width = 2 * self._pad_x + int(round(self._duration * self._px_per_sec))
        self.setMinimumWidth(max(600, width))
        self.setMinimumHeight(self._ruler_h + self._wave_gap * 2 + int(self._cfg.waveform_height))

    def seconds_to_x(self, seconds: float) -> int:
        return self._pad_x + int(round(float(seconds) * self._px_per_sec))

    def x_to_seconds(self, x: int) -> float:
        t = (int(x) - self._pad_x) / self._px_per_sec
        if self._duration > 0:
            t = min(t, self._duration)
        return max(0.0, t)

    def _wave_rect(self) -> QRect:
        top = self._ruler_h + self._wave_gap
        width = max(1, self.seconds_to_x(self._duration) - self._pad_x)
        return QRect(self._pad_x, top, width, int(self._cfg.waveform_height))

    def _artifact_rect(self, art: _Artifact) -> QRect:
        wave = self._wave_rect()
        x1 = self.seconds_to_x(art.start)
        x2 = max(x1 + 1, self.seconds_to_x(art.end))
        return QRect(x1, wave.top(), x2 - x1, wave.height())

    # ---------------- Painting ----------------

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.Antialiasing, True)
        painter.fillRect(self.rect(), QColor("#141414"))

        self._paint_ruler(painter, event.rect())

        # Waveform band: played part in the progress color.
        wave = self._wave_rect()
        painter.fillRect(wave, QColor(self._cfg.wave_color))
        played = QRect(wave.left(), wave.top(), max(0, self.seconds_to_x(self._playhead) - wave.left()), wave.height())
        painter.fillRect(played.intersected(wave), QColor(self._cfg.progress_color))
        painter.setPen(QPen(QColor("#2b2b2b"), 1))
        painter.drawLine(wave.left(), wave.center().y(), wave.right(), wave.center().y())

        # Regions
        fm = QFontMetrics(self.font())
        for art in self._artifacts.values():
            rect = self._artifact_rect(art)
            painter.fillRect(rect, QColor(art.color))

            if art.pending:
                pen = QPen(QColor("#ffffff"), 1, Qt.DashLine)
            elif art.selected:
                pen = QPen(QColor("#ffffff"), 2)
            elif art.highlighted or art.artifact_id == self._hover_id:
                pen = QPen(QColor("#e6e6e6"), 1)
            else:
                pen = QPen(QColor("#000000"), 1)
            painter.setPen(pen)
            painter.drawRect(rect)

            if art.artifact_id == self._hover_id and not art.pending:
                left_handle = QRect(rect.left(), rect.top(), self._handle_w, rect.height())
                right_handle = QRect(rect.right() - self._handle_w + 1, rect.top(), self._handle_w, rect.height())
                painter.fillRect(left_handle, QColor(255, 255, 255, 160))
                painter.fillRect(right_handle, QColor(255, 255, 255, 160))

            if art.tooltip and fm.horizontalAdvance(art.tooltip) + 6 < rect.width():
                painter.setPen(QPen(QColor("#0b0b0b"), 1))
                painter.drawText(rect.adjusted(3, 2, -3, 0), Qt.AlignTop | Qt.AlignLeft, art.tooltip)

        # Playhead
        if self._duration > 0:
            x = self.seconds_to_x(self._playhead)
            painter.setPen(QPen(QColor("#ff2d2d"), 2))
            painter.drawLine(x, wave.top(), x, wave.bottom())

        # Hover cursor with time
        if self._cursor_x is not None and self._duration > 0:
            painter.setPen(QPen(QColor("#ffffff"), 1))
            painter.drawLine(self._cursor_x, wave.top(), self._cursor_x, wave.bottom())
            txt = format_label(self.x_to_seconds(self._cursor_x), self._px_per_sec)
            painter.drawText(self._cursor_x + 4, wave.bottom() - 4, txt)

        painter.end()

    def _paint_ruler(self, painter: QPainter, visible: QRect) -> None:
        if self._duration <= 0:
            return
        bottom = self._ruler_h - 1
        for notch in notches(self._duration, self._px_per_sec):
            x = self._pad_x + int(round(notch.x))
            if x < visible.left() - 60:
                continue
            if x > visible.right() + 60:
                break
            if notch.primary:
                length, color = 10, QColor("#4a7bd1")
            elif notch.secondary:
                length, color = 8, QColor("#4a7bd1")
            else:
                length, color = 4, QColor("#555555")
            painter.setPen(QPen(color, 1))
            painter.drawLine(x, bottom - length, x, bottom)
            if notch.label:
                painter.setPen(QPen(QColor("#d0d0d0"), 1))
                painter.drawText(x + 3, bottom - 10, notch.label)

    # ---------------- Interaction / hit testing ----------------

    def _hit_test(self, pos: QPoint) -> Tuple[Optional[_Artifact], Optional[str]]:
        # Topmost (last drawn) wins.
        for art in reversed(list(self._artifacts.values())):
            if art.pending:
                continue
            rect = self._artifact_rect(art)
            if not rect.contains(pos):
                continue
            if pos.x() < rect.left() + self._handle_w:
                return art, "left"
            if pos.x() > rect.right() - self._handle_w:
                return art, "right"
            return art, None
        return None, None

    def _set_hover(self, artifact_id: Optional[str]) -> None:
        if artifact_id == self._hover_id:
            return
        previous = self._hover_id
        self._hover_id = artifact_id
        if previous is not None and previous in self._artifacts:
            self.region_hover_leave.emit(previous)
        if artifact_id is not None:
            self.region_hover_enter.emit(artifact_id)
        self.update()

    def mousePressEvent(self, event):
        if event.button() != Qt.LeftButton:
            return super().mousePressEvent(event)

        pos = event.pos()
        self._press_x = pos.x()
        self._moved = False

        art, edge = self._hit_test(pos)
        if art is not None:
            self._drag_mode = edge or "move"
            self._drag_id = art.artifact_id
            self._drag_origin = (art.start, art.end)
        else:
            self._drag_mode = "select"
            self._drag_id = None
        event.accept()

    def mouseMoveEvent(self, event):
        pos = event.pos()
        self._cursor_x = pos.x() if self._wave_rect().contains(pos) else None

        if self._drag_mode is None:
            art, edge = self._hit_test(pos)
            self._set_hover(art.artifact_id if art is not None else None)
            if art is None:
                self._set_cursor_mode("arrow")
            else:
                self._set_cursor_mode("resize" if edge else "hand")
            if art is not None and art.tooltip:
                QToolTip.showText(event.globalPos(), art.tooltip, self)
            self.update()
            return super().mouseMoveEvent(event)

        if not self._moved and abs(pos.x() - self._press_x) < int(self._cfg.drag_slop_px):
            return
        first_move = not self._moved
        self._moved = True
        t = self.x_to_seconds(pos.x())

        if self._drag_mode == "select":
            if self._drag_id is None:
                self._drag_id = self._new_artifact_id()
                self._artifacts[self._drag_id] = _Artifact(
                    artifact_id=self._drag_id,
                    start=t,
                    end=t,
                    color=with_alpha(self._cfg.progress_color, self._cfg.region_alpha),
                    pending=True,
                )
            art = self._artifacts.get(self._drag_id)
            if art is None:
                self._drag_mode = None
                return
            t0 = self.x_to_seconds(self._press_x)
            art.start, art.end = min(t0, t), max(t0, t)
            self.update()
            return

        art = self._artifacts.get(self._drag_id or "")
        if art is None:
            # discarded mid-gesture
            self._drag_mode = None
            return
        if first_move:
            self.region_update_started.emit(art.artifact_id)

        s0, e0 = self._drag_origin
        if self._drag_mode == "left":
            art.start = min(t, e0)
        elif self._drag_mode == "right":
            art.end = max(t, s0)
        else:
            length = e0 - s0
            delta = t - self.x_to_seconds(self._press_x)
            new_start = max(0.0, s0 + delta)
            if self._duration > 0:
                new_start = min(new_start, max(0.0, self._duration - length))
            art.start, art.end = new_start, new_start + length
        self.update()

    def mouseReleaseEvent(self, event):
        if event.button() != Qt.LeftButton or self._drag_mode is None:
            return super().mouseReleaseEvent(event)

        mode, artifact_id, moved = self._drag_mode, self._drag_id, self._moved
        self._drag_mode = None
        self._drag_id = None
        self._moved = False

        art = self._artifacts.get(artifact_id or "")
        if mode == "select":
            if art is not None and moved:
                self.region_created.emit(art.artifact_id, art.start, art.end)
            else:
                self.seek_requested.emit(self.x_to_seconds(event.pos().x()))
        elif art is not None:
            if moved:
                self.region_updated.emit(art.artifact_id, art.start, art.end)
            else:
                self.region_clicked.emit(art.artifact_id)
        event.accept()

    def mouseDoubleClickEvent(self, event):
        art, _edge = self._hit_test(event.pos())
        if art is None:
            return super().mouseDoubleClickEvent(event)
        self.region_double_clicked.emit(art.artifact_id)
        event.accept()

    def contextMenuEvent(self, event):
        art, _edge = self._hit_test(event.pos())
        if art is None:
            return super().contextMenuEvent(event)
        menu = QMenu(self)
        act_delete = menu.addAction("Delete region")
        if menu.exec_(event.globalPos()) == act_delete:
            artifact_id = art.artifact_id
            self.discard_region(artifact_id)
            self.region_removed.emit(artifact_id)

    def leaveEvent(self, event):
        self._cursor_x = None
        self._set_hover(None)
        self._set_cursor_mode("arrow")
        self.update()
        return super().leaveEvent(event)


class WaveformView(QScrollArea):
    """
    Horizontally scrollable waveform band + region overlay + time ruler.

    Use:
      - set_duration(seconds) once the media reports it
      - set_zoom(px_per_second)
      - draw_region / patch_region / discard_region for the overlay
      - set_playhead(seconds)

    Signals are forwarded from the canvas.
    """
    region_created = pyqtSignal(str, float, float)
    region_update_started = pyqtSignal(str)
    region_updated = pyqtSignal(str, float, float)
    region_clicked = pyqtSignal(str)
    region_double_clicked = pyqtSignal(str)
    region_hover_enter = pyqtSignal(str)
    region_hover_leave = pyqtSignal(str)
    region_removed = pyqtSignal(str)
    seek_requested = pyqtSignal(float)

    def __init__(self, cfg: Optional[AnnotatorConfig] = None, parent: Optional[QWidget] = None):
        super().__init__(parent)

        self.setWidgetResizable(True)
        self.setHorizontalScrollBarPolicy(Qt.ScrollBarAsNeeded)
        self.setVerticalScrollBarPolicy(Qt.ScrollBarAlwaysOff)

        self.canvas = _WaveformCanvas(cfg or AnnotatorConfig(), self)
        self.setWidget(self.canvas)

        # Forward signals
        self.canvas.region_created.connect(self.region_created.emit)
        self.canvas.region_update_started.connect(self.region_update_started.emit)
        self.canvas.region_updated.connect(self.region_updated.emit)
        self.canvas.region_clicked.connect(self.region_clicked.emit)
        self.canvas.region_double_clicked.connect(self.region_double_clicked.emit)
        self.canvas.region_hover_enter.connect(self.region_hover_enter.emit)
        self.canvas.region_hover_leave.connect(self.region_hover_leave.emit)
        self.canvas.region_removed.connect(self.region_removed.emit)
        self.canvas.seek_requested.connect(self.seek_requested.emit)

    def set_duration(self, seconds: float) -> None:
        self.canvas.set_duration(seconds)

    def set_zoom(self, px_per_sec: float) -> None:
        # Keep the playhead where it was on screen.
        self.canvas.set_zoom(px_per_sec)
        self.ensureVisible(self.canvas.seconds_to_x(self.canvas.playhead()), 0, 80, 0)

    def set_playhead(self, seconds: float) -> None:
        self.canvas.set_playhead(seconds)

    def draw_region(self, start: float, end: float, color: str) -> str:
        return self.canvas.draw_region(start, end, color)

    def patch_region(self, artifact_id: str, **props: Any) -> None:
        self.canvas.patch_region(artifact_id, **props)

    def discard_region(self, artifact_id: str) -> None:
        self.canvas.discard_region(artifact_id)
