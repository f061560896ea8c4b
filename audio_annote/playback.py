# audio_annote/playback.py
from __future__ import annotations

from logging import getLogger
from typing import Optional

from PyQt5.QtCore import QObject, pyqtSignal

from .domain import AnnotatorConfig, PlaybackState
from .interfaces import RenderingSurface, TransportObserver

logger = getLogger(__name__)

TRANSPORT_PLAY = "play"
TRANSPORT_PAUSE = "pause"


class PlaybackController(QObject):
    """
    Owns zoom, speed, volume and position.

    Setters clamp and push the result to the rendering surface. The surface in
    turn reports ready/play/pause/position back through the ``on_*`` methods;
    play and pause both go out through the single transport observer channel.
    """
    state_changed = pyqtSignal()
    transport_changed = pyqtSignal(str)
    ready = pyqtSignal(float)

    def __init__(
        self,
        surface: RenderingSurface,
        cfg: Optional[AnnotatorConfig] = None,
        observer: Optional[TransportObserver] = None,
        parent: Optional[QObject] = None,
    ):
        super().__init__(parent)
        self._surface = surface
        self._cfg = cfg or AnnotatorConfig()
        self._observer = observer
        self._ready_fired = False
        self.state = PlaybackState(zoom_px_per_second=self._cfg.clamp_zoom(self._cfg.zoom_initial))

    @property
    def config(self) -> AnnotatorConfig:
        return self._cfg

    def set_observer(self, observer: Optional[TransportObserver]) -> None:
        self._observer = observer

    def is_ready(self) -> bool:
        return self._ready_fired

    # ---------------- Media ----------------

    def load(self, source: str) -> None:
        self._ready_fired = False
        self.state.position_seconds = 0.0
        self.state.duration_seconds = 0.0
        logger.info("loading media %s", source)
        self._surface.load(source)
        self._surface.set_speed(self.state.speed_multiplier)
        self._surface.set_zoom(self.state.zoom_px_per_second)
        self._surface.set_volume(self.state.volume)
        self.state_changed.emit()

    # ---------------- Zoom ----------------

    def set_zoom(self, value: float) -> int:
        zoom = self._cfg.clamp_zoom(value, self.state.zoom_px_per_second)
        if zoom != self.state.zoom_px_per_second:
            self.state.zoom_px_per_second = zoom
            self._surface.set_zoom(zoom)
            self.state_changed.emit()
        return zoom

    def zoom_in(self) -> int:
        return self.set_zoom(self.state.zoom_px_per_second + self._cfg.zoom_step)

    def zoom_out(self) -> int:
        return self.set_zoom(self.state.zoom_px_per_second - self._cfg.zoom_step)

    # ---------------- Volume ----------------

    def set_volume(self, value: float) -> float:
        volume = max(0.0, min(float(value), 1.0))
        # repeated 0.1 steps accumulate float noise
        volume = round(volume, 6)
        if volume != self.state.volume:
            self.state.volume = volume
            self._surface.set_volume(volume)
            self.state_changed.emit()
        return volume

    def volume_up(self) -> float:
        return self.set_volume(self.state.volume + self._cfg.volume_step)

    def volume_down(self) -> float:
        return self.set_volume(self.state.volume - self._cfg.volume_step)

    # ---------------- Speed ----------------

    def set_speed(self, value: float) -> float:
        """Apply any positive playback rate; the menu only offers its fixed values."""
        speed = float(value)
        if not speed > 0:
            logger.warning("ignoring non-positive playback speed %r", value)
            return self.state.speed_multiplier
        if speed != self.state.speed_multiplier:
            self.state.speed_multiplier = speed
            self._surface.set_speed(speed)
            self.state_changed.emit()
        return speed

    def set_speed_from_menu(self, key: str) -> float:
        speed = self._cfg.speed_menu.get(str(key))
        if speed is None:
            logger.debug("no speed menu entry %r", key)
            return self.state.speed_multiplier
        return self.set_speed(speed)

    # ---------------- Handle operations ----------------

    def seek(self, position: float) -> None:
        pos = self._clamp_position(position)
        self.state.position_seconds = pos
        self._surface.seek(pos)
        self.state_changed.emit()

    def play(self) -> None:
        self._surface.play()

    def pause(self) -> None:
        self._surface.pause()

    def seek_and_play(self, position: float, end: Optional[float] = None) -> None:
        pos = self._clamp_position(position)
        self.state.position_seconds = pos
        self._surface.seek_and_play(pos, end)
        self.state_changed.emit()

    def play_region(self, start: float, end: Optional[float] = None) -> None:
        self.seek_and_play(start, end)

    def _clamp_position(self, position: float) -> float:
        pos = max(0.0, float(position))
        if self.state.duration_seconds > 0:
            pos = min(pos, self.state.duration_seconds)
        return pos

    # ---------------- Surface events ----------------

    def on_ready(self, duration: float = 0.0) -> None:
        self.state.duration_seconds = max(0.0, float(duration or 0.0))
        self.state_changed.emit()
        if self._ready_fired:
            return
        self._ready_fired = True
        self.ready.emit(self.state.duration_seconds)
        if self._observer is not None:
            self._observer.on_ready(self)

    def on_play(self) -> None:
        self._forward_transport(TRANSPORT_PLAY)

    def on_pause(self) -> None:
        self._forward_transport(TRANSPORT_PAUSE)

    def _forward_transport(self, event: str) -> None:
        self.transport_changed.emit(event)
        if self._observer is not None:
            self._observer.on_transport_change(event)

    def on_position(self, seconds: float) -> None:
        self.state.position_seconds = max(0.0, float(seconds))
        self.state_changed.emit()
