# audio_annote/widgets/audio_surface.py
from __future__ import annotations

import os
from logging import getLogger
from typing import Any, Optional

from PyQt5.QtCore import QObject, QUrl, pyqtSignal
from PyQt5.QtMultimedia import QMediaContent, QMediaPlayer

from ..domain import AnnotatorConfig
from .waveform_view import WaveformView

logger = getLogger(__name__)


class AudioSurface(QObject):
    """
    QMediaPlayer + WaveformView behind the RenderingSurface interface.

    Key behaviors:
      - ready(duration) fires once per loaded source, as soon as the player
        knows the duration.
      - played()/paused() mirror player state transitions.
      - seek_and_play(start, end) stops at ``end`` (region playback).
    """

    # Emitted with the media duration (seconds)
    ready = pyqtSignal(float)
    played = pyqtSignal()
    paused = pyqtSignal()
    # Emitted with the playback position (seconds)
    position_changed = pyqtSignal(float)

    def __init__(
        self,
        view: WaveformView,
        cfg: Optional[AnnotatorConfig] = None,
        player: Optional[QMediaPlayer] = None,
        parent: Optional[QObject] = None,
    ):
        super().__init__(parent)
        self._cfg = cfg or AnnotatorConfig()
        self.view = view

        self._player = player if player is not None else QMediaPlayer(self)
        self._player.setNotifyInterval(50)
        self._player.positionChanged.connect(self._on_position_changed)
        self._player.durationChanged.connect(self._on_duration_changed)
        self._player.stateChanged.connect(self._on_state_changed)
        self._player.mediaStatusChanged.connect(self._on_media_status)

        self._source: str = ""
        self._ready_emitted = False
        self._stop_at: Optional[float] = None
        self._was_playing = False

        self.view.seek_requested.connect(self.seek)

    # ---------------- Media ----------------

    def load(self, source: str) -> None:
        self._source = source or ""
        self._ready_emitted = False
        self._stop_at = None
        self._player.stop()
        if not source:
            self._player.setMedia(QMediaContent())
            return
        if os.path.exists(source):
            url = QUrl.fromLocalFile(os.path.abspath(source))
        else:
            url = QUrl(source)
        self._player.setMedia(QMediaContent(url))

    def source(self) -> str:
        return self._source

    # ---------------- Transport primitives ----------------

    def set_zoom(self, px_per_second: int) -> None:
        self.view.set_zoom(px_per_second)

    def set_volume(self, volume: float) -> None:
        self._player.setVolume(int(round(max(0.0, min(float(volume), 1.0)) * 100)))

    def set_speed(self, speed: float) -> None:
        self._player.setPlaybackRate(float(speed))

    def seek(self, position: float) -> None:
        self._stop_at = None
        self._player.setPosition(int(round(max(0.0, float(position)) * 1000.0)))
        self.view.set_playhead(position)

    def seek_and_play(self, position: float, end: Optional[float] = None) -> None:
        self.seek(position)
        self._stop_at = float(end) if end is not None and end > position else None
        self._player.play()

    def play(self) -> None:
        self._player.play()

    def pause(self) -> None:
        self._player.pause()

    def is_playing(self) -> bool:
        return self._player.state() == QMediaPlayer.PlayingState

    # ---------------- Region overlay ----------------

    def draw_region(self, start: float, end: float, color: str) -> str:
        return self.view.draw_region(start, end, color)

    def patch_region(self, artifact_id: str, **props: Any) -> None:
        self.view.patch_region(artifact_id, **props)

    def discard_region(self, artifact_id: str) -> None:
        self.view.discard_region(artifact_id)

    # ---------------- Player signal handlers ----------------

    def _on_position_changed(self, pos_ms: int) -> None:
        seconds = max(0, int(pos_ms)) / 1000.0
        self.view.set_playhead(seconds)
        self.position_changed.emit(seconds)
        if self._stop_at is not None and seconds >= self._stop_at:
            self._stop_at = None
            self._player.pause()

    def _on_duration_changed(self, dur_ms: int) -> None:
        seconds = max(0, int(dur_ms or 0)) / 1000.0
        self.view.set_duration(seconds)
        self._maybe_ready()

    def _on_media_status(self, status) -> None:
        if status in (QMediaPlayer.LoadedMedia, QMediaPlayer.BufferedMedia):
            self._maybe_ready()
        elif status == QMediaPlayer.InvalidMedia:
            logger.warning("cannot play %s: %s", self._source, self._player.errorString())
        elif status == QMediaPlayer.EndOfMedia:
            self._stop_at = None

    def _on_state_changed(self, state) -> None:
        playing = state == QMediaPlayer.PlayingState
        if playing == self._was_playing:
            return
        self._was_playing = playing
        if playing:
            self.played.emit()
        else:
            self.paused.emit()

    def _maybe_ready(self) -> None:
        if self._ready_emitted:
            return
        dur = int(self._player.duration() or 0)
        if dur <= 0:
            return
        self._ready_emitted = True
        logger.info("media ready: %s (%.2fs)", self._source, dur / 1000.0)
        self.ready.emit(dur / 1000.0)
