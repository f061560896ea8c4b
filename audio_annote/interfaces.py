# audio_annote/interfaces.py
"""
Collaborator protocols.

The engine (store, bridge, controller) only talks to the outside world through
these. ``widgets.audio_surface.AudioSurface`` is the Qt implementation of
``RenderingSurface``; tests use plain fakes.

Events travel the other way as plain method calls on the bridge and controller
(``RegionBridge.on_region_created``, ``PlaybackController.on_play`` ...), which
the application connects to the surface's Qt signals.
"""
from __future__ import annotations

from typing import Any, Dict, Optional, Protocol, runtime_checkable

from .domain import Region


@runtime_checkable
class RenderingSurface(Protocol):
    """Paints the waveform and region overlay and owns the media element."""

    def load(self, source: str) -> None: ...

    def set_zoom(self, px_per_second: int) -> None: ...

    def set_volume(self, volume: float) -> None: ...

    def set_speed(self, speed: float) -> None: ...

    def seek(self, position: float) -> None: ...

    def seek_and_play(self, position: float, end: Optional[float] = None) -> None:
        """Seek to ``position`` seconds and start playback, stopping at ``end`` if given."""
        ...

    def play(self) -> None: ...

    def pause(self) -> None: ...

    def draw_region(self, start: float, end: float, color: str) -> str:
        """Create a visual artifact for a domain region; returns its artifact id."""
        ...

    def patch_region(self, artifact_id: str, **props: Any) -> None:
        """Apply presentation changes (start, end, color, selected, tooltip) to an artifact."""
        ...

    def discard_region(self, artifact_id: str) -> None: ...


class RegionAuthorizer(Protocol):
    """Sole gate for region materialization; refuses by returning ``None`` or raising ``RefusedCreation``."""

    def __call__(self, start: float, end: float) -> Optional[Region]: ...


@runtime_checkable
class LabelPayload(Protocol):
    type: str

    def to_state_json(self) -> Optional[Dict]: ...

    def from_state_json(self, value: Dict) -> None: ...

    def on_mouse_over(self) -> None: ...

    def on_mouse_leave(self) -> None: ...


class PlaybackHandle(Protocol):
    """What the ready observer receives for later seek/play calls."""

    def seek(self, position: float) -> None: ...

    def play(self) -> None: ...

    def pause(self) -> None: ...

    def seek_and_play(self, position: float, end: Optional[float] = None) -> None: ...


class TransportObserver(Protocol):
    def on_ready(self, handle: PlaybackHandle) -> None: ...

    def on_transport_change(self, event: str) -> None: ...
