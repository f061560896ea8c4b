# audio_annote/bridge.py
from __future__ import annotations

import enum
from contextlib import contextmanager
from logging import getLogger
from typing import Any, Dict, Iterator, List, Optional, Set

from PyQt5.QtCore import QObject, pyqtSignal

from .domain import AnnotatorConfig, Region
from .errors import RegionNotFound
from .interfaces import RenderingSurface
from .playback import PlaybackController
from .regions import RegionStore
from .tasks import TaskQueue

logger = getLogger(__name__)


class RegionState(enum.Enum):
    PENDING = "pending"
    ACTIVE = "active"
    SELECTED = "selected"
    EDITING = "editing"
    REMOVED = "removed"


class RegionBridge(QObject):
    """
    Translates rendering-surface gestures into store mutations, and store
    signals into explicit patch calls on the surface.

    The surface never holds a reference to a domain region: the bridge keeps
    the artifact id <-> region id index. Handlers for artifacts whose region is
    gone (deleted while an event was still queued) do nothing.

    Surface calls made while the bridge is handling one of the surface's own
    events are deferred to the task queue, so the surface is never mutated from
    inside its own callback.
    """
    region_committed = pyqtSignal(str)  # region id created from a gesture
    selection_changed = pyqtSignal()

    def __init__(
        self,
        store: RegionStore,
        surface: RenderingSurface,
        controller: PlaybackController,
        queue: TaskQueue,
        cfg: Optional[AnnotatorConfig] = None,
        parent: Optional[QObject] = None,
    ):
        super().__init__(parent)
        self._store = store
        self._surface = surface
        self._controller = controller
        self._queue = queue
        self._cfg = cfg or AnnotatorConfig()

        self._artifact_to_region: Dict[str, str] = {}
        self._region_to_artifact: Dict[str, str] = {}
        self._states: Dict[str, RegionState] = {}
        self._pending_artifacts: Set[str] = set()
        self._surface_removed: Set[str] = set()

        self._creating: Optional[str] = None
        self._dispatch_depth = 0

        store.region_added.connect(self._on_store_added)
        store.region_changed.connect(self._on_store_changed)
        store.region_removed.connect(self._on_store_removed)
        store.cleared.connect(self._on_store_cleared)
        controller.ready.connect(self._on_media_ready)

    # ---------------- Index / state queries ----------------

    def region_for(self, artifact_id: str) -> Optional[Region]:
        return self._store.find(self._artifact_to_region.get(artifact_id))

    def artifact_for(self, region_id: str) -> Optional[str]:
        return self._region_to_artifact.get(region_id)

    def state_of(self, region_id: str) -> Optional[RegionState]:
        state = self._states.get(region_id)
        if state is None and region_id not in self._store:
            # removed regions are forgotten
            return RegionState.REMOVED
        return state

    def artifact_state(self, artifact_id: str) -> Optional[RegionState]:
        """PENDING while a drag-select awaits the authorizer, else the state of its region."""
        if artifact_id in self._pending_artifacts:
            return RegionState.PENDING
        region_id = self._artifact_to_region.get(artifact_id)
        return self._states.get(region_id) if region_id is not None else None

    def is_pending(self, artifact_id: str) -> bool:
        return artifact_id in self._pending_artifacts

    # ---------------- Surface -> domain ----------------

    def on_region_created(self, artifact_id: str, start: float, end: float) -> Optional[Region]:
        """A drag-select finished on the surface with provisional bounds."""
        if artifact_id in self._artifact_to_region:
            return self.region_for(artifact_id)

        with self._dispatch():
            self._pending_artifacts.add(artifact_id)
            self._creating = artifact_id
            try:
                region = self._store.create(start, end)
            finally:
                self._creating = None
                self._pending_artifacts.discard(artifact_id)

            if region is None:
                self._call_surface(None, self._surface.discard_region, artifact_id)
                return None

        self.region_committed.emit(region.id)
        return region

    def on_region_update_started(self, artifact_id: str) -> None:
        region = self.region_for(artifact_id)
        if region is None:
            return
        self._states[region.id] = RegionState.EDITING

    def on_region_updated(self, artifact_id: str, start: float, end: float) -> None:
        """Drag/resize of an existing region ended."""
        region = self.region_for(artifact_id)
        if region is None:
            logger.debug("update-end for unknown artifact %s ignored", artifact_id)
            return
        with self._dispatch():
            self._states[region.id] = self._resting_state(region)
            self._store.update_bounds(region.id, start, end)

    def on_region_clicked(self, artifact_id: str) -> None:
        region = self.region_for(artifact_id)
        if region is None:
            return
        with self._dispatch():
            self._store.select_only(region.id)
        self.selection_changed.emit()

    def on_region_double_clicked(self, artifact_id: str) -> None:
        region = self.region_for(artifact_id)
        if region is None:
            return
        # Runs on the next tick, after the surface's own dblclick dispatch returns.
        self._queue.submit(self._play_region, region.id, key=region.id)

    def on_hover_enter(self, artifact_id: str) -> None:
        region = self.region_for(artifact_id)
        if region is None:
            return
        hook = getattr(region.payload, "on_mouse_over", None)
        if hook is not None:
            hook()
        with self._dispatch():
            self._call_surface(region.id, self._patch_hover, region.id)

    def on_hover_leave(self, artifact_id: str) -> None:
        region = self.region_for(artifact_id)
        if region is None:
            return
        hook = getattr(region.payload, "on_mouse_leave", None)
        if hook is not None:
            hook()
        with self._dispatch():
            self._call_surface(region.id, self._patch_hover, region.id)

    def on_region_removed(self, artifact_id: str) -> None:
        """The surface itself dropped the artifact (e.g. delete key on the view)."""
        region_id = self._artifact_to_region.get(artifact_id)
        if region_id is None:
            return
        self._surface_removed.add(artifact_id)
        with self._dispatch():
            try:
                self._store.remove(region_id)
            except RegionNotFound:
                logger.debug("artifact %s removed after its region", artifact_id)
            finally:
                self._surface_removed.discard(artifact_id)

    def delete_selected(self) -> List[str]:
        removed: List[str] = []
        for region in self._store.selected():
            try:
                self._store.remove(region.id)
            except RegionNotFound:
                continue
            removed.append(region.id)
        if removed:
            self.selection_changed.emit()
        return removed

    # ---------------- Domain -> surface projection ----------------

    def _on_store_added(self, region_id: str) -> None:
        region = self._store.find(region_id)
        if region is None:
            return

        if self._creating is not None:
            # Gesture-created: the artifact already exists on the surface.
            artifact_id = self._creating
            self._index(artifact_id, region_id)
            self._states[region_id] = RegionState.ACTIVE
            self._call_surface(region_id, self._patch_full, region_id)
            return

        # Hydrated or programmatic: the surface has nothing yet.
        artifact_id = self._surface.draw_region(region.start, region.end, region.display_color)
        self._index(artifact_id, region_id)
        self._states[region_id] = self._resting_state(region)

    def _on_store_changed(self, region_id: str) -> None:
        region = self._store.find(region_id)
        if region is None:
            return
        if self._states.get(region_id) is not RegionState.EDITING:
            self._states[region_id] = self._resting_state(region)
        self._call_surface(region_id, self._patch_full, region_id)

    def _on_store_removed(self, region_id: str) -> None:
        self._queue.cancel(region_id)
        self._states.pop(region_id, None)
        artifact_id = self._region_to_artifact.pop(region_id, None)
        if artifact_id is None:
            return
        self._artifact_to_region.pop(artifact_id, None)
        if artifact_id not in self._surface_removed:
            self._call_surface(None, self._surface.discard_region, artifact_id)

    def _on_store_cleared(self) -> None:
        for region_id, artifact_id in list(self._region_to_artifact.items()):
            self._queue.cancel(region_id)
            self._call_surface(None, self._surface.discard_region, artifact_id)
        self._states.clear()
        self._region_to_artifact.clear()
        self._artifact_to_region.clear()

    def _on_media_ready(self, duration: float) -> None:
        self._store.set_duration(duration)

    # ---------------- Helpers ----------------

    @contextmanager
    def _dispatch(self) -> Iterator[None]:
        self._dispatch_depth += 1
        try:
            yield
        finally:
            self._dispatch_depth -= 1

    def _call_surface(self, key: Optional[str], fn: Any, *args: Any) -> None:
        if self._dispatch_depth > 0:
            self._queue.submit(fn, *args, key=key)
        else:
            fn(*args)

    def _index(self, artifact_id: str, region_id: str) -> None:
        self._artifact_to_region[artifact_id] = region_id
        self._region_to_artifact[region_id] = artifact_id

    def _patch_full(self, region_id: str) -> None:
        region = self._store.find(region_id)
        artifact_id = self._region_to_artifact.get(region_id)
        if region is None or artifact_id is None:
            return
        self._surface.patch_region(
            artifact_id,
            start=region.start,
            end=region.end,
            color=region.display_color,
            selected=region.selected,
        )

    def _patch_hover(self, region_id: str) -> None:
        region = self._store.find(region_id)
        artifact_id = self._region_to_artifact.get(region_id)
        if region is None or artifact_id is None:
            return
        tooltip = region.payload.tooltip() if hasattr(region.payload, "tooltip") else ""
        self._surface.patch_region(
            artifact_id,
            highlighted=bool(getattr(region.payload, "highlighted", False)),
            tooltip=tooltip,
        )

    def _play_region(self, region_id: str) -> None:
        region = self._store.find(region_id)
        if region is None:
            return
        self._controller.play_region(region.start, region.end)

    @staticmethod
    def _resting_state(region: Region) -> RegionState:
        return RegionState.SELECTED if region.selected else RegionState.ACTIVE
