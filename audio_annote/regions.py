# audio_annote/regions.py
from __future__ import annotations

from logging import getLogger
from typing import Callable, Dict, Iterator, List, Optional, Sequence

from PyQt5.QtCore import QObject, pyqtSignal

from .domain import (
    AnnotatorConfig,
    Region,
    RegionLabels,
    get_label_color_hex,
    normalize_bounds,
    with_alpha,
)
from .errors import MalformedEntry, RefusedCreation, RegionNotFound, SkippedEntry
from .interfaces import RegionAuthorizer

logger = getLogger(__name__)


class LabelAuthorizer:
    """
    Default region authorizer: a drag-select becomes a region only while at
    least one label is active (otherwise RefusedCreation). The new region
    carries those labels and the first label's color.
    """

    def __init__(self, cfg: AnnotatorConfig):
        self._cfg = cfg
        self._active: List[str] = []

    def set_active_labels(self, labels: Sequence[str]) -> None:
        self._active = [str(x) for x in (labels or []) if str(x)]

    def active_labels(self) -> List[str]:
        return list(self._active)

    def __call__(self, start: float, end: float) -> Optional[Region]:
        if not self._active:
            raise RefusedCreation("no active label")
        region = Region(start=start, end=end, payload=RegionLabels(labels=list(self._active)))
        self.style(region)
        return region

    def style(self, region: Region) -> None:
        labels = getattr(region.payload, "labels", None) or []
        base = get_label_color_hex(labels[0] if labels else None, self._cfg)
        region.color = with_alpha(base, self._cfg.region_alpha)
        region.selected_color = with_alpha(base, self._cfg.selected_region_alpha)


class RegionStore(QObject):
    """
    Ordered collection of regions keyed by ``Region.id``.

    The single source of truth for region identity and bounds. Every mutation
    is published through one of the signals below; the visual overlay, the UI
    and persistence are all listeners.
    """
    region_added = pyqtSignal(str)
    region_changed = pyqtSignal(str)
    region_removed = pyqtSignal(str)
    cleared = pyqtSignal()

    def __init__(
        self,
        cfg: Optional[AnnotatorConfig] = None,
        authorizer: Optional[RegionAuthorizer] = None,
        payload_factory: Callable[[], object] = RegionLabels,
        styler: Optional[Callable[[Region], None]] = None,
        parent: Optional[QObject] = None,
    ):
        super().__init__(parent)
        self._cfg = cfg or AnnotatorConfig()
        self._authorizer = authorizer
        self._payload_factory = payload_factory
        self._styler = styler
        self._regions: Dict[str, Region] = {}
        self._duration: Optional[float] = None

    # ---------------- Lookup ----------------

    def __len__(self) -> int:
        return len(self._regions)

    def __iter__(self) -> Iterator[Region]:
        return iter(list(self._regions.values()))

    def __contains__(self, region_id: object) -> bool:
        return region_id in self._regions

    def regions(self) -> List[Region]:
        return list(self._regions.values())

    def get(self, region_id: str) -> Region:
        try:
            return self._regions[region_id]
        except KeyError:
            raise RegionNotFound(region_id) from None

    def find(self, region_id: Optional[str]) -> Optional[Region]:
        if region_id is None:
            return None
        return self._regions.get(region_id)

    def selected(self) -> List[Region]:
        return [r for r in self._regions.values() if r.selected]

    @property
    def duration(self) -> Optional[float]:
        return self._duration

    def set_duration(self, seconds: Optional[float]) -> None:
        """Set the clamp ceiling and pull any region that now overhangs back inside."""
        self._duration = float(seconds) if seconds and seconds > 0 else None
        for region in list(self._regions.values()):
            s, e = normalize_bounds(region.start, region.end, self._duration)
            if (s, e) != (region.start, region.end):
                region.start, region.end = s, e
                self.region_changed.emit(region.id)

    def set_authorizer(self, authorizer: Optional[RegionAuthorizer]) -> None:
        self._authorizer = authorizer

    # ---------------- Mutations ----------------

    def create(self, start: float, end: float) -> Optional[Region]:
        """
        Ask the authorizer to materialize a region for the provisional bounds.
        Returns None on refusal; nothing is stored in that case.
        """
        s, e = normalize_bounds(start, end, self._duration)
        if self._authorizer is None:
            region: Optional[Region] = Region(start=s, end=e, payload=self._payload_factory())
        else:
            try:
                region = self._authorizer(s, e)
            except RefusedCreation as exc:
                logger.debug("region creation refused for [%.3f, %.3f]: %s", s, e, exc)
                return None
        if region is None:
            logger.debug("region creation refused for [%.3f, %.3f]", s, e)
            return None

        region.start, region.end = normalize_bounds(region.start, region.end, self._duration)
        self.add(region)
        return region

    def add(self, region: Region) -> Region:
        if region.id in self._regions:
            raise ValueError(f"region {region.id} already in store")
        self._regions[region.id] = region
        self.region_added.emit(region.id)
        return region

    def update_bounds(self, region_id: str, start: float, end: float) -> Region:
        region = self.get(region_id)
        s, e = normalize_bounds(start, end, self._duration)
        if (s, e) != (float(start), float(end)):
            logger.debug("corrected bounds for %s: [%s, %s] -> [%.3f, %.3f]", region_id, start, end, s, e)
        region.start, region.end = s, e
        # Listeners are told even when nothing moved.
        self.region_changed.emit(region_id)
        return region

    def set_selected(self, region_id: str, selected: bool) -> None:
        region = self.get(region_id)
        region.selected = bool(selected)
        self.region_changed.emit(region_id)

    def select_only(self, region_id: str) -> None:
        target = self.get(region_id)
        for region in list(self._regions.values()):
            if region is not target and region.selected:
                region.selected = False
                self.region_changed.emit(region.id)
        target.selected = True
        self.region_changed.emit(region_id)

    def unselect_all(self) -> None:
        for region in list(self._regions.values()):
            if region.selected:
                region.selected = False
                self.region_changed.emit(region.id)

    def set_color(self, region_id: str, color: str, selected_color: Optional[str] = None) -> None:
        region = self.get(region_id)
        region.color = str(color)
        if selected_color is not None:
            region.selected_color = str(selected_color)
        self.region_changed.emit(region_id)

    def remove(self, region_id: str) -> Region:
        region = self._regions.pop(region_id, None)
        if region is None:
            raise RegionNotFound(region_id)
        self.region_removed.emit(region_id)
        return region

    def clear(self) -> None:
        self._regions.clear()
        self.cleared.emit()

    # ---------------- Serialization ----------------

    def to_state_json(self) -> List[Dict]:
        """Entries for every region whose payload has something to record."""
        out: List[Dict] = []
        for region in self._regions.values():
            entry = region.to_state_json(self._cfg.from_name, self._cfg.to_name)
            if entry is not None:
                out.append(entry)
        return out

    def from_state_json(self, entries: Sequence[Dict], index_offset: int = 0) -> List[SkippedEntry]:
        """
        Add one region per persisted entry. Malformed entries are skipped and
        reported; the rest of the list still loads.
        """
        skipped: List[SkippedEntry] = []
        for i, entry in enumerate(entries or []):
            entry_id = entry.get("id") if isinstance(entry, dict) else None
            try:
                region = self._region_from_entry(entry)
            except MalformedEntry as e:
                logger.warning("skipping region entry %d (%s): %s", i + index_offset, entry_id, e)
                skipped.append(SkippedEntry(index=i + index_offset, entry_id=entry_id, reason=str(e)))
                continue
            self.add(region)
        return skipped

    def _region_from_entry(self, entry: Dict) -> Region:
        if not isinstance(entry, dict):
            raise MalformedEntry("entry is not an object")
        value = entry.get("value")
        if not isinstance(value, dict):
            raise MalformedEntry("entry has no 'value'")
        try:
            start = float(value["start"])
            end = float(value["end"])
        except KeyError as e:
            raise MalformedEntry(f"region value has no '{e.args[0]}'") from e
        except (TypeError, ValueError) as e:
            raise MalformedEntry(f"region bounds are not numbers: {e}") from e

        payload = self._payload_factory()
        payload.from_state_json(value)

        s, e = normalize_bounds(start, end, self._duration)
        region = Region(start=s, end=e, payload=payload)
        if entry.get("id"):
            region.persisted_id = str(entry["id"])
        if self._styler is not None:
            self._styler(region)
        return region
