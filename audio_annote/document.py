# audio_annote/document.py
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from logging import getLogger
from typing import Any, Dict, List, Optional, Sequence

from .domain import AnnotatorConfig, RatingAttribute
from .errors import MalformedEntry, SkippedEntry
from .regions import RegionStore

logger = getLogger(__name__)

DOCUMENT_VERSION = 1


@dataclass
class HydrationReport:
    """Outcome of loading a persisted document: what loaded and what was skipped."""
    regions: int = 0
    attributes: int = 0
    skipped: List[SkippedEntry] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.skipped


class AnnotationDocument:
    """
    All annotation entities of one audio track: the region store plus the
    attribute entities (ratings) that describe the track as a whole.

    ``to_state_json`` / ``from_state_json`` work on the flat ``result`` list of
    ``{id, from_name, to_name, type, value}`` entries; ``to_dict`` /
    ``from_dict`` wrap it with the audio source for the document file.
    """

    def __init__(
        self,
        store: RegionStore,
        attributes: Optional[Sequence[RatingAttribute]] = None,
        cfg: Optional[AnnotatorConfig] = None,
    ):
        self.store = store
        self.attributes: List[RatingAttribute] = list(attributes or [])
        self._cfg = cfg or AnnotatorConfig()
        self.source: str = ""
        # raw entries hydration skipped; written back untouched on save
        self._unloaded: List[Any] = []

    @property
    def unloaded(self) -> List[Any]:
        return list(self._unloaded)

    def attribute(self, name: str) -> Optional[RatingAttribute]:
        return next((a for a in self.attributes if a.name == name), None)

    # ---------------- Serialize ----------------

    def to_state_json(self) -> List[Dict]:
        out = self.store.to_state_json()
        for attr in self.attributes:
            entry = attr.to_state_json()
            if entry is not None:
                out.append(entry)
        return out

    def to_dict(self) -> Dict:
        return {
            "audio": self.source,
            "result": self.to_state_json() + copy.deepcopy(self._unloaded),
            "meta_version": DOCUMENT_VERSION,
        }

    # ---------------- Hydrate ----------------

    def clear(self) -> None:
        self.store.clear()
        self._unloaded = []
        for attr in self.attributes:
            attr.unselect_all()

    def from_state_json(self, entries: Sequence[Dict]) -> HydrationReport:
        """
        Replace the current state with ``entries``. One bad entry never aborts
        the load: it is skipped and reported in the returned report.
        """
        self.clear()
        report = HydrationReport()

        for i, entry in enumerate(entries or []):
            if not isinstance(entry, dict):
                report.skipped.append(SkippedEntry(index=i, entry_id=None, reason="entry is not an object"))
                self._unloaded.append(copy.deepcopy(entry))
                continue

            entry_type = entry.get("type")
            if entry_type == "rating":
                try:
                    self._hydrate_rating(entry)
                except MalformedEntry as e:
                    logger.warning("skipping rating entry %d (%s): %s", i, entry.get("id"), e)
                    report.skipped.append(SkippedEntry(index=i, entry_id=entry.get("id"), reason=str(e)))
                    self._unloaded.append(copy.deepcopy(entry))
                    continue
                report.attributes += 1
            elif entry_type == "labels":
                skipped = self.store.from_state_json([entry], index_offset=i)
                if skipped:
                    report.skipped.extend(skipped)
                    self._unloaded.append(copy.deepcopy(entry))
                else:
                    report.regions += 1
            else:
                logger.warning("skipping entry %d with unsupported type %r", i, entry_type)
                report.skipped.append(
                    SkippedEntry(index=i, entry_id=entry.get("id"), reason=f"unsupported type {entry_type!r}")
                )
                self._unloaded.append(copy.deepcopy(entry))

        logger.info(
            "hydrated %d region(s), %d attribute(s), skipped %d",
            report.regions, report.attributes, len(report.skipped),
        )
        return report

    def from_dict(self, d: Dict) -> HydrationReport:
        d = d or {}
        self.source = str(d.get("audio") or "")
        result = d.get("result")
        if result is None:
            result = []
        if not isinstance(result, list):
            self.clear()
            report = HydrationReport()
            report.skipped.append(SkippedEntry(index=-1, entry_id=None, reason="'result' is not a list"))
            return report
        return self.from_state_json(result)

    def _hydrate_rating(self, entry: Dict) -> None:
        name = entry.get("from_name")
        if not name:
            raise MalformedEntry("rating entry has no 'from_name'")
        attr = self.attribute(str(name))
        if attr is None:
            attr = RatingAttribute(
                name=str(name),
                to_name=entry.get("to_name") or None,
                max_rating=self._cfg.rating_max,
            )
            # validate before keeping an attribute we created for this entry
            attr.from_state_json(entry)
            self.attributes.append(attr)
            return
        attr.from_state_json(entry)
