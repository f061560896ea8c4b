# audio_annote/errors.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


class AnnotationError(Exception):
    """Base class for errors raised by the annotation engine."""


class RefusedCreation(AnnotationError):
    """The region authorizer declined to materialize a provisional region."""


class RegionNotFound(AnnotationError, KeyError):
    """A store mutation referenced a region id that is not (or no longer) present."""

    def __init__(self, region_id: str):
        super().__init__(region_id)
        self.region_id = region_id

    def __str__(self) -> str:
        return f"region not found: {self.region_id}"


class MalformedEntry(AnnotationError, ValueError):
    """A persisted entry is missing required fields."""


@dataclass(frozen=True)
class SkippedEntry:
    """Diagnostic for a persisted entry that hydration had to skip."""
    index: int
    entry_id: Optional[str]
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {"index": int(self.index), "id": self.entry_id, "reason": self.reason}
