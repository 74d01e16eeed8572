"""
Timeline document schemas.

The document is a year-sorted list of entries plus the epoch list. Each
entry may carry notes and a Changes block:

    {"year": 3, "age": "Age of Rivers",
     "notes": [{"id": ..., "title": ..., "description": ..., "createdAt": ...}],
     "changes": {
        "modified": {"locations": {"loc1": {"name": "Old Town"}}, "regions": {}},
        "deleted":  {"locations": [], "regions": ["reg7"]}}}

Patches are kept as loaded (not validated as mappings) so that one
malformed patch only fails the element it belongs to.
"""
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import Field

from chronomap.schemas.common import CamelModel
from chronomap.schemas.element import ElementKind
from chronomap.schemas.epoch import Epoch


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ChangeType(str, Enum):
    UPDATED = "updated"
    DELETED = "deleted"


class KindPatches(CamelModel):
    """Element id -> partial attribute patch, per kind."""
    locations: dict[str, Any] = Field(default_factory=dict)
    regions: dict[str, Any] = Field(default_factory=dict)

    def of(self, kind: ElementKind) -> dict[str, Any]:
        if kind is ElementKind.LOCATION:
            return self.locations
        return self.regions


class KindIds(CamelModel):
    """Element ids, per kind."""
    locations: list[str] = Field(default_factory=list)
    regions: list[str] = Field(default_factory=list)

    def of(self, kind: ElementKind) -> list[str]:
        if kind is ElementKind.LOCATION:
            return self.locations
        return self.regions

    def is_empty(self) -> bool:
        return not self.locations and not self.regions


class TimelineChanges(CamelModel):
    modified: KindPatches = Field(default_factory=KindPatches)
    deleted: KindIds = Field(default_factory=KindIds)
    # Legacy per-year creation markers. creationYear on the element is
    # authoritative; this list is only read by migrations and consolidation.
    created: Optional[KindIds] = None

    def is_empty(self) -> bool:
        for kind in ElementKind:
            if self.modified.of(kind) or self.deleted.of(kind):
                return False
        return self.created is None or self.created.is_empty()


class TimelineNote(CamelModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    title: str
    description: str  # rich text
    created_at: str = Field(default_factory=_now)
    updated_at: Optional[str] = None


class TimelineEntry(CamelModel):
    year: int
    age: Optional[str] = None
    notes: Optional[list[TimelineNote]] = None
    changes: Optional[TimelineChanges] = None

    def has_annotations(self) -> bool:
        """True when the entry is worth keeping even without changes."""
        return bool(self.age) or bool(self.notes)


class TimelineDocument(CamelModel):
    entries: list[TimelineEntry] = Field(default_factory=list)
    epochs: list[Epoch] = Field(default_factory=list)


class TimelineChange(CamelModel):
    """A single change to record at a given year."""
    year: int
    element_id: str = Field(..., min_length=1)
    element_type: ElementKind
    change_type: ChangeType
    changes: dict[str, Any] = Field(default_factory=dict)


class NoteIn(CamelModel):
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)


class EntryIn(CamelModel):
    """Payload for creating or replacing a timeline entry."""
    year: Optional[int] = None
    age: Optional[str] = None
    notes: Optional[list[NoteIn]] = None
    changes: Optional[TimelineChanges] = None


class RecordChangeResult(CamelModel):
    success: bool = True
    entry: TimelineEntry


class ElementHistoryRequest(CamelModel):
    element_id: str = Field(..., min_length=1)
    element_type: ElementKind
