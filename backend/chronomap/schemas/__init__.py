"""Pydantic schemas for the timeline document and API request/response validation."""
from chronomap.schemas.common import CamelModel, OperationResult
from chronomap.schemas.element import ElementIn, ElementKind, ElementList, FutureChanges
from chronomap.schemas.epoch import Epoch, EpochCreate, EpochDeleted, EpochUpdate
from chronomap.schemas.timeline import (
    ChangeType,
    ElementHistoryRequest,
    EntryIn,
    NoteIn,
    RecordChangeResult,
    TimelineChange,
    TimelineChanges,
    TimelineDocument,
    TimelineEntry,
    TimelineNote,
)

__all__ = [
    "CamelModel", "OperationResult",
    "ElementIn", "ElementKind", "ElementList", "FutureChanges",
    "Epoch", "EpochCreate", "EpochDeleted", "EpochUpdate",
    "ChangeType", "ElementHistoryRequest", "EntryIn", "NoteIn",
    "RecordChangeResult", "TimelineChange", "TimelineChanges",
    "TimelineDocument", "TimelineEntry", "TimelineNote",
]
