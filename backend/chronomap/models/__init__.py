"""
SQLAlchemy models for the relational store.

The engine never sees these; the SQL stores translate them to and from
the timeline document and element records.
"""
from chronomap.models.base import Base
from chronomap.models.element import ElementRow
from chronomap.models.timeline import (
    EpochRow,
    TimelineChangeRow,
    TimelineEntryRow,
    TimelineNoteRow,
)

__all__ = [
    "Base",
    "ElementRow",
    "EpochRow",
    "TimelineChangeRow",
    "TimelineEntryRow",
    "TimelineNoteRow",
]
