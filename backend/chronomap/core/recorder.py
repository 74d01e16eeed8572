"""
Change Recorder

Writes single changes into the timeline document: a patch or a deletion
for one element at one year. Also holds the plain entry operations
(create / replace / delete an entry) and the attribute diff used to turn
an edited record into a minimal patch.

All functions mutate the document they are given. Persisting it is the
caller's job, through the store's transactional update.
"""
import logging
from typing import Any, Mapping, Optional

from chronomap.core.errors import NotFoundError, ValidationError
from chronomap.schemas.element import ElementKind
from chronomap.schemas.timeline import (
    ChangeType,
    EntryIn,
    TimelineChange,
    TimelineChanges,
    TimelineDocument,
    TimelineEntry,
    TimelineNote,
)

logger = logging.getLogger(__name__)

_MISSING = object()


def find_entry(document: TimelineDocument, year: int) -> Optional[TimelineEntry]:
    for entry in document.entries:
        if entry.year == year:
            return entry
    return None


def sort_entries(document: TimelineDocument) -> None:
    document.entries.sort(key=lambda entry: entry.year)


def prune_changes(entry: TimelineEntry) -> None:
    """Drop an empty Changes block so the stored document stays clean."""
    if entry.changes is not None and entry.changes.is_empty():
        entry.changes = None


def record_change(document: TimelineDocument, change: TimelineChange) -> TimelineEntry:
    """
    Record a patch or deletion for one element at `change.year`.

    The entry for the year is created (and the entries re-sorted) if needed.
    A deletion clears any patch for the same element in that year and vice
    versa, so an id is never both modified and deleted within one entry.
    """
    entry = find_entry(document, change.year)
    if entry is None:
        entry = TimelineEntry(year=change.year)
        document.entries.append(entry)
        sort_entries(document)

    if entry.changes is None:
        entry.changes = TimelineChanges()
    changes = entry.changes

    kind = change.element_type
    modified = changes.modified.of(kind)
    deleted = changes.deleted.of(kind)

    if change.change_type is ChangeType.UPDATED:
        modified[change.element_id] = dict(change.changes)
        if change.element_id in deleted:
            deleted[:] = [element_id for element_id in deleted if element_id != change.element_id]
    else:
        if change.element_id not in deleted:
            deleted.append(change.element_id)
        modified.pop(change.element_id, None)

    prune_changes(entry)
    logger.info(
        "Recorded %s %s %s in year %s",
        change.change_type.value, kind.value, change.element_id, change.year,
    )
    return entry


def remove_change(
    document: TimelineDocument,
    year: int,
    element_id: str,
    kind: ElementKind,
) -> TimelineEntry:
    """Remove whatever change is recorded for one element in one year."""
    entry = find_entry(document, year)
    if entry is None or entry.changes is None:
        raise NotFoundError(f"No changes recorded in year {year}")

    changes = entry.changes
    modified = changes.modified.of(kind)
    deleted = changes.deleted.of(kind)
    if element_id not in modified and element_id not in deleted:
        raise NotFoundError(f"No change for {kind.value} {element_id} in year {year}")

    modified.pop(element_id, None)
    deleted[:] = [other for other in deleted if other != element_id]
    prune_changes(entry)
    return entry


def diff_attributes(
    old: Optional[Mapping[str, Any]],
    new: Mapping[str, Any],
) -> dict[str, Any]:
    """
    Fields of `new` whose value differs from `old`.

    Lists and mappings compare by value. With no `old` record everything
    in `new` counts as changed.
    """
    if old is None:
        return dict(new)
    return {
        name: value
        for name, value in new.items()
        if old.get(name, _MISSING) != value
    }


def _build_entry(year: int, payload: EntryIn) -> TimelineEntry:
    notes = None
    if payload.notes is not None:
        notes = [TimelineNote(title=note.title, description=note.description) for note in payload.notes]

    entry = TimelineEntry(year=year, age=payload.age, notes=notes, changes=payload.changes)
    prune_changes(entry)
    return entry


def add_entry(document: TimelineDocument, payload: EntryIn) -> TimelineEntry:
    if payload.year is None:
        raise ValidationError("Year is required")
    if find_entry(document, payload.year) is not None:
        raise ValidationError(f"Timeline entry for year {payload.year} already exists")

    entry = _build_entry(payload.year, payload)
    document.entries.append(entry)
    sort_entries(document)
    return entry


def replace_entry(document: TimelineDocument, year: int, payload: EntryIn) -> TimelineEntry:
    for index, existing in enumerate(document.entries):
        if existing.year == year:
            entry = _build_entry(year, payload)
            document.entries[index] = entry
            return entry
    raise NotFoundError(f"Timeline entry for year {year} not found")


def delete_entry(document: TimelineDocument, year: int) -> TimelineEntry:
    entry = find_entry(document, year)
    if entry is None:
        raise NotFoundError(f"Timeline entry for year {year} not found")
    document.entries.remove(entry)
    return entry
