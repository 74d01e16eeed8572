"""Timeline service - entries, change recording and history maintenance."""
from functools import partial
from typing import Optional

from chronomap.core import maintenance, recorder
from chronomap.core.change_index import future_change_years
from chronomap.core.epochs import format_year
from chronomap.core.maintenance import MaintenanceReport
from chronomap.schemas.common import OperationResult
from chronomap.schemas.element import ElementKind, FutureChanges
from chronomap.schemas.timeline import (
    EntryIn,
    TimelineChange,
    TimelineDocument,
    TimelineEntry,
)
from chronomap.services.stores import TimelineStore


def _result(report: MaintenanceReport) -> OperationResult:
    return OperationResult(
        message=report.message,
        updated_entries=report.updated_entries,
        removed_entries=report.removed_entries,
        repaired=report.repaired,
    )


def get_timeline(store: TimelineStore) -> TimelineDocument:
    return store.load()


def list_entries(store: TimelineStore) -> list[TimelineEntry]:
    return store.load().entries


def create_entry(store: TimelineStore, payload: EntryIn) -> TimelineEntry:
    return store.update(partial(recorder.add_entry, payload=payload))


def update_entry(store: TimelineStore, year: int, payload: EntryIn) -> TimelineEntry:
    return store.update(partial(recorder.replace_entry, year=year, payload=payload))


def delete_entry(store: TimelineStore, year: int) -> OperationResult:
    store.update(partial(recorder.delete_entry, year=year))
    return OperationResult(message=f"Deleted timeline entry for year {year}", removed_entries=1)


def record_change(store: TimelineStore, change: TimelineChange) -> TimelineEntry:
    return store.update(partial(recorder.record_change, change=change))


def remove_change(
    store: TimelineStore,
    year: int,
    element_id: str,
    kind: ElementKind,
) -> TimelineEntry:
    return store.update(
        partial(recorder.remove_change, year=year, element_id=element_id, kind=kind)
    )


def delete_element_history(
    store: TimelineStore,
    element_id: str,
    kind: ElementKind,
    after_year: Optional[int] = None,
) -> OperationResult:
    """Forget the element's changes after `after_year`, or all of them."""
    report = store.update(
        partial(maintenance.delete_after, element_id=element_id, kind=kind, after_year=after_year)
    )
    return _result(report)


def purge_element_history(store: TimelineStore, element_id: str, kind: ElementKind) -> OperationResult:
    report = store.update(partial(maintenance.purge_element, element_id=element_id, kind=kind))
    return _result(report)


def consolidate_timeline(store: TimelineStore) -> OperationResult:
    return _result(store.update(maintenance.consolidate))


def future_changes(
    store: TimelineStore,
    element_id: str,
    kind: ElementKind,
    year: int,
) -> FutureChanges:
    """Years after `year` in which the element changes, as displayed by their epochs."""
    document = store.load()
    years = future_change_years(document.entries, element_id, kind, year)
    return FutureChanges(
        element_id=element_id,
        element_type=kind,
        has_changes=bool(years),
        years=[format_year(change_year, document.epochs) for change_year in years],
    )
