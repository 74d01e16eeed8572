"""Element service - current records and their state in a given year."""
import logging
from typing import Any, Mapping, Optional

from chronomap.core import maintenance
from chronomap.core.change_index import build_change_map
from chronomap.core.errors import NotFoundError, StoreIOError, ValidationError
from chronomap.core.reconstruction import creation_year_of, state_for_year, states_for_year
from chronomap.core.recorder import diff_attributes, record_change
from chronomap.schemas.common import OperationResult
from chronomap.schemas.element import (
    CREATION_YEAR_FIELD,
    IDENTITY_FIELDS,
    LABEL_COLLISION_FIELD,
    ElementIn,
    ElementKind,
    ElementList,
    ReconstructionFailureOut,
)
from chronomap.schemas.timeline import ChangeType, TimelineChange, TimelineDocument, TimelineEntry
from chronomap.services.stores import ElementStore, TimelineStore

logger = logging.getLogger(__name__)


def list_elements(
    elements: ElementStore,
    timeline: TimelineStore,
    kind: ElementKind,
    year: Optional[int] = None,
) -> ElementList:
    """
    List elements of one kind, as they stood in `year` if one is given.

    If reconstruction leaves nothing although elements exist, the current
    records are returned instead and the result is flagged as a fallback.
    """
    current = elements.get_all(kind)
    records = [element for element in current if isinstance(element, Mapping)]
    if len(records) != len(current):
        logger.warning(
            "Ignoring %s malformed %s records", len(current) - len(records), kind.value,
        )
    if year is None:
        return ElementList(items=records, total=len(records))

    change_map = build_change_map(timeline.load().entries)
    batch = states_for_year(current, year, change_map, kind)
    failures = [
        ReconstructionFailureOut(element_id=failure.element_id, reason=failure.reason)
        for failure in batch.failures
    ]

    if not batch.elements and current:
        logger.warning(
            "No %s reconstructed for year %s out of %s; returning current records",
            kind.collection, year, len(current),
        )
        return ElementList(
            items=records, total=len(current), year=year, fallback=True, failures=failures,
        )

    return ElementList(items=batch.elements, total=len(current), year=year, failures=failures)


def get_element(
    elements: ElementStore,
    timeline: TimelineStore,
    kind: ElementKind,
    element_id: str,
    year: Optional[int] = None,
) -> dict[str, Any]:
    element = elements.get(kind, element_id)
    if element is None:
        raise NotFoundError(f"{kind.value.capitalize()} {element_id} not found")
    if year is None:
        return element

    state = state_for_year(element, year, build_change_map(timeline.load().entries), kind)
    if state is None:
        raise NotFoundError(f"{kind.value.capitalize()} {element_id} does not exist in year {year}")
    return state


def create_element(
    elements: ElementStore,
    kind: ElementKind,
    payload: ElementIn,
    default_label_collision: str,
) -> dict[str, Any]:
    if elements.get(kind, payload.id) is not None:
        raise ValidationError(f"{kind.value.capitalize()} {payload.id} already exists")

    record = payload.to_record(kind)
    record.setdefault(CREATION_YEAR_FIELD, 0)
    record.setdefault(LABEL_COLLISION_FIELD, default_label_collision)
    return elements.put(kind, record)


def update_element(
    elements: ElementStore,
    timeline: TimelineStore,
    kind: ElementKind,
    element_id: str,
    payload: ElementIn,
    record_year: Optional[int] = None,
) -> dict[str, Any]:
    """
    Replace an element's current record, or record an edit in its history.

    With `record_year`, the fields that differ from the element's state in
    that year are recorded as a patch at that year and the current record
    is left alone.
    """
    if payload.id != element_id:
        raise ValidationError("ID mismatch")

    existing = elements.get(kind, element_id)
    if existing is None:
        raise NotFoundError(f"{kind.value.capitalize()} {element_id} not found")

    record = payload.to_record(kind)
    if record_year is None:
        record.setdefault(CREATION_YEAR_FIELD, existing.get(CREATION_YEAR_FIELD, 0))
        return elements.put(kind, record)

    if record_year < creation_year_of(existing):
        raise ValidationError(
            f"Cannot record a change in year {record_year}, before {kind.value} {element_id} existed"
        )

    def edit_patch(document: TimelineDocument) -> dict[str, Any]:
        change_map = build_change_map(document.entries)
        previous = state_for_year(existing, record_year, change_map, kind)
        return {
            name: value
            for name, value in diff_attributes(previous, record).items()
            if name not in IDENTITY_FIELDS
        }

    def mutation(document: TimelineDocument) -> Optional[TimelineEntry]:
        patch = edit_patch(document)
        if not patch:
            return None
        return record_change(document, TimelineChange(
            year=record_year,
            element_id=element_id,
            element_type=kind,
            change_type=ChangeType.UPDATED,
            changes=patch,
        ))

    if edit_patch(timeline.load()):
        timeline.update(mutation)
    else:
        logger.info("No changes to record for %s %s in year %s", kind.value, element_id, record_year)
    return get_element(elements, timeline, kind, element_id, record_year)


def delete_element(
    elements: ElementStore,
    timeline: TimelineStore,
    kind: ElementKind,
    element_id: str,
) -> OperationResult:
    """
    Permanently delete an element and purge its history.

    History goes first: if the purge fails nothing has changed, and if the
    element delete fails afterwards the element survives without history.
    """
    if elements.get(kind, element_id) is None:
        raise NotFoundError(f"{kind.value.capitalize()} {element_id} not found")
    report = timeline.update(
        lambda document: maintenance.purge_element(document, element_id, kind)
    )
    try:
        elements.delete(kind, element_id)
    except StoreIOError as e:
        raise StoreIOError(
            f"History of {kind.value} {element_id} was purged but the element was not deleted: {e.message}"
        ) from e
    return OperationResult(
        message=f"Deleted {kind.value} {element_id}; {report.message}",
        updated_entries=report.updated_entries,
        removed_entries=report.removed_entries,
    )


def migrate_creation_year(elements: ElementStore, timeline: TimelineStore) -> OperationResult:
    """Backfill creationYear from the legacy `created` lists. Safe to re-run."""
    creation_years = maintenance.legacy_creation_years(timeline.load())
    updated = 0
    for kind in ElementKind:
        records = elements.get_all(kind)
        changed = maintenance.backfill_creation_year(records, kind, creation_years)
        if changed:
            elements.replace_all(kind, records)
            logger.info("Updated %s %s with creationYear", changed, kind.collection)
        updated += changed
    return OperationResult(message=f"Backfilled creationYear on {updated} elements", repaired=updated)


def migrate_label_collision(elements: ElementStore, default_strategy: str) -> OperationResult:
    """Give every element an explicit label collision strategy. Safe to re-run."""
    updated = 0
    for kind in ElementKind:
        records = elements.get_all(kind)
        changed = maintenance.backfill_label_collision(records, default_strategy)
        if changed:
            elements.replace_all(kind, records)
            logger.info("Migrated %s %s to label collision strategy %r", changed, kind.collection, default_strategy)
        updated += changed
    return OperationResult(
        message=f"Set labelCollisionStrategy on {updated} elements", repaired=updated
    )
