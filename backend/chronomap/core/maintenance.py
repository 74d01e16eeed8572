"""
History Maintainer

Bulk operations over the recorded history:

- purge_element: forget everything recorded for one element
- delete_after: forget what was recorded for one element after a year
- consolidate: reconcile the legacy `created` lists with `modified`, and
  repair entries that break the modified/deleted mutual exclusion
- backfill_creation_year / backfill_label_collision: one-shot, idempotent
  upgrades of element records

Like the recorder, these mutate the document (or records) they are handed.
"""
import logging
from dataclasses import dataclass
from typing import Any, MutableMapping, Optional, Sequence

from chronomap.schemas.element import (
    CREATION_YEAR_FIELD,
    LABEL_COLLISION_FIELD,
    ElementKind,
)
from chronomap.schemas.timeline import TimelineChanges, TimelineDocument

logger = logging.getLogger(__name__)


@dataclass
class MaintenanceReport:
    updated_entries: int = 0
    removed_entries: int = 0
    repaired: int = 0
    message: str = ""


def _strip_element(
    changes: TimelineChanges,
    kind: ElementKind,
    element_id: str,
    include_created: bool = False,
) -> bool:
    """Remove every trace of the element from one Changes block. Returns True if anything went."""
    modified = changes.modified.of(kind)
    touched = element_id in modified
    modified.pop(element_id, None)

    id_lists = [changes.deleted.of(kind)]
    if include_created and changes.created is not None:
        id_lists.append(changes.created.of(kind))

    for ids in id_lists:
        if element_id in ids:
            ids[:] = [other for other in ids if other != element_id]
            touched = True

    if changes.created is not None and changes.created.is_empty():
        changes.created = None
    return touched


def purge_element(
    document: TimelineDocument,
    element_id: str,
    kind: ElementKind,
) -> MaintenanceReport:
    """
    Remove all history for an element that no longer exists.

    Entries left without changes are dropped unless they still carry an
    age label or notes.
    """
    report = MaintenanceReport()
    kept = []

    for entry in document.entries:
        if entry.changes is not None and _strip_element(
            entry.changes, kind, element_id, include_created=True
        ):
            report.updated_entries += 1
            if entry.changes.is_empty():
                entry.changes = None
                if not entry.has_annotations():
                    report.removed_entries += 1
                    continue
        kept.append(entry)

    document.entries = kept
    report.message = (
        f"Purged {kind.value} {element_id} from {report.updated_entries} timeline entries"
    )
    logger.info("%s (%s entries removed)", report.message, report.removed_entries)
    return report


def delete_after(
    document: TimelineDocument,
    element_id: str,
    kind: ElementKind,
    after_year: Optional[int] = None,
) -> MaintenanceReport:
    """
    Strip the element's patches and deletions from every entry after `after_year`.

    With no bound, every entry is stripped. Entries themselves are kept;
    only their emptied Changes blocks are dropped.
    """
    report = MaintenanceReport()

    for entry in document.entries:
        if after_year is not None and entry.year <= after_year:
            continue
        if entry.changes is None:
            continue
        if _strip_element(entry.changes, kind, element_id):
            report.updated_entries += 1
            if entry.changes.is_empty():
                entry.changes = None

    if after_year is None:
        report.message = (
            f"Removed all changes for {kind.value} {element_id} "
            f"from {report.updated_entries} timeline entries"
        )
    else:
        report.message = (
            f"Removed changes for {kind.value} {element_id} from "
            f"{report.updated_entries} timeline entries after year {after_year}"
        )
    logger.info(report.message)
    return report


def consolidate(document: TimelineDocument) -> MaintenanceReport:
    """
    Reconcile legacy bookkeeping within each entry.

    - an id in `created` that is also in `modified` loses its `created` marker
    - duplicate ids in `deleted` collapse to one
    - an id both modified and deleted keeps only the deletion
    """
    report = MaintenanceReport()

    for entry in document.entries:
        changes = entry.changes
        if changes is None:
            continue
        touched = False

        for kind in ElementKind:
            modified = changes.modified.of(kind)

            if changes.created is not None:
                created = changes.created.of(kind)
                superseded = [element_id for element_id in created if element_id in modified]
                for element_id in superseded:
                    logger.info(
                        "Consolidating %s %s in year %s - removing from created, keeping modification",
                        kind.value, element_id, entry.year,
                    )
                if superseded:
                    created[:] = [element_id for element_id in created if element_id not in modified]
                    touched = True

            deleted = changes.deleted.of(kind)
            unique = list(dict.fromkeys(deleted))
            if len(unique) != len(deleted):
                deleted[:] = unique
                report.repaired += 1
                touched = True

            for element_id in unique:
                if element_id in modified:
                    logger.warning(
                        "Repairing %s %s in year %s: modified and deleted, keeping deletion",
                        kind.value, element_id, entry.year,
                    )
                    del modified[element_id]
                    report.repaired += 1
                    touched = True

        if changes.created is not None and changes.created.is_empty():
            changes.created = None
            touched = True
        if touched:
            report.updated_entries += 1
        if changes.is_empty():
            entry.changes = None

    report.message = (
        f"Consolidated {report.updated_entries} timeline entries ({report.repaired} repairs)"
    )
    logger.info(report.message)
    return report


def legacy_creation_years(document: TimelineDocument) -> dict[tuple[ElementKind, str], int]:
    """Earliest year each element appears in a legacy `created` list."""
    years: dict[tuple[ElementKind, str], int] = {}
    for entry in document.entries:
        if entry.changes is None or entry.changes.created is None:
            continue
        for kind in ElementKind:
            for element_id in entry.changes.created.of(kind):
                key = (kind, element_id)
                if key not in years or entry.year < years[key]:
                    years[key] = entry.year
    return years


def backfill_creation_year(
    elements: Sequence[MutableMapping[str, Any]],
    kind: ElementKind,
    creation_years: dict[tuple[ElementKind, str], int],
) -> int:
    """Give every element lacking a creationYear one. Returns how many were updated."""
    updated = 0
    for element in elements:
        if element.get(CREATION_YEAR_FIELD) is not None:
            continue
        element[CREATION_YEAR_FIELD] = creation_years.get((kind, str(element.get("id"))), 0)
        updated += 1
    return updated


def backfill_label_collision(
    elements: Sequence[MutableMapping[str, Any]],
    default_strategy: str,
) -> int:
    """Give every element lacking a label collision strategy the default one."""
    updated = 0
    for element in elements:
        if LABEL_COLLISION_FIELD not in element:
            element[LABEL_COLLISION_FIELD] = default_strategy
            updated += 1
    return updated
