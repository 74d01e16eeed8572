"""
Change Index

Flat re-indexing of the timeline entries into a per-element, per-year
lookup. No reconstruction happens here: every recorded patch and deletion
is stored under (kind, element id, year) exactly as found.

The index is cheap to build, so it is rebuilt per request instead of being
cached next to a document that may change underneath it.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from chronomap.schemas.element import ElementKind
from chronomap.schemas.timeline import TimelineEntry

logger = logging.getLogger(__name__)


class _DeletionMarker:
    __slots__ = ()

    def __repr__(self) -> str:
        return "DELETED"


DELETED = _DeletionMarker()


def _empty_index() -> dict[ElementKind, dict[str, dict[int, Any]]]:
    return {kind: {} for kind in ElementKind}


@dataclass
class ChangeMap:
    """kind -> element id -> year -> patch (or DELETED)."""
    by_kind: dict[ElementKind, dict[str, dict[int, Any]]] = field(default_factory=_empty_index)

    def record(self, kind: ElementKind, element_id: str, year: int, value: Any) -> None:
        self.by_kind[kind].setdefault(element_id, {})[year] = value

    def changes_for(self, kind: ElementKind, element_id: str) -> dict[int, Any]:
        return self.by_kind[kind].get(element_id, {})

    def years_for(self, kind: ElementKind, element_id: str) -> list[int]:
        return sorted(self.changes_for(kind, element_id))

    def __len__(self) -> int:
        return sum(
            len(years)
            for elements in self.by_kind.values()
            for years in elements.values()
        )


def build_change_map(entries: Iterable[TimelineEntry]) -> ChangeMap:
    """
    Index every modification and deletion recorded in the entries.

    Input order does not matter since values are keyed by year. An id that
    is both modified and deleted in one entry breaks the recorder's mutual
    exclusion; it is indexed as a deletion and reported.
    """
    change_map = ChangeMap()

    for entry in entries:
        changes = entry.changes
        if changes is None:
            continue

        for kind in ElementKind:
            modified = changes.modified.of(kind)
            for element_id, patch in modified.items():
                change_map.record(kind, element_id, entry.year, patch)

            for element_id in changes.deleted.of(kind):
                if element_id in modified:
                    logger.warning(
                        "%s %s is both modified and deleted in year %s; treating as deleted",
                        kind.value, element_id, entry.year,
                    )
                change_map.record(kind, element_id, entry.year, DELETED)

    return change_map


def future_change_years(
    entries: Iterable[TimelineEntry],
    element_id: str,
    kind: ElementKind,
    after_year: int,
) -> list[int]:
    """Years after `after_year` that record a patch or deletion for the element."""
    years = []
    for entry in entries:
        if entry.year <= after_year or entry.changes is None:
            continue
        changes = entry.changes
        if element_id in changes.modified.of(kind) or element_id in changes.deleted.of(kind):
            years.append(entry.year)
    return sorted(years)
