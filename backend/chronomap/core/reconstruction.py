"""
State Reconstructor

Answers "what did this element look like in year Y".

The element's current record is the baseline. Patches recorded between the
element's creation year and the target year are layered on top in
ascending year order, each one overwriting only the fields it names, so a
field mentioned by any applicable patch ends up with the value from the
latest patch that mentions it. Fields never mentioned (or only mentioned
after the target year) keep their current value.

Deletion: if the latest applicable change is a deletion the element is
absent. A patch recorded after a deletion brings the element back, with
the accumulated attributes.
"""
import logging
from dataclasses import dataclass, field
from operator import itemgetter
from typing import Any, Iterable, Mapping, Optional

from chronomap.core.change_index import DELETED, ChangeMap
from chronomap.core.errors import ChronomapError, ConsistencyError
from chronomap.schemas.element import (
    CREATION_YEAR_FIELD,
    IDENTITY_FIELDS,
    ElementKind,
    element_id_of,
)

logger = logging.getLogger(__name__)


def creation_year_of(element: Mapping[str, Any]) -> int:
    """Creation year of an element record; legacy records without one date from year 0."""
    value = element.get(CREATION_YEAR_FIELD)
    if value is None:
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConsistencyError(
            f"Element {element_id_of(element)} has a non-integer creationYear: {value!r}"
        ) from None


def state_for_year(
    element: Mapping[str, Any],
    target_year: int,
    change_map: ChangeMap,
    kind: ElementKind,
) -> Optional[dict[str, Any]]:
    """Return the element's attributes as of `target_year`, or None if it did not exist."""
    if not isinstance(element, Mapping):
        raise ConsistencyError(
            f"{kind.value} record must be an object, got {type(element).__name__}"
        )
    element_id = element_id_of(element)
    if element_id is None:
        raise ConsistencyError(f"{kind.value} record without an id")

    creation_year = creation_year_of(element)
    if creation_year > target_year:
        return None

    applicable = sorted(
        (
            (year, value)
            for year, value in change_map.changes_for(kind, element_id).items()
            if creation_year <= year <= target_year
        ),
        key=itemgetter(0),
    )
    if not applicable:
        return dict(element)

    if applicable[-1][1] is DELETED:
        return None

    state = dict(element)
    for year, patch in applicable:
        if patch is DELETED:
            continue
        if not isinstance(patch, Mapping):
            raise ConsistencyError(
                f"Malformed patch for {kind.value} {element_id} in year {year}: "
                f"expected an object, got {type(patch).__name__}"
            )
        state.update(
            (name, value) for name, value in patch.items() if name not in IDENTITY_FIELDS
        )
    return state


@dataclass
class ReconstructionFailure:
    element_id: Optional[str]
    reason: str


@dataclass
class ReconstructionBatch:
    """Result of reconstructing many elements for one year."""
    elements: list[dict[str, Any]] = field(default_factory=list)
    absent: list[str] = field(default_factory=list)
    failures: list[ReconstructionFailure] = field(default_factory=list)


def states_for_year(
    elements: Iterable[Mapping[str, Any]],
    target_year: int,
    change_map: ChangeMap,
    kind: ElementKind,
) -> ReconstructionBatch:
    """
    Reconstruct every element for `target_year`.

    Elements that did not exist are left out; an element whose history
    cannot be applied is reported in `failures` without stopping the batch.
    """
    batch = ReconstructionBatch()

    for element in elements:
        try:
            state = state_for_year(element, target_year, change_map, kind)
        except ChronomapError as e:
            logger.warning("Skipping %s in year %s: %s", kind.value, target_year, e.message)
            batch.failures.append(ReconstructionFailure(element_id_of(element), e.message))
            continue

        if state is None:
            batch.absent.append(element_id_of(element))
        else:
            batch.elements.append(state)

    return batch
