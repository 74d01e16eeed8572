"""
Elements API endpoints.

Locations and regions, either as currently stored or as they stood in a
given year. Edits can replace the current record or be recorded into the
element's history with `recordYear`.
"""
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query

from chronomap.config import Settings, get_settings
from chronomap.schemas import ElementIn, ElementKind, ElementList, FutureChanges, OperationResult
from chronomap.services import element_service, timeline_service
from chronomap.services.stores import (
    ElementStore,
    TimelineStore,
    get_element_store,
    get_timeline_store,
)

router = APIRouter()


@router.get("/{kind}", response_model=ElementList)
def list_elements(
    kind: ElementKind,
    year: Optional[int] = Query(None, description="Reconstruct elements as of this year"),
    elements: ElementStore = Depends(get_element_store),
    timeline: TimelineStore = Depends(get_timeline_store),
):
    """
    List locations or regions.

    Without `year` the current records are returned. With `year`, each
    element is rebuilt from the timeline; elements not yet created or
    already deleted by then are left out.
    """
    return element_service.list_elements(elements, timeline, kind, year)


@router.get("/{kind}/{element_id}")
def get_element(
    kind: ElementKind,
    element_id: str,
    year: Optional[int] = Query(None, description="Reconstruct the element as of this year"),
    elements: ElementStore = Depends(get_element_store),
    timeline: TimelineStore = Depends(get_timeline_store),
) -> dict[str, Any]:
    return element_service.get_element(elements, timeline, kind, element_id, year)


@router.post("/{kind}", status_code=201)
def create_element(
    kind: ElementKind,
    payload: ElementIn,
    elements: ElementStore = Depends(get_element_store),
    settings: Settings = Depends(get_settings),
) -> dict[str, Any]:
    return element_service.create_element(
        elements, kind, payload, settings.default_label_collision_strategy
    )


@router.put("/{kind}/{element_id}")
def update_element(
    kind: ElementKind,
    element_id: str,
    payload: ElementIn,
    record_year: Optional[int] = Query(
        None, alias="recordYear", description="Record the edit as a change in this year"
    ),
    elements: ElementStore = Depends(get_element_store),
    timeline: TimelineStore = Depends(get_timeline_store),
) -> dict[str, Any]:
    return element_service.update_element(elements, timeline, kind, element_id, payload, record_year)


@router.delete("/{kind}/{element_id}", response_model=OperationResult)
def delete_element(
    kind: ElementKind,
    element_id: str,
    elements: ElementStore = Depends(get_element_store),
    timeline: TimelineStore = Depends(get_timeline_store),
):
    """Delete the element and every trace of it in the timeline."""
    return element_service.delete_element(elements, timeline, kind, element_id)


@router.get("/{kind}/{element_id}/future-changes", response_model=FutureChanges)
def get_future_changes(
    kind: ElementKind,
    element_id: str,
    year: int = Query(..., description="Look for changes after this year"),
    timeline: TimelineStore = Depends(get_timeline_store),
):
    """Years after `year` in which the element is modified or deleted."""
    return timeline_service.future_changes(timeline, element_id, kind, year)
