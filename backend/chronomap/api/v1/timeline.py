"""
Timeline API endpoints.

The timeline document: dated entries with their notes and recorded
changes, plus the maintenance operations that rewrite an element's
history.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from chronomap.config import Settings, get_settings
from chronomap.schemas import (
    ElementHistoryRequest,
    ElementKind,
    EntryIn,
    OperationResult,
    RecordChangeResult,
    TimelineChange,
    TimelineDocument,
    TimelineEntry,
)
from chronomap.services import element_service, timeline_service
from chronomap.services.stores import (
    ElementStore,
    TimelineStore,
    get_element_store,
    get_timeline_store,
)

router = APIRouter()


@router.get("", response_model=TimelineDocument, response_model_exclude_none=True)
def get_timeline(store: TimelineStore = Depends(get_timeline_store)):
    """The whole timeline document, entries and epochs."""
    return timeline_service.get_timeline(store)


@router.get("/entries", response_model=list[TimelineEntry], response_model_exclude_none=True)
def list_entries(store: TimelineStore = Depends(get_timeline_store)):
    return timeline_service.list_entries(store)


@router.post(
    "/entries", response_model=TimelineEntry, response_model_exclude_none=True, status_code=201
)
def create_entry(payload: EntryIn, store: TimelineStore = Depends(get_timeline_store)):
    return timeline_service.create_entry(store, payload)


@router.put("/entries/{year}", response_model=TimelineEntry, response_model_exclude_none=True)
def update_entry(year: int, payload: EntryIn, store: TimelineStore = Depends(get_timeline_store)):
    return timeline_service.update_entry(store, year, payload)


@router.delete("/entries/{year}", response_model=OperationResult)
def delete_entry(year: int, store: TimelineStore = Depends(get_timeline_store)):
    return timeline_service.delete_entry(store, year)


@router.post("/changes", response_model=RecordChangeResult, response_model_exclude_none=True)
def record_change(change: TimelineChange, store: TimelineStore = Depends(get_timeline_store)):
    """
    Record a modification or deletion of an element at a year.

    A modification replaces any patch already recorded for that element
    and year, and a deletion replaces either.
    """
    entry = timeline_service.record_change(store, change)
    return RecordChangeResult(entry=entry)


@router.delete("/changes/{element_id}", response_model=OperationResult)
def delete_element_changes(
    element_id: str,
    element_type: ElementKind = Query(..., alias="elementType"),
    after_year: Optional[int] = Query(
        None, alias="afterYear", description="Only remove changes after this year"
    ),
    store: TimelineStore = Depends(get_timeline_store),
):
    return timeline_service.delete_element_history(store, element_id, element_type, after_year)


@router.delete(
    "/changes/{year}/{element_type}/{element_id}",
    response_model=TimelineEntry,
    response_model_exclude_none=True,
)
def remove_change(
    year: int,
    element_type: ElementKind,
    element_id: str,
    store: TimelineStore = Depends(get_timeline_store),
):
    """Remove the single change recorded for an element at `year`."""
    return timeline_service.remove_change(store, year, element_id, element_type)


@router.post("/purge", response_model=OperationResult)
def purge_element(request: ElementHistoryRequest, store: TimelineStore = Depends(get_timeline_store)):
    return timeline_service.purge_element_history(store, request.element_id, request.element_type)


@router.post("/consolidate", response_model=OperationResult)
def consolidate(store: TimelineStore = Depends(get_timeline_store)):
    """Repair contradictory or redundant bookkeeping in the timeline."""
    return timeline_service.consolidate_timeline(store)


# Migrations
@router.post("/migrations/creation-year", response_model=OperationResult)
def migrate_creation_year(
    elements: ElementStore = Depends(get_element_store),
    store: TimelineStore = Depends(get_timeline_store),
):
    return element_service.migrate_creation_year(elements, store)


@router.post("/migrations/label-collision", response_model=OperationResult)
def migrate_label_collision(
    elements: ElementStore = Depends(get_element_store),
    settings: Settings = Depends(get_settings),
):
    return element_service.migrate_label_collision(
        elements, settings.default_label_collision_strategy
    )
