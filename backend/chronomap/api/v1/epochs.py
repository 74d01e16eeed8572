"""
Epochs API endpoints.

Named, coloured, non-overlapping year ranges used to label and display
years on the timeline.
"""
from fastapi import APIRouter, Depends

from chronomap.config import Settings, get_settings
from chronomap.schemas import Epoch, EpochCreate, EpochDeleted, EpochUpdate
from chronomap.services import epoch_service
from chronomap.services.stores import TimelineStore, get_timeline_store

router = APIRouter()


@router.get("", response_model=list[Epoch])
def list_epochs(store: TimelineStore = Depends(get_timeline_store)):
    """Epochs ordered by start year."""
    return epoch_service.list_epochs(store)


@router.post("", response_model=Epoch, status_code=201)
def create_epoch(
    data: EpochCreate,
    store: TimelineStore = Depends(get_timeline_store),
    settings: Settings = Depends(get_settings),
):
    return epoch_service.create_epoch(store, data, settings.default_epoch_color)


@router.put("/{epoch_id}", response_model=Epoch)
def update_epoch(
    epoch_id: str,
    updates: EpochUpdate,
    store: TimelineStore = Depends(get_timeline_store),
    settings: Settings = Depends(get_settings),
):
    return epoch_service.update_epoch(store, epoch_id, updates, settings.default_epoch_color)


@router.delete("/{epoch_id}", response_model=EpochDeleted)
def delete_epoch(epoch_id: str, store: TimelineStore = Depends(get_timeline_store)):
    deleted = epoch_service.delete_epoch(store, epoch_id)
    return EpochDeleted(deleted=deleted)
