"""Epoch service - named ranges of the year axis."""
from functools import partial

from chronomap.core import epochs
from chronomap.schemas.epoch import Epoch, EpochCreate, EpochUpdate
from chronomap.services.stores import TimelineStore


def list_epochs(store: TimelineStore) -> list[Epoch]:
    return store.load().epochs


def create_epoch(store: TimelineStore, data: EpochCreate, default_color: str) -> Epoch:
    return store.update(partial(epochs.create_epoch, data=data, default_color=default_color))


def update_epoch(store: TimelineStore, epoch_id: str, updates: EpochUpdate, default_color: str) -> Epoch:
    return store.update(
        partial(epochs.update_epoch, epoch_id=epoch_id, updates=updates, default_color=default_color)
    )


def delete_epoch(store: TimelineStore, epoch_id: str) -> Epoch:
    return store.update(partial(epochs.delete_epoch, epoch_id=epoch_id))
