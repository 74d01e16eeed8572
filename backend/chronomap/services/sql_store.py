"""
SQLAlchemy-backed stores.

The timeline document is spread over the timeline_entries, timeline_notes,
timeline_changes and epochs tables. Saving rewrites all of them inside one
transaction; `update` runs load, mutation and save in that same
transaction, so a failure anywhere rolls the whole document back.
"""
import logging
from typing import Any, Callable, Optional, TypeVar

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload, sessionmaker

from chronomap.core.errors import StoreIOError
from chronomap.core.reconstruction import creation_year_of
from chronomap.models import (
    ElementRow,
    EpochRow,
    TimelineChangeRow,
    TimelineEntryRow,
    TimelineNoteRow,
)
from chronomap.schemas.element import ID_FIELD, ElementKind
from chronomap.schemas.epoch import Epoch
from chronomap.schemas.timeline import (
    KindIds,
    TimelineChanges,
    TimelineDocument,
    TimelineEntry,
    TimelineNote,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

UPDATED = "updated"
DELETED = "deleted"
CREATED = "created"


def _entry_from_row(row: TimelineEntryRow) -> TimelineEntry:
    notes = [
        TimelineNote(
            id=note.id,
            title=note.title,
            description=note.content,
            created_at=note.created_at,
            updated_at=note.updated_at,
        )
        for note in row.notes
    ]

    changes = TimelineChanges()
    for change in row.changes:
        kind = ElementKind(change.element_type)
        if change.change_type == UPDATED:
            changes.modified.of(kind)[change.element_id] = change.changes
        elif change.change_type == DELETED:
            changes.deleted.of(kind).append(change.element_id)
        else:
            if changes.created is None:
                changes.created = KindIds()
            changes.created.of(kind).append(change.element_id)

    return TimelineEntry(
        year=row.year,
        age=row.age,
        notes=notes or None,
        changes=None if changes.is_empty() else changes,
    )


def _epoch_from_row(row: EpochRow) -> Epoch:
    return Epoch(
        id=row.id,
        name=row.name,
        description=row.description or "",
        start_year=row.start_year,
        end_year=row.end_year,
        color=row.color,
        year_prefix=row.year_prefix,
        year_suffix=row.year_suffix,
        restart_at_zero=row.restart_at_zero,
        show_end_date=row.show_end_date,
        reverse_years=row.reverse_years,
    )


def _change_rows(entry: TimelineEntry) -> list[TimelineChangeRow]:
    rows = []
    changes = entry.changes
    if changes is None:
        return rows

    for kind in ElementKind:
        for element_id, patch in changes.modified.of(kind).items():
            rows.append(TimelineChangeRow(
                element_id=element_id, element_type=kind.value,
                change_type=UPDATED, changes=patch,
            ))
        for element_id in dict.fromkeys(changes.deleted.of(kind)):
            rows.append(TimelineChangeRow(
                element_id=element_id, element_type=kind.value,
                change_type=DELETED, changes=None,
            ))
        if changes.created is not None:
            for element_id in dict.fromkeys(changes.created.of(kind)):
                rows.append(TimelineChangeRow(
                    element_id=element_id, element_type=kind.value,
                    change_type=CREATED, changes=None,
                ))

    for position, row in enumerate(rows):
        row.position = position
    return rows


class SQLTimelineStore:
    """Timeline document in relational tables."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def _load(self, session: Session) -> TimelineDocument:
        entries = session.scalars(
            select(TimelineEntryRow)
            .options(selectinload(TimelineEntryRow.notes), selectinload(TimelineEntryRow.changes))
            .order_by(TimelineEntryRow.year)
        ).all()
        epochs = session.scalars(select(EpochRow).order_by(EpochRow.start_year)).all()
        return TimelineDocument(
            entries=[_entry_from_row(row) for row in entries],
            epochs=[_epoch_from_row(row) for row in epochs],
        )

    def _save(self, session: Session, document: TimelineDocument) -> None:
        session.execute(delete(TimelineChangeRow))
        session.execute(delete(TimelineNoteRow))
        session.execute(delete(TimelineEntryRow))
        session.execute(delete(EpochRow))
        # Bulk deletes bypass the identity map
        session.expunge_all()

        for entry in document.entries:
            row = TimelineEntryRow(year=entry.year, age=entry.age)
            row.notes = [
                TimelineNoteRow(
                    id=note.id,
                    position=position,
                    title=note.title,
                    content=note.description,
                    created_at=note.created_at,
                    updated_at=note.updated_at,
                )
                for position, note in enumerate(entry.notes or [])
            ]
            row.changes = _change_rows(entry)
            session.add(row)

        for epoch in document.epochs:
            session.add(EpochRow(
                id=epoch.id,
                name=epoch.name,
                description=epoch.description,
                start_year=epoch.start_year,
                end_year=epoch.end_year,
                color=epoch.color,
                year_prefix=epoch.year_prefix,
                year_suffix=epoch.year_suffix,
                restart_at_zero=epoch.restart_at_zero,
                show_end_date=epoch.show_end_date,
                reverse_years=epoch.reverse_years,
            ))
        session.flush()

    def load(self) -> TimelineDocument:
        try:
            with self.session_factory() as session:
                return self._load(session)
        except SQLAlchemyError as e:
            logger.error("Error loading timeline: %s", e)
            raise StoreIOError(f"Failed to load timeline: {e}") from e

    def save(self, document: TimelineDocument) -> None:
        try:
            with self.session_factory() as session, session.begin():
                self._save(session, document)
        except SQLAlchemyError as e:
            logger.error("Error saving timeline: %s", e)
            raise StoreIOError(f"Failed to save timeline: {e}") from e

    def update(self, mutation: Callable[[TimelineDocument], T]) -> T:
        try:
            with self.session_factory() as session, session.begin():
                document = self._load(session)
                result = mutation(document)
                self._save(session, document)
                return result
        except SQLAlchemyError as e:
            logger.error("Error updating timeline: %s", e)
            raise StoreIOError(f"Failed to update timeline: {e}") from e


class SQLElementStore:
    """Current element records in the elements table."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def _run(self, action: str, operation: Callable[[Session], T]) -> T:
        try:
            with self.session_factory() as session, session.begin():
                return operation(session)
        except SQLAlchemyError as e:
            logger.error("Error during %s: %s", action, e)
            raise StoreIOError(f"Failed to {action}: {e}") from e

    def get_all(self, kind: ElementKind) -> list[dict[str, Any]]:
        def operation(session: Session) -> list[dict[str, Any]]:
            rows = session.scalars(
                select(ElementRow)
                .where(ElementRow.kind == kind.value)
                .order_by(ElementRow.position)
            ).all()
            return [dict(row.record) for row in rows]

        return self._run(f"list {kind.collection}", operation)

    def get(self, kind: ElementKind, element_id: str) -> Optional[dict[str, Any]]:
        def operation(session: Session) -> Optional[dict[str, Any]]:
            row = session.get(ElementRow, (element_id, kind.value))
            return dict(row.record) if row is not None else None

        return self._run(f"get {kind.value} {element_id}", operation)

    def put(self, kind: ElementKind, element: dict[str, Any]) -> dict[str, Any]:
        def operation(session: Session) -> dict[str, Any]:
            row = session.get(ElementRow, (element[ID_FIELD], kind.value))
            if row is None:
                count = session.scalar(
                    select(func.count()).select_from(ElementRow).where(ElementRow.kind == kind.value)
                )
                row = ElementRow(id=element[ID_FIELD], kind=kind.value, position=count)
                session.add(row)
            row.creation_year = creation_year_of(element)
            row.record = dict(element)
            return element

        return self._run(f"save {kind.value}", operation)

    def delete(self, kind: ElementKind, element_id: str) -> bool:
        def operation(session: Session) -> bool:
            row = session.get(ElementRow, (element_id, kind.value))
            if row is None:
                return False
            session.delete(row)
            return True

        return self._run(f"delete {kind.value} {element_id}", operation)

    def replace_all(self, kind: ElementKind, elements: list[dict[str, Any]]) -> None:
        def operation(session: Session) -> None:
            session.execute(delete(ElementRow).where(ElementRow.kind == kind.value))
            session.expunge_all()
            for position, element in enumerate(elements):
                session.add(ElementRow(
                    id=element[ID_FIELD],
                    kind=kind.value,
                    position=position,
                    creation_year=creation_year_of(element),
                    record=dict(element),
                ))

        self._run(f"replace {kind.collection}", operation)
