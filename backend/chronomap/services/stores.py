"""
Store interfaces and the configured store instances.

Both stores are external collaborators of the engine: the element store
owns the current record of every element, the timeline store owns the
timeline document. Every mutation of the timeline goes through
`TimelineStore.update`, which loads a fresh document, applies the
mutation and saves the result as one unit.
"""
from functools import lru_cache
from pathlib import Path
from typing import Any, Callable, Optional, Protocol, TypeVar

from chronomap.config import get_settings
from chronomap.schemas.element import ElementKind
from chronomap.schemas.timeline import TimelineDocument

T = TypeVar("T")


class TimelineStore(Protocol):
    def load(self) -> TimelineDocument: ...

    def save(self, document: TimelineDocument) -> None: ...

    def update(self, mutation: Callable[[TimelineDocument], T]) -> T:
        """
        Load, mutate, save. If the mutation or the save fails nothing is
        committed and the loaded document is discarded.
        """
        ...


class ElementStore(Protocol):
    def get_all(self, kind: ElementKind) -> list[dict[str, Any]]: ...

    def get(self, kind: ElementKind, element_id: str) -> Optional[dict[str, Any]]: ...

    def put(self, kind: ElementKind, element: dict[str, Any]) -> dict[str, Any]: ...

    def delete(self, kind: ElementKind, element_id: str) -> bool: ...

    def replace_all(self, kind: ElementKind, elements: list[dict[str, Any]]) -> None: ...


@lru_cache
def get_timeline_store() -> TimelineStore:
    """Get singleton timeline store for the configured backend."""
    settings = get_settings()
    if settings.storage_backend == "sql":
        from chronomap.db.session import get_session_factory
        from chronomap.services.sql_store import SQLTimelineStore

        return SQLTimelineStore(get_session_factory())

    from chronomap.services.json_store import JSONTimelineStore

    return JSONTimelineStore(Path(settings.data_dir))


@lru_cache
def get_element_store() -> ElementStore:
    """Get singleton element store for the configured backend."""
    settings = get_settings()
    if settings.storage_backend == "sql":
        from chronomap.db.session import get_session_factory
        from chronomap.services.sql_store import SQLElementStore

        return SQLElementStore(get_session_factory())

    from chronomap.services.json_store import JSONElementStore

    return JSONElementStore(Path(settings.data_dir))
