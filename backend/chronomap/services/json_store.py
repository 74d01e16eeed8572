"""
JSON document stores.

Flat-file persistence: locations.json, regions.json and timeline.json in
one data directory. Writes go to a temporary file that replaces the
original, so a failed write never leaves a half-written document behind.
Writers within one process are serialized by a lock; separate processes
writing the same files are last-writer-wins.
"""
import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

from pydantic import ValidationError as PydanticValidationError

from chronomap.core.errors import StoreIOError
from chronomap.schemas.element import ID_FIELD, ElementKind, element_id_of
from chronomap.schemas.timeline import TimelineDocument

logger = logging.getLogger(__name__)

T = TypeVar("T")

TIMELINE_FILE = "timeline.json"


def _read_json(path: Path, default: Any) -> Any:
    if not path.exists():
        return default
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error("Error loading %s: %s", path, e)
        raise StoreIOError(f"Failed to read {path.name}: {e}") from e


def _write_json(path: Path, data: Any) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
    except (OSError, TypeError, ValueError) as e:
        logger.error("Error writing %s: %s", path, e)
        raise StoreIOError(f"Failed to write {path.name}: {e}") from e


class JSONTimelineStore:
    """Timeline document kept in timeline.json."""

    def __init__(self, data_dir: Path):
        self.path = Path(data_dir) / TIMELINE_FILE
        self._lock = threading.RLock()

    def load(self) -> TimelineDocument:
        raw = _read_json(self.path, default={"entries": [], "epochs": []})
        try:
            return TimelineDocument.model_validate(raw)
        except PydanticValidationError as e:
            logger.error("Malformed timeline document %s: %s", self.path, e)
            raise StoreIOError(f"Timeline document is malformed: {e}") from e

    def save(self, document: TimelineDocument) -> None:
        with self._lock:
            _write_json(self.path, document.to_document())

    def update(self, mutation: Callable[[TimelineDocument], T]) -> T:
        with self._lock:
            document = self.load()
            result = mutation(document)
            self.save(document)
            return result


class JSONElementStore:
    """Current element records, one JSON array per kind."""

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        self._lock = threading.RLock()

    def _path(self, kind: ElementKind) -> Path:
        return self.data_dir / f"{kind.collection}.json"

    def get_all(self, kind: ElementKind) -> list[dict[str, Any]]:
        elements = _read_json(self._path(kind), default=[])
        if not isinstance(elements, list):
            raise StoreIOError(f"{self._path(kind).name} must hold a JSON array")
        return elements

    def get(self, kind: ElementKind, element_id: str) -> Optional[dict[str, Any]]:
        for element in self.get_all(kind):
            if element_id_of(element) == element_id:
                return element
        return None

    def put(self, kind: ElementKind, element: dict[str, Any]) -> dict[str, Any]:
        """Insert the element, or replace the stored one with the same id."""
        with self._lock:
            elements = self.get_all(kind)
            for index, existing in enumerate(elements):
                if element_id_of(existing) == element[ID_FIELD]:
                    elements[index] = element
                    break
            else:
                elements.append(element)
            _write_json(self._path(kind), elements)
        return element

    def delete(self, kind: ElementKind, element_id: str) -> bool:
        with self._lock:
            elements = self.get_all(kind)
            remaining = [element for element in elements if element_id_of(element) != element_id]
            if len(remaining) == len(elements):
                return False
            _write_json(self._path(kind), remaining)
        return True

    def replace_all(self, kind: ElementKind, elements: list[dict[str, Any]]) -> None:
        with self._lock:
            _write_json(self._path(kind), elements)
