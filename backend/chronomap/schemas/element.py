"""Element schemas.

Locations and regions are stored as open JSON records: beyond the identity
fields below, any attribute (name, position, icon, color, label settings,
custom fields...) may appear and may change over the element's life.
"""
from enum import Enum
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from chronomap.schemas.common import CamelModel

ID_FIELD = "id"
TYPE_FIELD = "elementType"
CREATION_YEAR_FIELD = "creationYear"
LABEL_COLLISION_FIELD = "labelCollisionStrategy"

# Never overwritten by a recorded patch
IDENTITY_FIELDS = frozenset({ID_FIELD, TYPE_FIELD, CREATION_YEAR_FIELD})


class ElementKind(str, Enum):
    """The two versionable element kinds."""

    LOCATION = "location"
    REGION = "region"

    @property
    def collection(self) -> str:
        """Plural key used by the stored documents ("locations", "regions")."""
        return f"{self.value}s"


class ElementIn(BaseModel):
    """Payload for creating or replacing an element."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    id: str = Field(..., min_length=1)
    creation_year: Optional[int] = None

    def to_record(self, kind: ElementKind) -> dict[str, Any]:
        """Record with the fields the client sent; an explicit null clears a field."""
        record = self.model_dump(by_alias=True, exclude_unset=True)
        if record.get(CREATION_YEAR_FIELD) is None:
            record.pop(CREATION_YEAR_FIELD, None)
        record[TYPE_FIELD] = kind.value
        return record


class ReconstructionFailureOut(CamelModel):
    element_id: Optional[str] = None
    reason: str


class ElementList(CamelModel):
    """Elements of one kind, optionally as they stood in a given year."""
    items: list[dict[str, Any]]
    total: int
    year: Optional[int] = None
    fallback: bool = False
    failures: list[ReconstructionFailureOut] = []


class FutureChanges(CamelModel):
    element_id: str
    element_type: ElementKind
    has_changes: bool
    years: list[str]


def element_id_of(element: Any) -> Optional[str]:
    """Id of an element record; None for records without one or that are not objects."""
    if not isinstance(element, Mapping):
        return None
    value = element.get(ID_FIELD)
    return str(value) if value is not None else None
