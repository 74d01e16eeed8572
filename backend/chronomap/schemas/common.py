"""Common schema components."""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model that reads and writes the camelCase keys of the stored documents."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self) -> dict:
        """Serialize with camelCase keys, leaving out unset optional fields."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class OperationResult(CamelModel):
    """Outcome of a mutating operation that has nothing else to return."""
    success: bool = True
    message: str = ""
    updated_entries: int = 0
    removed_entries: int = 0
    repaired: int = 0
