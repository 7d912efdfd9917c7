from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema: camelCase on the wire, snake_case in Python.

    Request bodies are accepted in either casing.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class BulkCreatedItem(CamelModel):
    id: int
    name: str


class BulkDuplicateItem(CamelModel):
    index: int
    name: Optional[str] = None


class BulkErrorItem(CamelModel):
    index: int
    name: Optional[str] = None
    error: str


class BulkResult(CamelModel):
    """Per-row outcome of a bulk insert. The three lists always add up to the input."""

    created: List[BulkCreatedItem] = Field(default_factory=list)
    duplicates: List[BulkDuplicateItem] = Field(default_factory=list)
    errors: List[BulkErrorItem] = Field(default_factory=list)


class BulkRequest(CamelModel):
    """Raw rows are validated one by one so that a bad row does not fail the batch."""

    items: List[dict[str, Any]] = Field(..., min_length=1)


class MessageResponse(CamelModel):
    message: str


class DeleteResult(CamelModel):
    message: str
    deleted: int
