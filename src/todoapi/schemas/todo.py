"""Pydantic schemas for todo items.

Learn: Request bodies only declare the fields a client may set (name,
is_complete). id and owner_id are not part of any input schema, so a
client sending them has them silently dropped; they can never be
overwritten through the API.

JSON uses camelCase on the wire (isComplete, ownerId); snake_case is
accepted on input too.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

NAME_MAX_LENGTH = 100


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TodoCreate(_CamelModel):
    name: str = Field(..., max_length=NAME_MAX_LENGTH)
    is_complete: bool = False

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Todo name must not be empty")
        return v


class TodoUpdate(TodoCreate):
    """Full replacement of the mutable fields (PUT semantics)."""


class TodoRead(_CamelModel):
    id: int
    name: str
    is_complete: bool
    owner_id: Optional[str]

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )
