"""Pydantic schemas for Category payloads."""

import uuid

from pydantic import Field

from posdb.schemas.common import CreateSchema

SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"


class CategoryCreate(CreateSchema):
    name: str = Field(..., min_length=1, max_length=100)
    slug: str = Field(..., max_length=100, pattern=SLUG_PATTERN)
    parent_id: uuid.UUID | None = None
    display_order: int = Field(0, ge=0)
