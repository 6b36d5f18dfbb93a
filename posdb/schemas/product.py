"""Pydantic schemas for Product and ProductVariant payloads."""

import uuid
from collections.abc import Callable
from typing import Any, ClassVar

from pydantic import Field, field_validator

from posdb.schemas.common import CreateSchema, Money, upper_key


class ProductCreate(CreateSchema):
    key_normalizers: ClassVar[dict[str, Callable[[str], str]]] = {"sku": upper_key}

    name: str = Field(..., min_length=1, max_length=200)
    sku: str = Field(..., min_length=1, max_length=50)
    barcode: str | None = Field(None, min_length=1, max_length=64)
    description: str | None = None
    category_id: uuid.UUID
    price: Money
    cost_price: Money | None = None
    images: list[str] = Field(default_factory=list)
    is_active: bool = True

    @field_validator("sku")
    @classmethod
    def sku_uppercase(cls, v: str) -> str:
        return upper_key(v)


class ProductVariantCreate(CreateSchema):
    key_normalizers: ClassVar[dict[str, Callable[[str], str]]] = {"sku": upper_key}

    product_id: uuid.UUID
    name: str = Field(..., min_length=1, max_length=200)
    sku: str = Field(..., min_length=1, max_length=50)
    price: Money
    attributes: dict[str, Any] = Field(default_factory=dict)
    is_active: bool = True

    @field_validator("sku")
    @classmethod
    def sku_uppercase(cls, v: str) -> str:
        return upper_key(v)
