import uuid

from pydantic import Field, model_validator

from posdb.models.enums import MovementType
from posdb.schemas.common import CreateSchema


class InventoryCreate(CreateSchema):
    product_id: uuid.UUID
    quantity: int = Field(0, ge=0)
    reserved_qty: int = Field(0, ge=0)
    low_stock_threshold: int = Field(10, ge=0)

    @model_validator(mode="after")
    def reserved_within_quantity(self) -> "InventoryCreate":
        if self.reserved_qty > self.quantity:
            raise ValueError("reserved_qty must not exceed quantity")
        return self


class StockMovementCreate(CreateSchema):
    product_id: uuid.UUID
    type: MovementType
    quantity: int
    reference_type: str = Field(..., min_length=1, max_length=50)
    reference_id: str = Field(..., min_length=1, max_length=64)
    note: str | None = None
    created_by: str = Field(..., min_length=1, max_length=255)
