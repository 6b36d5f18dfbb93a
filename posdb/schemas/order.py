"""Pydantic schemas for Customer, Order and OrderItem payloads.

Order payloads carry their own totals; the validators below reject any
payload whose numbers do not add up, so an inconsistent order never
reaches the database.
"""

import uuid
from decimal import Decimal

from pydantic import EmailStr, Field, model_validator

from posdb.models.enums import OrderStatus, PaymentStatus
from posdb.schemas.common import CreateSchema, Money


class CustomerCreate(CreateSchema):
    name: str = Field(..., min_length=1, max_length=100)
    phone: str | None = Field(None, min_length=6, max_length=20, pattern=r"^\+?[0-9]+$")
    email: EmailStr | None = None
    address: str | None = None
    points: int = Field(0, ge=0)


class OrderItemCreate(CreateSchema):
    product_id: uuid.UUID
    name: str = Field(..., min_length=1, max_length=200)
    price: Money
    quantity: int = Field(..., gt=0)
    discount: Money = Decimal("0.00")
    total: Money

    @model_validator(mode="after")
    def total_matches_parts(self) -> "OrderItemCreate":
        gross = self.price * self.quantity
        if self.discount > gross:
            raise ValueError("discount must not exceed price * quantity")
        if self.total != gross - self.discount:
            raise ValueError("total must equal price * quantity - discount")
        return self


class OrderCreate(CreateSchema):
    order_number: str = Field(..., min_length=1, max_length=50)
    customer_id: uuid.UUID | None = None
    items: list[OrderItemCreate] = Field(..., min_length=1)
    subtotal: Money
    discount: Money = Decimal("0.00")
    tax: Money = Decimal("0.00")
    total: Money
    status: OrderStatus = OrderStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.UNPAID
    payment_method: str | None = Field(None, max_length=30)
    note: str | None = None
    created_by: uuid.UUID

    @model_validator(mode="after")
    def totals_match_items(self) -> "OrderCreate":
        if self.subtotal != sum((item.total for item in self.items), Decimal("0.00")):
            raise ValueError("subtotal must equal the sum of item totals")
        if self.discount > self.subtotal:
            raise ValueError("discount must not exceed subtotal")
        if self.total != self.subtotal - self.discount + self.tax:
            raise ValueError("total must equal subtotal - discount + tax")
        return self
