"""Order service: checkout arithmetic, order creation and status transitions."""

import secrets
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from posdb.errors import ForeignKeyViolation, ValidationError
from posdb.models.enums import OrderStatus, PaymentStatus
from posdb.models.order import Order
from posdb.models.product import Product
from posdb.schemas.common import quantize_money
from posdb.schemas.order import OrderCreate, OrderItemCreate
from posdb.storage import StorageClient

ZERO = Decimal("0.00")

_STATUS_RANK = {
    OrderStatus.PENDING: 0,
    OrderStatus.PROCESSING: 1,
    OrderStatus.COMPLETED: 2,
}
_TERMINAL_STATUSES = (OrderStatus.COMPLETED, OrderStatus.CANCELLED)

_PAYMENT_RANK = {
    PaymentStatus.UNPAID: 0,
    PaymentStatus.PARTIAL: 1,
    PaymentStatus.PAID: 2,
    PaymentStatus.REFUNDED: 3,
}


@dataclass(frozen=True)
class OrderLine:
    product_id: uuid.UUID
    quantity: int
    discount: Decimal = ZERO


@dataclass(frozen=True)
class OrderTotals:
    line_totals: tuple[Decimal, ...]
    subtotal: Decimal
    discount: Decimal
    tax: Decimal
    total: Decimal


def line_total(price: Decimal, quantity: int, discount: Decimal = ZERO) -> Decimal:
    """Return ``price * quantity - discount`` to the cent."""
    if quantity <= 0:
        raise ValidationError("OrderItem", "quantity", "must be positive")
    gross = quantize_money(price) * quantity
    discount = quantize_money(discount)
    if discount < 0 or discount > gross:
        raise ValidationError("OrderItem", "discount", "must be between 0 and price * quantity")
    return gross - discount


def compute_totals(
    lines: list[tuple[Decimal, int, Decimal]],
    discount: Decimal = ZERO,
    tax: Decimal | None = None,
    tax_rate: Decimal | None = None,
) -> OrderTotals:
    """Compute an order's totals from ``(price, quantity, line_discount)`` tuples.

    Pass either a fixed *tax* amount or a *tax_rate* applied to the
    discounted subtotal (rounded half-up to the cent).  All arithmetic is
    ``Decimal``; the result satisfies ``total == subtotal - discount + tax``
    exactly.
    """
    if tax is not None and tax_rate is not None:
        raise ValidationError("Order", "tax", "give either tax or tax_rate, not both")

    line_totals = tuple(line_total(price, qty, line_discount) for price, qty, line_discount in lines)
    subtotal = sum(line_totals, ZERO)
    discount = quantize_money(discount)
    if discount < 0 or discount > subtotal:
        raise ValidationError("Order", "discount", "must be between 0 and subtotal")

    if tax_rate is not None:
        if tax_rate < 0:
            raise ValidationError("Order", "tax", "tax rate must not be negative")
        tax = quantize_money((subtotal - discount) * tax_rate)
    tax = quantize_money(tax) if tax is not None else ZERO
    if tax < 0:
        raise ValidationError("Order", "tax", "must not be negative")

    return OrderTotals(
        line_totals=line_totals,
        subtotal=subtotal,
        discount=discount,
        tax=tax,
        total=subtotal - discount + tax,
    )


def generate_order_number(now: datetime | None = None) -> str:
    """Return a new order number such as ``ORD-20261019-3F9A1C``."""
    now = now or datetime.now(UTC)
    return f"ORD-{now:%Y%m%d}-{secrets.token_hex(3).upper()}"


async def create_order(
    client: StorageClient,
    *,
    created_by: uuid.UUID,
    lines: list[OrderLine],
    customer_id: uuid.UUID | None = None,
    discount: Decimal = ZERO,
    tax_rate: Decimal | None = None,
    order_number: str | None = None,
    payment_method: str | None = None,
    note: str | None = None,
) -> Order:
    """Create a PENDING order, snapshotting each product's name and price."""
    if not lines:
        raise ValidationError("Order", "items", "an order needs at least one item")

    products: list[Product] = []
    async with client.session() as session:
        for line in lines:
            product = await session.get(Product, line.product_id)
            if product is None:
                raise ForeignKeyViolation("OrderItem", "product_id", f"product {line.product_id} not found")
            if not product.is_active:
                raise ValidationError("OrderItem", "product_id", f"product {product.sku} is not active")
            products.append(product)

    totals = compute_totals(
        [(p.price, line.quantity, line.discount) for p, line in zip(products, lines)],
        discount=discount,
        tax_rate=tax_rate,
    )
    payload = OrderCreate(
        order_number=order_number or generate_order_number(),
        customer_id=customer_id,
        items=[
            OrderItemCreate(
                product_id=product.id,
                name=product.name,
                price=product.price,
                quantity=line.quantity,
                discount=line.discount,
                total=item_total,
            )
            for product, line, item_total in zip(products, lines, totals.line_totals)
        ],
        subtotal=totals.subtotal,
        discount=totals.discount,
        tax=totals.tax,
        total=totals.total,
        payment_method=payment_method,
        note=note,
        created_by=created_by,
    )
    return await client.order.create(payload)


def check_status_transition(current: OrderStatus, new: OrderStatus) -> None:
    """Raise :class:`ValidationError` unless *current* → *new* moves forward."""
    if current == new:
        return
    if current in _TERMINAL_STATUSES:
        raise ValidationError("Order", "status", f"{current} is final")
    if new is OrderStatus.CANCELLED:
        return
    if _STATUS_RANK[new] < _STATUS_RANK[current]:
        raise ValidationError("Order", "status", f"cannot move from {current} back to {new}")


def check_payment_transition(current: PaymentStatus, new: PaymentStatus) -> None:
    """Raise :class:`ValidationError` unless *current* → *new* moves forward."""
    if current == new:
        return
    if _PAYMENT_RANK[new] < _PAYMENT_RANK[current]:
        raise ValidationError(
            "Order", "payment_status", f"cannot move from {current} back to {new}"
        )
    if new is PaymentStatus.REFUNDED and current is PaymentStatus.UNPAID:
        raise ValidationError("Order", "payment_status", "an unpaid order cannot be refunded")


async def _load_order(db: AsyncSession, order_id: uuid.UUID) -> Order:
    result = await db.execute(select(Order).where(Order.id == order_id).with_for_update())
    order = result.scalar_one_or_none()
    if order is None:
        raise ForeignKeyViolation("Order", "id", f"order {order_id} not found")
    return order


async def advance_status(db: AsyncSession, order_id: uuid.UUID, status: OrderStatus | str) -> Order:
    try:
        status = OrderStatus(status)
    except ValueError:
        raise ValidationError("Order", "status", f"unknown status {status!r}") from None
    order = await _load_order(db, order_id)
    check_status_transition(order.status, status)
    order.status = status
    await db.commit()
    await db.refresh(order)
    return order


async def advance_payment_status(
    db: AsyncSession, order_id: uuid.UUID, payment_status: PaymentStatus | str
) -> Order:
    try:
        payment_status = PaymentStatus(payment_status)
    except ValueError:
        raise ValidationError(
            "Order", "payment_status", f"unknown payment status {payment_status!r}"
        ) from None
    order = await _load_order(db, order_id)
    check_payment_transition(order.payment_status, payment_status)
    order.payment_status = payment_status
    await db.commit()
    await db.refresh(order)
    return order
