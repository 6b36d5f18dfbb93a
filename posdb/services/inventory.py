"""Stock service: apply quantity changes and append them to the movement log."""

import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from posdb.errors import ForeignKeyViolation, ValidationError
from posdb.models.enums import MovementType
from posdb.models.inventory import Inventory, StockMovement

# Movement types whose recorded quantity is a change to the on-hand count.
ON_HAND_TYPES = (MovementType.IN, MovementType.OUT, MovementType.ADJUST, MovementType.SALE)


def plan_movement(
    quantity: int,
    reserved_qty: int,
    movement_type: MovementType,
    amount: int,
) -> tuple[int, int, int]:
    """Return ``(new_quantity, new_reserved_qty, logged_delta)`` for a movement.

    ``amount`` is a positive count for every type except ``ADJUST``, where it
    is the signed on-hand correction.  ``RESERVE`` and ``RELEASE`` log the
    change to the reserved count; every other type logs the on-hand change.
    ``SALE`` ships stock, consuming reservations first.

    Raises :class:`ValidationError` if the result would leave a negative
    count or more reserved than on hand.
    """
    try:
        movement_type = MovementType(movement_type)
    except ValueError:
        raise ValidationError("StockMovement", "type", f"unknown movement type {movement_type!r}") from None

    if movement_type is MovementType.ADJUST:
        if amount == 0:
            raise ValidationError("StockMovement", "quantity", "adjustment must be non-zero")
    elif amount <= 0:
        raise ValidationError("StockMovement", "quantity", "must be positive")

    new_quantity, new_reserved = quantity, reserved_qty
    if movement_type in (MovementType.IN, MovementType.ADJUST):
        new_quantity += amount
        delta = amount
    elif movement_type is MovementType.OUT:
        new_quantity -= amount
        delta = -amount
    elif movement_type is MovementType.RESERVE:
        new_reserved += amount
        delta = amount
    elif movement_type is MovementType.RELEASE:
        new_reserved -= amount
        delta = -amount
    else:  # SALE
        new_quantity -= amount
        new_reserved -= min(reserved_qty, amount)
        delta = -amount

    if new_quantity < 0:
        raise ValidationError("Inventory", "quantity", "insufficient stock")
    if new_reserved < 0:
        raise ValidationError("Inventory", "reserved_qty", "cannot release more than reserved")
    if new_reserved > new_quantity:
        raise ValidationError("Inventory", "reserved_qty", "reserved quantity exceeds stock on hand")
    return new_quantity, new_reserved, delta


async def apply_movement(
    db: AsyncSession,
    product_id: uuid.UUID,
    movement_type: MovementType,
    amount: int,
    *,
    reference_type: str,
    reference_id: str,
    created_by: str,
    note: str | None = None,
) -> tuple[Inventory, StockMovement]:
    """Apply a stock movement to a product's inventory and log it.

    Locks the inventory row (``SELECT ... FOR UPDATE``) so concurrent movements
    serialise.  The inventory change and its log entry commit together.
    """
    result = await db.execute(
        select(Inventory).where(Inventory.product_id == product_id).with_for_update()
    )
    inventory = result.scalar_one_or_none()
    if inventory is None:
        raise ForeignKeyViolation("Inventory", "product_id", f"no inventory for product {product_id}")

    try:
        new_quantity, new_reserved, delta = plan_movement(
            inventory.quantity, inventory.reserved_qty, movement_type, amount
        )
    except ValidationError:
        await db.rollback()
        raise

    inventory.quantity = new_quantity
    inventory.reserved_qty = new_reserved
    movement = StockMovement(
        id=uuid.uuid4(),
        product_id=product_id,
        type=movement_type,
        quantity=delta,
        reference_type=reference_type,
        reference_id=reference_id,
        note=note,
        created_by=created_by,
    )
    db.add(movement)
    await db.commit()
    await db.refresh(inventory)
    await db.refresh(movement)
    return inventory, movement


async def on_hand_from_movements(db: AsyncSession, product_id: uuid.UUID) -> int:
    """Sum the on-hand changes logged for *product_id*."""
    result = await db.execute(
        select(func.coalesce(func.sum(StockMovement.quantity), 0)).where(
            StockMovement.product_id == product_id,
            StockMovement.type.in_(ON_HAND_TYPES),
        )
    )
    return int(result.scalar_one())


def is_low_stock(inventory: Inventory) -> bool:
    """Return True when unreserved stock has fallen to the low-stock threshold."""
    return inventory.available_qty <= inventory.low_stock_threshold
