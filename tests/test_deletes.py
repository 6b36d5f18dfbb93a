"""Tests for delete behaviour across every relationship.

Owned children (variants, inventory, order items) follow their parent;
references from history (orders, order items, stock movements) and from
the catalog tree block the delete; a deleted customer leaves its orders
behind with the reference cleared.
"""

from decimal import Decimal

import pytest
from sqlalchemy import func, select

from posdb.errors import ForeignKeyViolation
from posdb.models import Category, MovementType, OrderItem, Product, User
from posdb.services import OrderLine, apply_movement, create_order
from posdb.storage import StorageClient


async def _product(client: StorageClient, category: Category, sku: str) -> Product:
    product = await client.product.create(
        {"name": sku, "sku": sku, "price": Decimal("12.50"), "category_id": category.id}
    )
    await client.inventory.create({"product_id": product.id, "quantity": 30})
    return product


# ---------------------------------------------------------------------------
# Cascades
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_product_delete_cascades_to_variants_and_inventory(
    client: StorageClient, category: Category, product: Product
) -> None:
    other = await _product(client, category, "BEV-002")
    await client.product_variant.create(
        {"product_id": product.id, "name": "Double", "sku": "BEV-001-D", "price": Decimal("45000")}
    )
    await client.product_variant.create(
        {"product_id": other.id, "name": "Large", "sku": "BEV-002-L", "price": Decimal("15")}
    )

    assert await client.product.delete(product.id) is True

    assert await client.product.find_unique(id=product.id) is None
    assert await client.product_variant.find_unique(sku="BEV-001-D") is None
    assert await client.inventory.find_unique(product_id=product.id) is None
    # Unrelated rows are untouched.
    assert await client.product.find_unique(id=other.id) is not None
    assert await client.product_variant.find_unique(sku="BEV-002-L") is not None
    assert await client.inventory.find_unique(product_id=other.id) is not None
    assert await client.category.find_unique(id=category.id) is not None


@pytest.mark.asyncio
async def test_order_delete_cascades_to_its_items_only(
    client: StorageClient, staff: User, product: Product
) -> None:
    first = await create_order(client, created_by=staff.id, lines=[OrderLine(product.id, 2)])
    second = await create_order(client, created_by=staff.id, lines=[OrderLine(product.id, 1)])

    assert await client.order.delete(first.id) is True

    async with client.session() as session:
        remaining = await session.execute(select(OrderItem.order_id, func.count()).group_by(OrderItem.order_id))
        assert dict(remaining.all()) == {second.id: 1}
    assert await client.product.find_unique(id=product.id) is not None


@pytest.mark.asyncio
async def test_delete_missing_row_returns_false(client: StorageClient, category: Category) -> None:
    await client.category.delete(category.id)
    assert await client.category.delete(category.id) is False


# ---------------------------------------------------------------------------
# Restricted deletes
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_category_with_products_cannot_be_deleted(
    client: StorageClient, category: Category, product: Product
) -> None:
    with pytest.raises(ForeignKeyViolation) as exc_info:
        await client.category.delete(category.id)
    assert exc_info.value.entity == "Product"
    assert exc_info.value.field == "category_id"
    assert await client.category.find_unique(id=category.id) is not None


@pytest.mark.asyncio
async def test_category_with_children_cannot_be_deleted(client: StorageClient, category: Category) -> None:
    await client.category.create({"name": "Coffee", "slug": "coffee", "parent_id": category.id})

    with pytest.raises(ForeignKeyViolation) as exc_info:
        await client.category.delete(category.id)
    assert exc_info.value.entity == "Category"
    assert exc_info.value.field == "parent_id"


@pytest.mark.asyncio
async def test_product_with_order_items_cannot_be_deleted(
    client: StorageClient, staff: User, product: Product
) -> None:
    await create_order(client, created_by=staff.id, lines=[OrderLine(product.id, 1)])

    with pytest.raises(ForeignKeyViolation) as exc_info:
        await client.product.delete(product.id)
    assert exc_info.value.entity == "OrderItem"
    assert exc_info.value.field == "product_id"
    # The rejected delete did not take the inventory with it.
    assert await client.inventory.find_unique(product_id=product.id) is not None


@pytest.mark.asyncio
async def test_product_with_stock_movements_cannot_be_deleted(
    client: StorageClient, product: Product
) -> None:
    async with client.session() as session:
        await apply_movement(
            session,
            product.id,
            MovementType.IN,
            5,
            reference_type="purchase",
            reference_id="PO-1",
            created_by="staff@posdb.io",
        )

    with pytest.raises(ForeignKeyViolation) as exc_info:
        await client.product.delete(product.id)
    assert exc_info.value.entity == "StockMovement"
    assert exc_info.value.field == "product_id"


@pytest.mark.asyncio
async def test_user_with_orders_cannot_be_deleted(
    client: StorageClient, staff: User, product: Product
) -> None:
    await create_order(client, created_by=staff.id, lines=[OrderLine(product.id, 1)])

    with pytest.raises(ForeignKeyViolation) as exc_info:
        await client.user.delete(staff.id)
    assert exc_info.value.entity == "Order"
    assert exc_info.value.field == "created_by"


# ---------------------------------------------------------------------------
# Nullified references
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_customer_delete_keeps_orders(client: StorageClient, staff: User, product: Product) -> None:
    customer = await client.customer.create({"name": "Lan", "phone": "0901234567"})
    order = await create_order(
        client, created_by=staff.id, customer_id=customer.id, lines=[OrderLine(product.id, 1)]
    )
    assert order.customer_id == customer.id

    assert await client.customer.delete(customer.id) is True

    kept = await client.order.find_unique(id=order.id)
    assert kept is not None
    assert kept.customer_id is None
    assert kept.total == order.total
