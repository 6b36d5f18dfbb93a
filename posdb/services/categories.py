"""Category tree maintenance.

The tree is stored as a plain ``parent_id`` column; children are always
derived by querying on it, and every re-parenting walks the new parent's
ancestor chain so the tree can never gain a cycle.
"""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from posdb.errors import ForeignKeyViolation, ValidationError
from posdb.models.category import Category


async def ancestor_ids(db: AsyncSession, category_id: uuid.UUID) -> list[uuid.UUID]:
    """Return the ids on the path from *category_id*'s parent up to the root."""
    chain: list[uuid.UUID] = []
    seen = {category_id}
    current = await db.get(Category, category_id)
    while current is not None and current.parent_id is not None:
        if current.parent_id in seen:
            raise ValidationError("Category", "parent_id", "existing tree contains a cycle")
        seen.add(current.parent_id)
        chain.append(current.parent_id)
        current = await db.get(Category, current.parent_id)
    return chain


async def set_parent(
    db: AsyncSession,
    category_id: uuid.UUID,
    parent_id: uuid.UUID | None,
) -> Category:
    """Move *category_id* under *parent_id* (``None`` makes it a root).

    Raises :class:`ValidationError` if the move would create a cycle and
    :class:`ForeignKeyViolation` if either category does not exist.
    """
    category = await db.get(Category, category_id)
    if category is None:
        raise ForeignKeyViolation("Category", "id", f"category {category_id} not found")

    if parent_id is not None:
        if parent_id == category_id:
            raise ValidationError("Category", "parent_id", "a category cannot be its own parent")
        parent = await db.get(Category, parent_id)
        if parent is None:
            raise ForeignKeyViolation("Category", "parent_id", f"category {parent_id} not found")
        if category_id in await ancestor_ids(db, parent_id):
            raise ValidationError(
                "Category", "parent_id", "assignment would make the category its own ancestor"
            )

    category.parent_id = parent_id
    await db.commit()
    await db.refresh(category)
    return category


async def children_of(db: AsyncSession, parent_id: uuid.UUID | None) -> list[Category]:
    """Return the direct children of *parent_id* (roots when ``None``), in display order."""
    stmt = select(Category).order_by(Category.display_order, Category.name)
    if parent_id is None:
        stmt = stmt.where(Category.parent_id.is_(None))
    else:
        stmt = stmt.where(Category.parent_id == parent_id)
    result = await db.execute(stmt)
    return list(result.scalars().all())
