"""Tests for posdb/services/categories.py: tree shape and cycle prevention."""

import uuid

import pytest

from posdb.errors import ForeignKeyViolation, UniqueConstraintViolation, ValidationError
from posdb.models import Category
from posdb.services import ancestor_ids, children_of, set_parent
from posdb.storage import StorageClient


async def _tree(client: StorageClient) -> tuple[Category, Category, Category]:
    """root -> coffee -> espresso-drinks"""
    root = await client.category.create({"name": "Beverages", "slug": "beverages"})
    coffee = await client.category.create({"name": "Coffee", "slug": "coffee", "parent_id": root.id})
    espresso = await client.category.create(
        {"name": "Espresso drinks", "slug": "espresso-drinks", "parent_id": coffee.id}
    )
    return root, coffee, espresso


@pytest.mark.asyncio
async def test_children_are_derived_from_parent_id(client: StorageClient) -> None:
    root, coffee, _ = await _tree(client)
    tea = await client.category.create(
        {"name": "Tea", "slug": "tea", "parent_id": root.id, "display_order": 0}
    )
    await client.category.create({"name": "Food", "slug": "food", "display_order": 1})

    async with client.session() as session:
        children = await children_of(session, root.id)
        roots = await children_of(session, None)

    assert [c.slug for c in children] == [coffee.slug, tea.slug]
    assert [c.slug for c in roots] == ["beverages", "food"]


@pytest.mark.asyncio
async def test_ancestor_ids(client: StorageClient) -> None:
    root, coffee, espresso = await _tree(client)
    async with client.session() as session:
        assert await ancestor_ids(session, espresso.id) == [coffee.id, root.id]
        assert await ancestor_ids(session, root.id) == []


@pytest.mark.asyncio
async def test_reparent_to_descendant_rejected(client: StorageClient) -> None:
    root, _, espresso = await _tree(client)
    async with client.session() as session:
        with pytest.raises(ValidationError) as exc_info:
            await set_parent(session, root.id, espresso.id)
    assert exc_info.value.field == "parent_id"

    reloaded = await client.category.find_unique(id=root.id)
    assert reloaded is not None
    assert reloaded.parent_id is None


@pytest.mark.asyncio
async def test_self_parent_rejected(client: StorageClient) -> None:
    root, _, _ = await _tree(client)
    async with client.session() as session:
        with pytest.raises(ValidationError):
            await set_parent(session, root.id, root.id)


@pytest.mark.asyncio
async def test_reparent_and_detach(client: StorageClient) -> None:
    root, coffee, espresso = await _tree(client)
    async with client.session() as session:
        moved = await set_parent(session, espresso.id, root.id)
        assert moved.parent_id == root.id
        detached = await set_parent(session, coffee.id, None)
        assert detached.parent_id is None
        assert [c.slug for c in await children_of(session, None)] == ["beverages", "coffee"]


@pytest.mark.asyncio
async def test_reparent_to_missing_category(client: StorageClient) -> None:
    root, _, _ = await _tree(client)
    async with client.session() as session:
        with pytest.raises(ForeignKeyViolation):
            await set_parent(session, root.id, uuid.uuid4())
        with pytest.raises(ForeignKeyViolation):
            await set_parent(session, uuid.uuid4(), root.id)


@pytest.mark.asyncio
async def test_create_with_missing_parent_rejected(client: StorageClient) -> None:
    with pytest.raises(ForeignKeyViolation) as exc_info:
        await client.category.create({"name": "Orphan", "slug": "orphan", "parent_id": uuid.uuid4()})
    assert exc_info.value.entity == "Category"
    assert exc_info.value.field == "parent_id"


@pytest.mark.asyncio
async def test_duplicate_slug_rejected(client: StorageClient, category: Category) -> None:
    with pytest.raises(UniqueConstraintViolation) as exc_info:
        await client.category.create({"name": "Drinks", "slug": "beverages"})
    assert exc_info.value.field == "slug"
