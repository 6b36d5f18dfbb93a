"""Shared pytest fixtures for the POSdb test suite.

The module-level environment setup runs at collection time, before any
``posdb.*`` module reads its settings, so ``get_settings()`` never falls
back to a developer ``.env`` file.

Every test that needs a database gets its own throwaway SQLite file under
``tmp_path``; the schema is materialised with ``create_all`` rather than
Alembic so the suite needs no running PostgreSQL.

Fixture scopes
--------------
* ``client``   : function, connected :class:`StorageClient` on a fresh database.
* ``staff``    : function, a STAFF user to own orders and movements.
* ``category`` : function, a root category.
* ``product``  : function, an active product in ``category`` with inventory.
"""

import os
from collections.abc import AsyncGenerator
from decimal import Decimal
from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Environment bootstrap: must run before any settings are read
# ---------------------------------------------------------------------------

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"

from posdb.config import get_settings  # noqa: E402
from posdb.models import Category, Product, Role, User  # noqa: E402
from posdb.storage import StorageClient  # noqa: E402


def sqlite_url(path: Path) -> str:
    return f"sqlite+aiosqlite:///{path}"


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    """URL of a not-yet-created SQLite database file private to the test."""
    return sqlite_url(tmp_path / "pos.db")


@pytest.fixture(autouse=True)
def reset_settings_cache() -> None:
    """Drop cached settings so ``monkeypatch.setenv`` takes effect per test."""
    get_settings.cache_clear()


# ---------------------------------------------------------------------------
# Storage client on an ephemeral database
# ---------------------------------------------------------------------------


@pytest.fixture
async def client(database_url: str) -> AsyncGenerator[StorageClient]:
    """A connected client whose database already holds the full schema."""
    async with StorageClient(database_url) as storage:
        await storage.create_all()
        yield storage


# ---------------------------------------------------------------------------
# Reference rows
# ---------------------------------------------------------------------------


@pytest.fixture
async def staff(client: StorageClient) -> User:
    # Tests that need a real bcrypt hash create their own user.
    return await client.user.create(
        {
            "email": "staff@posdb.io",
            "name": "Staff",
            "password_hash": "not-a-real-hash",
            "role": Role.STAFF,
        }
    )


@pytest.fixture
async def category(client: StorageClient) -> Category:
    return await client.category.create({"name": "Beverages", "slug": "beverages"})


@pytest.fixture
async def product(client: StorageClient, category: Category) -> Product:
    created = await client.product.create(
        {
            "name": "Espresso",
            "sku": "BEV-001",
            "price": Decimal("35000"),
            "category_id": category.id,
        }
    )
    await client.inventory.create({"product_id": created.id, "quantity": 50})
    return created
