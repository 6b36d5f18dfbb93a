"""Seed script: bring a fresh POS database to its baseline reference data.

Run as:
    python -m seed

Requires the DATABASE_URL environment variable (or a .env file).

Every step looks its rows up by their unique key first and only creates
what is missing, so the script can be re-run any number of times; after a
partial failure simply run it again.  Each create commits on its own, so
rows written before a failure stay in place.

Initial inventory quantities are drawn at random on first creation to give
the sample catalog some variety.  They are deliberately not reproducible:
which rows exist is deterministic, the numbers they start with are not.
"""

import asyncio
import logging
import random
import sys
from collections import Counter
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from posdb.config import get_settings
from posdb.errors import ForeignKeyViolation
from posdb.models import Category, Customer, Inventory, Product, Role, User
from posdb.services.auth import hash_password
from posdb.storage import StorageClient

logger = logging.getLogger("seed")

# ---------------------------------------------------------------------------
# Admin user constants
# ---------------------------------------------------------------------------

ADMIN_EMAIL = "admin@posdb.io"
ADMIN_NAME = "Admin"
ADMIN_ROLE = Role.ADMIN

# ---------------------------------------------------------------------------
# Catalog taxonomy: flat list of top-level categories, keyed by slug
# ---------------------------------------------------------------------------

CATEGORIES: list[dict[str, Any]] = [
    {"name": "Beverages", "slug": "beverages", "display_order": 0},
    {"name": "Food", "slug": "food", "display_order": 1},
    {"name": "Snacks", "slug": "snacks", "display_order": 2},
    {"name": "Desserts", "slug": "desserts", "display_order": 3},
]

# ---------------------------------------------------------------------------
# Starter catalog: 12 products, SKU format {CATEGORY}-{3-digit number}
# Prices are in the store currency's smallest display unit (no cents used).
# ---------------------------------------------------------------------------

PRODUCTS: list[dict[str, Any]] = [
    {"name": "Espresso", "sku": "BEV-001", "price": Decimal("35000"), "category": "beverages"},
    {"name": "Cappuccino", "sku": "BEV-002", "price": Decimal("45000"), "category": "beverages"},
    {"name": "Latte", "sku": "BEV-003", "price": Decimal("50000"), "category": "beverages"},
    {"name": "Americano", "sku": "BEV-004", "price": Decimal("40000"), "category": "beverages"},
    {"name": "Green Tea", "sku": "BEV-005", "price": Decimal("35000"), "category": "beverages"},
    {"name": "Sandwich", "sku": "FOOD-001", "price": Decimal("55000"), "category": "food"},
    {"name": "Pasta", "sku": "FOOD-002", "price": Decimal("75000"), "category": "food"},
    {"name": "Salad", "sku": "FOOD-003", "price": Decimal("65000"), "category": "food"},
    {"name": "Chips", "sku": "SNK-001", "price": Decimal("25000"), "category": "snacks"},
    {"name": "Cookie", "sku": "SNK-002", "price": Decimal("20000"), "category": "snacks"},
    {"name": "Brownie", "sku": "DES-001", "price": Decimal("35000"), "category": "desserts"},
    {"name": "Cheesecake", "sku": "DES-002", "price": Decimal("45000"), "category": "desserts"},
]

# Initial on-hand stock is drawn uniformly from this inclusive range.
INITIAL_STOCK_RANGE = (20, 119)
LOW_STOCK_THRESHOLD = 10

# ---------------------------------------------------------------------------
# Sample customer
# ---------------------------------------------------------------------------

SAMPLE_CUSTOMER: dict[str, Any] = {
    "name": "Sample Customer",
    "phone": "0901234567",
    "email": "customer@example.com",
}


@dataclass
class SeedReport:
    """Per-entity counts of rows created and rows found already present."""

    created: Counter = field(default_factory=Counter)
    existing: Counter = field(default_factory=Counter)

    def record(self, entity: str, created: bool) -> None:
        (self.created if created else self.existing)[entity] += 1

    @property
    def total_created(self) -> int:
        return sum(self.created.values())


# ---------------------------------------------------------------------------
# Seed functions
# ---------------------------------------------------------------------------


async def seed_admin_user(client: StorageClient, password: str, report: SeedReport) -> User:
    """Create the admin user if it doesn't already exist.  Credentials are never rotated."""
    existing = await client.user.find_unique(email=ADMIN_EMAIL)
    if existing is not None:
        print(f"  ✓ Admin user already exists: {ADMIN_EMAIL}")
        report.record("User", created=False)
        return existing

    user = await client.user.create(
        {
            "email": ADMIN_EMAIL,
            "name": ADMIN_NAME,
            "password_hash": hash_password(password),
            "role": ADMIN_ROLE,
            "is_active": True,
        }
    )
    print(f"  ✓ Created admin user: {ADMIN_EMAIL}")
    report.record("User", created=True)
    return user


async def seed_categories(client: StorageClient, report: SeedReport) -> dict[str, Category]:
    """Create categories idempotently.  Returns a mapping of slug -> Category."""
    category_map: dict[str, Category] = {}

    for category_data in CATEGORIES:
        category = await client.category.find_unique(slug=category_data["slug"])
        if category is None:
            category = await client.category.create(category_data)
            print(f"  ✓ Created category: {category_data['slug']}")
            report.record("Category", created=True)
        else:
            print(f"  ✓ Category already exists: {category_data['slug']}")
            report.record("Category", created=False)
        category_map[category_data["slug"]] = category

    return category_map


async def seed_inventory(
    client: StorageClient,
    product: Product,
    rng: random.Random,
    report: SeedReport,
) -> Inventory:
    """Create the inventory record for *product* unless it already has one."""
    inventory = await client.inventory.find_unique(product_id=product.id)
    if inventory is not None:
        report.record("Inventory", created=False)
        return inventory

    inventory = await client.inventory.create(
        {
            "product_id": product.id,
            "quantity": rng.randint(*INITIAL_STOCK_RANGE),
            "low_stock_threshold": LOW_STOCK_THRESHOLD,
        }
    )
    print(f"    ✓ Created inventory for {product.sku}: {inventory.quantity} on hand")
    report.record("Inventory", created=True)
    return inventory


async def seed_products(
    client: StorageClient,
    category_map: dict[str, Category],
    rng: random.Random,
    report: SeedReport,
) -> list[Product]:
    """Create products idempotently (checked by SKU), each with its inventory."""
    products: list[Product] = []
    for product_data in PRODUCTS:
        category = category_map.get(product_data["category"])
        if category is None:
            raise ForeignKeyViolation(
                "Product",
                "category_id",
                f"unknown category slug {product_data['category']!r} for {product_data['sku']}",
            )

        product = await client.product.find_unique(sku=product_data["sku"])
        if product is None:
            product = await client.product.create(
                {
                    "name": product_data["name"],
                    "sku": product_data["sku"],
                    "price": product_data["price"],
                    "category_id": category.id,
                    "images": [],
                }
            )
            print(f"  ✓ Created product: {product_data['sku']} – {product_data['name']}")
            report.record("Product", created=True)
        else:
            print(f"  ✓ Product already exists: {product_data['sku']}")
            report.record("Product", created=False)

        await seed_inventory(client, product, rng, report)
        products.append(product)

    return products


async def seed_customer(client: StorageClient, report: SeedReport) -> Customer:
    """Create the sample customer if no customer has its phone number."""
    existing = await client.customer.find_unique(phone=SAMPLE_CUSTOMER["phone"])
    if existing is not None:
        print(f"  ✓ Sample customer already exists: {SAMPLE_CUSTOMER['phone']}")
        report.record("Customer", created=False)
        return existing

    customer = await client.customer.create(SAMPLE_CUSTOMER)
    print(f"  ✓ Created sample customer: {SAMPLE_CUSTOMER['phone']}")
    report.record("Customer", created=True)
    return customer


async def seed(
    client: StorageClient,
    admin_password: str = "admin123",
    rng: random.Random | None = None,
) -> SeedReport:
    """Run every seed step in dependency order against a connected *client*."""
    rng = rng or random.Random()
    report = SeedReport()

    print("\n[1/4] Seeding admin user...")
    await seed_admin_user(client, admin_password, report)

    print("\n[2/4] Seeding categories...")
    category_map = await seed_categories(client, report)

    print("\n[3/4] Seeding products and inventory...")
    await seed_products(client, category_map, rng, report)

    print("\n[4/4] Seeding sample customer...")
    await seed_customer(client, report)

    return report


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


async def main() -> SeedReport:
    settings = get_settings()

    print(f"{settings.app_name} Seed Script")
    print("=" * 50)

    async with StorageClient(settings.database_url, echo=settings.sql_echo) as client:
        report = await seed(client, admin_password=settings.seed_admin_password)

    print(f"\n✓ Seed complete! ({report.total_created} rows created)")
    return report


def run() -> int:
    """Run :func:`main` and translate the outcome into a process exit code."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        asyncio.run(main())
    except Exception:
        logger.exception("Seeding failed")
        print("\n✗ Seed failed; re-run once the problem is fixed.", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(run())
