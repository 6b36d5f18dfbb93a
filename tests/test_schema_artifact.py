"""Tests for posdb/schema_artifact.py: the PostgreSQL DDL dump."""

import re

from posdb.schema_artifact import main, render_schema

TABLES = (
    "users",
    "categories",
    "products",
    "product_variants",
    "inventories",
    "stock_movements",
    "customers",
    "orders",
    "order_items",
)


def test_render_schema_covers_every_table_and_enum():
    ddl = render_schema()
    for table in TABLES:
        assert f"CREATE TABLE {table} (" in ddl
    for enum_name in ("role", "order_status", "payment_status", "movement_type"):
        assert f"CREATE TYPE {enum_name} AS ENUM" in ddl


def test_render_schema_orders_dependencies_first():
    ddl = render_schema()
    position = {table: ddl.index(f"CREATE TABLE {table} (") for table in TABLES}
    assert position["categories"] < position["products"] < position["order_items"]
    assert position["users"] < position["orders"] < position["order_items"]
    assert ddl.index("CREATE TYPE role") < position["users"]


def test_render_schema_carries_constraints():
    ddl = render_schema()
    assert "CONSTRAINT uq_products_sku UNIQUE (sku)" in ddl
    assert "CONSTRAINT uq_products_barcode UNIQUE (barcode)" in ddl
    assert "CONSTRAINT ck_inventories_reserved_within_quantity CHECK (reserved_qty <= quantity)" in ddl
    assert "CONSTRAINT ck_orders_total_matches_parts CHECK (total = subtotal - discount + tax)" in ddl
    assert re.search(r"FOREIGN KEY\(product_id\) REFERENCES products \(id\) ON DELETE CASCADE", ddl)
    assert re.search(r"FOREIGN KEY\(customer_id\) REFERENCES customers \(id\) ON DELETE SET NULL", ddl)
    assert re.search(r"FOREIGN KEY\(category_id\) REFERENCES categories \(id\) ON DELETE RESTRICT", ddl)
    assert "CREATE INDEX ix_orders_status_payment_status ON orders (status, payment_status)" in ddl
    assert "images VARCHAR(500)[] NOT NULL" in ddl
    assert "attributes JSONB NOT NULL" in ddl


def test_main_writes_file(tmp_path, capsys):
    output = tmp_path / "db" / "schema.sql"
    assert main([str(output)]) == 0
    assert output.read_text(encoding="utf-8") == render_schema()
    assert "Schema written" in capsys.readouterr().out


def test_main_reports_unwritable_path(tmp_path, capsys):
    # A directory cannot be opened for writing.
    assert main([str(tmp_path)]) == 1
    assert "Could not write schema" in capsys.readouterr().err
