"""Render the POS schema as PostgreSQL DDL.

Run as:
    python -m posdb.schema_artifact [output-path]

The output (enum types, tables, constraints and indexes) is what a
``Base.metadata.create_all`` against PostgreSQL would execute, and is meant
for review or for provisioning a database outside Alembic.
"""

import argparse
import logging
import sys
from pathlib import Path

from sqlalchemy import create_mock_engine

import posdb.models  # noqa: F401  (registers every table on Base.metadata)
from posdb.models.base import Base

DEFAULT_OUTPUT = Path("db/schema.sql")

logger = logging.getLogger(__name__)


def render_schema() -> str:
    """Return the DDL for every table, type and index, in dependency order."""
    statements: list[str] = []

    def collect(sql, *multiparams, **params) -> None:
        statements.append(str(sql.compile(dialect=engine.dialect)).strip())

    engine = create_mock_engine("postgresql+asyncpg://", collect)
    Base.metadata.create_all(engine, checkfirst=False)
    header = "-- POSdb schema (PostgreSQL). Generated from posdb.models; do not edit.\n\n"
    return header + "".join(f"{statement};\n\n" for statement in statements)


def write_schema(output: Path = DEFAULT_OUTPUT) -> Path:
    """Write :func:`render_schema` to *output*, creating parent directories."""
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(render_schema(), encoding="utf-8")
    return output


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Write the POS schema as PostgreSQL DDL.")
    parser.add_argument(
        "output",
        nargs="?",
        type=Path,
        default=DEFAULT_OUTPUT,
        help=f"output path (default: {DEFAULT_OUTPUT})",
    )
    args = parser.parse_args(argv)

    try:
        path = write_schema(args.output)
    except OSError as exc:
        logger.error("Could not write schema to %s: %s", args.output, exc)
        print(f"✗ Could not write schema to {args.output}: {exc}", file=sys.stderr)
        return 1

    print(f"✓ Schema written to {path}")
    print("  Apply with: alembic upgrade head  (or psql -f on a fresh database)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
