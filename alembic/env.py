import asyncio
import os
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.ext.asyncio import create_async_engine

from alembic import context

# Import all models so Alembic autogenerate can detect them
import posdb.models  # noqa: F401
from posdb.database import _asyncpg_url, normalize_url
from posdb.models.base import Base

# Alembic Config object: provides access to values in alembic.ini
config = context.config

# Interpret the config file for Python logging (if present)
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Metadata for autogenerate support
target_metadata = Base.metadata


def get_url() -> str:
    """Return the direct (non-pooled) database URL for DDL migrations.

    PgBouncer in transaction mode cannot execute DDL, so migrations prefer
    DATABASE_URL_DIRECT and fall back to DATABASE_URL.
    """
    url = os.environ.get("DATABASE_URL_DIRECT") or os.environ["DATABASE_URL"]
    return normalize_url(url)


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode (emit SQL to stdout, no DB connection).

    The asyncpg driver prefix is stripped back to plain postgresql for
    offline SQL generation.
    """
    url = get_url().replace("postgresql+asyncpg://", "postgresql://")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection) -> None:
    context.configure(connection=connection, target_metadata=target_metadata)
    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    """Run migrations using an async engine (required for asyncpg)."""
    url, connect_args = _asyncpg_url(get_url())
    connectable = create_async_engine(
        url,
        poolclass=pool.NullPool,
        connect_args=connect_args,
    )
    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)
    await connectable.dispose()


def run_migrations_online() -> None:
    asyncio.run(run_async_migrations())


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
