import ssl

import pytest
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from posdb.database import _asyncpg_url, create_engine, create_session_factory, normalize_url

# ---------------------------------------------------------------------------
# URL handling
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("postgresql://u:p@db/pos", "postgresql+asyncpg://u:p@db/pos"),
        ("postgres://u:p@db/pos", "postgresql+asyncpg://u:p@db/pos"),
        ("postgresql+asyncpg://u:p@db/pos", "postgresql+asyncpg://u:p@db/pos"),
        ("sqlite:///pos.db", "sqlite+aiosqlite:///pos.db"),
        ("sqlite+aiosqlite:///pos.db", "sqlite+aiosqlite:///pos.db"),
    ],
)
def test_normalize_url_selects_async_driver(url, expected):
    assert normalize_url(url) == expected


def test_asyncpg_url_strips_sslmode_require():
    url, connect_args = _asyncpg_url("postgresql+asyncpg://u:p@db/pos?sslmode=require")
    assert "sslmode" not in url
    assert isinstance(connect_args["ssl"], ssl.SSLContext)


def test_asyncpg_url_disable_sslmode_adds_no_context():
    url, connect_args = _asyncpg_url("postgresql+asyncpg://u:p@db/pos?sslmode=disable&application_name=seed")
    assert url == "postgresql+asyncpg://u:p@db/pos?application_name=seed"
    assert connect_args == {}


def test_asyncpg_url_without_query_is_untouched():
    url = "postgresql+asyncpg://u:p@db/pos"
    assert _asyncpg_url(url) == (url, {})


# ---------------------------------------------------------------------------
# Engines
# ---------------------------------------------------------------------------


def test_postgres_engine_has_pool_settings():
    engine = create_engine("postgresql://u:p@localhost/pos")
    assert isinstance(engine, AsyncEngine)
    assert engine.pool.size() == 5  # type: ignore[attr-defined]


def test_session_factory_is_sessionmaker():
    engine = create_engine("sqlite:///:memory:")
    assert isinstance(create_session_factory(engine), async_sessionmaker)


@pytest.mark.asyncio
async def test_sqlite_engine_enforces_foreign_keys(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'fk.db'}")
    try:
        async with engine.connect() as conn:
            result = await conn.execute(text("PRAGMA foreign_keys"))
            assert result.scalar_one() == 1
    finally:
        await engine.dispose()
