import pytest
from pydantic import ValidationError

from posdb.config import Settings, get_settings


def test_settings_requires_database_url(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_settings_loads_from_env(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql+asyncpg://u:p@localhost/db")
    monkeypatch.setenv("SEED_ADMIN_PASSWORD", "changeme")
    s = Settings(_env_file=None)
    assert s.database_url == "postgresql+asyncpg://u:p@localhost/db"
    assert s.seed_admin_password == "changeme"
    assert s.app_name == "POSdb"
    assert s.version == "1.0.0"


def test_settings_defaults(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql+asyncpg://u:p@localhost/db")
    monkeypatch.delenv("DATABASE_URL_DIRECT", raising=False)
    monkeypatch.delenv("SEED_ADMIN_PASSWORD", raising=False)
    monkeypatch.delenv("SQL_ECHO", raising=False)
    s = Settings(_env_file=None)
    assert s.database_url_direct is None
    assert s.sql_echo is False
    assert s.seed_admin_password == "admin123"


def test_settings_env_is_case_insensitive(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("SQL_ECHO", raising=False)
    monkeypatch.setenv("database_url", "sqlite:///pos.db")
    monkeypatch.setenv("sql_echo", "true")
    s = Settings(_env_file=None)
    assert s.database_url == "sqlite:///pos.db"
    assert s.sql_echo is True


def test_get_settings_is_cached(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite:///first.db")
    first = get_settings()
    monkeypatch.setenv("DATABASE_URL", "sqlite:///second.db")
    assert get_settings() is first
    get_settings.cache_clear()
    assert get_settings().database_url == "sqlite:///second.db"
