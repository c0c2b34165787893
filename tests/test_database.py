"""Engine options per database backend."""

from __future__ import annotations

from workforce.config import settings
from workforce.database import _engine_options


def test_postgres_gets_pool_sizing():
    options = _engine_options("postgresql+asyncpg://u:p@db:5432/workforce")
    assert options["pool_size"] == settings.DB_POOL_SIZE
    assert options["max_overflow"] == settings.DB_MAX_OVERFLOW
    assert options["pool_pre_ping"] is True


def test_sqlite_skips_pool_sizing():
    options = _engine_options("sqlite+aiosqlite://")
    assert "pool_size" not in options
    assert "max_overflow" not in options
