"""Async SQLAlchemy engine and session management."""

from typing import Any, AsyncGenerator

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from workforce.config import settings


def _engine_options(database_url: str) -> dict[str, Any]:
    """Pool sizing applies to server databases only; SQLite pools reject it."""
    options: dict[str, Any] = {
        "echo": settings.ENVIRONMENT == "development",
        "pool_pre_ping": True,
    }
    if make_url(database_url).get_backend_name() != "sqlite":
        options["pool_size"] = settings.DB_POOL_SIZE
        options["max_overflow"] = settings.DB_MAX_OVERFLOW
    return options


engine = create_async_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))

# Rows stay readable after commit.
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Declarative base shared by org, task, leave, notification and audit tables."""


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session: one transaction per request.

    Leave creation and transitions write their audit rows in the same
    transaction, so a failure anywhere rolls back both.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
