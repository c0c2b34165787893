"""Shared test fixtures — async DB, client, auth helpers, factories.

Uses SQLite + aiosqlite for fast isolated tests without PostgreSQL.
"""

from __future__ import annotations

import os

# Set test settings before any other import touches pydantic-settings
os.environ.setdefault("JWT_SECRET", "test-secret-for-ci-do-not-use-in-production")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import uuid
from datetime import date, datetime, timedelta, timezone
from typing import AsyncGenerator, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from workforce.common.constants import TaskStatus, UserRole
from workforce.config import settings
from workforce.database import Base, get_db
from workforce.main import create_app

# Import ALL model modules so every table is registered on Base.metadata
import workforce.common.audit  # noqa: F401
import workforce.leave.models  # noqa: F401
import workforce.notifications.models  # noqa: F401
import workforce.org.models  # noqa: F401
import workforce.tasks.models  # noqa: F401

from workforce.org.models import Department, Employee, SubUnit
from workforce.tasks.models import Task, TaskAssignment


# ── Test database (SQLite in-memory) ────────────────────────────────

TEST_DATABASE_URL = "sqlite+aiosqlite://"

engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestSessionFactory = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False,
)


@pytest.fixture(autouse=True)
async def _setup_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    """Reset rate limiter storage between tests to prevent cross-test interference."""
    from workforce.common.rate_limit import limiter

    limiter.reset()
    yield


async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── FastAPI test client ─────────────────────────────────────────────

@pytest.fixture
async def app():
    """Create a fresh app instance with DB dependency overridden."""
    application = create_app()
    application.dependency_overrides[get_db] = _override_get_db
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client wired to the test app."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# ── Database session (for direct DB operations in tests) ────────────

@pytest.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        yield session
        await session.commit()


# ── Model factories ─────────────────────────────────────────────────

_created_tick = iter(range(1, 1_000_000))


def _stable_created_at() -> datetime:
    """Strictly increasing timestamps so approver tie-breaks are deterministic."""
    return datetime(2020, 1, 1, tzinfo=timezone.utc) + timedelta(seconds=next(_created_tick))


async def seed_department(
    db: AsyncSession,
    *,
    name: Optional[str] = None,
    code: Optional[str] = None,
) -> Department:
    suffix = uuid.uuid4().hex[:6].upper()
    dept = Department(
        id=uuid.uuid4(),
        name=name or f"Department {suffix}",
        code=code or f"D{suffix}",
        is_active=True,
    )
    db.add(dept)
    await db.flush()
    return dept


async def seed_sub_unit(
    db: AsyncSession,
    department: Department,
    *,
    name: Optional[str] = None,
) -> SubUnit:
    unit = SubUnit(
        id=uuid.uuid4(),
        name=name or f"Team {uuid.uuid4().hex[:6]}",
        department_id=department.id,
    )
    db.add(unit)
    await db.flush()
    return unit


async def seed_employee(
    db: AsyncSession,
    *,
    role: UserRole = UserRole.tech,
    full_name: str = "Test Employee",
    department_id: Optional[uuid.UUID] = None,
    sub_unit_id: Optional[uuid.UUID] = None,
    supervisor_id: Optional[uuid.UUID] = None,
    employment_start_date: Optional[date] = date(2020, 1, 1),
    birth_month: Optional[int] = 6,
    is_active: bool = True,
    created_at: Optional[datetime] = None,
) -> Employee:
    code = uuid.uuid4().hex[:8].upper()
    emp = Employee(
        id=uuid.uuid4(),
        employee_code=f"WF-{code}",
        full_name=full_name,
        email=f"{code.lower()}@workforce.test",
        role=role,
        department_id=department_id,
        sub_unit_id=sub_unit_id,
        supervisor_id=supervisor_id,
        employment_start_date=employment_start_date,
        birth_month=birth_month,
        is_active=is_active,
        created_at=created_at or _stable_created_at(),
    )
    db.add(emp)
    await db.flush()
    return emp


async def seed_task(
    db: AsyncSession,
    employee_id: uuid.UUID,
    *,
    start_date: date,
    end_date: date,
    status: TaskStatus = TaskStatus.waiting,
    title: str = "Site installation",
) -> Task:
    task = Task(
        id=uuid.uuid4(),
        job_number=f"JOB-{uuid.uuid4().hex[:8].upper()}",
        title=title,
        start_date=start_date,
        end_date=end_date,
        status=status,
    )
    db.add(task)
    await db.flush()
    db.add(TaskAssignment(task_id=task.id, employee_id=employee_id))
    await db.flush()
    return task


# ── Auth helpers ────────────────────────────────────────────────────

def create_access_token(
    employee_id: uuid.UUID,
    expired: bool = False,
) -> str:
    """Generate a JWT access token for testing."""
    if expired:
        exp = datetime.now(timezone.utc) - timedelta(hours=1)
    else:
        exp = datetime.now(timezone.utc) + timedelta(hours=1)
    payload = {
        "sub": str(employee_id),
        "type": "access",
        "exp": exp,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def auth_headers_for(employee: Employee) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(employee.id)}"}
