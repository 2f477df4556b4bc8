import uuid
from collections.abc import AsyncGenerator
from unittest.mock import patch

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import JSON, event
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from voltbuild.common.cache import query_cache
from voltbuild.common.enums import UserRole
from voltbuild.common.security import create_access_token, get_password_hash
from voltbuild.db.base import Base
from voltbuild.db.models import *  # noqa: F401,F403 - ensure all models loaded

# In-memory SQLite per test - remap JSONB to JSON
TEST_DATABASE_URL = "sqlite+aiosqlite://"


# Make JSONB render as JSON for SQLite
@event.listens_for(Base.metadata, "before_create")
def _remap_jsonb(target, connection, **kw):
    if connection.dialect.name == "sqlite":
        for table in target.tables.values():
            for column in table.columns:
                if isinstance(column.type, JSONB):
                    column.type = JSON()


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def client(db_session):
    from voltbuild.api.deps import get_db
    from voltbuild.main import app

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def _make_user(db_session, role: UserRole, name: str):
    from voltbuild.db.models.user import User

    user = User(
        id=uuid.uuid4(),
        email=f"{role.value}_{uuid.uuid4().hex[:8]}@voltbuild.io",
        hashed_password=get_password_hash("testpass123"),
        full_name=name,
        role=role.value,
    )
    db_session.add(user)
    await db_session.flush()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def owner_user(db_session):
    return await _make_user(db_session, UserRole.OWNER, "Test Owner")


@pytest.fixture
async def other_owner_user(db_session):
    return await _make_user(db_session, UserRole.OWNER, "Other Owner")


@pytest.fixture
async def contractor_user(db_session):
    return await _make_user(db_session, UserRole.CONTRACTOR, "Test Contractor")


@pytest.fixture
async def admin_user(db_session):
    return await _make_user(db_session, UserRole.ADMIN, "Test Admin")


def _headers(user) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': str(user.id)})}"}


@pytest.fixture
def auth_headers(owner_user):
    return _headers(owner_user)


@pytest.fixture
def other_headers(other_owner_user):
    return _headers(other_owner_user)


@pytest.fixture
def contractor_headers(contractor_user):
    return _headers(contractor_user)


@pytest.fixture
def admin_headers(admin_user):
    return _headers(admin_user)


@pytest.fixture
async def project(client, auth_headers):
    """A project seeded with the default plan, owned by ``owner_user``."""
    resp = await client.post(
        "/api/v1/projects",
        json={
            "name": "Test Facility 20 MW",
            "target_capacity_mw": 20,
            "cooling_type": "immersion",
            "utility": "AltaLink",
            "planned_start_date": "2025-01-06",
            "planned_end_date": "2025-06-01",
            "capex_budget": "10000000.00",
        },
        headers=auth_headers,
    )
    assert resp.status_code == 201
    return resp.json()


@pytest.fixture
async def empty_project(client, auth_headers):
    """A project created without the default plan."""
    resp = await client.post(
        "/api/v1/projects",
        json={"name": "Blank Site", "seed_template": False},
        headers=auth_headers,
    )
    assert resp.status_code == 201
    return resp.json()


@pytest.fixture(autouse=True)
def clear_query_cache():
    query_cache.clear()
    yield
    query_cache.clear()


@pytest.fixture(autouse=True)
def mock_celery_tasks():
    """Mock Celery task.delay() calls so tests never reach a broker."""
    with (
        patch("voltbuild.tasks.forecast_tasks.snapshot_forecast.delay"),
        patch("voltbuild.tasks.report_tasks.generate_report.delay"),
    ):
        yield
