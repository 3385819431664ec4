"""
EntityHub Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── db_engine:        in-memory SQLite engine with every entity table created
    ├── db_session:       AsyncSession on that engine (facade / service tests)
    ├── mock_db_session:  Mock database session (no real DB needed)
    ├── test_client:      HTTPX AsyncClient with get_db_session overridden
    ├── actor_id:         24-hex caller id sent in the X-User-Id header
    └── sample_task:      a valid Task create payload
"""

import os

# Override settings for testing BEFORE any entityhub imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["LOG_LEVEL"] = "WARNING"

from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from entityhub.database import Base, get_db_session
from entityhub.entities import ENTITIES  # noqa: F401  (registers the tables)


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine():
    """
    Fresh in-memory database per test.

    StaticPool keeps one connection, so every session sees the same
    in-memory database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        async def test_get(mock_db_session):
            with patch("entityhub.services.entity_service.data_access") as facade:
                facade.find_one = AsyncMock(return_value=None)
                ...
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# API Client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(db_engine):
    """
    Provides an async HTTP test client for endpoint testing.

    Each request gets a session on the test engine, committed on success
    and rolled back on error like the production dependency.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from entityhub.main import app

    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_get_db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


# ══════════════════════════════════════════════════════════════════════════
# Sample Data
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def actor_id() -> str:
    return "65a1b2c3d4e5f60718293a4b"


@pytest.fixture
def sample_task():
    """A valid Task create payload."""
    return {
        "title": "Replace filter",
        "description": "Swap the intake filter on unit 7",
        "attachments": [],
        "status": 0,
        "dueDate": "2024-06-01T00:00:00Z",
    }
