"""
TechNotes Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every test gets a fresh in-memory SQLite database (aiosqlite with a
       StaticPool so all sessions share one connection), created from the
       ORM metadata.

Fixture Hierarchy:
    database        Database bound to a fresh in-memory SQLite
    ├── db_session  AsyncSession for service-level tests
    ├── seeded_users  users u1=alice, u2=bob
    └── test_client   HTTPX AsyncClient against create_app(database=...)
    mock_db_session AsyncMock session for failure injection
"""

import os

# Must be set before technotes.config is imported
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["LOG_LEVEL"] = "WARNING"

from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.pool import StaticPool

from technotes.config import Settings
from technotes.database import Database
from technotes.main import create_app
from technotes.models.user import User


SEED_USERS = {"u1": "alice", "u2": "bob"}


@pytest_asyncio.fixture
async def database():
    db = Database("sqlite+aiosqlite://", poolclass=StaticPool)
    await db.create_tables()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def db_session(database):
    async with database.session() as session:
        yield session


@pytest_asyncio.fixture
async def seeded_users(database):
    async with database.session() as session:
        session.add_all(
            [User(id=user_id, username=name) for user_id, name in SEED_USERS.items()]
        )
        await session.commit()
    return dict(SEED_USERS)


@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        mock_db_session.execute.return_value.scalar_one_or_none.return_value = note
    """
    session = AsyncMock()
    session.execute = AsyncMock(return_value=MagicMock())
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def make_settings():
    """Builds Settings for an app under test; keyword overrides win."""
    def _make(**overrides):
        values = {
            "database_url": "sqlite+aiosqlite://",
            "log_level": "WARNING",
            "rate_limit_requests": 1000,
        }
        values.update(overrides)
        return Settings(**values)
    return _make


@pytest.fixture
def client_factory(database, make_settings):
    """Returns an async context manager yielding a client for custom settings."""
    def _factory(**overrides):
        app = create_app(app_settings=make_settings(**overrides), database=database)
        transport = ASGITransport(app=app)
        return AsyncClient(transport=transport, base_url="http://test")
    return _factory


@pytest_asyncio.fixture
async def test_client(client_factory):
    """
    Provides an async HTTP test client for endpoint testing.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    async with client_factory() as client:
        yield client

