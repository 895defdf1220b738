"""
Trip Track Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every test gets a fresh in-memory SQLite database (aiosqlite) built
       from Base.metadata, so service tests run against real SQL,
       including the ON CONFLICT set inserts.

Fixture Hierarchy:
    Function-scoped:
    ├── db_engine / db_session: private in-memory database per test
    ├── mock_db_session: AsyncMock session for failure-path tests
    ├── make_user / make_route: factories going through the services
    └── test_client: HTTPX AsyncClient bound to the FastAPI app
"""

import itertools
import os

# Settings are read at import time: configure before importing triptrack
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["LOG_LEVEL"] = "WARNING"
# Cheapest valid argon2 parameters; hashing cost is irrelevant to behaviour
os.environ["PASSWORD_TIME_COST"] = "1"
os.environ["PASSWORD_PARALLELISM"] = "1"
os.environ["PASSWORD_MEMORY_COST"] = "8"

from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from triptrack.database import init_models
from triptrack.services.route_service import route_service
from triptrack.services.user_service import user_service

DEFAULT_PASSWORD = "password123"


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine():
    # StaticPool: one connection, so the in-memory database outlives each checkout
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    """
    A real AsyncSession on the per-test database.

    Services only flush, so nothing here needs committing; the session is
    rolled back and closed when the test ends.
    """
    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def mock_db_session():
    """
    A mock async database session.

    Usage:
        mock_db_session.execute.side_effect = SQLAlchemyError("boom")
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# Factories
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def make_user(db_session):
    """
    Register a user through UserService.

    Usage:
        alice = await make_user("alice")
    """
    counter = itertools.count(1)

    async def _make(username=None, **overrides):
        n = next(counter)
        username = username or f"user{n}"
        data = {
            "name": f"{username.capitalize()} Tester",
            "username": username,
            "email": f"{username}@example.com",
            "password": DEFAULT_PASSWORD,
        }
        data.update(overrides)
        return await user_service.create_user(db_session, data)

    return _make


def route_payload(creator_id, **overrides):
    data = {
        "title": "Coastal loop",
        "creator_id": str(creator_id),
        "start_point": {"lat": 40.0, "lng": -74.0},
        "end_point": {"lat": 40.1, "lng": -74.1},
        "waypoints": [{"lat": 40.05, "lng": -74.05}],
        "travel_mode": "BICYCLING",
        "description": "Along the shore",
        "total_distance": 14.2,
        "total_time": 3600,
    }
    data.update(overrides)
    return data


@pytest.fixture
def make_route(db_session):
    """
    Create a route through RouteService.

    Usage:
        route = await make_route(alice.id, title="Hills", visibility="private")
    """

    async def _make(creator_id, **overrides):
        return await route_service.create_route(db_session, route_payload(creator_id, **overrides))

    return _make


# ══════════════════════════════════════════════════════════════════════════
# HTTP
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client():
    """
    HTTPX AsyncClient talking to the FastAPI app in-process.

    Usage:
        response = await test_client.get("/health")
    """
    from triptrack.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
