"""Shared fixtures: a throwaway SQLite database and an API client bound to it."""
from datetime import timedelta
from decimal import Decimal

from httpx import ASGITransport, AsyncClient
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from eventra import redis_tools
from eventra.db import get_session
from eventra.main import app
from eventra.models import Base, Event, EventStatus, utcnow
from eventra.routes.deps import ADMIN_KEY


@pytest.fixture(autouse=True)
def local_coordination(monkeypatch):
    """Keep tests off a real Redis whatever the environment says."""
    monkeypatch.setattr(redis_tools, "USE_REDIS_TOKEN_BUCKET", False)
    monkeypatch.setattr(redis_tools, "CAROUSEL_LOCK_BACKEND", "local")


@pytest_asyncio.fixture(scope="function")
async def async_engine(tmp_path):
    """File-backed so concurrent sessions get their own connections."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'eventra.db'}", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_factory(async_engine):
    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def async_client(session_factory):
    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    return {"X-Admin-Key": ADMIN_KEY}


@pytest.fixture
def make_event(session):
    """Insert an event directly, bookable and in the future unless told otherwise."""

    async def _make(**overrides):
        fields = {
            "title": "Rooftop Jazz",
            "venue": "Skyline Terrace",
            "location": "Dubai Marina",
            "starts_at": utcnow() + timedelta(days=7),
            "capacity": 100,
            "booked_seats": 0,
            "price": Decimal("50.00"),
            "commission_rate": Decimal("10"),
            "currency": "AED",
            "status": EventStatus.LIVE.value,
        }
        fields.update(overrides)
        event = Event(**fields)
        session.add(event)
        await session.commit()
        # detached, so a later rollback in the test session cannot expire it
        session.expunge(event)
        return event

    return _make


@pytest.fixture
def fetch_event(session_factory):
    """Read an event through a fresh session, bypassing any identity map."""

    async def _fetch(event_id):
        async with session_factory() as fresh:
            return await fresh.get(Event, event_id)

    return _fetch
