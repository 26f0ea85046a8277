import os

# Must be set before any takeaway module builds its engine or settings
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ["ENV_MODE"] = "development"

from datetime import datetime
from zoneinfo import ZoneInfo

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from takeaway.core.config import DEFAULT_STORE_SEED
from takeaway.database import Base
from takeaway import models  # noqa: F401  (registers tables)
from takeaway.services.config_store import StaticConfigStore, load_seed_document
from takeaway.services.geo import Coordinate, MockGeoService
from takeaway.services.notifications import MockNotificationService

LONDON = ZoneInfo("Europe/London")

# Friday 16 October 2026, 18:00 store time
FRIDAY_EVENING = datetime(2026, 10, 16, 18, 0, tzinfo=LONDON)

STORE_LOCATION = Coordinate(lat=53.5958, lng=-1.2835)


@pytest.fixture
def seed_document():
    """The bundled sample store document."""
    return load_seed_document(DEFAULT_STORE_SEED)


@pytest.fixture
def static_store(seed_document):
    return StaticConfigStore(seed_document)


@pytest.fixture
def mock_geo():
    """Deterministic mock geo service with no latency or failures."""
    return MockGeoService(center=STORE_LOCATION, failure_rate=0.0, max_latency=0.0)


@pytest.fixture
def mock_notifications():
    return MockNotificationService(failure_rate=0.0, max_latency=0.0)


@pytest_asyncio.fixture
async def session_maker():
    """Async session factory over a fresh in-memory SQLite database.

    Uses StaticPool so every session shares the same in-memory database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def seeded_session_maker(session_maker, seed_document):
    from takeaway.seed import seed_database

    await seed_database(seed_document, session_maker)
    return session_maker


@pytest_asyncio.fixture
async def api_client(seeded_session_maker, static_store, mock_geo, mock_notifications):
    """HTTP client for the FastAPI app with every collaborator overridden.

    The clock is pinned to FRIDAY_EVENING.
    """
    from takeaway.database import get_db
    from takeaway.main import app, get_geo_resolver, get_store_now
    from takeaway.services.cart import CartStore, get_cart_store
    from takeaway.services.config_store import get_config_store
    from takeaway.services.notifications import get_notification_service

    async def override_get_db():
        async with seeded_session_maker() as session:
            yield session

    carts = CartStore(ttl_seconds=600, maxsize=100)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_config_store] = lambda: static_store
    app.dependency_overrides[get_geo_resolver] = lambda: lambda: mock_geo
    app.dependency_overrides[get_notification_service] = lambda: mock_notifications
    app.dependency_overrides[get_cart_store] = lambda: carts
    app.dependency_overrides[get_store_now] = lambda: FRIDAY_EVENING

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
