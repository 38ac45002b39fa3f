"""
Centralized Test Configuration.
"""

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import Pool, StaticPool

from fleetops.app.main import app
from fleetops.app.core.dependencies import change_feed
from fleetops.app.db.session import get_db, Base
import fleetops.app.core.redis_client as redis_client_module
from fleetops.app.models.fleet import Client, Driver, Vehicle
from fleetops.app.models.trip_enums import ClientType
from fleetops.app.services.cache import CacheService
from fleetops.app.services.change_feed import ChangeFeed
from fleetops.app.services.record_store import RecordStore
from fleetops.app.domain.dispatch.coordinator import DispatchCoordinator

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)).lower():
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)


# Mock Redis for reliability in CI/CD
class MockRedis:
    def __init__(self):
        self.published = []
        self._closed = False

    async def ping(self):
        return not self._closed

    async def publish(self, channel, message):
        if self._closed:
            return 0
        self.published.append((channel, message))
        return 1

    async def flushdb(self):
        self.published = []

    async def aclose(self):
        self._closed = True


mock_redis = MockRedis()


@pytest.fixture(scope="session", autouse=True)
def apply_overrides():
    """Swap Redis and the database for the whole session."""
    original_client = redis_client_module.redis_client
    original_feed_redis = change_feed.redis
    redis_client_module.redis_client = mock_redis
    change_feed.redis = mock_redis

    async def override_get_db():
        async with TestingSessionLocal() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield

    app.dependency_overrides = {}
    redis_client_module.redis_client = original_client
    change_feed.redis = original_feed_redis


@pytest.fixture(autouse=True)
async def setup_database():
    """Create tables before each test function and drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    await mock_redis.flushdb()
    await CacheService.clear()

    yield

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# Shared session for fixture data creation
@pytest.fixture
async def db_session():
    async with TestingSessionLocal() as session:
        yield session


@pytest.fixture
def feed():
    return ChangeFeed(redis=mock_redis)


@pytest.fixture
def store(db_session, feed):
    return RecordStore(db_session, feed=feed)


@pytest.fixture
def coordinator(store):
    return DispatchCoordinator(store, actor="dispatcher@test")


@pytest.fixture
async def fleet(db_session):
    """Two clients, two drivers (one inactive) and a vehicle."""
    organization = Client(name="Acme Corp", email="travel@acme.test", client_type=ClientType.ORGANIZATION)
    individual = Client(name="Jane Roe", client_type=ClientType.INDIVIDUAL)
    driver = Driver(name="Ali Driver", contact="+100000001")
    other_driver = Driver(name="Bea Driver", contact="+100000002")
    inactive_driver = Driver(name="Cal Retired", is_active=False)
    vehicle = Vehicle(make="Mercedes", model="V-Class", registration="FLEET-001")

    db_session.add_all([organization, individual, driver, other_driver, inactive_driver, vehicle])
    await db_session.commit()

    return {
        "organization_id": organization.id,
        "individual_id": individual.id,
        "driver_id": driver.id,
        "other_driver_id": other_driver.id,
        "inactive_driver_id": inactive_driver.id,
        "vehicle_id": vehicle.id,
    }


@pytest.fixture
def redis_mock():
    return mock_redis


@pytest.fixture
def session_factory():
    return TestingSessionLocal
