"""Test fixtures for the short link service."""

import os

# Must be set before shortlink.core.config builds its settings
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("DB_CREATE_TABLES", "false")

import pytest
import pytest_asyncio
from datetime import timedelta
from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from shortlink.core.config import LinkDirectoryConfig, MetricsConfig
# Import models to ensure they're registered with SQLModel metadata
from shortlink.models import LinkMetrics, ShortLink  # noqa: F401
from tests.utils import FakeCache, FakeLinkStore, FakeMetricsStore


# Test database URL - using SQLite in-memory
TEST_SQLALCHEMY_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def test_engine():
    """Create test database engine with in-memory SQLite."""
    engine = create_async_engine(
        TEST_SQLALCHEMY_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )

    # SQLite only enforces ON DELETE CASCADE with foreign keys enabled
    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    # Create tables
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    # Cleanup
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def test_session_factory(test_engine) -> async_sessionmaker:
    """Session factory bound to the test engine."""
    return async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False
    )


@pytest_asyncio.fixture
async def test_db(test_session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create isolated test database session."""
    async with test_session_factory() as session:
        await session.begin()
        try:
            yield session
        finally:
            await session.rollback()
            await session.close()


@pytest.fixture
def link_config() -> LinkDirectoryConfig:
    return LinkDirectoryConfig(max_identifier_retries=10, cache_ttl=timedelta(minutes=5))


@pytest.fixture
def metrics_config() -> MetricsConfig:
    """Fast flushing configuration so tests do not wait for the default interval."""
    return MetricsConfig(
        flush_interval=timedelta(milliseconds=20),
        queue_capacity=100,
        record_timeout=timedelta(milliseconds=20),
    )


@pytest.fixture
def link_store() -> FakeLinkStore:
    return FakeLinkStore()


@pytest.fixture
def metrics_store() -> FakeMetricsStore:
    return FakeMetricsStore()


@pytest.fixture
def cache() -> FakeCache:
    return FakeCache()


@pytest.fixture
def mock_redis():
    """Mock Redis for testing."""
    class MockRedis:
        def __init__(self):
            self.data = {}
            self.expiry = {}

        async def get(self, key):
            return self.data.get(key)

        async def set(self, key, value, ex=None):
            self.data[key] = value
            if ex:
                self.expiry[key] = ex

        async def delete(self, key):
            if key in self.data:
                del self.data[key]
                if key in self.expiry:
                    del self.expiry[key]

        async def exists(self, key):
            return key in self.data

        async def ping(self):
            return True

        async def aclose(self):
            pass

    return MockRedis()
