"""Tests for the SQL-backed store used by the services."""

import pytest
from datetime import datetime, timedelta
from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from shortlink.repositories.base import DuplicateEntityError, RepositoryError
from shortlink.repositories.store import SQLStore
from shortlink.services.codec import generate_identifier
from shortlink.services.links import LinkDirectory
from shortlink.services.metrics import MetricsAggregator, VisitCollector
from tests.utils import FakeCache, random_url


@pytest.mark.repository
class TestSQLStore:
    """Each call runs in its own committed transaction."""

    @pytest.fixture
    def store(self, test_session_factory):
        return SQLStore(test_session_factory)

    @pytest.mark.asyncio
    async def test_link_lifecycle(self, store):
        long_url = random_url()

        await store.create_link("abc123", long_url)
        assert await store.get_long_url("abc123") == long_url

        await store.delete_link("abc123")
        assert await store.get_long_url("abc123") is None

    @pytest.mark.asyncio
    async def test_duplicate_id_is_reported(self, store):
        await store.create_link("abc123", random_url())

        with pytest.raises(DuplicateEntityError):
            await store.create_link("abc123", random_url())

    @pytest.mark.asyncio
    async def test_metrics_batch_and_read(self, store):
        await store.create_link("abc123", random_url())
        collector = VisitCollector(short_url_id="abc123")
        collector.record("1.1.1.1")
        collector.record("1.1.1.1")
        now = datetime.utcnow()

        await store.create_metrics_batch({"abc123": collector})
        snapshot = await store.get_metrics("abc123", now - timedelta(minutes=1), now + timedelta(minutes=1))

        assert snapshot.visits == 2
        assert snapshot.unique_visits == 1

    @pytest.mark.asyncio
    async def test_connection_failure_becomes_repository_error(self, store):
        with patch(
            "shortlink.db.session.get_session",
            side_effect=OperationalError("SELECT 1", {}, Exception("connection refused")),
        ):
            with pytest.raises(RepositoryError):
                await store.get_long_url("abc123")


@pytest.mark.repository
class TestServicesOnSQLStore:
    """End-to-end service behaviour against the database."""

    @pytest.mark.asyncio
    async def test_create_resolve_delete(self, test_session_factory, link_config):
        store = SQLStore(test_session_factory)
        cache = FakeCache()
        directory = LinkDirectory(link_config, store, cache)
        long_url = random_url()

        short_url_id = await directory.create(long_url)
        assert short_url_id == generate_identifier(long_url, 0)
        assert await directory.create(long_url) == short_url_id

        assert await directory.get(short_url_id) == long_url
        await directory.wait_for_pending_fills()
        assert cache.data[short_url_id] == long_url

        await directory.delete(short_url_id)
        assert await store.get_long_url(short_url_id) is None
        assert short_url_id not in cache.data

    @pytest.mark.asyncio
    async def test_visits_reach_snapshot_after_stop(self, test_session_factory, link_config, metrics_config):
        store = SQLStore(test_session_factory)
        directory = LinkDirectory(link_config, store, FakeCache())
        aggregator = MetricsAggregator(metrics_config, store)
        short_url_id = await directory.create(random_url())
        start = datetime.utcnow() - timedelta(minutes=1)

        aggregator.start()
        for visitor in ["1.1.1.1", "2.2.2.2", "1.1.1.1"]:
            assert await aggregator.record(short_url_id, visitor)
        await aggregator.stop()

        snapshot = await aggregator.get_snapshot(short_url_id, start, datetime.utcnow() + timedelta(minutes=1))
        assert snapshot.visits == 3
        # Visits may span flush intervals, so uniqueness is per interval
        assert 2 <= snapshot.unique_visits <= 3
