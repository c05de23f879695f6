"""Test utilities for short link service tests."""

import random
import string
from datetime import datetime, timedelta
from typing import Dict, List, Mapping, Optional, Tuple

from sqlalchemy import func, select

from shortlink.models.link import ShortLink
from shortlink.models.metrics import MetricsSnapshot
from shortlink.repositories.base import DuplicateEntityError, RepositoryError


def random_string(length: int = 10) -> str:
    """Generate a random alphanumeric string."""
    return ''.join(random.choice(string.ascii_letters + string.digits) for _ in range(length))


def random_url() -> str:
    """Generate a random URL for testing."""
    domain = f"{random_string(8)}.com"
    path = random_string(12)
    return f"https://{domain}/{path}"


async def create_test_link(
    db,
    short_url_id: Optional[str] = None,
    long_url: Optional[str] = None,
) -> ShortLink:
    """Create and persist a test ShortLink in the database."""
    link = ShortLink(id=short_url_id or random_string(6), long_url=long_url or random_url())
    db.add(link)
    await db.flush()
    await db.refresh(link)
    return link


async def count_rows(db, model, **filters) -> int:
    """Count rows of model matching the given field=value filters."""
    query = select(func.count()).select_from(model)
    for field, value in filters.items():
        query = query.where(getattr(model, field) == value)
    result = await db.execute(query)
    return result.scalar_one()


class FakeLinkStore:
    """In-memory LinkStore.

    Set `fail` to make every call raise RepositoryError. `race_with` holds a
    long URL that another writer inserts just before the next create_link,
    which then fails with DuplicateEntityError.
    """

    def __init__(self):
        self.links: Dict[str, str] = {}
        self.fail = False
        self.race_with: Optional[str] = None
        self.lookups: List[str] = []

    def _check(self) -> None:
        if self.fail:
            raise RepositoryError("store unavailable")

    async def create_link(self, short_url_id: str, long_url: str) -> None:
        self._check()
        if self.race_with is not None:
            self.links[short_url_id] = self.race_with
            self.race_with = None
        if short_url_id in self.links:
            raise DuplicateEntityError(ShortLink, "id", short_url_id)
        self.links[short_url_id] = long_url

    async def delete_link(self, short_url_id: str) -> None:
        self._check()
        self.links.pop(short_url_id, None)

    async def get_long_url(self, short_url_id: str) -> Optional[str]:
        self._check()
        self.lookups.append(short_url_id)
        return self.links.get(short_url_id)


class FakeMetricsStore:
    """In-memory MetricsStore recording each flushed batch.

    Batches are stored as {short_url_id: (visits, unique_visits)}.
    """

    def __init__(self):
        self.batches: List[Dict[str, Tuple[int, int]]] = []
        self.snapshot: Optional[MetricsSnapshot] = None
        self.fail_batches = 0
        self.fail_reads = False

    async def create_metrics_batch(self, collectors: Mapping) -> None:
        if self.fail_batches:
            self.fail_batches -= 1
            raise RepositoryError("metrics store unavailable")
        self.batches.append(
            {short_url_id: (c.visits, c.unique_visits) for short_url_id, c in collectors.items()}
        )

    async def get_metrics(
        self,
        short_url_id: str,
        from_time: datetime,
        to_time: datetime,
    ) -> Optional[MetricsSnapshot]:
        if self.fail_reads:
            raise RepositoryError("metrics store unavailable")
        return self.snapshot

    def totals(self, short_url_id: str) -> Tuple[int, int]:
        """Sum visits and unique visits over every recorded batch."""
        visits = unique_visits = 0
        for batch in self.batches:
            batch_visits, batch_unique = batch.get(short_url_id, (0, 0))
            visits += batch_visits
            unique_visits += batch_unique
        return visits, unique_visits


class FakeCache:
    """In-memory Cache with per-operation failure switches."""

    def __init__(self):
        self.data: Dict[str, str] = {}
        self.ttls: Dict[str, timedelta] = {}
        self.fail_get = False
        self.fail_set = False
        self.fail_delete = False

    async def get(self, key: str) -> Optional[str]:
        if self.fail_get:
            raise ConnectionError("cache unavailable")
        return self.data.get(key)

    async def set(self, key: str, value: str, ttl: timedelta) -> None:
        if self.fail_set:
            raise ConnectionError("cache unavailable")
        self.data[key] = value
        self.ttls[key] = ttl

    async def delete(self, key: str) -> None:
        if self.fail_delete:
            raise ConnectionError("cache unavailable")
        self.data.pop(key, None)
        self.ttls.pop(key, None)
