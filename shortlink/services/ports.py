"""Collaborator interfaces consumed by the service layer.

Services receive these at construction; any object with matching async
methods can be injected (SQL store, Redis cache, in-memory fakes).
Absence is reported by returning None, failures by raising.
"""

from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Mapping, Optional, Protocol

from shortlink.models.metrics import MetricsSnapshot

if TYPE_CHECKING:
    from shortlink.services.metrics import VisitCollector


class LinkStore(Protocol):
    """Durable short link storage."""

    async def create_link(self, short_url_id: str, long_url: str) -> None:
        """Insert a mapping; raises DuplicateEntityError if the id is taken."""
        ...

    async def delete_link(self, short_url_id: str) -> None:
        ...

    async def get_long_url(self, short_url_id: str) -> Optional[str]:
        ...


class MetricsStore(Protocol):
    """Durable storage for flushed visit aggregates."""

    async def create_metrics_batch(self, collectors: Mapping[str, "VisitCollector"]) -> None:
        """Insert one row per collector; an empty mapping is a no-op."""
        ...

    async def get_metrics(
        self,
        short_url_id: str,
        from_time: datetime,
        to_time: datetime,
    ) -> Optional[MetricsSnapshot]:
        ...


class Cache(Protocol):
    """Ephemeral TTL key/value cache."""

    async def get(self, key: str) -> Optional[str]:
        ...

    async def set(self, key: str, value: str, ttl: timedelta) -> None:
        ...

    async def delete(self, key: str) -> None:
        ...
