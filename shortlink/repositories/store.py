"""SQL-backed storage for the service layer.

SQLStore adapts the session-per-call repositories to the session-less
LinkStore and MetricsStore interfaces used by the services. Every call runs
in its own transaction and is committed before returning.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncGenerator, Mapping, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shortlink.db.session import SessionManager
from shortlink.models.metrics import MetricsSnapshot
from shortlink.repositories.base import RepositoryError
from shortlink.repositories.link_repository import LinkRepository
from shortlink.repositories.metrics_repository import MetricsRepository

logger = logging.getLogger(__name__)


class SQLStore:
    """Link and metrics storage on a relational database."""

    def __init__(
        self,
        session_factory: Optional[async_sessionmaker] = None,
        link_repository: Optional[LinkRepository] = None,
        metrics_repository: Optional[MetricsRepository] = None,
    ):
        """
        Initialize the store.

        Args:
            session_factory: Factory for database sessions, defaults to the shared one
            link_repository: Repository for short links
            metrics_repository: Repository for link metrics
        """
        self.session_factory = session_factory
        self.link_repository = link_repository or LinkRepository()
        self.metrics_repository = metrics_repository or MetricsRepository()

    @asynccontextmanager
    async def _transaction(self) -> AsyncGenerator[AsyncSession, None]:
        try:
            async with SessionManager.transaction_context(self.session_factory) as session:
                yield session
        except RepositoryError:
            raise
        except (SQLAlchemyError, OSError) as e:
            # Connection and commit failures happen outside the repositories
            logger.error(f"Database transaction failed: {e}")
            raise RepositoryError(f"Database unavailable: {e}") from e

    async def create_link(self, short_url_id: str, long_url: str) -> None:
        async with self._transaction() as db:
            await self.link_repository.create_link(db, short_url_id, long_url)

    async def delete_link(self, short_url_id: str) -> None:
        async with self._transaction() as db:
            await self.link_repository.delete_link(db, short_url_id)

    async def get_long_url(self, short_url_id: str) -> Optional[str]:
        async with self._transaction() as db:
            return await self.link_repository.get_long_url(db, short_url_id)

    async def create_metrics_batch(self, collectors: Mapping) -> None:
        if not collectors:
            return
        async with self._transaction() as db:
            await self.metrics_repository.create_metrics_batch(db, collectors)

    async def get_metrics(
        self,
        short_url_id: str,
        from_time: datetime,
        to_time: datetime,
    ) -> Optional[MetricsSnapshot]:
        async with self._transaction() as db:
            return await self.metrics_repository.get_metrics(db, short_url_id, from_time, to_time)
