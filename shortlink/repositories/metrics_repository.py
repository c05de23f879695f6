"""Metrics Repository for visit aggregates in the short link service.

This module provides the MetricsRepository class for database operations related to LinkMetrics models.
Each flush of the metrics aggregator becomes one row per short link; reads sum
the rows over a time range.
"""

from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from sqlalchemy import func, insert, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from shortlink.models.metrics import LinkMetrics, MetricsSnapshot
from shortlink.repositories.base import BaseRepository, RepositoryError


def _to_naive_utc(value: datetime) -> datetime:
    # recorded_at is stored as naive UTC
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class MetricsRepository(BaseRepository[LinkMetrics, LinkMetrics]):
    """
    Repository for LinkMetrics model database operations.
    """

    def __init__(self):
        """Initialize the repository with the LinkMetrics model type."""
        super().__init__(LinkMetrics)

    async def create_metrics_batch(self, db: AsyncSession, collectors: Mapping[str, Any]) -> None:
        """
        Record the aggregates of one flush interval in a single batch operation.

        Args:
            db: Database session
            collectors: Visit collectors keyed by short link id

        Raises:
            RepositoryError: On database errors
        """
        if not collectors:
            return

        recorded_at = datetime.utcnow()
        values = [
            {
                "short_link_id": short_url_id,
                "visit_count": collector.visits,
                "unique_visit_count": collector.unique_visits,
                "recorded_at": recorded_at,
            }
            for short_url_id, collector in collectors.items()
        ]

        try:
            # Use Core insert for optimal performance
            await db.execute(insert(self.model_type), values)
        except SQLAlchemyError as e:
            raise RepositoryError(f"Error batch creating link metrics: {e}") from e

    async def get_metrics(
        self,
        db: AsyncSession,
        short_url_id: str,
        from_time: datetime,
        to_time: datetime,
    ) -> Optional[MetricsSnapshot]:
        """
        Sum the visits of a short link recorded within [from_time, to_time].

        Args:
            db: Database session
            short_url_id: The short link id
            from_time: Start of the range, inclusive
            to_time: End of the range, inclusive

        Returns:
            The summed snapshot, or None if no rows fall in the range

        Raises:
            RepositoryError: On database errors
        """
        try:
            query = (
                select(
                    func.count(self.model_type.id),
                    func.coalesce(func.sum(self.model_type.visit_count), 0),
                    func.coalesce(func.sum(self.model_type.unique_visit_count), 0),
                )
                .where(
                    self.model_type.short_link_id == short_url_id,
                    self.model_type.recorded_at.between(
                        _to_naive_utc(from_time), _to_naive_utc(to_time)
                    ),
                )
            )
            result = await db.execute(query)
            rows, visits, unique_visits = result.one()
        except SQLAlchemyError as e:
            raise RepositoryError(f"Error retrieving link metrics: {e}") from e

        if rows == 0:
            return None

        return MetricsSnapshot(
            short_url_id=short_url_id,
            visits=int(visits),
            unique_visits=int(unique_visits),
            from_time=from_time,
            to_time=to_time,
        )
