"""
Visit metrics data models.

This module defines the LinkMetrics table, which stores one row per short
link per flush interval, and the MetricsSnapshot read model returned to
callers.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Column, ForeignKey, Index, String
from sqlmodel import Field, SQLModel


class LinkMetrics(SQLModel, table=True):
    """
    Aggregated visits for one short link over one flush interval.

    Rows are written in batches by the metrics aggregator and summed over a
    time range when read.
    """

    __tablename__ = "link_metrics"

    id: Optional[int] = Field(default=None, primary_key=True)
    short_link_id: str = Field(
        sa_column=Column(
            String(6),
            ForeignKey("short_links.id", ondelete="CASCADE"),
            nullable=False,
        ),
    )
    visit_count: int = Field(default=0, description="Visits in the interval")
    unique_visit_count: int = Field(default=0, description="Distinct visitors in the interval")
    recorded_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the interval was flushed"
    )

    __table_args__ = (
        Index("ix_link_metrics_short_link_id_recorded_at", "short_link_id", "recorded_at"),
    )


class MetricsSnapshot(SQLModel):
    """Visits of a short link summed over [from_time, to_time]."""

    short_url_id: str
    visits: int = 0
    unique_visits: int = 0
    from_time: datetime
    to_time: datetime
