"""Visit metrics service for the short link service.

This module contains the MetricsAggregator class which buffers visit events
in memory, aggregates them per short link and periodically writes the
aggregates to the metrics store in one batch.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional, Set

from shortlink.core.config import MetricsConfig
from shortlink.models.metrics import MetricsSnapshot
from shortlink.repositories.base import RepositoryError
from shortlink.services.exceptions import ServiceUnavailableError
from shortlink.services.ports import MetricsStore

logger = logging.getLogger(__name__)

# Seconds between enqueue attempts while the visit queue is full
_RECORD_RETRY_INTERVAL = 0.005


@dataclass(frozen=True)
class VisitEvent:
    """A single visit of a short link."""

    short_url_id: str
    visitor_key: str


@dataclass
class VisitCollector:
    """Visits of one short link within the current flush interval."""

    short_url_id: str
    visits: int = 0
    visitors: Set[str] = field(default_factory=set)

    def record(self, visitor_key: str) -> None:
        self.visits += 1
        self.visitors.add(visitor_key)

    @property
    def unique_visits(self) -> int:
        return len(self.visitors)


class MetricsAggregator:
    """
    Service for visit metrics.

    A single background task owns the collector map. Callers only enqueue
    events, so the map is never shared between tasks.

    Lifecycle: created -> running (start) -> stopped (stop). A stopped
    aggregator cannot be restarted.
    """

    def __init__(self, config: MetricsConfig, store: MetricsStore):
        """
        Initialize the metrics aggregator.

        Args:
            config: Validated aggregator configuration
            store: Durable storage for flushed aggregates
        """
        if config is None:
            raise ValueError("config cannot be None")
        if store is None:
            raise ValueError("store cannot be None")

        self.config = config
        self.store = store

        self._queue: asyncio.Queue = asyncio.Queue(maxsize=config.queue_capacity)
        self._collectors: Dict[str, VisitCollector] = {}
        self._stop_event = asyncio.Event()
        self._task: Optional[asyncio.Task] = None
        self._stopped = False
        self._pending_records: Set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """
        Start the aggregation loop.

        Raises:
            RuntimeError: If the aggregator has been stopped
        """
        if self._stopped:
            raise RuntimeError("Metrics aggregator has been stopped and cannot be restarted")
        if self._task is not None:
            return

        self._task = asyncio.create_task(self._run(), name="metrics-aggregator")
        logger.info(
            f"Metrics aggregator started (flush interval {self.config.flush_interval.total_seconds()}s, "
            f"queue capacity {self.config.queue_capacity})"
        )

    async def stop(self) -> None:
        """
        Stop the aggregation loop after one final flush.

        Events already queued are included in the final flush. Calling stop
        again is a no-op.
        """
        if self._stopped:
            return
        self._stopped = True

        # Enqueues already in progress finish within record_timeout
        if self._pending_records:
            await asyncio.gather(*self._pending_records, return_exceptions=True)

        self._stop_event.set()
        if self._task is not None:
            await self._task
        else:
            self._drain_queue()
            await self._flush()

        logger.info("Metrics aggregator stopped")

    async def record(self, short_url_id: str, visitor_key: str) -> bool:
        """
        Record a visit.

        Waits at most record_timeout for queue space.

        Returns:
            bool: True if the visit was queued, False if it was dropped
        """
        if self._stopped:
            logger.warning(f"Metrics aggregator is stopped, dropping visit for '{short_url_id}'")
            return False

        event = VisitEvent(short_url_id=short_url_id, visitor_key=visitor_key)
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.config.record_timeout.total_seconds()
        # The event is in the queue exactly when True is returned
        while True:
            try:
                self._queue.put_nowait(event)
                return True
            except asyncio.QueueFull:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    logger.warning(f"Visit queue is full, dropping visit for '{short_url_id}'")
                    return False
                await asyncio.sleep(min(remaining, _RECORD_RETRY_INTERVAL))

    def record_async(self, short_url_id: str, visitor_key: str) -> None:
        """Schedule record() without waiting for it."""
        task = asyncio.create_task(self.record(short_url_id, visitor_key))
        self._pending_records.add(task)
        task.add_done_callback(self._pending_records.discard)

    async def get_snapshot(
        self,
        short_url_id: str,
        from_time: datetime,
        to_time: datetime,
    ) -> MetricsSnapshot:
        """
        Get visits of a short link summed over [from_time, to_time].

        Only flushed intervals are included.

        Returns:
            MetricsSnapshot: Summed visits, zero when nothing is stored

        Raises:
            ServiceUnavailableError: If the store fails
        """
        try:
            snapshot = await self.store.get_metrics(short_url_id, from_time, to_time)
        except RepositoryError as e:
            logger.error(f"Failed to get metrics for '{short_url_id}': {e}")
            raise ServiceUnavailableError(f"Failed to get metrics: {str(e)}") from e

        if snapshot is None:
            return MetricsSnapshot(
                short_url_id=short_url_id,
                from_time=from_time,
                to_time=to_time,
            )
        return snapshot

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        interval = self.config.flush_interval.total_seconds()
        next_flush = loop.time() + interval

        stop_waiter = asyncio.create_task(self._stop_event.wait())
        get_task: Optional[asyncio.Task] = None
        try:
            while True:
                if get_task is None:
                    get_task = asyncio.create_task(self._queue.get())

                timeout = max(0.0, next_flush - loop.time())
                done, _ = await asyncio.wait(
                    {get_task, stop_waiter},
                    timeout=timeout,
                    return_when=asyncio.FIRST_COMPLETED,
                )

                if get_task in done:
                    self._apply(get_task.result())
                    get_task = None

                if stop_waiter in done:
                    break

                if loop.time() >= next_flush:
                    await self._flush()
                    next_flush = loop.time() + interval
        finally:
            if get_task is not None:
                await self._cancel_get(get_task)
            stop_waiter.cancel()

        self._drain_queue()
        await self._flush()

    async def _cancel_get(self, get_task: asyncio.Task) -> None:
        get_task.cancel()
        await asyncio.gather(get_task, return_exceptions=True)
        # The get may have completed before the cancel landed
        if not get_task.cancelled() and get_task.exception() is None:
            self._apply(get_task.result())

    def _drain_queue(self) -> None:
        while True:
            try:
                event = self._queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            self._apply(event)

    def _apply(self, event: VisitEvent) -> None:
        collector = self._collectors.get(event.short_url_id)
        if collector is None:
            collector = VisitCollector(short_url_id=event.short_url_id)
            self._collectors[event.short_url_id] = collector
        collector.record(event.visitor_key)

    async def _flush(self) -> None:
        collectors, self._collectors = self._collectors, {}
        if not collectors:
            return

        try:
            await self.store.create_metrics_batch(collectors)
            logger.debug(f"Flushed metrics for {len(collectors)} short links")
        except Exception as e:
            # Aggregates of this interval are lost; the loop keeps running
            logger.error(f"Failed to flush metrics for {len(collectors)} short links: {e}", exc_info=True)
