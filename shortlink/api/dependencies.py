"""API dependencies for FastAPI.

This module provides dependency injection functions for FastAPI endpoints
to access the service instances created at application startup.
"""

from fastapi import Request

from shortlink.services.links import LinkDirectory
from shortlink.services.metrics import MetricsAggregator


async def get_link_directory(request: Request) -> LinkDirectory:
    """Get the application's link directory."""
    return request.app.state.link_directory


async def get_metrics_aggregator(request: Request) -> MetricsAggregator:
    """Get the application's metrics aggregator."""
    return request.app.state.metrics_aggregator
