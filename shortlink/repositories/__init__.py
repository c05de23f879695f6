"""Repository layer for the short link service.

This module provides repository classes that abstract database operations
and implement the Repository pattern for clean separation of concerns.
"""

from shortlink.repositories.base import (
    BaseRepository,
    RepositoryError,
    DuplicateEntityError
)
from shortlink.repositories.link_repository import LinkRepository
from shortlink.repositories.metrics_repository import MetricsRepository
from shortlink.repositories.store import SQLStore

__all__ = [
    # Base classes and exceptions
    "BaseRepository",
    "RepositoryError",
    "DuplicateEntityError",

    # Concrete repositories
    "LinkRepository",
    "MetricsRepository",

    # Service-facing storage
    "SQLStore",
]
