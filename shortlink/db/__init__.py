"""Database module for the short link service."""
from shortlink.db.base import (
    DatabaseHealthCheck,
    async_session_factory,
    create_tables,
    engine,
    get_engine,
    get_session,
)
from shortlink.db.session import SessionManager

__all__ = [
    "engine",
    "get_engine",
    "async_session_factory",
    "get_session",
    "create_tables",
    "DatabaseHealthCheck",
    "SessionManager",
]
