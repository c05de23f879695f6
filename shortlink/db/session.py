"""Session management for database operations.

This module provides utilities for handling SQLAlchemy async sessions
with proper lifecycle management, error handling, and transaction support.
"""

from typing import AsyncGenerator, Optional
import logging
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shortlink.db.base import get_session

logger = logging.getLogger(__name__)


class SessionManager:
    """Session manager for managing database operations with context manager support.

    Provides a higher-level API for session management with automatic transaction handling.
    """

    @staticmethod
    @asynccontextmanager
    async def transaction_context(
        session_factory: Optional[async_sessionmaker] = None,
    ) -> AsyncGenerator[AsyncSession, None]:
        """Context manager for a database session with transaction support.

        Automatically commits on successful completion or rolls back on error.

        Args:
            session_factory: Factory to open the session from, defaults to the shared one

        Yields:
            AsyncSession: SQLAlchemy async session

        Example:
            ```python
            async with SessionManager.transaction_context() as session:
                await LinkRepository().create_link(session, "a1B2c3", "https://example.com")
                # Commits automatically on context exit if no errors
            ```
        """
        async with get_session(session_factory) as session:
            try:
                yield session
                await session.commit()
            except Exception as e:
                await session.rollback()
                logger.debug(f"Transaction rolled back: {e}")
                raise
