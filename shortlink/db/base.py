"""Database base configuration for SQLAlchemy with SQLModel.

This module provides base database configuration for async SQLAlchemy with SQLModel.
It includes:
- Engine configuration
- Table creation
- Health check functionality
"""

from typing import AsyncGenerator, Dict, Optional
import asyncio
import logging
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool
from sqlalchemy.sql import text
from sqlmodel import SQLModel

from shortlink.core.config import EnvironmentType, settings

# Register the tables on SQLModel.metadata
import shortlink.models  # noqa: F401

logger = logging.getLogger(__name__)


def get_engine_config() -> Dict:
    """Get the appropriate engine configuration based on the environment.

    Returns:
        Dict: Engine configuration parameters for the current environment.
    """
    if settings.ENVIRONMENT == EnvironmentType.TESTING:
        # Use NullPool for tests to avoid connection issues
        return {"echo": False, "poolclass": NullPool}

    return {
        "echo": settings.DB_ECHO,
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_POOL_MAX_OVERFLOW,
        "pool_pre_ping": True,
    }


def get_engine(url: Optional[str] = None) -> AsyncEngine:
    """Create and configure an async SQLAlchemy engine.

    Args:
        url: Database URL, defaults to settings.DATABASE_URI

    Returns:
        AsyncEngine: Configured SQLAlchemy async engine instance.
    """
    engine_url = url or settings.DATABASE_URI
    logger.info(f"Creating database engine for {engine_url.split('@')[-1]}")

    return create_async_engine(engine_url, **get_engine_config())


# Shared async engine instance
engine = get_engine()

# Async session factory
async_session_factory = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


@asynccontextmanager
async def get_session(
    session_factory: Optional[async_sessionmaker] = None,
) -> AsyncGenerator[AsyncSession, None]:
    """Get async session with proper cleanup.

    Args:
        session_factory: Factory to open the session from, defaults to the shared one

    Yields:
        AsyncSession: SQLAlchemy async session
    """
    session = (session_factory or async_session_factory)()
    try:
        yield session
    finally:
        await session.close()


async def create_tables(bind: Optional[AsyncEngine] = None) -> None:
    """Create all tables that do not exist yet."""
    async with (bind or engine).begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info("Database tables created")


class DatabaseHealthCheck:
    """Health check functionality for the database connection."""

    @staticmethod
    async def check_connection(session_factory: Optional[async_sessionmaker] = None) -> Dict:
        """Check database connectivity and return status.

        Returns:
            Dict: Health check result containing status and latency information
        """
        loop = asyncio.get_running_loop()
        start_time = loop.time()
        status = "healthy"
        error_message = None
        latency_ms = 0

        try:
            async with get_session(session_factory) as session:
                await session.execute(text("SELECT 1"))
            latency_ms = int((loop.time() - start_time) * 1000)
        except Exception as e:
            status = "unhealthy"
            error_message = str(e)
            logger.error(f"Database health check failed: {e}")

        return {
            "status": status,
            "latency_ms": latency_ms,
            "error": error_message,
        }
