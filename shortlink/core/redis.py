"""
Redis client management module.

This module provides a Redis client manager with connection pooling and
the Redis-backed cache used by the link directory.
"""

from datetime import timedelta
from typing import Awaitable, Callable, Optional

import redis.asyncio as redis
from loguru import logger
from redis.asyncio.connection import ConnectionPool
from redis.exceptions import RedisError

from shortlink.core.config import settings


class RedisClientManager:
    """
    Async Redis client manager with connection pooling.

    The pool is created lazily on first use so importing the module
    never opens a connection.
    """

    def __init__(self, uri: Optional[str] = None, max_connections: Optional[int] = None):
        self._uri = uri or settings.REDIS_URI
        self._max_connections = max_connections or settings.REDIS_MAX_CONNECTIONS
        self._connection_pool: Optional[ConnectionPool] = None
        self._client: Optional[redis.Redis] = None

    def _initialize(self) -> None:
        """Initialize the Redis connection pool."""
        self._connection_pool = redis.ConnectionPool.from_url(
            self._uri,
            max_connections=self._max_connections,
            decode_responses=True
        )
        logger.debug(f"Redis connection pool created for {self._uri}")

    async def get_client(self) -> redis.Redis:
        """
        Get a Redis client instance from the connection pool.

        Returns:
            redis.Redis: Redis client instance
        """
        if self._client is None:
            if self._connection_pool is None:
                self._initialize()
            self._client = redis.Redis(connection_pool=self._connection_pool)
        return self._client

    async def ping(self) -> bool:
        """
        Test the Redis connection with a ping command.

        Returns:
            bool: True if successful, False otherwise
        """
        try:
            client = await self.get_client()
            return bool(await client.ping())
        except RedisError as e:
            logger.error(f"Redis ping failed: {str(e)}")
            return False

    async def close(self) -> None:
        """Close the Redis client and connection pool."""
        if self._client:
            await self._client.aclose()
            self._client = None

        if self._connection_pool:
            await self._connection_pool.disconnect()
            self._connection_pool = None

        logger.debug("Redis connections closed")


class RedisCache:
    """
    TTL key/value cache for short link lookups.

    Keys are namespaced so the cache can share a Redis database with
    other consumers. Redis errors are raised to the caller.
    """

    def __init__(
        self,
        client_getter: Callable[[], Awaitable[redis.Redis]],
        namespace: str = "short_url:",
    ):
        """
        Initialize the cache.

        Args:
            client_getter: Coroutine function returning a Redis client
            namespace: Prefix prepended to every key
        """
        self._client_getter = client_getter
        self._namespace = namespace

    def _key(self, key: str) -> str:
        return f"{self._namespace}{key}"

    async def get(self, key: str) -> Optional[str]:
        client = await self._client_getter()
        return await client.get(self._key(key))

    async def set(self, key: str, value: str, ttl: timedelta) -> None:
        client = await self._client_getter()
        # Redis expirations are whole seconds
        seconds = max(1, int(ttl.total_seconds()))
        await client.set(self._key(key), value, ex=seconds)

    async def delete(self, key: str) -> None:
        client = await self._client_getter()
        await client.delete(self._key(key))


# Shared instance
redis_manager = RedisClientManager()
