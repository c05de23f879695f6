"""Short link directory for the short link service.

This module contains the LinkDirectory class which implements business logic
for creating, resolving and deleting short links on top of a durable store
and a TTL cache.
"""

import asyncio
import logging
from typing import Optional, Set

from shortlink.core.config import LinkDirectoryConfig
from shortlink.repositories.base import DuplicateEntityError, RepositoryError
from shortlink.services.codec import generate_identifier
from shortlink.services.exceptions import (
    IdentifierGenerationError,
    InvalidURLError,
    LinkAlreadyExistsError,
    LinkNotFoundError,
    ServiceUnavailableError,
)
from shortlink.services.ports import Cache, LinkStore

logger = logging.getLogger(__name__)

LONG_URL_SCHEME = "https://"


class LinkDirectory:
    """
    Service for short link business logic.

    The store is the source of truth. The cache is filled on read and
    emptied on delete; it may briefly lag behind the store.
    """

    def __init__(self, config: LinkDirectoryConfig, store: LinkStore, cache: Cache):
        """
        Initialize the link directory.

        Args:
            config: Validated directory configuration
            store: Durable short link storage
            cache: TTL cache in front of the store
        """
        if config is None:
            raise ValueError("config cannot be None")
        if store is None:
            raise ValueError("store cannot be None")
        if cache is None:
            raise ValueError("cache cannot be None")

        self.config = config
        self.store = store
        self.cache = cache
        self._pending_fills: Set[asyncio.Task] = set()

    async def create(self, long_url: str) -> str:
        """
        Create a short link for a long URL.

        Creating the same long URL again returns the identifier it already has.

        Args:
            long_url: URL to shorten, must start with https://

        Returns:
            str: The short link id

        Raises:
            InvalidURLError: If the long URL is empty or not https
            IdentifierGenerationError: If every candidate id is taken by another URL
            ServiceUnavailableError: If the store fails
        """
        self._validate_long_url(long_url)

        try:
            short_url_id = await self.resolve_identifier(long_url)
            try:
                await self.store.create_link(short_url_id, long_url)
            except DuplicateEntityError:
                # The slot was taken between lookup and insert
                logger.debug(f"Short link '{short_url_id}' was created concurrently, resolving again")
                short_url_id = await self.resolve_identifier(long_url)
                await self.store.create_link(short_url_id, long_url)
        except LinkAlreadyExistsError as e:
            return e.short_url_id
        except RepositoryError as e:
            logger.error(f"Failed to create short link for {long_url}: {e}")
            raise ServiceUnavailableError(f"Failed to create short link: {str(e)}") from e

        logger.info(f"Created short link '{short_url_id}' for {long_url}")
        return short_url_id

    async def resolve_identifier(self, long_url: str) -> str:
        """
        Find the first free candidate identifier for a long URL.

        Candidates are probed in offset order 0..max_identifier_retries-1.

        Returns:
            str: An id with no stored mapping

        Raises:
            LinkAlreadyExistsError: If a candidate already maps to this long URL
            IdentifierGenerationError: If all candidates map to other URLs
            ServiceUnavailableError: If the store lookup fails
        """
        for offset in range(self.config.max_identifier_retries):
            candidate = generate_identifier(long_url, offset)

            stored_long_url = await self._get_stored_long_url(candidate)
            if stored_long_url is None:
                return candidate
            if stored_long_url == long_url:
                raise LinkAlreadyExistsError(candidate)

            logger.debug(f"Collision for short link '{candidate}' at offset {offset}")

        logger.error(f"Failed to generate unique short link for {long_url}")
        raise IdentifierGenerationError(
            f"Failed to generate unique short link after {self.config.max_identifier_retries} attempts"
        )

    async def get(self, short_url_id: str) -> str:
        """
        Resolve a short link id to its long URL.

        Args:
            short_url_id: The short link id

        Returns:
            str: The long URL

        Raises:
            LinkNotFoundError: If no mapping exists
            ServiceUnavailableError: If the store fails
        """
        try:
            long_url = await self.cache.get(short_url_id)
        except Exception as e:
            logger.warning(f"Failed to get short link '{short_url_id}' from cache: {e}")
            long_url = None

        if long_url is not None:
            return long_url

        long_url = await self._get_stored_long_url(short_url_id)
        if long_url is None:
            logger.debug(f"Short link '{short_url_id}' not found")
            raise LinkNotFoundError(f"Short link '{short_url_id}' not found")

        self._schedule_cache_fill(short_url_id, long_url)
        return long_url

    async def delete(self, short_url_id: str) -> None:
        """
        Delete a short link from the store, then from the cache.

        If the cache delete fails the error is raised even though the store
        row is already gone; the cache entry expires with its TTL.

        Raises:
            InvalidURLError: If the id is empty
            ServiceUnavailableError: If the store or the cache fails
        """
        if not short_url_id:
            raise InvalidURLError("Short link id cannot be empty")

        try:
            await self.store.delete_link(short_url_id)
        except RepositoryError as e:
            logger.error(f"Failed to delete short link '{short_url_id}' from store: {e}")
            raise ServiceUnavailableError(f"Failed to delete short link from store: {str(e)}") from e

        try:
            await self.cache.delete(short_url_id)
        except Exception as e:
            logger.error(f"Failed to delete short link '{short_url_id}' from cache: {e}")
            raise ServiceUnavailableError(f"Failed to delete short link from cache: {str(e)}") from e

    async def wait_for_pending_fills(self) -> None:
        """Wait for cache fills scheduled by get() that are still running."""
        if self._pending_fills:
            await asyncio.gather(*self._pending_fills, return_exceptions=True)

    async def _get_stored_long_url(self, short_url_id: str) -> Optional[str]:
        try:
            return await self.store.get_long_url(short_url_id)
        except RepositoryError as e:
            logger.error(f"Failed to get short link '{short_url_id}' from store: {e}")
            raise ServiceUnavailableError(f"Failed to get short link from store: {str(e)}") from e

    def _schedule_cache_fill(self, short_url_id: str, long_url: str) -> None:
        # Runs as its own task so cancelling the caller does not cancel the fill
        task = asyncio.create_task(self._fill_cache(short_url_id, long_url))
        self._pending_fills.add(task)
        task.add_done_callback(self._pending_fills.discard)

    async def _fill_cache(self, short_url_id: str, long_url: str) -> None:
        try:
            await self.cache.set(short_url_id, long_url, self.config.cache_ttl)
        except Exception as e:
            logger.warning(f"Failed to set short link '{short_url_id}' in cache: {e}")

    def _validate_long_url(self, long_url: str) -> None:
        if not long_url:
            raise InvalidURLError("Long URL cannot be empty")
        if not long_url.startswith(LONG_URL_SCHEME):
            raise InvalidURLError(f"Long URL must start with {LONG_URL_SCHEME}: {long_url}")
