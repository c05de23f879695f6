"""Link Repository for the short link service.

This module provides the LinkRepository class for database operations related to ShortLink models.
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from shortlink.models.link import ShortLink, ShortLinkCreate
from shortlink.repositories.base import BaseRepository, DuplicateEntityError, RepositoryError

logger = logging.getLogger(__name__)


class LinkRepository(BaseRepository[ShortLink, ShortLinkCreate]):
    """
    Repository for ShortLink model database operations.

    The short link id is the primary key, so inserting a taken id fails
    with DuplicateEntityError rather than overwriting the mapping.
    """

    def __init__(self):
        """Initialize the repository with the ShortLink model type."""
        super().__init__(ShortLink)

    async def create_link(self, db: AsyncSession, short_url_id: str, long_url: str) -> ShortLink:
        """
        Create a new short link entry.

        Args:
            db: Database session
            short_url_id: Generated short identifier
            long_url: URL the identifier redirects to

        Returns:
            The created ShortLink entity

        Raises:
            DuplicateEntityError: If the id already exists
            RepositoryError: On other database errors
        """
        if await self.get_by_id(db, short_url_id) is not None:
            raise DuplicateEntityError(self.model_type, "id", short_url_id)

        try:
            return await self.create(db, ShortLinkCreate(id=short_url_id, long_url=long_url))
        except IntegrityError as e:
            # Inserted by another transaction after the check above
            raise DuplicateEntityError(self.model_type, "id", short_url_id) from e

    async def delete_link(self, db: AsyncSession, short_url_id: str) -> bool:
        """
        Delete a short link; its metrics rows are removed by the foreign key cascade.

        Returns:
            True if a row was deleted, False if the id did not exist
        """
        deleted = await self.delete(db, short_url_id)
        if not deleted:
            logger.debug(f"Short link '{short_url_id}' not found for deletion")
        return deleted

    async def get_long_url(self, db: AsyncSession, short_url_id: str) -> Optional[str]:
        """
        Find the long URL of a short link.

        Args:
            db: Database session
            short_url_id: The short identifier to look up

        Returns:
            The long URL if found, None otherwise

        Raises:
            RepositoryError: On database errors
        """
        try:
            query = select(self.model_type.long_url).where(self.model_type.id == short_url_id)
            result = await db.execute(query)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise RepositoryError(f"Error retrieving long URL by short link id: {e}") from e
