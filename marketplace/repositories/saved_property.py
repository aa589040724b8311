"""
Repository for saved (favorited) properties.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, desc, delete
from marketplace.repositories.base import BaseRepository
from marketplace.models.saved_property import SavedProperty
from typing import List, Optional
import uuid
import logging

logger = logging.getLogger(__name__)


class SavedPropertyRepository(BaseRepository[SavedProperty]):
    """Repository for a user's saved properties."""

    def __init__(self, db: AsyncSession):
        super().__init__(SavedProperty, db)

    async def get_for_user(self, user_id: uuid.UUID) -> List[SavedProperty]:
        """Saved entries of a user, most recently saved first."""
        query = (
            select(SavedProperty)
            .where(SavedProperty.user_id == user_id)
            .order_by(desc(SavedProperty.created_at), desc(SavedProperty.id))
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_entry(self, user_id: uuid.UUID, property_id: uuid.UUID) -> Optional[SavedProperty]:
        query = select(SavedProperty).where(
            and_(
                SavedProperty.user_id == user_id,
                SavedProperty.property_id == property_id
            )
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def remove_entry(self, user_id: uuid.UUID, property_id: uuid.UUID) -> bool:
        """
        Remove a saved entry.

        Returns:
            True if an entry was removed
        """
        try:
            stmt = delete(SavedProperty).where(
                and_(
                    SavedProperty.user_id == user_id,
                    SavedProperty.property_id == property_id
                )
            )
            result = await self.db.execute(stmt)
            await self.db.commit()
            removed = (result.rowcount or 0) > 0
            logger.debug(f"Removed saved property {property_id} for user {user_id}: {removed}")
            return removed
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to remove saved property {property_id} for user {user_id}: {e}")
            raise
