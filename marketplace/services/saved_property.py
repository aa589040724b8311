"""
Saved property service for a user's favorites.
"""

from typing import List, Tuple
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from marketplace.models.property import Property
from marketplace.models.saved_property import SavedProperty
from marketplace.models.user import User
from marketplace.repositories.property import PropertyRepository
from marketplace.repositories.saved_property import SavedPropertyRepository
from marketplace.utils.exceptions import NotFoundError, PropertyNotFoundError
from marketplace.utils.validators import ValidationUtils
import logging

logger = logging.getLogger(__name__)


class SavedPropertyService:
    """Service for saving and unsaving properties."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.saved_repo = SavedPropertyRepository(db)
        self.property_repo = PropertyRepository(db)

    async def list_saved(self, current_user: User) -> List[SavedProperty]:
        return await self.saved_repo.get_for_user(current_user.id)

    async def save_property(self, property_id: str, current_user: User) -> Tuple[Property, bool]:
        """
        Save a property for the current user. Saving twice is a no-op.

        Returns:
            Tuple of (property, created) where created is False when it was already saved

        Raises:
            InvalidIdentifierError: If the id is not a UUID
            PropertyNotFoundError: If the property doesn't exist
        """
        pid = ValidationUtils.parse_uuid(property_id, "property id")
        property_obj = await self.property_repo.get_by_id(pid)
        if not property_obj:
            raise PropertyNotFoundError(str(pid))

        existing = await self.saved_repo.get_entry(current_user.id, pid)
        if existing:
            return property_obj, False

        try:
            await self.saved_repo.create({"user_id": current_user.id, "property_id": pid})
        except IntegrityError:
            # Saved by a concurrent request
            logger.debug(f"Property {pid} already saved by user {current_user.id}")
            return property_obj, False

        logger.info(f"User {current_user.email} saved property {pid}")
        return property_obj, True

    async def remove_saved(self, property_id: str, current_user: User) -> bool:
        """
        Raises:
            NotFoundError: If the property is not in the user's saved list
        """
        pid = ValidationUtils.parse_uuid(property_id, "property id")
        removed = await self.saved_repo.remove_entry(current_user.id, pid)
        if not removed:
            raise NotFoundError("Saved property", str(pid))

        logger.info(f"User {current_user.email} removed saved property {pid}")
        return True
