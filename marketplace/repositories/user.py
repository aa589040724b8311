"""
Account lookups and creation.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.models.user import User, UserRole
from marketplace.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    """Emails are matched case-insensitively and stored lower-cased."""

    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    async def create_user(self, user_data: Dict[str, Any]) -> User:
        """
        Insert an account from registration data.

        Args:
            user_data: ``email``, ``password`` and ``full_name``, optionally
                ``phone``, ``role`` (default buyer) and ``is_active``

        Returns:
            The flushed account

        Raises:
            ValueError: If the email is malformed or taken, or the password too short
        """
        fields = dict(user_data)
        email = User.validate_email_format(fields.pop("email"))
        if await self.get_by_email(email):
            raise ValueError(f"User with email {email} already exists")

        fields.update(
            email=email,
            hashed_password=User.hash_password(fields.pop("password")),
            role=fields.get("role") or UserRole.BUYER,
            is_active=fields.get("is_active", True),
        )
        user = await self.create(fields)
        logger.info(f"Created {user.role.value} account {user.email} ({user.id})")
        return user

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(func.lower(User.email) == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """Return the active account matching the credentials, or None."""
        user = await self.get_by_email(email)
        if user is None or not user.is_active or not user.verify_password(password):
            logger.debug(f"Credentials rejected for {email}")
            return None
        return user
