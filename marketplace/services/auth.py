"""
Account registration, sign-in and token exchange.
"""

import logging
import uuid
from typing import Tuple

from jose import ExpiredSignatureError, JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.models.user import User
from marketplace.repositories.user import UserRepository
from marketplace.schemas.auth import RegisterRequest
from marketplace.utils.auth import ACCESS, REFRESH, create_access_token, create_refresh_token, verify_token
from marketplace.utils.exceptions import (
    DuplicateResourceError,
    InactiveUserError,
    InvalidCredentialsError,
    InvalidTokenError,
    TokenExpiredError,
    ValidationError,
)

logger = logging.getLogger(__name__)


class AuthService:
    """Everything that turns credentials or tokens into a ``User``."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.user_repo = UserRepository(db)

    async def register(self, data: RegisterRequest) -> User:
        """
        Open a seller or buyer account.

        Raises:
            DuplicateResourceError: If the email already belongs to an account
            ValidationError: If the email or password is rejected by the model
        """
        if await self.user_repo.get_by_email(data.email):
            raise DuplicateResourceError("User", data.email)

        try:
            user = await self.user_repo.create_user(data.model_dump())
        except ValueError as e:
            if "already exists" in str(e):
                raise DuplicateResourceError("User", data.email)
            raise ValidationError(str(e))

        logger.info(f"Registered {user.role.value} account {user.email}")
        return user

    async def authenticate_user(self, email: str, password: str) -> User:
        """
        Check an email and password pair.

        An unknown email and a wrong password produce the same error so the
        endpoint cannot be used to discover which addresses have accounts.

        Raises:
            ValidationError: If either credential is blank
            InvalidCredentialsError: If the pair does not match an account
            InactiveUserError: If the account has been deactivated
        """
        if not (email or "").strip():
            raise ValidationError("Email is required")
        if not (password or "").strip():
            raise ValidationError("Password is required")

        user = await self.user_repo.get_by_email(email)
        if user is None or not user.verify_password(password):
            logger.warning(f"Failed sign-in for {email}")
            raise InvalidCredentialsError()
        if not user.is_active:
            raise InactiveUserError()

        logger.info(f"Signed in {user.email}")
        return user

    def create_tokens(self, user: User) -> Tuple[str, str]:
        """Return an ``(access_token, refresh_token)`` pair for the account."""
        return (
            create_access_token(user_id=user.id, email=user.email, role=user.role),
            create_refresh_token(user_id=user.id, email=user.email),
        )

    async def login(self, email: str, password: str) -> Tuple[User, str, str]:
        user = await self.authenticate_user(email, password)
        return (user, *self.create_tokens(user))

    async def refresh_access_token(self, refresh_token: str) -> str:
        """Exchange a refresh token for a new access token carrying the account's current role."""
        user = await self._user_from_token(refresh_token, REFRESH)
        return create_access_token(user_id=user.id, email=user.email, role=user.role)

    async def get_current_user(self, token: str) -> User:
        """
        Resolve the account behind an access token.

        Raises:
            TokenExpiredError: If the token has expired
            InvalidTokenError: If the token is malformed, is a refresh token, or names a deleted account
            InactiveUserError: If the account has been deactivated
        """
        return await self._user_from_token(token, ACCESS)

    async def _user_from_token(self, token: str, token_type: str) -> User:
        try:
            user_id = uuid.UUID(verify_token(token, token_type=token_type).user_id)
        except ExpiredSignatureError:
            raise TokenExpiredError()
        except (JWTError, ValueError) as e:
            raise InvalidTokenError(str(e) or None)

        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            raise InvalidTokenError("Token user no longer exists")
        if not user.is_active:
            raise InactiveUserError()
        return user
