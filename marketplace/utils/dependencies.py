"""
FastAPI dependencies: per-request services and the caller's account.
"""

from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from marketplace.config import Settings, get_settings
from marketplace.database import get_db
from marketplace.models.user import User
from marketplace.services.auth import AuthService
from marketplace.services.image import ImageService
from marketplace.services.property import PropertyService
from marketplace.services.reconciliation import ReconciliationService
from marketplace.services.saved_property import SavedPropertyService
from marketplace.services.neighborhood import NeighborhoodService
from marketplace.services.storage import StorageResolver
from marketplace.storage.blob import BlobStorageClient
from marketplace.utils.exceptions import (
    APIException,
    UnauthorizedError,
    InactiveUserError,
    InsufficientPermissionsError
)


async def get_auth_service(db: AsyncSession = Depends(get_db)) -> AuthService:
    return AuthService(db)


async def get_image_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings)
) -> ImageService:
    return ImageService(db, settings)


async def get_property_service(
    image_service: ImageService = Depends(get_image_service)
) -> PropertyService:
    """
    Get property service instance sharing the image service's session and storage.
    """
    return PropertyService(image_service.db, image_service.settings, image_service=image_service)


async def get_saved_property_service(db: AsyncSession = Depends(get_db)) -> SavedPropertyService:
    return SavedPropertyService(db)


async def get_neighborhood_service(db: AsyncSession = Depends(get_db)) -> NeighborhoodService:
    return NeighborhoodService(db)


async def get_reconciliation_service(
    image_service: ImageService = Depends(get_image_service)
) -> ReconciliationService:
    return ReconciliationService(image_service.db, image_service.settings, storage=image_service.storage)


async def get_blob_client(settings: Settings = Depends(get_settings)) -> BlobStorageClient:
    return BlobStorageClient(settings)


async def get_storage_resolver(
    settings: Settings = Depends(get_settings),
    blob_client: BlobStorageClient = Depends(get_blob_client)
) -> StorageResolver:
    return StorageResolver(settings, blob_client=blob_client)


bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service)
) -> User:
    """
    Resolve the bearer token into an account.

    Raises:
        UnauthorizedError: If the Authorization header is missing or unusable
        TokenExpiredError: If the access token has expired
        InactiveUserError: If the account has been deactivated
    """
    if credentials is None:
        raise UnauthorizedError("Authentication token required")

    try:
        return await auth_service.get_current_user(credentials.credentials)
    except APIException:
        raise
    except Exception as e:
        raise UnauthorizedError(f"Authentication failed: {e}")


async def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_active:
        raise InactiveUserError()
    return current_user


async def get_current_admin_user(current_user: User = Depends(get_current_active_user)) -> User:
    if not current_user.is_admin:
        raise InsufficientPermissionsError("access admin resources")
    return current_user


async def get_current_seller_user(current_user: User = Depends(get_current_active_user)) -> User:
    """Sellers, and admins acting on their behalf."""
    if not (current_user.is_seller or current_user.is_admin):
        raise InsufficientPermissionsError("access seller resources")
    return current_user


async def get_optional_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service)
) -> Optional[User]:
    """
    Account behind the bearer token on public endpoints.

    A missing or bad token yields an anonymous caller rather than an error,
    so listing pages keep working when a stale token is sent.
    """
    if credentials is None:
        return None

    try:
        user = await auth_service.get_current_user(credentials.credentials)
    except APIException:
        return None
    return user if user.is_active else None
