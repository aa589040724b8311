"""
Utility modules for the marketplace API.
"""

from .auth import (
    create_access_token,
    create_refresh_token,
    verify_token,
    TokenPayload
)

from .exceptions import (
    APIException,
    ValidationError,
    NotFoundError,
    UnauthorizedError,
    ForbiddenError,
    ConflictError,
    BadRequestError,
    InternalServerError,
    ServiceUnavailableError,
    InvalidCredentialsError,
    TokenExpiredError,
    InvalidTokenError,
    InactiveUserError,
    InsufficientPermissionsError,
    DuplicateResourceError,
    InvalidIdentifierError,
    PropertyNotFoundError,
    PropertyOwnershipError,
    ImageNotFoundError,
    CoverConflictError,
    StorageError,
    StorageNotConfiguredError
)

from .validators import ValidationUtils

# Dependencies are imported directly where needed to avoid circular imports

__all__ = [
    # Auth utilities
    "create_access_token",
    "create_refresh_token",
    "verify_token",
    "TokenPayload",

    # Exceptions
    "APIException",
    "ValidationError",
    "NotFoundError",
    "UnauthorizedError",
    "ForbiddenError",
    "ConflictError",
    "BadRequestError",
    "InternalServerError",
    "ServiceUnavailableError",
    "InvalidCredentialsError",
    "TokenExpiredError",
    "InvalidTokenError",
    "InactiveUserError",
    "InsufficientPermissionsError",
    "DuplicateResourceError",
    "InvalidIdentifierError",
    "PropertyNotFoundError",
    "PropertyOwnershipError",
    "ImageNotFoundError",
    "CoverConflictError",
    "StorageError",
    "StorageNotConfiguredError",

    # Validation
    "ValidationUtils",
]
