"""
Exception hierarchy for the marketplace API.

Every API error is an ``HTTPException`` carrying a machine readable
``error_code``. Subclasses only declare their status, code and default
message; the error handler turns them into the JSON error envelope.
"""

from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status


class APIException(HTTPException):
    """Base class for errors that map directly onto an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: Optional[str] = None
    default_detail: str = "Request failed"
    headers: Optional[Dict[str, str]] = None

    def __init__(
        self,
        detail: Optional[str] = None,
        *,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None
    ):
        super().__init__(
            status_code=status_code or type(self).status_code,
            detail=detail or self.default_detail,
            headers=headers or type(self).headers
        )
        if error_code is not None:
            self.error_code = error_code


# Generic HTTP errors

class BadRequestError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "BAD_REQUEST"
    default_detail = "Bad request"


class UnauthorizedError(APIException):
    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "UNAUTHORIZED"
    default_detail = "Authentication required"
    headers = {"WWW-Authenticate": "Bearer"}


class ForbiddenError(APIException):
    status_code = status.HTTP_403_FORBIDDEN
    error_code = "FORBIDDEN"
    default_detail = "Access forbidden"


class NotFoundError(APIException):
    """A resource lookup came back empty."""

    status_code = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"

    def __init__(self, resource: str, resource_id: Optional[str] = None):
        message = f"{resource} not found"
        if resource_id:
            message = f"{message} with ID: {resource_id}"
        super().__init__(message)


class ConflictError(APIException):
    status_code = status.HTTP_409_CONFLICT
    error_code = "CONFLICT"
    default_detail = "Resource conflict"


class ValidationError(APIException):
    """Business validation failure, optionally with per-field messages."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    error_code = "VALIDATION_ERROR"
    default_detail = "Validation failed"

    def __init__(self, detail: str, field_errors: Optional[List[Dict[str, str]]] = None):
        super().__init__(detail)
        self.field_errors = field_errors or []


class InternalServerError(APIException):
    error_code = "INTERNAL_SERVER_ERROR"
    default_detail = "Internal server error"


class ServiceUnavailableError(APIException):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error_code = "SERVICE_UNAVAILABLE"
    default_detail = "Service temporarily unavailable"


# Accounts and tokens

class InvalidCredentialsError(UnauthorizedError):
    default_detail = "Invalid email or password"


class TokenExpiredError(UnauthorizedError):
    default_detail = "Token has expired"


class InvalidTokenError(UnauthorizedError):
    default_detail = "Invalid token"


class InactiveUserError(ForbiddenError):
    default_detail = "User account is inactive"


class InsufficientPermissionsError(ForbiddenError):
    def __init__(self, action: str):
        super().__init__(f"Insufficient permissions to {action}")


class DuplicateResourceError(ConflictError):
    def __init__(self, resource: str, identifier: str):
        super().__init__(f"{resource} with identifier '{identifier}' already exists")


# Listings and galleries

class InvalidIdentifierError(BadRequestError):
    """An id in the path, query or body could not be parsed."""

    def __init__(self, field: str, value: Any = None):
        message = f"Invalid {field}"
        if value not in (None, ""):
            message = f"{message}: {value}"
        super().__init__(message)
        self.field = field


class PropertyNotFoundError(NotFoundError):
    def __init__(self, property_id: str):
        super().__init__("Property", property_id)


class ImageNotFoundError(NotFoundError):
    def __init__(self, image_id: Any):
        super().__init__("Image", str(image_id))


class PropertyOwnershipError(ForbiddenError):
    default_detail = "You don't own this property"


class CoverConflictError(ConflictError):
    """A concurrent writer claimed the cover slot first."""

    default_detail = "Another cover image was set for this property concurrently"


# Object storage

class StorageError(Exception):
    """A backend could not write, read or remove an object."""

    def __init__(self, message: str, reference: Optional[str] = None):
        super().__init__(message)
        self.reference = reference


class StorageNotConfiguredError(ServiceUnavailableError):
    default_detail = "Object storage is not configured"
