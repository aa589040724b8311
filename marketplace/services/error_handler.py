"""
Turns exceptions into the API's JSON error envelope.

Every failure leaves the service as::

    {"error": {"code": ..., "message": ..., "timestamp": ..., "request_id": ..., "details": [...]}}

``details`` is only present for validation failures.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from fastapi import HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from marketplace.utils.exceptions import APIException, ValidationError

logger = logging.getLogger(__name__)

# Substring of the driver message -> (status, code, human readable constraint)
CONSTRAINT_MESSAGES: List[Tuple[str, int, str, str]] = [
    ("unique", 409, "INTEGRITY_ERROR", "Duplicate value for unique field"),
    ("foreign key", 404, "NOT_FOUND", "Referenced record does not exist"),
    ("not null", 409, "INTEGRITY_ERROR", "Required field cannot be empty"),
    ("check constraint", 409, "INTEGRITY_ERROR", "Value does not meet validation requirements"),
]

UNEXPECTED_MESSAGE = "An unexpected error occurred. Please try again later."


class ErrorHandlerService:
    """
    Exception handlers registered on the application, plus the middleware's
    early rejections. The request id assigned by ``RequestContextMiddleware``
    is reused so clients can correlate an error with the access log.
    """

    @staticmethod
    def format_error_response(
        error_code: str,
        message: str,
        details: Optional[List[Dict[str, Any]]] = None,
        request_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Build the error envelope.

        Args:
            error_code: Stable machine readable code, e.g. ``NOT_FOUND``
            message: Message safe to show to the client
            details: Per-field problems for validation failures
            request_id: Correlation id of the failed request

        Returns:
            Dictionary ready to be serialized as the response body
        """
        body: Dict[str, Any] = {
            "code": error_code,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        }
        if request_id:
            body["request_id"] = request_id
        if details:
            body["details"] = details
        return {"error": body}

    @classmethod
    def handle_api_exception(cls, exception: APIException, request: Optional[Request] = None) -> JSONResponse:
        request_id = cls._request_id(request)
        logger.warning(
            f"[{request_id}] {exception.error_code}: {exception.detail}",
            extra=cls._log_context(request, request_id, status_code=exception.status_code)
        )

        details = exception.field_errors if isinstance(exception, ValidationError) else None
        return cls._respond(
            exception.status_code,
            exception.error_code or "API_ERROR",
            exception.detail,
            request_id,
            details=details,
            headers=exception.headers
        )

    @classmethod
    def handle_validation_error(cls, exception: Exception, request: Optional[Request] = None) -> JSONResponse:
        """
        Report request body, query and path validation problems field by field.

        Args:
            exception: FastAPI ``RequestValidationError`` or a pydantic ``ValidationError``
            request: Request being handled, when available
        """
        request_id = cls._request_id(request)
        details = [
            {
                "field": " -> ".join(str(part) for part in error["loc"]),
                "message": error["msg"],
                "type": error["type"],
            }
            for error in exception.errors()
        ]
        logger.warning(
            f"[{request_id}] request validation failed on {len(details)} field(s)",
            extra=cls._log_context(request, request_id, status_code=422)
        )
        return cls._respond(422, "VALIDATION_ERROR", "Request validation failed", request_id, details=details)

    @classmethod
    def handle_database_error(cls, exception: SQLAlchemyError, request: Optional[Request] = None) -> JSONResponse:
        """
        Map database failures onto HTTP statuses.

        A foreign key violation means the referenced listing or user is gone
        (404). Other integrity violations are conflicts (409). Anything else is
        a server error whose driver message stays in the log.
        """
        request_id = cls._request_id(request)
        status_code, error_code, message = 500, "DATABASE_ERROR", "Database operation failed"

        if isinstance(exception, IntegrityError):
            status_code, error_code, message = 409, "INTEGRITY_ERROR", "Data integrity constraint violation"
            driver_message = str(exception.orig).lower()
            for needle, mapped_status, mapped_code, constraint in CONSTRAINT_MESSAGES:
                if needle in driver_message:
                    status_code, error_code = mapped_status, mapped_code
                    message = f"Constraint violation: {constraint}"
                    break

        logger.error(
            f"[{request_id}] {error_code}: {exception}",
            extra=cls._log_context(request, request_id, status_code=status_code),
            exc_info=status_code == 500
        )
        return cls._respond(status_code, error_code, message, request_id)

    @classmethod
    def handle_http_exception(cls, exception: HTTPException, request: Optional[Request] = None) -> JSONResponse:
        """Plain HTTP errors raised by FastAPI or Starlette themselves, e.g. unknown routes."""
        request_id = cls._request_id(request)
        logger.warning(
            f"[{request_id}] HTTP {exception.status_code}: {exception.detail}",
            extra=cls._log_context(request, request_id, status_code=exception.status_code)
        )
        return cls._respond(
            exception.status_code,
            f"HTTP_{exception.status_code}",
            str(exception.detail),
            request_id,
            headers=getattr(exception, "headers", None)
        )

    @classmethod
    def handle_unexpected_error(cls, exception: Exception, request: Optional[Request] = None) -> JSONResponse:
        request_id = cls._request_id(request)
        logger.error(
            f"[{request_id}] unhandled {type(exception).__name__}: {exception}",
            extra=cls._log_context(request, request_id, status_code=500),
            exc_info=exception
        )
        return cls._respond(500, "INTERNAL_SERVER_ERROR", UNEXPECTED_MESSAGE, request_id)

    @classmethod
    def _respond(
        cls,
        status_code: int,
        error_code: str,
        message: str,
        request_id: str,
        details: Optional[List[Dict[str, Any]]] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> JSONResponse:
        content = cls.format_error_response(error_code, message, details=details, request_id=request_id)
        return JSONResponse(status_code=status_code, content=jsonable_encoder(content), headers=headers)

    @staticmethod
    def _request_id(request: Optional[Request]) -> str:
        request_id = getattr(request.state, "request_id", None) if request is not None else None
        return request_id or uuid.uuid4().hex[:8]

    @staticmethod
    def _log_context(request: Optional[Request], request_id: str, **fields: Any) -> Dict[str, Any]:
        return {"request_id": request_id, "path": request.url.path if request else None, **fields}


def _documented(description: str, code: str, message: str) -> Dict[str, Any]:
    example = {
        "error": {
            "code": code,
            "message": message,
            "timestamp": "2024-01-01T00:00:00Z",
            "request_id": "abc12345",
        }
    }
    return {"description": description, "content": {"application/json": {"example": example}}}


ERROR_RESPONSES = {
    400: _documented("Bad Request", "BAD_REQUEST", "Invalid property id"),
    401: _documented("Unauthorized", "UNAUTHORIZED", "Authentication required"),
    403: _documented("Forbidden", "FORBIDDEN", "You don't own this property"),
    404: _documented("Not Found", "NOT_FOUND", "Property not found"),
    409: _documented("Conflict", "CONFLICT", "Another cover image was set for this property concurrently"),
    422: _documented("Validation Error", "VALIDATION_ERROR", "Request validation failed"),
    500: _documented("Internal Server Error", "INTERNAL_SERVER_ERROR", "An unexpected error occurred"),
    503: _documented("Service Unavailable", "SERVICE_UNAVAILABLE", "Object storage is not configured"),
}


def error_responses(*status_codes: int) -> Dict[int, Dict[str, Any]]:
    """OpenAPI ``responses`` entries for the given status codes."""
    return {code: ERROR_RESPONSES[code] for code in status_codes}
