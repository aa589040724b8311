"""
Per-request context: a short request id, an upload size guard and access logging.
"""

import logging
import time
import uuid
from typing import Callable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from marketplace.services.error_handler import ErrorHandlerService
from marketplace.utils.exceptions import BadRequestError

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
TIMING_HEADER = "X-Processing-Time"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Tags each request with an id (taken from ``X-Request-ID`` when the client
    sends one) and refuses bodies whose declared length is above
    ``max_request_size`` before any route reads them. Image uploads are the
    only large payloads the API accepts, so the limit is sized for a batch of
    photos.
    """

    def __init__(
        self,
        app: ASGIApp,
        max_request_size: int = 50 * 1024 * 1024,
        enable_request_logging: bool = True
    ):
        super().__init__(app)
        self.max_request_size = max_request_size
        self.enable_request_logging = enable_request_logging

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:8]
        request.state.request_id = request_id

        rejection = self._oversize_reason(request.headers.get("content-length"))
        if rejection:
            logger.warning(f"Rejected request [{request_id}] to {request.url.path}: {rejection}")
            response = ErrorHandlerService.handle_api_exception(BadRequestError(rejection), request)
            response.headers[REQUEST_ID_HEADER] = request_id
            return response

        started = time.perf_counter()
        if self.enable_request_logging:
            logger.info(
                f"[{request_id}] {request.method} {request.url.path} from {client_address(request)}",
                extra={"request_id": request_id, "method": request.method, "path": request.url.path}
            )

        response = await call_next(request)
        elapsed = time.perf_counter() - started

        if self.enable_request_logging:
            logger.info(
                f"[{request_id}] {response.status_code} in {elapsed:.3f}s",
                extra={"request_id": request_id, "status_code": response.status_code, "elapsed": elapsed}
            )

        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers[TIMING_HEADER] = f"{elapsed:.3f}"
        return response

    def _oversize_reason(self, content_length: Optional[str]) -> Optional[str]:
        """Return why the declared body size is unacceptable, or None when it is fine."""
        if not content_length:
            return None
        if not content_length.isdigit():
            return "Invalid content-length header"

        size = int(content_length)
        if size > self.max_request_size:
            return f"Request size {size} bytes exceeds maximum allowed size {self.max_request_size} bytes"
        return None


def client_address(request: Request) -> str:
    """Best guess at the caller's address when running behind a proxy."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.headers.get("x-real-ip") or (request.client.host if request.client else "unknown")
