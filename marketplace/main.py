"""
ASGI application for the real estate marketplace API.

Run locally with ``uvicorn marketplace.main:app --reload`` after applying the
migrations (``python migrate.py upgrade``).
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from marketplace.config import settings
from marketplace.database import close_db_connection, test_database_connection, verify_schema
from marketplace.middleware import RequestContextMiddleware
from marketplace.routers import (
    auth_router,
    blobs_router,
    favorites_router,
    images_router,
    neighborhoods_router,
    properties_router,
)
from marketplace.services.error_handler import ErrorHandlerService
from marketplace.utils.exceptions import APIException

logging.basicConfig(level=logging.DEBUG if settings.debug else logging.INFO)
logger = logging.getLogger(__name__)

API_DESCRIPTION = """
Backend for a real estate marketplace.

* **Properties**: listing CRUD, filtered search and map bounding-box search
* **Images**: multi-file upload, cover selection and gallery ordering
* **Storage**: local disk or blob storage, with reference resolution
* **Favorites** and **Neighborhoods**

Obtain a token from `/api/v1/auth/login` and send it as `Authorization: Bearer <token>`.
"""

TAGS = [
    {"name": "Authentication", "description": "Registration, login and token refresh"},
    {"name": "Properties", "description": "Listings, search and map markers"},
    {"name": "Images", "description": "Listing galleries"},
    {"name": "Storage", "description": "Stored reference resolution and direct uploads"},
    {"name": "Favorites", "description": "Saved properties"},
    {"name": "Neighborhoods", "description": "Neighborhood reference data"},
    {"name": "Health", "description": "Liveness and readiness"},
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        f"Starting {settings.app_name} v{settings.app_version} "
        f"({settings.environment}, storage backend: {settings.storage_backend})"
    )
    if await test_database_connection():
        await verify_schema()
    else:
        logger.error("Database is unreachable at startup")

    if settings.storage_backend == "blob" and not settings.blob_configured:
        logger.error("STORAGE_BACKEND is 'blob' but BLOB_READ_WRITE_TOKEN is not set; uploads will fail")

    yield

    await close_db_connection()


def register_exception_handlers(application: FastAPI) -> None:
    """Route every failure through ``ErrorHandlerService`` so all errors share one envelope."""
    handlers = [
        (APIException, ErrorHandlerService.handle_api_exception),
        (RequestValidationError, ErrorHandlerService.handle_validation_error),
        (PydanticValidationError, ErrorHandlerService.handle_validation_error),
        (SQLAlchemyError, ErrorHandlerService.handle_database_error),
        (StarletteHTTPException, ErrorHandlerService.handle_http_exception),
        (Exception, ErrorHandlerService.handle_unexpected_error),
    ]
    for exc_class, handle in handlers:
        application.add_exception_handler(exc_class, _as_handler(handle))


def _as_handler(handle):
    async def handler(request: Request, exc: Exception):
        return handle(exc, request)
    return handler


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description=API_DESCRIPTION,
    openapi_tags=TAGS,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Processing-Time"],
)
app.add_middleware(
    RequestContextMiddleware,
    max_request_size=settings.max_request_size,
    enable_request_logging=settings.debug
)

for router in (auth_router, properties_router, images_router, blobs_router, favorites_router, neighborhoods_router):
    app.include_router(router, prefix=settings.api_v1_prefix)

if settings.storage_backend == "local":
    app.mount(
        settings.upload_url_prefix,
        StaticFiles(directory=settings.upload_dir, check_dir=False),
        name="uploads"
    )

register_exception_handlers(app)


@app.get("/", tags=["Health"])
async def root():
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.environment,
        "status": "healthy",
        "documentation": {"swagger_ui": "/docs", "redoc": "/redoc", "openapi_json": "/openapi.json"},
        "api_prefix": settings.api_v1_prefix
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """Liveness check: the process is up and the database answers."""
    if not await test_database_connection():
        raise HTTPException(status_code=503, detail="Database connection failed")

    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
        "database": "connected",
        "storage_backend": settings.storage_backend
    }


@app.get("/health/db", tags=["Health"])
async def database_health_check():
    """Readiness check: the database answers and the migrations have been applied."""
    if not await test_database_connection():
        raise HTTPException(status_code=503, detail="Database connection failed")
    if not await verify_schema():
        raise HTTPException(status_code=503, detail="Database schema is not migrated")

    return {"status": "healthy", "database": "connected", "schema": "migrated"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("marketplace.main:app", host=settings.host, port=settings.port, reload=settings.debug)
