"""
API route handlers for the marketplace API.
Provides organized routing for different API endpoints.
"""

from .auth import router as auth_router
from .properties import router as properties_router
from .images import router as images_router
from .blobs import router as blobs_router
from .favorites import router as favorites_router
from .neighborhoods import router as neighborhoods_router

__all__ = [
    "auth_router",
    "properties_router",
    "images_router",
    "blobs_router",
    "favorites_router",
    "neighborhoods_router"
]
