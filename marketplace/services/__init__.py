"""
Service layer for business logic implementation.
Contains services for authentication, properties, images, storage and error handling.
"""

from .auth import AuthService
from .property import PropertyService
from .image import ImageService
from .storage import StorageResolver, ImageStorage, resolve_image_url
from .reconciliation import ReconciliationService
from .saved_property import SavedPropertyService
from .neighborhood import NeighborhoodService
from .error_handler import ErrorHandlerService

__all__ = [
    "AuthService",
    "PropertyService",
    "ImageService",
    "StorageResolver",
    "ImageStorage",
    "resolve_image_url",
    "ReconciliationService",
    "SavedPropertyService",
    "NeighborhoodService",
    "ErrorHandlerService"
]
