"""
Repository layer for database operations.
"""

from marketplace.repositories.base import BaseRepository
from marketplace.repositories.user import UserRepository
from marketplace.repositories.property import PropertyRepository, PropertySearchFilters
from marketplace.repositories.image import ImageRepository
from marketplace.repositories.saved_property import SavedPropertyRepository
from marketplace.repositories.neighborhood import NeighborhoodRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "PropertyRepository",
    "PropertySearchFilters",
    "ImageRepository",
    "SavedPropertyRepository",
    "NeighborhoodRepository",
]
