"""
Database models for the marketplace API.
Includes users, properties, images, features, neighborhoods and saved properties.
"""

from marketplace.models.user import User, UserRole
from marketplace.models.property import Property, PropertyType, OperationStatus, ListingStatus
from marketplace.models.image import PropertyImage
from marketplace.models.feature import PropertyFeature, PropertyFeatureAssignment
from marketplace.models.neighborhood import Neighborhood
from marketplace.models.saved_property import SavedProperty

__all__ = [
    "User",
    "UserRole",
    "Property",
    "PropertyType",
    "OperationStatus",
    "ListingStatus",
    "PropertyImage",
    "PropertyFeature",
    "PropertyFeatureAssignment",
    "Neighborhood",
    "SavedProperty",
]
