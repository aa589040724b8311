"""
Pydantic schemas for request/response validation.
"""

from .auth import (
    RegisterRequest,
    LoginRequest,
    RefreshTokenRequest,
    AccessTokenResponse,
    UserResponse,
    CurrentUserResponse,
    LoginResponse
)

from .property import (
    PropertyCreate,
    PropertyUpdate,
    PropertyResponse,
    PropertyListResponse,
    PropertySearchParams,
    MapBounds,
    PropertyMarker,
    PropertyMapResponse,
    FeatureResponse
)

from .image import (
    PropertyImageResponse,
    PropertyImageListResponse,
    ImageUploadResponse,
    ImageBatchUpdateRequest,
    ImageBatchUpdateResponse,
    ImageDeleteResponse,
    SetCoverRequest,
    SetCoverResponse,
    ReconciliationReport
)

from .blob import BlobResolveRequest, BlobResolveResponse, BlobUploadResponse
from .saved_property import SavedPropertyResponse, SavedPropertyListResponse, SaveResultResponse
from .neighborhood import NeighborhoodResponse, NeighborhoodListResponse

__all__ = [
    # Authentication
    "RegisterRequest",
    "LoginRequest",
    "RefreshTokenRequest",
    "AccessTokenResponse",
    "UserResponse",
    "CurrentUserResponse",
    "LoginResponse",

    # Property
    "PropertyCreate",
    "PropertyUpdate",
    "PropertyResponse",
    "PropertyListResponse",
    "PropertySearchParams",
    "MapBounds",
    "PropertyMarker",
    "PropertyMapResponse",
    "FeatureResponse",

    # Image
    "PropertyImageResponse",
    "PropertyImageListResponse",
    "ImageUploadResponse",
    "ImageBatchUpdateRequest",
    "ImageBatchUpdateResponse",
    "ImageDeleteResponse",
    "SetCoverRequest",
    "SetCoverResponse",
    "ReconciliationReport",

    # Blob storage
    "BlobResolveRequest",
    "BlobResolveResponse",
    "BlobUploadResponse",

    # Saved properties and neighborhoods
    "SavedPropertyResponse",
    "SavedPropertyListResponse",
    "SaveResultResponse",
    "NeighborhoodResponse",
    "NeighborhoodListResponse",
]
