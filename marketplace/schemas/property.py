"""
Pydantic schemas for property requests and responses.
Handles property CRUD operations, search filters, map markers and validation.
"""

from pydantic import BaseModel, Field, field_validator, model_validator, field_serializer
from typing import Optional, List
from datetime import datetime, date
from decimal import Decimal
from marketplace.models.property import PropertyType, OperationStatus, ListingStatus
from marketplace.schemas.image import PropertyImageResponse

MIN_YEAR_BUILT = 1800


def _max_year_built() -> int:
    return date.today().year + 5


def _validate_year_built(v: Optional[int]) -> Optional[int]:
    if v is not None and not (MIN_YEAR_BUILT <= v <= _max_year_built()):
        raise ValueError(f"Year built must be between {MIN_YEAR_BUILT} and {_max_year_built()}")
    return v


def _strip_required(v: Optional[str], label: str) -> Optional[str]:
    if v is None:
        return v
    if not v.strip():
        raise ValueError(f"{label} cannot be empty")
    return v.strip()


class PropertyBase(BaseModel):
    """Base property schema with common fields."""

    title: str = Field(
        ...,
        min_length=5,
        max_length=255,
        description="Property listing title",
        examples=["Bright 2BR apartment near the park"]
    )

    description: str = Field(
        ...,
        min_length=10,
        max_length=5000,
        description="Detailed property description"
    )

    price: Decimal = Field(
        ...,
        gt=0,
        max_digits=14,
        decimal_places=2,
        description="Asking price or monthly rent",
        examples=[350000]
    )

    address: str = Field(..., min_length=3, max_length=255, description="Street address")
    city: str = Field(..., min_length=1, max_length=100, description="City", examples=["Lisbon"])
    state: Optional[str] = Field(None, max_length=100, description="State or region")
    country: str = Field(..., min_length=1, max_length=100, description="Country", examples=["Portugal"])
    zip_code: Optional[str] = Field(None, max_length=20, description="Postal code")

    property_type: PropertyType = Field(..., description="Kind of property", examples=["apartment"])

    rooms: int = Field(0, ge=0, le=50, description="Number of rooms", examples=[3])
    bathrooms: int = Field(0, ge=0, le=50, description="Number of bathrooms", examples=[2])
    area: int = Field(..., gt=0, le=1000000, description="Built area in square meters", examples=[95])
    year_built: Optional[int] = Field(None, description="Year of construction", examples=[1998])

    operation_status: OperationStatus = Field(OperationStatus.SALE, description="Sale or rent")
    listing_status: ListingStatus = Field(ListingStatus.ACTIVE, description="Publication state")

    latitude: Optional[Decimal] = Field(None, ge=-90, le=90, description="Latitude coordinate")
    longitude: Optional[Decimal] = Field(None, ge=-180, le=180, description="Longitude coordinate")

    @field_validator("title", "description", "address", "city", "country")
    @classmethod
    def validate_text(cls, v, info):
        """Strip required text fields."""
        return _strip_required(v, info.field_name.replace("_", " ").capitalize())

    @field_validator("year_built")
    @classmethod
    def validate_year_built(cls, v):
        return _validate_year_built(v)

    @model_validator(mode="after")
    def validate_coordinates(self):
        """Validate that both coordinates are provided together or both are None."""
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("Both latitude and longitude must be provided together, or both must be None")
        return self


class PropertyCreate(PropertyBase):
    """Schema for creating a new property."""

    feature_ids: List[str] = Field(default_factory=list, description="Catalog features to assign")


class PropertyUpdate(BaseModel):
    """Schema for updating an existing property; only supplied fields change."""

    title: Optional[str] = Field(None, min_length=5, max_length=255)
    description: Optional[str] = Field(None, min_length=10, max_length=5000)
    price: Optional[Decimal] = Field(None, gt=0, max_digits=14, decimal_places=2)
    address: Optional[str] = Field(None, min_length=3, max_length=255)
    city: Optional[str] = Field(None, min_length=1, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    country: Optional[str] = Field(None, min_length=1, max_length=100)
    zip_code: Optional[str] = Field(None, max_length=20)
    property_type: Optional[PropertyType] = None
    rooms: Optional[int] = Field(None, ge=0, le=50)
    bathrooms: Optional[int] = Field(None, ge=0, le=50)
    area: Optional[int] = Field(None, gt=0, le=1000000)
    year_built: Optional[int] = None
    operation_status: Optional[OperationStatus] = None
    listing_status: Optional[ListingStatus] = None
    latitude: Optional[Decimal] = Field(None, ge=-90, le=90)
    longitude: Optional[Decimal] = Field(None, ge=-180, le=180)
    feature_ids: Optional[List[str]] = Field(None, description="Replaces the assigned features when given")

    @field_validator("title", "description", "address", "city", "country")
    @classmethod
    def validate_text(cls, v, info):
        return _strip_required(v, info.field_name.replace("_", " ").capitalize())

    @field_validator("year_built")
    @classmethod
    def validate_year_built(cls, v):
        return _validate_year_built(v)

    @model_validator(mode="after")
    def validate_coordinates(self):
        """Coordinates are updated together."""
        fields = self.model_fields_set
        if ("latitude" in fields) != ("longitude" in fields):
            raise ValueError("Both latitude and longitude must be provided together")
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("Both latitude and longitude must be provided together, or both must be None")
        return self


class FeatureResponse(BaseModel):
    """Catalog feature."""

    id: str
    name: str
    category: Optional[str] = None
    icon: Optional[str] = None


class SellerSummary(BaseModel):
    """Public contact details of a listing's seller."""

    id: str
    full_name: str
    email: str
    phone: Optional[str] = None


class PropertyResponse(BaseModel):
    """Schema for property response with images and features."""

    id: str = Field(..., description="Property unique identifier")
    title: str
    description: str
    price: Decimal
    address: str
    city: str
    state: Optional[str] = None
    country: str
    zip_code: Optional[str] = None
    property_type: PropertyType
    rooms: int
    bathrooms: int
    area: int
    year_built: Optional[int] = None
    operation_status: OperationStatus
    listing_status: ListingStatus
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    seller_id: str
    created_at: datetime
    updated_at: datetime

    seller: Optional[SellerSummary] = Field(None, description="Seller contact information")
    images: List[PropertyImageResponse] = Field(default_factory=list, description="Images, cover first")
    image_count: int = Field(0, description="Total number of images for this property")
    cover_image_url: Optional[str] = Field(None, description="Resolved URL of the cover image")
    features: List[FeatureResponse] = Field(default_factory=list, description="Assigned features")

    @field_serializer("price")
    def serialize_price(self, v: Decimal) -> float:
        return float(v)


class PropertyListResponse(BaseModel):
    """Schema for paginated property list response."""

    properties: List[PropertyResponse] = Field(..., description="List of properties")
    total: int = Field(..., description="Total number of properties matching the criteria", examples=[150])
    page: int = Field(..., description="Current page number", examples=[1])
    page_size: int = Field(..., description="Number of properties per page", examples=[20])
    total_pages: int = Field(..., description="Total number of pages", examples=[8])
    has_next: bool = Field(..., description="Whether there are more pages")
    has_previous: bool = Field(..., description="Whether there are previous pages")


class PropertySearchParams(BaseModel):
    """Schema for property search query parameters."""

    query: Optional[str] = Field(None, min_length=1, max_length=255, description="Text search in title, description and address")
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    country: Optional[str] = Field(None, max_length=100)
    min_price: Optional[Decimal] = Field(None, ge=0)
    max_price: Optional[Decimal] = Field(None, ge=0)
    min_rooms: Optional[int] = Field(None, ge=0, le=50)
    min_bathrooms: Optional[int] = Field(None, ge=0, le=50)
    property_type: Optional[PropertyType] = None
    operation_status: Optional[OperationStatus] = None
    listing_status: Optional[ListingStatus] = Field(ListingStatus.ACTIVE, description="Defaults to active listings")
    feature_ids: List[str] = Field(default_factory=list, description="Properties must carry all of these features")

    page: int = Field(1, ge=1, description="Page number (starts from 1)")
    page_size: int = Field(20, ge=1, le=100, description="Number of properties per page (max 100)")
    sort_by: str = Field("created_at", description="Sort field (created_at, price, area)")
    sort_order: str = Field("desc", description="Sort order (asc or desc)")

    @field_validator("sort_by")
    @classmethod
    def validate_sort_by(cls, v):
        """Validate sort field."""
        allowed_fields = ["created_at", "price", "area"]
        if v not in allowed_fields:
            raise ValueError(f"Sort field must be one of: {', '.join(allowed_fields)}")
        return v

    @field_validator("sort_order")
    @classmethod
    def validate_sort_order(cls, v):
        """Validate sort order."""
        if v.lower() not in ["asc", "desc"]:
            raise ValueError("Sort order must be 'asc' or 'desc'")
        return v.lower()

    @model_validator(mode="after")
    def validate_ranges(self):
        """Validate price range."""
        if self.min_price is not None and self.max_price is not None and self.min_price > self.max_price:
            raise ValueError("Minimum price cannot be greater than maximum price")
        return self


class MapBounds(BaseModel):
    """Bounding box for map search."""

    north: Decimal = Field(..., ge=-90, le=90)
    south: Decimal = Field(..., ge=-90, le=90)
    east: Decimal = Field(..., ge=-180, le=180)
    west: Decimal = Field(..., ge=-180, le=180)

    @model_validator(mode="after")
    def validate_latitudes(self):
        if self.south > self.north:
            raise ValueError("South bound cannot be greater than north bound")
        return self


class PropertyMarker(BaseModel):
    """Lightweight property representation for map views."""

    id: str
    title: str
    price: float
    latitude: float
    longitude: float
    property_type: PropertyType
    operation_status: OperationStatus
    cover_image_url: Optional[str] = None


class PropertyMapResponse(BaseModel):
    markers: List[PropertyMarker]
    count: int
