"""
Property model for sale and rental listings.
Handles property data with location, pricing, status and relationship management.
"""

from sqlalchemy import String, Text, Integer, Numeric, Enum as SQLEnum, Index, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from marketplace.database import Base
from decimal import Decimal
import enum
import uuid
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from marketplace.models.user import User
    from marketplace.models.image import PropertyImage
    from marketplace.models.feature import PropertyFeature


class PropertyType(str, enum.Enum):
    """Kind of real estate being listed."""
    HOUSE = "house"
    APARTMENT = "apartment"
    CONDO = "condo"
    LAND = "land"
    COMMERCIAL = "commercial"


class OperationStatus(str, enum.Enum):
    """Whether a property is offered for sale or for rent."""
    SALE = "sale"
    RENT = "rent"
    NOT_AVAILABLE = "not_available"


class ListingStatus(str, enum.Enum):
    """Publication state of a listing."""
    DRAFT = "draft"
    ACTIVE = "active"
    INACTIVE = "inactive"
    SOLD = "sold"


class Property(Base):
    """
    Property model for marketplace listings.
    Owned by a seller; images, feature assignments and saved entries are
    removed with it.
    """

    __tablename__ = "properties"

    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
        comment="Property listing title"
    )

    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Detailed property description"
    )

    price: Mapped[Decimal] = mapped_column(
        Numeric(precision=14, scale=2),
        nullable=False,
        index=True,
        comment="Asking price or monthly rent"
    )

    # Address
    address: Mapped[str] = mapped_column(String(255), nullable=False, comment="Street address")
    city: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    state: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    country: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    zip_code: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    property_type: Mapped[PropertyType] = mapped_column(
        SQLEnum(PropertyType, name="property_type"),
        nullable=False,
        index=True,
        comment="Kind of property"
    )

    rooms: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Number of rooms"
    )

    bathrooms: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Number of bathrooms"
    )

    area: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Built area in square meters"
    )

    year_built: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment="Year of construction"
    )

    operation_status: Mapped[OperationStatus] = mapped_column(
        SQLEnum(OperationStatus, name="operation_status"),
        nullable=False,
        default=OperationStatus.SALE,
        index=True,
        comment="Sale or rent"
    )

    listing_status: Mapped[ListingStatus] = mapped_column(
        SQLEnum(ListingStatus, name="listing_status"),
        nullable=False,
        default=ListingStatus.ACTIVE,
        index=True,
        comment="Publication state of the listing"
    )

    # Geocode
    latitude: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=10, scale=7),
        nullable=True,
        comment="Property latitude coordinate"
    )

    longitude: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=10, scale=7),
        nullable=True,
        comment="Property longitude coordinate"
    )

    seller_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="ID of the seller who owns this property"
    )

    seller: Mapped["User"] = relationship(
        "User",
        back_populates="properties",
        lazy="selectin"
    )

    images: Mapped[List["PropertyImage"]] = relationship(
        "PropertyImage",
        back_populates="property_rel",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
        order_by="PropertyImage.is_cover.desc(), PropertyImage.display_order.asc(), PropertyImage.created_at.asc()"
    )

    features: Mapped[List["PropertyFeature"]] = relationship(
        "PropertyFeature",
        secondary="property_feature_assignments",
        viewonly=True,
        lazy="selectin",
        order_by="PropertyFeature.name"
    )

    def __repr__(self) -> str:
        """String representation of the property."""
        return f"<Property(id={self.id}, title={self.title[:30]}..., price={self.price})>"

    @property
    def cover_image(self) -> Optional["PropertyImage"]:
        """Get the cover image, falling back to the first gallery image."""
        for image in self.images:
            if image.is_cover:
                return image
        return self.images[0] if self.images else None

    def to_dict(self) -> dict:
        """Convert property to a dictionary of its own columns."""
        return {
            "id": str(self.id),
            "title": self.title,
            "description": self.description,
            "price": self.price,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "country": self.country,
            "zip_code": self.zip_code,
            "property_type": self.property_type.value,
            "rooms": self.rooms,
            "bathrooms": self.bathrooms,
            "area": self.area,
            "year_built": self.year_built,
            "operation_status": self.operation_status.value,
            "listing_status": self.listing_status.value,
            "latitude": float(self.latitude) if self.latitude is not None else None,
            "longitude": float(self.longitude) if self.longitude is not None else None,
            "seller_id": str(self.seller_id),
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


# Composite index for the default search filter combination
Index(
    "idx_properties_status_city_price",
    Property.listing_status,
    Property.city,
    Property.price
)

# Seller dashboard listing
Index(
    "idx_properties_seller_updated",
    Property.seller_id,
    Property.updated_at.desc()
)

# Bounding-box map search
Index(
    "idx_properties_coordinates",
    Property.latitude,
    Property.longitude,
    postgresql_where=Property.latitude.isnot(None) & Property.longitude.isnot(None)
)
