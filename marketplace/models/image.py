"""
PropertyImage model for managing property image metadata.
Stores the image reference, cover flag and gallery ordering per property.
"""

from sqlalchemy import String, Integer, Boolean, ForeignKey, Index, CheckConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from marketplace.database import Base
import uuid
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from marketplace.models.property import Property


class PropertyImage(Base):
    """
    Image attached to a property listing.

    ``image_url`` holds the stored reference: an absolute URL, a
    ``blob://<pathname>`` object storage key or a root-relative path. At most
    one image per property carries ``is_cover``; the partial unique index
    below enforces it.
    """

    __tablename__ = "property_images"
    __table_args__ = (
        CheckConstraint("display_order >= 0", name="ck_property_images_display_order"),
    )

    # Clients address images by sequential integer id
    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True
    )

    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        comment="ID of the property this image belongs to"
    )

    image_url: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
        comment="Stored reference: absolute URL, blob:// key or relative path"
    )

    is_cover: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        comment="Whether this is the cover image of the property"
    )

    display_order: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Position in the property gallery"
    )

    file_size: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment="File size in bytes"
    )

    mime_type: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
        comment="MIME type of the image file"
    )

    original_filename: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        comment="Filename supplied by the uploader"
    )

    alt_text: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        comment="Accessible description of the image"
    )

    width: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, comment="Width in pixels")
    height: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, comment="Height in pixels")

    property_rel: Mapped["Property"] = relationship(
        "Property",
        back_populates="images",
        lazy="raise"
    )

    def __repr__(self) -> str:
        """String representation of the property image."""
        return (
            f"<PropertyImage(id={self.id}, property_id={self.property_id}, "
            f"is_cover={self.is_cover}, display_order={self.display_order})>"
        )

    def to_dict(self) -> dict:
        """Convert property image to dictionary with the stored reference."""
        return {
            "id": self.id,
            "property_id": str(self.property_id),
            "image_url": self.image_url,
            "is_cover": self.is_cover,
            "display_order": self.display_order,
            "file_size": self.file_size,
            "mime_type": self.mime_type,
            "original_filename": self.original_filename,
            "alt_text": self.alt_text,
            "width": self.width,
            "height": self.height,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


# Listing lookups by property
Index("idx_property_images_property_id", PropertyImage.property_id)

# Cover lookups
Index("idx_property_images_cover", PropertyImage.property_id, PropertyImage.is_cover)

# Gallery ordering
Index("idx_property_images_order", PropertyImage.property_id, PropertyImage.display_order)

# A property has at most one cover image
Index(
    "idx_property_images_unique_cover",
    PropertyImage.property_id,
    unique=True,
    postgresql_where=PropertyImage.is_cover == True,  # noqa: E712
    sqlite_where=PropertyImage.is_cover == True,  # noqa: E712
)
