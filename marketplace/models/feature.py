"""
Property feature catalog and its assignment to properties.
Amenity tags such as "Pool" or "Parking" shared by all listings.
"""

from sqlalchemy import String, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from marketplace.database import Base
import uuid
from typing import Optional


class PropertyFeature(Base):
    """Amenity tag from the shared feature catalog."""

    __tablename__ = "property_features"

    name: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        nullable=False,
        comment="Feature display name"
    )

    category: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        index=True,
        comment="Grouping used by filter panels (e.g. interior, exterior)"
    )

    icon: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
        comment="Icon identifier used by clients"
    )

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "name": self.name,
            "category": self.category,
            "icon": self.icon,
        }


class PropertyFeatureAssignment(Base):
    """Join row linking a property to a catalog feature."""

    __tablename__ = "property_feature_assignments"
    __table_args__ = (
        UniqueConstraint("property_id", "feature_id", name="uq_property_feature"),
    )

    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    feature_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("property_features.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
