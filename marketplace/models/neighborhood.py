"""
Neighborhood reference data.
Descriptive information about areas of a city; read-only through the API.
"""

from sqlalchemy import String, Text, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from marketplace.database import Base
from typing import Optional


class Neighborhood(Base):
    """
    Descriptive record for a neighborhood, unique by name within a city.
    Loaded by operators; the application only reads it.
    """

    __tablename__ = "neighborhoods"
    __table_args__ = (
        UniqueConstraint("city", "name", name="uq_neighborhoods_city_name"),
    )

    name: Mapped[str] = mapped_column(String(150), nullable=False, index=True)
    city: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    state: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    country: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    subway_access: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    dining_options: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    schools_info: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    shopping_info: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    parks_recreation: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    safety_rating: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment="Safety rating from 1 to 10"
    )

    walkability_score: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment="Walkability score from 0 to 100"
    )

    def __repr__(self) -> str:
        return f"<Neighborhood(id={self.id}, name={self.name}, city={self.city})>"
