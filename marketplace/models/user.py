"""
Marketplace accounts.

Sellers publish listings and manage their galleries, buyers browse and keep
favorites, admins can act on any listing.
"""

import enum
import uuid
from typing import List, Optional, TYPE_CHECKING

from email_validator import EmailNotValidError, validate_email
from passlib.context import CryptContext
from sqlalchemy import Boolean, Enum as SQLEnum, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from marketplace.database import Base

if TYPE_CHECKING:
    from marketplace.models.property import Property
    from marketplace.models.saved_property import SavedProperty

MIN_PASSWORD_LENGTH = 8

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class UserRole(str, enum.Enum):
    SELLER = "seller"
    BUYER = "buyer"
    ADMIN = "admin"


class User(Base):
    """A person signed up to the marketplace, identified by a unique email."""

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(255), unique=True, index=True, nullable=False,
        comment="Lower-cased sign-in address"
    )
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False, comment="bcrypt hash")
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(
        String(50), nullable=True,
        comment="Contact number displayed to buyers"
    )
    role: Mapped[UserRole] = mapped_column(
        SQLEnum(UserRole, name="user_role"), index=True, nullable=False, default=UserRole.BUYER
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True,
        comment="Deactivated accounts cannot sign in"
    )

    # Rows go away through ON DELETE CASCADE, never loaded implicitly
    properties: Mapped[List["Property"]] = relationship(
        "Property", back_populates="seller",
        cascade="all, delete-orphan", passive_deletes=True, lazy="raise"
    )
    saved_properties: Mapped[List["SavedProperty"]] = relationship(
        "SavedProperty", back_populates="user",
        cascade="all, delete-orphan", passive_deletes=True, lazy="raise"
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"

    @classmethod
    def validate_email_format(cls, email: str) -> str:
        """
        Normalize an address the way it is stored.

        Raises:
            ValueError: If the address is not syntactically valid
        """
        try:
            return validate_email(email, check_deliverability=False).normalized.lower()
        except EmailNotValidError as e:
            raise ValueError(f"Invalid email format: {e}")

    @classmethod
    def hash_password(cls, password: str) -> str:
        if not password or len(password) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
        return pwd_context.hash(password)

    def verify_password(self, password: str) -> bool:
        return pwd_context.verify(password, self.hashed_password)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_seller(self) -> bool:
        return self.role == UserRole.SELLER

    def can_manage_property(self, property_seller_id: uuid.UUID) -> bool:
        """Owners manage their own listings; admins manage every listing."""
        return self.is_admin or self.id == property_seller_id

    def to_dict(self) -> dict:
        """Public profile fields. The password hash is never included."""
        return {
            "id": str(self.id),
            "email": self.email,
            "full_name": self.full_name,
            "phone": self.phone,
            "role": self.role.value,
            "is_active": self.is_active,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
