"""
Pydantic schemas for authentication requests and responses.
Handles registration, login, token refresh, and current user data.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from typing import List, Optional
from datetime import datetime
from marketplace.models.user import UserRole

ROLE_PERMISSIONS = {
    UserRole.ADMIN: [
        "create_property",
        "update_any_property",
        "delete_any_property",
        "manage_any_images",
        "run_reconciliation",
        "save_properties",
    ],
    UserRole.SELLER: [
        "create_property",
        "update_own_property",
        "delete_own_property",
        "manage_own_images",
        "save_properties",
    ],
    UserRole.BUYER: [
        "save_properties",
    ],
}


class RegisterRequest(BaseModel):
    """Registration request schema; admins are never self-registered."""

    email: EmailStr = Field(..., description="User's email address", examples=["seller@example.com"])
    password: str = Field(
        ...,
        min_length=8,
        max_length=128,
        description="User's password (minimum 8 characters)",
        examples=["securepassword123"]
    )
    full_name: str = Field(..., min_length=1, max_length=255, description="User's full name", examples=["Jane Doe"])
    phone: Optional[str] = Field(None, max_length=50, description="Contact phone number")
    role: UserRole = Field(UserRole.BUYER, description="seller or buyer", examples=["seller"])

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        """Normalize email to lowercase."""
        return v.lower().strip()

    @field_validator("full_name")
    @classmethod
    def strip_full_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Full name cannot be empty")
        return v

    @field_validator("role")
    @classmethod
    def validate_role(cls, v):
        if v == UserRole.ADMIN:
            raise ValueError("Role must be seller or buyer")
        return v


class LoginRequest(BaseModel):
    """Login request schema."""

    email: EmailStr = Field(..., description="User's email address", examples=["seller@example.com"])
    password: str = Field(
        ...,
        min_length=8,
        max_length=128,
        description="User's password (minimum 8 characters)",
        examples=["securepassword123"]
    )

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        """Normalize email to lowercase."""
        return v.lower().strip()


class RefreshTokenRequest(BaseModel):
    """Refresh token request schema."""

    refresh_token: str = Field(..., description="Valid refresh token")


class AccessTokenResponse(BaseModel):
    """Access token response schema."""

    access_token: str = Field(..., description="New JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(..., description="Access token expiration time in seconds", examples=[1800])


class UserResponse(BaseModel):
    """User response schema (excluding sensitive data)."""

    model_config = {"from_attributes": True}

    id: str = Field(..., description="User's unique identifier")
    email: EmailStr = Field(..., description="User's email address")
    full_name: str = Field(..., description="User's full name")
    phone: Optional[str] = Field(None, description="Contact phone number")
    role: UserRole = Field(..., description="User's role")
    is_active: bool = Field(..., description="Whether the user account is active")
    created_at: datetime = Field(..., description="Account creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, v):
        return str(v)


class CurrentUserResponse(UserResponse):
    """Current user response with role permissions."""

    permissions: List[str] = Field(default_factory=list, description="User's permissions based on role")

    @model_validator(mode="after")
    def set_permissions(self):
        """Set permissions based on user role."""
        self.permissions = list(ROLE_PERMISSIONS.get(self.role, []))
        return self


class LoginResponse(BaseModel):
    """Complete login response schema."""

    user: CurrentUserResponse = Field(..., description="Authenticated user information")
    access_token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="JWT refresh token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(..., description="Access token expiration time in seconds", examples=[1800])
