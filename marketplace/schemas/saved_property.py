"""
Pydantic schemas for saved properties.
"""

from pydantic import BaseModel, Field
from typing import List
from datetime import datetime
from marketplace.schemas.property import PropertyResponse


class SavedPropertyResponse(BaseModel):
    """A saved property with the time it was saved."""

    property: PropertyResponse
    saved_at: datetime = Field(..., description="When the property was saved")


class SavedPropertyListResponse(BaseModel):
    saved: List[SavedPropertyResponse]
    count: int


class SaveResultResponse(BaseModel):
    """Result of saving or removing a property."""

    property_id: str
    saved: bool
    message: str
