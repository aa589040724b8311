"""
Pydantic schemas for neighborhood reference data.
"""

from pydantic import BaseModel, Field, field_validator
from typing import List, Optional


class NeighborhoodResponse(BaseModel):
    """Neighborhood details."""

    model_config = {"from_attributes": True}

    id: str
    name: str
    city: str
    state: Optional[str] = None
    country: Optional[str] = None
    description: Optional[str] = None
    subway_access: Optional[str] = None
    dining_options: Optional[str] = None
    schools_info: Optional[str] = None
    shopping_info: Optional[str] = None
    parks_recreation: Optional[str] = None
    safety_rating: Optional[int] = Field(None, description="Safety rating from 1 to 10")
    walkability_score: Optional[int] = Field(None, description="Walkability score from 0 to 100")

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, v):
        return str(v)


class NeighborhoodListResponse(BaseModel):
    neighborhoods: List[NeighborhoodResponse]
    count: int
