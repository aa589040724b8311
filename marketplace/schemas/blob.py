"""
Pydantic schemas for object storage endpoints.
"""

from pydantic import BaseModel, Field
from typing import Optional


class BlobResolveRequest(BaseModel):
    key: Optional[str] = Field(None, description="Stored reference to resolve", examples=["blob://real-estate-assets/a.jpg"])


class BlobResolveResponse(BaseModel):
    url: str = Field(..., description="Displayable URL")


class BlobUploadResponse(BaseModel):
    """Result of a direct object upload."""

    url: str
    publicUrl: str
    pathname: str
    contentType: Optional[str] = None
