"""
Pydantic schemas for property image requests and responses.
Handles upload results, gallery listing, batch updates and cover changes.
"""

from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime


class PropertyImageResponse(BaseModel):
    """Schema for property image response."""

    id: int = Field(
        ...,
        description="Image identifier",
        examples=[5]
    )

    property_id: str = Field(
        ...,
        description="ID of the property this image belongs to",
        examples=["123e4567-e89b-12d3-a456-426614174001"]
    )

    image_url: Optional[str] = Field(
        None,
        description="Displayable URL; the stored reference when it cannot be resolved",
        examples=["https://store.public.blob.vercel-storage.com/real-estate-assets/property_1.jpg"]
    )

    is_cover: bool = Field(
        ...,
        description="Whether this is the cover image of the property",
        examples=[True]
    )

    display_order: int = Field(
        ...,
        ge=0,
        description="Position in the property gallery",
        examples=[1]
    )

    file_size: Optional[int] = Field(None, description="File size in bytes", examples=[1024000])
    mime_type: Optional[str] = Field(None, description="MIME type of the image file", examples=["image/jpeg"])
    original_filename: Optional[str] = Field(None, description="Filename supplied by the uploader")
    alt_text: Optional[str] = Field(None, description="Accessible description of the image")
    width: Optional[int] = Field(None, description="Image width in pixels")
    height: Optional[int] = Field(None, description="Image height in pixels")

    created_at: Optional[datetime] = Field(None, description="Upload timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")


class SkippedFile(BaseModel):
    """File left out of an upload batch."""

    filename: Optional[str] = Field(None, description="Filename supplied by the uploader")
    reason: str = Field(..., description="Why the file was skipped", examples=["File type 'text/plain' is not an image"])


class ImageUploadResponse(BaseModel):
    """Schema for a batch upload result."""

    message: str = Field("Images uploaded successfully", description="Result message")
    images: List[PropertyImageResponse] = Field(..., description="Stored images in upload order")
    count: int = Field(..., description="Number of stored images")
    uploadPath: str = Field(..., description="Storage folder the batch was written to")
    skipped: List[SkippedFile] = Field(default_factory=list, description="Files that were not stored")


class PropertyImageListResponse(BaseModel):
    """Schema for the image gallery of a property."""

    property_id: str = Field(..., description="ID of the property")
    images: List[PropertyImageResponse] = Field(..., description="Images, cover first then by display order")
    count: int = Field(..., description="Number of images")


class ImageUpdateItem(BaseModel):
    """One entry of a batch image update; only supplied fields are written."""

    imageId: Optional[int] = Field(None, description="Image to update", examples=[5])
    display_order: Optional[int] = Field(None, ge=0, description="New display order", examples=[2])
    is_cover: Optional[bool] = Field(None, description="New cover flag", examples=[True])


class ImageBatchUpdateRequest(BaseModel):
    """Schema for a batch image update."""

    images: List[ImageUpdateItem] = Field(..., description="Image changes applied in one transaction")


class ImageBatchUpdateResponse(BaseModel):
    message: str = Field("Images updated successfully")
    updated_count: int = Field(..., description="Number of entries in the request")


class ImageDeleteResponse(BaseModel):
    message: str = Field("Image deleted successfully")
    deleted_id: int = Field(..., description="ID of the deleted image")


class SetCoverRequest(BaseModel):
    """Schema for making an image the cover of its property."""

    imageId: int = Field(..., description="Image to make the cover", examples=[5])
    propertyId: str = Field(..., description="Property the image belongs to")


class SetCoverResponse(BaseModel):
    success: bool = True
    imageId: int
    propertyId: str


class ReconciliationReport(BaseModel):
    """Result of comparing image rows with stored objects."""

    checked: int = Field(..., description="Number of image rows inspected")
    missing_objects: List[dict] = Field(default_factory=list, description="Rows whose stored object is gone")
    orphaned_files: List[str] = Field(default_factory=list, description="Stored files no row references")
    removed_rows: int = Field(0, description="Rows deleted")
    removed_files: int = Field(0, description="Files deleted")
    dry_run: bool = Field(True, description="Whether anything was changed")
