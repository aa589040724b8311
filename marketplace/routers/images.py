"""
Image management API endpoints.
Handles image upload, gallery listing, batch reordering, cover selection and deletion.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, UploadFile, File, Form, Query, Path, status

from marketplace.models.user import User
from marketplace.services.image import ImageService
from marketplace.services.reconciliation import ReconciliationService
from marketplace.services.error_handler import error_responses
from marketplace.schemas.image import (
    PropertyImageListResponse,
    ImageUploadResponse,
    ImageBatchUpdateRequest,
    ImageBatchUpdateResponse,
    ImageDeleteResponse,
    SetCoverRequest,
    SetCoverResponse,
    ReconciliationReport
)
from marketplace.utils.dependencies import (
    get_current_active_user,
    get_current_admin_user,
    get_image_service,
    get_reconciliation_service
)
from marketplace.utils.exceptions import InvalidIdentifierError

router = APIRouter(prefix="/images", tags=["Images"])


@router.post(
    "/upload",
    response_model=ImageUploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload images for a property",
    description="Upload one or more image files (field `images`, up to 10MB each). "
                "Invalid files are skipped and listed in the response.",
    responses=error_responses(400, 401, 403, 404, 409, 422, 500)
)
async def upload_images(
    property_id: Optional[str] = Form(None, description="Property ID"),
    propertyId: Optional[str] = Form(None, description="Property ID (camelCase form)"),
    seller_id: Optional[str] = Form(None, description="Owner of the property"),
    images: Optional[List[UploadFile]] = File(None, description="Image files in gallery order"),
    current_user: User = Depends(get_current_active_user),
    image_service: ImageService = Depends(get_image_service)
) -> ImageUploadResponse:
    """
    Upload a batch of images; the first one becomes the cover if the property has none.

    Raises:
        InvalidIdentifierError: If the property id is missing or malformed
        BadRequestError: If no files were sent
        ValidationError: If every file was rejected
        PropertyNotFoundError: If the property doesn't exist
        PropertyOwnershipError: If the caller does not own the property
    """
    target = property_id or propertyId
    if not target:
        raise InvalidIdentifierError("property_id")

    return await image_service.upload_images(
        property_id=target,
        files=images or [],
        current_user=current_user,
        seller_id=seller_id
    )


@router.put(
    "/update",
    response_model=ImageBatchUpdateResponse,
    status_code=status.HTTP_200_OK,
    summary="Reorder images and change covers",
    description="Apply display order and cover changes in a single transaction",
    responses=error_responses(401, 403, 404, 409, 422)
)
async def update_images(
    request: ImageBatchUpdateRequest,
    current_user: User = Depends(get_current_active_user),
    image_service: ImageService = Depends(get_image_service)
) -> ImageBatchUpdateResponse:
    return await image_service.update_images(request, current_user)


@router.delete(
    "/delete",
    response_model=ImageDeleteResponse,
    status_code=status.HTTP_200_OK,
    summary="Delete an image",
    description="Delete one image; the next image by display order becomes the cover if needed",
    responses=error_responses(400, 401, 403, 404)
)
async def delete_image(
    imageId: Optional[str] = Query(None, description="ID of the image to delete"),
    current_user: User = Depends(get_current_active_user),
    image_service: ImageService = Depends(get_image_service)
) -> ImageDeleteResponse:
    return await image_service.delete_image(imageId, current_user)


@router.post(
    "/set-cover",
    response_model=SetCoverResponse,
    status_code=status.HTTP_200_OK,
    summary="Set the cover image",
    description="Make an image the cover of its property",
    responses=error_responses(400, 401, 403, 404, 409)
)
async def set_cover_image(
    request: SetCoverRequest,
    current_user: User = Depends(get_current_active_user),
    image_service: ImageService = Depends(get_image_service)
) -> SetCoverResponse:
    return await image_service.set_cover(request.imageId, request.propertyId, current_user)


@router.post(
    "/reconcile",
    response_model=ReconciliationReport,
    status_code=status.HTTP_200_OK,
    summary="Reconcile images with storage",
    description="Find image rows without stored objects and files without rows. "
                "Only reports unless `apply` is true.",
    responses=error_responses(401, 403, 500)
)
async def reconcile_images(
    apply: bool = Query(False, description="Delete what the report finds"),
    current_user: User = Depends(get_current_admin_user),
    reconciliation_service: ReconciliationService = Depends(get_reconciliation_service)
) -> ReconciliationReport:
    return await reconciliation_service.run(dry_run=not apply)


@router.get(
    "/{propertyId}",
    response_model=PropertyImageListResponse,
    status_code=status.HTTP_200_OK,
    summary="List property images",
    description="Images of a property, cover first then by display order",
    responses=error_responses(400)
)
async def list_property_images(
    propertyId: str = Path(..., description="Property ID"),
    image_service: ImageService = Depends(get_image_service)
) -> PropertyImageListResponse:
    return await image_service.list_images(propertyId)
