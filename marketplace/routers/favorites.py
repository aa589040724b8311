"""
Saved property (favorites) endpoints for the authenticated user.
"""

from fastapi import APIRouter, Depends, Path, Response, status

from marketplace.models.user import User
from marketplace.services.property import PropertyService
from marketplace.services.saved_property import SavedPropertyService
from marketplace.services.error_handler import error_responses
from marketplace.schemas.saved_property import (
    SavedPropertyResponse,
    SavedPropertyListResponse,
    SaveResultResponse
)
from marketplace.utils.dependencies import (
    get_current_active_user,
    get_property_service,
    get_saved_property_service
)

router = APIRouter(prefix="/favorites", tags=["Favorites"])


@router.get(
    "",
    response_model=SavedPropertyListResponse,
    summary="List saved properties",
    description="Properties saved by the current user, most recent first",
    responses=error_responses(401)
)
async def list_saved_properties(
    current_user: User = Depends(get_current_active_user),
    saved_service: SavedPropertyService = Depends(get_saved_property_service),
    property_service: PropertyService = Depends(get_property_service)
) -> SavedPropertyListResponse:
    entries = await saved_service.list_saved(current_user)
    saved = [
        SavedPropertyResponse(
            property=await property_service.to_response(entry.property, include_images=False),
            saved_at=entry.created_at
        )
        for entry in entries
    ]
    return SavedPropertyListResponse(saved=saved, count=len(saved))


@router.post(
    "/{property_id}",
    response_model=SaveResultResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Save a property",
    description="Save a property; saving it again returns 200 without changes",
    responses=error_responses(400, 401, 404)
)
async def save_property(
    response: Response,
    property_id: str = Path(..., description="Property ID"),
    current_user: User = Depends(get_current_active_user),
    saved_service: SavedPropertyService = Depends(get_saved_property_service)
) -> SaveResultResponse:
    property_obj, created = await saved_service.save_property(property_id, current_user)
    if not created:
        response.status_code = status.HTTP_200_OK

    return SaveResultResponse(
        property_id=str(property_obj.id),
        saved=True,
        message="Property saved" if created else "Property already saved"
    )


@router.delete(
    "/{property_id}",
    response_model=SaveResultResponse,
    summary="Remove a saved property",
    responses=error_responses(400, 401, 404)
)
async def remove_saved_property(
    property_id: str = Path(..., description="Property ID"),
    current_user: User = Depends(get_current_active_user),
    saved_service: SavedPropertyService = Depends(get_saved_property_service)
) -> SaveResultResponse:
    await saved_service.remove_saved(property_id, current_user)
    return SaveResultResponse(property_id=property_id, saved=False, message="Property removed from saved")
