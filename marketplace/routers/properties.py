"""
Property management API endpoints for CRUD operations, search and map views.
Provides property management with authentication and ownership checks.
"""

from fastapi import APIRouter, Depends, status, Query, Path, Response
from decimal import Decimal
from typing import Optional, List
import math

from marketplace.models.user import User
from marketplace.models.property import PropertyType, OperationStatus, ListingStatus
from marketplace.services.property import PropertyService
from marketplace.services.error_handler import error_responses
from marketplace.schemas.property import (
    PropertyCreate,
    PropertyUpdate,
    PropertyResponse,
    PropertyListResponse,
    PropertySearchParams,
    MapBounds,
    PropertyMapResponse,
    FeatureResponse
)
from marketplace.utils.dependencies import (
    get_current_active_user,
    get_current_seller_user,
    get_optional_current_user,
    get_property_service
)


router = APIRouter(prefix="/properties", tags=["Properties"])


async def _list_response(
    property_service: PropertyService,
    properties,
    total_count: int,
    page: int,
    page_size: int
) -> PropertyListResponse:
    property_responses = [
        await property_service.to_response(prop, include_images=False)
        for prop in properties
    ]

    total_pages = math.ceil(total_count / page_size) if total_count > 0 else 1

    return PropertyListResponse(
        properties=property_responses,
        total=total_count,
        page=page,
        page_size=page_size,
        total_pages=total_pages,
        has_next=page < total_pages,
        has_previous=page > 1
    )


@router.post(
    "",
    response_model=PropertyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create new property",
    description="Create a new property listing. Requires seller or admin role.",
    responses=error_responses(401, 403, 422)
)
async def create_property(
    property_data: PropertyCreate,
    current_user: User = Depends(get_current_seller_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    """
    Create a new property listing.

    Raises:
        InsufficientPermissionsError: If user is not a seller or admin
        ValidationError: If property data or feature ids are invalid
    """
    property_obj = await property_service.create_property(property_data, current_user)
    return await property_service.to_response(property_obj)


@router.get(
    "",
    response_model=PropertyListResponse,
    status_code=status.HTTP_200_OK,
    summary="List properties with search and filtering",
    description="Get paginated list of properties with optional search filters",
    responses=error_responses(400, 422)
)
async def list_properties(
    # Search parameters
    query: Optional[str] = Query(None, description="Search in title, description and address"),
    city: Optional[str] = Query(None, description="City filter"),
    state: Optional[str] = Query(None, description="State filter"),
    country: Optional[str] = Query(None, description="Country filter"),

    # Price filters
    min_price: Optional[Decimal] = Query(None, ge=0, description="Minimum price filter"),
    max_price: Optional[Decimal] = Query(None, ge=0, description="Maximum price filter"),

    # Property attribute filters
    min_rooms: Optional[int] = Query(None, ge=0, le=50, description="Minimum number of rooms"),
    min_bathrooms: Optional[int] = Query(None, ge=0, le=50, description="Minimum number of bathrooms"),
    property_type: Optional[PropertyType] = Query(None, description="Property type"),
    operation_status: Optional[OperationStatus] = Query(None, description="Sale or rent"),
    listing_status: Optional[ListingStatus] = Query(ListingStatus.ACTIVE, description="Listing status"),
    feature_ids: List[str] = Query([], description="Required feature ids"),

    # Pagination
    page: int = Query(1, ge=1, description="Page number (starts from 1)"),
    page_size: int = Query(20, ge=1, le=100, description="Number of properties per page"),

    # Sorting
    sort_by: str = Query("created_at", description="Sort field (created_at, price, area)"),
    sort_order: str = Query("desc", description="Sort order (asc/desc)"),

    current_user: Optional[User] = Depends(get_optional_current_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyListResponse:
    """
    Get paginated list of properties, each with its resolved cover image URL.
    Non-active statuses only list the caller's own properties unless the caller is an admin.
    """
    search_params = PropertySearchParams(
        query=query,
        city=city,
        state=state,
        country=country,
        min_price=min_price,
        max_price=max_price,
        min_rooms=min_rooms,
        min_bathrooms=min_bathrooms,
        property_type=property_type,
        operation_status=operation_status,
        listing_status=listing_status,
        feature_ids=feature_ids,
        page=page,
        page_size=page_size,
        sort_by=sort_by,
        sort_order=sort_order
    )

    properties, total_count = await property_service.search_properties(search_params, current_user)
    return await _list_response(property_service, properties, total_count, page, page_size)


@router.get(
    "/map",
    response_model=PropertyMapResponse,
    status_code=status.HTTP_200_OK,
    summary="Properties in a map area",
    description="Markers for active geocoded properties inside a bounding box",
    responses=error_responses(422)
)
async def get_map_markers(
    north: Decimal = Query(..., ge=-90, le=90),
    south: Decimal = Query(..., ge=-90, le=90),
    east: Decimal = Query(..., ge=-180, le=180),
    west: Decimal = Query(..., ge=-180, le=180),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyMapResponse:
    bounds = MapBounds(north=north, south=south, east=east, west=west)
    markers = await property_service.get_map_markers(bounds)
    return PropertyMapResponse(markers=markers, count=len(markers))


@router.get(
    "/seller",
    response_model=PropertyListResponse,
    status_code=status.HTTP_200_OK,
    summary="Current seller's properties",
    description="Listings owned by the authenticated seller in every status",
    responses=error_responses(401, 403)
)
async def get_seller_properties(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_seller_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyListResponse:
    properties, total_count = await property_service.get_seller_properties(current_user, page, page_size)
    return await _list_response(property_service, properties, total_count, page, page_size)


@router.get(
    "/features",
    response_model=List[FeatureResponse],
    status_code=status.HTTP_200_OK,
    summary="Feature catalog",
    description="All features that can be assigned to a property"
)
async def list_features(
    property_service: PropertyService = Depends(get_property_service)
) -> List[FeatureResponse]:
    return await property_service.get_features()


@router.get(
    "/{property_id}",
    response_model=PropertyResponse,
    status_code=status.HTTP_200_OK,
    summary="Get property details",
    description="Get detailed information about a specific property",
    responses=error_responses(400, 404)
)
async def get_property(
    property_id: str = Path(..., description="Property ID"),
    current_user: Optional[User] = Depends(get_optional_current_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    """
    Get a property with its gallery, features and seller contact.

    Raises:
        InvalidIdentifierError: If the id is not a UUID
        PropertyNotFoundError: If property doesn't exist or is not visible to the caller
    """
    property_obj = await property_service.get_property(property_id, current_user)
    return await property_service.to_response(property_obj)


@router.put(
    "/{property_id}",
    response_model=PropertyResponse,
    status_code=status.HTTP_200_OK,
    summary="Update property",
    description="Update property details. Only property owner or admin can update.",
    responses=error_responses(400, 401, 403, 404, 422)
)
async def update_property(
    property_data: PropertyUpdate,
    property_id: str = Path(..., description="Property ID"),
    current_user: User = Depends(get_current_active_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    """
    Update property details; only supplied fields change.

    Raises:
        PropertyNotFoundError: If property doesn't exist
        PropertyOwnershipError: If user doesn't own the property
        ValidationError: If update data is invalid
    """
    updated_property = await property_service.update_property(property_id, property_data, current_user)
    return await property_service.to_response(updated_property)


@router.delete(
    "/{property_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete property",
    description="Delete property listing with its images. Only property owner or admin can delete.",
    responses=error_responses(400, 401, 403, 404)
)
async def delete_property(
    property_id: str = Path(..., description="Property ID"),
    current_user: User = Depends(get_current_active_user),
    property_service: PropertyService = Depends(get_property_service)
) -> Response:
    """
    Raises:
        PropertyNotFoundError: If property doesn't exist
        PropertyOwnershipError: If user doesn't own the property
    """
    await property_service.delete_property(property_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
