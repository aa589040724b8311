"""
Neighborhood reference data endpoints.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Path, Query

from marketplace.services.neighborhood import NeighborhoodService
from marketplace.services.error_handler import error_responses
from marketplace.schemas.neighborhood import NeighborhoodResponse, NeighborhoodListResponse
from marketplace.utils.dependencies import get_neighborhood_service

router = APIRouter(prefix="/neighborhoods", tags=["Neighborhoods"])


@router.get(
    "",
    response_model=NeighborhoodListResponse,
    summary="List neighborhoods",
    description="Neighborhoods ordered by city and name, optionally filtered"
)
async def list_neighborhoods(
    city: Optional[str] = Query(None, description="City filter"),
    name: Optional[str] = Query(None, description="Name filter"),
    neighborhood_service: NeighborhoodService = Depends(get_neighborhood_service)
) -> NeighborhoodListResponse:
    neighborhoods = await neighborhood_service.list_neighborhoods(city=city, name=name)
    return NeighborhoodListResponse(
        neighborhoods=[NeighborhoodResponse.model_validate(n) for n in neighborhoods],
        count=len(neighborhoods)
    )


@router.get(
    "/{neighborhood_id}",
    response_model=NeighborhoodResponse,
    summary="Get neighborhood details",
    responses=error_responses(400, 404)
)
async def get_neighborhood(
    neighborhood_id: str = Path(..., description="Neighborhood ID"),
    neighborhood_service: NeighborhoodService = Depends(get_neighborhood_service)
) -> NeighborhoodResponse:
    neighborhood = await neighborhood_service.get_neighborhood(neighborhood_id)
    return NeighborhoodResponse.model_validate(neighborhood)
