"""
Read-only access to neighborhood reference data.
"""

from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from marketplace.models.neighborhood import Neighborhood
from marketplace.repositories.neighborhood import NeighborhoodRepository
from marketplace.utils.exceptions import NotFoundError
from marketplace.utils.validators import ValidationUtils


class NeighborhoodService:

    def __init__(self, db: AsyncSession):
        self.repository = NeighborhoodRepository(db)

    async def list_neighborhoods(self, city: Optional[str] = None, name: Optional[str] = None) -> List[Neighborhood]:
        return await self.repository.search(city=city, name=name)

    async def get_neighborhood(self, neighborhood_id: str) -> Neighborhood:
        """
        Raises:
            InvalidIdentifierError: If the id is not a UUID
            NotFoundError: If the neighborhood doesn't exist
        """
        nid = ValidationUtils.parse_uuid(neighborhood_id, "neighborhood id")
        neighborhood = await self.repository.get_by_id(nid)
        if not neighborhood:
            raise NotFoundError("Neighborhood", str(nid))
        return neighborhood
