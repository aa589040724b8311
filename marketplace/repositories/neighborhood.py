"""
Repository for neighborhood reference data.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from marketplace.repositories.base import BaseRepository
from marketplace.models.neighborhood import Neighborhood
from typing import List, Optional


class NeighborhoodRepository(BaseRepository[Neighborhood]):
    """Read access to neighborhoods."""

    def __init__(self, db: AsyncSession):
        super().__init__(Neighborhood, db)

    async def search(self, city: Optional[str] = None, name: Optional[str] = None) -> List[Neighborhood]:
        """
        List neighborhoods ordered by city then name.

        Args:
            city: Case-insensitive partial city match
            name: Case-insensitive partial name match
        """
        query = select(Neighborhood)
        if city:
            query = query.where(Neighborhood.city.ilike(f"%{city}%"))
        if name:
            query = query.where(Neighborhood.name.ilike(f"%{name}%"))

        query = query.order_by(Neighborhood.city, Neighborhood.name)
        result = await self.db.execute(query)
        return list(result.scalars().all())
