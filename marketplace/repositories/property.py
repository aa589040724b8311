"""
Property repository for listings with search, map and feature operations.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, or_, func, desc, asc, delete
from marketplace.repositories.base import BaseRepository
from marketplace.models.property import Property, PropertyType, OperationStatus, ListingStatus
from marketplace.models.feature import PropertyFeature, PropertyFeatureAssignment
from typing import Optional, List, Dict, Any, Tuple
from decimal import Decimal
import uuid
import logging

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = ("created_at", "price", "area")


class PropertySearchFilters:
    """Data class for property search filters."""

    def __init__(
        self,
        query: Optional[str] = None,
        city: Optional[str] = None,
        state: Optional[str] = None,
        country: Optional[str] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
        min_rooms: Optional[int] = None,
        min_bathrooms: Optional[int] = None,
        property_type: Optional[PropertyType] = None,
        operation_status: Optional[OperationStatus] = None,
        listing_status: Optional[ListingStatus] = ListingStatus.ACTIVE,
        feature_ids: Optional[List[uuid.UUID]] = None,
        seller_id: Optional[uuid.UUID] = None
    ):
        self.query = query
        self.city = city
        self.state = state
        self.country = country
        self.min_price = min_price
        self.max_price = max_price
        self.min_rooms = min_rooms
        self.min_bathrooms = min_bathrooms
        self.property_type = property_type
        self.operation_status = operation_status
        self.listing_status = listing_status
        self.feature_ids = feature_ids or []
        self.seller_id = seller_id


class PropertyRepository(BaseRepository[Property]):
    """
    Repository for property listings.
    Images, seller and features load eagerly through the model relationships.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(Property, db)

    async def create_property(self, property_data: Dict[str, Any], feature_ids: Optional[List[uuid.UUID]] = None) -> Property:
        """
        Create a property together with its feature assignments.

        Args:
            property_data: Column values of the property
            feature_ids: Catalog features to assign

        Returns:
            Created property with relationships loaded
        """
        try:
            property_obj = Property(**property_data)
            self.db.add(property_obj)
            await self.db.flush()

            for feature_id in feature_ids or []:
                self.db.add(PropertyFeatureAssignment(property_id=property_obj.id, feature_id=feature_id))

            await self.db.commit()
            logger.info(f"Created property: {property_obj.title} (ID: {property_obj.id})")
            return await self.get_by_id(property_obj.id, refresh=True)
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to create property: {e}")
            raise

    async def update_property(
        self,
        property_id: uuid.UUID,
        update_data: Dict[str, Any],
        feature_ids: Optional[List[uuid.UUID]] = None
    ) -> Optional[Property]:
        """
        Update property columns and, when given, replace its features.

        Returns:
            Updated property or None if not found
        """
        try:
            property_obj = await self.get_by_id(property_id)
            if property_obj is None:
                return None

            for field, value in update_data.items():
                if hasattr(property_obj, field):
                    setattr(property_obj, field, value)

            if feature_ids is not None:
                await self.db.execute(
                    delete(PropertyFeatureAssignment).where(PropertyFeatureAssignment.property_id == property_id)
                )
                for feature_id in feature_ids:
                    self.db.add(PropertyFeatureAssignment(property_id=property_id, feature_id=feature_id))

            await self.db.commit()
            logger.info(f"Updated property {property_id}")
            return await self.get_by_id(property_id, refresh=True)
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to update property {property_id}: {e}")
            raise

    async def search_properties(
        self,
        filters: PropertySearchFilters,
        skip: int = 0,
        limit: int = 20,
        order_by: str = "created_at",
        order_direction: str = "desc"
    ) -> Tuple[List[Property], int]:
        """
        Search properties with filtering and pagination.

        Args:
            filters: PropertySearchFilters instance with search criteria
            skip: Number of records to skip for pagination
            limit: Maximum number of records to return
            order_by: One of created_at, price, area
            order_direction: 'asc' or 'desc'

        Returns:
            Tuple of (properties list, total count)
        """
        try:
            # Refresh galleries already loaded in this session
            query = select(Property).execution_options(populate_existing=True)
            count_query = select(func.count(Property.id))

            conditions = self._build_filter_conditions(filters)
            if conditions:
                query = query.where(and_(*conditions))
                count_query = count_query.where(and_(*conditions))

            count_result = await self.db.execute(count_query)
            total_count = count_result.scalar() or 0

            order_field = getattr(Property, order_by if order_by in SORTABLE_FIELDS else "created_at")
            direction = asc if order_direction.lower() == "asc" else desc
            query = query.order_by(direction(order_field), Property.id).offset(skip).limit(limit)

            result = await self.db.execute(query)
            properties = list(result.scalars().all())

            logger.debug(f"Property search returned {len(properties)} of {total_count} total results")
            return properties, total_count
        except Exception as e:
            logger.error(f"Failed to search properties: {e}")
            raise

    def _build_filter_conditions(self, filters: PropertySearchFilters) -> List:
        """
        Build SQLAlchemy filter conditions from search filters.

        Args:
            filters: PropertySearchFilters instance

        Returns:
            List of SQLAlchemy conditions
        """
        conditions = []

        if filters.listing_status is not None:
            conditions.append(Property.listing_status == filters.listing_status)

        if filters.seller_id:
            conditions.append(Property.seller_id == filters.seller_id)

        # Location filters (case-insensitive partial match)
        if filters.city:
            conditions.append(Property.city.ilike(f"%{filters.city}%"))
        if filters.state:
            conditions.append(Property.state.ilike(f"%{filters.state}%"))
        if filters.country:
            conditions.append(Property.country.ilike(f"%{filters.country}%"))

        if filters.min_price is not None:
            conditions.append(Property.price >= filters.min_price)
        if filters.max_price is not None:
            conditions.append(Property.price <= filters.max_price)

        if filters.min_rooms is not None:
            conditions.append(Property.rooms >= filters.min_rooms)
        if filters.min_bathrooms is not None:
            conditions.append(Property.bathrooms >= filters.min_bathrooms)

        if filters.property_type:
            conditions.append(Property.property_type == filters.property_type)
        if filters.operation_status:
            conditions.append(Property.operation_status == filters.operation_status)

        # Properties must carry every requested feature
        if filters.feature_ids:
            feature_ids = list(set(filters.feature_ids))
            matching = (
                select(PropertyFeatureAssignment.property_id)
                .where(PropertyFeatureAssignment.feature_id.in_(feature_ids))
                .group_by(PropertyFeatureAssignment.property_id)
                .having(func.count(func.distinct(PropertyFeatureAssignment.feature_id)) == len(feature_ids))
            )
            conditions.append(Property.id.in_(matching))

        # Text search in title, description and address
        if filters.query:
            search_term = f"%{filters.query}%"
            conditions.append(
                or_(
                    Property.title.ilike(search_term),
                    Property.description.ilike(search_term),
                    Property.address.ilike(search_term)
                )
            )

        return conditions

    async def get_in_bounds(
        self,
        north: Decimal,
        south: Decimal,
        east: Decimal,
        west: Decimal,
        limit: int = 500
    ) -> List[Property]:
        """
        Get active geocoded properties inside a bounding box.
        A box whose west edge is greater than its east edge crosses the antimeridian.
        """
        if west <= east:
            longitude_condition = Property.longitude.between(west, east)
        else:
            longitude_condition = or_(Property.longitude >= west, Property.longitude <= east)

        query = (
            select(Property)
            .where(
                and_(
                    Property.listing_status == ListingStatus.ACTIVE,
                    Property.latitude.isnot(None),
                    Property.longitude.isnot(None),
                    Property.latitude.between(south, north),
                    longitude_condition
                )
            )
            .order_by(desc(Property.created_at), Property.id)
            .limit(limit)
            .execution_options(populate_existing=True)
        )

        try:
            result = await self.db.execute(query)
            properties = list(result.scalars().all())
            logger.debug(f"Map search returned {len(properties)} properties")
            return properties
        except Exception as e:
            logger.error(f"Failed to search properties in bounds: {e}")
            raise

    async def get_features(self) -> List[PropertyFeature]:
        """Get the feature catalog ordered by category and name."""
        query = select(PropertyFeature).order_by(PropertyFeature.category, PropertyFeature.name)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_existing_feature_ids(self, feature_ids: List[uuid.UUID]) -> List[uuid.UUID]:
        """Return the subset of feature ids present in the catalog."""
        if not feature_ids:
            return []

        query = select(PropertyFeature.id).where(PropertyFeature.id.in_(feature_ids))
        result = await self.db.execute(query)
        return list(result.scalars().all())
