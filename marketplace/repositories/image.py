"""
Repository for PropertyImage model operations.
Handles ordering, cover assignment and row locking for property images.

Unlike the generic CRUD methods these operations never commit: the image
service groups several of them into one transaction.
"""

import uuid
from typing import Any, Collection, Dict, List, Optional, Sequence
from sqlalchemy import select, update, delete, func, and_, case
from sqlalchemy.engine import Row
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.models.image import PropertyImage
from marketplace.models.property import Property
from marketplace.repositories.base import BaseRepository


class ImageRepository(BaseRepository[PropertyImage]):
    """Repository for PropertyImage database operations."""

    def __init__(self, db: AsyncSession):
        super().__init__(PropertyImage, db)

    async def lock_property(self, property_id: uuid.UUID) -> Optional[Row]:
        """
        Lock a property row for the rest of the transaction.

        Args:
            property_id: ID of the property

        Returns:
            Row with ``id`` and ``seller_id`` or None if the property does not exist
        """
        query = (
            select(Property.id, Property.seller_id)
            .where(Property.id == property_id)
            .with_for_update()
        )
        result = await self.db.execute(query)
        return result.one_or_none()

    async def get_for_update(self, image_id: int) -> Optional[PropertyImage]:
        """Get an image and lock its row."""
        query = (
            select(PropertyImage)
            .where(PropertyImage.id == image_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_by_property_id(self, property_id: uuid.UUID) -> List[PropertyImage]:
        """
        Get all images for a specific property.

        Args:
            property_id: ID of the property

        Returns:
            List of property images, cover first then by display order
        """
        query = (
            select(PropertyImage)
            .where(PropertyImage.property_id == property_id)
            .order_by(
                PropertyImage.is_cover.desc(),
                PropertyImage.display_order.asc(),
                PropertyImage.created_at.asc(),
                PropertyImage.id.asc()
            )
            .execution_options(populate_existing=True)
        )

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_by_ids(self, image_ids: Sequence[int]) -> List[PropertyImage]:
        """Get images by id in gallery order."""
        if not image_ids:
            return []

        query = (
            select(PropertyImage)
            .where(PropertyImage.id.in_(list(image_ids)))
            .order_by(PropertyImage.display_order.asc(), PropertyImage.id.asc())
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def next_display_order(self, property_id: uuid.UUID) -> int:
        """Display order following the current maximum for a property (1 when it has none)."""
        query = select(func.coalesce(func.max(PropertyImage.display_order), 0)).where(
            PropertyImage.property_id == property_id
        )
        result = await self.db.execute(query)
        return (result.scalar() or 0) + 1

    async def has_cover(self, property_id: uuid.UUID) -> bool:
        """Check whether a property already has a cover image."""
        query = select(func.count(PropertyImage.id)).where(
            and_(
                PropertyImage.property_id == property_id,
                PropertyImage.is_cover == True  # noqa: E712
            )
        )
        result = await self.db.execute(query)
        return (result.scalar() or 0) > 0

    async def add(self, fields: Dict[str, Any]) -> PropertyImage:
        """Insert an image row and flush it so the generated id is available."""
        image = PropertyImage(**fields)
        self.db.add(image)
        await self.db.flush()
        return image

    async def clear_covers(self, property_id: uuid.UUID, keep_image_id: Optional[int] = None) -> int:
        """
        Remove the cover flag from the images of a property.

        Args:
            property_id: ID of the property
            keep_image_id: Image left untouched

        Returns:
            Number of images that lost the cover flag
        """
        conditions = [
            PropertyImage.property_id == property_id,
            PropertyImage.is_cover == True  # noqa: E712
        ]
        if keep_image_id is not None:
            conditions.append(PropertyImage.id != keep_image_id)

        stmt = update(PropertyImage).where(and_(*conditions)).values(is_cover=False)
        result = await self.db.execute(stmt)
        return result.rowcount or 0

    async def update_fields(self, image_id: int, values: Dict[str, Any]) -> bool:
        """Update cover flag and/or display order of one image."""
        if not values:
            return False

        stmt = update(PropertyImage).where(PropertyImage.id == image_id).values(**values)
        result = await self.db.execute(stmt)
        return (result.rowcount or 0) > 0

    async def set_cover(self, property_id: uuid.UUID, image_id: int) -> bool:
        """
        Make one image the cover of its property.
        Other covers are cleared first so the single-cover index never sees two.
        """
        await self.clear_covers(property_id, keep_image_id=image_id)
        return await self.update_fields(image_id, {"is_cover": True})

    async def promote_next_cover(
        self,
        property_id: uuid.UUID,
        exclude_ids: Optional[Collection[int]] = None
    ) -> Optional[PropertyImage]:
        """
        Promote the image with the lowest display order (oldest on ties) to cover.

        Args:
            property_id: Property whose cover is missing
            exclude_ids: Images to pick only when no other image is left

        Returns:
            The promoted image or None if the property has no images left
        """
        ordering = []
        if exclude_ids:
            ordering.append(case((PropertyImage.id.in_(list(exclude_ids)), 1), else_=0))

        query = (
            select(PropertyImage)
            .where(PropertyImage.property_id == property_id)
            .order_by(
                *ordering,
                PropertyImage.display_order.asc(),
                PropertyImage.created_at.asc(),
                PropertyImage.id.asc()
            )
            .limit(1)
        )
        result = await self.db.execute(query)
        candidate = result.scalar_one_or_none()
        if candidate is None:
            return None

        await self.update_fields(candidate.id, {"is_cover": True})
        return candidate

    async def remove(self, image_id: int) -> bool:
        """Delete one image row."""
        stmt = delete(PropertyImage).where(PropertyImage.id == image_id)
        result = await self.db.execute(stmt)
        return (result.rowcount or 0) > 0

    async def get_all_references(self) -> List[Row]:
        """Get ``(id, property_id, image_url)`` for every stored image."""
        query = select(
            PropertyImage.id,
            PropertyImage.property_id,
            PropertyImage.image_url
        ).order_by(PropertyImage.id.asc())
        result = await self.db.execute(query)
        return list(result.all())

    async def remove_many(self, image_ids: Sequence[int]) -> int:
        """Delete several image rows."""
        if not image_ids:
            return 0

        stmt = delete(PropertyImage).where(PropertyImage.id.in_(list(image_ids)))
        result = await self.db.execute(stmt)
        return result.rowcount or 0
