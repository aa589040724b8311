"""
Primary-key access shared by the repositories.
"""

import logging
from typing import Any, Dict, Generic, Optional, Type, TypeVar

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.database import Base

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Insert, fetch and delete one row of ``model`` by primary key.

    ``create`` and ``delete`` commit on their own and are meant for single-row
    writes. Gallery changes that must be atomic go through ``ImageRepository``,
    whose methods leave the transaction to the service.
    """

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        self.model = model
        self.db = db

    @property
    def _name(self) -> str:
        return self.model.__name__

    async def create(self, obj_in: Dict[str, Any]) -> ModelType:
        """
        Insert a row and return it with server defaults loaded.

        Raises:
            SQLAlchemyError: If the insert fails; the session is rolled back first
        """
        instance = self.model(**obj_in)
        self.db.add(instance)
        try:
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Insert into {self._name} failed: {e}")
            raise
        await self.db.refresh(instance)
        logger.debug(f"Inserted {self._name} {instance.id}")
        return instance

    async def get_by_id(self, id: Any, refresh: bool = False) -> Optional[ModelType]:
        """
        Args:
            id: Primary key value
            refresh: Overwrite the attributes of an instance already held by the session
        """
        query = select(self.model).where(self.model.id == id)
        if refresh:
            query = query.execution_options(populate_existing=True)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def delete(self, id: Any) -> bool:
        """
        Delete a row by primary key. Dependent rows are removed by the
        database's ``ON DELETE CASCADE`` foreign keys.

        Returns:
            False when no row had that key
        """
        try:
            result = await self.db.execute(delete(self.model).where(self.model.id == id))
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Delete of {self._name} {id} failed: {e}")
            raise
        logger.debug(f"Delete of {self._name} {id} matched {result.rowcount} row(s)")
        return result.rowcount > 0
