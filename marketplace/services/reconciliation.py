"""
Reconciliation between image rows and stored objects.
Finds rows whose object is gone and uploaded files no row references.
"""

from typing import Dict, List, Optional, Set
import logging
import time
import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.config import Settings, get_settings
from marketplace.repositories.image import ImageRepository
from marketplace.schemas.image import ReconciliationReport
from marketplace.services.storage import ImageStorage
from marketplace.utils.exceptions import InternalServerError, StorageError

logger = logging.getLogger(__name__)


class ReconciliationService:
    """
    Cleans up after storage deletions that failed during request handling.

    A dry run only reports. Applying removes rows with missing objects,
    promotes a new cover where the removed row was the cover, and deletes
    orphaned local files.
    """

    def __init__(
        self,
        db: AsyncSession,
        settings: Optional[Settings] = None,
        storage: Optional[ImageStorage] = None
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.repository = ImageRepository(db)
        self.storage = storage or ImageStorage(self.settings)

    async def run(self, dry_run: bool = True) -> ReconciliationReport:
        """
        Compare image rows with stored objects.

        Args:
            dry_run: Report only, without deleting anything

        Returns:
            Reconciliation report

        Raises:
            InternalServerError: If removing rows fails
        """
        rows = await self.repository.get_all_references()
        missing = await self._find_missing_objects(rows)
        orphaned = self._find_orphaned_files(row.image_url for row in rows)

        removed_rows = 0
        removed_files = 0
        if not dry_run:
            removed_rows = await self._remove_rows(missing)
            removed_files = self._remove_files(orphaned)

        logger.info(
            f"Reconciliation checked {len(rows)} image(s): {len(missing)} missing object(s), "
            f"{len(orphaned)} orphaned file(s), dry_run={dry_run}"
        )

        return ReconciliationReport(
            checked=len(rows),
            missing_objects=[
                {"image_id": row.id, "property_id": str(row.property_id), "image_url": row.image_url}
                for row in missing
            ],
            orphaned_files=orphaned,
            removed_rows=removed_rows,
            removed_files=removed_files,
            dry_run=dry_run,
        )

    async def _find_missing_objects(self, rows) -> List:
        missing = []
        for row in rows:
            try:
                exists = await self.storage.exists(row.image_url)
            except StorageError as e:
                logger.warning(f"Could not check stored object for image {row.id}: {e}")
                continue

            # None means the reference is not managed by this service
            if exists is False:
                missing.append(row)
        return missing

    def _find_orphaned_files(self, references) -> List[str]:
        referenced: Set[str] = set()
        for reference in references:
            key = self.storage.local.key_from_reference(reference)
            if key:
                referenced.add(key)

        # An upload writes its file before the row commits
        grace = self.settings.reconcile_grace_seconds
        cutoff = time.time() - grace
        orphaned = []
        for key in self.storage.local.iter_keys(self.settings.storage_root):
            if key in referenced:
                continue
            modified = self.storage.local.modified_at(key)
            if modified is None:
                continue
            if grace > 0 and modified > cutoff:
                logger.debug(f"Leaving recent unreferenced file {key} for a later run")
                continue
            orphaned.append(key)
        return orphaned

    async def _remove_rows(self, missing) -> int:
        if not missing:
            return 0

        by_property: Dict[uuid.UUID, List[int]] = {}
        for row in missing:
            by_property.setdefault(row.property_id, []).append(row.id)

        try:
            removed = 0
            for property_id, image_ids in by_property.items():
                await self.repository.lock_property(property_id)
                removed += await self.repository.remove_many(image_ids)
                if not await self.repository.has_cover(property_id):
                    promoted = await self.repository.promote_next_cover(property_id)
                    if promoted is not None:
                        logger.info(f"Promoted image {promoted.id} to cover of property {property_id}")
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to remove image rows with missing objects: {e}", exc_info=True)
            raise InternalServerError("Failed to remove image rows")

        return removed

    def _remove_files(self, keys: List[str]) -> int:
        removed = 0
        for key in keys:
            try:
                if self.storage.local.delete(key):
                    removed += 1
            except StorageError as e:
                logger.error(f"Failed to delete orphaned file {key}: {e}")
        return removed
