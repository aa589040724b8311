"""
Image service for property image uploads, gallery ordering and cover selection.
Every operation that changes images locks the owning property row first.
"""

import io
import logging
import uuid
from typing import List, Optional, Tuple

from fastapi import UploadFile
from PIL import Image, UnidentifiedImageError
from sqlalchemy.engine import Row
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.config import Settings, get_settings
from marketplace.models.image import PropertyImage
from marketplace.models.user import User
from marketplace.repositories.image import ImageRepository
from marketplace.schemas.image import (
    ImageBatchUpdateRequest,
    ImageBatchUpdateResponse,
    ImageDeleteResponse,
    ImageUploadResponse,
    PropertyImageListResponse,
    PropertyImageResponse,
    SetCoverResponse,
    SkippedFile,
)
from marketplace.services.storage import ImageStorage, StorageResolver
from marketplace.storage.keys import build_image_key, file_extension
from marketplace.utils.exceptions import (
    APIException,
    BadRequestError,
    CoverConflictError,
    ImageNotFoundError,
    InternalServerError,
    PropertyNotFoundError,
    PropertyOwnershipError,
    StorageError,
    ValidationError,
)
from marketplace.utils.validators import ValidationUtils

logger = logging.getLogger(__name__)


def is_foreign_key_violation(error: IntegrityError) -> bool:
    """Check whether an integrity error comes from a foreign key constraint."""
    message = str(error.orig).lower()
    return "foreign key" in message or "foreign_key" in message


def read_image_dimensions(content: bytes) -> Tuple[Optional[int], Optional[int]]:
    """Width and height of an image, or (None, None) when Pillow cannot decode it."""
    try:
        with Image.open(io.BytesIO(content)) as img:
            return img.width, img.height
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError):
        return None, None


class ImageService:
    """Service for managing property images and their stored objects."""

    def __init__(
        self,
        db: AsyncSession,
        settings: Optional[Settings] = None,
        storage: Optional[ImageStorage] = None,
        resolver: Optional[StorageResolver] = None
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.repository = ImageRepository(db)
        self.storage = storage or ImageStorage(self.settings)
        self.resolver = resolver or StorageResolver(self.settings, blob_client=self.storage.blob_client)

    async def upload_images(
        self,
        property_id: str,
        files: List[UploadFile],
        current_user: User,
        seller_id: Optional[str] = None
    ) -> ImageUploadResponse:
        """
        Store a batch of images for a property.

        Files that are not images or exceed the size limit are skipped and
        listed in the response. The first stored image becomes the cover when
        the property has none.

        Args:
            property_id: ID of the property
            files: Uploaded files in gallery order
            current_user: Uploading user (owner or admin)
            seller_id: Optional seller the caller claims to upload for

        Returns:
            Upload result with the stored images and skipped files

        Raises:
            InvalidIdentifierError: If the property id is not a UUID
            BadRequestError: If no files were sent
            ValidationError: If every file was rejected
            PropertyNotFoundError: If the property does not exist
            PropertyOwnershipError: If the caller does not own the property
            StorageNotConfiguredError: If the blob backend has no token
        """
        pid = ValidationUtils.parse_uuid(property_id, "property id")
        if not files:
            raise BadRequestError("No files provided")

        self.storage.ensure_available()

        accepted: List[Tuple[UploadFile, bytes]] = []
        skipped: List[SkippedFile] = []
        for upload in files:
            content = await upload.read()
            reason = ValidationUtils.file_rejection_reason(
                upload.content_type, len(content), self.settings.max_file_size
            )
            if reason:
                logger.warning(f"Skipping upload {upload.filename} for property {pid}: {reason}")
                skipped.append(SkippedFile(filename=upload.filename, reason=reason))
                continue
            accepted.append((upload, content))

        if not accepted:
            raise ValidationError(
                "No valid image files were provided",
                field_errors=[{"field": item.filename or "file", "message": item.reason} for item in skipped]
            )

        owner = await self._lock_owned_property(pid, current_user)
        if seller_id and seller_id != str(owner.seller_id):
            raise PropertyOwnershipError("seller_id does not match the property owner")

        stored_references: List[str] = []
        upload_path = ""
        try:
            next_order = await self.repository.next_display_order(pid)
            needs_cover = not await self.repository.has_cover(pid)
            created_ids: List[int] = []

            for upload, content in accepted:
                key = build_image_key(
                    self.settings.storage_root,
                    owner.seller_id,
                    pid,
                    file_extension(upload.filename, upload.content_type)
                )
                upload_path = key.rsplit("/", 1)[0]

                try:
                    reference = await self.storage.save(key, content, upload.content_type)
                except StorageError as e:
                    logger.warning(f"Skipping upload {upload.filename} for property {pid}: {e}")
                    skipped.append(SkippedFile(filename=upload.filename, reason="Failed to store file"))
                    continue
                stored_references.append(reference)

                width, height = read_image_dimensions(content)
                image = await self.repository.add({
                    "property_id": pid,
                    "image_url": reference,
                    "is_cover": needs_cover,
                    "display_order": next_order,
                    "file_size": len(content),
                    "mime_type": upload.content_type,
                    "original_filename": upload.filename,
                    "width": width,
                    "height": height,
                })
                created_ids.append(image.id)
                needs_cover = False
                next_order += 1

            if not created_ids:
                raise InternalServerError("Failed to store uploaded images")

            await self.db.commit()
        except APIException:
            await self.db.rollback()
            raise
        except IntegrityError as e:
            await self.db.rollback()
            await self._discard_objects(stored_references)
            if is_foreign_key_violation(e):
                raise PropertyNotFoundError(str(pid))
            logger.warning(f"Cover conflict while uploading images for property {pid}: {e}")
            raise CoverConflictError()
        except SQLAlchemyError as e:
            await self.db.rollback()
            await self._discard_objects(stored_references)
            logger.error(f"Failed to save image metadata for property {pid}: {e}", exc_info=True)
            raise InternalServerError("Failed to save image metadata")

        logger.info(f"Uploaded {len(created_ids)} image(s) for property {pid}, skipped {len(skipped)}")

        images = await self.repository.get_by_ids(created_ids)
        return ImageUploadResponse(
            message="Images uploaded successfully",
            images=await self.to_responses(images),
            count=len(images),
            uploadPath=upload_path,
            skipped=skipped,
        )

    async def list_images(self, property_id: str) -> PropertyImageListResponse:
        """
        Get the gallery of a property, cover first then by display order.
        Unknown properties give an empty gallery.

        Raises:
            InvalidIdentifierError: If the property id is not a UUID
        """
        pid = ValidationUtils.parse_uuid(property_id, "property id")
        images = await self.repository.get_by_property_id(pid)
        return PropertyImageListResponse(
            property_id=str(pid),
            images=await self.to_responses(images),
            count=len(images),
        )

    async def update_images(self, request: ImageBatchUpdateRequest, current_user: User) -> ImageBatchUpdateResponse:
        """
        Apply a batch of display order and cover changes in one transaction.

        Entries without an image id are ignored. Any missing image or
        permission failure rolls back the whole batch. A property the batch
        leaves without a cover gets its next image promoted.

        Raises:
            ImageNotFoundError: If an image does not exist
            PropertyOwnershipError: If the caller does not own an affected property
            CoverConflictError: If a concurrent request claimed the cover
        """
        touched = []
        uncovered = set()
        try:
            for entry in request.images:
                if entry.imageId is None:
                    continue

                image = await self._load_owned_image(entry.imageId, current_user)
                if image.property_id not in touched:
                    touched.append(image.property_id)

                values = {}
                if entry.display_order is not None:
                    values["display_order"] = entry.display_order
                if entry.is_cover is True:
                    await self.repository.clear_covers(image.property_id, keep_image_id=image.id)
                    values["is_cover"] = True
                elif entry.is_cover is False:
                    values["is_cover"] = False
                    uncovered.add(image.id)

                await self.repository.update_fields(image.id, values)

            # Every property with images keeps exactly one cover
            for property_id in touched:
                if await self.repository.has_cover(property_id):
                    continue
                promoted = await self.repository.promote_next_cover(property_id, exclude_ids=uncovered)
                if promoted is not None:
                    logger.info(f"Promoted image {promoted.id} to cover of property {property_id}")

            await self.db.commit()
        except APIException:
            await self.db.rollback()
            raise
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning(f"Cover conflict during batch image update: {e}")
            raise CoverConflictError()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Batch image update failed: {e}", exc_info=True)
            raise InternalServerError("Failed to update images")

        logger.info(f"Applied batch image update with {len(request.images)} entries")
        return ImageBatchUpdateResponse(
            message="Images updated successfully",
            updated_count=len(request.images),
        )

    async def delete_image(self, image_id, current_user: User) -> ImageDeleteResponse:
        """
        Delete one image, promoting a new cover when the cover was removed.

        The stored object is removed after the row; a storage failure is
        logged for the reconciliation job and does not fail the request.

        Raises:
            InvalidIdentifierError: If the image id is not an integer
            ImageNotFoundError: If the image does not exist
            PropertyOwnershipError: If the caller does not own the property
        """
        iid = ValidationUtils.parse_int_id(image_id, "imageId")

        try:
            image = await self._load_owned_image(iid, current_user)
            reference = image.image_url
            property_id = image.property_id
            was_cover = image.is_cover

            await self.repository.remove(iid)
            promoted = None
            if was_cover:
                promoted = await self.repository.promote_next_cover(property_id)

            await self.db.commit()
        except APIException:
            await self.db.rollback()
            raise
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning(f"Cover conflict while deleting image {iid}: {e}")
            raise CoverConflictError()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to delete image {iid}: {e}", exc_info=True)
            raise InternalServerError("Failed to delete image")

        if promoted is not None:
            logger.info(f"Promoted image {promoted.id} to cover of property {property_id}")

        await self.remove_stored_objects([reference])
        logger.info(f"Deleted image {iid} of property {property_id}")
        return ImageDeleteResponse(message="Image deleted successfully", deleted_id=iid)

    async def set_cover(self, image_id, property_id: str, current_user: User) -> SetCoverResponse:
        """
        Make an image the cover of its property.

        Raises:
            InvalidIdentifierError: If either id is malformed
            ImageNotFoundError: If the image does not belong to the property
            PropertyOwnershipError: If the caller does not own the property
        """
        iid = ValidationUtils.parse_int_id(image_id, "imageId")
        pid = ValidationUtils.parse_uuid(property_id, "propertyId")

        try:
            image = await self._load_owned_image(iid, current_user)
            if image.property_id != pid:
                raise ImageNotFoundError(iid)

            await self.repository.set_cover(pid, iid)
            await self.db.commit()
        except APIException:
            await self.db.rollback()
            raise
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning(f"Cover conflict while setting cover {iid}: {e}")
            raise CoverConflictError()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to set cover image {iid}: {e}", exc_info=True)
            raise InternalServerError("Failed to set cover image")

        logger.info(f"Image {iid} is now the cover of property {pid}")
        return SetCoverResponse(success=True, imageId=iid, propertyId=str(pid))

    async def remove_stored_objects(self, references: List[str]) -> int:
        """
        Best-effort removal of stored objects.
        Failures are logged with the reference so the reconciliation job can pick them up.

        Returns:
            Number of objects removed
        """
        removed = 0
        for reference in references:
            try:
                if await self.storage.remove(reference):
                    removed += 1
            except (StorageError, APIException) as e:
                logger.error(
                    f"Failed to delete stored image {reference}; left for reconciliation: {e}"
                )
        return removed

    async def to_responses(self, images: List[PropertyImage]) -> List[PropertyImageResponse]:
        """Build image responses with resolved URLs."""
        urls = await self.resolver.resolve_many([image.image_url for image in images])
        responses = []
        for image, url in zip(images, urls):
            data = image.to_dict()
            data["image_url"] = url
            responses.append(PropertyImageResponse(**data))
        return responses

    async def _lock_owned_property(self, property_id: uuid.UUID, current_user: User) -> Row:
        owner = await self.repository.lock_property(property_id)
        if owner is None:
            raise PropertyNotFoundError(str(property_id))

        if not current_user.can_manage_property(owner.seller_id):
            raise PropertyOwnershipError("You can only manage images of your own properties")

        return owner

    async def _load_owned_image(self, image_id: int, current_user: User) -> PropertyImage:
        """Load an image after locking its property and checking ownership."""
        image = await self.repository.get_by_id(image_id)
        if image is None:
            raise ImageNotFoundError(image_id)

        await self._lock_owned_property(image.property_id, current_user)

        locked = await self.repository.get_for_update(image_id)
        if locked is None:
            raise ImageNotFoundError(image_id)
        return locked

    async def _discard_objects(self, references: List[str]) -> None:
        if references:
            logger.info(f"Removing {len(references)} object(s) stored by a failed upload")
            await self.remove_stored_objects(references)
