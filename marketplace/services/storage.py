"""
Stored image reference handling.
Resolves references to public URLs and writes/removes objects on the configured backend.
"""

from typing import Any, Dict, Iterable, List, Optional
import asyncio
import logging
import re

from marketplace.config import Settings, get_settings
from marketplace.storage.blob import BLOB_SCHEME, BlobStorageClient, blob_pathname, to_blob_reference
from marketplace.storage.local import LocalFileStorage
from marketplace.utils.exceptions import StorageError, StorageNotConfiguredError

logger = logging.getLogger(__name__)

ABSOLUTE_URL_RE = re.compile(r"^https?://", re.IGNORECASE)


def _first_present(data: Dict[str, Any], fields: Iterable[str]) -> Optional[str]:
    for field in fields:
        value = data.get(field)
        if value:
            return value
    return None


class StorageResolver:
    """
    Turns stored image references into displayable URLs.

    Supported references:
        - absolute ``http(s)://`` URLs, returned unchanged
        - ``blob://<pathname>`` keys, looked up in object storage
        - root-relative paths, prefixed with the public base URL when configured

    ``resolve`` never raises; unresolvable references give None.
    """

    def __init__(self, settings: Optional[Settings] = None, blob_client: Optional[BlobStorageClient] = None):
        self.settings = settings or get_settings()
        self.blob_client = blob_client or BlobStorageClient(self.settings)

    async def resolve(self, reference: Optional[str]) -> Optional[str]:
        """
        Resolve a stored reference to a URL.

        Args:
            reference: Stored image reference

        Returns:
            Public URL or None when the reference cannot be resolved
        """
        if not reference:
            return None

        if ABSOLUTE_URL_RE.match(reference):
            return reference

        pathname = blob_pathname(reference)
        if reference.startswith(BLOB_SCHEME):
            if not pathname or not self.blob_client.is_configured:
                return None
            return await self._resolve_blob(pathname)

        if reference.startswith("/"):
            base_url = self.settings.public_base_url
            if base_url:
                return f"{base_url.rstrip('/')}{reference}"
            return reference

        return reference

    async def resolve_or_keep(self, reference: Optional[str]) -> Optional[str]:
        """Resolve a reference, keeping the stored value when resolution fails."""
        try:
            resolved = await self.resolve(reference)
        except Exception as e:
            logger.warning(f"Failed to resolve image reference {reference}: {e}")
            resolved = None
        return resolved or reference

    async def resolve_many(self, references: List[Optional[str]]) -> List[Optional[str]]:
        """Resolve several references concurrently, keeping stored values on failure."""
        return list(await asyncio.gather(*(self.resolve_or_keep(ref) for ref in references)))

    async def _resolve_blob(self, pathname: str) -> Optional[str]:
        try:
            data = await self.blob_client.head(pathname)
            url = _first_present(data, ("url", "downloadUrl", "pathname"))
            if url:
                return url
        except Exception as e:
            logger.debug(f"Blob head lookup failed for {pathname}: {e}")

        try:
            data = await self.blob_client.fetch_metadata(pathname)
            return _first_present(data, ("url", "publicUrl", "cdnUrl", "downloadUrl"))
        except Exception as e:
            logger.warning(f"Could not resolve blob {pathname}: {e}")
            return None


class ImageStorage:
    """Writes and removes image objects on the configured storage backend."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        blob_client: Optional[BlobStorageClient] = None,
        local_storage: Optional[LocalFileStorage] = None
    ):
        self.settings = settings or get_settings()
        self.blob_client = blob_client or BlobStorageClient(self.settings)
        self.local = local_storage or LocalFileStorage(self.settings)

    @property
    def backend(self) -> str:
        return self.settings.storage_backend

    def ensure_available(self) -> None:
        """
        Raises:
            StorageNotConfiguredError: If the blob backend is selected without a token
        """
        if self.backend == "blob" and not self.blob_client.is_configured:
            raise StorageNotConfiguredError("Image storage is not configured: BLOB_READ_WRITE_TOKEN is missing")

    async def save(self, key: str, content: bytes, content_type: str) -> str:
        """
        Store an object and return the reference to persist.

        Raises:
            StorageError: If the object cannot be written
        """
        if self.backend == "blob":
            result = await self.blob_client.put(key, content, content_type)
            return to_blob_reference(result.get("pathname") or key)

        await self.local.save(key, content)
        return self.local.reference_for(key)

    async def remove(self, reference: str) -> bool:
        """
        Delete the object behind a stored reference.

        Returns:
            True if an object was removed, False if the reference is not managed here

        Raises:
            StorageError: If the backend refuses the deletion
        """
        pathname = blob_pathname(reference)
        if pathname:
            try:
                await self.blob_client.delete([pathname])
            except StorageError:
                logger.debug(f"Blob API delete failed for {pathname}, trying REST endpoint")
                await self.blob_client.delete_by_pathname(pathname)
            return True

        if ABSOLUTE_URL_RE.match(reference):
            if self.blob_client.is_configured and ".blob.vercel-storage.com" in reference:
                await self.blob_client.delete([reference])
                return True
            return False

        key = self.local.key_from_reference(reference)
        if key:
            return self.local.delete(key)

        return False

    async def exists(self, reference: str) -> Optional[bool]:
        """
        Check whether the object behind a reference exists.

        Returns:
            True/False, or None when the reference cannot be checked
        """
        pathname = blob_pathname(reference)
        if pathname:
            if not self.blob_client.is_configured:
                return None
            return await self.blob_client.exists(pathname)

        key = self.local.key_from_reference(reference)
        if key:
            return self.local.exists(key)

        return None


async def resolve_image_url(reference: Optional[str], settings: Optional[Settings] = None) -> Optional[str]:
    """Resolve one stored reference with a resolver built from settings."""
    return await StorageResolver(settings).resolve(reference)
