"""
Object storage client for the Vercel Blob REST API.
Uploads, looks up and deletes objects addressed by pathname.
"""

from typing import Any, Dict, List, Optional
from urllib.parse import quote
import logging

import httpx

from marketplace.config import Settings, get_settings
from marketplace.utils.exceptions import StorageError, StorageNotConfiguredError

logger = logging.getLogger(__name__)

BLOB_SCHEME = "blob://"


def to_blob_reference(pathname: str) -> str:
    """Build the stored ``blob://`` reference for an object pathname."""
    return f"{BLOB_SCHEME}{pathname.lstrip('/')}"


def blob_pathname(reference: str) -> Optional[str]:
    """Extract the pathname from a ``blob://`` reference, or None for other references."""
    if not reference or not reference.startswith(BLOB_SCHEME):
        return None
    return reference[len(BLOB_SCHEME):] or None


class BlobStorageClient:
    """
    Thin async client for the blob store.

    Every call opens a short-lived ``httpx.AsyncClient`` unless one is
    supplied, which tests use to plug in a mock transport.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.settings = settings or get_settings()
        self._client = client

    @property
    def token(self) -> Optional[str]:
        return self.settings.blob_read_write_token

    @property
    def is_configured(self) -> bool:
        return bool(self.token)

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        if not self.token:
            raise StorageNotConfiguredError("BLOB_READ_WRITE_TOKEN is not set")

        headers = {
            "authorization": f"Bearer {self.token}",
            "x-api-version": self.settings.blob_api_version,
        }
        if extra:
            headers.update(extra)
        return headers

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        if self._client is not None:
            return await self._client.request(method, url, **kwargs)

        async with httpx.AsyncClient(timeout=self.settings.blob_timeout_seconds) as client:
            return await client.request(method, url, **kwargs)

    async def put(self, pathname: str, content: bytes, content_type: str) -> Dict[str, Any]:
        """
        Upload an object under a fixed pathname.

        Args:
            pathname: Object pathname inside the store
            content: Raw bytes to upload
            content_type: MIME type stored with the object

        Returns:
            Store response with ``url``, ``downloadUrl`` and ``pathname``

        Raises:
            StorageNotConfiguredError: If no token is configured
            StorageError: If the upload fails
        """
        headers = self._headers({
            "x-content-type": content_type,
            "x-add-random-suffix": "0",
        })
        url = f"{self.settings.blob_api_url.rstrip('/')}/{quote(pathname.lstrip('/'))}"

        try:
            response = await self._request("PUT", url, content=content, headers=headers)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Blob upload failed for {pathname}: {e}")
            raise StorageError(f"Failed to upload {pathname}", reference=pathname) from e

        data = response.json()
        logger.debug(f"Uploaded blob {data.get('pathname', pathname)}")
        return data

    async def head(self, target: str) -> Dict[str, Any]:
        """
        Look up object metadata by pathname or URL.

        Raises:
            StorageNotConfiguredError: If no token is configured
            StorageError: If the object cannot be found
        """
        headers = self._headers()
        url = f"{self.settings.blob_api_url.rstrip('/')}/"

        try:
            response = await self._request("GET", url, params={"url": target}, headers=headers)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise StorageError(f"Blob lookup failed for {target}", reference=target) from e

        return response.json()

    async def fetch_metadata(self, pathname: str) -> Dict[str, Any]:
        """
        Look up object metadata through the REST management API.
        Used as a fallback when ``head`` fails.
        """
        headers = self._headers()
        url = f"{self.settings.blob_base_url.rstrip('/')}/v1/blob/{quote(pathname, safe='')}"

        try:
            response = await self._request("GET", url, headers=headers)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise StorageError(f"Blob metadata lookup failed for {pathname}", reference=pathname) from e

        return response.json()

    async def delete(self, targets: List[str]) -> None:
        """
        Delete objects by URL or pathname.

        Raises:
            StorageNotConfiguredError: If no token is configured
            StorageError: If the store rejects the request
        """
        if not targets:
            return

        headers = self._headers({"content-type": "application/json"})
        url = f"{self.settings.blob_api_url.rstrip('/')}/delete"

        try:
            response = await self._request("POST", url, json={"urls": targets}, headers=headers)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise StorageError(f"Blob delete failed for {', '.join(targets)}", reference=targets[0]) from e

        logger.debug(f"Deleted {len(targets)} blob(s)")

    async def delete_by_pathname(self, pathname: str) -> None:
        """Delete one object through the REST management API."""
        headers = self._headers()
        url = f"{self.settings.blob_base_url.rstrip('/')}/v1/blob/{quote(pathname, safe='')}"

        try:
            response = await self._request("DELETE", url, headers=headers)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise StorageError(f"Blob delete failed for {pathname}", reference=pathname) from e

    async def exists(self, pathname: str) -> bool:
        """Check whether an object exists."""
        try:
            await self.head(pathname)
            return True
        except StorageError as e:
            cause = e.__cause__
            if isinstance(cause, httpx.HTTPStatusError) and cause.response.status_code == 404:
                return False
            raise
