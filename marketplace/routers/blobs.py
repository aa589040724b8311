"""
Object storage endpoints: reference resolution and direct uploads.
"""

from typing import Optional
from fastapi import APIRouter, Body, Depends, File, Query, UploadFile, status
import logging

from marketplace.models.user import User
from marketplace.services.storage import StorageResolver
from marketplace.services.error_handler import error_responses
from marketplace.schemas.blob import BlobResolveRequest, BlobResolveResponse, BlobUploadResponse
from marketplace.storage.blob import BlobStorageClient
from marketplace.utils.dependencies import (
    get_blob_client,
    get_current_active_user,
    get_storage_resolver
)
from marketplace.utils.exceptions import (
    BadRequestError,
    InternalServerError,
    NotFoundError,
    StorageError
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/blobs", tags=["Storage"])


async def _resolve(key: Optional[str], resolver: StorageResolver) -> BlobResolveResponse:
    """
    Raises:
        BadRequestError: If no key was given
        NotFoundError: If the key cannot be resolved
    """
    if not key or not key.strip():
        raise BadRequestError("Missing key")

    url = await resolver.resolve(key.strip())
    if not url:
        raise NotFoundError("Blob", key)

    return BlobResolveResponse(url=url)


@router.get(
    "/resolve",
    response_model=BlobResolveResponse,
    summary="Resolve a stored reference",
    description="Turn a stored image reference into a displayable URL",
    responses=error_responses(400, 404)
)
async def resolve_blob(
    key: Optional[str] = Query(None, description="Stored reference"),
    resolver: StorageResolver = Depends(get_storage_resolver)
) -> BlobResolveResponse:
    return await _resolve(key, resolver)


@router.post(
    "/resolve",
    response_model=BlobResolveResponse,
    summary="Resolve a stored reference",
    description="Turn a stored image reference into a displayable URL",
    responses=error_responses(400, 404)
)
async def resolve_blob_post(
    request: Optional[BlobResolveRequest] = Body(None),
    resolver: StorageResolver = Depends(get_storage_resolver)
) -> BlobResolveResponse:
    return await _resolve(request.key if request else None, resolver)


@router.post(
    "/upload",
    response_model=BlobUploadResponse,
    status_code=status.HTTP_200_OK,
    summary="Upload a file to object storage",
    description="Store one file (field `file`) under its original name",
    responses=error_responses(400, 401, 500)
)
async def upload_blob(
    file: Optional[UploadFile] = File(None, description="File to upload"),
    current_user: User = Depends(get_current_active_user),
    blob_client: BlobStorageClient = Depends(get_blob_client)
) -> BlobUploadResponse:
    """
    Raises:
        BadRequestError: If no file was sent
        StorageNotConfiguredError: If no storage token is configured
        InternalServerError: If the store rejects the upload
    """
    if file is None:
        raise BadRequestError("No file provided")

    content = await file.read()
    pathname = file.filename or "image"
    content_type = file.content_type or "application/octet-stream"

    try:
        result = await blob_client.put(pathname, content, content_type)
    except StorageError as e:
        logger.error(f"Direct upload by {current_user.email} failed: {e}")
        raise InternalServerError("Upload failed")

    url = result.get("url") or result.get("downloadUrl")
    if not url:
        raise InternalServerError("Upload failed")

    logger.info(f"File uploaded to blob storage by {current_user.email}: {url}")
    return BlobUploadResponse(
        url=url,
        publicUrl=url,
        pathname=result.get("pathname") or pathname,
        contentType=file.content_type
    )
