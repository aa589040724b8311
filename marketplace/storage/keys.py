"""
Storage key layout for property images.
"""

from datetime import datetime, timezone
from pathlib import PurePosixPath
from typing import Optional
import mimetypes
import uuid

DEFAULT_EXTENSION = ".jpg"


def file_extension(filename: Optional[str], content_type: Optional[str] = None) -> str:
    """
    Lowercase extension of an uploaded file.
    Falls back to the MIME type, then to ``.jpg``.
    """
    if filename:
        suffix = PurePosixPath(filename).suffix.lower()
        if suffix and len(suffix) <= 10:
            return suffix

    if content_type:
        guessed = mimetypes.guess_extension(content_type.split(";")[0].strip())
        if guessed:
            return ".jpg" if guessed == ".jpe" else guessed

    return DEFAULT_EXTENSION


def build_image_key(
    root: str,
    seller_id: uuid.UUID,
    property_id: uuid.UUID,
    extension: str,
    now: Optional[datetime] = None
) -> str:
    """
    Build the object pathname for a property image.

    Layout: ``{root}/users/{seller}/properties/{property}/{YYYY-MM-DD}/``
    followed by ``property_{property}_{epoch_ms}_{random}{ext}``.

    Args:
        root: Top-level storage prefix
        seller_id: Owner of the property
        property_id: Property the image belongs to
        extension: File extension including the dot
        now: Timestamp used for the date folder and filename

    Returns:
        Pathname relative to the storage root
    """
    now = now or datetime.now(timezone.utc)
    epoch_ms = int(now.timestamp() * 1000)
    suffix = uuid.uuid4().hex[:8]

    filename = f"property_{property_id}_{epoch_ms}_{suffix}{extension}"
    return "/".join([
        root.strip("/"),
        "users",
        str(seller_id),
        "properties",
        str(property_id),
        now.strftime("%Y-%m-%d"),
        filename,
    ])
