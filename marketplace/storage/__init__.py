"""
Storage backends for property images.
"""

from marketplace.storage.blob import BlobStorageClient, to_blob_reference, blob_pathname, BLOB_SCHEME
from marketplace.storage.local import LocalFileStorage
from marketplace.storage.keys import build_image_key, file_extension

__all__ = [
    "BlobStorageClient",
    "LocalFileStorage",
    "to_blob_reference",
    "blob_pathname",
    "build_image_key",
    "file_extension",
    "BLOB_SCHEME",
]
