"""
Local filesystem storage for uploaded images.
Files are written below the upload directory and served from the uploads URL prefix.
"""

from pathlib import Path
from typing import Iterator, Optional, Union
import logging

import aiofiles

from marketplace.config import Settings, get_settings
from marketplace.utils.exceptions import StorageError

logger = logging.getLogger(__name__)


class LocalFileStorage:
    """Utility class for file storage operations on local disk."""

    def __init__(self, settings: Optional[Settings] = None, base_dir: Optional[Union[str, Path]] = None):
        self.settings = settings or get_settings()
        self.base_dir = Path(base_dir or self.settings.upload_dir)
        self.url_prefix = "/" + self.settings.upload_url_prefix.strip("/")

    def path_for(self, key: str) -> Path:
        """
        Absolute path of a storage key.

        Raises:
            StorageError: If the key escapes the upload directory
        """
        base = self.base_dir.resolve()
        path = (base / key.lstrip("/")).resolve()
        if base != path and base not in path.parents:
            raise StorageError(f"Storage key outside upload directory: {key}", reference=key)
        return path

    def reference_for(self, key: str) -> str:
        """Root-relative URL stored for a key, e.g. ``/uploads/<key>``."""
        return f"{self.url_prefix}/{key.lstrip('/')}"

    def key_from_reference(self, reference: str) -> Optional[str]:
        """Storage key of a stored ``/uploads/...`` reference, or None for other references."""
        prefix = self.url_prefix + "/"
        if not reference or not reference.startswith(prefix):
            return None
        return reference[len(prefix):] or None

    async def save(self, key: str, content: bytes) -> int:
        """
        Write content under a storage key.

        Args:
            key: Storage key relative to the upload directory
            content: Bytes to write

        Returns:
            Number of bytes written

        Raises:
            StorageError: If the file cannot be written
        """
        file_path = self.path_for(key)
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(file_path, "wb") as f:
                await f.write(content)
        except OSError as e:
            if file_path.exists():
                file_path.unlink(missing_ok=True)
            logger.error(f"Failed to write {file_path}: {e}")
            raise StorageError(f"Failed to save file: {e}", reference=key) from e

        logger.debug(f"Stored {len(content)} bytes at {file_path}")
        return len(content)

    def delete(self, key: str) -> bool:
        """
        Delete a stored file.

        Returns:
            True if the file was deleted, False if it did not exist

        Raises:
            StorageError: If the file exists but cannot be removed
        """
        file_path = self.path_for(key)
        if not file_path.exists():
            return False

        try:
            file_path.unlink()
        except OSError as e:
            raise StorageError(f"Failed to delete file: {e}", reference=key) from e

        self._prune_empty_parents(file_path.parent)
        return True

    def exists(self, key: str) -> bool:
        return self.path_for(key).is_file()

    def modified_at(self, key: str) -> Optional[float]:
        """Modification time of a stored file as a POSIX timestamp, or None if it is gone."""
        try:
            return self.path_for(key).stat().st_mtime
        except FileNotFoundError:
            return None

    def iter_keys(self, prefix: str = "") -> Iterator[str]:
        """Yield storage keys of all files below a prefix."""
        root = self.path_for(prefix) if prefix else self.base_dir.resolve()
        if not root.is_dir():
            return

        base = self.base_dir.resolve()
        for path in sorted(root.rglob("*")):
            if path.is_file():
                yield path.relative_to(base).as_posix()

    def _prune_empty_parents(self, directory: Path) -> None:
        """Remove empty directories up to the upload directory."""
        base = self.base_dir.resolve()
        while directory != base and base in directory.parents:
            try:
                directory.rmdir()
            except OSError:
                break
            directory = directory.parent
