"""
Validation helpers for request identifiers and uploaded files.
"""

import re
import uuid
from typing import Any, Optional

from marketplace.utils.exceptions import InvalidIdentifierError


class ValidationUtils:
    """
    Utility class for common validation operations.
    Raise InvalidIdentifierError (400) so malformed ids never reach the database.
    """

    UUID_PATTERN = re.compile(r'^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$', re.IGNORECASE)
    INTEGER_PATTERN = re.compile(r'^\d+$')

    @staticmethod
    def parse_uuid(value: Any, field_name: str = "id") -> uuid.UUID:
        """
        Parse a UUID identifier.

        Args:
            value: Raw identifier
            field_name: Name of the field for error messages

        Returns:
            Parsed UUID

        Raises:
            InvalidIdentifierError: If the value is missing or not a UUID
        """
        if isinstance(value, uuid.UUID):
            return value

        text = str(value).strip() if value is not None else ""
        if not ValidationUtils.UUID_PATTERN.match(text):
            raise InvalidIdentifierError(field_name, text)

        return uuid.UUID(text)

    @staticmethod
    def parse_int_id(value: Any, field_name: str = "id") -> int:
        """
        Parse a positive integer identifier.

        Raises:
            InvalidIdentifierError: If the value is missing or not a positive integer
        """
        if isinstance(value, bool):
            raise InvalidIdentifierError(field_name, value)
        if isinstance(value, int):
            if value <= 0:
                raise InvalidIdentifierError(field_name, value)
            return value

        text = str(value).strip() if value is not None else ""
        if not ValidationUtils.INTEGER_PATTERN.match(text) or int(text) <= 0:
            raise InvalidIdentifierError(field_name, text)

        return int(text)

    @staticmethod
    def file_rejection_reason(content_type: Optional[str], size: int, max_size: int) -> Optional[str]:
        """
        Check an uploaded file against the image upload rules.

        Returns:
            Reason the file is rejected, or None if it is acceptable
        """
        if not content_type or not content_type.lower().startswith("image/"):
            return f"File type '{content_type or 'unknown'}' is not an image"

        if size <= 0:
            return "File is empty"

        if size > max_size:
            max_mb = max_size / (1024 * 1024)
            actual_mb = size / (1024 * 1024)
            return f"File size ({actual_mb:.1f}MB) exceeds maximum allowed size ({max_mb:.1f}MB)"

        return None
