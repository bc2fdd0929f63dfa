"""Shared utility functions for the Field Inspection application.

This module contains helpers used when building storage paths and when
checking image data fetched from blob storage.
"""

import io
import logging
import os
from datetime import datetime, timezone
from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

# Characters the document database rejects in keys
INVALID_KEY_CHARACTERS = frozenset('.#$[]')

# Timestamp segment of submission paths, e.g. 20240903-142507
PATH_TIMESTAMP_FORMAT = '%Y%m%d-%H%M%S'


class CorruptedImageError(Exception):
    """Raised when image data is corrupted and cannot be decoded."""
    pass


def now():
    """Return the current timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def sanitize_storage_key(key):
    """Strip characters that are not allowed in database keys."""
    if not key:
        return ""
    return ''.join(c for c in key if c not in INVALID_KEY_CHARACTERS)


def format_path_timestamp(moment):
    """Format a datetime as the second-resolution path segment."""
    return moment.strftime(PATH_TIMESTAMP_FORMAT)


def sanitize_icon_name(icon_name):
    """Reduce an icon name to a single safe path component.

    Raises:
        ValueError: If nothing usable is left after sanitizing
    """
    name = os.path.basename((icon_name or '').replace('\\', '/')).strip()
    if name in ('', '.', '..'):
        raise ValueError(f"Invalid icon name: {icon_name!r}")
    return name


def verify_image_bytes(image_data):
    """Check that image bytes decode as an image.

    Args:
        image_data: Raw bytes downloaded from storage

    Returns:
        The image format reported by Pillow (e.g. 'PNG')

    Raises:
        CorruptedImageError: If the data is empty or cannot be decoded
    """
    if not image_data:
        raise CorruptedImageError("Empty image data")
    try:
        with Image.open(io.BytesIO(image_data)) as img:
            img.verify()
            return img.format
    except UnidentifiedImageError as e:
        logger.error(f"Corrupted or unsupported image format ({len(image_data)} bytes): {e}")
        raise CorruptedImageError(f"Corrupted or unsupported image format: {e}") from e
    except (OSError, ValueError, SyntaxError) as e:
        logger.error(f"Corrupted image data ({len(image_data)} bytes): {e}")
        raise CorruptedImageError(f"Corrupted image data: {e}") from e


def to_millis(moment):
    """Epoch milliseconds, the timestamp unit stored in timesheet records."""
    return int(moment.timestamp() * 1000)


def end_of_day(moment):
    """Last second of ``moment``'s calendar day."""
    return moment.replace(hour=23, minute=59, second=59, microsecond=0)
