"""Local file helpers for photo uploads."""

import logging
import mimetypes
import os
from dataclasses import dataclass
from typing import Optional, Tuple

from PIL import Image

from picasa_web_albums.models import UploadFileNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"

# Formats the photo service accepts for upload
UPLOAD_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".bmp"}


@dataclass
class UploadMetadata:
    """What is known about a file before it is uploaded."""
    filename: str
    size: int
    content_type: str
    width: int
    height: int


def is_uploadable(filename: str) -> bool:
    """Check if a file can be uploaded based on its extension.

    Args:
        filename: Name of the file to check

    Returns:
        True if the file has an accepted image extension, False otherwise
    """
    return os.path.splitext(filename)[1].lower() in UPLOAD_EXTENSIONS


def read_upload(file_path: str) -> bytes:
    """Read the bytes of a file to upload.

    Args:
        file_path: Path to the file

    Returns:
        File contents

    Raises:
        UploadFileNotFoundError: If the file cannot be read
    """
    try:
        with open(file_path, "rb") as upload:
            return upload.read()
    except OSError as e:
        logger.warning("Failed to read %s: %s", file_path, str(e))
        raise UploadFileNotFoundError("The specified file could not be found.", None, file_path) from e


def detect_image_type(file_path: str) -> str:
    """Return the MIME type of an image file.

    The file contents are inspected first; the extension is only used when
    the contents are not a recognised image.
    """
    try:
        with Image.open(file_path) as img:
            mime_type = Image.MIME.get(img.format)
            if mime_type:
                return mime_type
    except (IOError, OSError) as e:
        logger.debug("Could not identify %s as an image: %s", file_path, str(e))

    mime_type, _ = mimetypes.guess_type(file_path)
    return mime_type or DEFAULT_CONTENT_TYPE


def get_image_dimensions(file_path: str) -> Tuple[int, int]:
    """Get dimensions of an image file.

    Args:
        file_path: Path to image file

    Returns:
        Tuple containing width and height of image, (0, 0) if unreadable
    """
    try:
        with Image.open(file_path) as img:
            return img.size
    except (IOError, OSError) as e:
        logger.warning("Failed to get dimensions for %s: %s", file_path, str(e))
        return (0, 0)


def get_upload_metadata(file_path: str) -> Optional[UploadMetadata]:
    """Describe a file to upload, or None if it is not a regular file."""
    if not os.path.isfile(file_path):
        return None
    width, height = get_image_dimensions(file_path)
    return UploadMetadata(
        filename=os.path.basename(file_path),
        size=os.path.getsize(file_path),
        content_type=detect_image_type(file_path),
        width=width,
        height=height,
    )
