"""Utility functions for the Picasa Web Albums client."""

from .auth import AuthManager, AuthMethod, AuthSession
from .file_utils import detect_image_type, get_upload_metadata, is_uploadable, read_upload

__all__ = [
    "AuthManager",
    "AuthMethod",
    "AuthSession",
    "detect_image_type",
    "get_upload_metadata",
    "is_uploadable",
    "read_upload",
]
