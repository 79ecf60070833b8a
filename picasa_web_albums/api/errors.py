"""Classification of failed responses into typed errors."""

import logging
import re
from typing import Optional, Pattern, Tuple, Type, Union

from picasa_web_albums.models import (
    ApiError,
    BadRequestError,
    ConflictError,
    InternalServerError,
    UnauthorizedError,
)

logger = logging.getLogger(__name__)

UNKNOWN_ERROR_MESSAGE = "An unknown error was encountered."

# Checked in order; the first match wins.
ERROR_TABLE: Tuple[Tuple[Pattern[str], Type[ApiError], str], ...] = (
    (re.compile(r"401 UNAUTHORIZED", re.IGNORECASE), UnauthorizedError,
     "Authorization no longer valid."),
    (re.compile(r"403 FORBIDDEN", re.IGNORECASE), UnauthorizedError,
     "Request forbidden."),
    (re.compile(r"400 BAD REQUEST", re.IGNORECASE), BadRequestError,
     "The request was invalid."),
    (re.compile(r"500 INTERNAL", re.IGNORECASE), InternalServerError,
     "An error occurred on the servers."),
    (re.compile(r"409 CONFLICT", re.IGNORECASE), ConflictError,
     "An error occurred on the servers."),
)


def classify(
    raw_body: Optional[Union[bytes, str]],
    message: Optional[str] = None,
    url: Optional[str] = None,
) -> ApiError:
    """Turn the raw buffer of a failed request into a typed error.

    Args:
        raw_body: Full response buffer, status line included
        message: Message to use instead of the table's default
        url: Requested URL, kept on the error

    Returns:
        The matching ApiError subclass, or a plain ApiError if nothing matched
    """
    if isinstance(raw_body, bytes):
        text = raw_body.decode("utf-8", errors="replace")
    else:
        text = raw_body or ""
    logger.debug("Buffer with exception: %s", text)

    for pattern, error_class, default_message in ERROR_TABLE:
        if pattern.search(text):
            return error_class(message or default_message, raw_body, url)
    return ApiError(message or UNKNOWN_ERROR_MESSAGE, raw_body, url)
