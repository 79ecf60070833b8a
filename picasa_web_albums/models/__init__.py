"""Models for the Picasa Web Albums client."""

from typing import Optional, Union

from picasa_web_albums.models.entities import (
    Account,
    Album,
    Author,
    Comment,
    Exif,
    Image,
    ImageCollection,
    Tag,
    Thumbnail,
    Visibility,
)
from picasa_web_albums.models.lazy import LazyValue

ResponseBody = Union[bytes, str]


class PicasaError(Exception):
    """Base exception for Picasa Web Albums operations.

    Carries the raw response body and the requested URL when they are known so
    that callers can re-inspect provider specific details.
    """

    def __init__(
        self,
        message: str,
        response: Optional[ResponseBody] = None,
        url: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.response = response
        self.url = url

    def response_text(self) -> str:
        """Return the raw response body decoded as text."""
        if self.response is None:
            return ""
        if isinstance(self.response, bytes):
            return self.response.decode("utf-8", errors="replace")
        return self.response


class TransportError(PicasaError):
    """Raised when a connection to the server cannot be made."""


class RequestFailedError(PicasaError):
    """Raised when the server answers with anything but 200 or 201.

    ``detail`` is the message recovered from the response body, if any.
    """

    def __init__(
        self,
        message: str,
        response: Optional[ResponseBody] = None,
        url: Optional[str] = None,
        detail: Optional[str] = None,
    ):
        super().__init__(message, response, url)
        self.detail = detail


class FeedParseError(PicasaError):
    """Raised when a response body is not a well-formed feed."""


class ApiError(PicasaError):
    """Raised when a request failed for a reason that could not be classified."""


class UnauthorizedError(ApiError):
    """Raised on 401 and 403 responses."""


class BadRequestError(ApiError):
    """Raised on 400 responses."""


class MalformedUrlError(BadRequestError):
    """Raised when a URL does not point at the feed host."""


class ConflictError(ApiError):
    """Raised on 409 responses.

    The message may be the conflicting entry's own XML rather than prose.
    """


class InternalServerError(ApiError):
    """Raised on 500 responses."""


class AuthenticationError(PicasaError):
    """Base class for login failures."""


class FailedAuthorizationError(AuthenticationError):
    """Raised when a token cannot be obtained, exchanged or revoked."""


class InvalidCredentialsError(AuthenticationError):
    """Raised when the username or password was rejected."""


class CaptchaRequiredError(AuthenticationError):
    """Raised when the login server issued a CAPTCHA challenge.

    Show the image at ``captcha_url`` to the user and retry the login with
    ``captcha_token`` and the letters they typed. The original identity and
    secret are kept so the retry does not need to prompt for them again.
    """

    CAPTCHA_BASE_URL = "https://www.google.com/accounts/"

    def __init__(
        self,
        message: str,
        url: Optional[str],
        identity: str,
        secret: str,
        captcha_token: Optional[str],
        captcha_path: Optional[str],
        response: Optional[ResponseBody] = None,
    ):
        super().__init__(message, response, url)
        self.identity = identity
        self.secret = secret
        self.captcha_token = captcha_token
        self.captcha_path = captcha_path
        self.captcha_url = (
            self.CAPTCHA_BASE_URL + captcha_path if captcha_path is not None else None
        )


class UploadFileNotFoundError(PicasaError):
    """Raised when a local file to upload cannot be read."""


__all__ = [
    "Account",
    "Album",
    "ApiError",
    "AuthenticationError",
    "Author",
    "BadRequestError",
    "CaptchaRequiredError",
    "Comment",
    "ConflictError",
    "Exif",
    "FailedAuthorizationError",
    "FeedParseError",
    "Image",
    "ImageCollection",
    "InternalServerError",
    "InvalidCredentialsError",
    "LazyValue",
    "MalformedUrlError",
    "PicasaError",
    "RequestFailedError",
    "Tag",
    "Thumbnail",
    "TransportError",
    "UnauthorizedError",
    "UploadFileNotFoundError",
    "Visibility",
]
