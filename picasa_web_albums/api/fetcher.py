"""Cache-aware retrieval of feed documents."""

import logging
from http import HTTPStatus
from typing import Any, Optional

from google.auth import exceptions as google_auth_exceptions
from google.auth.transport.requests import Request

from picasa_web_albums.api.errors import classify
from picasa_web_albums.api.transport import Transport
from picasa_web_albums.cache.cache_manager import ResponseCache

logger = logging.getLogger(__name__)


def _status_buffer(response: Any) -> bytes:
    """Rebuild a raw-looking buffer from a response so it can be classified."""
    try:
        phrase = HTTPStatus(response.status).phrase.upper()
    except ValueError:
        phrase = ""
    lines = [f"HTTP/1.1 {response.status} {phrase}"]
    for name, value in (response.headers or {}).items():
        lines.append(f"{name}: {value}")
    head = "\r\n".join(lines) + "\r\n\r\n"
    return head.encode("iso-8859-1", errors="replace") + (response.data or b"")


class FeedFetcher:
    """Fetches feed XML, going through the response cache when asked to."""

    def __init__(
        self,
        host: str,
        cache: Optional[ResponseCache] = None,
        transport: Optional[Transport] = None,
        request: Optional[Request] = None,
        timeout: Optional[float] = None,
    ):
        """Initialize the fetcher.

        Args:
            host: Feed host, used to validate URLs in diagnostics
            cache: Response cache, None to never cache
            transport: Raw transport used to diagnose empty responses
            request: google-auth HTTP request callable
            timeout: Request timeout in seconds
        """
        self.host = host
        self.cache = cache
        self.transport = transport or Transport(timeout)
        self.request = request or Request()
        self.timeout = timeout

    def fetch(self, url: str, auth_header: Optional[str] = None, use_cache: bool = True) -> bytes:
        """Return the body of a feed URL.

        Args:
            url: Feed URL
            auth_header: ``Authorization: ...`` line for private feeds
            use_cache: Whether to consult and refresh the response cache

        Returns:
            Raw XML bytes

        Raises:
            ApiError: If the server answered with an error status
            PicasaError: If no data came back at all
        """
        logger.debug("Request string: %s", url)
        use_cache = use_cache and self.cache is not None
        if use_cache:
            cached = self.cache.get_if_cached(url)
            if cached is not None:
                logger.debug("Retrieved from cache: %s", url)
                return cached
            logger.debug("Cached copy not available, requesting freshly: %s", url)

        data = self.download(url, auth_header)
        if use_cache:
            logger.debug("Refreshing cache entry for %s", url)
            self.cache.set_in_cache(url, data)
        return data

    def download(self, url: str, auth_header: Optional[str] = None) -> bytes:
        """GET a URL without the cache.

        When the primitive yields no data the request is repeated over the raw
        transport purely to recover an error message.
        """
        headers = {}
        if auth_header:
            name, _, value = auth_header.partition(":")
            headers[name.strip()] = value.strip()
        probe_headers = [auth_header] if auth_header else None

        try:
            response = self.request(url=url, method="GET", headers=headers, timeout=self.timeout)
        except google_auth_exceptions.TransportError as e:
            logger.debug("Request for %s failed: %s", url, e)
            raise self.transport.probe(url, self.host, probe_headers) from e

        if response.status != HTTPStatus.OK:
            raise classify(_status_buffer(response), None, url)
        if not response.data:
            raise self.transport.probe(url, self.host, probe_headers)
        return response.data
