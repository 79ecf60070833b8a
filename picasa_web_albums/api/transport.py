"""Hand-built HTTP requests over plain or TLS sockets.

Write requests and login calls need the exact status line and the full error
body of a failed response, so they are sent over a socket directly instead of
through the body-fetch primitive used for feed queries.
"""

import logging
import re
import socket
import ssl
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple, Union
from urllib.parse import urlsplit

from picasa_web_albums.api.errors import classify
from picasa_web_albums.models import (
    MalformedUrlError,
    PicasaError,
    RequestFailedError,
    TransportError,
)

logger = logging.getLogger(__name__)

CRLF = "\r\n"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
ATOM_CONTENT_TYPE = "application/atom+xml"
MULTIPART_BOUNDARY = "END_OF_PART"
MULTIPART_CONTENT_TYPE = f'multipart/related; boundary="{MULTIPART_BOUNDARY}"'
MIME_VERSION_HEADER = "MIME-version: 1.0\r\n"

_CHUNK_SIZE_LINE = re.compile(r"^[0-9a-fA-F]+$")

Body = Union[bytes, str, None]


def parse_response_value(text: str, key: str) -> Optional[str]:
    """Find the value of a ``key=value`` line in a plain text response.

    Args:
        text: Response text
        key: Name of the value, e.g. ``Auth`` or ``Error``

    Returns:
        The value up to the end of its line, or None if the key is absent
    """
    match = re.search(rf"(?m)^{re.escape(key)}=(.*?)\r?$", text)
    if match is None:
        return None
    return match.group(1)


def _dechunk(body: bytes) -> bytes:
    out = bytearray()
    pos = 0
    while True:
        eol = body.find(b"\r\n", pos)
        if eol < 0:
            break
        size_token = body[pos:eol].split(b";")[0].strip()
        try:
            size = int(size_token, 16)
        except ValueError:
            # Not chunked after all.
            return body
        if size == 0:
            break
        start = eol + 2
        out += body[start:start + size]
        pos = start + size + 2
    return bytes(out)


@dataclass
class RawHttpResponse:
    """A response read straight off the socket."""
    status_line: str
    headers: List[Tuple[str, str]] = field(default_factory=list)
    body: bytes = b""
    raw: bytes = b""

    @classmethod
    def parse(cls, raw: bytes) -> "RawHttpResponse":
        """Split a raw buffer into status line, headers and body."""
        head, sep, body = raw.partition(b"\r\n\r\n")
        if not sep:
            head, sep, body = raw.partition(b"\n\n")
        lines = head.decode("iso-8859-1").splitlines()
        status_line = lines[0] if lines else ""
        headers = []
        for line in lines[1:]:
            name, colon, value = line.partition(":")
            if colon:
                headers.append((name.strip(), value.strip()))

        response = cls(status_line=status_line, headers=headers, body=body, raw=raw)
        if (response.header("Transfer-Encoding") or "").lower() == "chunked":
            response.body = _dechunk(body)
        return response

    def header(self, name: str) -> Optional[str]:
        """Return the first header with the given name, case-insensitively."""
        wanted = name.lower()
        for key, value in self.headers:
            if key.lower() == wanted:
                return value
        return None

    @property
    def is_success(self) -> bool:
        # The provider only ever answers 200 or 201 on success.
        return " 200 " in self.status_line or " 201 " in self.status_line

    @property
    def status_code(self) -> Optional[int]:
        parts = self.status_line.split()
        if len(parts) >= 2 and parts[1].isdigit():
            return int(parts[1])
        return None

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def error_message(self) -> Optional[str]:
        """Best-effort human readable message from a failed response."""
        text = self.text
        value = parse_response_value(text, "Error")
        if value:
            return value
        for line in text.splitlines():
            line = line.strip()
            if line and not line.startswith("<") and not _CHUNK_SIZE_LINE.match(line):
                return line
        return None


def build_multipart(metadata_xml: str, payload: bytes, content_type: str) -> bytes:
    """Build the two-part body of an image upload.

    Args:
        metadata_xml: Atom entry describing the image
        payload: Raw image bytes
        content_type: MIME type of the image

    Returns:
        Request body delimited by the END_OF_PART boundary
    """
    boundary = f"--{MULTIPART_BOUNDARY}"
    return b"".join(
        [
            f"{CRLF}Media multipart posting{CRLF}".encode("ascii"),
            f"{boundary}{CRLF}Content-Type: {ATOM_CONTENT_TYPE}{CRLF}{CRLF}".encode("ascii"),
            metadata_xml.encode("utf-8"),
            f"{CRLF}{boundary}{CRLF}Content-Type: {content_type}{CRLF}{CRLF}".encode("ascii"),
            payload,
            f"{CRLF}{boundary}--".encode("ascii"),
        ]
    )


class Transport:
    """Sends hand-built HTTP/1.1 requests and reads back the whole response."""

    def __init__(self, timeout: Optional[float] = None):
        """Initialize the transport.

        Args:
            timeout: Socket timeout in seconds, None to block indefinitely
        """
        self.timeout = timeout

    @staticmethod
    def build_request(
        host: str,
        path: str,
        body: Body = None,
        verb: str = "GET",
        extra_headers: Optional[Sequence[str]] = None,
        content_type: str = FORM_CONTENT_TYPE,
    ) -> bytes:
        """Build the request text: request line, headers, blank line, body."""
        if body is None:
            payload = b""
        elif isinstance(body, str):
            payload = body.encode("utf-8")
        else:
            payload = body

        head = (
            f"{verb} {path} HTTP/1.1{CRLF}"
            f"Host: {host}{CRLF}"
            f"Content-Type: {content_type}{CRLF}"
            f"Content-Length: {len(payload)}{CRLF}"
        )
        for header in extra_headers or ():
            head += header if header.endswith(CRLF) else header + CRLF
        head += f"Connection: close{CRLF}{CRLF}"
        return head.encode("utf-8") + payload

    def _connect(self, host: str, port: int, use_tls: bool) -> socket.socket:
        sock = socket.create_connection((host, port), timeout=self.timeout)
        if use_tls:
            context = ssl.create_default_context()
            try:
                sock = context.wrap_socket(sock, server_hostname=host)
            except OSError:
                sock.close()
                raise
        return sock

    def exchange(
        self,
        host: str,
        path: str,
        body: Body = None,
        verb: str = "GET",
        extra_headers: Optional[Sequence[str]] = None,
        content_type: str = FORM_CONTENT_TYPE,
        use_tls: bool = False,
        port: int = 80,
    ) -> RawHttpResponse:
        """Send a request and return the response whatever its status.

        Raises:
            TransportError: If the connection fails
        """
        request = self.build_request(host, path, body, verb, extra_headers, content_type)
        logger.debug("Request to do: %s %s%s", verb, host, path)
        try:
            with self._connect(host, port, use_tls) as sock:
                sock.sendall(request)
                with sock.makefile("rb") as stream:
                    status_line = stream.readline()
                    logger.debug("Buffer returned: %s", status_line.strip())
                    # Failures carry their message somewhere after the headers,
                    # so the rest is drained either way.
                    remainder = stream.read()
        except OSError as e:
            raise TransportError(str(e)) from e
        return RawHttpResponse.parse(status_line + remainder)

    def send(
        self,
        host: str,
        path: str,
        body: Body = None,
        verb: str = "GET",
        extra_headers: Optional[Sequence[str]] = None,
        content_type: str = FORM_CONTENT_TYPE,
        use_tls: bool = False,
        port: int = 80,
    ) -> RawHttpResponse:
        """Send a request that must succeed.

        Returns:
            The parsed response of a 200 or 201 answer

        Raises:
            TransportError: If the connection fails
            RequestFailedError: If the status line is anything else
        """
        response = self.exchange(
            host, path, body, verb, extra_headers, content_type, use_tls, port
        )
        if not response.is_success:
            detail = response.error_message()
            message = detail or f"An unknown error has occurred while sending a {verb} request."
            logger.debug("Request %s %s%s failed: %r", verb, host, path, response.raw)
            raise RequestFailedError(message, response.raw, f"{host}{path}", detail=detail)
        return response

    def probe(
        self, url: str, host: str, extra_headers: Optional[Sequence[str]] = None
    ) -> PicasaError:
        """Re-issue a failed feed query to recover a diagnostic message.

        Never raises: a failure of the probe itself becomes the returned error.

        Args:
            url: The feed URL that returned no data
            host: The feed host the URL must point at
            extra_headers: Header lines of the original query, e.g. Authorization

        Returns:
            The error to raise for the original query
        """
        logger.debug("URL that caused the error: %s", url)
        parts = urlsplit(url)
        if parts.hostname != host:
            return MalformedUrlError("A malformed URL was provided.", None, url)

        path = parts.path or "/"
        if parts.query:
            path += "?" + parts.query
        use_tls = parts.scheme == "https"
        port = parts.port or (443 if use_tls else 80)
        try:
            response = self.exchange(
                host, path, None, "GET", extra_headers, use_tls=use_tls, port=port
            )
        except PicasaError as e:
            return PicasaError(e.message, None, url)

        logger.debug("Total buffer response: %r", response.raw)
        if response.is_success or not response.raw:
            return PicasaError("An unknown error has occurred.", response.raw or None, url)
        return classify(response.raw, response.error_message(), url)
