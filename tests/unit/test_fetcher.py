"""Unit tests for the cache-aware feed fetcher."""

from unittest.mock import MagicMock

import pytest
from google.auth import exceptions as google_auth_exceptions

from picasa_web_albums.api.fetcher import FeedFetcher
from picasa_web_albums.api.transport import Transport
from picasa_web_albums.models import ApiError, PicasaError, UnauthorizedError

HOST = "picasaweb.google.com"
URL = "https://picasaweb.google.com/data/feed/api/user/jdoe?kind=album&access=public"


@pytest.fixture
def probe_transport():
    transport = MagicMock(spec=Transport)
    transport.probe.return_value = PicasaError("An unknown error has occurred.")
    return transport


@pytest.fixture
def fetcher(fake_request, response_cache, probe_transport):
    fake_request.routes[URL] = (200, b"<feed/>")
    return FeedFetcher(HOST, response_cache, probe_transport, fake_request)


def test_fetch_stores_then_serves_from_cache(fetcher, fake_request, response_cache):
    """Test only the first of two identical fetches reaches the network."""
    first = fetcher.fetch(URL)
    second = fetcher.fetch(URL)

    assert first == second == b"<feed/>"
    assert len(fake_request.calls) == 1
    assert response_cache.get_if_cached(URL) == b"<feed/>"


def test_fetch_bypassing_cache(fetcher, fake_request, response_cache):
    response_cache.set_in_cache(URL, b"<stale/>")

    assert fetcher.fetch(URL, use_cache=False) == b"<feed/>"

    assert len(fake_request.calls) == 1
    assert response_cache.get_if_cached(URL) == b"<stale/>"


def test_fetch_without_cache(fake_request, probe_transport):
    fake_request.routes[URL] = (200, b"<feed/>")
    fetcher = FeedFetcher(HOST, None, probe_transport, fake_request)

    fetcher.fetch(URL)
    fetcher.fetch(URL)

    assert len(fake_request.calls) == 2


def test_auth_header_is_sent(fetcher, fake_request):
    fetcher.fetch(URL, auth_header="Authorization: GoogleLogin auth=abc\r\n", use_cache=False)

    assert fake_request.calls[0]["headers"] == {"Authorization": "GoogleLogin auth=abc"}
    assert fake_request.calls[0]["method"] == "GET"


def test_error_status_is_classified(fetcher, fake_request, probe_transport):
    """Test a 403 answer becomes an authorization error without probing."""
    fake_request.routes[URL] = (403, b"Forbidden")

    with pytest.raises(UnauthorizedError) as exc_info:
        fetcher.fetch(URL)

    assert exc_info.value.url == URL
    assert b"Forbidden" in exc_info.value.response
    probe_transport.probe.assert_not_called()


def test_unknown_status(fetcher, fake_request):
    fake_request.routes[URL] = (404, b"")

    with pytest.raises(ApiError):
        fetcher.fetch(URL)


def test_empty_body_is_probed(fetcher, fake_request, probe_transport, response_cache):
    """Test an empty answer is re-issued over the raw transport for a message."""
    fake_request.routes[URL] = (200, b"")
    probe_transport.probe.return_value = UnauthorizedError("Request forbidden.")

    with pytest.raises(UnauthorizedError):
        fetcher.fetch(URL, auth_header="Authorization: AuthSub token=x\r\n")

    probe_transport.probe.assert_called_once_with(
        URL, HOST, ["Authorization: AuthSub token=x\r\n"]
    )
    assert response_cache.get_if_cached(URL) is None


def test_connection_failure_is_probed(probe_transport):
    request = MagicMock(side_effect=google_auth_exceptions.TransportError("reset"))
    fetcher = FeedFetcher(HOST, None, probe_transport, request)

    with pytest.raises(PicasaError) as exc_info:
        fetcher.fetch(URL)

    assert exc_info.value.message == "An unknown error has occurred."
    probe_transport.probe.assert_called_once_with(URL, HOST, None)


def test_download_never_touches_cache(fetcher, fake_request, response_cache):
    fetcher.download(URL)

    assert response_cache.get_if_cached(URL) is None
    assert len(fake_request.calls) == 1
