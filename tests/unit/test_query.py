"""Unit tests for feed URL construction."""

import pytest

from picasa_web_albums.api.query import QueryOptions, build_query_params, feed_url, query_pairs
from picasa_web_albums.models import Visibility

BASE = "https://picasaweb.google.com/data/feed/api"


def test_no_options():
    assert build_query_params(None) == ""
    assert build_query_params(QueryOptions()) == ""


def test_fixed_order():
    """Test parameters come out in the same order whatever was set."""
    options = QueryOptions(
        bounding_box="1,2,3,4",
        location="London",
        max_image_size=800,
        thumb_sizes="72c,144",
        tags="beach",
        keywords="sunset",
        visibility=Visibility.PUBLIC,
        start_index=11,
        max_results=10,
    )

    assert build_query_params(options) == (
        "&max-results=10&start-index=11&access=public&q=sunset"
        "&tag=beach&thumbsize=72c,144&imgmax=800&l=London&bbox=1,2,3,4"
    )


def test_each_parameter_appears_once():
    options = QueryOptions(max_results=5, keywords="x", sort_descending=True)

    names = [name for name, _ in query_pairs(options)]

    assert names == ["max-results", "q"]


def test_sort_descending_adds_empty_query():
    """Test descending sort is expressed as an empty keyword search."""
    options = QueryOptions(max_results=5, sort_descending=True, bounding_box="0,0,1,1")

    assert build_query_params(options) == "&max-results=5&q=&bbox=0,0,1,1"


def test_sort_descending_false_adds_nothing():
    assert build_query_params(QueryOptions(sort_descending=False)) == ""


def test_values_are_escaped():
    assert build_query_params(QueryOptions(keywords="blue sky&sea")) == "&q=blue%20sky%26sea"


@pytest.mark.parametrize(
    "visibility, expected",
    [(Visibility.PRIVATE, "&access=private"), ("all", "&access=all")],
)
def test_visibility_values(visibility, expected):
    assert build_query_params(QueryOptions(visibility=visibility)) == expected


def test_feed_url_with_kind():
    url = feed_url(BASE, "/user/jdoe", "album", QueryOptions(visibility=Visibility.PUBLIC))

    assert url == f"{BASE}/user/jdoe?kind=album&access=public"


def test_feed_url_without_kind():
    url = feed_url(BASE, "/user/jdoe/albumid/1/photoid/2", options=QueryOptions(thumb_sizes="72"))

    assert url == f"{BASE}/user/jdoe/albumid/1/photoid/2?thumbsize=72"


def test_feed_url_bare():
    assert feed_url(BASE, "/user/jdoe") == f"{BASE}/user/jdoe"
