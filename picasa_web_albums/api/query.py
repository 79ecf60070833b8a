"""Feed URL and query string construction."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple, Union
from urllib.parse import quote

from picasa_web_albums.models import Visibility

logger = logging.getLogger(__name__)


@dataclass
class QueryOptions:
    """Optional parameters of a feed query. Unset options are left out."""
    max_results: Optional[int] = None
    start_index: Optional[int] = None
    keywords: Optional[str] = None
    tags: Optional[str] = None
    visibility: Optional[Union[Visibility, str]] = None
    thumb_sizes: Optional[str] = None
    max_image_size: Optional[Union[int, str]] = None
    location: Optional[str] = None
    sort_descending: Optional[bool] = None
    bounding_box: Optional[str] = None


def _format_value(value: object) -> str:
    if isinstance(value, Enum):
        value = value.value
    return quote(str(value), safe=",")


def query_pairs(options: QueryOptions) -> List[Tuple[str, str]]:
    """Return the (name, value) pairs of the set options in their fixed order."""
    pairs: List[Tuple[str, str]] = []
    if options.max_results is not None:
        pairs.append(("max-results", _format_value(options.max_results)))
    if options.start_index is not None:
        pairs.append(("start-index", _format_value(options.start_index)))
    if options.visibility is not None:
        pairs.append(("access", _format_value(options.visibility)))
    if options.keywords is not None:
        pairs.append(("q", _format_value(options.keywords)))
    if options.tags is not None:
        pairs.append(("tag", _format_value(options.tags)))
    if options.thumb_sizes is not None:
        pairs.append(("thumbsize", _format_value(options.thumb_sizes)))
    if options.max_image_size is not None:
        pairs.append(("imgmax", _format_value(options.max_image_size)))
    if options.location is not None:
        pairs.append(("l", _format_value(options.location)))
    # Descending sort is only switched on by an empty keyword search.
    if options.sort_descending is True and options.keywords is None:
        pairs.append(("q", ""))
    if options.bounding_box is not None:
        pairs.append(("bbox", _format_value(options.bounding_box)))
    return pairs


def build_query_params(options: Optional[QueryOptions] = None) -> str:
    """Build the ``&name=value`` fragment appended after a feed's ``kind``.

    Args:
        options: Query options, None for no parameters

    Returns:
        Query string fragment, empty when no option is set
    """
    if options is None:
        return ""
    query = "".join(f"&{name}={value}" for name, value in query_pairs(options))
    logger.debug("Query string built: %s", query)
    return query


def feed_url(
    base_url: str, path: str, kind: Optional[str] = None, options: Optional[QueryOptions] = None
) -> str:
    """Assemble a full feed URL.

    Args:
        base_url: Feed, entry or media base URL
        path: Resource path such as ``/user/jdoe/albumid/123``
        kind: Feed kind (album, photo, tag, comment, user)
        options: Query options

    Returns:
        The URL to request
    """
    params = build_query_params(options)
    if kind is not None:
        return f"{base_url}{path}?kind={kind}{params}"
    if params:
        return f"{base_url}{path}?{params[1:]}"
    return f"{base_url}{path}"
