"""Domain entities built from Picasa Web Albums feeds."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from picasa_web_albums.models.lazy import LazyValue


class Visibility(str, Enum):
    """Access level used both as a query option and as album rights."""
    PUBLIC = "public"
    PRIVATE = "private"
    ALL = "all"


@dataclass(frozen=True)
class Author:
    """The owner of a feed, album, image, tag or comment.

    Which fields are set depends on the kind of feed the author came from.
    """
    name: Optional[str] = None
    profile_uri: Optional[str] = None
    username: Optional[str] = None
    nickname: Optional[str] = None
    thumbnail_url: Optional[str] = None


@dataclass(frozen=True)
class Thumbnail:
    """One media:thumbnail of an image."""
    url: Optional[str]
    width: Optional[int] = None
    height: Optional[int] = None


@dataclass(frozen=True)
class Exif:
    """Camera data from the exif namespace."""
    flash: Optional[str] = None
    fstop: Optional[str] = None
    camera_make: Optional[str] = None
    camera_model: Optional[str] = None
    exposure: Optional[str] = None
    focal_length: Optional[str] = None
    iso: Optional[str] = None
    time_taken: Optional[str] = None


@dataclass(frozen=True)
class Comment:
    """A comment on an image.

    ``account_name`` and ``album_id`` are sliced out of the ``id`` URL.
    """
    id: Optional[str] = None
    id_number: Optional[str] = None
    published: Optional[str] = None
    updated: Optional[str] = None
    title: Optional[str] = None
    content: Optional[str] = None
    photo_id: Optional[str] = None
    album_id: Optional[str] = None
    account_name: Optional[str] = None
    author: Author = field(default_factory=Author)


@dataclass(frozen=True)
class Tag:
    """A tag with its number of occurrences."""
    id: Optional[str] = None
    updated: Optional[str] = None
    title: Optional[str] = None
    summary: Optional[str] = None
    weight: Optional[int] = None
    author: Author = field(default_factory=Author)


@dataclass(frozen=True)
class Image:
    """A photo entry."""
    id: Optional[str] = None
    id_number: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    keywords: Optional[str] = None
    updated: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    album_id: Optional[str] = None
    album_title: Optional[str] = None
    album_description: Optional[str] = None
    image_type: Optional[str] = None
    version: Optional[str] = None
    timestamp: Optional[int] = None
    gml_position: Optional[str] = None
    commenting_enabled: Optional[bool] = None
    comment_count: Optional[int] = None
    web_link: Optional[str] = None
    content: Optional[str] = None
    author: Author = field(default_factory=Author)
    tags: Optional[List[str]] = None
    thumbnails: List[Thumbnail] = field(default_factory=list)
    thumb_url_map: Dict[int, str] = field(default_factory=dict)
    thumb_height_map: Dict[int, Optional[int]] = field(default_factory=dict)
    content_url_map: Dict[int, str] = field(default_factory=dict)
    content_height_map: Dict[int, Optional[int]] = field(default_factory=dict)
    exif: Optional[Exif] = None
    lazy_comments: LazyValue = field(default_factory=LazyValue, compare=False, repr=False)
    lazy_neighbours: LazyValue = field(default_factory=LazyValue, compare=False, repr=False)

    def _thumb_url(self, index: int) -> Optional[str]:
        if len(self.thumbnails) > index:
            return self.thumbnails[index].url
        return None

    @property
    def small_thumb(self) -> Optional[str]:
        return self._thumb_url(0)

    @property
    def medium_thumb(self) -> Optional[str]:
        return self._thumb_url(1)

    @property
    def large_thumb(self) -> Optional[str]:
        return self._thumb_url(2)

    @property
    def comments(self) -> Optional[List[Comment]]:
        """Comments on the image, fetched on first access when not in the feed."""
        return self.lazy_comments.get()

    def _neighbours(self) -> Tuple[Optional["Image"], Optional["Image"]]:
        return self.lazy_neighbours.get() or (None, None)

    @property
    def previous(self) -> Optional["Image"]:
        """The image before this one in its album, None for the first image."""
        return self._neighbours()[0]

    @property
    def next(self) -> Optional["Image"]:
        """The image after this one in its album, None for the last image."""
        return self._neighbours()[1]


@dataclass(frozen=True)
class Album:
    """An album entry, optionally with its images."""
    id: Optional[str] = None
    id_number: Optional[str] = None
    title: Optional[str] = None
    subtitle: Optional[str] = None
    summary: Optional[str] = None
    published: Optional[str] = None
    updated: Optional[str] = None
    rights: Optional[str] = None
    location: Optional[str] = None
    gml_position: Optional[str] = None
    edit_link: Optional[str] = None
    web_link: Optional[str] = None
    icon: Optional[str] = None
    num_photos: Optional[int] = None
    photos_remaining: Optional[int] = None
    bytes_used: Optional[int] = None
    commenting_enabled: Optional[bool] = None
    num_comments: Optional[int] = None
    timestamp: Optional[int] = None
    author: Author = field(default_factory=Author)
    lazy_images: LazyValue = field(default_factory=LazyValue, compare=False, repr=False)
    lazy_tags: LazyValue = field(default_factory=LazyValue, compare=False, repr=False)
    lazy_comments: LazyValue = field(default_factory=LazyValue, compare=False, repr=False)

    @property
    def images(self) -> Optional[List[Image]]:
        """Images in the album.

        Albums taken from an account listing carry no images; the first access
        fetches the album feed once.
        """
        return self.lazy_images.get()

    @property
    def tags(self) -> Optional[List[Tag]]:
        return self.lazy_tags.get()

    @property
    def comments(self) -> Optional[List[Comment]]:
        return self.lazy_comments.get()


@dataclass(frozen=True)
class Account:
    """A user's album listing."""
    id: Optional[str] = None
    title: Optional[str] = None
    subtitle: Optional[str] = None
    icon: Optional[str] = None
    web_link: Optional[str] = None
    author: Author = field(default_factory=Author)
    albums: List[Album] = field(default_factory=list)


@dataclass(frozen=True)
class ImageCollection:
    """A page of images from a search or user-wide photo feed."""
    id: Optional[str] = None
    title: Optional[str] = None
    subtitle: Optional[str] = None
    updated: Optional[str] = None
    icon: Optional[str] = None
    author: Optional[Author] = None
    total_results: Optional[int] = None
    start_index: Optional[int] = None
    items_per_page: Optional[int] = None
    images: List[Image] = field(default_factory=list)
