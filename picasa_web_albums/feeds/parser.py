"""Mapping of Picasa Web Albums feed XML onto the domain entities."""

import logging
from typing import Callable, Dict, List, Optional, Protocol, Tuple, Union

from lxml import etree

from picasa_web_albums.feeds.namespaces import FeedNamespaces
from picasa_web_albums.models import (
    Account,
    Album,
    Author,
    Comment,
    Exif,
    FeedParseError,
    Image,
    ImageCollection,
    LazyValue,
    Tag,
    Thumbnail,
)

logger = logging.getLogger(__name__)

XmlSource = Union[bytes, str, etree._Element]


class FeedResolver(Protocol):
    """Fetches that lazy entity fields may perform on first access."""

    def resolve_album_images(self, username: str, album_id: str) -> List[Image]:
        ...

    def resolve_album_tags(self, username: str, album_id: str, visibility: Optional[str]) -> List[Tag]:
        ...

    def resolve_album_comments(
        self, username: str, album_id: str, visibility: Optional[str]
    ) -> List[Comment]:
        ...

    def resolve_image_comments(self, username: str, album_id: str, image_id: str) -> List[Comment]:
        ...


def _to_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def _to_bool(value: Optional[str]) -> Optional[bool]:
    if value is None:
        return None
    return value.strip().lower() == "true"


def _slice_segment(value: Optional[str], marker: str, terminator: str) -> Optional[str]:
    """Return the text between ``marker`` and the next ``terminator`` in a URL."""
    if not value:
        return None
    start = value.find(marker)
    if start < 0:
        return None
    rest = value[start + len(marker):]
    end = rest.find(terminator)
    if end < 0:
        return None
    return rest[:end]


def split_keywords(keywords: Optional[str]) -> List[str]:
    """Split a comma-delimited keyword string into tags.

    Each tag is trimmed. Duplicates are kept.
    """
    if not keywords:
        return []
    return [token.strip() for token in keywords.split(",") if token]


def find_neighbours(
    images: Optional[List[Image]], image_id: Optional[str]
) -> Tuple[Optional[Image], Optional[Image]]:
    """Locate the images before and after ``image_id`` in an album listing.

    Returns:
        (previous, next), either of which is None at the ends of the album
        or when the image is not in the listing
    """
    images = images or []
    for index, image in enumerate(images):
        if image.id_number == image_id:
            previous = images[index - 1] if index > 0 else None
            following = images[index + 1] if index + 1 < len(images) else None
            return previous, following
    return None, None


def parse_document(source: XmlSource, url: Optional[str] = None) -> etree._Element:
    """Parse raw feed XML.

    Raises:
        FeedParseError: If the body is not well-formed XML
    """
    if isinstance(source, etree._Element):
        return source
    if isinstance(source, str):
        source = source.encode("utf-8")
    parser = etree.XMLParser(resolve_entities=False, no_network=True)
    try:
        return etree.fromstring(source, parser)
    except etree.XMLSyntaxError as e:
        raise FeedParseError(str(e), source, url) from e


class FeedParser:
    """Builds entities from feed documents.

    Fields that need another request (album images, tags and comments, image
    comments and neighbours) are wired to the resolver when the document does
    not already contain them. Without a resolver such fields resolve to None.
    """

    def __init__(self, resolver: Optional[FeedResolver] = None):
        self.resolver = resolver

    # Shared pieces

    @staticmethod
    def _links(element: etree._Element, ns: FeedNamespaces) -> Dict[str, str]:
        links: Dict[str, str] = {}
        for link in ns.atom.children(element, "link"):
            rel = link.get("rel")
            href = link.get("href")
            if rel and href is not None:
                links.setdefault(rel, href)
        return links

    @staticmethod
    def _gml_position(element: etree._Element, ns: FeedNamespaces) -> Optional[str]:
        if ns.georss is None or ns.gml is None:
            return None
        where = ns.georss.child(element, "where")
        point = ns.gml.child(where, "Point")
        return ns.gml.text(point, "pos")

    def _author(
        self, element: etree._Element, ns: FeedNamespaces, fallback_user: Optional[str] = None
    ) -> Author:
        """Build the author of an entry or feed.

        The gphoto user fields are looked up in the ``author`` element first and
        then on the element itself.
        """
        author_element = ns.atom.child(element, "author")
        username = nickname = thumbnail_url = None
        if ns.gphoto is not None:
            for source in (author_element, element):
                username = username or ns.gphoto.text(source, "user")
                nickname = nickname or ns.gphoto.text(source, "nickname")
                thumbnail_url = thumbnail_url or ns.gphoto.text(source, "thumbnail")

        if author_element is not None and ns.atom.text(author_element, "name"):
            named = author_element
        else:
            named = element
        return Author(
            name=ns.atom.text(named, "name"),
            profile_uri=ns.atom.text(named, "uri"),
            username=username or fallback_user,
            nickname=nickname,
            thumbnail_url=thumbnail_url,
        )

    def _lazy(self, label: str, fetch: Optional[Callable]) -> LazyValue:
        if self.resolver is None or fetch is None:
            return LazyValue(label=label)
        return LazyValue(fetch, label=label)

    # Entities

    def _comment(self, entry: etree._Element, ns: FeedNamespaces) -> Comment:
        atom = ns.atom
        entry_id = atom.text(entry, "id")
        gphoto = ns.gphoto
        return Comment(
            id=entry_id,
            id_number=gphoto.text(entry, "id") if gphoto else None,
            published=atom.text(entry, "published"),
            updated=atom.text(entry, "updated"),
            title=atom.text(entry, "title"),
            content=atom.text(entry, "content"),
            photo_id=gphoto.text(entry, "photoid") if gphoto else None,
            album_id=_slice_segment(entry_id, "/albumid/", "/photoid"),
            account_name=_slice_segment(entry_id, "/user/", "/albumid"),
            author=self._author(entry, ns),
        )

    def _tag(self, entry: etree._Element, ns: FeedNamespaces) -> Tag:
        atom = ns.atom
        return Tag(
            id=atom.text(entry, "id"),
            updated=atom.text(entry, "updated"),
            title=atom.text(entry, "title"),
            summary=atom.text(entry, "summary"),
            weight=_to_int(ns.gphoto.text(entry, "weight")) if ns.gphoto else None,
            author=self._author(entry, ns),
        )

    def _image(self, element: etree._Element, ns: FeedNamespaces) -> Image:
        atom = ns.atom
        image_id = atom.text(element, "id")
        fields = {
            "id": image_id,
            "title": atom.text(element, "title"),
            "updated": atom.text(element, "updated"),
            "web_link": self._links(element, ns).get("alternate"),
            "gml_position": self._gml_position(element, ns),
        }

        if ns.media is not None:
            fields.update(self._media_fields(element, ns))
        if fields.get("description") is None:
            fields["description"] = atom.text(element, "summary")

        gphoto = ns.gphoto
        if gphoto is not None:
            fields.update(
                id_number=gphoto.text(element, "id"),
                width=_to_int(gphoto.text(element, "width")),
                height=_to_int(gphoto.text(element, "height")),
                album_id=gphoto.text(element, "albumid"),
                album_title=gphoto.text(element, "albumtitle"),
                album_description=gphoto.text(element, "albumdesc"),
                version=gphoto.text(element, "version"),
                timestamp=_to_int(gphoto.text(element, "timestamp")),
                commenting_enabled=_to_bool(gphoto.text(element, "commentingEnabled")),
                comment_count=_to_int(gphoto.text(element, "commentCount")),
            )

        if ns.exif is not None:
            exif_tags = ns.exif.child(element, "tags")
            if exif_tags is not None:
                fields["exif"] = Exif(
                    flash=ns.exif.text(exif_tags, "flash"),
                    fstop=ns.exif.text(exif_tags, "fstop"),
                    camera_make=ns.exif.text(exif_tags, "make"),
                    camera_model=ns.exif.text(exif_tags, "model"),
                    exposure=ns.exif.text(exif_tags, "exposure"),
                    focal_length=ns.exif.text(exif_tags, "focallength"),
                    iso=ns.exif.text(exif_tags, "iso"),
                    time_taken=ns.exif.text(exif_tags, "time"),
                )

        # Photo entries carry no user field, so it is read from the id URL.
        author = self._author(element, ns, _slice_segment(image_id, "/user/", "/"))
        fields["author"] = author

        username = author.username
        album_id = fields.get("album_id")
        id_number = fields.get("id_number")
        comment_count = fields.get("comment_count")

        if comment_count == 0:
            fields["lazy_comments"] = LazyValue.resolved([], label="comments")
        elif comment_count is not None and ns.is_feed(element):
            comments = [self._comment(entry, ns) for entry in atom.children(element, "entry")]
            fields["lazy_comments"] = LazyValue.resolved(comments, label="comments")
        elif comment_count is not None and username and album_id and id_number:
            fields["lazy_comments"] = self._lazy(
                "comments",
                lambda: self.resolver.resolve_image_comments(username, album_id, id_number),
            )
        else:
            fields["lazy_comments"] = LazyValue(label="comments")

        if username and album_id and id_number:
            fields["lazy_neighbours"] = self._lazy(
                "neighbours",
                lambda: find_neighbours(
                    self.resolver.resolve_album_images(username, album_id), id_number
                ),
            )
        else:
            fields["lazy_neighbours"] = LazyValue(label="neighbours")

        return Image(**fields)

    @staticmethod
    def _media_fields(element: etree._Element, ns: FeedNamespaces) -> dict:
        media = ns.media
        group = media.child(element, "group")
        keywords = media.text(group, "keywords")

        thumbnails: List[Thumbnail] = []
        thumb_url_map: Dict[int, str] = {}
        thumb_height_map: Dict[int, Optional[int]] = {}
        for thumb in media.children(group, "thumbnail"):
            url = thumb.get("url")
            width = _to_int(thumb.get("width"))
            height = _to_int(thumb.get("height"))
            thumbnails.append(Thumbnail(url=url, width=width, height=height))
            thumb_url_map[width] = url
            thumb_height_map[width] = height

        content_url_map: Dict[int, str] = {}
        content_height_map: Dict[int, Optional[int]] = {}
        content = image_type = None
        for item in media.children(group, "content"):
            width = _to_int(item.get("width"))
            content = item.get("url")
            image_type = item.get("type")
            content_url_map[width] = content
            content_height_map[width] = _to_int(item.get("height"))

        return {
            "description": media.text(group, "description"),
            "keywords": keywords,
            "tags": split_keywords(keywords),
            "thumbnails": thumbnails,
            "thumb_url_map": thumb_url_map,
            "thumb_height_map": thumb_height_map,
            "content_url_map": content_url_map,
            "content_height_map": content_height_map,
            "content": content,
            "image_type": image_type,
        }

    def _album(
        self, element: etree._Element, ns: FeedNamespaces, parent_user: Optional[str] = None
    ) -> Album:
        atom = ns.atom
        gphoto = ns.gphoto
        links = self._links(element, ns)
        is_feed = ns.is_feed(element)
        author = self._author(element, ns, parent_user)

        fields = {
            "id": atom.text(element, "id"),
            "title": atom.text(element, "title"),
            "subtitle": atom.text(element, "subtitle"),
            "summary": atom.text(element, "summary"),
            "published": atom.text(element, "published"),
            "updated": atom.text(element, "updated"),
            "rights": atom.text(element, "rights"),
            "edit_link": links.get("edit"),
            "web_link": links.get("alternate"),
            "gml_position": self._gml_position(element, ns),
            "author": author,
        }

        if gphoto is not None:
            fields.update(
                id_number=gphoto.text(element, "id"),
                location=gphoto.text(element, "location"),
                num_photos=_to_int(gphoto.text(element, "numphotos")),
                photos_remaining=_to_int(gphoto.text(element, "numphotosremaining")),
                bytes_used=_to_int(gphoto.text(element, "bytesUsed")),
                commenting_enabled=_to_bool(gphoto.text(element, "commentingEnabled")),
                num_comments=_to_int(gphoto.text(element, "commentCount")),
                timestamp=_to_int(gphoto.text(element, "timestamp")),
            )
            if fields["rights"] is None:
                fields["rights"] = gphoto.text(element, "access")

        # An album feed names its cover in <icon>, an album entry in its media group.
        if is_feed:
            fields["icon"] = atom.text(element, "icon")
        elif ns.media is not None:
            thumb = ns.media.child(ns.media.child(element, "group"), "thumbnail")
            fields["icon"] = thumb.get("url") if thumb is not None else None

        username = author.username
        id_number = fields.get("id_number")
        rights = fields["rights"]
        can_fetch = bool(username and id_number)

        if is_feed:
            images = [self._image(entry, ns) for entry in atom.children(element, "entry")]
            fields["lazy_images"] = LazyValue.resolved(images, label="images")
        elif fields.get("num_photos") == 0:
            fields["lazy_images"] = LazyValue.resolved([], label="images")
        else:
            fields["lazy_images"] = self._lazy(
                "images",
                (lambda: self.resolver.resolve_album_images(username, id_number)) if can_fetch else None,
            )
        fields["lazy_tags"] = self._lazy(
            "tags",
            (lambda: self.resolver.resolve_album_tags(username, id_number, rights)) if can_fetch else None,
        )
        fields["lazy_comments"] = self._lazy(
            "comments",
            (lambda: self.resolver.resolve_album_comments(username, id_number, rights)) if can_fetch else None,
        )
        return Album(**fields)

    # Public entry points

    def parse_account(self, source: XmlSource, url: Optional[str] = None) -> Account:
        """Parse a user feed listing albums."""
        root = parse_document(source, url)
        ns = FeedNamespaces.of(root)
        atom = ns.atom
        author = self._author(root, ns)
        albums = [self._album(entry, ns, author.username) for entry in atom.children(root, "entry")]
        logger.debug("Parsed account with %d albums", len(albums))
        return Account(
            id=atom.text(root, "id"),
            title=atom.text(root, "title"),
            subtitle=atom.text(root, "subtitle"),
            icon=atom.text(root, "icon"),
            web_link=self._links(root, ns).get("alternate"),
            author=author,
            albums=albums,
        )

    def parse_album(self, source: XmlSource, url: Optional[str] = None) -> Album:
        """Parse an album feed (with its images) or a single album entry."""
        root = parse_document(source, url)
        return self._album(root, FeedNamespaces.of(root))

    def parse_image(self, source: XmlSource, url: Optional[str] = None) -> Image:
        """Parse a photo feed (with its comments) or a single photo entry."""
        root = parse_document(source, url)
        return self._image(root, FeedNamespaces.of(root))

    def parse_image_collection(self, source: XmlSource, url: Optional[str] = None) -> ImageCollection:
        """Parse a page of photos from a search or user-wide photo feed."""
        root = parse_document(source, url)
        ns = FeedNamespaces.of(root)
        atom = ns.atom
        opensearch = ns.opensearch

        author = None
        if atom.child(root, "author") is not None:
            author = self._author(root, ns)
        return ImageCollection(
            id=atom.text(root, "id"),
            title=atom.text(root, "title"),
            subtitle=atom.text(root, "subtitle"),
            updated=atom.text(root, "updated"),
            icon=atom.text(root, "icon"),
            author=author,
            total_results=_to_int(opensearch.text(root, "totalResults")) if opensearch else None,
            start_index=_to_int(opensearch.text(root, "startIndex")) if opensearch else None,
            items_per_page=_to_int(opensearch.text(root, "itemsPerPage")) if opensearch else None,
            images=[self._image(entry, ns) for entry in atom.children(root, "entry")],
        )

    def parse_comment(self, source: XmlSource, url: Optional[str] = None) -> Comment:
        root = parse_document(source, url)
        return self._comment(root, FeedNamespaces.of(root))

    def parse_comments(self, source: XmlSource, url: Optional[str] = None) -> List[Comment]:
        """Parse every comment entry of a feed, in document order."""
        root = parse_document(source, url)
        ns = FeedNamespaces.of(root)
        return [self._comment(entry, ns) for entry in ns.atom.children(root, "entry")]

    def parse_tags(self, source: XmlSource, url: Optional[str] = None) -> List[Tag]:
        root = parse_document(source, url)
        ns = FeedNamespaces.of(root)
        return [self._tag(entry, ns) for entry in ns.atom.children(root, "entry")]

    def parse_authors(self, source: XmlSource, url: Optional[str] = None) -> List[Author]:
        """Parse a contacts feed into one author per entry."""
        root = parse_document(source, url)
        ns = FeedNamespaces.of(root)
        return [self._author(entry, ns) for entry in ns.atom.children(root, "entry")]

    def parse_entry_id(self, source: XmlSource, url: Optional[str] = None) -> Optional[str]:
        """Return the ``<id>`` URL of an entry, e.g. one the server just created."""
        root = parse_document(source, url)
        return FeedNamespaces.of(root).atom.text(root, "id")
