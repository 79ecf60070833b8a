"""Verb and noun operations on Picasa Web Albums."""

import logging
import os
import time
from typing import Callable, List, Optional, Sequence, TypeVar, Union
from urllib.parse import quote, urlsplit

from picasa_web_albums.api.errors import classify
from picasa_web_albums.api.fetcher import FeedFetcher
from picasa_web_albums.api.query import QueryOptions, feed_url
from picasa_web_albums.api.transport import (
    ATOM_CONTENT_TYPE,
    FORM_CONTENT_TYPE,
    MIME_VERSION_HEADER,
    MULTIPART_CONTENT_TYPE,
    RawHttpResponse,
    Transport,
    build_multipart,
)
from picasa_web_albums.cache.cache_manager import ResponseCache
from picasa_web_albums.config import ENTRY_PATH, FEED_PATH, MEDIA_PATH, ClientConfig
from picasa_web_albums.feeds.builder import (
    AlbumDraft,
    ImageDraft,
    album_entry_xml,
    comment_entry_xml,
    image_entry_xml,
    merge_album_update,
    merge_image_update,
    tag_entry_xml,
)
from picasa_web_albums.feeds.parser import FeedParser
from picasa_web_albums.models import (
    Account,
    Album,
    Author,
    Comment,
    Image,
    ImageCollection,
    PicasaError,
    RequestFailedError,
    Tag,
    Visibility,
)
from picasa_web_albums.utils.auth import AuthManager
from picasa_web_albums.utils.file_utils import detect_image_type, read_upload

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Page size used when an album's tags or comments are loaded on demand
LAZY_PAGE_SIZE = 1000

VisibilityArg = Optional[Union[Visibility, str]]


def _is_public(visibility: VisibilityArg) -> bool:
    return visibility == Visibility.PUBLIC


def _now_millis() -> int:
    return int(time.time() * 1000)


class PicasaClient:
    """Reads and writes albums, photos, tags and comments.

    Public listings, and by-id reads made while not logged in, go through the
    response cache. Everything else is fetched fresh.
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        auth: Optional[AuthManager] = None,
        cache: Optional[ResponseCache] = None,
        transport: Optional[Transport] = None,
        fetcher: Optional[FeedFetcher] = None,
    ):
        """Initialize the client.

        Args:
            config: Connection settings
            auth: Authentication state, a fresh unauthenticated manager by default
            cache: Response cache owned by the caller, None to never cache
            transport: Raw transport used for writes
            fetcher: Feed fetcher used for reads
        """
        self.config = config or ClientConfig()
        self.transport = transport or Transport(self.config.timeout)
        self.auth = auth or AuthManager(self.config, self.transport)
        self.cache = cache
        self.fetcher = fetcher or FeedFetcher(
            self.config.host, cache, self.transport, timeout=self.config.timeout
        )
        self.parser = FeedParser(self)

    # Plumbing

    def _auth_header(self) -> Optional[str]:
        if not self.auth.is_authenticated:
            return None
        return self.auth.build_auth_header()

    def _fetch(self, url: str, use_cache: bool) -> bytes:
        return self.fetcher.fetch(url, self._auth_header(), use_cache)

    def _path_of(self, url: str) -> str:
        parts = urlsplit(url)
        if parts.query:
            return f"{parts.path}?{parts.query}"
        return parts.path

    def _write(
        self,
        path: str,
        body: Union[bytes, str, None],
        verb: str,
        content_type: str = ATOM_CONTENT_TYPE,
        extra_headers: Sequence[str] = (),
    ) -> RawHttpResponse:
        """Send an authenticated write request.

        Raises:
            FailedAuthorizationError: If not logged in
            ApiError: If the server rejected the request
        """
        headers = [self.auth.build_auth_header(), *extra_headers]
        try:
            return self.transport.send(
                self.config.host,
                path,
                body,
                verb,
                headers,
                content_type,
                use_tls=self.config.secure,
                port=self.config.port,
            )
        except RequestFailedError as e:
            raise classify(e.response, e.detail, e.url) from e

    @staticmethod
    def _refetch(action: str, fetch: Callable[[], T]) -> T:
        """Run the read that follows a successful write."""
        try:
            return fetch()
        except PicasaError as e:
            raise PicasaError(
                f"The {action}, but then the following error was encountered: {e.message}",
                e.response,
                e.url,
            ) from e

    # Reads

    def get_albums_by_username(
        self,
        username: str,
        max_results: Optional[int] = None,
        start_index: Optional[int] = None,
        visibility: VisibilityArg = Visibility.PUBLIC,
        thumb_sizes: Optional[str] = None,
        max_image_size: Optional[Union[int, str]] = None,
    ) -> Account:
        """Get the album listing of a user.

        Args:
            username: Account to list
            max_results: Maximum number of albums to return
            start_index: 1-based index of the first album to return
            visibility: Which albums to list; private ones need a login
            thumb_sizes: Comma-separated thumbnail sizes
            max_image_size: Size of the image linked as content

        Returns:
            The account with its albums, whose images are loaded on first access
        """
        options = QueryOptions(
            max_results=max_results,
            start_index=start_index,
            visibility=visibility,
            thumb_sizes=thumb_sizes,
            max_image_size=max_image_size,
        )
        url = feed_url(self.config.feed_url, f"/user/{username}", "album", options)
        logger.info("Fetching albums for user %s", username)
        return self.parser.parse_account(self._fetch(url, _is_public(visibility)), url)

    def get_images(
        self,
        username: Optional[str] = None,
        max_results: Optional[int] = None,
        start_index: Optional[int] = None,
        keywords: Optional[str] = None,
        tags: Optional[str] = None,
        visibility: VisibilityArg = None,
        thumb_sizes: Optional[str] = None,
        max_image_size: Optional[Union[int, str]] = None,
        sort_descending: bool = True,
        bounding_box: Optional[str] = None,
        location: Optional[str] = None,
    ) -> ImageCollection:
        """Search photos of one user, or of every user when no username is given."""
        path = f"/user/{username}" if username else "/all"
        options = QueryOptions(
            max_results=max_results,
            start_index=start_index,
            keywords=keywords,
            tags=tags,
            visibility=visibility,
            thumb_sizes=thumb_sizes,
            max_image_size=max_image_size,
            location=location,
            sort_descending=sort_descending,
            bounding_box=bounding_box,
        )
        url = feed_url(self.config.feed_url, path, "photo", options)
        return self.parser.parse_image_collection(self._fetch(url, _is_public(visibility)), url)

    def get_album_by_id(
        self,
        username: str,
        album_id: str,
        max_results: Optional[int] = None,
        start_index: Optional[int] = None,
        keywords: Optional[str] = None,
        tags: Optional[str] = None,
        thumb_sizes: Optional[str] = None,
        max_image_size: Optional[Union[int, str]] = None,
    ) -> Album:
        """Get an album together with its images."""
        options = QueryOptions(
            max_results=max_results,
            start_index=start_index,
            keywords=keywords,
            tags=tags,
            thumb_sizes=thumb_sizes,
            max_image_size=max_image_size,
        )
        url = feed_url(
            self.config.feed_url, f"/user/{username}/albumid/{album_id}", "photo", options
        )
        logger.info("Fetching album %s for user %s", album_id, username)
        return self.parser.parse_album(self._fetch(url, not self.auth.is_authenticated), url)

    def _get_album_entry(self, username: str, album_id: str) -> Album:
        url = f"{self.config.entry_url}/user/{username}/albumid/{album_id}"
        return self.parser.parse_album(self._fetch(url, not self.auth.is_authenticated), url)

    def get_image_by_id(
        self,
        username: str,
        album_id: str,
        image_id: str,
        thumb_sizes: Optional[str] = None,
        max_image_size: Optional[Union[int, str]] = None,
    ) -> Image:
        """Get a photo together with its comments."""
        options = QueryOptions(thumb_sizes=thumb_sizes, max_image_size=max_image_size)
        url = feed_url(
            self.config.feed_url,
            f"/user/{username}/albumid/{album_id}/photoid/{image_id}",
            None,
            options,
        )
        logger.info("Fetching image %s for user %s", image_id, username)
        return self.parser.parse_image(self._fetch(url, not self.auth.is_authenticated), url)

    def _get_image_entry(self, username: str, album_id: str, image_id: str) -> Image:
        url = f"{self.config.entry_url}/user/{username}/albumid/{album_id}/photoid/{image_id}"
        return self.parser.parse_image(self._fetch(url, not self.auth.is_authenticated), url)

    def get_tags_by_username(
        self,
        username: str,
        album_id: Optional[str] = None,
        max_results: Optional[int] = None,
        start_index: Optional[int] = None,
        visibility: VisibilityArg = Visibility.PUBLIC,
    ) -> List[Tag]:
        """Get the tags used by a user, or within one of their albums."""
        path = f"/user/{username}"
        if album_id is not None:
            path += f"/albumid/{album_id}"
        options = QueryOptions(
            max_results=max_results, start_index=start_index, visibility=visibility
        )
        url = feed_url(self.config.feed_url, path, "tag", options)
        return self.parser.parse_tags(self._fetch(url, _is_public(visibility)), url)

    def get_comment_by_id(
        self, username: str, album_id: str, image_id: str, comment_id: str
    ) -> Comment:
        url = (
            f"{self.config.entry_url}/user/{username}/albumid/{album_id}"
            f"/photoid/{image_id}/commentid/{comment_id}"
        )
        return self.parser.parse_comment(self._fetch(url, not self.auth.is_authenticated), url)

    def get_comments_by_username(
        self,
        username: str,
        album_id: Optional[str] = None,
        max_results: Optional[int] = None,
        start_index: Optional[int] = None,
        visibility: VisibilityArg = Visibility.PUBLIC,
    ) -> List[Comment]:
        """Get the comments on a user's photos, or on the photos of one album."""
        path = f"/user/{username}"
        if album_id is not None:
            path += f"/albumid/{album_id}"
        options = QueryOptions(
            max_results=max_results, start_index=start_index, visibility=visibility
        )
        url = feed_url(self.config.feed_url, path, "comment", options)
        return self.parser.parse_comments(self._fetch(url, _is_public(visibility)), url)

    def get_contacts_by_username(self, username: str) -> List[Author]:
        url = feed_url(self.config.feed_url, f"/user/{username}/contacts", "user")
        return self.parser.parse_authors(self._fetch(url, True), url)

    def download_content(self, image: Image) -> bytes:
        """Download the full-size bytes of a photo."""
        if not image.content:
            raise PicasaError("The image has no content URL.", None, image.id)
        return self.fetcher.download(image.content)

    # Lazy field resolution

    def resolve_album_images(self, username: str, album_id: str) -> List[Image]:
        return self.get_album_by_id(username, album_id).images or []

    def resolve_album_tags(self, username: str, album_id: str, visibility: VisibilityArg) -> List[Tag]:
        return self.get_tags_by_username(username, album_id, LAZY_PAGE_SIZE, 1, visibility)

    def resolve_album_comments(
        self, username: str, album_id: str, visibility: VisibilityArg
    ) -> List[Comment]:
        return self.get_comments_by_username(username, album_id, LAZY_PAGE_SIZE, 1, visibility)

    def resolve_image_comments(self, username: str, album_id: str, image_id: str) -> List[Comment]:
        return self.get_image_by_id(username, album_id, image_id).comments or []

    # Writes

    def post_album(
        self,
        username: str,
        title: str,
        summary: str = "",
        rights: VisibilityArg = Visibility.PUBLIC,
        commenting_enabled: bool = True,
        location: str = "",
        timestamp: Optional[int] = None,
        icon: Optional[str] = None,
        gml_position: Optional[str] = None,
    ) -> Album:
        """Create an album.

        Args:
            username: Owner of the new album
            title: Album title
            summary: Album description
            rights: public or private
            commenting_enabled: Whether others may comment on the photos
            location: Place name
            timestamp: Album date in milliseconds since the epoch, now by default
            icon: URL of the cover image
            gml_position: Latitude and longitude separated by a space

        Returns:
            The created album as stored by the server
        """
        draft = AlbumDraft(
            title=title,
            summary=summary,
            rights=rights,
            commenting_enabled=commenting_enabled,
            location=location,
            timestamp=timestamp if timestamp is not None else _now_millis(),
            icon=icon,
            gml_position=gml_position,
        )
        response = self._write(f"{FEED_PATH}/user/{username}", album_entry_xml(draft), "POST")
        album_id = self.parser.parse_album(response.body).id_number
        logger.info("Created album %s for user %s", album_id, username)
        return self._refetch(
            "album was successfully created", lambda: self.get_album_by_id(username, album_id)
        )

    def _upload(
        self, username: str, album_id: str, payload: bytes, content_type: str, draft: ImageDraft
    ) -> Image:
        body = build_multipart(image_entry_xml(draft), payload, content_type)
        response = self._write(
            f"{FEED_PATH}/user/{username}/albumid/{album_id}",
            body,
            "POST",
            MULTIPART_CONTENT_TYPE,
            [MIME_VERSION_HEADER],
        )
        image_id = self.parser.parse_image(response.body).id_number
        logger.info("Uploaded image %s to album %s", image_id, album_id)
        return self._refetch(
            "image was successfully uploaded",
            lambda: self.get_image_by_id(username, album_id, image_id),
        )

    def post_image(
        self,
        username: str,
        album_id: str,
        file_path: str,
        content_type: Optional[str] = None,
        title: Optional[str] = None,
        summary: str = "",
        keywords: str = "",
        commenting_enabled: bool = True,
        timestamp: Optional[int] = None,
        gml_position: Optional[str] = None,
    ) -> Image:
        """Upload a photo from disk into an album.

        The content type is detected from the file when not given, and the
        title defaults to the file name.

        Raises:
            UploadFileNotFoundError: If the file cannot be read
        """
        payload = read_upload(file_path)
        draft = ImageDraft(
            title=title if title is not None else os.path.basename(file_path),
            summary=summary,
            keywords=keywords,
            commenting_enabled=commenting_enabled,
            timestamp=timestamp if timestamp is not None else _now_millis(),
            gml_position=gml_position,
        )
        return self._upload(
            username, album_id, payload, content_type or detect_image_type(file_path), draft
        )

    def post_tag(self, username: str, album_id: str, image_id: str, tag: str) -> Image:
        """Tag a photo and return the photo as stored afterwards."""
        self._write(
            f"{FEED_PATH}/user/{username}/albumid/{album_id}/photoid/{image_id}",
            tag_entry_xml(tag),
            "POST",
        )
        return self._refetch(
            "tag was successfully added",
            lambda: self.get_image_by_id(username, album_id, image_id),
        )

    def post_comment(self, username: str, album_id: str, image_id: str, comment: str) -> Comment:
        """Comment on a photo and return the stored comment."""
        response = self._write(
            f"{FEED_PATH}/user/{username}/albumid/{album_id}/photoid/{image_id}",
            comment_entry_xml(comment),
            "POST",
        )
        comment_url = self.parser.parse_entry_id(response.body)
        return self._refetch(
            "comment was successfully posted",
            lambda: self.parser.parse_comment(self._fetch(comment_url, False), comment_url),
        )

    def update_album(
        self,
        username: str,
        album_id: str,
        title: Optional[str] = None,
        summary: Optional[str] = None,
        icon: Optional[str] = None,
        rights: VisibilityArg = None,
        commenting_enabled: Optional[bool] = None,
        location: Optional[str] = None,
        timestamp: Optional[int] = None,
        gml_position: Optional[str] = None,
    ) -> Album:
        """Change album fields. Fields left as None keep their stored values."""
        current = self._get_album_entry(username, album_id)
        changes = AlbumDraft(
            title=title,
            summary=summary,
            rights=rights,
            commenting_enabled=commenting_enabled,
            location=location,
            timestamp=timestamp,
            icon=icon,
            gml_position=gml_position,
        )
        data = album_entry_xml(merge_album_update(current, changes), current.id_number)
        if current.edit_link:
            path = self._path_of(current.edit_link)
        else:
            path = f"{ENTRY_PATH}/user/{username}/albumid/{album_id}"
        self._write(path, data, "PUT")
        return self._refetch(
            "album was successfully updated", lambda: self.get_album_by_id(username, album_id)
        )

    def update_image(
        self,
        username: str,
        album_id: str,
        image_id: str,
        title: Optional[str] = None,
        summary: Optional[str] = None,
        keywords: Optional[str] = None,
        commenting_enabled: Optional[bool] = None,
        timestamp: Optional[int] = None,
        gml_position: Optional[str] = None,
        file_path: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> Image:
        """Change a photo's metadata, replace its bytes, or both.

        Returns the stored photo unchanged when nothing was asked for.
        """
        current = self._get_image_entry(username, album_id, image_id)
        changes = ImageDraft(
            title=title,
            summary=summary,
            keywords=keywords,
            commenting_enabled=commenting_enabled,
            timestamp=timestamp,
            gml_position=gml_position,
        )
        metadata_update = not changes.is_empty()
        binary_update = file_path is not None
        if not metadata_update and not binary_update:
            return current

        suffix = f"/user/{username}/albumid/{album_id}/photoid/{image_id}"
        if current.version:
            suffix += f"/{current.version}"

        payload = metadata = None
        if binary_update:
            payload = read_upload(file_path)
            content_type = content_type or detect_image_type(file_path)
        if metadata_update:
            metadata = image_entry_xml(merge_image_update(current, changes))

        if metadata_update and binary_update:
            self._write(
                MEDIA_PATH + suffix,
                build_multipart(metadata, payload, content_type),
                "PUT",
                MULTIPART_CONTENT_TYPE,
                [MIME_VERSION_HEADER],
            )
        elif metadata_update:
            self._write(ENTRY_PATH + suffix, metadata, "PUT")
        else:
            self._write(MEDIA_PATH + suffix, payload, "PUT", content_type, [MIME_VERSION_HEADER])

        return self._refetch(
            "image was successfully updated",
            lambda: self.get_image_by_id(username, album_id, image_id),
        )

    def delete_album(self, username: str, album_id: str) -> bool:
        current = self._get_album_entry(username, album_id)
        if current.edit_link:
            path = self._path_of(current.edit_link)
        else:
            path = f"{ENTRY_PATH}/user/{username}/albumid/{album_id}"
        self._write(path, None, "DELETE")
        logger.info("Deleted album %s of user %s", album_id, username)
        return True

    def delete_image(self, username: str, album_id: str, image_id: str) -> bool:
        current = self._get_image_entry(username, album_id, image_id)
        path = f"{ENTRY_PATH}/user/{username}/albumid/{album_id}/photoid/{image_id}"
        if current.version:
            path += f"/{current.version}"
        self._write(path, None, "DELETE", FORM_CONTENT_TYPE)
        logger.info("Deleted image %s from album %s", image_id, album_id)
        return True

    def delete_tag(self, username: str, album_id: str, image_id: str, tag: str) -> bool:
        path = (
            f"{ENTRY_PATH}/user/{username}/albumid/{album_id}"
            f"/photoid/{image_id}/tag/{quote(tag)}"
        )
        self._write(path, None, "DELETE", FORM_CONTENT_TYPE)
        return True

    def delete_comment(self, username: str, album_id: str, image_id: str, comment_id: str) -> bool:
        path = (
            f"{ENTRY_PATH}/user/{username}/albumid/{album_id}"
            f"/photoid/{image_id}/commentid/{comment_id}"
        )
        self._write(path, None, "DELETE", FORM_CONTENT_TYPE)
        return True

    # Copies

    def copy_image(self, destination_username: str, destination_album_id: str, image: Image) -> Image:
        """Upload a copy of a photo, with its metadata, into another album."""
        payload = self.download_content(image)
        draft = ImageDraft(
            title=image.title or "",
            summary=image.description or "",
            keywords=",".join(image.tags or []),
            commenting_enabled=(
                image.commenting_enabled if image.commenting_enabled is not None else True
            ),
            timestamp=image.timestamp if image.timestamp is not None else _now_millis(),
            gml_position=image.gml_position,
        )
        content_type = image.image_type or "image/jpeg"
        return self._upload(destination_username, destination_album_id, payload, content_type, draft)

    def copy_album(self, destination_username: str, album: Album) -> Album:
        """Create a copy of an album, photos included, under another account."""
        new_album = self.post_album(
            destination_username,
            album.title or "",
            album.summary or "",
            album.rights or Visibility.PUBLIC,
            album.commenting_enabled if album.commenting_enabled is not None else True,
            album.location or "",
            album.timestamp,
            album.icon,
            album.gml_position,
        )
        for image in album.images or []:
            self.copy_image(destination_username, new_album.id_number, image)
        return new_album
