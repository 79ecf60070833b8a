"""Construction of the Atom entries sent to create or update resources."""

from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Optional, Union

from lxml import etree

from picasa_web_albums.feeds.namespaces import (
    ATOM_NS,
    ENTRY_NSMAP,
    GEORSS_NS,
    GML_NS,
    GPHOTO_NS,
    MEDIA_NS,
)
from picasa_web_albums.models import Album, Image, Visibility

KIND_SCHEME = "http://schemas.google.com/g/2005#kind"
KIND_TERM = "http://schemas.google.com/photos/2007#{}"


@dataclass(frozen=True)
class AlbumDraft:
    """Album fields to send. None means the field is left out."""
    title: Optional[str] = None
    summary: Optional[str] = None
    rights: Optional[Union[Visibility, str]] = None
    commenting_enabled: Optional[bool] = None
    location: Optional[str] = None
    timestamp: Optional[int] = None
    icon: Optional[str] = None
    gml_position: Optional[str] = None


@dataclass(frozen=True)
class ImageDraft:
    """Image metadata to send. None means the field is left out."""
    title: Optional[str] = None
    summary: Optional[str] = None
    keywords: Optional[str] = None
    commenting_enabled: Optional[bool] = None
    timestamp: Optional[int] = None
    gml_position: Optional[str] = None

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))


def _format(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def _add(parent: etree._Element, namespace: str, name: str, value: object, **attrib) -> None:
    if value is None:
        return
    child = etree.SubElement(parent, f"{{{namespace}}}{name}", **attrib)
    child.text = _format(value)


def _add_position(entry: etree._Element, gml_position: Optional[str]) -> None:
    if gml_position is None:
        return
    where = etree.SubElement(entry, f"{{{GEORSS_NS}}}where")
    point = etree.SubElement(where, f"{{{GML_NS}}}Point")
    _add(point, GML_NS, "pos", gml_position)


def _new_entry() -> etree._Element:
    return etree.Element(f"{{{ATOM_NS}}}entry", nsmap=ENTRY_NSMAP)


def _finish(entry: etree._Element, kind: str) -> str:
    etree.SubElement(
        entry, f"{{{ATOM_NS}}}category", scheme=KIND_SCHEME, term=KIND_TERM.format(kind)
    )
    return etree.tostring(entry, encoding="unicode")


def album_entry_xml(draft: AlbumDraft, album_id: Optional[str] = None) -> str:
    """Build the entry for creating an album or, with ``album_id``, updating one."""
    entry = _new_entry()
    _add(entry, ATOM_NS, "title", draft.title, type="text")
    _add(entry, ATOM_NS, "summary", draft.summary, type="text")
    _add(entry, ATOM_NS, "icon", draft.icon)
    _add(entry, GPHOTO_NS, "id", album_id)
    _add(entry, GPHOTO_NS, "timestamp", draft.timestamp)
    _add_position(entry, draft.gml_position)
    _add(entry, GPHOTO_NS, "location", draft.location)
    _add(entry, GPHOTO_NS, "access", draft.rights)
    _add(entry, GPHOTO_NS, "commentingEnabled", draft.commenting_enabled)
    return _finish(entry, "album")


def image_entry_xml(draft: ImageDraft) -> str:
    """Build the metadata entry of a photo upload or update."""
    entry = _new_entry()
    _add(entry, ATOM_NS, "title", draft.title)
    _add(entry, ATOM_NS, "summary", draft.summary)
    _add(entry, GPHOTO_NS, "commentingEnabled", draft.commenting_enabled)
    _add(entry, GPHOTO_NS, "timestamp", draft.timestamp)
    _add_position(entry, draft.gml_position)
    if draft.keywords is not None:
        group = etree.SubElement(entry, f"{{{MEDIA_NS}}}group")
        _add(group, MEDIA_NS, "keywords", draft.keywords)
    return _finish(entry, "photo")


def tag_entry_xml(name: str) -> str:
    entry = _new_entry()
    _add(entry, ATOM_NS, "title", name)
    return _finish(entry, "tag")


def comment_entry_xml(text: str) -> str:
    entry = _new_entry()
    _add(entry, ATOM_NS, "content", text)
    return _finish(entry, "comment")


def merge_album_update(current: Album, changes: AlbumDraft) -> AlbumDraft:
    """Fill the unset fields of an album update from the stored album.

    The server replaces the whole entry on update, so a field left out of the
    request would be cleared. The cover icon is only sent when asked for.
    """
    return replace(
        changes,
        title=changes.title if changes.title is not None else current.title,
        summary=changes.summary if changes.summary is not None else current.summary,
        rights=changes.rights if changes.rights is not None else current.rights,
        commenting_enabled=(
            changes.commenting_enabled
            if changes.commenting_enabled is not None
            else current.commenting_enabled
        ),
        location=changes.location if changes.location is not None else current.location,
        timestamp=changes.timestamp if changes.timestamp is not None else current.timestamp,
        gml_position=(
            changes.gml_position if changes.gml_position is not None else current.gml_position
        ),
    )


def merge_image_update(current: Image, changes: ImageDraft) -> ImageDraft:
    """Fill the unset fields of an image metadata update from the stored image."""
    return ImageDraft(
        title=changes.title if changes.title is not None else current.title,
        summary=changes.summary if changes.summary is not None else current.description,
        keywords=changes.keywords if changes.keywords is not None else current.keywords,
        commenting_enabled=(
            changes.commenting_enabled
            if changes.commenting_enabled is not None
            else current.commenting_enabled
        ),
        timestamp=changes.timestamp if changes.timestamp is not None else current.timestamp,
        gml_position=(
            changes.gml_position if changes.gml_position is not None else current.gml_position
        ),
    )
