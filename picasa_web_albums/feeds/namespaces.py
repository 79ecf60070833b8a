"""Alias-based lookup of the optional extension namespaces of a feed."""

from dataclasses import dataclass
from typing import Dict, List, Optional

from lxml import etree

ATOM_NS = "http://www.w3.org/2005/Atom"
GPHOTO_NS = "http://schemas.google.com/photos/2007"
MEDIA_NS = "http://search.yahoo.com/mrss/"
EXIF_NS = "http://schemas.google.com/photos/exif/2007"
GEORSS_NS = "http://www.georss.org/georss"
GML_NS = "http://www.opengis.net/gml"
OPENSEARCH_NS = "http://a9.com/-/spec/opensearchrss/1.0/"

# Namespace map used when building request entries.
ENTRY_NSMAP = {
    None: ATOM_NS,
    "gphoto": GPHOTO_NS,
    "media": MEDIA_NS,
    "georss": GEORSS_NS,
    "gml": GML_NS,
}


@dataclass(frozen=True)
class NamespaceBlock:
    """One declared namespace, with helpers to read its elements."""
    alias: Optional[str]
    uri: Optional[str]

    def tag(self, name: str) -> str:
        if not self.uri:
            return name
        return f"{{{self.uri}}}{name}"

    def child(self, element: Optional[etree._Element], name: str) -> Optional[etree._Element]:
        if element is None:
            return None
        return element.find(self.tag(name))

    def children(self, element: Optional[etree._Element], name: str) -> List[etree._Element]:
        if element is None:
            return []
        return element.findall(self.tag(name))

    def text(self, element: Optional[etree._Element], name: str) -> Optional[str]:
        """Text of the first matching child, None when there is no such child."""
        node = self.child(element, name)
        if node is None:
            return None
        return node.text


@dataclass(frozen=True)
class FeedNamespaces:
    """The namespaces a document declares, looked up by their usual alias.

    A block is None when the document does not declare that alias, in which
    case every field it would carry is left unset by the parser.
    """
    atom: NamespaceBlock
    gphoto: Optional[NamespaceBlock] = None
    media: Optional[NamespaceBlock] = None
    exif: Optional[NamespaceBlock] = None
    georss: Optional[NamespaceBlock] = None
    gml: Optional[NamespaceBlock] = None
    opensearch: Optional[NamespaceBlock] = None

    @staticmethod
    def declared(element: etree._Element) -> Dict[Optional[str], str]:
        """Collect alias to URI declarations in scope anywhere under an element."""
        declared: Dict[Optional[str], str] = {}
        for node in element.iter(tag=etree.Element):
            for alias, uri in node.nsmap.items():
                declared.setdefault(alias, uri)
        return declared

    @classmethod
    def of(cls, element: etree._Element) -> "FeedNamespaces":
        declared = cls.declared(element)

        def block(alias: str) -> Optional[NamespaceBlock]:
            uri = declared.get(alias)
            return NamespaceBlock(alias, uri) if uri else None

        atom_uri = declared.get(None) or etree.QName(element).namespace
        return cls(
            atom=NamespaceBlock(None, atom_uri),
            gphoto=block("gphoto"),
            media=block("media"),
            exif=block("exif"),
            georss=block("georss"),
            gml=block("gml"),
            opensearch=block("openSearch"),
        )

    def is_feed(self, element: etree._Element) -> bool:
        """Whether an element is a feed root rather than a single entry."""
        return element.tag == self.atom.tag("feed")
