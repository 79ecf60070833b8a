"""Test configuration for pytest."""

import sys
from pathlib import Path
from typing import Dict, List, Optional, Tuple
from unittest.mock import MagicMock

import pytest

from picasa_web_albums.api.transport import RawHttpResponse, Transport
from picasa_web_albums.cache.cache_manager import ResponseCache

# Add the project root directory to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

NAMESPACES = (
    "xmlns='http://www.w3.org/2005/Atom' "
    "xmlns:openSearch='http://a9.com/-/spec/opensearchrss/1.0/' "
    "xmlns:gphoto='http://schemas.google.com/photos/2007' "
    "xmlns:media='http://search.yahoo.com/mrss/' "
    "xmlns:exif='http://schemas.google.com/photos/exif/2007' "
    "xmlns:georss='http://www.georss.org/georss' "
    "xmlns:gml='http://www.opengis.net/gml'"
)

ENTRY_BASE = "http://picasaweb.google.com/data/entry/api/user/jdoe"


def photo_entry(photo_id: str, title: str, keywords: str = "beach, sea,beach", comments: int = 2) -> str:
    """Return a photo <entry> of album 100 with three thumbnails."""
    return f"""
  <entry>
    <id>{ENTRY_BASE}/albumid/100/photoid/{photo_id}</id>
    <updated>2008-02-0{photo_id[-1]}T10:00:00.000Z</updated>
    <title type='text'>{title}</title>
    <link rel='alternate' type='text/html' href='http://picasaweb.google.com/jdoe/Holidays#{photo_id}'/>
    <gphoto:id>{photo_id}</gphoto:id>
    <gphoto:version>7</gphoto:version>
    <gphoto:albumid>100</gphoto:albumid>
    <gphoto:width>1600</gphoto:width>
    <gphoto:height>1200</gphoto:height>
    <gphoto:timestamp>1201860000000</gphoto:timestamp>
    <gphoto:commentingEnabled>true</gphoto:commentingEnabled>
    <gphoto:commentCount>{comments}</gphoto:commentCount>
    <exif:tags>
      <exif:fstop>2.8</exif:fstop>
      <exif:make>Canon</exif:make>
      <exif:model>PowerShot</exif:model>
      <exif:iso>100</exif:iso>
    </exif:tags>
    <georss:where><gml:Point><gml:pos>50.82 -0.13</gml:pos></gml:Point></georss:where>
    <media:group>
      <media:content url='http://lh3.ggpht.com/jdoe/{photo_id}.jpg' height='1200' width='1600' type='image/jpeg' medium='image'/>
      <media:description type='plain'>Photo {photo_id}</media:description>
      <media:keywords>{keywords}</media:keywords>
      <media:thumbnail url='http://lh3.ggpht.com/jdoe/s72/{photo_id}.jpg' height='54' width='72'/>
      <media:thumbnail url='http://lh3.ggpht.com/jdoe/s144/{photo_id}.jpg' height='108' width='144'/>
      <media:thumbnail url='http://lh3.ggpht.com/jdoe/s288/{photo_id}.jpg' height='216' width='288'/>
      <media:title type='plain'>{title}</media:title>
    </media:group>
  </entry>"""


def comment_entry(comment_id: str, photo_id: str, content: str) -> str:
    return f"""
  <entry>
    <id>{ENTRY_BASE}/albumid/100/photoid/{photo_id}/commentid/{comment_id}</id>
    <published>2008-03-01T12:00:00.000Z</published>
    <updated>2008-03-01T12:00:00.000Z</updated>
    <title type='text'>Jane Roe</title>
    <content type='text'>{content}</content>
    <author><name>Jane Roe</name><uri>http://picasaweb.google.com/jroe</uri>
      <gphoto:user>jroe</gphoto:user><gphoto:nickname>Jane</gphoto:nickname></author>
    <gphoto:id>{comment_id}</gphoto:id>
    <gphoto:photoid>{photo_id}</gphoto:photoid>
  </entry>"""


USER_FEED = f"""<?xml version='1.0' encoding='UTF-8'?>
<feed {NAMESPACES}>
  <id>http://picasaweb.google.com/data/feed/api/user/jdoe</id>
  <title type='text'>jdoe</title>
  <subtitle type='text'></subtitle>
  <icon>http://lh3.ggpht.com/jdoe/icon.jpg</icon>
  <link rel='alternate' type='text/html' href='http://picasaweb.google.com/jdoe'/>
  <author><name>John Doe</name><uri>http://picasaweb.google.com/jdoe</uri></author>
  <gphoto:user>jdoe</gphoto:user>
  <gphoto:nickname>John</gphoto:nickname>
  <gphoto:thumbnail>http://lh3.ggpht.com/jdoe/avatar.jpg</gphoto:thumbnail>
  <entry>
    <id>{ENTRY_BASE}/albumid/100</id>
    <published>2008-01-01T00:00:00.000Z</published>
    <updated>2008-01-02T00:00:00.000Z</updated>
    <title type='text'>Holidays</title>
    <summary type='text'>Beach trip</summary>
    <rights type='text'>public</rights>
    <link rel='alternate' type='text/html' href='http://picasaweb.google.com/jdoe/Holidays'/>
    <link rel='edit' type='application/atom+xml' href='{ENTRY_BASE}/albumid/100/1199145600'/>
    <author><name>John Doe</name><uri>http://picasaweb.google.com/jdoe</uri></author>
    <gphoto:id>100</gphoto:id>
    <gphoto:location>Brighton</gphoto:location>
    <gphoto:numphotos>3</gphoto:numphotos>
    <gphoto:commentingEnabled>true</gphoto:commentingEnabled>
    <gphoto:commentCount>1</gphoto:commentCount>
    <gphoto:timestamp>1199145600000</gphoto:timestamp>
    <media:group>
      <media:thumbnail url='http://lh3.ggpht.com/jdoe/holidays.jpg' height='160' width='160'/>
    </media:group>
  </entry>
  <entry>
    <id>{ENTRY_BASE}/albumid/200</id>
    <title type='text'>Empty</title>
    <rights type='text'>private</rights>
    <author><name>John Doe</name></author>
    <gphoto:id>200</gphoto:id>
    <gphoto:numphotos>0</gphoto:numphotos>
  </entry>
</feed>
""".encode("utf-8")

ALBUM_FEED = f"""<?xml version='1.0' encoding='UTF-8'?>
<feed {NAMESPACES}>
  <id>http://picasaweb.google.com/data/feed/api/user/jdoe/albumid/100</id>
  <updated>2008-01-02T00:00:00.000Z</updated>
  <title type='text'>Holidays</title>
  <subtitle type='text'>Beach trip</subtitle>
  <rights>public</rights>
  <icon>http://lh3.ggpht.com/jdoe/holidays.jpg</icon>
  <link rel='alternate' type='text/html' href='http://picasaweb.google.com/jdoe/Holidays'/>
  <author><name>John Doe</name><uri>http://picasaweb.google.com/jdoe</uri></author>
  <gphoto:id>100</gphoto:id>
  <gphoto:user>jdoe</gphoto:user>
  <gphoto:nickname>John</gphoto:nickname>
  <gphoto:location>Brighton</gphoto:location>
  <gphoto:numphotos>3</gphoto:numphotos>
  {photo_entry("301", "sunrise.jpg")}
  {photo_entry("302", "waves.jpg")}
  {photo_entry("303", "sunset.jpg", keywords="", comments=0)}
</feed>
""".encode("utf-8")

ALBUM_ENTRY = f"""<?xml version='1.0' encoding='UTF-8'?>
<entry {NAMESPACES}>
  <id>{ENTRY_BASE}/albumid/100</id>
  <title type='text'>Holidays</title>
  <summary type='text'>Beach trip</summary>
  <rights type='text'>public</rights>
  <link rel='edit' type='application/atom+xml' href='http://picasaweb.google.com/data/entry/api/user/jdoe/albumid/100/1199145600'/>
  <gphoto:id>100</gphoto:id>
  <gphoto:user>jdoe</gphoto:user>
  <gphoto:location>Brighton</gphoto:location>
  <gphoto:numphotos>3</gphoto:numphotos>
  <gphoto:commentingEnabled>true</gphoto:commentingEnabled>
  <gphoto:timestamp>1199145600000</gphoto:timestamp>
</entry>
""".encode("utf-8")

PHOTO_FEED = f"""<?xml version='1.0' encoding='UTF-8'?>
<feed {NAMESPACES}>
  <id>http://picasaweb.google.com/data/feed/api/user/jdoe/albumid/100/photoid/302</id>
  <updated>2008-02-02T10:00:00.000Z</updated>
  <title type='text'>waves.jpg</title>
  <gphoto:id>302</gphoto:id>
  <gphoto:version>7</gphoto:version>
  <gphoto:albumid>100</gphoto:albumid>
  <gphoto:commentCount>2</gphoto:commentCount>
  <media:group>
    <media:content url='http://lh3.ggpht.com/jdoe/302.jpg' height='1200' width='1600' type='image/jpeg'/>
    <media:description type='plain'>Photo 302</media:description>
    <media:keywords>beach</media:keywords>
  </media:group>
  {comment_entry("900", "302", "Lovely")}
  {comment_entry("901", "302", "Great light")}
</feed>
""".encode("utf-8")

PHOTO_ENTRY = f"""<?xml version='1.0' encoding='UTF-8'?>
{photo_entry("302", "waves.jpg").strip().replace("<entry>", f"<entry {NAMESPACES}>", 1)}
""".encode("utf-8")

COMMENT_ENTRY = f"""<?xml version='1.0' encoding='UTF-8'?>
{comment_entry("900", "302", "Lovely").strip().replace("<entry>", f"<entry {NAMESPACES}>", 1)}
""".encode("utf-8")

COMMENT_FEED = f"""<?xml version='1.0' encoding='UTF-8'?>
<feed {NAMESPACES}>
  <id>http://picasaweb.google.com/data/feed/api/user/jdoe</id>
  {comment_entry("900", "302", "Lovely")}
  {comment_entry("901", "301", "Great light")}
</feed>
""".encode("utf-8")

TAG_FEED = f"""<?xml version='1.0' encoding='UTF-8'?>
<feed {NAMESPACES}>
  <id>http://picasaweb.google.com/data/feed/api/user/jdoe</id>
  <entry>
    <id>http://picasaweb.google.com/data/entry/api/user/jdoe/tag/beach</id>
    <updated>2008-02-01T10:00:00.000Z</updated>
    <title type='text'>beach</title>
    <summary type='text'>beach</summary>
    <gphoto:weight>5</gphoto:weight>
  </entry>
  <entry>
    <id>http://picasaweb.google.com/data/entry/api/user/jdoe/tag/sea</id>
    <title type='text'>sea</title>
    <gphoto:weight>2</gphoto:weight>
  </entry>
</feed>
""".encode("utf-8")

CONTACTS_FEED = f"""<?xml version='1.0' encoding='UTF-8'?>
<feed {NAMESPACES}>
  <id>http://picasaweb.google.com/data/feed/api/user/jdoe/contacts</id>
  <entry>
    <id>http://picasaweb.google.com/data/entry/api/user/jroe</id>
    <author><name>Jane Roe</name><uri>http://picasaweb.google.com/jroe</uri></author>
    <gphoto:user>jroe</gphoto:user>
    <gphoto:nickname>Jane</gphoto:nickname>
    <gphoto:thumbnail>http://lh3.ggpht.com/jroe/avatar.jpg</gphoto:thumbnail>
  </entry>
</feed>
""".encode("utf-8")

SEARCH_FEED = f"""<?xml version='1.0' encoding='UTF-8'?>
<feed {NAMESPACES}>
  <id>http://picasaweb.google.com/data/feed/api/all</id>
  <title type='text'>Search Results</title>
  <openSearch:totalResults>42</openSearch:totalResults>
  <openSearch:startIndex>1</openSearch:startIndex>
  <openSearch:itemsPerPage>2</openSearch:itemsPerPage>
  {photo_entry("301", "sunrise.jpg")}
  {photo_entry("302", "waves.jpg")}
</feed>
""".encode("utf-8")

# Atom only: none of the extension namespaces are declared.
BARE_ENTRY = b"""<?xml version='1.0' encoding='UTF-8'?>
<entry xmlns='http://www.w3.org/2005/Atom'>
  <id>http://picasaweb.google.com/data/entry/api/user/jdoe/albumid/100/photoid/301</id>
  <title>plain.jpg</title>
</entry>
"""


def raw_response(status: str, body: bytes = b"", headers: Optional[List[str]] = None) -> bytes:
    """Build a raw HTTP response buffer."""
    head = f"HTTP/1.1 {status}\r\n" + "".join(f"{h}\r\n" for h in headers or [])
    return head.encode("ascii") + b"\r\n" + body


class FakeResponse:
    """Stands in for the response of google.auth.transport.requests.Request."""

    def __init__(self, status: int, data: bytes = b"", headers: Optional[Dict[str, str]] = None):
        self.status = status
        self.data = data
        self.headers = headers or {}


class FakeRequest:
    """Stands in for google.auth.transport.requests.Request, routing by exact URL."""

    def __init__(self, routes: Optional[Dict[str, Tuple[int, bytes]]] = None):
        self.routes = dict(routes or {})
        self.calls: List[Dict] = []

    def __call__(self, url, method="GET", body=None, headers=None, timeout=None, **kwargs):
        self.calls.append({"url": url, "method": method, "headers": headers})
        status, data = self.routes.get(url, (404, b""))
        return FakeResponse(status, data)


@pytest.fixture
def fake_request() -> FakeRequest:
    return FakeRequest()


@pytest.fixture
def mock_transport() -> MagicMock:
    """Create a transport whose send() answers 201 Created with an empty body."""
    transport = MagicMock(spec=Transport)
    transport.send.return_value = RawHttpResponse.parse(raw_response("201 Created"))
    return transport


@pytest.fixture
def response_cache(tmp_path) -> ResponseCache:
    """Create a cache in a temporary directory."""
    return ResponseCache(str(tmp_path / "cache"))


class SampleFeeds:
    """Sample documents shaped like the service's responses."""
    user = USER_FEED
    album = ALBUM_FEED
    album_entry = ALBUM_ENTRY
    photo = PHOTO_FEED
    photo_entry = PHOTO_ENTRY
    comment_entry = COMMENT_ENTRY
    comments = COMMENT_FEED
    tags = TAG_FEED
    contacts = CONTACTS_FEED
    search = SEARCH_FEED
    bare_entry = BARE_ENTRY

    @staticmethod
    def album_with_photos(count: int) -> bytes:
        entries = "".join(photo_entry(str(1000 + i), f"photo{i}.jpg") for i in range(count))
        return f"<feed {NAMESPACES}><id>big</id><gphoto:user>jdoe</gphoto:user>{entries}</feed>".encode(
            "utf-8"
        )


@pytest.fixture
def feeds() -> SampleFeeds:
    return SampleFeeds()


@pytest.fixture
def http_response():
    """Return a builder of raw HTTP response buffers."""
    return raw_response
