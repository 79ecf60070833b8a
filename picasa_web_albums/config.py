"""Configuration for the Picasa Web Albums client."""

from dataclasses import dataclass
from typing import Optional

DEFAULT_HOST = "picasaweb.google.com"
DEFAULT_LOGIN_HOST = "www.google.com"
DEFAULT_SERVICE = "lh2"
DEFAULT_CACHE_DIR = "picasa_api_cache"
DEFAULT_CACHE_EXPIRE = 7200

FEED_PATH = "/data/feed/api"
ENTRY_PATH = "/data/entry/api"
MEDIA_PATH = "/data/media/api"


@dataclass
class ClientConfig:
    """Connection and cache settings shared by the client components."""
    host: str = DEFAULT_HOST
    secure: bool = True
    login_host: str = DEFAULT_LOGIN_HOST
    service: str = DEFAULT_SERVICE
    source: Optional[str] = None
    cache_dir: str = DEFAULT_CACHE_DIR
    cache_expire: int = DEFAULT_CACHE_EXPIRE
    timeout: Optional[float] = None

    @property
    def scheme(self) -> str:
        return "https" if self.secure else "http"

    @property
    def port(self) -> int:
        return 443 if self.secure else 80

    @property
    def feed_url(self) -> str:
        """Base URL of feed queries."""
        return f"{self.scheme}://{self.host}{FEED_PATH}"

    @property
    def entry_url(self) -> str:
        """Base URL of single-entry queries."""
        return f"{self.scheme}://{self.host}{ENTRY_PATH}"

    @property
    def media_url(self) -> str:
        """Base URL of binary media updates."""
        return f"{self.scheme}://{self.host}{MEDIA_PATH}"

    def source_for(self, identity: str) -> str:
        """Return the application name sent with a password login."""
        if self.source:
            return self.source
        return f"{identity}-UsingLightweightPicasaAPI-3.0"
