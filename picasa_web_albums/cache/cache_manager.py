"""On-disk response cache for Picasa Web Albums feed queries."""

import logging
import os
import re
import tempfile
import time
from typing import Callable, Optional, Union

from picasa_web_albums.config import DEFAULT_CACHE_DIR, DEFAULT_CACHE_EXPIRE

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*]')

_default_cache: Optional["ResponseCache"] = None


class ResponseCache:
    """Maps request URLs to raw response bodies, one file per URL.

    Entries expire ``expire`` seconds after they were last written. Expiry is
    checked when an entry is read; nothing is purged in the background.
    """

    def __init__(
        self,
        cache_path: str = DEFAULT_CACHE_DIR,
        expire: int = DEFAULT_CACHE_EXPIRE,
        enabled: bool = True,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the cache.

        Args:
            cache_path: Directory holding the cache files
            expire: Lifetime of an entry in seconds
            enabled: If False, every lookup misses and nothing is stored
            clock: Source of the current time, compared against file mtimes
        """
        self.cache_path = cache_path
        self.expire = expire
        self._clock = clock
        self._enabled = False
        self.set_enabled(enabled)

    def _prepare_directory(self) -> bool:
        """Create the cache directory if needed and check it is writable."""
        if not os.path.isdir(self.cache_path):
            try:
                os.makedirs(self.cache_path, exist_ok=True)
            except OSError as e:
                logger.warning(
                    "Cache path %s did not exist and could not be created (%s). "
                    "Caching has been disabled.",
                    self.cache_path,
                    e,
                )
                return False
        if not os.access(self.cache_path, os.W_OK):
            logger.warning(
                "Cache path %s exists but is not writable. Caching has been disabled.",
                self.cache_path,
            )
            return False
        return True

    @property
    def enabled(self) -> bool:
        return self._enabled

    def set_enabled(self, enabled: bool) -> None:
        """Turn caching on or off.

        Turning it on falls back to off when the directory is unusable.
        """
        self._enabled = enabled and self._prepare_directory()
        logger.debug("Caching %s.", "enabled" if self._enabled else "disabled")

    @staticmethod
    def cache_key(url: str) -> str:
        """Return the file name used for a URL."""
        return _UNSAFE_FILENAME_CHARS.sub(".", url)

    def _file_for(self, url: str) -> str:
        return os.path.join(self.cache_path, self.cache_key(url))

    def _is_expired(self, path: str) -> bool:
        return self._clock() - os.path.getmtime(path) > self.expire

    def is_cached(self, url: Optional[str]) -> bool:
        """Check whether a fresh entry exists for a URL."""
        if url is None:
            return False
        path = self._file_for(url)
        logger.debug("Checking if cache key %s exists in the cache.", self.cache_key(url))
        try:
            return os.access(path, os.R_OK) and not self._is_expired(path)
        except OSError:
            return False

    def get_if_cached(self, url: Optional[str]) -> Optional[bytes]:
        """Return the cached body for a URL, or None on a miss.

        Args:
            url: Request URL

        Returns:
            Raw response body, or None if absent, expired or caching is off
        """
        if url is None:
            logger.debug("Null cache key passed to get_if_cached.")
            return None
        if not self._enabled or not self.is_cached(url):
            return None
        try:
            with open(self._file_for(url), "rb") as cached:
                return cached.read()
        except OSError as e:
            logger.debug("Could not read cache entry for %s: %s", url, e)
            return None

    def set_in_cache(self, url: str, contents: Union[bytes, str, None]) -> bool:
        """Store a response body for a URL.

        Empty bodies are not stored. The file is written under a temporary name
        and moved into place so a reader never sees a partial entry.

        Args:
            url: Request URL
            contents: Raw response body

        Returns:
            True if the entry was written
        """
        if not self._enabled or not contents:
            return False
        if isinstance(contents, str):
            contents = contents.encode("utf-8")

        target = self._file_for(url)
        try:
            fd, temp_path = tempfile.mkstemp(dir=self.cache_path, prefix=".tmp-")
        except OSError as e:
            logger.warning("Could not write cache entry for %s: %s", url, e)
            return False
        try:
            with os.fdopen(fd, "wb") as temp_file:
                temp_file.write(contents)
            os.replace(temp_path, target)
        except OSError as e:
            logger.warning("Could not write cache entry for %s: %s", url, e)
            if os.path.exists(temp_path):
                os.unlink(temp_path)
            return False
        return True

    def clear(self, url: Optional[str] = None) -> bool:
        """Remove one entry, or every entry when no URL is given.

        Returns:
            True if everything asked for was removed
        """
        if url is not None:
            try:
                os.unlink(self._file_for(url))
            except OSError:
                logger.debug("Item could not be cleared from cache: %s", url)
                return False
            logger.debug("Item successfully cleared from cache: %s", url)
            return True

        success = True
        try:
            names = os.listdir(self.cache_path)
        except OSError:
            return False
        for name in names:
            try:
                os.unlink(os.path.join(self.cache_path, name))
            except OSError:
                logger.warning("Unable to remove cache item: %s", name)
                success = False
        if success:
            logger.debug("Cache cleared.")
        return success


def get_default_cache(
    cache_path: str = DEFAULT_CACHE_DIR, expire: int = DEFAULT_CACHE_EXPIRE, enabled: bool = True
) -> ResponseCache:
    """Return the process-wide cache, creating it on first call."""
    global _default_cache
    if _default_cache is None:
        _default_cache = ResponseCache(cache_path, expire, enabled)
    return _default_cache
