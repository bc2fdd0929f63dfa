"""Local filesystem cache for form icons."""
import logging
import os
import tempfile
from pathlib import Path

from shared.utils import sanitize_icon_name, verify_image_bytes, CorruptedImageError
from .errors import FetchError, CacheWriteError


class IconCache:
    """Check-then-write cache of icon bytes keyed by icon name.

    Icons are read from ``cache_dir`` when present and otherwise downloaded
    from the blob store and written back, so each icon is fetched once.
    """

    def __init__(self, cache_dir, blob_store, max_bytes=1 << 20):
        self.cache_dir = Path(cache_dir)
        self.blob_store = blob_store
        self.max_bytes = max_bytes
        self.logger = logging.getLogger(self.__class__.__name__)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.logger.info(f"Icon cache initialized in {self.cache_dir}")

    def path_for(self, icon_name):
        return self.cache_dir / sanitize_icon_name(icon_name)

    def get_cached(self, icon_name):
        """Return cached bytes for an icon, or None on a miss."""
        path = self.path_for(icon_name)
        if not path.is_file():
            return None
        try:
            return path.read_bytes()
        except OSError as e:
            self.logger.warning(f"Failed to read cached icon {icon_name}: {e}")
            return None

    def store(self, icon_name, data):
        """Write icon bytes to the cache.

        The file is written under a unique temporary name and renamed, so a
        partial write never shows up as a cache hit and concurrent writers of
        the same icon do not share a temporary file.

        Raises:
            CacheWriteError: If the file cannot be written
        """
        path = self.path_for(icon_name)
        tmp_path = None
        try:
            with tempfile.NamedTemporaryFile(dir=self.cache_dir, prefix=path.name, suffix='.part', delete=False) as tmp:
                tmp_path = Path(tmp.name)
                tmp.write(data)
            os.replace(tmp_path, path)
        except OSError as e:
            self.logger.error(f"Failed to cache icon {icon_name}: {e}")
            if tmp_path is not None:
                tmp_path.unlink(missing_ok=True)
            raise CacheWriteError(f"Failed to cache icon {icon_name}: {e}") from e
        return path

    def fetch_icon(self, icon_name):
        """Return icon bytes from the cache or blob storage.

        Returns:
            Icon bytes, or None when the icon cannot be fetched or decoded
        """
        try:
            cached = self.get_cached(icon_name)
        except ValueError as e:
            self.logger.warning(f"Rejected icon name: {e}")
            return None
        if cached is not None:
            self.logger.debug(f"Icon cache hit: {icon_name}")
            return cached

        try:
            data = self.blob_store.fetch_icon(sanitize_icon_name(icon_name), self.max_bytes)
            verify_image_bytes(data)
        except FetchError as e:
            self.logger.warning(f"Failed to download icon {icon_name}: {e}")
            return None
        except CorruptedImageError as e:
            self.logger.warning(f"Downloaded icon {icon_name} is not a valid image: {e}")
            return None

        try:
            self.store(icon_name, data)
        except CacheWriteError:
            self.logger.info(f"Serving icon {icon_name} uncached")
        return data

    def fetch_icon_async(self, icon_name, executor, loop, callback):
        """Fetch an icon on ``executor`` and call ``callback(icon_name, data)`` on ``loop``.

        Returns:
            The executor future
        """
        def work():
            data = self.fetch_icon(icon_name)
            loop.call_soon_threadsafe(callback, icon_name, data)
            return data

        return executor.submit(work)
