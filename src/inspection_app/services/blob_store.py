"""Blob storage client for icons and exported reports."""
import logging
from urllib.parse import quote
import requests

from .errors import FetchError, BlobTooLargeError


class BlobStore:
    """Size-capped downloads from a Firebase Storage style bucket."""

    ICONS_PREFIX = 'icons'
    CHUNK_SIZE = 64 * 1024

    def __init__(self, base_url, bucket, timeout=10.0, session=None):
        self.base_url = base_url.rstrip('/')
        self.bucket = bucket
        self.timeout = timeout
        self.session = session or requests.Session()
        self.logger = logging.getLogger(self.__class__.__name__)

    def url_for(self, path):
        """Build the media download URL for an object path."""
        encoded = quote(path.lstrip('/'), safe='')
        return f"{self.base_url}/v0/b/{self.bucket}/o/{encoded}?alt=media"

    def fetch_bytes(self, path, max_bytes):
        """Download an object, refusing anything larger than ``max_bytes``.

        Raises:
            BlobTooLargeError: If the object is over the cap
            FetchError: On connection failure or error status
        """
        url = self.url_for(path)
        try:
            with self.session.get(url, stream=True, timeout=self.timeout) as response:
                if response.status_code >= 400:
                    raise FetchError(f"Failed to fetch '{path}': HTTP {response.status_code}")

                declared = response.headers.get('Content-Length')
                if declared and declared.isdigit() and int(declared) > max_bytes:
                    raise BlobTooLargeError(path, max_bytes)

                chunks = []
                received = 0
                for chunk in response.iter_content(chunk_size=self.CHUNK_SIZE):
                    received += len(chunk)
                    if received > max_bytes:
                        raise BlobTooLargeError(path, max_bytes)
                    chunks.append(chunk)
        except requests.exceptions.RequestException as e:
            self.logger.error(f"Failed to fetch '{path}': {e}")
            raise FetchError(f"Failed to fetch '{path}': {e}") from e

        self.logger.debug(f"Fetched {received} bytes from '{path}'")
        return b''.join(chunks)

    def fetch_icon(self, icon_name, max_bytes):
        return self.fetch_bytes(f"{self.ICONS_PREFIX}/{icon_name}", max_bytes)
