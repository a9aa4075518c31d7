"""Content hashing for change detection.

Generated markup carries a cache-busting token (``sfcb=<digits>``) that
changes on every build. Text files are hashed with that token normalized so
a rebuild without content changes yields the same digest.
"""

import hashlib
import logging
import re
from collections.abc import Iterable
from pathlib import Path
from typing import Optional, Union

from .utils import READ_CHUNK_SIZE

logger = logging.getLogger(__name__)

DEFAULT_CACHE_BUSTER_MARKER = "sfcb"

TEXT_EXTENSIONS = frozenset(
    ["html", "css", "js", "json", "xml", "txt", "md", "rss", "atom", "svg"]
)


class ContentHasher:
    """Computes md5 content digests insensitive to cache-busting tokens."""

    def __init__(
        self,
        marker: str = DEFAULT_CACHE_BUSTER_MARKER,
        text_extensions: Optional[Iterable[str]] = None,
    ):
        """Initialize the hasher.

        Args:
            marker: Name of the cache-busting query parameter
            text_extensions: Extensions (without dot) treated as text
        """
        self.marker = marker
        self.text_extensions = frozenset(
            ext.lower().lstrip(".") for ext in (text_extensions or TEXT_EXTENSIONS)
        )
        self._pattern = re.compile(re.escape(marker.encode("utf-8")) + rb"=\d+")
        self._placeholder = marker.encode("utf-8") + b"=IGNORED"

    def is_text_file(self, path: Union[str, Path]) -> bool:
        """Whether the file is hashed as text (with token normalization)."""
        return Path(path).suffix.lower().lstrip(".") in self.text_extensions

    def normalize(self, content: bytes) -> bytes:
        """Replace every cache-busting token with a fixed placeholder.

        Examples:
            >>> ContentHasher().normalize(b'<link href="a.css?sfcb=1712">')
            b'<link href="a.css?sfcb=IGNORED">'
        """
        return self._pattern.sub(self._placeholder, content)

    def calculate_hash(self, path: Union[str, Path]) -> str:
        """Compute the content digest of a file.

        Args:
            path: File to hash

        Returns:
            Hex md5 digest, or an empty string if the file cannot be read
        """
        path = Path(path)
        digest = hashlib.md5()
        try:
            if self.is_text_file(path):
                digest.update(self.normalize(path.read_bytes()))
            else:
                with open(path, "rb") as f:
                    for chunk in iter(lambda: f.read(READ_CHUNK_SIZE), b""):
                        digest.update(chunk)
        except OSError as e:
            logger.warning(f"Cannot hash {path}: {e}")
            return ""
        return digest.hexdigest()


def calculate_hash(path: Union[str, Path]) -> str:
    """Hash a file with the default cache-buster marker and text extensions."""
    return ContentHasher().calculate_hash(path)
