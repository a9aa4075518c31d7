"""Directory scanning utilities for sync operations."""

import fnmatch
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class LocalFile:
    """Represents a local file with metadata."""

    path: Path
    """Absolute path to the file"""

    relative_path: str
    """Relative path (using forward slashes for cross-platform compatibility)"""

    size: int
    """File size in bytes"""

    mtime: float
    """Last modification time (Unix timestamp)"""

    @classmethod
    def from_path(cls, file_path: Path, base_path: Path) -> "LocalFile":
        """Create LocalFile from a path.

        Args:
            file_path: Absolute path to the file
            base_path: Base path for calculating relative paths

        Returns:
            LocalFile instance
        """
        stat = file_path.stat()
        # Use as_posix() to ensure forward slashes on all platforms
        relative_path = file_path.relative_to(base_path).as_posix()

        return cls(
            path=file_path,
            relative_path=relative_path,
            size=stat.st_size,
            mtime=stat.st_mtime,
        )


class DirectoryScanner:
    """Scans a generated site directory and builds the local file set.

    Entries are visited in sorted name order so the enumeration order (and
    therefore the upload order and the manifest order) is stable between
    runs. Dot files are included; symlinked directories are not followed.

    Examples:
        >>> scanner = DirectoryScanner()
        >>> files = scanner.scan_local(Path("/srv/build/public"))

        >>> # With exclude patterns
        >>> scanner = DirectoryScanner(ignore_patterns=["*.map", "drafts/*"])
        >>> files = scanner.scan_local(Path("/srv/build/public"))
    """

    def __init__(self, ignore_patterns: Optional[list[str]] = None):
        """Initialize directory scanner.

        Args:
            ignore_patterns: Glob patterns matched against the relative path
                and the file name (e.g., ["*.map", "drafts/*"])
        """
        self.ignore_patterns = ignore_patterns or []

    def should_ignore(self, path: Path, base_path: Path) -> bool:
        """Check if a path should be ignored based on patterns.

        Args:
            path: Path to check
            base_path: Base path for relative path calculation

        Returns:
            True if path should be ignored
        """
        if not self.ignore_patterns:
            return False

        relative_path = path.relative_to(base_path).as_posix()
        for pattern in self.ignore_patterns:
            if fnmatch.fnmatch(relative_path, pattern) or fnmatch.fnmatch(
                path.name, pattern
            ):
                logger.debug(f"Ignoring (pattern {pattern}): {relative_path}")
                return True
        return False

    def scan_local(
        self, directory: Path, base_path: Optional[Path] = None
    ) -> list[LocalFile]:
        """Recursively scan a local directory.

        Args:
            directory: Directory to scan
            base_path: Base path for calculating relative paths (defaults to directory)

        Returns:
            List of LocalFile objects

        Examples:
            >>> scanner = DirectoryScanner()
            >>> files = scanner.scan_local(Path("/srv/build/public"))
            >>> for f in files:
            ...     print(f.relative_path)
        """
        if base_path is None:
            base_path = directory

        files: list[LocalFile] = []

        try:
            items = sorted(directory.iterdir(), key=lambda p: p.name)
        except OSError as e:
            logger.error(f"Failed to scan directory {directory}: {e}")
            return files

        for item in items:
            if self.should_ignore(item, base_path):
                continue

            if item.is_dir():
                if item.is_symlink():
                    logger.debug(f"Not following symlinked directory: {item}")
                    continue
                files.extend(self.scan_local(item, base_path))
            elif item.is_file():
                try:
                    files.append(LocalFile.from_path(item, base_path))
                except OSError as e:
                    # Skip files we can't stat
                    logger.warning(f"Skipping unreadable file {item}: {e}")

        return files
