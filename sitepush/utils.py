"""Utility functions for sitepush."""

import posixpath

# =============================================================================
# Constants
# =============================================================================

# Default SSH port
DEFAULT_PORT: int = 22

# Connection / handshake timeout in seconds
DEFAULT_TIMEOUT: float = 30.0

# Manifest file name directly under the remote root.
# Matches the name written by earlier publishers.
DEFAULT_MANIFEST_NAME: str = "staticforge-manifest.json"

# Read size when hashing or streaming files
READ_CHUNK_SIZE: int = 64 * 1024


# =============================================================================
# Remote path utilities
# =============================================================================


def join_remote(remote_root: str, relative_path: str) -> str:
    """Join a remote root and a relative path with forward slashes.

    Args:
        remote_root: Remote root directory (e.g., "/var/www/site" or "/")
        relative_path: Relative path using forward slashes

    Returns:
        Combined remote path

    Examples:
        >>> join_remote("/var/www", "css/site.css")
        '/var/www/css/site.css'
        >>> join_remote("/", "index.html")
        '/index.html'
        >>> join_remote("/var/www/", "/index.html")
        '/var/www/index.html'
    """
    root = remote_root.rstrip("/")
    return f"{root}/{relative_path.lstrip('/')}"


def remote_parent(remote_path: str) -> str:
    """Return the parent directory of a remote path.

    Examples:
        >>> remote_parent("/var/www/css/site.css")
        '/var/www/css'
        >>> remote_parent("index.html")
        ''
    """
    return posixpath.dirname(remote_path)


def normalize_remote_root(remote_path: str) -> str:
    """Strip trailing slashes from a remote root, keeping "/" intact.

    Examples:
        >>> normalize_remote_root("/var/www/")
        '/var/www'
        >>> normalize_remote_root("/")
        '/'
    """
    stripped = remote_path.rstrip("/")
    if not stripped and remote_path.startswith("/"):
        return "/"
    return stripped


# =============================================================================
# Size formatting utilities
# =============================================================================


def format_size(size_bytes: int) -> str:
    """Format file size in human-readable format.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted size string (e.g., "1.5 MB", "256 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / 1024 / 1024:.1f} MB"
    else:
        return f"{size_bytes / 1024 / 1024 / 1024:.1f} GB"
