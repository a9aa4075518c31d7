"""Remote manifest handling.

The manifest is a JSON array of forward-slash relative paths stored directly
under the remote root. It records which files the previous run published so
the next run can delete the ones that disappeared locally.
"""

import json
import logging
from collections.abc import Iterable
from enum import Enum
from pathlib import PurePosixPath

from ..exceptions import ManifestError
from ..utils import join_remote

logger = logging.getLogger(__name__)


class ManifestStatus(str, Enum):
    """What the engine found when looking for the previous manifest."""

    LOADED = "loaded"
    """Manifest read and parsed; cleanup can run"""

    ABSENT = "absent"
    """No manifest on the remote (first publish)"""

    UNREADABLE = "unreadable"
    """Manifest may exist but could not be read"""

    MALFORMED = "malformed"
    """Manifest read but not a JSON list of paths"""

    SKIPPED = "skipped"
    """Manifest was not consulted (nothing to publish)"""

    @property
    def allows_cleanup(self) -> bool:
        """Whether stale files may be deleted based on this status."""
        return self == ManifestStatus.LOADED


def manifest_path(remote_root: str, manifest_name: str) -> str:
    """Full remote path of the manifest file."""
    return join_remote(remote_root, manifest_name)


def is_safe_entry(path: str) -> bool:
    """Whether a manifest entry stays inside the remote root.

    Examples:
        >>> is_safe_entry("blog/post.html")
        True
        >>> is_safe_entry("../etc/passwd")
        False
    """
    parts = PurePosixPath(path).parts
    return bool(path.strip("/")) and ".." not in parts


def parse_manifest(content: str) -> list[str]:
    """Parse manifest content.

    A JSON array of paths is the format written here. A JSON object mapping
    paths to content hashes (written by newer publishers) is read by its keys.

    Args:
        content: Raw manifest file content

    Returns:
        List of relative paths in stored order

    Raises:
        ManifestError: If the content is not a JSON array or object of
            strings, or an entry points outside the remote root
    """
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ManifestError(f"Manifest is not valid JSON: {e}") from e

    if isinstance(data, dict):
        logger.debug("Manifest is a path-to-hash map, using its keys")
        data = list(data)
    elif not isinstance(data, list):
        raise ManifestError(
            f"Manifest must be a JSON array or object, got {type(data).__name__}"
        )
    if not all(isinstance(item, str) for item in data):
        raise ManifestError("Manifest entries must all be strings")

    unsafe = [item for item in data if not is_safe_entry(item)]
    if unsafe:
        raise ManifestError(f"Manifest entry outside the remote root: {unsafe[0]!r}")

    logger.debug(f"Parsed manifest with {len(data)} entries")
    return data


def serialize_manifest(paths: Iterable[str]) -> str:
    """Serialize relative paths to manifest content.

    Non-ASCII characters are written as ``\\u`` escapes, so names that are
    not valid UTF-8 on disk still produce a writable manifest.

    Examples:
        >>> print(serialize_manifest(["a.html", "css/site.css"]))
        [
          "a.html",
          "css/site.css"
        ]
    """
    return json.dumps(list(paths), indent=2)


def find_stale_files(previous: Iterable[str], current: Iterable[str]) -> list[str]:
    """Paths listed in the previous manifest but missing from the current set.

    Order follows the previous manifest; duplicates are reported once.

    Examples:
        >>> find_stale_files(["a.html", "b.html", "old.html"], ["a.html", "c.html"])
        ['b.html', 'old.html']
    """
    current_set = set(current)
    stale: list[str] = []
    seen: set[str] = set()
    for path in previous:
        if path in current_set or path in seen:
            continue
        seen.add(path)
        stale.append(path)
    return stale
