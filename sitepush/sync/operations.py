"""Sync operations wrapper over the SFTP transport."""

import logging
from dataclasses import dataclass, field
from typing import Optional

from ..exceptions import ManifestError
from ..transport import RemoteReadStatus, SftpTransport
from ..utils import join_remote
from .manifest import (
    ManifestStatus,
    manifest_path,
    parse_manifest,
    serialize_manifest,
)
from .scanner import LocalFile

logger = logging.getLogger(__name__)

HTACCESS_NAME = ".htaccess"


@dataclass
class LoadedManifest:
    """Previous manifest as found on the remote."""

    status: ManifestStatus
    paths: list[str] = field(default_factory=list)
    detail: Optional[str] = None
    """Reason when the manifest is unreadable or malformed"""


def htaccess_block(manifest_name: str) -> str:
    """Apache directive denying web access to the manifest."""
    return f'\n<Files "{manifest_name}">\n    Require all denied\n</Files>\n'


class SyncOperations:
    """Site-level remote operations built on transport primitives."""

    def __init__(self, transport: SftpTransport):
        """Initialize sync operations.

        Args:
            transport: Connected SFTP transport
        """
        self.transport = transport

    def upload_file(self, local_file: LocalFile, remote_root: str) -> bool:
        """Upload a local file below the remote root.

        Args:
            local_file: Local file to upload
            remote_root: Remote root directory

        Returns:
            True on success
        """
        return self.transport.upload_file(
            local_file.path, join_remote(remote_root, local_file.relative_path)
        )

    def delete_remote(self, relative_path: str, remote_root: str) -> bool:
        """Delete a remote file given its path relative to the remote root."""
        return self.transport.delete_file(join_remote(remote_root, relative_path))

    def load_manifest(self, remote_root: str, manifest_name: str) -> LoadedManifest:
        """Read and parse the previous manifest.

        Args:
            remote_root: Remote root directory
            manifest_name: Manifest file name

        Returns:
            LoadedManifest; paths are only populated when status is LOADED
        """
        result = self.transport.read_file_result(
            manifest_path(remote_root, manifest_name)
        )
        if result.status == RemoteReadStatus.ABSENT:
            return LoadedManifest(ManifestStatus.ABSENT)
        if result.status == RemoteReadStatus.ERROR or result.content is None:
            return LoadedManifest(ManifestStatus.UNREADABLE, detail=result.error)

        try:
            paths = parse_manifest(result.content)
        except ManifestError as e:
            logger.warning(f"Ignoring malformed manifest: {e}")
            return LoadedManifest(ManifestStatus.MALFORMED, detail=str(e))
        return LoadedManifest(ManifestStatus.LOADED, paths=paths)

    def write_manifest(
        self, remote_root: str, manifest_name: str, paths: list[str]
    ) -> bool:
        """Overwrite the remote manifest with the given paths."""
        return self.transport.put_content(
            manifest_path(remote_root, manifest_name), serialize_manifest(paths)
        )

    def secure_manifest(self, remote_root: str, manifest_name: str) -> Optional[str]:
        """Make the remote .htaccess deny web access to the manifest.

        An existing .htaccess is only appended to, and only when it does not
        mention the manifest yet.

        Returns:
            None on success (or nothing to do), otherwise a warning message
        """
        htaccess_path = join_remote(remote_root, HTACCESS_NAME)
        block = htaccess_block(manifest_name)

        if self.transport.file_exists(htaccess_path):
            content = self.transport.read_file(htaccess_path)
            if content is None:
                return ".htaccess exists but cannot be read. Skipping security update."
            if manifest_name in content:
                return None
            logger.debug("Securing manifest in existing .htaccess")
            if not self.transport.put_content(htaccess_path, content + block):
                return "Failed to update .htaccess"
            return None

        logger.debug("Creating .htaccess to secure manifest")
        if not self.transport.put_content(htaccess_path, block.lstrip()):
            return "Failed to create .htaccess"
        return None
