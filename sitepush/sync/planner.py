"""Sync planning: decide which remote files to delete and which to upload."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .manifest import find_stale_files
from .scanner import LocalFile


class SyncAction(str, Enum):
    """Actions that can be taken during a publish."""

    UPLOAD = "upload"
    """Upload local file to remote"""

    DELETE_REMOTE = "delete_remote"
    """Delete remote file that no longer exists locally"""


@dataclass
class SyncDecision:
    """Represents a decision about one remote path."""

    action: SyncAction
    """Action to take"""

    reason: str
    """Human-readable reason for this decision"""

    relative_path: str
    """Relative path of the file"""

    local_file: Optional[LocalFile] = None
    """Local file (uploads only)"""


class SyncPlanner:
    """Builds the ordered action list for a publish run.

    All deletions come before all uploads, so a renamed file is removed at
    its old path before it is written at its new one.
    """

    def plan(
        self,
        local_files: list[LocalFile],
        previous_manifest: Optional[list[str]],
    ) -> list[SyncDecision]:
        """Plan deletions and uploads.

        Args:
            local_files: Local file set in enumeration order
            previous_manifest: Paths from the previous manifest, or None when
                no trustworthy manifest is available (cleanup is skipped)

        Returns:
            Deletions (previous-manifest order) followed by uploads
            (local enumeration order)
        """
        decisions: list[SyncDecision] = []

        if previous_manifest is not None:
            local_paths = [f.relative_path for f in local_files]
            for path in find_stale_files(previous_manifest, local_paths):
                decisions.append(
                    SyncDecision(
                        action=SyncAction.DELETE_REMOTE,
                        reason="File deleted locally",
                        relative_path=path,
                    )
                )

        for local_file in local_files:
            decisions.append(
                SyncDecision(
                    action=SyncAction.UPLOAD,
                    reason="Local file",
                    relative_path=local_file.relative_path,
                    local_file=local_file,
                )
            )

        return decisions

    @staticmethod
    def deletions(decisions: list[SyncDecision]) -> list[SyncDecision]:
        return [d for d in decisions if d.action == SyncAction.DELETE_REMOTE]

    @staticmethod
    def uploads(decisions: list[SyncDecision]) -> list[SyncDecision]:
        return [d for d in decisions if d.action == SyncAction.UPLOAD]

    @staticmethod
    def upload_files(decisions: list[SyncDecision]) -> list[LocalFile]:
        """Local files to upload, in plan order."""
        return [
            d.local_file
            for d in decisions
            if d.action == SyncAction.UPLOAD and d.local_file is not None
        ]
