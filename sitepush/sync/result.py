"""Outcome records for a publish run."""

from dataclasses import dataclass, field

from .manifest import ManifestStatus


@dataclass(frozen=True)
class TransferError:
    """A single failed upload."""

    relative_path: str
    """Relative path of the file that failed"""

    reason: str
    """Human-readable failure reason"""

    def __str__(self) -> str:
        return f"{self.reason}: {self.relative_path}"


@dataclass
class SyncResult:
    """Everything one sync_site() call did, returned instead of kept on the engine."""

    dry_run: bool = False

    uploaded: list[str] = field(default_factory=list)
    """Relative paths uploaded successfully"""

    deleted: list[str] = field(default_factory=list)
    """Stale relative paths deleted from the remote"""

    failed_deletes: list[str] = field(default_factory=list)
    """Stale relative paths that could not be deleted (not counted as errors)"""

    errors: list[TransferError] = field(default_factory=list)
    """Upload failures"""

    planned_uploads: list[str] = field(default_factory=list)
    """Relative paths a dry run would upload"""

    planned_deletes: list[str] = field(default_factory=list)
    """Relative paths a dry run would delete"""

    manifest_status: ManifestStatus = ManifestStatus.SKIPPED
    """State of the previous manifest"""

    manifest_written: bool = False
    """Whether the new manifest was written"""

    @property
    def error_count(self) -> int:
        """Number of failed uploads; zero means the publish succeeded."""
        return len(self.errors)

    @property
    def uploaded_count(self) -> int:
        return len(self.uploaded)

    @property
    def success(self) -> bool:
        return self.error_count == 0

    def to_dict(self) -> dict:
        """Convert to a dictionary for JSON output."""
        return {
            "dry_run": self.dry_run,
            "uploads": self.uploaded_count,
            "deletes": len(self.deleted),
            "failed_deletes": list(self.failed_deletes),
            "errors": [
                {"path": e.relative_path, "reason": e.reason} for e in self.errors
            ],
            "error_count": self.error_count,
            "planned_uploads": list(self.planned_uploads),
            "planned_deletes": list(self.planned_deletes),
            "manifest_status": self.manifest_status.value,
            "manifest_written": self.manifest_written,
        }
