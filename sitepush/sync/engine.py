"""Core sync engine: mirror a local site directory onto the remote."""

import logging
import time
from pathlib import Path
from typing import Callable, Optional, Union

from ..output import OutputFormatter
from ..transport import SftpTransport
from ..utils import DEFAULT_MANIFEST_NAME, join_remote, normalize_remote_root
from .manifest import ManifestStatus
from .operations import SyncOperations
from .planner import SyncDecision, SyncPlanner
from .result import SyncResult, TransferError
from .scanner import DirectoryScanner, LocalFile

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], None]


class SyncEngine:
    """Reconciles a remote directory with a local directory tree.

    Every run deletes remote files listed in the previous manifest that no
    longer exist locally, uploads every local file, and then records the
    local file set as the new manifest.
    """

    def __init__(
        self,
        transport: SftpTransport,
        output: Optional[OutputFormatter] = None,
        manifest_name: str = DEFAULT_MANIFEST_NAME,
        ignore_patterns: Optional[list[str]] = None,
    ):
        """Initialize sync engine.

        Args:
            transport: Connected SFTP transport
            output: Output formatter for the run transcript
            manifest_name: Manifest file name under the remote root
            ignore_patterns: Glob patterns of local files to leave out
        """
        self.transport = transport
        self.output = output or OutputFormatter()
        self.manifest_name = manifest_name
        self.ignore_patterns = ignore_patterns or []
        self.operations = SyncOperations(transport)
        self.planner = SyncPlanner()

    def sync_site(
        self,
        local_root: Union[str, Path],
        remote_root: str,
        dry_run: bool = False,
        secure_manifest: bool = False,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> SyncResult:
        """Publish a local directory to the remote root.

        Args:
            local_root: Local directory holding the generated site
            remote_root: Remote directory to mirror into
            dry_run: If True, only report what would be deleted and uploaded
            secure_manifest: Deny web access to the manifest via .htaccess
            progress_callback: Called as (done, total, relative_path) after
                each upload attempt

        Returns:
            SyncResult; its error_count is the number of failed uploads

        Raises:
            ValueError: If the local root is missing or not a directory

        Examples:
            >>> engine = SyncEngine(transport)
            >>> result = engine.sync_site(Path("public"), "/var/www", dry_run=True)
            >>> print(f"Would upload {len(result.planned_uploads)} files")
        """
        local_root = Path(local_root)
        if not local_root.exists():
            raise ValueError(f"Local directory does not exist: {local_root}")
        if not local_root.is_dir():
            raise ValueError(f"Local path is not a directory: {local_root}")

        remote_root = normalize_remote_root(remote_root)
        result = SyncResult(dry_run=dry_run)

        if dry_run:
            self.output.info("Dry run: No changes will be made")

        # Step 1: Scan local files
        scan_start = time.time()
        scanner = DirectoryScanner(ignore_patterns=self.ignore_patterns)
        local_files = scanner.scan_local(local_root)
        logger.debug(
            f"Local scan took {time.time() - scan_start:.2f}s "
            f"for {len(local_files)} files"
        )

        if not local_files:
            self.output.info("No files to upload")
            return result

        local_manifest = [f.relative_path for f in local_files]

        # Step 2: Load the previous manifest
        previous = self._load_previous_manifest(remote_root, result)

        # Step 3: Plan
        decisions = self.planner.plan(local_files, previous)
        deletions = self.planner.deletions(decisions)
        uploads = self.planner.upload_files(decisions)

        # Step 4: Cleanup always runs before uploads
        self._process_cleanup(deletions, remote_root, dry_run, result)

        if dry_run:
            for local_file in uploads:
                self._report_planned_upload(local_file, remote_root, result)
            self._display_summary(result)
            return result

        # Step 5: Upload everything
        self.output.info(f"Processing {len(uploads)} files...")
        self._execute_uploads(uploads, remote_root, result, progress_callback)

        # Step 6: Record what this run published, even after partial failure
        self._write_manifest(remote_root, local_manifest, result)

        if secure_manifest and result.manifest_written:
            warning = self.operations.secure_manifest(remote_root, self.manifest_name)
            if warning:
                self.output.warning(f"Warning: {warning}")

        self._display_summary(result)
        return result

    def _load_previous_manifest(
        self, remote_root: str, result: SyncResult
    ) -> Optional[list[str]]:
        """Load the previous manifest.

        Returns:
            Manifest paths, or None when cleanup must be skipped
        """
        loaded = self.operations.load_manifest(remote_root, self.manifest_name)
        result.manifest_status = loaded.status

        if loaded.status == ManifestStatus.ABSENT:
            self.output.detail("No existing manifest found (first publish).")
        elif loaded.status == ManifestStatus.UNREADABLE:
            self.output.warning(
                "Existing manifest could not be read; skipping cleanup"
                + (f" ({loaded.detail})" if loaded.detail else "")
            )
        elif loaded.status == ManifestStatus.MALFORMED:
            self.output.error(
                f"Invalid manifest format; skipping cleanup ({loaded.detail})"
            )

        if not loaded.status.allows_cleanup:
            return None
        logger.debug(f"Previous manifest lists {len(loaded.paths)} files")
        return loaded.paths

    def _process_cleanup(
        self,
        deletions: list[SyncDecision],
        remote_root: str,
        dry_run: bool,
        result: SyncResult,
    ) -> None:
        """Delete stale remote files. Failures are reported, not counted."""
        if not deletions:
            return

        self.output.info(f"Cleaning up {len(deletions)} stale files...")

        for decision in deletions:
            path = decision.relative_path
            if dry_run:
                result.planned_deletes.append(path)
                self.output.print(f"  [DRY RUN] Would delete: {path}")
                continue

            if self.operations.delete_remote(path, remote_root):
                result.deleted.append(path)
                self.output.detail(f"  Deleted: {path}")
            else:
                result.failed_deletes.append(path)
                self.output.error(f"  Failed to delete: {path}")

    def _report_planned_upload(
        self, local_file: LocalFile, remote_root: str, result: SyncResult
    ) -> None:
        result.planned_uploads.append(local_file.relative_path)
        self.output.print(
            f"  [DRY RUN] Would upload: {local_file.path} -> "
            f"{join_remote(remote_root, local_file.relative_path)}"
        )

    def _execute_uploads(
        self,
        uploads: list[LocalFile],
        remote_root: str,
        result: SyncResult,
        progress_callback: Optional[ProgressCallback],
    ) -> None:
        """Upload every file; one failure never stops the rest."""
        total = len(uploads)
        for index, local_file in enumerate(uploads, start=1):
            path = local_file.relative_path

            upload_start = time.time()
            if self.operations.upload_file(local_file, remote_root):
                result.uploaded.append(path)
                self.output.detail(f"  Uploaded: {path}")
                logger.debug(
                    f"Upload of {path} took {time.time() - upload_start:.2f}s"
                )
            else:
                error = TransferError(path, "Failed to upload")
                result.errors.append(error)
                self.output.error(f"  {error}")

            if progress_callback is not None:
                progress_callback(index, total, path)

    def _write_manifest(
        self, remote_root: str, local_manifest: list[str], result: SyncResult
    ) -> None:
        if self.operations.write_manifest(
            remote_root, self.manifest_name, local_manifest
        ):
            result.manifest_written = True
            self.output.detail("Manifest updated.")
        else:
            self.output.error("Failed to update manifest file.")

    def _display_summary(self, result: SyncResult) -> None:
        """Print the closing summary and the error list."""
        self.output.print("")
        if result.dry_run:
            self.output.success(
                f"Dry run complete: {len(result.planned_uploads)} file(s) would be "
                f"uploaded, {len(result.planned_deletes)} would be deleted"
            )
            return

        report = self.output.success if result.success else self.output.warning
        report(
            f"Upload complete: {result.uploaded_count} files uploaded, "
            f"{result.error_count} errors"
        )
        if result.deleted:
            self.output.info(f"  Deleted remotely: {len(result.deleted)}")
        if result.failed_deletes:
            self.output.warning(
                f"  Failed to delete: {len(result.failed_deletes)} stale file(s)"
            )

        if result.error_count > 0:
            self.output.error("Errors occurred during upload:")
            for error in result.errors:
                self.output.error(f"  - {error}")
