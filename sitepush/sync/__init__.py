"""Sync engine for sitepush - mirror a local site onto an SFTP remote."""

from .engine import SyncEngine
from .manifest import (
    ManifestStatus,
    find_stale_files,
    is_safe_entry,
    manifest_path,
    parse_manifest,
    serialize_manifest,
)
from .operations import LoadedManifest, SyncOperations
from .planner import SyncAction, SyncDecision, SyncPlanner
from .result import SyncResult, TransferError
from .scanner import DirectoryScanner, LocalFile

__all__ = [
    "SyncEngine",
    "SyncOperations",
    "SyncPlanner",
    "SyncAction",
    "SyncDecision",
    "SyncResult",
    "TransferError",
    "LoadedManifest",
    "ManifestStatus",
    "DirectoryScanner",
    "LocalFile",
    "find_stale_files",
    "is_safe_entry",
    "manifest_path",
    "parse_manifest",
    "serialize_manifest",
]
