"""
Sync engine for remote snapshot backups.
"""

from snapshot_sync.sync.engine import SnapshotSyncEngine
from snapshot_sync.sync.exceptions import (
    ConfigError,
    EmptySnapshotError,
    LocalIOError,
    PipelineError,
    SyncCancelledError,
    SyncError,
)
from snapshot_sync.sync.guard import CancellationToken, JobCategory, JobHandle, JobStateGuard
from snapshot_sync.sync.results import ErrorKind, SyncFailure, SyncOutcome, SyncRetry, SyncSuccess
from snapshot_sync.sync.service import SnapshotService

__all__ = [
    "SnapshotSyncEngine",
    "SnapshotService",
    "JobStateGuard",
    "JobHandle",
    "JobCategory",
    "CancellationToken",
    "SyncOutcome",
    "SyncSuccess",
    "SyncRetry",
    "SyncFailure",
    "ErrorKind",
    "SyncError",
    "ConfigError",
    "PipelineError",
    "EmptySnapshotError",
    "LocalIOError",
    "SyncCancelledError",
]
