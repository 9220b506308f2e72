"""
Exceptions for sync operations.
"""


class SyncError(Exception):
    """Base exception for sync operations."""

    pass


class ConfigError(SyncError):
    """Token or snapshot id missing; the user has to fix the settings."""

    pass


class PipelineError(SyncError):
    """The export or import pipeline reported a failure."""

    pass


class EmptySnapshotError(SyncError):
    """The remote snapshot holds no files."""

    pass


class LocalIOError(SyncError):
    """Failed to stage restored content on local disk."""

    pass


class SyncCancelledError(SyncError):
    """The job was cancelled or superseded before it finished."""

    pass
