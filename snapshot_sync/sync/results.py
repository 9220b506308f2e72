"""
Outcome types returned by every orchestrator call.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Union

from snapshot_sync.sync.exceptions import (
    ConfigError,
    EmptySnapshotError,
    LocalIOError,
    PipelineError,
    SyncCancelledError,
    SyncError,
)


class ErrorKind(str, enum.Enum):
    CONFIG = "config"
    PIPELINE = "pipeline"
    EMPTY_SNAPSHOT = "empty_snapshot"
    LOCAL_IO = "local_io"
    CANCELLED = "cancelled"
    INTERNAL = "internal"


ERROR_KINDS = {
    ConfigError: ErrorKind.CONFIG,
    PipelineError: ErrorKind.PIPELINE,
    EmptySnapshotError: ErrorKind.EMPTY_SNAPSHOT,
    LocalIOError: ErrorKind.LOCAL_IO,
    SyncCancelledError: ErrorKind.CANCELLED,
}


@dataclass(frozen=True)
class SyncSuccess:
    snapshot_id: str = ""
    created: bool = False
    skipped: bool = False

    @property
    def message(self) -> str:
        if self.skipped:
            return "Automatic backup is disabled, nothing to do"
        if self.created:
            return f"Backup created successfully ({self.snapshot_id})"
        if self.snapshot_id:
            return f"Backup updated successfully ({self.snapshot_id})"
        return "Completed successfully"


@dataclass(frozen=True)
class SyncRetry:
    """Transient failure; the same call may succeed later."""

    reason: str = ""

    @property
    def message(self) -> str:
        return f"Temporarily failed, will retry: {self.reason}"


@dataclass(frozen=True)
class SyncFailure:
    """Non-retryable failure."""

    kind: ErrorKind
    reason: str = ""

    @property
    def message(self) -> str:
        return self.reason or self.kind.value

    @classmethod
    def from_exception(cls, exc: SyncError) -> "SyncFailure":
        for exc_type, kind in ERROR_KINDS.items():
            if isinstance(exc, exc_type):
                return cls(kind, str(exc))
        if isinstance(exc, SyncError):
            return cls(ErrorKind.INTERNAL, str(exc))
        raise TypeError(f"No failure kind for {type(exc).__name__}")


SyncOutcome = Union[SyncSuccess, SyncRetry, SyncFailure]
