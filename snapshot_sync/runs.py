"""
Persist orchestrator outcomes as SnapshotRun rows.
"""

from __future__ import annotations

from datetime import datetime

from snapshot_sync.models import Operation, RunStatus, SnapshotRun, Trigger
from snapshot_sync.sync.results import SyncFailure, SyncOutcome, SyncRetry, SyncSuccess


def outcome_status(outcome: SyncOutcome) -> RunStatus:
    if isinstance(outcome, SyncSuccess):
        return RunStatus.SKIPPED if outcome.skipped else RunStatus.SUCCESS
    if isinstance(outcome, SyncRetry):
        return RunStatus.RETRY
    if isinstance(outcome, SyncFailure):
        return RunStatus.FAILURE
    raise TypeError(f"Unknown outcome {outcome!r}")


def record_run(
    operation: Operation,
    trigger: Trigger,
    outcome: SyncOutcome,
    started_at: datetime,
) -> SnapshotRun:
    return SnapshotRun.objects.create(
        operation=operation,
        trigger=trigger,
        status=outcome_status(outcome),
        error_kind=outcome.kind.value if isinstance(outcome, SyncFailure) else "",
        message=outcome.message,
        snapshot_id=getattr(outcome, "snapshot_id", ""),
        created_snapshot=getattr(outcome, "created", False),
        started_at=started_at,
    )
