"""
Entry point used by every trigger source.

Claims the job category from the guard, runs the orchestrator, releases
the guard and reports the outcome to the caller and the run recorder.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Callable

from django.utils import timezone

from snapshot_sync.models import Operation, Trigger
from snapshot_sync.sync.engine import ProgressSink, SnapshotSyncEngine
from snapshot_sync.sync.guard import JobCategory, JobHandle, JobStateGuard
from snapshot_sync.sync.results import SyncOutcome

logger = logging.getLogger(__name__)

Recorder = Callable[[Operation, Trigger, SyncOutcome, datetime], None]
CompletionCallback = Callable[[SyncOutcome], None]


class SnapshotService:
    def __init__(
        self,
        engine: SnapshotSyncEngine,
        guard: JobStateGuard,
        recorder: Recorder | None = None,
    ):
        self.engine = engine
        self.guard = guard
        self.recorder = recorder

    @property
    def store(self):
        return self.engine.store

    def backup(
        self,
        trigger: Trigger = Trigger.USER,
        on_progress: ProgressSink | None = None,
        on_complete: CompletionCallback | None = None,
    ) -> SyncOutcome:
        """Run a backup in the calling thread, superseding any running one."""
        handle = self._start(JobCategory.EXPORT, on_complete)
        started_at = timezone.now()
        try:
            outcome = self.engine.perform_backup(
                trigger=trigger,
                cancel_token=handle.token,
                on_progress=on_progress,
            )
        finally:
            self.guard.release(handle)
        return self._finish(handle, Operation.BACKUP, trigger, outcome, started_at)

    def restore(
        self,
        trigger: Trigger = Trigger.USER,
        on_progress: ProgressSink | None = None,
        on_complete: CompletionCallback | None = None,
    ) -> SyncOutcome:
        """Run a restore in the calling thread, superseding any running one."""
        handle = self._start(JobCategory.IMPORT, on_complete)
        started_at = timezone.now()
        try:
            outcome = self.engine.perform_restore(
                cancel_token=handle.token,
                on_progress=on_progress,
            )
        finally:
            self.guard.release(handle)
        return self._finish(handle, Operation.RESTORE, trigger, outcome, started_at)

    def start_backup(
        self,
        trigger: Trigger = Trigger.USER,
        on_progress: ProgressSink | None = None,
        on_complete: CompletionCallback | None = None,
    ) -> threading.Thread:
        """Run backup() on a worker thread so the caller is never blocked."""
        thread = threading.Thread(
            target=self.backup,
            args=(trigger, on_progress, on_complete),
            name="snapshot-backup",
            daemon=True,
        )
        thread.start()
        return thread

    def cancel(self, category: JobCategory) -> bool:
        return self.guard.cancel(category)

    def _start(self, category: JobCategory, on_complete: CompletionCallback | None) -> JobHandle:
        handle = self.guard.acquire(category)
        if on_complete is not None:
            handle.add_done_callback(on_complete)
        return handle

    def _finish(
        self,
        handle: JobHandle,
        operation: Operation,
        trigger: Trigger,
        outcome: SyncOutcome,
        started_at: datetime,
    ) -> SyncOutcome:
        outcome = handle.complete(outcome)
        logger.info(f"{operation.label} ({trigger}) finished: {outcome.message}")

        if self.recorder is not None:
            try:
                self.recorder(operation, trigger, outcome, started_at)
            except Exception as e:
                logger.error(f"Failed to record {operation} run: {e}", exc_info=True)

        return outcome


def get_service() -> SnapshotService:
    """Build a service wired from Django settings."""
    from snapshot_sync.pipelines import get_export_pipeline, get_import_pipeline
    from snapshot_sync.preferences import get_store
    from snapshot_sync.providers.github_gist import GistClient
    from snapshot_sync.runs import record_run
    from snapshot_sync.sync.guard import get_guard

    guard = get_guard()
    engine = SnapshotSyncEngine(
        store=get_store(),
        client=GistClient(),
        export_pipeline=get_export_pipeline(),
        import_pipeline=get_import_pipeline(),
        guard=guard,
    )
    return SnapshotService(engine, guard, recorder=record_run)
