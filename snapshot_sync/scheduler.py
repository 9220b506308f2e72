"""
Background scheduling for automatic backups.

Two modes wrap the same service call: a periodic loop on a daemon
thread, and a one-shot host-managed job whose disposition tells the
host (Celery) whether to retry.
"""

from __future__ import annotations

import enum
import logging
import threading
from typing import Protocol

from snapshot_sync.models import Trigger
from snapshot_sync.preferences import PreferencesError, get_fallback_interval
from snapshot_sync.sync.results import SyncFailure, SyncOutcome, SyncRetry, SyncSuccess
from snapshot_sync.sync.service import SnapshotService

logger = logging.getLogger(__name__)


class SchedulerState(str, enum.Enum):
    IDLE = "idle"
    SCHEDULED = "scheduled"
    RUNNING = "running"
    STOPPED = "stopped"


class JobDisposition(str, enum.Enum):
    SUCCESS = "success"
    RETRY = "retry"
    FAILURE = "failure"


class RetryableJob(Protocol):
    def run(self) -> JobDisposition:
        ...


def disposition_for(outcome: SyncOutcome) -> JobDisposition:
    if isinstance(outcome, SyncSuccess):
        return JobDisposition.SUCCESS
    if isinstance(outcome, SyncRetry):
        return JobDisposition.RETRY
    if isinstance(outcome, SyncFailure):
        return JobDisposition.FAILURE
    raise TypeError(f"Unknown outcome {outcome!r}")


class BackupJob:
    """One host-dispatched backup attempt."""

    def __init__(self, service: SnapshotService):
        self.service = service

    def run(self) -> JobDisposition:
        try:
            config = self.service.store.load()
        except PreferencesError as e:
            logger.error(f"Backup job cannot read preferences: {e}")
            return JobDisposition.FAILURE

        if not config.auto_backup_enabled:
            logger.info("Automatic backup disabled, job satisfied")
            return JobDisposition.SUCCESS

        # A blank token will not become non-blank by retrying
        if not config.has_token:
            logger.warning("Automatic backup enabled but no GitHub token is set")
            return JobDisposition.FAILURE

        outcome = self.service.backup(trigger=Trigger.HOST_JOB)
        return disposition_for(outcome)


class PeriodicBackupScheduler:
    """
    Runs a backup every configured interval on a daemon thread.

    The interval is read from the store before every wait, so settings
    changes apply from the next cycle. Outcomes are logged, never retried
    within a tick; the next tick is the retry.
    """

    def __init__(self, service: SnapshotService):
        self.service = service
        self._state = SchedulerState.IDLE
        self._state_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _set_state(self, state: SchedulerState) -> None:
        with self._state_lock:
            self._state = state

    def start(self) -> None:
        if self.is_running:
            return
        self._stop_event.clear()
        self._set_state(SchedulerState.SCHEDULED)
        self._thread = threading.Thread(
            target=self._run_loop, name="snapshot-scheduler", daemon=True
        )
        self._thread.start()
        logger.info("Backup scheduler started")

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout)
        self._thread = None
        self._set_state(SchedulerState.STOPPED)
        logger.info("Backup scheduler stopped")

    def next_delay(self) -> float:
        """Seconds to wait before the next tick."""
        try:
            config = self.service.store.load()
        except Exception as e:
            logger.warning(f"Could not read preferences, using fallback interval: {e}")
            return get_fallback_interval().total_seconds()
        return config.interval_timedelta().total_seconds()

    def tick(self) -> SyncOutcome | None:
        """Run one scheduled backup if automatic backup is enabled."""
        try:
            config = self.service.store.load()
        except Exception as e:
            logger.error(f"Scheduled backup skipped, preferences unreadable: {e}")
            return None

        if not config.auto_backup_enabled:
            logger.debug("Automatic backup disabled, skipping tick")
            return None

        self._set_state(SchedulerState.RUNNING)
        try:
            outcome = self.service.backup(trigger=Trigger.SCHEDULER)
        finally:
            if not self._stop_event.is_set():
                self._set_state(SchedulerState.SCHEDULED)

        if isinstance(outcome, SyncFailure):
            logger.warning(f"Scheduled backup failed: {outcome.message}")
        elif isinstance(outcome, SyncRetry):
            logger.info(f"Scheduled backup deferred to next tick: {outcome.reason}")
        return outcome

    def _run_loop(self) -> None:
        while not self._stop_event.wait(self.next_delay()):
            try:
                self.tick()
            except Exception as e:
                logger.error(f"Scheduled backup crashed: {e}", exc_info=True)


_default_scheduler: PeriodicBackupScheduler | None = None
_default_lock = threading.Lock()


def start_default_scheduler() -> PeriodicBackupScheduler:
    """Start (once per process) a periodic scheduler wired from settings."""
    global _default_scheduler
    from snapshot_sync.sync.service import get_service

    with _default_lock:
        if _default_scheduler is None:
            _default_scheduler = PeriodicBackupScheduler(get_service())
        _default_scheduler.start()
        return _default_scheduler
