"""
Celery tasks for snapshot operations.

Celery is the host scheduler for automatic backups: it dispatches the
job, and its autoretry/backoff handles transient failures.
"""

import logging

from celery import shared_task
from django.utils import timezone

logger = logging.getLogger(__name__)


class SnapshotRetryError(Exception):
    """Raised to hand a transient backup failure to Celery's retry machinery."""

    pass


@shared_task(
    bind=True,
    autoretry_for=(SnapshotRetryError,),
    retry_backoff=True,
    retry_backoff_max=600,
    max_retries=5,
)
def backup_snapshot_task(self):
    """
    Run one automatic backup.

    Returns a status dict on success or non-retryable failure; raises
    SnapshotRetryError so Celery retries with backoff.
    """
    from snapshot_sync.scheduler import BackupJob, JobDisposition
    from snapshot_sync.sync.service import get_service

    disposition = BackupJob(get_service()).run()

    if disposition == JobDisposition.RETRY:
        logger.info(f"Backup will be retried (attempt {self.request.retries + 1})")
        raise SnapshotRetryError("Backup failed transiently")

    if disposition == JobDisposition.FAILURE:
        logger.warning("Backup failed and will not be retried")
        return {"status": "failed"}

    return {"status": "completed"}


@shared_task
def backup_due_snapshot():
    """
    Dispatch a backup when the configured interval has elapsed.

    Intended to run from celery beat at a period shorter than the
    shortest interval.
    """
    from snapshot_sync.preferences import get_store

    config = get_store().load()

    if not config.auto_backup_enabled:
        return {"scheduled": False, "reason": "disabled"}

    if not config.has_token:
        logger.warning("Automatic backup enabled but no GitHub token is set")
        return {"scheduled": False, "reason": "missing_token"}

    now = timezone.now()

    def is_due(current):
        due_at = current.next_due_at()
        return due_at is None or due_at <= now

    # Reserve the next slot before dispatching, so a task still retrying
    # with backoff is not joined by another one on the next beat tick
    reserved = get_store().update_if(is_due, next_backup_at=now + config.interval_timedelta())
    if reserved is None:
        return {"scheduled": False, "reason": "not_due"}

    backup_snapshot_task.delay()
    logger.info(
        f"Scheduled snapshot backup (last backup: {config.last_backup_at or 'never'}, "
        f"next at {reserved.next_backup_at})"
    )
    return {"scheduled": True}


@shared_task
def restore_snapshot_task():
    """Restore the remote snapshot into the local dataset."""
    from snapshot_sync.sync.results import SyncSuccess
    from snapshot_sync.sync.service import get_service

    outcome = get_service().restore()

    return {
        "status": "completed" if isinstance(outcome, SyncSuccess) else "failed",
        "message": outcome.message,
    }
