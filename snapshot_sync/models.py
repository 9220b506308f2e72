from datetime import timedelta

from django.db import models


class BackupInterval(models.TextChoices):
    HOURLY = "hourly", "Every hour"
    EVERY_6_HOURS = "every_6_hours", "Every 6 hours"
    EVERY_12_HOURS = "every_12_hours", "Every 12 hours"
    DAILY = "daily", "Daily"
    WEEKLY = "weekly", "Weekly"

    @classmethod
    def to_timedelta(cls, value: str) -> timedelta | None:
        """Return the period for an interval token, or None if unknown."""
        return INTERVAL_PERIODS.get(str(value))


INTERVAL_PERIODS = {
    BackupInterval.HOURLY.value: timedelta(hours=1),
    BackupInterval.EVERY_6_HOURS.value: timedelta(hours=6),
    BackupInterval.EVERY_12_HOURS.value: timedelta(hours=12),
    BackupInterval.DAILY.value: timedelta(days=1),
    BackupInterval.WEEKLY.value: timedelta(weeks=1),
}


class Operation(models.TextChoices):
    BACKUP = "backup", "Backup"
    RESTORE = "restore", "Restore"


class Trigger(models.TextChoices):
    USER = "user", "User"
    SCHEDULER = "scheduler", "Scheduler"
    HOST_JOB = "host_job", "Host Job"


class RunStatus(models.TextChoices):
    SUCCESS = "success", "Success"
    SKIPPED = "skipped", "Skipped"
    RETRY = "retry", "Retry"
    FAILURE = "failure", "Failure"


class SnapshotRun(models.Model):
    """
    Records each backup or restore run for audit and debugging.

    The snapshot settings themselves live in the preference store,
    not in the database. See snapshot_sync/preferences.py.
    """

    operation = models.CharField(max_length=10, choices=Operation.choices)
    trigger = models.CharField(max_length=10, choices=Trigger.choices)
    status = models.CharField(max_length=10, choices=RunStatus.choices)
    error_kind = models.CharField(max_length=20, blank=True)
    message = models.TextField(blank=True)
    snapshot_id = models.CharField(max_length=255, blank=True)
    created_snapshot = models.BooleanField(default=False)
    started_at = models.DateTimeField()
    completed_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=["operation", "-completed_at"], name="snapshot_run_op_completed_idx"),
            models.Index(fields=["status"], name="snapshot_run_status_idx"),
        ]
        ordering = ["-completed_at"]

    def __str__(self):
        return f"{self.get_operation_display()} ({self.get_trigger_display()}) - {self.get_status_display()}"


class JobClaim(models.Model):
    """
    The job currently holding a category, shared by every process.

    A newer claim overwrites the owner; the previous holder notices at its
    next cancellation check and stops.
    """

    category = models.CharField(max_length=10, primary_key=True)
    owner = models.CharField(max_length=32)
    claimed_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.category} held by {self.owner}"


class PauseHold(models.Model):
    """
    One holder of the backup pause flag.

    Backups are paused while any unexpired hold exists. Holds expire so a
    crashed process cannot pause backups forever.
    """

    holder = models.CharField(max_length=32, unique=True)
    reason = models.CharField(max_length=100, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    expires_at = models.DateTimeField(db_index=True)

    def __str__(self):
        return f"Pause {self.holder} until {self.expires_at}"
