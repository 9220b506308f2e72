"""
Job claims and pause holds shared between processes.

CLI commands, the Celery worker and the periodic scheduler each run in
their own process, so the guard mirrors its registry and pause flag into
the database where all of them can see it.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Protocol

from django.conf import settings
from django.utils import timezone

logger = logging.getLogger(__name__)

DEFAULT_PAUSE_TTL_SECONDS = 6 * 60 * 60


class SharedJobState(Protocol):
    def claim(self, category: str, owner: str) -> None:
        ...

    def is_current(self, category: str, owner: str) -> bool:
        ...

    def release(self, category: str, owner: str) -> bool:
        ...

    def revoke(self, category: str) -> bool:
        ...

    def hold_pause(self, holder: str, reason: str = "") -> None:
        ...

    def drop_pause(self, holder: str) -> None:
        ...

    def is_paused(self) -> bool:
        ...


class DatabaseJobState:
    """SharedJobState backed by the JobClaim and PauseHold tables."""

    def __init__(self, pause_ttl: timedelta | None = None):
        if pause_ttl is None:
            pause_ttl = timedelta(
                seconds=getattr(settings, "SNAPSHOT_PAUSE_TTL_SECONDS", DEFAULT_PAUSE_TTL_SECONDS)
            )
        self.pause_ttl = pause_ttl

    def claim(self, category: str, owner: str) -> None:
        from snapshot_sync.models import JobClaim

        JobClaim.objects.update_or_create(category=category, defaults={"owner": owner})

    def is_current(self, category: str, owner: str) -> bool:
        from snapshot_sync.models import JobClaim

        return JobClaim.objects.filter(category=category, owner=owner).exists()

    def release(self, category: str, owner: str) -> bool:
        """
        Drop the claim if this owner still holds it.

        Returns:
            False if another process took the claim over
        """
        from snapshot_sync.models import JobClaim

        deleted, _ = JobClaim.objects.filter(category=category, owner=owner).delete()
        return deleted > 0

    def revoke(self, category: str) -> bool:
        from snapshot_sync.models import JobClaim

        deleted, _ = JobClaim.objects.filter(category=category).delete()
        return deleted > 0

    def hold_pause(self, holder: str, reason: str = "") -> None:
        from snapshot_sync.models import PauseHold

        PauseHold.objects.create(
            holder=holder,
            reason=reason[:100],
            expires_at=timezone.now() + self.pause_ttl,
        )

    def drop_pause(self, holder: str) -> None:
        from snapshot_sync.models import PauseHold

        PauseHold.objects.filter(holder=holder).delete()

    def is_paused(self) -> bool:
        from snapshot_sync.models import PauseHold

        return PauseHold.objects.filter(expires_at__gt=timezone.now()).exists()
