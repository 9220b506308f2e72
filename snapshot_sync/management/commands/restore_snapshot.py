"""
Django management command to restore local data from the remote snapshot.
"""

from django.core.management.base import BaseCommand, CommandError

from snapshot_sync.models import Trigger
from snapshot_sync.sync.results import SyncFailure, SyncRetry, SyncSuccess
from snapshot_sync.sync.service import get_service


class Command(BaseCommand):
    help = "Fetch the GitHub Gist snapshot and import it into local data"

    def handle(self, *args, **options):
        service = get_service()

        self.stdout.write("Fetching snapshot from GitHub...")
        outcome = service.restore(
            trigger=Trigger.USER,
            on_progress=lambda message: self.stdout.write(f"  {message}"),
        )

        if isinstance(outcome, SyncSuccess):
            self.stdout.write(self.style.SUCCESS(f"\n✓ Imported snapshot {outcome.snapshot_id}"))
        elif isinstance(outcome, SyncRetry):
            self.stdout.write(self.style.WARNING(f"\n⚠ Import failed: {outcome.reason}"))
            raise CommandError(f"Import failed: {outcome.reason}")
        elif isinstance(outcome, SyncFailure):
            self.stdout.write(self.style.ERROR(f"\n✗ Import failed: {outcome.message}"))
            raise CommandError(f"Import failed: {outcome.message}")
