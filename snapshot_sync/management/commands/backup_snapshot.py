"""
Django management command to back up local data to the remote snapshot.
"""

from django.core.management.base import BaseCommand, CommandError

from snapshot_sync.models import Trigger
from snapshot_sync.sync.results import SyncFailure, SyncRetry, SyncSuccess
from snapshot_sync.sync.service import get_service


class Command(BaseCommand):
    help = "Export local data and create or update the GitHub Gist snapshot"

    def add_arguments(self, parser):
        parser.add_argument(
            "--quiet-progress",
            action="store_true",
            help="Do not print pipeline progress messages",
        )

    def handle(self, *args, **options):
        service = get_service()

        on_progress = None
        if not options["quiet_progress"]:
            on_progress = lambda message: self.stdout.write(f"  {message}")

        outcome = service.backup(trigger=Trigger.USER, on_progress=on_progress)

        if isinstance(outcome, SyncSuccess):
            self.stdout.write(self.style.SUCCESS(f"\n✓ {outcome.message}"))
        elif isinstance(outcome, SyncRetry):
            self.stdout.write(self.style.WARNING(f"\n⚠ Backup failed: {outcome.reason}"))
            raise CommandError(f"Backup failed: {outcome.reason}")
        elif isinstance(outcome, SyncFailure):
            self.stdout.write(self.style.ERROR(f"\n✗ Backup failed: {outcome.message}"))
            raise CommandError(f"Backup failed: {outcome.message}")
