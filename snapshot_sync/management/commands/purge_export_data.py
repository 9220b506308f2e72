"""
Django management command to delete the local export data.
"""

from pathlib import Path

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from snapshot_sync.sync.guard import JobCategory, get_guard


class Command(BaseCommand):
    help = "Delete the local export data; backups are paused while it runs"

    def add_arguments(self, parser):
        parser.add_argument(
            "--yes",
            action="store_true",
            help="Do not ask for confirmation",
        )

    def handle(self, *args, **options):
        source = Path(settings.SNAPSHOT_EXPORT_SOURCE)

        if not source.exists():
            self.stdout.write(self.style.WARNING(f"Nothing to delete at {source}"))
            return

        if not options["yes"]:
            answer = input(f"Delete {source}? This cannot be undone [y/N] ")
            if answer.strip().lower() != "y":
                self.stdout.write("Aborted")
                return

        guard = get_guard()
        with guard.paused("purge_export_data"):
            guard.cancel(JobCategory.EXPORT)
            try:
                source.unlink()
            except OSError as e:
                raise CommandError(f"Failed to delete {source}: {e}")

        self.stdout.write(self.style.SUCCESS(f"✓ Deleted {source}"))
