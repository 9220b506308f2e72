"""
Django management command to change snapshot backup settings.
"""

from django.core.management.base import BaseCommand, CommandError

from snapshot_sync.models import BackupInterval
from snapshot_sync.preferences import PreferencesError, get_store


class Command(BaseCommand):
    help = "Set the GitHub token, backup interval, automatic backup flag or snapshot id"

    def add_arguments(self, parser):
        parser.add_argument(
            "--token",
            help="GitHub token with the gist scope",
        )
        parser.add_argument(
            "--interval",
            choices=BackupInterval.values,
            help="How often automatic backups run",
        )
        enabled = parser.add_mutually_exclusive_group()
        enabled.add_argument(
            "--enable",
            action="store_true",
            help="Enable automatic backups",
        )
        enabled.add_argument(
            "--disable",
            action="store_true",
            help="Disable automatic backups",
        )
        snapshot = parser.add_mutually_exclusive_group()
        snapshot.add_argument(
            "--snapshot-id",
            help="Use an existing Gist as the backup target",
        )
        snapshot.add_argument(
            "--clear-snapshot-id",
            action="store_true",
            help="Forget the current Gist; the next backup creates a new one",
        )

    def handle(self, *args, **options):
        changes = {}

        if options["token"] is not None:
            changes["token"] = options["token"].strip()
        if options["interval"]:
            changes["interval"] = options["interval"]
        if options["enable"]:
            changes["auto_backup_enabled"] = True
        if options["disable"]:
            changes["auto_backup_enabled"] = False
        if options["snapshot_id"] is not None:
            changes["snapshot_id"] = options["snapshot_id"].strip()
        if options["clear_snapshot_id"]:
            changes["snapshot_id"] = ""

        if not changes:
            raise CommandError("Nothing to change. See --help for the available settings.")

        try:
            config = get_store().update(**changes)
        except PreferencesError as e:
            raise CommandError(f"Failed to save settings: {e}")

        self.stdout.write(self.style.SUCCESS(f"✓ Saved: {', '.join(sorted(changes))}"))

        if config.auto_backup_enabled and not config.has_token:
            self.stdout.write(
                self.style.WARNING("⚠ Automatic backup is enabled but no token is set")
            )
