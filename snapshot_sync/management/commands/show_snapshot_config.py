"""
Django management command to show the current snapshot backup settings.
"""

import json

from django.core.management.base import BaseCommand, CommandError

from snapshot_sync.preferences import PreferencesError, get_store


def mask_token(token: str) -> str:
    if not token:
        return ""
    if len(token) <= 8:
        return "*" * len(token)
    return f"{token[:4]}{'*' * (len(token) - 8)}{token[-4:]}"


class Command(BaseCommand):
    help = "Show snapshot backup settings (token masked)"

    def add_arguments(self, parser):
        parser.add_argument(
            "--json",
            action="store_true",
            help="Output as JSON",
        )

    def handle(self, *args, **options):
        try:
            config = get_store().load()
        except PreferencesError as e:
            raise CommandError(str(e))

        data = config.to_dict()
        data["token"] = mask_token(config.token)

        if options["json"]:
            self.stdout.write(json.dumps(data, indent=2))
            return

        self.stdout.write(f"Token:          {data['token'] or '(not set)'}")
        self.stdout.write(f"Snapshot id:    {config.snapshot_id or '(none yet)'}")
        self.stdout.write(f"Auto backup:    {'enabled' if config.auto_backup_enabled else 'disabled'}")
        self.stdout.write(f"Interval:       {config.interval} ({config.interval_timedelta()})")
        self.stdout.write(f"Last backup:    {config.last_backup_at or 'never'}")
        self.stdout.write(f"Next backup:    {config.next_due_at() or 'as soon as dispatched'}")
