"""
Django management command to list recent backup and restore runs.
"""

import json

from django.core.management.base import BaseCommand

from snapshot_sync.models import Operation, SnapshotRun


class Command(BaseCommand):
    help = "List recent snapshot backup and restore runs"

    def add_arguments(self, parser):
        parser.add_argument(
            "--limit",
            type=int,
            default=20,
            help="Number of runs to show (default: 20)",
        )
        parser.add_argument(
            "--operation",
            choices=Operation.values,
            help="Only show one kind of run",
        )
        parser.add_argument(
            "--json",
            action="store_true",
            help="Output as JSON",
        )

    def handle(self, *args, **options):
        runs = SnapshotRun.objects.all()
        if options["operation"]:
            runs = runs.filter(operation=options["operation"])
        runs = list(runs[: options["limit"]])

        if not runs:
            self.stdout.write(self.style.WARNING("No runs recorded yet."))
            return

        if options["json"]:
            self._output_json(runs)
        else:
            self._output_table(runs)

    def _output_json(self, runs):
        data = [
            {
                "id": run.id,
                "operation": run.operation,
                "trigger": run.trigger,
                "status": run.status,
                "error_kind": run.error_kind,
                "message": run.message,
                "snapshot_id": run.snapshot_id,
                "created_snapshot": run.created_snapshot,
                "started_at": run.started_at.isoformat(),
                "completed_at": run.completed_at.isoformat(),
            }
            for run in runs
        ]
        self.stdout.write(json.dumps(data, indent=2))

    def _output_table(self, runs):
        header = f"{'ID':<6} {'Operation':<10} {'Trigger':<10} {'Status':<8} {'Completed':<17} Message"
        self.stdout.write(header)
        self.stdout.write("-" * len(header))

        style_for = {
            "success": self.style.SUCCESS,
            "skipped": self.style.SUCCESS,
            "retry": self.style.WARNING,
            "failure": self.style.ERROR,
        }
        for run in runs:
            status = style_for.get(run.status, str)(f"{run.status:<8}")
            self.stdout.write(
                f"{run.id:<6} {run.operation:<10} {run.trigger:<10} {status} "
                f"{run.completed_at.strftime('%Y-%m-%d %H:%M'):<17} {run.message}"
            )
