"""
Django management command to run the periodic backup loop in the foreground.
"""

import signal
import threading

from django.core.management.base import BaseCommand

from snapshot_sync.scheduler import PeriodicBackupScheduler
from snapshot_sync.sync.service import get_service


class Command(BaseCommand):
    help = "Run automatic backups every configured interval until interrupted"

    def add_arguments(self, parser):
        parser.add_argument(
            "--run-now",
            action="store_true",
            help="Run one backup immediately before waiting for the first interval",
        )

    def handle(self, *args, **options):
        scheduler = PeriodicBackupScheduler(get_service())
        stop = threading.Event()

        def _shutdown(signum, frame):
            stop.set()

        signal.signal(signal.SIGTERM, _shutdown)

        if options["run_now"]:
            outcome = scheduler.tick()
            if outcome is None:
                self.stdout.write("Automatic backup is disabled, nothing ran")
            else:
                self.stdout.write(f"Initial backup: {outcome.message}")

        scheduler.start()
        self.stdout.write(
            self.style.SUCCESS(f"Scheduler running, next backup in {int(scheduler.next_delay())}s")
        )

        try:
            while not stop.wait(1.0):
                pass
        except KeyboardInterrupt:
            pass
        finally:
            scheduler.stop()
            self.stdout.write("Scheduler stopped")
