import logging
import os
import sys

from django.apps import AppConfig
from django.conf import settings

logger = logging.getLogger(__name__)


def is_serving_process(argv=None, environ=None) -> bool:
    """
    Whether this is the runserver process that actually serves requests.

    With the autoreloader, ready() also runs in the watching parent; only
    the child has RUN_MAIN set.
    """
    argv = sys.argv if argv is None else argv
    environ = os.environ if environ is None else environ

    if 'runserver' not in argv:
        return False
    if '--noreload' in argv:
        return True
    return environ.get('RUN_MAIN') == 'true'


class SnapshotSyncConfig(AppConfig):
    name = 'snapshot_sync'
    default_auto_field = 'django.db.models.BigAutoField'

    def ready(self):
        """
        Run when Django app is ready.

        Starts the periodic backup loop in the serving runserver process
        when SNAPSHOT_SCHEDULER_AUTOSTART is set.
        """
        # Only run in the server process (not in migrations, tests, etc.)
        if not is_serving_process():
            return

        if not getattr(settings, 'SNAPSHOT_SCHEDULER_AUTOSTART', False):
            return

        # Import here to avoid circular imports
        from snapshot_sync.scheduler import start_default_scheduler

        try:
            start_default_scheduler()
        except Exception as e:
            # Don't crash the app if the scheduler can't start
            logger.error(f"Backup scheduler failed to start: {e}", exc_info=True)
