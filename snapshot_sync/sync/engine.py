"""
Core sync engine for remote snapshot backups.

Drives the export pipeline and upserts its payload into a single
remote snapshot, and drives a fetched snapshot back through the import
pipeline. Every call returns a SyncOutcome; no exception escapes.
"""

from __future__ import annotations

import logging
import tempfile
from contextlib import closing
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Iterator

from django.conf import settings
from django.utils import timezone

if TYPE_CHECKING:
    from snapshot_sync.pipelines import ExportPipeline, ImportPipeline
    from snapshot_sync.preferences import Config, PreferenceStore
    from snapshot_sync.providers.github_gist import GistClient

from snapshot_sync.models import Trigger
from snapshot_sync.pipelines import Failed, Loading, Succeeded
from snapshot_sync.providers.github_gist import GistError
from snapshot_sync.sync.exceptions import (
    ConfigError,
    EmptySnapshotError,
    LocalIOError,
    PipelineError,
    SyncError,
)
from snapshot_sync.sync.guard import CancellationToken, JobStateGuard
from snapshot_sync.sync.results import SyncFailure, SyncOutcome, SyncRetry, SyncSuccess

logger = logging.getLogger(__name__)

DEFAULT_FILENAME = "linkora_backup.json"
DEFAULT_DESCRIPTION = "Linkora Backup"

ProgressSink = Callable[[str], None]


class SnapshotSyncEngine:
    """
    Backup and restore orchestration against one remote snapshot.

    The store, client, pipelines and guard are injected; the engine keeps
    no state between calls and performs no threading of its own.
    """

    def __init__(
        self,
        store: PreferenceStore,
        client: GistClient,
        export_pipeline: ExportPipeline,
        import_pipeline: ImportPipeline,
        guard: JobStateGuard,
        filename: str | None = None,
        description: str | None = None,
    ):
        self.store = store
        self.client = client
        self.export_pipeline = export_pipeline
        self.import_pipeline = import_pipeline
        self.guard = guard
        self.filename = filename or getattr(settings, "SNAPSHOT_FILENAME", DEFAULT_FILENAME)
        self.description = description or getattr(settings, "SNAPSHOT_DESCRIPTION", DEFAULT_DESCRIPTION)

    def perform_backup(
        self,
        config: Config | None = None,
        *,
        trigger: Trigger = Trigger.USER,
        cancel_token: CancellationToken | None = None,
        on_progress: ProgressSink | None = None,
    ) -> SyncOutcome:
        """
        Export local data and create or update the remote snapshot.

        Args:
            config: Settings to use; read from the store when omitted
            trigger: Who asked. Only user triggers ignore auto_backup_enabled
            cancel_token: Checked between pipeline events and before writing
            on_progress: Receives each Loading message

        Returns:
            SyncSuccess, SyncRetry for transient failures, or SyncFailure
        """
        cancel_token = cancel_token or CancellationToken()
        try:
            if config is None:
                config = self.store.load()

            if not config.has_token:
                raise ConfigError("GitHub token is missing")

            if trigger != Trigger.USER and not config.auto_backup_enabled:
                logger.info(f"Automatic backup disabled, skipping {trigger} backup")
                return SyncSuccess(snapshot_id=config.snapshot_id, skipped=True)

            if self.guard.is_paused:
                logger.info("Backups are paused by a running bulk operation")
                return SyncRetry("paused by a running bulk operation")

            logger.info(f"Starting {trigger} backup")
            payload = self._drive(self.export_pipeline.export(), cancel_token, on_progress)

            cancel_token.raise_if_cancelled()
            return self._upsert(config, payload, on_progress)

        except SyncError as e:
            logger.warning(f"Backup failed: {e}")
            return SyncFailure.from_exception(e)
        except GistError as e:
            logger.warning(f"Backup will be retried: {e}")
            return SyncRetry(str(e))
        except Exception as e:
            logger.error(f"Unexpected error during backup: {e}", exc_info=True)
            return SyncRetry(str(e))

    def _upsert(self, config: Config, payload: str, on_progress: ProgressSink | None) -> SyncOutcome:
        if config.has_snapshot:
            self._report(on_progress, "Updating existing snapshot...")
            self.client.update_snapshot(
                token=config.token,
                snapshot_id=config.snapshot_id,
                filename=self.filename,
                content=payload,
            )
            self.store.update(last_backup_at=timezone.now())
            logger.info(f"Backup updated snapshot {config.snapshot_id}")
            return SyncSuccess(snapshot_id=config.snapshot_id)

        self._report(on_progress, "Creating new snapshot...")
        snapshot = self.client.create_snapshot(
            token=config.token,
            description=self.description,
            filename=self.filename,
            content=payload,
        )
        # Not transactional with the create call: a crash before this write
        # leaves an orphaned remote snapshot and the next run creates another.
        self.store.update(snapshot_id=snapshot.id, last_backup_at=timezone.now())
        logger.info(f"Backup created snapshot {snapshot.id}")
        return SyncSuccess(snapshot_id=snapshot.id, created=True)

    def perform_restore(
        self,
        config: Config | None = None,
        *,
        cancel_token: CancellationToken | None = None,
        on_progress: ProgressSink | None = None,
    ) -> SyncOutcome:
        """
        Fetch the remote snapshot and feed its first file to the import pipeline.

        The import runs with the guard's pause flag set.
        """
        cancel_token = cancel_token or CancellationToken()
        try:
            if config is None:
                config = self.store.load()

            if not config.has_token or not config.has_snapshot:
                raise ConfigError("Token or snapshot id is missing")

            self._report(on_progress, "Fetching snapshot from GitHub...")
            snapshot = self.client.get_snapshot(config.token, config.snapshot_id)
            cancel_token.raise_if_cancelled()

            first = snapshot.first_file
            if first is None:
                raise EmptySnapshotError(f"No files found in snapshot {snapshot.id}")
            filename, snapshot_file = first

            with tempfile.TemporaryDirectory(prefix="snapshot_restore_") as staging_dir:
                staged = self._stage(Path(staging_dir), filename, snapshot_file.content)

                self._report(on_progress, "Importing data from snapshot...")
                with self.guard.paused("restore"):
                    self._drive(self.import_pipeline.import_file(staged), cancel_token, on_progress)

            logger.info(f"Restored snapshot {snapshot.id}")
            return SyncSuccess(snapshot_id=snapshot.id)

        except SyncError as e:
            logger.warning(f"Restore failed: {e}")
            return SyncFailure.from_exception(e)
        except GistError as e:
            logger.warning(f"Restore will be retried: {e}")
            return SyncRetry(str(e))
        except Exception as e:
            logger.error(f"Unexpected error during restore: {e}", exc_info=True)
            return SyncRetry(str(e))

    def _stage(self, staging_dir: Path, filename: str, content: str) -> Path:
        # Remote filenames are not trusted as paths
        staged = staging_dir / (Path(filename).name or self.filename)
        try:
            staged.write_text(content, encoding="utf-8")
        except OSError as e:
            raise LocalIOError(f"Failed to stage snapshot content: {e}") from e
        return staged

    def _drive(
        self,
        events: Iterator,
        cancel_token: CancellationToken,
        on_progress: ProgressSink | None,
    ) -> str:
        """
        Consume a progress sequence up to its terminal event.

        The generator is closed on every exit, so cancelling mid-sequence
        stops the underlying pipeline.

        Returns:
            The Succeeded payload

        Raises:
            PipelineError: On Failed or a sequence with no terminal event
            SyncCancelledError: If the token is cancelled between events
        """
        with closing(events):
            for event in events:
                cancel_token.raise_if_cancelled()

                if isinstance(event, Loading):
                    self._report(on_progress, event.message)
                elif isinstance(event, Succeeded):
                    return event.payload
                elif isinstance(event, Failed):
                    raise PipelineError(event.reason)
                else:
                    raise PipelineError(f"Unexpected progress event {event!r}")

        raise PipelineError("Pipeline ended without a result")

    @staticmethod
    def _report(on_progress: ProgressSink | None, message: str) -> None:
        if on_progress is None:
            return
        try:
            on_progress(message)
        except Exception as e:
            logger.warning(f"Progress sink failed: {e}")
