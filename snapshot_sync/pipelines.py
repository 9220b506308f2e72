"""
Export and import pipelines consumed by the sync engine.

A pipeline call returns a lazy generator of progress events that ends
with Succeeded or Failed. The engine treats the payload as opaque text.
"""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Protocol, Union

from django.conf import settings
from django.utils.module_loading import import_string

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Loading:
    """Progress message from a running pipeline."""

    message: str


@dataclass(frozen=True)
class Succeeded:
    """Terminal event carrying the pipeline payload."""

    payload: str = ""


@dataclass(frozen=True)
class Failed:
    """Terminal event carrying a failure reason."""

    reason: str


ProgressEvent = Union[Loading, Succeeded, Failed]


class ExportPipeline(Protocol):
    def export(self) -> Iterator[ProgressEvent]:
        ...


class ImportPipeline(Protocol):
    def import_file(self, path: Path) -> Iterator[ProgressEvent]:
        ...


class FileExportPipeline:
    """Exports the contents of an already serialized export file."""

    def __init__(self, source: Path | str | None = None):
        self.source = Path(source or settings.SNAPSHOT_EXPORT_SOURCE)

    def export(self) -> Iterator[ProgressEvent]:
        yield Loading(f"Reading export from {self.source}")

        try:
            content = self.source.read_text(encoding="utf-8")
        except OSError as e:
            logger.warning(f"Failed to read export source {self.source}: {e}")
            yield Failed(f"Could not read {self.source}: {e}")
            return

        yield Loading(f"Read {len(content)} characters")
        yield Succeeded(content)


class FileImportPipeline:
    """Imports staged content by replacing the destination file atomically."""

    def __init__(self, destination: Path | str | None = None):
        self.destination = Path(destination or settings.SNAPSHOT_IMPORT_DESTINATION)

    def import_file(self, path: Path) -> Iterator[ProgressEvent]:
        path = Path(path)
        yield Loading(f"Importing {path.name}")

        try:
            content = path.read_text(encoding="utf-8")
            self.destination.parent.mkdir(parents=True, exist_ok=True)

            fd, tmp_path = tempfile.mkstemp(
                dir=self.destination.parent,
                prefix=".import_",
                suffix=".tmp",
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(content)
                os.replace(tmp_path, self.destination)
            except Exception:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    pass
                raise

        except OSError as e:
            logger.warning(f"Import into {self.destination} failed: {e}")
            yield Failed(f"Could not import into {self.destination}: {e}")
            return

        yield Loading(f"Wrote {len(content)} characters to {self.destination}")
        yield Succeeded()


def get_export_pipeline() -> ExportPipeline:
    """Instantiate the export pipeline named by settings.SNAPSHOT_EXPORT_PIPELINE."""
    path = getattr(settings, "SNAPSHOT_EXPORT_PIPELINE", "snapshot_sync.pipelines.FileExportPipeline")
    return import_string(path)()


def get_import_pipeline() -> ImportPipeline:
    """Instantiate the import pipeline named by settings.SNAPSHOT_IMPORT_PIPELINE."""
    path = getattr(settings, "SNAPSHOT_IMPORT_PIPELINE", "snapshot_sync.pipelines.FileImportPipeline")
    return import_string(path)()
