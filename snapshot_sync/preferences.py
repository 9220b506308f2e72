"""
Preference store for snapshot sync settings.

Settings live in a JSON file with restricted permissions (600) because
the file carries the GitHub token. Every read goes to disk, so callers
always see the last committed value.
"""

from __future__ import annotations

import json
import logging
import os
import stat
import tempfile
import threading
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from datetime import timezone as dt_timezone
from pathlib import Path
from typing import Callable

from django.conf import settings
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from snapshot_sync.models import BackupInterval

logger = logging.getLogger(__name__)

DEFAULT_FALLBACK_INTERVAL_SECONDS = 60 * 60

KNOWN_KEYS = (
    "token",
    "snapshot_id",
    "auto_backup_enabled",
    "interval",
    "last_backup_at",
    "next_backup_at",
)

TRUE_STRINGS = ("true", "1", "yes", "on")
FALSE_STRINGS = ("false", "0", "no", "off", "")


class PreferencesError(Exception):
    """Base exception for preference store operations."""

    pass


class PreferencesFileError(PreferencesError):
    """Raised when the preferences file cannot be read or written."""

    pass


@dataclass(frozen=True)
class Config:
    """Snapshot sync settings as committed to the preference store."""

    token: str = ""
    snapshot_id: str = ""
    auto_backup_enabled: bool = False
    interval: str = BackupInterval.HOURLY.value
    last_backup_at: datetime | None = None
    next_backup_at: datetime | None = None

    @property
    def has_token(self) -> bool:
        return bool(self.token.strip())

    @property
    def has_snapshot(self) -> bool:
        return bool(self.snapshot_id.strip())

    def interval_timedelta(self, fallback: timedelta | None = None) -> timedelta:
        """
        Resolve the interval token to a period.

        Unknown tokens resolve to the fallback period.
        """
        period = BackupInterval.to_timedelta(self.interval)
        if period is not None:
            return period

        if fallback is None:
            fallback = get_fallback_interval()
        logger.warning(f"Unknown backup interval {self.interval!r}, using {fallback}")
        return fallback

    def next_due_at(self) -> datetime | None:
        """
        When the next automatic backup is due.

        The later of last_backup_at + interval and the reserved
        next_backup_at; None if no backup has run or been dispatched yet.
        """
        candidates = []
        if self.last_backup_at:
            candidates.append(self.last_backup_at + self.interval_timedelta())
        if self.next_backup_at:
            candidates.append(self.next_backup_at)
        return max(candidates) if candidates else None

    def to_dict(self) -> dict:
        return {
            "token": self.token,
            "snapshot_id": self.snapshot_id,
            "auto_backup_enabled": self.auto_backup_enabled,
            "interval": str(self.interval),
            "last_backup_at": self.last_backup_at.isoformat() if self.last_backup_at else None,
            "next_backup_at": self.next_backup_at.isoformat() if self.next_backup_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Config":
        return cls(
            token=data.get("token") or "",
            snapshot_id=data.get("snapshot_id") or "",
            auto_backup_enabled=_parse_bool("auto_backup_enabled", data.get("auto_backup_enabled", False)),
            interval=data.get("interval") or BackupInterval.HOURLY.value,
            last_backup_at=_parse_timestamp(data.get("last_backup_at")),
            next_backup_at=_parse_timestamp(data.get("next_backup_at")),
        )


def _parse_bool(key: str, value) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in TRUE_STRINGS:
            return True
        if lowered in FALSE_STRINGS:
            return False
    raise PreferencesFileError(f"Invalid value for {key}: {value!r}")


def _parse_timestamp(value) -> datetime | None:
    if not value:
        return None
    try:
        parsed = parse_datetime(value)
    except (ValueError, TypeError):
        logger.warning(f"Ignoring unreadable timestamp {value!r} in preferences file")
        return None
    if parsed is None:
        logger.warning(f"Ignoring unreadable timestamp {value!r} in preferences file")
        return None
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed, dt_timezone.utc)
    return parsed


def get_fallback_interval() -> timedelta:
    seconds = getattr(
        settings, "SNAPSHOT_FALLBACK_INTERVAL_SECONDS", DEFAULT_FALLBACK_INTERVAL_SECONDS
    )
    return timedelta(seconds=seconds)


class PreferenceStore:
    """
    File-backed accessor for the snapshot sync Config.

    All mutations go through update(), which holds a lock across the
    load-modify-save cycle and replaces the file atomically.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _load(self) -> dict:
        if not self.path.exists():
            return {}

        try:
            with open(self.path, "r") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON in preferences file: {e}")
            raise PreferencesFileError(f"Invalid preferences file format: {e}") from e
        except OSError as e:
            logger.error(f"Failed to read preferences file: {e}")
            raise PreferencesFileError(f"Failed to read preferences file: {e}") from e

        if not isinstance(data, dict):
            raise PreferencesFileError("Preferences file must contain a JSON object")
        return data

    def _save(self, data: dict) -> None:
        """Write the preferences atomically (temp file + rename, mode 600)."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)

            fd, tmp_path = tempfile.mkstemp(
                dir=self.path.parent,
                prefix=".preferences_",
                suffix=".tmp",
            )

            try:
                with os.fdopen(fd, "w") as f:
                    json.dump(data, f, indent=2, default=str)
                    f.flush()
                    os.fsync(f.fileno())

                os.chmod(tmp_path, stat.S_IRUSR | stat.S_IWUSR)  # 600
                os.replace(tmp_path, self.path)

            except Exception:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    pass
                raise

        except OSError as e:
            logger.error(f"Failed to save preferences file: {e}")
            raise PreferencesFileError(f"Failed to save preferences file: {e}") from e

    def load(self) -> Config:
        """Read the current Config from disk."""
        return Config.from_dict(self._load())

    def update(self, **changes) -> Config:
        """
        Apply changes to the stored Config and persist them.

        Returns:
            The Config as committed

        Raises:
            PreferencesError: On unknown keys
            PreferencesFileError: If the file cannot be written
        """
        return self._apply(None, changes)

    def update_if(self, condition: Callable[[Config], bool], **changes) -> Config | None:
        """
        Apply changes only if condition holds for the stored Config.

        The check and the write happen under the same lock, so two callers
        in this process cannot both see the old value and both write.

        Returns:
            The Config as committed, or None if the condition was false
        """
        return self._apply(condition, changes)

    def _apply(self, condition: Callable[[Config], bool] | None, changes: dict) -> Config | None:
        unknown = set(changes) - set(KNOWN_KEYS)
        if unknown:
            raise PreferencesError(f"Unknown preference keys: {', '.join(sorted(unknown))}")

        with self._lock:
            raw = self._load()
            if condition is not None and not condition(Config.from_dict(raw)):
                return None

            # Values being replaced are not parsed, so a bad stored value can be fixed
            current = Config.from_dict({k: v for k, v in raw.items() if k not in changes})
            config = replace(current, **changes)
            raw.update(config.to_dict())
            self._save(raw)

        logger.info(f"Saved preferences: {', '.join(sorted(changes))}")
        return config

    def set_snapshot_id(self, snapshot_id: str) -> Config:
        return self.update(snapshot_id=snapshot_id)


_stores: dict[Path, PreferenceStore] = {}
_stores_lock = threading.Lock()


def get_store() -> PreferenceStore:
    """
    Return the store for settings.SNAPSHOT_PREFERENCES_FILE.

    One store per path per process, so every writer shares a lock.
    """
    path = Path(settings.SNAPSHOT_PREFERENCES_FILE)
    with _stores_lock:
        store = _stores.get(path)
        if store is None:
            store = _stores[path] = PreferenceStore(path)
        return store
