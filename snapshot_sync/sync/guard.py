"""
Job state guard: single-flight enforcement, cooperative cancellation,
and the pause flag used by destructive bulk operations.

The guard keeps its own in-memory registry and, when given a
SharedJobState, mirrors claims and pause holds into it so that jobs in
other processes see them too.
"""

from __future__ import annotations

import enum
import logging
import threading
import uuid
from contextlib import contextmanager
from typing import TYPE_CHECKING, Callable, Iterator

from snapshot_sync.sync.exceptions import SyncCancelledError
from snapshot_sync.sync.results import ErrorKind, SyncFailure, SyncOutcome

if TYPE_CHECKING:
    from snapshot_sync.sync.coordination import SharedJobState

logger = logging.getLogger(__name__)


class JobCategory(str, enum.Enum):
    EXPORT = "export"
    IMPORT = "import"


class CancellationToken:
    """
    Cooperative cancellation flag checked at each suspension point.

    An optional is_current callable is consulted on every check; once it
    reports False the token stays cancelled.
    """

    def __init__(self, is_current: Callable[[], bool] | None = None):
        self._event = threading.Event()
        self._is_current = is_current

    def cancel(self) -> None:
        self._event.set()

    @property
    def was_cancelled(self) -> bool:
        """Whether cancellation has been observed, without asking the shared state."""
        return self._event.is_set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        if self._is_current is not None and not self._is_current():
            logger.info("Job claim was taken over by another process")
            self._event.set()
            return True
        return False

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise SyncCancelledError("Job was cancelled")


class JobHandle:
    """
    One in-flight orchestrator invocation.

    Completion callbacks fire exactly once. A cancelled handle reports a
    cancelled failure whatever the orchestrator returned.
    """

    def __init__(self, category: JobCategory, token: CancellationToken | None = None, owner: str | None = None):
        self.category = category
        self.owner = owner or uuid.uuid4().hex
        self.token = token or CancellationToken()
        self._callbacks: list[Callable[[SyncOutcome], None]] = []
        self._lock = threading.Lock()
        self._outcome: SyncOutcome | None = None
        self._done = threading.Event()

    def __repr__(self):
        return f"<JobHandle {self.category.value} owner={self.owner[:8]}>"

    @property
    def cancelled(self) -> bool:
        return self.token.cancelled

    @property
    def done(self) -> bool:
        return self._done.is_set()

    @property
    def outcome(self) -> SyncOutcome | None:
        return self._outcome

    def cancel(self) -> None:
        self.token.cancel()

    def add_done_callback(self, callback: Callable[[SyncOutcome], None]) -> None:
        with self._lock:
            if not self._done.is_set():
                self._callbacks.append(callback)
                return
        callback(self._outcome)

    def wait(self, timeout: float | None = None) -> bool:
        return self._done.wait(timeout)

    def complete(self, outcome: SyncOutcome) -> SyncOutcome:
        """Record the outcome and fire callbacks. Later calls are ignored."""
        with self._lock:
            if self._done.is_set():
                return self._outcome

            if self.token.was_cancelled and not (
                isinstance(outcome, SyncFailure) and outcome.kind == ErrorKind.CANCELLED
            ):
                logger.info(f"{self!r} was superseded, reporting cancellation (actual: {outcome!r})")
                outcome = SyncFailure(ErrorKind.CANCELLED, "Superseded by a newer job")

            self._outcome = outcome
            callbacks, self._callbacks = self._callbacks, []
            self._done.set()

        for callback in callbacks:
            try:
                callback(outcome)
            except Exception as e:
                logger.error(f"Completion callback for {self!r} failed: {e}", exc_info=True)

        return outcome


class JobStateGuard:
    """Registry of active jobs per category plus the shared pause flag."""

    def __init__(self, shared: SharedJobState | None = None):
        self._lock = threading.Lock()
        self._active: dict[JobCategory, JobHandle] = {}
        self._pause_holders: set[str] = set()
        self._manual_holds: list[str] = []
        self._shared = shared

    def acquire(self, category: JobCategory) -> JobHandle:
        """Claim a category, cancelling any job already holding it. Never blocks."""
        owner = uuid.uuid4().hex
        token = CancellationToken()
        if self._shared is not None:
            shared = self._shared
            token = CancellationToken(is_current=lambda: shared.is_current(category.value, owner))
            shared.claim(category.value, owner)

        handle = JobHandle(category, token=token, owner=owner)
        with self._lock:
            previous = self._active.get(category)
            self._active[category] = handle

        if previous is not None and not previous.done:
            logger.info(f"Superseding {previous!r} with {handle!r}")
            previous.cancel()

        return handle

    def release(self, handle: JobHandle) -> None:
        """Drop the handle from the registry if it is still the active one."""
        with self._lock:
            if self._active.get(handle.category) is handle:
                del self._active[handle.category]

        if self._shared is not None and not self._shared.release(handle.category.value, handle.owner):
            # Another process took the claim over while this job ran
            handle.cancel()

    def active(self, category: JobCategory) -> JobHandle | None:
        with self._lock:
            return self._active.get(category)

    def cancel(self, category: JobCategory) -> bool:
        """
        Cancel the active job in a category, in this process or another.

        Returns:
            True if a job was cancelled, False if none was active
        """
        with self._lock:
            handle = self._active.pop(category, None)

        revoked = False
        if self._shared is not None:
            revoked = self._shared.revoke(category.value)

        if handle is not None:
            logger.info(f"Cancelling {handle!r}")
            handle.cancel()
        elif revoked:
            logger.info(f"Revoked {category.value} claim held by another process")

        return handle is not None or revoked

    @property
    def is_paused(self) -> bool:
        with self._lock:
            if self._pause_holders:
                return True
        return self._shared is not None and self._shared.is_paused()

    def _hold_pause(self, reason: str) -> str:
        holder = uuid.uuid4().hex
        with self._lock:
            self._pause_holders.add(holder)
        if self._shared is not None:
            try:
                self._shared.hold_pause(holder, reason)
            except Exception:
                with self._lock:
                    self._pause_holders.discard(holder)
                raise
        logger.debug(f"Pause held by {holder[:8]} ({reason or 'no reason'})")
        return holder

    def _drop_pause(self, holder: str) -> None:
        try:
            if self._shared is not None:
                self._shared.drop_pause(holder)
        finally:
            with self._lock:
                self._pause_holders.discard(holder)
        logger.debug(f"Pause released by {holder[:8]}")

    def set_paused(self, paused: bool) -> None:
        """Take or give back one pause hold outside a paused() block."""
        if paused:
            self._manual_holds.append(self._hold_pause("set_paused"))
        elif self._manual_holds:
            self._drop_pause(self._manual_holds.pop())

    @contextmanager
    def paused(self, reason: str = "") -> Iterator[None]:
        """
        Hold the pause flag for the duration of a destructive operation.

        Holds nest: the flag stays set until every holder has exited.
        """
        holder = self._hold_pause(reason)
        try:
            yield
        finally:
            self._drop_pause(holder)


_guard: JobStateGuard | None = None
_guard_lock = threading.Lock()


def get_guard() -> JobStateGuard:
    """The process-wide guard, coordinated with other processes through the database."""
    global _guard
    from snapshot_sync.sync.coordination import DatabaseJobState

    with _guard_lock:
        if _guard is None:
            _guard = JobStateGuard(shared=DatabaseJobState())
        return _guard
