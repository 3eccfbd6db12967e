"""Job — base class for work activated by triggers.

A Job owns a mutable ``triggers`` collection.  Whenever an owned trigger
fires while the job is enabled, the job runs its body (``_on_run``).

Run sequence::

    trigger fires (any thread)
        ↓
    Job._on_trigger_fired()   — ignored if trigger detached / job disabled /
        ↓                       another run already in flight
    status = RUNNING
        ↓
    _on_run()                 — job-specific body
        ↓
    status = IDLE             — on success
    unhandled_exception       — on failure: observers run first; unless one
                                sets ``event.handled`` the job is disabled
                                (job only), ``last_error`` is recorded and
                                status becomes ERROR

Invariants
----------
- ``status == ERROR`` implies ``is_enabled is False``.
- ``last_error is not None`` implies ``status == ERROR``; both clear on
  the next ``enable()``.
- Every trigger in ``triggers`` has exactly one subscription to the job's
  fired-handler (duplicates share it); removed triggers have none.
- At most one run per job is in flight; firings during a run are skipped.
"""

from __future__ import annotations

import threading
import uuid
from abc import ABC, abstractmethod
from collections.abc import MutableSequence
from typing import Any, Iterable, Iterator, overload

from jobtrigger.exceptions import not_none
from jobtrigger.logging import get_logger, job_context
from jobtrigger.models import JobStatus, Scope, UnhandledExceptionEvent
from jobtrigger.signals import Signal
from jobtrigger.triggers.base import Trigger, is_closeable

log = get_logger(__name__)


# ---------------------------------------------------------------------------
# TriggerCollection
# ---------------------------------------------------------------------------


class TriggerCollection(MutableSequence[Trigger]):
    """Ordered triggers of a job, subscribing/unsubscribing on mutation.

    Supports append, insert, extend, remove (by identity), ``del c[i]``,
    ``c[i] = trigger``, pop and clear.  Slice assignment and deletion are
    not supported.  ``None`` is rejected with InvalidArgumentError before
    anything changes.

    All mutations hold the owning job's lock, which its fired-handler also
    takes, so a firing never observes a half-applied mutation.
    """

    def __init__(self, job: Job) -> None:
        self._job = job
        self._lock = job._lock
        self._items: list[Trigger] = []
        # id(trigger) → number of occurrences; the handler is connected once
        # per distinct instance.
        self._refs: dict[int, int] = {}

    # --- Sequence ------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._items)

    @overload
    def __getitem__(self, index: int) -> Trigger: ...

    @overload
    def __getitem__(self, index: slice) -> list[Trigger]: ...

    def __getitem__(self, index: int | slice) -> Trigger | list[Trigger]:
        with self._lock:
            return self._items[index]

    def __iter__(self) -> Iterator[Trigger]:
        return iter(self.snapshot())

    def __contains__(self, value: object) -> bool:
        with self._lock:
            return any(item is value for item in self._items)

    def snapshot(self) -> list[Trigger]:
        """Return a copy of the current triggers."""
        with self._lock:
            return list(self._items)

    # --- MutableSequence -----------------------------------------------------

    def __setitem__(self, index: int, trigger: Trigger) -> None:  # type: ignore[override]
        if isinstance(index, slice):
            raise TypeError("TriggerCollection does not support slice assignment")
        not_none(trigger, "trigger")
        with self._lock:
            displaced = self._items[index]
            self._retain(trigger)
            self._items[index] = trigger
            self._release(displaced)
        self._job._log.debug(
            "trigger_replaced", job=str(self._job), removed=repr(displaced), added=repr(trigger)
        )

    def __delitem__(self, index: int) -> None:  # type: ignore[override]
        if isinstance(index, slice):
            raise TypeError("TriggerCollection does not support slice deletion")
        with self._lock:
            trigger = self._items.pop(index)
            self._release(trigger)
        self._job._log.debug("trigger_removed", job=str(self._job), trigger=repr(trigger))

    def insert(self, index: int, trigger: Trigger) -> None:
        not_none(trigger, "trigger")
        with self._lock:
            self._retain(trigger)
            self._items.insert(index, trigger)
        self._job._log.debug("trigger_added", job=str(self._job), trigger=repr(trigger))

    def extend(self, triggers: Iterable[Trigger]) -> None:
        items = list(triggers)
        for trigger in items:
            not_none(trigger, "trigger")
        for trigger in items:
            self.append(trigger)

    def pop(self, index: int = -1) -> Trigger:
        with self._lock:
            trigger = self._items[index]
            del self[index]
            return trigger

    def remove(self, trigger: Trigger) -> None:
        """Remove the first occurrence of *trigger* (compared by identity)."""
        with self._lock:
            for index, item in enumerate(self._items):
                if item is trigger:
                    del self[index]
                    return
        raise ValueError(f"{trigger!r} is not in the trigger collection")

    def clear(self) -> None:
        """Remove every trigger, tolerating triggers that fail to unsubscribe."""
        with self._lock:
            items, self._items = self._items, []
            for trigger in items:
                self._release(trigger)
        self._job._log.debug("triggers_cleared", job=str(self._job), count=len(items))

    # --- subscription bookkeeping -------------------------------------------

    def is_attached(self, trigger: Any) -> bool:
        with self._lock:
            return id(trigger) in self._refs

    def _retain(self, trigger: Trigger) -> None:
        key = id(trigger)
        count = self._refs.get(key, 0)
        if count == 0:
            trigger.fired.connect(self._job._on_trigger_fired)
        self._refs[key] = count + 1

    def _release(self, trigger: Trigger) -> None:
        key = id(trigger)
        count = self._refs.get(key, 0) - 1
        if count > 0:
            self._refs[key] = count
            return
        self._refs.pop(key, None)
        try:
            trigger.fired.disconnect(self._job._on_trigger_fired)
        except Exception as exc:
            self._job._log.warning(
                "trigger_unsubscribe_failed",
                job=str(self._job),
                trigger=repr(trigger),
                error=str(exc),
                exc_info=True,
            )

    def __repr__(self) -> str:
        return f"TriggerCollection({self.snapshot()!r})"


# ---------------------------------------------------------------------------
# Job
# ---------------------------------------------------------------------------


class Job(ABC):
    """Abstract base for jobs.  Subclasses implement ``_on_run()``.

    Jobs are created disabled.  ``logger`` may be any structlog-style bound
    logger; it defaults to this module's logger.
    """

    def __init__(self, identifier: str | None = None, logger: Any | None = None) -> None:
        self._lock = threading.RLock()
        self._run_guard = threading.Lock()
        self._identifier = identifier or str(uuid.uuid4())
        self._enabled = False
        self._status = JobStatus.IDLE
        self._last_error: BaseException | None = None
        self._log = logger if logger is not None else log
        self.unhandled_exception = Signal("Job.unhandled_exception")
        self._triggers = TriggerCollection(self)

    # ---------------------------------------------------------------------------
    # State
    # ---------------------------------------------------------------------------

    @property
    def identifier(self) -> str:
        """Unique identifier, a random UUID unless given."""
        return self._identifier

    @identifier.setter
    def identifier(self, value: str) -> None:
        self._identifier = not_none(value, "identifier")

    @property
    def triggers(self) -> TriggerCollection:
        """Triggers that run this job.  Mutable at any time."""
        return self._triggers

    @triggers.setter
    def triggers(self, value: Iterable[Trigger]) -> None:
        if value is self._triggers:
            return
        items = list(value)
        for trigger in items:
            not_none(trigger, "trigger")
        with self._lock:
            self._triggers.clear()
            self._triggers.extend(items)

    @property
    def is_enabled(self) -> bool:
        """While disabled, owned triggers keep firing but the job ignores them."""
        return self._enabled

    @property
    def status(self) -> JobStatus:
        return self._status

    @property
    def last_error(self) -> BaseException | None:
        """The failure that put the job in ERROR status, if any."""
        return self._last_error

    @property
    def is_running(self) -> bool:
        return self._run_guard.locked()

    # ---------------------------------------------------------------------------
    # Enable / disable / close
    # ---------------------------------------------------------------------------

    def enable(self, scope: Scope | str = Scope.JOB_AND_TRIGGERS) -> None:
        """Enable the job, clearing any error.

        With ``Scope.JOB_AND_TRIGGERS`` every owned trigger is enabled too.
        """
        scope = Scope(scope)
        with self._lock:
            self._enabled = True
            self._last_error = None
            self._status = JobStatus.RUNNING if self._run_guard.locked() else JobStatus.IDLE
        self._log.debug("job_enabled", job=str(self), scope=scope.value)
        if scope is Scope.JOB_AND_TRIGGERS:
            self._apply_to_triggers(True)

    def disable(self, scope: Scope | str = Scope.JOB_AND_TRIGGERS) -> None:
        """Disable the job.  An in-flight run is not interrupted."""
        scope = Scope(scope)
        with self._lock:
            self._enabled = False
        self._log.debug("job_disabled", job=str(self), scope=scope.value)
        if scope is Scope.JOB_AND_TRIGGERS:
            self._apply_to_triggers(False)

    def close(self) -> None:
        """Close every owned trigger that supports ``close()``."""
        for trigger in self._triggers.snapshot():
            if not is_closeable(trigger):
                continue
            try:
                trigger.close()  # type: ignore[attr-defined]
            except Exception as exc:
                self._log.warning(
                    "trigger_close_failed",
                    job=str(self),
                    trigger=repr(trigger),
                    error=str(exc),
                    exc_info=True,
                )

    def __enter__(self) -> Job:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def _apply_to_triggers(self, enabled: bool) -> None:
        for trigger in self._triggers.snapshot():
            try:
                trigger.is_enabled = enabled
            except Exception as exc:
                self._log.warning(
                    "trigger_toggle_failed",
                    job=str(self),
                    trigger=repr(trigger),
                    enabled=enabled,
                    error=str(exc),
                    exc_info=True,
                )

    # ---------------------------------------------------------------------------
    # Run sequence
    # ---------------------------------------------------------------------------

    @abstractmethod
    def _on_run(self) -> None:
        """Execute the job body.  Failures are signalled by raising."""

    def _on_trigger_fired(self, sender: Any, *_: Any) -> None:
        with self._lock:
            if not self._triggers.is_attached(sender):
                self._log.debug("trigger_fired_detached", job=str(self), trigger=repr(sender))
                return
            if not self._enabled:
                self._log.debug("trigger_fired_job_disabled", job=str(self), trigger=repr(sender))
                return
            if not self._run_guard.acquire(blocking=False):
                self._log.info("job_run_skipped", job=str(self), trigger=repr(sender))
                return
            self._status = JobStatus.RUNNING
        try:
            with job_context(self._identifier, repr(sender)):
                self._log.info("job_run_started", job=str(self), trigger=repr(sender))
                self._run()
        finally:
            self._run_guard.release()

    def _run(self) -> None:
        try:
            self._on_run()
        except Exception as exc:
            self._on_unhandled_exception(exc)
            return
        with self._lock:
            if self._status is JobStatus.RUNNING:
                self._status = JobStatus.IDLE
        self._log.debug("job_run_completed", job=str(self))

    def _on_unhandled_exception(self, exc: BaseException) -> bool:
        """Notify observers of *exc* and apply the default error policy.

        Returns True if an observer marked the failure as handled.
        """
        self._log.warning("job_run_failed", job=str(self), error=str(exc))
        event = UnhandledExceptionEvent(exc)
        self.unhandled_exception.emit(self, event)

        if event.handled:
            with self._lock:
                self._status = JobStatus.IDLE
            self._log.info("job_error_handled", job=str(self), error=str(exc))
            return True

        with self._lock:
            self.disable(Scope.JOB_ONLY)
            self._last_error = exc
            self._status = JobStatus.ERROR
        self._log.error("job_disabled_on_error", job=str(self), error=str(exc), exc_info=exc)
        return False

    def __str__(self) -> str:
        cls = type(self)
        return f"{cls.__module__}.{cls.__qualname__} ({self._identifier})"

    def __repr__(self) -> str:
        return (
            f"<{type(self).__name__} {self._identifier} enabled={self._enabled} "
            f"status={self._status.value}>"
        )
