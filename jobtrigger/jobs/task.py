"""TaskJob — runs an asynchronous unit of work when a trigger fires.

Each run schedules ``work()`` on an asyncio event loop and returns at once.
The job disables itself (job only, triggers untouched) for as long as the
work is in flight, so firings in the meantime are ignored rather than
queued.  If the job is re-enabled before the work completes (for example by
``JobManager.resume_all()``), further firings are still skipped: at most
one unit of work is in flight per job.  When the work completes:

    success               → job re-enabled
    failure, handled      → job re-enabled (status IDLE)
    failure, not handled  → job stays disabled, status ERROR, last_error set
    cancelled             → job re-enabled (unless closed)

Event loop selection, in order:
    1. the ``loop`` argument
    2. the loop running in the thread that constructs the job
    3. a private loop on a daemon thread, created on first run and
       stopped by ``close()``
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import inspect
import threading
from typing import Any, Awaitable, Callable

from jobtrigger.config import get_settings
from jobtrigger.exceptions import JobStateError, not_none
from jobtrigger.jobs.base import Job
from jobtrigger.logging import get_logger, job_context
from jobtrigger.models import JobStatus, Scope
from jobtrigger.triggers.base import Trigger

log = get_logger(__name__)

WorkFactory = Callable[[], "Awaitable[Any] | Any"]


class _LoopThread:
    """An asyncio event loop running forever on a daemon thread."""

    def __init__(self, name: str) -> None:
        self.loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._thread.start()

    def _run(self) -> None:
        asyncio.set_event_loop(self.loop)
        try:
            self.loop.run_forever()
        finally:
            pending = asyncio.all_tasks(self.loop)
            for task in pending:
                task.cancel()
            if pending:
                self.loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
            self.loop.run_until_complete(self.loop.shutdown_asyncgens())
            self.loop.close()

    def stop(self, timeout: float) -> None:
        if not self.loop.is_closed():
            self.loop.call_soon_threadsafe(self.loop.stop)
        self._thread.join(timeout)


class TaskJob(Job):
    """A job whose body is asynchronous work, at most one unit in flight.

    ``work`` is a zero-argument callable invoked afresh on every run; it
    may return an awaitable (``async def`` functions) or a plain value.

    Usage::

        async def refresh() -> None:
            await client.refresh_tokens()

        job = TaskJob(refresh, TimerTrigger(due_time=0, interval=300), enabled=True)
    """

    def __init__(
        self,
        work: WorkFactory,
        *triggers: Trigger,
        loop: asyncio.AbstractEventLoop | None = None,
        enabled: bool = False,
        scope: Scope | str = Scope.JOB_AND_TRIGGERS,
        identifier: str | None = None,
        logger: Any | None = None,
    ) -> None:
        super().__init__(identifier=identifier, logger=logger)
        self._work = not_none(work, "work")
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                loop = None
        self._loop = loop
        self._loop_thread: _LoopThread | None = None
        self._future: concurrent.futures.Future[None] | None = None
        self._closed = False
        self.triggers.extend(triggers)
        if enabled:
            self.enable(scope)

    @property
    def in_flight(self) -> bool:
        """True while a unit of work is scheduled or running."""
        future = self._future
        return future is not None and not future.done()

    @property
    def loop(self) -> asyncio.AbstractEventLoop | None:
        """The loop work is scheduled on (None until the first run when private)."""
        return self._loop

    def close(self) -> None:
        """Close triggers, cancel in-flight work and stop the private loop."""
        with self._lock:
            self._closed = True
            future, self._future = self._future, None
            loop_thread, self._loop_thread = self._loop_thread, None
        self.disable(Scope.JOB_ONLY)
        super().close()
        if future is not None and not future.done():
            future.cancel()
        if loop_thread is not None:
            loop_thread.stop(get_settings().tasks.shutdown_timeout_seconds)
        self._log.debug("task_job_closed", job=str(self))

    # ---------------------------------------------------------------------------
    # Job implementation
    # ---------------------------------------------------------------------------

    def _on_run(self) -> None:
        if self._closed:
            raise JobStateError(str(self), "cannot run after close()")
        with self._lock:
            if self.in_flight:
                # re-enabled while work is in flight
                self._log.info("task_job_run_skipped", job=str(self))
                return
            self.disable(Scope.JOB_ONLY)

        coro = self._invoke()
        try:
            future = asyncio.run_coroutine_threadsafe(coro, self._ensure_loop())
        except Exception:
            coro.close()
            self.enable(Scope.JOB_ONLY)
            raise

        with self._lock:
            self._future = future
        self._log.debug("task_job_scheduled", job=str(self))
        future.add_done_callback(self._on_work_done)

    async def _invoke(self) -> None:
        result = self._work()
        if inspect.isawaitable(result):
            await result

    def _ensure_loop(self) -> asyncio.AbstractEventLoop:
        with self._lock:
            if self._loop is not None:
                if self._loop.is_closed():
                    raise JobStateError(str(self), "event loop is closed")
                return self._loop
            self._loop_thread = _LoopThread(get_settings().tasks.loop_thread_name)
            self._loop = self._loop_thread.loop
            return self._loop

    def _on_work_done(self, future: concurrent.futures.Future[None]) -> None:
        with job_context(self._identifier):
            if future.cancelled():
                self._log.info("task_job_cancelled", job=str(self))
                self._reenable()
                return

            exc = future.exception()
            if exc is None:
                self._log.debug("task_job_completed", job=str(self))
                self._reenable()
                return

            self._on_unhandled_exception(exc)
            if self.status is not JobStatus.ERROR:
                self._reenable()

    def _reenable(self) -> None:
        if self._closed:
            return
        self.enable(Scope.JOB_ONLY)
