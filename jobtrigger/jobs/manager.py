"""JobManager — in-memory registry for bulk job administration.

The manager only calls the public ``enable`` / ``disable`` / ``close``
surface of its jobs; it never handles trigger firings itself.  Bulk
operations are best-effort: a job that raises is logged and the operation
continues with the next one.
"""

from __future__ import annotations

import threading
from typing import Any, Iterator

from jobtrigger.exceptions import not_none
from jobtrigger.jobs.base import Job
from jobtrigger.logging import get_logger
from jobtrigger.models import Scope
from jobtrigger.triggers.base import is_closeable

log = get_logger(__name__)


class JobManager:
    """Ordered collection of jobs with pause / resume / close for all of them.

    Usage::

        with JobManager() as manager:
            manager.add(ActionJob(backup, TimerTrigger(interval=3600), enabled=False))
            manager.pause_all()
            ...
            manager.resume_all()
    """

    def __init__(self, logger: Any | None = None) -> None:
        self._jobs: list[Job] = []
        self._lock = threading.Lock()
        self._log = logger if logger is not None else log

    # ---------------------------------------------------------------------------
    # Registry
    # ---------------------------------------------------------------------------

    @property
    def jobs(self) -> list[Job]:
        """A copy of the managed jobs, in insertion order."""
        with self._lock:
            return list(self._jobs)

    def add(
        self,
        job: Job,
        enable: bool = True,
        scope: Scope | str = Scope.JOB_AND_TRIGGERS,
    ) -> Job:
        """Register *job*, enabling it with *scope* unless ``enable=False``."""
        not_none(job, "job")
        with self._lock:
            self._jobs.append(job)
        self._log.info("job_registered", job=str(job), enable=enable)
        if enable:
            job.enable(scope)
        return job

    def remove(self, job: Job) -> None:
        """Unregister *job* (compared by identity).  The job is left as is."""
        with self._lock:
            for index, item in enumerate(self._jobs):
                if item is job:
                    del self._jobs[index]
                    break
            else:
                raise ValueError(f"{job} is not managed by this JobManager")
        self._log.info("job_unregistered", job=str(job))

    def get(self, identifier: str) -> Job | None:
        """Return the first job with *identifier*, or None."""
        with self._lock:
            for job in self._jobs:
                if job.identifier == identifier:
                    return job
        return None

    def __iter__(self) -> Iterator[Job]:
        return iter(self.jobs)

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)

    def __contains__(self, job: object) -> bool:
        with self._lock:
            return any(item is job for item in self._jobs)

    # ---------------------------------------------------------------------------
    # Bulk operations
    # ---------------------------------------------------------------------------

    def pause_all(self, scope: Scope | str = Scope.JOB_ONLY) -> None:
        """Disable every job with *scope*."""
        scope = Scope(scope)
        self._log.info("jobs_pausing", count=len(self), scope=scope.value)
        for job in self.jobs:
            try:
                job.disable(scope)
            except Exception as exc:
                self._log.warning("job_pause_failed", job=str(job), error=str(exc), exc_info=True)

    def resume_all(self, scope: Scope | str = Scope.JOB_ONLY) -> None:
        """Enable every job with *scope*."""
        scope = Scope(scope)
        self._log.info("jobs_resuming", count=len(self), scope=scope.value)
        for job in self.jobs:
            try:
                job.enable(scope)
            except Exception as exc:
                self._log.warning("job_resume_failed", job=str(job), error=str(exc), exc_info=True)

    def close(self) -> None:
        """Close every job that supports ``close()``; others are skipped."""
        for job in self.jobs:
            if not is_closeable(job):
                continue
            try:
                job.close()
            except Exception as exc:
                self._log.warning("job_close_failed", job=str(job), error=str(exc), exc_info=True)
        self._log.info("job_manager_closed", count=len(self))

    def __enter__(self) -> JobManager:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
