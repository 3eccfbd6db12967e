"""jobtrigger — Exception hierarchy.

All exceptions raised by the library inherit from JobTriggerError so that
callers can catch the full family with a single except clause when needed.

Hierarchy:
    JobTriggerError
    ├── InvalidArgumentError   (also a ValueError)
    └── JobStateError

Errors raised by a job body are never wrapped: they reach the
``unhandled_exception`` observers of the job as-is.
"""

from __future__ import annotations

from typing import Any, TypeVar

T = TypeVar("T")


class JobTriggerError(Exception):
    """Base exception for all jobtrigger errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context: dict[str, Any] = context or {}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, context={self.context})"


class InvalidArgumentError(JobTriggerError, ValueError):
    """An argument was rejected before any state change took place."""

    def __init__(self, argument: str, reason: str = "cannot be None") -> None:
        super().__init__(
            f"Invalid argument '{argument}': {reason}",
            context={"argument": argument, "reason": reason},
        )
        self.argument = argument


class JobStateError(JobTriggerError):
    """The operation is not valid for the current state of the job."""

    def __init__(self, job: str, reason: str) -> None:
        super().__init__(f"Job {job}: {reason}", context={"job": job, "reason": reason})
        self.job = job


def not_none(value: T | None, argument: str) -> T:
    """Return *value*, raising InvalidArgumentError when it is None."""
    if value is None:
        raise InvalidArgumentError(argument)
    return value
