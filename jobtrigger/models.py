"""Job and trigger data models.

Key classes
-----------
Scope                   — whether enable/disable cascades to owned triggers
JobStatus               — run state of a job
AvailabilityKind        — which network transitions a NetworkAvailabilityTrigger watches
UnhandledExceptionEvent — payload of ``Job.unhandled_exception``
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class Scope(str, Enum):
    """Scope of an enable/disable operation on a job."""

    JOB_ONLY = "job_only"
    JOB_AND_TRIGGERS = "job_and_triggers"


class JobStatus(str, Enum):
    """Run state of a job.

    State machine::

        IDLE    → RUNNING  (an owned trigger fired while the job is enabled)
        RUNNING → IDLE     (body returned, or its failure was marked handled)
        RUNNING → ERROR    (body raised and no observer handled it; job disabled)
        ERROR   → IDLE     (via ``Job.enable()`` only)
    """

    IDLE = "idle"
    RUNNING = "running"
    ERROR = "error"


class AvailabilityKind(str, Enum):
    """Network availability that a NetworkAvailabilityTrigger fires on."""

    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"
    BOTH = "both"

    def matches(self, is_available: bool) -> bool:
        """Return True if the current availability satisfies this kind."""
        if self is AvailabilityKind.BOTH:
            return True
        return is_available == (self is AvailabilityKind.AVAILABLE)


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


@dataclass
class UnhandledExceptionEvent:
    """Raised through ``Job.unhandled_exception`` when a job body fails.

    Observers set ``handled = True`` to keep the job enabled.  Otherwise the
    job is disabled, ``last_error`` is recorded and its status becomes ERROR.
    """

    exception: BaseException
    handled: bool = False
    raised_at: float = field(default_factory=time.time)
