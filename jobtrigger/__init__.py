"""jobtrigger — In-process job triggering engine.

Independent triggers fire asynchronously (timers, network availability
changes, composed conditions) and each firing runs the job that owns the
trigger, subject to the job's enabled state and error policy.

Layers (bottom to top):
    1. Signals   — thread-safe observer lists used for ``fired`` notifications
    2. Triggers  — ManualTrigger, TimerTrigger, NetworkAvailabilityTrigger,
                   and ``enable_when`` / ``disable_when`` composition
    3. Jobs      — Job state machine, ActionJob, TaskJob
    4. Manager   — JobManager for bulk pause / resume / close
"""

__version__ = "0.1.0"
__license__ = "Apache-2.0"

from jobtrigger.exceptions import InvalidArgumentError, JobStateError, JobTriggerError
from jobtrigger.jobs import ActionJob, Job, JobManager, TaskJob, TriggerCollection
from jobtrigger.models import AvailabilityKind, JobStatus, Scope, UnhandledExceptionEvent
from jobtrigger.signals import Signal
from jobtrigger.triggers import (
    ConditionalTrigger,
    ManualTrigger,
    NetworkAvailabilityTrigger,
    NetworkStatus,
    TimerTrigger,
    Trigger,
    disable_when,
    enable_when,
)

__all__ = [
    "__version__",
    "ActionJob",
    "AvailabilityKind",
    "ConditionalTrigger",
    "InvalidArgumentError",
    "Job",
    "JobManager",
    "JobStateError",
    "JobStatus",
    "JobTriggerError",
    "ManualTrigger",
    "NetworkAvailabilityTrigger",
    "NetworkStatus",
    "Scope",
    "Signal",
    "TaskJob",
    "TimerTrigger",
    "Trigger",
    "TriggerCollection",
    "UnhandledExceptionEvent",
    "disable_when",
    "enable_when",
]
