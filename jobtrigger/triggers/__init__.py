"""Trigger implementations.

Each trigger is an enableable source of ``fired`` notifications.

Available triggers
------------------
Trigger                     — abstract base class (base.py)
ManualTrigger               — fires when ``fire()`` is called (base.py)
TimerTrigger                — fires after a due time, then at an interval (timer.py)
NetworkAvailabilityTrigger  — fires on network availability (network.py)
ConditionalTrigger          — target gated by a condition (conditional.py),
                              built with ``enable_when`` / ``disable_when``
"""

from jobtrigger.triggers.base import ManualTrigger, Trigger
from jobtrigger.triggers.conditional import ConditionalTrigger, disable_when, enable_when
from jobtrigger.triggers.network import (
    AvailabilityObserver,
    NetworkAvailabilityTrigger,
    NetworkStatus,
)
from jobtrigger.triggers.timer import TimerTrigger

__all__ = [
    "Trigger",
    "ManualTrigger",
    "TimerTrigger",
    "NetworkAvailabilityTrigger",
    "NetworkStatus",
    "AvailabilityObserver",
    "ConditionalTrigger",
    "enable_when",
    "disable_when",
]
