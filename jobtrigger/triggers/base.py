"""Trigger — abstract base class for all trigger sources.

A trigger is an enableable signal source.  When its condition is met it
emits ``fired`` with itself as the only argument.

Contract
--------
- ``is_enabled``  — settable; setting it to its current value is a no-op
- ``fired``       — Signal; observers are called as ``observer(trigger)``
- Triggers fire on whatever thread their mechanism uses (timer thread,
  observer callback thread, caller thread for ManualTrigger).  Observers
  must treat each firing as happening on an arbitrary thread.

Implementations must:
1. Override ``_on_enabled_changed(enabled)`` — start / stop the source.
   It runs under the trigger's re-entrant lock and may return True to
   request one fire, which the setter emits after releasing the lock.
2. Call ``self._fire()`` when the condition is met, never while holding
   ``self._lock``: observers run job bodies, and those may toggle this or
   other triggers from any thread.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from jobtrigger.logging import get_logger
from jobtrigger.signals import Signal

if TYPE_CHECKING:
    from jobtrigger.triggers.conditional import ConditionalTrigger

log = get_logger(__name__)


class Trigger(ABC):
    """Abstract base for all triggers."""

    def __init__(self, name: str | None = None) -> None:
        self.name = name or type(self).__name__
        self.fired = Signal(f"{self.name}.fired")
        self._enabled = False
        self._lock = threading.RLock()

    # ---------------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------------

    @property
    def is_enabled(self) -> bool:
        return self._enabled

    @is_enabled.setter
    def is_enabled(self, value: bool) -> None:
        value = bool(value)
        with self._lock:
            if value == self._enabled:
                return
            self._enabled = value
            log.debug("trigger_enabled_changed", trigger=repr(self), enabled=value)
            fire_now = self._on_enabled_changed(value)
        if fire_now:
            self._fire()

    def enable_when(self, condition: Trigger) -> ConditionalTrigger:
        """Compose: this trigger is enabled whenever *condition* fires."""
        from jobtrigger.triggers.conditional import enable_when

        return enable_when(self, condition)

    def disable_when(self, condition: Trigger) -> ConditionalTrigger:
        """Compose: this trigger is disabled whenever *condition* fires."""
        from jobtrigger.triggers.conditional import disable_when

        return disable_when(self, condition)

    # ---------------------------------------------------------------------------
    # Implementation hooks
    # ---------------------------------------------------------------------------

    @abstractmethod
    def _on_enabled_changed(self, enabled: bool) -> bool | None:
        """Start or stop the underlying source.  Called under ``self._lock``.

        Return True to have the setter fire once the lock is released.
        """

    def _fire(self) -> None:
        self.fired.emit(self)

    def __repr__(self) -> str:
        return f"{self.name}(enabled={self._enabled})"


class ManualTrigger(Trigger):
    """A trigger fired explicitly by calling ``fire()``.

    Useful as a composition condition ("enable the timer once setup is
    done") and for driving jobs from application code::

        ready = ManualTrigger()
        job.triggers.append(timer.enable_when(ready))
        ...
        ready.fire()
    """

    def __init__(self, enabled: bool = False, name: str | None = None) -> None:
        super().__init__(name)
        self.fire_count = 0
        self.is_enabled = enabled

    def _on_enabled_changed(self, enabled: bool) -> None:
        pass

    def fire(self, force: bool = False) -> bool:
        """Emit ``fired``.  Disabled triggers only fire when *force* is True.

        Returns True if the trigger fired.
        """
        if not (force or self._enabled):
            log.debug("manual_trigger_ignored", trigger=repr(self))
            return False
        self.fire_count += 1
        self._fire()
        return True


def is_closeable(obj: Any) -> bool:
    """True if *obj* exposes a ``close()`` disposal method."""
    return callable(getattr(obj, "close", None))
