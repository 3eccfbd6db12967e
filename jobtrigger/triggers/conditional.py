"""Trigger composition — gate a target trigger on a condition trigger.

enable_when(target, condition)
    The target is enabled each time the condition fires.
disable_when(target, condition)
    The target is disabled each time the condition fires.

Both return a ConditionalTrigger which:

- disables the target immediately on construction (the gate starts shut);
- fires exactly when the target fires;
- reports the condition's enabled state as its own;
- on ``is_enabled = False`` disables both the condition and the target;
- on ``is_enabled = True`` enables only the condition.  The target stays
  as it is until the condition fires ("arming" the gate).

Target and condition are shared, not owned: the caller keeps using the
originals, and ``close()`` merely detaches the composite from them.

Example — a heartbeat that only runs once the network is up::

    heartbeat = TimerTrigger(due_time=0, interval=30)
    online = NetworkAvailabilityTrigger(AvailabilityKind.AVAILABLE)
    job.triggers.append(enable_when(heartbeat, online))
"""

from __future__ import annotations

from typing import Any

from jobtrigger.exceptions import not_none
from jobtrigger.logging import get_logger
from jobtrigger.triggers.base import Trigger

log = get_logger(__name__)


class ConditionalTrigger(Trigger):
    """A target trigger whose enabled state is driven by a condition trigger."""

    def __init__(
        self,
        target: Trigger,
        condition: Trigger,
        target_enabled_on_fire: bool,
        name: str | None = None,
    ) -> None:
        not_none(target, "target")
        not_none(condition, "condition")
        super().__init__(name or ("EnableWhen" if target_enabled_on_fire else "DisableWhen"))
        self.target = target
        self.condition = condition
        self.target_enabled_on_fire = target_enabled_on_fire

        target.is_enabled = False

        condition.fired.connect(self._on_condition_fired)
        target.fired.connect(self._on_target_fired)

    @property
    def is_enabled(self) -> bool:
        return self.condition.is_enabled

    @is_enabled.setter
    def is_enabled(self, value: bool) -> None:
        value = bool(value)
        self.condition.is_enabled = value
        if not value:
            self.target.is_enabled = False

    def close(self) -> None:
        """Detach from target and condition without changing their state."""
        for source, handler in (
            (self.condition, self._on_condition_fired),
            (self.target, self._on_target_fired),
        ):
            try:
                source.fired.disconnect(handler)
            except ValueError:
                pass
        log.debug("conditional_trigger_closed", trigger=repr(self))

    def _on_enabled_changed(self, enabled: bool) -> None:
        # is_enabled is fully delegated to the condition.
        pass

    def _on_condition_fired(self, *_: Any) -> None:
        log.debug(
            "conditional_trigger_gate",
            trigger=repr(self),
            target_enabled=self.target_enabled_on_fire,
        )
        self.target.is_enabled = self.target_enabled_on_fire

    def _on_target_fired(self, *_: Any) -> None:
        self._fire()

    def __repr__(self) -> str:
        return f"{self.name}(target={self.target!r}, condition={self.condition!r})"


def enable_when(target: Trigger, condition: Trigger) -> ConditionalTrigger:
    """Enable *target* whenever *condition* fires."""
    return ConditionalTrigger(target, condition, True)


def disable_when(target: Trigger, condition: Trigger) -> ConditionalTrigger:
    """Disable *target* whenever *condition* fires."""
    return ConditionalTrigger(target, condition, False)
