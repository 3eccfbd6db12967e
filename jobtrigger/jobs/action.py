"""ActionJob — runs a synchronous callable when a trigger fires."""

from __future__ import annotations

from typing import Any, Callable

from jobtrigger.exceptions import not_none
from jobtrigger.jobs.base import Job
from jobtrigger.models import Scope
from jobtrigger.triggers.base import Trigger


class ActionJob(Job):
    """A job whose body is a zero-argument callable.

    Unlike the base Job, an ActionJob is enabled on construction (together
    with its triggers) unless ``enabled=False``::

        job = ActionJob(flush_cache, TimerTrigger(due_time=1, interval=60))
    """

    def __init__(
        self,
        action: Callable[[], Any],
        *triggers: Trigger,
        enabled: bool = True,
        scope: Scope | str = Scope.JOB_AND_TRIGGERS,
        identifier: str | None = None,
        logger: Any | None = None,
    ) -> None:
        super().__init__(identifier=identifier, logger=logger)
        self._action = not_none(action, "action")
        self.triggers.extend(triggers)
        if enabled:
            self.enable(scope)

    @property
    def action(self) -> Callable[[], Any]:
        return self._action

    @action.setter
    def action(self, value: Callable[[], Any]) -> None:
        self._action = not_none(value, "action")

    def _on_run(self) -> None:
        self._action()
