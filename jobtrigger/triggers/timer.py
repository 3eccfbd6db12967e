"""TimerTrigger — fires once after ``due_time``, then every ``interval``.

Enabling starts a daemon thread that waits ``due_time`` seconds, fires,
and then fires every ``interval`` seconds until disabled.  An interval of
zero means the trigger fires exactly once per enable.

Disabling is immediate: the pending wait is cancelled and the schedule
retired.  Each tick checks, under the trigger's lock, that its schedule is
still the current one, then emits outside the lock so observers (job
bodies) never block ``is_enabled`` assignments.  A fire that passed the
check before the disable completes delivery; no tick checked afterwards
fires.  Re-enabling restarts from ``due_time`` with a new schedule.

Durations accept float seconds or ``datetime.timedelta``.
"""

from __future__ import annotations

import threading
from datetime import timedelta
from itertools import count

from jobtrigger.exceptions import InvalidArgumentError
from jobtrigger.logging import get_logger
from jobtrigger.triggers.base import Trigger

log = get_logger(__name__)

_thread_ids = count(1)


def _seconds(value: float | timedelta, argument: str) -> float:
    if value is None:
        raise InvalidArgumentError(argument)
    seconds = value.total_seconds() if isinstance(value, timedelta) else float(value)
    if seconds < 0:
        raise InvalidArgumentError(argument, f"must not be negative, got {seconds}")
    return seconds


class TimerTrigger(Trigger):
    """Fires at ``due_time`` after being enabled, then every ``interval``.

    Usage::

        trigger = TimerTrigger(due_time=timedelta(seconds=5), interval=60)
        job.triggers.append(trigger)
        job.enable()          # enables the timer too
    """

    def __init__(
        self,
        due_time: float | timedelta = 0.0,
        interval: float | timedelta = 0.0,
        enabled: bool = False,
        name: str | None = None,
    ) -> None:
        super().__init__(name)
        self._due_time = _seconds(due_time, "due_time")
        self._interval = _seconds(interval, "interval")
        self._stop_event: threading.Event | None = None
        self._thread: threading.Thread | None = None
        self.is_enabled = enabled

    # ---------------------------------------------------------------------------
    # Schedule
    # ---------------------------------------------------------------------------

    @property
    def due_time(self) -> float:
        """Seconds between enabling and the first fire."""
        return self._due_time

    @due_time.setter
    def due_time(self, value: float | timedelta) -> None:
        self._due_time = _seconds(value, "due_time")

    @property
    def interval(self) -> float:
        """Seconds between subsequent fires.  0 = fire once."""
        return self._interval

    @interval.setter
    def interval(self, value: float | timedelta) -> None:
        self._interval = _seconds(value, "interval")

    def close(self) -> None:
        """Cancel any pending fire."""
        self.is_enabled = False

    def __enter__(self) -> TimerTrigger:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # ---------------------------------------------------------------------------
    # Trigger implementation
    # ---------------------------------------------------------------------------

    def _on_enabled_changed(self, enabled: bool) -> None:
        if enabled:
            stop = threading.Event()
            self._stop_event = stop
            self._thread = threading.Thread(
                target=self._run,
                args=(stop, self._due_time, self._interval),
                name=f"timer-trigger-{next(_thread_ids)}",
                daemon=True,
            )
            self._thread.start()
            log.debug(
                "timer_trigger_scheduled",
                trigger=repr(self),
                due_time=self._due_time,
                interval=self._interval,
            )
        else:
            if self._stop_event is not None:
                self._stop_event.set()
            self._stop_event = None
            self._thread = None
            log.debug("timer_trigger_cancelled", trigger=repr(self))

    def _run(self, stop: threading.Event, due_time: float, interval: float) -> None:
        if stop.wait(due_time):
            return
        if not self._tick(stop):
            return
        if interval <= 0:
            return
        while not stop.wait(interval):
            if not self._tick(stop):
                return

    def _tick(self, stop: threading.Event) -> bool:
        """Fire unless *stop* belongs to a cancelled schedule."""
        with self._lock:
            if stop.is_set() or stop is not self._stop_event:
                return False
        self._fire()
        return True

    def __repr__(self) -> str:
        return (
            f"{self.name}(due_time={self._due_time}, interval={self._interval}, "
            f"enabled={self._enabled})"
        )
