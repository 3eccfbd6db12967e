"""Signal — thread-safe multi-observer notification.

Triggers expose ``fired`` and jobs expose ``unhandled_exception`` as
Signal instances.  Observers are plain callables invoked synchronously on
the emitting thread, in connection order::

    def on_fired(sender) -> None:
        ...

    trigger.fired.connect(on_fired)
    trigger.fired.disconnect(on_fired)

Contract
--------
- ``connect()`` registers the callback once per call; connecting the same
  callback twice means it is invoked twice per emit.
- ``disconnect()`` removes one registration and raises ``ValueError`` if
  the callback is not connected.
- ``emit()`` snapshots the observer list before delivery, so observers may
  connect/disconnect (themselves or others) while being notified.
- An observer that raises is logged and skipped; delivery continues with
  the remaining observers.
"""

from __future__ import annotations

import threading
from typing import Any, Callable

from jobtrigger.logging import get_logger

log = get_logger(__name__)

Observer = Callable[..., Any]


class Signal:
    """A named list of observers notified by ``emit()``."""

    def __init__(self, name: str = "signal") -> None:
        self.name = name
        self._observers: list[Observer] = []
        self._lock = threading.Lock()

    def connect(self, observer: Observer) -> Observer:
        """Register *observer*.  Returns it so Signal can be used as a decorator."""
        if not callable(observer):
            raise TypeError(f"Signal observer must be callable, got {observer!r}")
        with self._lock:
            self._observers.append(observer)
        return observer

    def disconnect(self, observer: Observer) -> None:
        """Remove one registration of *observer*."""
        with self._lock:
            for index, existing in enumerate(self._observers):
                if existing == observer:
                    del self._observers[index]
                    return
        raise ValueError(f"{observer!r} is not connected to signal {self.name!r}")

    def emit(self, *args: Any, **kwargs: Any) -> None:
        """Invoke every observer with the given arguments."""
        with self._lock:
            observers = list(self._observers)
        for observer in observers:
            try:
                observer(*args, **kwargs)
            except Exception as exc:
                log.error(
                    "signal_observer_error",
                    signal=self.name,
                    observer=repr(observer),
                    error=str(exc),
                    exc_info=True,
                )

    @property
    def observer_count(self) -> int:
        with self._lock:
            return len(self._observers)

    def __repr__(self) -> str:
        return f"Signal({self.name!r}, observers={self.observer_count})"
