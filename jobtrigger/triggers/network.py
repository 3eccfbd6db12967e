"""Network availability trigger and its availability observers.

NetworkAvailabilityTrigger fires when network availability matches an
``AvailabilityKind``:

    AVAILABLE    — the network is (or becomes) available
    UNAVAILABLE  — the network is (or becomes) unavailable
    BOTH         — on every availability change

Enabling the trigger evaluates the current availability immediately and
fires synchronously when it already matches, then listens for changes.

Observers
---------
Any object exposing ``is_available: bool`` and an ``availability_changed``
Signal works as the availability source (see ``AvailabilityObserver``).
The default ``NetworkStatus`` samples interface state with ``psutil``
on a daemon thread and emits ``availability_changed`` when the overall
availability flips.
"""

from __future__ import annotations

import threading
from typing import Any, Protocol, runtime_checkable

from jobtrigger.config import get_settings
from jobtrigger.exceptions import InvalidArgumentError
from jobtrigger.logging import get_logger
from jobtrigger.models import AvailabilityKind
from jobtrigger.signals import Signal
from jobtrigger.triggers.base import Trigger

log = get_logger(__name__)


@runtime_checkable
class AvailabilityObserver(Protocol):
    """Source of network availability state and change notifications."""

    availability_changed: Signal

    @property
    def is_available(self) -> bool: ...


# ---------------------------------------------------------------------------
# NetworkStatus: psutil-backed default observer
# ---------------------------------------------------------------------------


class NetworkStatus:
    """Polls ``psutil.net_if_stats()`` and reports overall availability.

    The network counts as available when at least one interface is up
    (loopback interfaces are ignored unless ``include_loopback``).

    ``start()`` / ``stop()`` control the polling thread; ``is_available``
    samples on demand and works without polling.
    """

    def __init__(
        self,
        poll_interval_seconds: float | None = None,
        include_loopback: bool | None = None,
    ) -> None:
        cfg = get_settings().network
        self._poll = float(
            poll_interval_seconds if poll_interval_seconds is not None else cfg.poll_interval_seconds
        )
        if self._poll <= 0:
            raise InvalidArgumentError("poll_interval_seconds", f"must be positive, got {self._poll}")
        self._include_loopback = (
            include_loopback if include_loopback is not None else cfg.include_loopback
        )
        self.availability_changed = Signal("NetworkStatus.availability_changed")
        self._last: bool | None = None
        self._stop_event: threading.Event | None = None
        self._lock = threading.Lock()

    @property
    def is_available(self) -> bool:
        return self._sample()

    @property
    def is_running(self) -> bool:
        return self._stop_event is not None

    def start(self) -> None:
        """Start the polling thread (no-op if already running)."""
        with self._lock:
            if self._stop_event is not None:
                return
            stop = threading.Event()
            self._stop_event = stop
            self._last = self._sample()
        threading.Thread(
            target=self._poll_loop, args=(stop,), name="network-status-poller", daemon=True
        ).start()
        log.debug("network_status_started", poll_interval=self._poll, available=self._last)

    def stop(self) -> None:
        with self._lock:
            if self._stop_event is None:
                return
            self._stop_event.set()
            self._stop_event = None
        log.debug("network_status_stopped")

    def _poll_loop(self, stop: threading.Event) -> None:
        while not stop.wait(self._poll):
            current = self._sample()
            with self._lock:
                if stop.is_set():
                    return
                changed = current != self._last
                self._last = current
            if changed:
                log.info("network_availability_changed", available=current)
                self.availability_changed.emit(self)

    def _sample(self) -> bool:
        import psutil

        try:
            stats = psutil.net_if_stats()
        except Exception as exc:
            log.warning("network_status_sample_error", error=str(exc))
            return False
        for name, stat in stats.items():
            if not stat.isup:
                continue
            if not self._include_loopback and _is_loopback(name):
                continue
            return True
        return False


def _is_loopback(interface: str) -> bool:
    lowered = interface.lower()
    return lowered == "lo" or lowered.startswith("lo0") or "loopback" in lowered


# ---------------------------------------------------------------------------
# NetworkAvailabilityTrigger
# ---------------------------------------------------------------------------


class NetworkAvailabilityTrigger(Trigger):
    """Fires when the network availability matches ``kind``.

    Usage::

        trigger = NetworkAvailabilityTrigger(AvailabilityKind.AVAILABLE)
        job = ActionJob(sync_outbox, trigger)

    When no ``status`` observer is given a ``NetworkStatus`` is created and
    owned by the trigger: it polls only while the trigger is enabled and is
    stopped by ``close()``.  Injected observers are never started or stopped.
    """

    def __init__(
        self,
        kind: AvailabilityKind | str = AvailabilityKind.AVAILABLE,
        status: AvailabilityObserver | None = None,
        enabled: bool = False,
        name: str | None = None,
    ) -> None:
        super().__init__(name)
        try:
            self.kind = AvailabilityKind(kind)
        except ValueError as exc:
            raise InvalidArgumentError("kind", f"unknown availability kind {kind!r}") from exc
        self._owns_status = status is None
        self._status: Any = status if status is not None else NetworkStatus()
        self.is_enabled = enabled

    @property
    def status(self) -> AvailabilityObserver:
        return self._status

    def close(self) -> None:
        """Stop listening for availability changes."""
        with self._lock:
            self._enabled = False
            self._detach()
        log.debug("network_trigger_closed", trigger=repr(self))

    def __enter__(self) -> NetworkAvailabilityTrigger:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # ---------------------------------------------------------------------------
    # Trigger implementation
    # ---------------------------------------------------------------------------

    def _on_enabled_changed(self, enabled: bool) -> bool | None:
        if not enabled:
            self._detach()
            return None
        matched = self._matches()
        self._status.availability_changed.connect(self._on_availability_changed)
        if self._owns_status:
            self._status.start()
        return matched

    def _detach(self) -> None:
        try:
            self._status.availability_changed.disconnect(self._on_availability_changed)
        except ValueError:
            pass
        if self._owns_status:
            self._status.stop()

    def _on_availability_changed(self, *_: Any) -> None:
        with self._lock:
            matched = self._enabled and self._matches()
        if matched:
            self._fire()

    def _matches(self) -> bool:
        available = bool(self._status.is_available)
        matched = self.kind.matches(available)
        if matched:
            log.debug("network_trigger_matched", trigger=repr(self), available=available)
        return matched

    def __repr__(self) -> str:
        return f"{self.name}(kind={self.kind.value}, enabled={self._enabled})"
