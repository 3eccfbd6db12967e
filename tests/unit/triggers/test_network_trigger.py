"""Unit tests — triggers/network.py."""

from __future__ import annotations

import threading
from types import SimpleNamespace
from typing import Any
from unittest.mock import MagicMock, patch

import pytest

from jobtrigger.exceptions import InvalidArgumentError
from jobtrigger.models import AvailabilityKind
from jobtrigger.triggers.network import (
    AvailabilityObserver,
    NetworkAvailabilityTrigger,
    NetworkStatus,
)


def _collect(trigger: NetworkAvailabilityTrigger) -> list[Any]:
    fired: list[Any] = []
    trigger.fired.connect(fired.append)
    return fired


@pytest.mark.unit
class TestNetworkAvailabilityTrigger:
    def test_fake_status_satisfies_protocol(self, network: Any) -> None:
        assert isinstance(network, AvailabilityObserver)

    def test_not_enabled_ignores_changes(self, network: Any) -> None:
        trigger = NetworkAvailabilityTrigger(AvailabilityKind.UNAVAILABLE, network)
        fired = _collect(trigger)
        network.set(False)
        assert fired == []

    def test_enabled_then_disabled_ignores_changes(self, network: Any) -> None:
        network.available = True
        trigger = NetworkAvailabilityTrigger(AvailabilityKind.AVAILABLE, network)
        trigger.is_enabled = True
        trigger.is_enabled = False
        fired = _collect(trigger)
        network.set(True)
        assert fired == []

    @pytest.mark.parametrize(
        "kind,available",
        [
            (AvailabilityKind.AVAILABLE, True),
            (AvailabilityKind.UNAVAILABLE, False),
            (AvailabilityKind.BOTH, False),
            (AvailabilityKind.BOTH, True),
        ],
    )
    def test_fires_immediately_when_state_matches(
        self, network: Any, kind: AvailabilityKind, available: bool
    ) -> None:
        network.available = available
        trigger = NetworkAvailabilityTrigger(kind, network)
        fired = _collect(trigger)
        trigger.is_enabled = True
        assert fired == [trigger]

    def test_no_immediate_fire_when_state_does_not_match(self, network: Any) -> None:
        network.available = False
        trigger = NetworkAvailabilityTrigger(AvailabilityKind.AVAILABLE, network)
        fired = _collect(trigger)
        trigger.is_enabled = True
        assert fired == []

    def test_fires_when_network_becomes_available(self, network: Any) -> None:
        trigger = NetworkAvailabilityTrigger(AvailabilityKind.AVAILABLE, network)
        fired = _collect(trigger)
        trigger.is_enabled = True
        assert fired == []
        network.set(True)
        assert fired == [trigger]

    def test_fires_when_network_becomes_unavailable(self, network: Any) -> None:
        network.available = True
        trigger = NetworkAvailabilityTrigger(AvailabilityKind.UNAVAILABLE, network)
        fired = _collect(trigger)
        trigger.is_enabled = True
        assert fired == []
        network.set(False)
        assert fired == [trigger]

    def test_both_fires_on_every_change(self, network: Any) -> None:
        network.available = True
        trigger = NetworkAvailabilityTrigger(AvailabilityKind.BOTH, network)
        trigger.is_enabled = True
        fired = _collect(trigger)
        network.set(False)
        network.set(True)
        assert len(fired) == 2

    def test_close_unsubscribes_from_observer(self, network: Any) -> None:
        trigger = NetworkAvailabilityTrigger(AvailabilityKind.BOTH, network, enabled=True)
        assert network.availability_changed.observer_count == 1
        trigger.close()
        assert network.availability_changed.observer_count == 0
        assert trigger.is_enabled is False

    def test_close_without_enable_is_safe(self, network: Any) -> None:
        NetworkAvailabilityTrigger(AvailabilityKind.BOTH, network).close()

    def test_kind_from_string(self, network: Any) -> None:
        trigger = NetworkAvailabilityTrigger("unavailable", network)
        assert trigger.kind is AvailabilityKind.UNAVAILABLE

    def test_unknown_kind_rejected(self, network: Any) -> None:
        with pytest.raises(InvalidArgumentError, match="kind"):
            NetworkAvailabilityTrigger("sometimes", network)

    def test_injected_observer_is_not_started(self, network: Any) -> None:
        network.start = MagicMock()
        trigger = NetworkAvailabilityTrigger(AvailabilityKind.BOTH, network)
        trigger.is_enabled = True
        network.start.assert_not_called()

    def test_default_observer_started_and_stopped(self) -> None:
        status = MagicMock(spec=NetworkStatus)
        status.is_available = False
        status.availability_changed = MagicMock()
        with patch("jobtrigger.triggers.network.NetworkStatus", return_value=status):
            trigger = NetworkAvailabilityTrigger(AvailabilityKind.AVAILABLE)
        trigger.is_enabled = True
        status.start.assert_called_once()
        trigger.is_enabled = False
        status.stop.assert_called_once()

    def _disable_from_other_thread(self, trigger: NetworkAvailabilityTrigger) -> list[bool]:
        blocked: list[bool] = []

        def on_fired(sender: NetworkAvailabilityTrigger) -> None:
            worker = threading.Thread(target=setattr, args=(sender, "is_enabled", False))
            worker.start()
            worker.join(1)
            blocked.append(worker.is_alive())

        trigger.fired.connect(on_fired)
        return blocked

    def test_immediate_fire_happens_outside_lock(self, network: Any) -> None:
        network.available = True
        trigger = NetworkAvailabilityTrigger(AvailabilityKind.AVAILABLE, network)
        blocked = self._disable_from_other_thread(trigger)
        trigger.is_enabled = True
        assert blocked == [False]
        assert trigger.is_enabled is False

    def test_change_fire_happens_outside_lock(self, network: Any) -> None:
        trigger = NetworkAvailabilityTrigger(AvailabilityKind.AVAILABLE, network, enabled=True)
        blocked = self._disable_from_other_thread(trigger)
        network.set(True)
        assert blocked == [False]
        assert network.availability_changed.observer_count == 0


def _stats(**interfaces: bool) -> dict[str, SimpleNamespace]:
    return {name: SimpleNamespace(isup=up) for name, up in interfaces.items()}


@pytest.mark.unit
class TestNetworkStatus:
    def test_available_when_interface_up(self) -> None:
        with patch("psutil.net_if_stats", return_value=_stats(lo=True, eth0=True)):
            assert NetworkStatus().is_available is True

    def test_loopback_ignored_by_default(self) -> None:
        with patch("psutil.net_if_stats", return_value=_stats(lo=True, eth0=False)):
            assert NetworkStatus().is_available is False

    def test_loopback_counted_when_configured(self) -> None:
        with patch("psutil.net_if_stats", return_value=_stats(lo=True)):
            assert NetworkStatus(include_loopback=True).is_available is True

    def test_sample_error_reports_unavailable(self) -> None:
        with patch("psutil.net_if_stats", side_effect=OSError("no netlink")):
            assert NetworkStatus().is_available is False

    def test_invalid_poll_interval_rejected(self) -> None:
        with pytest.raises(InvalidArgumentError):
            NetworkStatus(poll_interval_seconds=0)

    def test_poll_interval_defaults_from_settings(self) -> None:
        assert NetworkStatus()._poll == 0.05

    def test_polling_emits_on_change(self) -> None:
        state = {"up": False}
        changed = threading.Event()

        def fake_stats() -> dict[str, SimpleNamespace]:
            return _stats(eth0=state["up"])

        with patch("psutil.net_if_stats", side_effect=fake_stats):
            status = NetworkStatus(poll_interval_seconds=0.01)
            status.availability_changed.connect(lambda sender: changed.set())
            status.start()
            assert status.is_running
            state["up"] = True
            try:
                assert changed.wait(1)
            finally:
                status.stop()
        assert status.is_running is False
