"""Shared pytest fixtures for the jobtrigger test suite."""

from __future__ import annotations

import threading
from typing import Any, Generator

import pytest

from jobtrigger.config import NetworkConfig, Settings, TaskConfig, override_settings
from jobtrigger.jobs.base import Job
from jobtrigger.signals import Signal
from jobtrigger.triggers.base import ManualTrigger


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def test_settings() -> Generator[Settings, None, None]:
    settings = Settings(
        logging={"level": "debug", "format": "console"},
        network=NetworkConfig(poll_interval_seconds=0.05),
        tasks=TaskConfig(loop_thread_name="jobtrigger-test-loop", shutdown_timeout_seconds=1.0),
    )
    override_settings(settings)
    yield settings
    override_settings(None)


# ---------------------------------------------------------------------------
# Jobs & triggers
# ---------------------------------------------------------------------------


class RecordingJob(Job):
    """Job whose body records calls and optionally raises or blocks."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.runs = 0
        self.statuses: list[str] = []
        self.error: BaseException | None = None
        self.block: threading.Event | None = None
        self.started = threading.Event()

    def _on_run(self) -> None:
        self.runs += 1
        self.statuses.append(self.status.value)
        self.started.set()
        if self.block is not None:
            self.block.wait(5)
        if self.error is not None:
            raise self.error


@pytest.fixture
def job() -> RecordingJob:
    return RecordingJob()


@pytest.fixture
def make_job() -> type[RecordingJob]:
    return RecordingJob


@pytest.fixture
def trigger() -> ManualTrigger:
    return ManualTrigger()


class FakeNetworkStatus:
    """In-memory AvailabilityObserver driven by tests."""

    def __init__(self, available: bool = False) -> None:
        self.available = available
        self.availability_changed = Signal("FakeNetworkStatus.availability_changed")

    @property
    def is_available(self) -> bool:
        return self.available

    def set(self, available: bool) -> None:
        self.available = available
        self.availability_changed.emit(self)


@pytest.fixture
def network() -> FakeNetworkStatus:
    return FakeNetworkStatus()
