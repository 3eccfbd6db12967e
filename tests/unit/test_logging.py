"""Unit tests — logging.py."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Generator
from unittest.mock import MagicMock

import pytest
import structlog

from jobtrigger.config import LoggingConfig
from jobtrigger.logging import (
    _inject_context_vars,
    configure_from_settings,
    configure_logging,
    current_job_id,
    job_context,
    null_logger,
)
from jobtrigger.models import Scope
from jobtrigger.triggers.base import ManualTrigger


@pytest.fixture
def restore_logging() -> Generator[logging.Logger, None, None]:
    package_logger = logging.getLogger("jobtrigger")
    handlers, level, propagate = (
        package_logger.handlers[:], package_logger.level, package_logger.propagate
    )
    yield package_logger
    for handler in package_logger.handlers:
        handler.close()
    package_logger.handlers = handlers
    package_logger.propagate = propagate
    package_logger.setLevel(level)
    structlog.reset_defaults()


@pytest.mark.unit
class TestJobContext:
    def test_binds_and_restores(self) -> None:
        assert current_job_id() is None
        with job_context("outer"):
            assert current_job_id() == "outer"
            with job_context("inner", trigger="TimerTrigger"):
                assert current_job_id() == "inner"
            assert current_job_id() == "outer"
        assert current_job_id() is None

    def test_processor_injects_context(self) -> None:
        with job_context("job-1", trigger="ManualTrigger(enabled=True)"):
            event = _inject_context_vars(None, "info", {"event": "x"})
        assert event["job_id"] == "job-1"
        assert event["trigger"] == "ManualTrigger(enabled=True)"

    def test_processor_keeps_explicit_values(self) -> None:
        with job_context("job-1"):
            event = _inject_context_vars(None, "info", {"event": "x", "job_id": "other"})
        assert event["job_id"] == "other"

    def test_processor_without_context(self) -> None:
        assert _inject_context_vars(None, "info", {"event": "x"}) == {"event": "x"}


@pytest.mark.unit
class TestLoggers:
    def test_null_logger_accepts_calls(self) -> None:
        logger = null_logger()
        logger.info("job_run_started", job="x")
        logger.warning("trigger_toggle_failed", exc_info=True)

    def test_injected_logger_receives_job_events(self, make_job: Any) -> None:
        logger = MagicMock()
        job = make_job(logger=logger)
        trigger = ManualTrigger()
        job.triggers.append(trigger)
        job.enable(Scope.JOB_AND_TRIGGERS)
        trigger.fire()

        events = [c.args[0] for c in logger.info.call_args_list]
        assert "job_run_started" in events

    def test_json_output_to_file(self, tmp_path: Path, restore_logging: logging.Logger) -> None:
        log_file = tmp_path / "jobtrigger.log"
        configure_logging(level="info", format="json", log_file=str(log_file))

        with job_context("job-42"):
            structlog.get_logger("jobtrigger.test").info("job_run_started", attempt=1)
        for handler in restore_logging.handlers:
            handler.flush()

        record = json.loads(log_file.read_text().strip().splitlines()[-1])
        assert record["event"] == "job_run_started"
        assert record["job_id"] == "job-42"
        assert record["attempt"] == 1
        assert record["level"] == "info"

    def test_root_logger_untouched(self, restore_logging: logging.Logger) -> None:
        root_handlers = logging.getLogger().handlers[:]
        configure_logging(level="warning")
        assert logging.getLogger().handlers == root_handlers
        assert restore_logging.propagate is False
        assert restore_logging.level == logging.WARNING

    def test_configure_from_settings(
        self, tmp_path: Path, test_settings: Any, restore_logging: logging.Logger
    ) -> None:
        log_file = tmp_path / "from-settings.log"
        settings = test_settings.model_copy(
            update={"logging": LoggingConfig(level="error", format="json", file=log_file)}
        )
        configure_from_settings(settings)
        assert restore_logging.level == logging.ERROR
        assert any(isinstance(h, logging.FileHandler) for h in restore_logging.handlers)
