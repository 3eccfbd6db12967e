"""jobtrigger — Structured logging configuration.

Every module logs through structlog with snake_case event names and
key/value fields.  Once ``configure_logging()`` has run, each record
carries a timestamp, the level, the logger name and, while a job is
running, the ``job_id`` and firing ``trigger``.

The library never configures logging on import.  Applications call
``configure_logging()`` once at startup; components accept an injected
logger and fall back to ``get_logger(__name__)``.
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterator

import structlog
from structlog.types import EventDict, WrappedLogger

_PACKAGE_LOGGER = "jobtrigger"

# Context variables, injected into log records when set.
_ctx_job_id: ContextVar[str | None] = ContextVar("job_id", default=None)
_ctx_trigger: ContextVar[str | None] = ContextVar("trigger", default=None)


@contextmanager
def job_context(job_id: str, trigger: str | None = None) -> Iterator[None]:
    """Bind job execution context to the current thread / async task.

    The previous values are restored on exit, so a job run nested inside
    another job's body logs with its own ``job_id`` and then hands the
    outer one back.
    """
    job_token = _ctx_job_id.set(job_id)
    trigger_token = _ctx_trigger.set(trigger)
    try:
        yield
    finally:
        _ctx_trigger.reset(trigger_token)
        _ctx_job_id.reset(job_token)


def current_job_id() -> str | None:
    return _ctx_job_id.get()


# ---------------------------------------------------------------------------
# Custom processors
# ---------------------------------------------------------------------------


def _inject_context_vars(
    _logger: WrappedLogger, _method: str, event_dict: EventDict
) -> EventDict:
    """Add ContextVar values to every log record."""
    if (job_id := _ctx_job_id.get()) is not None:
        event_dict.setdefault("job_id", job_id)
    if (trigger := _ctx_trigger.get()) is not None:
        event_dict.setdefault("trigger", trigger)
    return event_dict


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------


def configure_logging(
    level: str = "info",
    format: str = "console",
    log_file: str | None = None,
) -> None:
    """Configure structlog and the ``jobtrigger`` stdlib logger.

    Only the ``jobtrigger`` logger hierarchy gets handlers; the host
    application's root logger is left alone.  Records go to stderr and,
    when ``log_file`` is given, to that file as well.

    Args:
        level:    One of debug, info, warning, error, critical.
        format:   ``"console"`` or ``"json"``.
        log_file: Optional extra destination.
    """
    pre_chain: list[Any] = [
        structlog.contextvars.merge_contextvars,
        _inject_context_vars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    renderer: Any = (
        structlog.processors.JSONRenderer()
        if format == "json"
        else structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    )

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=pre_chain,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    )
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    for handler in handlers:
        handler.setFormatter(formatter)

    package_logger = logging.getLogger(_PACKAGE_LOGGER)
    package_logger.handlers = handlers
    package_logger.setLevel(level.upper())
    package_logger.propagate = False


def configure_from_settings(settings: Any) -> None:
    """Apply the ``logging`` block of a :class:`jobtrigger.config.Settings`."""
    cfg = settings.logging
    configure_logging(
        level=cfg.level,
        format=cfg.format,
        log_file=str(cfg.file.expanduser()) if cfg.file else None,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a bound structlog logger for *name*.

    Usage::

        log = get_logger(__name__)
        log.info("job_run_started", job="ActionJob (abc123)")
    """
    return structlog.get_logger(name)


def null_logger() -> Any:
    """Return a logger that accepts every call and renders nothing."""
    return structlog.wrap_logger(
        structlog.ReturnLogger(),
        processors=[],
    )
