"""jobtrigger — Library configuration.

Configuration is loaded from (in order of increasing priority):
    1. Built-in defaults (this file)
    2. Environment variables prefixed with JOBTRIGGER_
    3. System config: /etc/jobtrigger/config.yaml
    4. User config:   ~/.jobtrigger/config.yaml
    5. An explicit config file passed to ``Settings.load()``

Top-level blocks found in a later file replace the same block from an
earlier one.

Components read ``get_settings()`` only for defaults that the caller did
not pass explicitly (e.g. the network poll interval of the default
availability observer).
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# ---------------------------------------------------------------------------
# Sub-configuration blocks
# ---------------------------------------------------------------------------


class LoggingConfig(BaseModel):
    level: Literal["debug", "info", "warning", "error", "critical"] = "info"
    format: Literal["json", "console"] = "console"
    file: Path | None = None


class NetworkConfig(BaseModel):
    """Defaults for the psutil-backed network availability observer."""

    poll_interval_seconds: Annotated[float, Field(gt=0.0, le=3600.0)] = Field(
        default=2.0,
        description="How often interface state is sampled to detect availability changes.",
    )
    include_loopback: bool = Field(
        default=False,
        description="Count loopback interfaces as providing network availability.",
    )


class TaskConfig(BaseModel):
    """Defaults for TaskJob's private event loop thread."""

    loop_thread_name: str = "jobtrigger-task-loop"
    shutdown_timeout_seconds: Annotated[float, Field(ge=0.0, le=300.0)] = Field(
        default=5.0,
        description="Seconds to wait for the background loop thread to stop on close().",
    )


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="JOBTRIGGER_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    network: NetworkConfig = Field(default_factory=NetworkConfig)
    tasks: TaskConfig = Field(default_factory=TaskConfig)

    @classmethod
    def load(cls, config_file: Path | None = None) -> "Settings":
        """Load settings from file + environment variables."""
        data: dict[str, object] = {}

        candidates = [
            Path("/etc/jobtrigger/config.yaml"),
            Path.home() / ".jobtrigger" / "config.yaml",
        ]
        if config_file:
            candidates.append(config_file)

        for path in candidates:
            if path.exists():
                import yaml

                with path.open() as f:
                    loaded = yaml.safe_load(f) or {}
                    data.update(loaded)

        return cls(**data)


# Module-level singleton, replaced by ``Settings.load()`` or ``override_settings()``.
_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def override_settings(settings: Settings | None) -> None:
    """Replace the module-level singleton. Used in tests."""
    global _settings
    _settings = settings
