"""Run configuration for the command-line driver."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

__all__ = ["ConfigError", "RunConfig", "LOG_LEVEL_ENV", "DEFAULT_LOG_LEVEL", "resolve_log_level"]

LOG_LEVEL_ENV = "AGGLOMERATIVE_POINTS_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "WARNING"


class ConfigError(ValueError):
    """Raised when run settings are invalid."""


def resolve_log_level(explicit: Optional[str] = None) -> str:
    """Pick the log level from the argument, then the environment, then the default."""

    level = explicit or os.environ.get(LOG_LEVEL_ENV) or DEFAULT_LOG_LEVEL
    level = level.strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigError(f"Unknown log level {level!r}.")
    return level


@dataclass(slots=True)
class RunConfig:
    """Settings for one clustering run."""

    input_path: Path
    n_clusters: int = 1
    log_level: str = DEFAULT_LOG_LEVEL
    plot: bool = False

    def validate(self) -> None:
        if self.n_clusters < 1:
            raise ConfigError(f"Target cluster count must be >= 1, got {self.n_clusters}.")
