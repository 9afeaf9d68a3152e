"""
Scheduler configuration dataclasses, YAML loader and logging setup.

All run parameters live here as typed, validated dataclasses.
Load from YAML with `load_config()` or construct directly for tests.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

import yaml

from src.scheduling.errors import InvalidConfigurationError

_LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


@dataclass(frozen=True)
class SearchConfig:
    """Exhaustive search parameters.

    max_deadhead prunes every branch whose deadhead (unloaded travel to the
    task start) exceeds it. None disables pruning and keeps the search exact.
    """

    diagnostics: bool = False  # attach before-state / endpoints / cost to every edge
    keep_tree: bool = True  # False: return only the size summary
    max_deadhead: float | None = None

    def __post_init__(self) -> None:
        if self.max_deadhead is not None and (
            not math.isfinite(self.max_deadhead) or self.max_deadhead < 0
        ):
            raise InvalidConfigurationError(
                f"max_deadhead must be a non-negative number, got {self.max_deadhead!r}"
            )


@dataclass(frozen=True)
class GreedyConfig:
    """Round-based heuristic parameters."""

    matching: Literal["greedy", "lap"] = "greedy"

    def __post_init__(self) -> None:
        if self.matching not in ("greedy", "lap"):
            raise InvalidConfigurationError(f"Unknown matching {self.matching!r}")


@dataclass(frozen=True)
class InstanceConfig:
    """Random instance generation over a square grid."""

    grid_size: int = 5  # coordinates drawn from [0, grid_size)
    n_agents: int = 3
    n_tasks: int = 6
    random_seed: int = 42

    def __post_init__(self) -> None:
        if self.grid_size < 1:
            raise InvalidConfigurationError(f"grid_size must be >= 1, got {self.grid_size}")
        if self.n_agents < 1:
            raise InvalidConfigurationError(f"n_agents must be >= 1, got {self.n_agents}")
        if self.n_tasks < 0:
            raise InvalidConfigurationError(f"n_tasks must be >= 0, got {self.n_tasks}")


@dataclass(frozen=True)
class LoggingConfig:
    """Console logging for library modules."""

    level: str = "INFO"

    def __post_init__(self) -> None:
        if not isinstance(logging.getLevelName(self.level.upper()), int):
            raise InvalidConfigurationError(f"Unknown log level {self.level!r}")


@dataclass(frozen=True)
class SchedulerConfig:
    """Top-level configuration aggregating all sub-configs."""

    search: SearchConfig = field(default_factory=SearchConfig)
    greedy: GreedyConfig = field(default_factory=GreedyConfig)
    instance: InstanceConfig = field(default_factory=InstanceConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(path: str | Path) -> SchedulerConfig:
    """Load a SchedulerConfig from a YAML file.

    Missing sections fall back to their defaults.

    Args:
        path: Path to a YAML config file.

    Returns:
        Fully constructed SchedulerConfig with all sub-configs.
    """
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    try:
        return SchedulerConfig(
            search=SearchConfig(**raw.get("search", {})),
            greedy=GreedyConfig(**raw.get("greedy", {})),
            instance=InstanceConfig(**raw.get("instance", {})),
            logging=LoggingConfig(**raw.get("logging", {})),
        )
    except TypeError as exc:  # unknown key in a section
        raise InvalidConfigurationError(f"{path}: {exc}") from exc


def configure_logging(config: LoggingConfig) -> None:
    """Attach a console handler to the ``src`` logger at the configured level.

    Safe to call repeatedly; only one handler is ever installed.
    """
    logger = logging.getLogger("src")
    logger.setLevel(config.level.upper())
    if not any(isinstance(h, logging.StreamHandler) for h in logger.handlers):
        console = logging.StreamHandler()
        console.setFormatter(logging.Formatter(_LOG_FORMAT))
        logger.addHandler(console)
