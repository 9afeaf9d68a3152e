"""
Random problem instances on a square grid.

Agents and task endpoints are drawn uniformly from [0, grid_size)² as
GridCoord cells, so distances are Manhattan. Task ids are 0..n_tasks-1.

Usage:
    rng = np.random.default_rng(42)
    inst = generate_instance(n_agents=3, n_tasks=6, grid_size=5, rng=rng)
    construct(inst.agents, inst.tasks_by_id)
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from src.fleet.distance import GridCoord
from src.fleet.models import Agent, Task
from src.scheduling.config import InstanceConfig
from src.scheduling.costs import index_tasks
from src.scheduling.errors import InvalidConfigurationError


@dataclass
class Instance:
    """A single random scheduling problem."""

    agents: list[Agent[GridCoord]]
    tasks_by_id: dict[int, Task[GridCoord]]
    grid_size: int

    @property
    def n_agents(self) -> int:
        return len(self.agents)

    @property
    def n_tasks(self) -> int:
        return len(self.tasks_by_id)


def _coord(rng: np.random.Generator, grid_size: int) -> GridCoord:
    x, y = rng.integers(0, grid_size, size=2)
    return GridCoord(int(x), int(y))


def generate_instance(
    n_agents: int,
    n_tasks: int,
    grid_size: int,
    rng: np.random.Generator,
) -> Instance:
    """Draw one instance. Agents first, then each task's start and end."""
    if n_agents < 1 or n_tasks < 0 or grid_size < 1:
        raise InvalidConfigurationError(
            f"Bad instance size: agents={n_agents}, tasks={n_tasks}, grid={grid_size}"
        )
    agents = [Agent(_coord(rng, grid_size)) for _ in range(n_agents)]
    tasks = [
        Task(id=i, start=_coord(rng, grid_size), end=_coord(rng, grid_size))
        for i in range(n_tasks)
    ]
    return Instance(agents=agents, tasks_by_id=index_tasks(tasks), grid_size=grid_size)


def instance_from_config(config: InstanceConfig) -> Instance:
    """Seeded instance described by an InstanceConfig."""
    rng = np.random.default_rng(config.random_seed)
    return generate_instance(config.n_agents, config.n_tasks, config.grid_size, rng)
