"""
Validated cost evaluation and problem-input checks shared by both schedulers.

Every distance the schedulers use goes through ``checked_distance``. A NaN
would make every later comparison false and silently corrupt the fold, so
bad values are rejected where they are produced.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping, Sequence

from src.fleet.models import Agent, Task
from src.scheduling.errors import InvalidConfigurationError, InvalidCostError


def checked_distance(a, b) -> float:
    """``a.distance(b)`` as a float, rejecting negative and non-finite values.

    Raises:
        InvalidCostError: If the distance is NaN, infinite or negative.
    """
    d = float(a.distance(b))
    if not math.isfinite(d) or d < 0.0:
        raise InvalidCostError(f"Invalid distance {d!r} from {a!r} to {b!r}")
    return d


def edge_costs(state, task: Task) -> tuple[float, float]:
    """Return ``(deadhead, edge_cost)`` for serving ``task`` from ``state``.

    deadhead  : unloaded travel from the agent's state to the task start
    edge_cost : deadhead + the task's own start→end distance
    """
    deadhead = checked_distance(state, task.start)
    return deadhead, deadhead + checked_distance(task.start, task.end)


def index_tasks(tasks: Iterable[Task]) -> dict[int, Task]:
    """Build the ``tasks_by_id`` mapping, preserving iteration order.

    Raises:
        InvalidConfigurationError: On duplicate task ids.
    """
    by_id: dict[int, Task] = {}
    for task in tasks:
        if task.id in by_id:
            raise InvalidConfigurationError(f"Duplicate task id {task.id}")
        by_id[task.id] = task
    return by_id


def validate_problem(agents: Sequence[Agent], tasks_by_id: Mapping[int, Task]) -> None:
    """Reject problems the schedulers cannot define a schedule for.

    Raises:
        InvalidConfigurationError: If there are no agents, or a mapping key
            does not match its task's id.
    """
    if len(agents) == 0:
        raise InvalidConfigurationError("At least one agent is required")
    for key, task in tasks_by_id.items():
        if key != task.id:
            raise InvalidConfigurationError(f"Task keyed {key!r} has id {task.id!r}")


def replay_schedule(
    agents: Sequence[Agent],
    tasks_by_id: Mapping[int, Task],
    assignments: Iterable[tuple[int, int]],
) -> list[float]:
    """Total cost per agent after serving ``(agent index, task id)`` pairs in order.

    The makespan of the schedule is ``max(replay_schedule(...))``.
    """
    states = [a.state for a in agents]
    totals = [0.0] * len(agents)
    for a_idx, task_id in assignments:
        task = tasks_by_id[task_id]
        _, cost = edge_costs(states[a_idx], task)
        totals[a_idx] += cost
        states[a_idx] = task.end
    return totals
