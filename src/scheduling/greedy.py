"""
Round-based nearest-pair heuristic: the cheap baseline for the exhaustive search.

Algorithm
─────────
Repeat rounds until no task is left:
  1. Build the m × k deadhead array (agent state → task start) for the
     k tasks still pending.
  2. Sort every pair ascending by deadhead.
  3. Scan in that order, accepting a pair when neither its agent nor its task
     has been claimed this round. At most one task per agent per round.
  4. An accepted pair charges the agent ``deadhead + task distance``, moves it
     to the task's end state and removes the task from the pool for good.
The estimate is the largest per-agent total.

This is a local per-round matching, not a global assignment: it runs in
O(rounds · m·n·log(m·n)) with rounds = ⌈n/m⌉ and gives no optimality
guarantee. ``RoundMatching.LAP`` swaps step 3 for
scipy.optimize.linear_sum_assignment on the same array (minimum total
deadhead per round) for comparison; the round structure is unchanged.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum

import numpy as np

from src.fleet.models import Agent, Task
from src.scheduling.config import GreedyConfig
from src.scheduling.costs import checked_distance, validate_problem

logger = logging.getLogger(__name__)


class RoundMatching(Enum):
    """How each round pairs agents with tasks."""

    GREEDY = "greedy"  # cheapest-first conflict-free scan
    LAP = "lap"  # optimal per-round linear assignment


@dataclass
class ApproximateResult:
    """Output of the round-based heuristic.

    Attributes:
        assignments: (agent index, task id) in acceptance order.
        makespan: Largest per-agent total cost.
        agent_times: Total cost per agent, by agent index.
        rounds: Number of rounds run.
        solve_time_ms: Wall-clock time of the call.
    """

    assignments: list[tuple[int, int]]
    makespan: float
    agent_times: list[float] = field(default_factory=list)
    rounds: int = 0
    solve_time_ms: float = 0.0


def approximate_construct(
    agents: Sequence[Agent],
    tasks_by_id: Mapping[int, Task],
    matching: RoundMatching = RoundMatching.GREEDY,
) -> ApproximateResult:
    """Assign every task with repeated conflict-free cheapest-first rounds.

    Raises:
        InvalidConfigurationError: No agents, or mismatched task ids.
        InvalidCostError: A distance was negative or not finite.
    """
    t0 = time.perf_counter()
    validate_problem(agents, tasks_by_id)

    states = [a.state for a in agents]
    agent_times = [0.0] * len(agents)
    pool: dict[int, Task] = dict(tasks_by_id)
    assignments: list[tuple[int, int]] = []
    rounds = 0

    while pool:
        pending = list(pool.values())
        deadhead = np.array(
            [[checked_distance(s, t.start) for t in pending] for s in states],
            dtype=np.float64,
        )
        if matching == RoundMatching.LAP:
            pairs = _lap_round(deadhead)
        else:
            pairs = _greedy_round(deadhead)

        for a_idx, t_idx in pairs:
            task = pending[t_idx]
            agent_times[a_idx] += float(deadhead[a_idx, t_idx]) + checked_distance(
                task.start, task.end
            )
            states[a_idx] = task.end
            del pool[task.id]
            assignments.append((a_idx, task.id))
        rounds += 1
        logger.debug("Round %d: assigned %d, %d left", rounds, len(pairs), len(pool))

    ms = (time.perf_counter() - t0) * 1e3
    return ApproximateResult(
        assignments=assignments,
        makespan=max(agent_times) if assignments else 0.0,
        agent_times=agent_times,
        rounds=rounds,
        solve_time_ms=ms,
    )


def _greedy_round(deadhead: np.ndarray) -> list[tuple[int, int]]:
    """Cheapest-first scan with per-round agent and task exclusion.

    The stable sort over the row-major flattening breaks ties by agent index,
    then by task position.
    """
    n_a, n_t = deadhead.shape
    order = np.argsort(deadhead, axis=None, kind="stable")
    used_a: set[int] = set()
    used_t: set[int] = set()
    pairs: list[tuple[int, int]] = []
    limit = min(n_a, n_t)
    for flat in order:
        a, t = divmod(int(flat), n_t)
        if a in used_a or t in used_t:
            continue
        pairs.append((a, t))
        used_a.add(a)
        used_t.add(t)
        if len(pairs) == limit:
            break
    return pairs


def _lap_round(deadhead: np.ndarray) -> list[tuple[int, int]]:
    """Minimum-total-deadhead matching of min(m, k) pairs."""
    from scipy.optimize import linear_sum_assignment  # pylint: disable=import-outside-toplevel

    rows, cols = linear_sum_assignment(deadhead)
    # cheapest first, same acceptance order as the greedy scan
    pairs = sorted(zip(rows.tolist(), cols.tolist()), key=lambda p: (deadhead[p], p))
    return [(int(a), int(t)) for a, t in pairs]


class GreedyScheduler:
    """Configured front end for ``approximate_construct`` with running totals."""

    def __init__(self, greedy_config: GreedyConfig | None = None) -> None:
        self.config = greedy_config or GreedyConfig()
        self.matching = RoundMatching(self.config.matching)
        self.total_solves: int = 0
        self.total_solve_time_ms: float = 0.0

    def solve(self, agents: Sequence[Agent], tasks_by_id: Mapping[int, Task]) -> ApproximateResult:
        result = approximate_construct(agents, tasks_by_id, self.matching)
        self.total_solves += 1
        self.total_solve_time_ms += result.solve_time_ms
        return result
