"""
Exhaustive makespan search over every assignment order.

The search builds the complete decision tree: at each level one child per
(agent, remaining task) pair, agents outer and tasks in mapping order inner.
Taking a pair moves the agent to the task's end state and charges it
``deadhead + task distance``; the task leaves that branch's pool only, so
siblings still see it. At a leaf (empty pool) the value is the makespan, the
largest accumulated cost of any agent. Internal nodes fold the minimum of
their children bottom-up, keeping the first child that reaches it.

Pruning
───────
An optional restriction predicate receives the deadhead of a candidate pair
and vetoes the branch when it returns True. Pruning can only shrink the tree
and can only raise or keep the reported optimum: it may cut away the true best
schedule. A restriction that cuts every complete schedule gives
``SearchStatus.INFEASIBLE``, distinct from ``SearchStatus.NO_TASKS``.

Size
────
Unpruned, the tree has exactly ``bounds.bound(m, n)`` nodes and
``bounds.leaf_bound(m, n) = mⁿ·n!`` leaves. Keep n in single digits.
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum, auto

from src.fleet.models import Agent, Task
from src.scheduling.config import SearchConfig
from src.scheduling.costs import edge_costs, validate_problem
from src.scheduling.errors import ReconstructionError
from src.scheduling.tree import DecisionTree, Edge, EdgeTrace, Node, TreeSummary, best_path

logger = logging.getLogger(__name__)

Restriction = Callable[[float], bool]  # deadhead -> True to veto the branch


class SearchStatus(Enum):
    """Outcome of an exhaustive search."""

    OPTIMAL = auto()  # best schedule among those the restriction allows
    NO_TASKS = auto()  # nothing to schedule; zero makespan
    INFEASIBLE = auto()  # the restriction vetoed every complete schedule


@dataclass
class SearchStats:
    """Counters threaded through one search call."""

    edges_explored: int = 0
    branches_pruned: int = 0


@dataclass
class SearchResult:
    """Everything one ``construct`` call produces.

    Attributes:
        path: Winning edges, root to leaf. Empty unless status is OPTIMAL.
        min_path_time: Optimal makespan (0.0 for NO_TASKS, inf for INFEASIBLE).
        status: See SearchStatus.
        summary: Node/leaf counts of the explored tree.
        stats: Explored and pruned edge counters.
        tree: The full tree, or None when built with keep_tree=False.
        solve_time_ms: Wall-clock time of the call.
    """

    path: list[Edge]
    min_path_time: float
    status: SearchStatus
    summary: TreeSummary
    stats: SearchStats = field(default_factory=SearchStats)
    tree: DecisionTree | None = None
    solve_time_ms: float = 0.0

    @property
    def assignments(self) -> list[tuple[int, int]]:
        """``(agent index, task id)`` pairs in service order."""
        return [(e.agent, e.task) for e in self.path]

    def node_count(self) -> int:
        """Total nodes explored; compare against ``bounds.bound(m, n)``."""
        return self.summary.node_count


def deadhead_limit(limit: float) -> Restriction:
    """Restriction vetoing every branch whose deadhead exceeds ``limit``."""

    def _restrict(deadhead: float) -> bool:
        return deadhead > limit

    return _restrict


def construct(
    agents: Sequence[Agent],
    tasks_by_id: Mapping[int, Task],
    restriction: Restriction | None = None,
    diagnostics: bool = False,
    keep_tree: bool = True,
) -> SearchResult:
    """Find the minimum-makespan schedule by exhaustive enumeration.

    Args:
        agents: The fleet; position in the sequence is the agent index.
        tasks_by_id: Tasks keyed by their stable id.
        restriction: Optional deadhead predicate; True vetoes the branch.
        diagnostics: Attach an EdgeTrace to every edge. Never changes the path.
        keep_tree: Return the full tree; otherwise only its summary.

    Returns:
        SearchResult with the best path and the tree (or its summary).

    Raises:
        InvalidConfigurationError: No agents, or mismatched task ids.
        InvalidCostError: A distance was negative or not finite.
        ReconstructionError: Internal inconsistency in the folded tree.
    """
    t0 = time.perf_counter()
    validate_problem(agents, tasks_by_id)
    stats = SearchStats()

    if not tasks_by_id:
        tree = DecisionTree(min_path_time=0.0)
        return SearchResult(
            path=[],
            min_path_time=0.0,
            status=SearchStatus.NO_TASKS,
            summary=tree.summarize(),
            stats=stats,
            tree=tree if keep_tree else None,
            solve_time_ms=(time.perf_counter() - t0) * 1e3,
        )

    states = tuple(a.state for a in agents)
    times = (0.0,) * len(agents)
    tasks = tuple(tasks_by_id.values())

    tree = DecisionTree()
    tree.children, tree.min_path_time, tree.best_child = _expand(
        states, tasks, times, restriction, diagnostics, stats
    )
    summary = tree.summarize()

    if math.isinf(tree.min_path_time):
        logger.warning(
            "Restriction vetoed every complete schedule (%d nodes, %d pruned branches)",
            summary.node_count,
            stats.branches_pruned,
        )
        path: list[Edge] = []
        status = SearchStatus.INFEASIBLE
    else:
        path = best_path(tree)
        _check_complete(path, tasks_by_id)
        status = SearchStatus.OPTIMAL

    ms = (time.perf_counter() - t0) * 1e3
    logger.debug(
        "Exhaustive search: %d agents, %d tasks, %d nodes, %d pruned, makespan %.3f in %.1f ms",
        len(agents),
        len(tasks),
        summary.node_count,
        stats.branches_pruned,
        tree.min_path_time,
        ms,
    )
    return SearchResult(
        path=path,
        min_path_time=tree.min_path_time,
        status=status,
        summary=summary,
        stats=stats,
        tree=tree if keep_tree else None,
        solve_time_ms=ms,
    )


def _expand(
    states: tuple,
    tasks: tuple[Task, ...],
    times: tuple[float, ...],
    restriction: Restriction | None,
    diagnostics: bool,
    stats: SearchStats,
) -> tuple[list[Node], float, int | None]:
    """Build and fold every child of one decision point.

    Returns:
        (children, best child time, best child index). The time is inf and
        the index None when every child was vetoed or is a dead end.
    """
    children: list[Node] = []
    best_time, best_idx = math.inf, None

    for ai, state in enumerate(states):
        for ti, task in enumerate(tasks):
            deadhead, cost = edge_costs(state, task)
            if restriction is not None and restriction(deadhead):
                stats.branches_pruned += 1
                continue
            stats.edges_explored += 1

            edge = Edge(
                agent=ai,
                task=task.id,
                trace=EdgeTrace(state, task.start, task.end, cost) if diagnostics else None,
            )
            child_states = states[:ai] + (task.end,) + states[ai + 1:]
            child_times = times[:ai] + (times[ai] + cost,) + times[ai + 1:]
            remaining = tasks[:ti] + tasks[ti + 1:]

            child = Node(edge)
            if remaining:
                child.children, child.min_path_time, child.best_child = _expand(
                    child_states, remaining, child_times, restriction, diagnostics, stats
                )
            else:
                child.min_path_time = max(child_times)

            if child.min_path_time < best_time:
                best_time, best_idx = child.min_path_time, len(children)
            children.append(child)

    return children, best_time, best_idx


def _check_complete(path: list[Edge], tasks_by_id: Mapping[int, Task]) -> None:
    """The best path must serve every task exactly once."""
    served = [e.task for e in path]
    if len(served) != len(tasks_by_id) or set(served) != set(tasks_by_id):
        raise ReconstructionError(
            f"Reconstructed path serves {served}, expected each of {sorted(tasks_by_id)} once"
        )


class ExhaustiveScheduler:
    """Configured front end for ``construct``.

    Builds the deadhead restriction from ``SearchConfig.max_deadhead`` and
    keeps cumulative statistics across calls.
    """

    def __init__(self, search_config: SearchConfig | None = None) -> None:
        self.config = search_config or SearchConfig()
        self.restriction: Restriction | None = (
            deadhead_limit(self.config.max_deadhead)
            if self.config.max_deadhead is not None
            else None
        )
        self.total_solves: int = 0
        self.total_infeasible: int = 0
        self.total_solve_time_ms: float = 0.0

    def solve(self, agents: Sequence[Agent], tasks_by_id: Mapping[int, Task]) -> SearchResult:
        """Run one search with the configured options."""
        result = construct(
            agents,
            tasks_by_id,
            restriction=self.restriction,
            diagnostics=self.config.diagnostics,
            keep_tree=self.config.keep_tree,
        )
        self.total_solves += 1
        self.total_solve_time_ms += result.solve_time_ms
        if result.status == SearchStatus.INFEASIBLE:
            self.total_infeasible += 1
        return result
