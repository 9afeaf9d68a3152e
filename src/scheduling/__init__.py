"""
Makespan scheduling of tasks onto mobile agents.

Two schedulers share the same entity model (src.fleet):
  construct              exhaustive decision-tree search, exact (or pruned)
  approximate_construct  round-based nearest-pair heuristic, fast

Quick start:
    from src.fleet import Agent, GridCoord, Task
    from src.scheduling import construct, approximate_construct, bound
    from src.scheduling.costs import index_tasks

    agents = [Agent(GridCoord(0, 0))]
    tasks = index_tasks([Task(0, GridCoord(0, 0), GridCoord(1, 0))])
    result = construct(agents, tasks)
    result.min_path_time, result.assignments, result.node_count() == bound(1, 1)
"""

from src.scheduling.bounds import approx_bound, bound, leaf_bound
from src.scheduling.engine import (
    ExhaustiveScheduler,
    SearchResult,
    SearchStats,
    SearchStatus,
    construct,
    deadhead_limit,
)
from src.scheduling.errors import (
    InvalidConfigurationError,
    InvalidCostError,
    ReconstructionError,
    SchedulingError,
)
from src.scheduling.greedy import (
    ApproximateResult,
    GreedyScheduler,
    RoundMatching,
    approximate_construct,
)
from src.scheduling.tree import DecisionTree, Edge, EdgeTrace, Node, TreeSummary, best_path

__all__ = [
    "approx_bound",
    "bound",
    "leaf_bound",
    "ExhaustiveScheduler",
    "SearchResult",
    "SearchStats",
    "SearchStatus",
    "construct",
    "deadhead_limit",
    "InvalidConfigurationError",
    "InvalidCostError",
    "ReconstructionError",
    "SchedulingError",
    "ApproximateResult",
    "GreedyScheduler",
    "RoundMatching",
    "approximate_construct",
    "DecisionTree",
    "Edge",
    "EdgeTrace",
    "Node",
    "TreeSummary",
    "best_path",
]
