"""
src/scheduling/benchmark.py
──────────────────────────────────────────────────────────────────────────────
Benchmark: exhaustive search against the round-based heuristics.

Runs random grid scenarios and compares four strategies head-to-head:

  exhaustive   unrestricted decision-tree search (exact makespan)
  pruned       decision-tree search with a deadhead limit
  greedy       cheapest-first conflict-free rounds
  lap          rounds resolved by scipy linear_sum_assignment

Metrics per scenario:
  • Makespan                (largest per-agent cost)
  • Gap to the exact optimum (needs "exhaustive" in the run)
  • Explored nodes          (tree strategies; also as % of bound(m, n))
  • Solve time              (wall-clock, ms)

Usage:
    python -m src.scheduling.benchmark                    # 20 scenarios, defaults
    python -m src.scheduling.benchmark --scenarios 100
    python -m src.scheduling.benchmark --agents 2 --tasks 5 --grid 1000
    python -m src.scheduling.benchmark --strategies exhaustive greedy
"""

from __future__ import annotations

import argparse
from dataclasses import dataclass, field

import numpy as np

from src.instances.generator import generate_instance
from src.scheduling.bounds import approx_bound, bound
from src.scheduling.config import GreedyConfig, LoggingConfig, SearchConfig, configure_logging
from src.scheduling.engine import ExhaustiveScheduler, SearchStatus
from src.scheduling.greedy import GreedyScheduler

ALL_STRATEGIES = ["exhaustive", "pruned", "greedy", "lap"]
TREE_STRATEGIES = {"exhaustive", "pruned"}


@dataclass
class StrategyStats:
    """Per-strategy accumulators across scenarios."""

    makespan: list[float] = field(default_factory=list)
    time_ms: list[float] = field(default_factory=list)
    nodes: list[int] = field(default_factory=list)
    gap_pct: list[float] = field(default_factory=list)
    infeasible: int = 0


def default_deadhead_limit(grid_size: int, n_agents: int) -> float:
    """2.5 · grid / agents: keeps most short hops, drops cross-grid ones."""
    return 2.5 * grid_size / n_agents


def run_benchmark(
    n_scenarios: int = 20,
    n_agents: int = 3,
    n_tasks: int = 5,
    grid_size: int = 100,
    seed: int = 42,
    max_deadhead: float | None = None,
    strategy_names: list[str] | None = None,
) -> dict[str, StrategyStats]:
    """Run scenarios, print a comparison table and return the raw numbers."""

    # exhaustive first so the others can be measured against its optimum
    active = [s for s in ALL_STRATEGIES if s in (strategy_names or ALL_STRATEGIES)]
    if max_deadhead is None:
        max_deadhead = default_deadhead_limit(grid_size, n_agents)

    print("=" * 80)
    print("  Makespan Scheduling Benchmark")
    print("=" * 80)
    print(
        f"  Scenarios: {n_scenarios}  |  Agents: {n_agents}  |  Tasks: {n_tasks}"
        f"  |  Grid: {grid_size}  |  Seed: {seed}"
    )
    print(f"  Strategies: {', '.join(active)}")
    print(f"  Deadhead limit (pruned): {max_deadhead:.1f}")
    print(f"  bound(m, n) = {bound(n_agents, n_tasks):,} nodes  |  "
          f"approx_bound(m, n) = {approx_bound(n_agents, n_tasks):,} comparisons")
    print()

    solvers = {
        "exhaustive": ExhaustiveScheduler(SearchConfig(keep_tree=False)),
        "pruned": ExhaustiveScheduler(SearchConfig(keep_tree=False, max_deadhead=max_deadhead)),
        "greedy": GreedyScheduler(GreedyConfig(matching="greedy")),
        "lap": GreedyScheduler(GreedyConfig(matching="lap")),
    }
    results = {name: StrategyStats() for name in active}
    rng = np.random.default_rng(seed)

    for _ in range(n_scenarios):
        inst = generate_instance(n_agents, n_tasks, grid_size, rng)
        optimum = None

        for name in active:
            r = solvers[name].solve(inst.agents, inst.tasks_by_id)
            stats = results[name]
            stats.time_ms.append(r.solve_time_ms)
            if name in TREE_STRATEGIES:
                stats.nodes.append(r.node_count())
                if r.status == SearchStatus.INFEASIBLE:
                    stats.infeasible += 1
                    continue
                makespan = r.min_path_time
                if name == "exhaustive":
                    optimum = makespan
            else:
                makespan = r.makespan
            stats.makespan.append(makespan)
            if optimum is not None and optimum > 0:
                stats.gap_pct.append((makespan - optimum) / optimum * 100)

    _print_table(results, active, bound(n_agents, n_tasks))
    print("\n" + "=" * 80)
    return results


def _print_table(results: dict[str, StrategyStats], active: list[str], max_nodes: int) -> None:
    col_w = 14

    def hdr(label: str) -> str:
        return f"{label:>{col_w}}"

    def val(values: list, fn, fmt: str = ".1f") -> str:
        if not values:
            return f"{'—':>{col_w}}"
        return f"{fn(values):{col_w}{fmt}}"

    print(f"  {'Metric':<28}" + "".join(hdr(n) for n in active))
    print("  " + "─" * (28 + col_w * len(active)))

    rows = [
        ("Avg makespan", lambda s: val(s.makespan, np.mean)),
        ("Max makespan", lambda s: val(s.makespan, np.max)),
        ("Avg gap to optimum (%)", lambda s: val(s.gap_pct, np.mean, ".2f")),
        ("Avg explored nodes", lambda s: val(s.nodes, np.mean, ",.0f")),
        (
            "Explored / bound (%)",
            lambda s: val(s.nodes, lambda v: 100 * np.mean(v) / max(max_nodes, 1), ".3f"),
        ),
        ("Avg solve time (ms)", lambda s: val(s.time_ms, np.mean, ".2f")),
        ("P95 solve time (ms)", lambda s: val(s.time_ms, lambda v: np.percentile(v, 95), ".2f")),
        ("Infeasible scenarios", lambda s: f"{s.infeasible:>{col_w}d}"),
    ]
    for label, fn in rows:
        print(f"  {label:<28}" + "".join(fn(results[name]) for name in active))

    # Exhaustive is a lower bound for every heuristic
    if "exhaustive" in active:
        opt = results["exhaustive"].makespan
        for name in active:
            if name in TREE_STRATEGIES:
                continue
            worse = sum(1 for o, h in zip(opt, results[name].makespan) if h > o + 1e-9)
            print(f"\n  {name:<8} worse than optimum in {worse}/{len(opt)} scenarios", end="")
        print()


# ── CLI entry point ───────────────────────────────────────────────────────────

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Benchmark makespan scheduling strategies")
    parser.add_argument("--scenarios", type=int, default=20)
    parser.add_argument("--agents", type=int, default=3)
    parser.add_argument("--tasks", type=int, default=5)
    parser.add_argument("--grid", type=int, default=100)
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument(
        "--max-deadhead",
        type=float,
        default=None,
        help="Deadhead limit for the pruned search (default: 2.5 * grid / agents)",
    )
    parser.add_argument(
        "--strategies",
        nargs="+",
        choices=ALL_STRATEGIES,
        default=None,
        help="Subset of strategies to benchmark (default: all four)",
    )
    parser.add_argument("--log-level", type=str, default="WARNING")
    args = parser.parse_args()
    configure_logging(LoggingConfig(level=args.log_level))
    run_benchmark(
        args.scenarios,
        args.agents,
        args.tasks,
        args.grid,
        args.seed,
        args.max_deadhead,
        args.strategies,
    )
