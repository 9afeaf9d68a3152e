"""
Quick-run script for the makespan scheduler.

Generates one random grid instance, solves it exhaustively and with the
round-based heuristic, and prints the schedule and the search size.

Usage:
    python run_scheduler.py                                # defaults from config
    python run_scheduler.py --agents 3 --tasks 6 --grid 5
    python run_scheduler.py --max-deadhead 4 --diagnostics
    python run_scheduler.py --config config/default_scheduler.yaml --plot schedule.png
"""

import argparse
from dataclasses import replace
from pathlib import Path

from src.instances.generator import instance_from_config
from src.scheduling.bounds import approx_bound, bound, leaf_bound
from src.scheduling.config import SchedulerConfig, configure_logging, load_config
from src.scheduling.costs import replay_schedule
from src.scheduling.engine import ExhaustiveScheduler, SearchStatus
from src.scheduling.greedy import GreedyScheduler


def main():
    """Main"""

    parser = argparse.ArgumentParser(description="Schedule tasks onto agents (minimum makespan)")
    parser.add_argument(
        "--config",
        type=str,
        default="config/default_scheduler.yaml",
        help="Path to scheduler config YAML",
    )
    parser.add_argument("--agents", type=int, default=None, help="Number of agents (overrides config)")
    parser.add_argument("--tasks", type=int, default=None, help="Number of tasks (overrides config)")
    parser.add_argument("--grid", type=int, default=None, help="Grid size (overrides config)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed (overrides config)")
    parser.add_argument(
        "--max-deadhead",
        type=float,
        default=None,
        help="Prune branches whose deadhead exceeds this (overrides config)",
    )
    parser.add_argument(
        "--diagnostics", action="store_true", help="Print before-state and cost for every edge"
    )
    parser.add_argument(
        "--matching",
        type=str,
        default=None,
        choices=["greedy", "lap"],
        help="Round matching for the heuristic (overrides config)",
    )
    parser.add_argument("--plot", type=str, default=None, help="Save a schedule plot to this PNG")
    args = parser.parse_args()

    # Load config
    config_path = Path(args.config)
    if config_path.exists():
        config = load_config(config_path)
        print(f"Loaded config from {config_path}")
    else:
        print(f"Config {config_path} not found, using defaults")
        config = SchedulerConfig()

    # Apply CLI overrides
    instance_kwargs = {
        k: v
        for k, v in {
            "n_agents": args.agents,
            "n_tasks": args.tasks,
            "grid_size": args.grid,
            "random_seed": args.seed,
        }.items()
        if v is not None
    }
    search_kwargs = {}
    if args.max_deadhead is not None:
        search_kwargs["max_deadhead"] = args.max_deadhead
    if args.diagnostics:
        search_kwargs["diagnostics"] = True
    config = replace(
        config,
        instance=replace(config.instance, **instance_kwargs),
        search=replace(config.search, **search_kwargs),
        greedy=replace(config.greedy, matching=args.matching or config.greedy.matching),
    )
    configure_logging(config.logging)

    inst = instance_from_config(config.instance)
    m, n = inst.n_agents, inst.n_tasks

    print(f"\n{'=' * 60}")
    print(f"Instance: {m} agents, {n} tasks on a {inst.grid_size}x{inst.grid_size} grid")
    print(f"{'=' * 60}")
    for i, agent in enumerate(inst.agents):
        print(f"  agent {i}: {agent.state!r}")
    for task in inst.tasks_by_id.values():
        print(f"  {task!r}")

    # Exhaustive
    exhaustive = ExhaustiveScheduler(config.search)
    result = exhaustive.solve(inst.agents, inst.tasks_by_id)
    nodes = result.node_count()
    max_nodes = bound(m, n)

    print(f"\nExhaustive search ({result.status.name}):")
    print(f"  time:      {result.solve_time_ms:>15,.2f} ms")
    print(f"  nodes:     {nodes:>15,}")
    print(f"  bound:     {max_nodes:>15,}")
    if max_nodes:
        print(f"  explored:  {100 * nodes / max_nodes:>14.5f}%")
    print(f"  leaves:    {result.summary.leaf_count:>15,} of {leaf_bound(m, n):,}")
    print(f"  pruned:    {result.stats.branches_pruned:>15,}")
    if result.status == SearchStatus.INFEASIBLE:
        print("  no schedule survives the deadhead limit")
    else:
        print(f"  makespan:  {result.min_path_time:>15.2f}")
        print("  path:")
        for edge in result.path:
            trace = f"  {edge.trace!r}" if edge.trace is not None else ""
            print(f"    agent {edge.agent} <- task {edge.task}{trace}")

    # Greedy
    greedy = GreedyScheduler(config.greedy)
    approx = greedy.solve(inst.agents, inst.tasks_by_id)
    print(f"\nRound heuristic ({greedy.matching.value}):")
    print(f"  time:      {approx.solve_time_ms:>15,.2f} ms")
    print(f"  rounds:    {approx.rounds:>15,}")
    print(f"  work:      {approx_bound(m, n):>15,} comparisons (bound)")
    print(f"  makespan:  {approx.makespan:>15.2f}")
    print(f"  order:     {approx.assignments}")

    if args.plot:
        # pylint: disable=import-outside-toplevel
        import matplotlib

        matplotlib.use("Agg")
        from src.analysis.visualizations import plot_agent_loads, plot_schedule

        fig = plot_schedule(
            inst.agents,
            inst.tasks_by_id,
            result.assignments,
            title=f"Exhaustive schedule, makespan {result.min_path_time:.1f}",
        )
        fig.savefig(args.plot, dpi=150, bbox_inches="tight")
        loads_path = Path(args.plot).with_name(Path(args.plot).stem + "_loads.png")
        plot_agent_loads(
            {
                "exhaustive": replay_schedule(inst.agents, inst.tasks_by_id, result.assignments),
                greedy.matching.value: approx.agent_times,
            }
        ).savefig(loads_path, dpi=150, bbox_inches="tight")
        print(f"\nPlots saved to {args.plot} and {loads_path}")


if __name__ == "__main__":
    main()
