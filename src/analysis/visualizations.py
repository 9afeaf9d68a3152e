"""
Schedule visualization.

Renders a schedule on the plane with:
- Agents' initial states as triangles, one color per agent
- Deadhead legs (agent → task start) as dashed lines in the agent's color
- Task legs (start → end) as solid arrows in the agent's color
- Service order numbers at every task start

Works for any state with ``x`` and ``y`` attributes (GridCoord, Point).

Usage:
    from src.analysis.visualizations import plot_schedule

    result = construct(agents, tasks_by_id)
    fig = plot_schedule(agents, tasks_by_id, result.assignments)
    fig.savefig("schedule.png", dpi=150, bbox_inches="tight")
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING

import matplotlib.pyplot as plt
import numpy as np

from src.fleet.models import Agent, Task

if TYPE_CHECKING:
    from matplotlib.axes import Axes
    from matplotlib.figure import Figure


# ── Styling constants ────────────────────────────────────────────

AGENT_MARKER_SIZE = 140
TASK_START_SIZE = 40
UNASSIGNED_COLOR = "#969696"
CMAP_NAME = "tab10"


def _agent_colors(n_agents: int) -> list:
    cmap = plt.get_cmap(CMAP_NAME)
    return [cmap(i % cmap.N) for i in range(n_agents)]


def plot_schedule(
    agents: Sequence[Agent],
    tasks_by_id: Mapping[int, Task],
    assignments: Sequence[tuple[int, int]],
    title: str = "Schedule",
    figsize: tuple[float, float] = (8.0, 8.0),
    ax: Axes | None = None,
) -> Figure:
    """Draw every agent's route through its assigned tasks.

    Args:
        agents: The fleet, by index.
        tasks_by_id: Tasks keyed by id.
        assignments: ``(agent index, task id)`` pairs in service order.
        title: Plot title.
        figsize: Figure size when a new figure is created.
        ax: Draw into this Axes instead of a new figure.

    Returns:
        matplotlib Figure object.
    """
    if ax is None:
        fig, ax = plt.subplots(1, 1, figsize=figsize)
    else:
        fig = ax.figure
    colors = _agent_colors(len(agents))

    # ── Tasks nobody serves (e.g. an infeasible search) ──────────
    served = {t for _, t in assignments}
    for task_id, task in tasks_by_id.items():
        if task_id not in served:
            _draw_task(ax, task, UNASSIGNED_COLOR, label=None)

    # ── Routes ───────────────────────────────────────────────────
    positions = [a.state for a in agents]
    for order, (a_idx, task_id) in enumerate(assignments, start=1):
        task = tasks_by_id[task_id]
        color = colors[a_idx]
        here = positions[a_idx]
        ax.plot(
            [here.x, task.start.x],
            [here.y, task.start.y],
            linestyle="--",
            color=color,
            alpha=0.6,
            linewidth=1.0,
            zorder=2,
        )
        _draw_task(ax, task, color, label=str(order))
        positions[a_idx] = task.end

    # ── Agents on top ────────────────────────────────────────────
    for a_idx, agent in enumerate(agents):
        ax.scatter(
            [agent.state.x],
            [agent.state.y],
            s=AGENT_MARKER_SIZE,
            marker="^",
            color=colors[a_idx],
            edgecolors="black",
            linewidths=0.8,
            zorder=5,
            label=f"Agent {a_idx}",
        )

    ax.set_title(title, fontsize=13, fontweight="bold", pad=10)
    ax.set_xlabel("x")
    ax.set_ylabel("y")
    ax.set_aspect("equal")
    ax.grid(True, alpha=0.15, linestyle="--")
    ax.legend(fontsize=8, loc="best")
    fig.tight_layout()
    return fig


def _draw_task(ax: Axes, task: Task, color, label: str | None) -> None:
    """Solid arrow from start to end, plus an optional order label."""
    ax.annotate(
        "",
        xy=(task.end.x, task.end.y),
        xytext=(task.start.x, task.start.y),
        arrowprops={"arrowstyle": "->", "color": color, "linewidth": 1.6},
        zorder=3,
    )
    ax.scatter([task.start.x], [task.start.y], s=TASK_START_SIZE, color=color, zorder=4)
    if label is not None:
        ax.annotate(
            label,
            (task.start.x, task.start.y),
            textcoords="offset points",
            xytext=(4, 4),
            fontsize=8,
            fontweight="bold",
            zorder=6,
        )


def plot_agent_loads(loads: Mapping[str, Sequence[float]], title: str = "Per-agent cost") -> Figure:
    """Grouped bars of per-agent totals, one group per strategy.

    The tallest bar of each strategy is its makespan.

    Args:
        loads: strategy name → total cost per agent (same length for all).
    """
    names = list(loads)
    n_agents = max((len(v) for v in loads.values()), default=0)
    fig, ax = plt.subplots(1, 1, figsize=(max(6.0, 1.2 * n_agents * len(names)), 4.5))
    width = 0.8 / max(len(names), 1)
    x = np.arange(n_agents)
    for k, name in enumerate(names):
        values = list(loads[name])
        bars = ax.bar(x + k * width, values, width, label=f"{name} (max {max(values, default=0):.1f})")
        for bar, v in zip(bars, values):
            ax.text(
                bar.get_x() + bar.get_width() / 2,
                bar.get_height(),
                f"{v:.1f}",
                ha="center",
                va="bottom",
                fontsize=7,
            )
    ax.set_xticks(x + width * (len(names) - 1) / 2)
    ax.set_xticklabels([f"Agent {i}" for i in range(n_agents)])
    ax.set_ylabel("Accumulated cost")
    ax.set_title(title, fontsize=12, fontweight="bold")
    ax.legend(fontsize=8)
    fig.tight_layout()
    return fig
