"""
Decision tree built by the exhaustive search, and best-path reconstruction.

Structure
─────────
  DecisionTree   forest of top-level Nodes (one per first assignment)
  Node           edge leading to it + owned children + folded best time
  Edge           (agent index, task id, optional EdgeTrace)

Each Node owns its children exclusively: no sharing, no back-references.
``min_path_time`` is the makespan for a complete leaf and the minimum over
children for an internal node. ``best_child`` is the index of the child that
supplied that minimum, recorded during the fold so reconstruction never has
to search by value.

A childless node whose path does not cover every task is a dead end: the
restriction vetoed every continuation. Its ``min_path_time`` stays ``inf``.
"""

from __future__ import annotations

import math
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from src.scheduling.errors import ReconstructionError


@dataclass(frozen=True)
class EdgeTrace:
    """Replay data for one assignment. Informational only."""

    agent_state: Any  # agent state before the assignment
    task_start: Any
    task_end: Any
    cost: float  # deadhead + task distance

    def __repr__(self) -> str:
        return (
            f"{self.agent_state!r} ~> {self.task_start!r} -> {self.task_end!r}"
            f" [{self.cost:.2f}]"
        )


@dataclass(frozen=True)
class Edge:
    """Assign task ``task`` (by id) to agent ``agent`` (by index)."""

    agent: int
    task: int
    trace: EdgeTrace | None = None


@dataclass
class Node:
    """A decision in the tree: the edge taken plus every continuation."""

    edge: Edge
    children: list[Node] = field(default_factory=list)
    min_path_time: float = math.inf
    best_child: int | None = None

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def node_count(self) -> int:
        """This node plus every descendant."""
        return 1 + sum(child.node_count() for child in self.children)


@dataclass(frozen=True)
class TreeSummary:
    """Size of an explored tree, kept even when the tree itself is dropped.

    Attributes:
        node_count: Every node (= every edge) in the forest.
        leaf_count: Complete schedules (childless nodes with a finite time).
        dead_end_count: Childless nodes cut short by the restriction.
        min_path_time: Best makespan found (inf if none).
    """

    node_count: int
    leaf_count: int
    dead_end_count: int
    min_path_time: float


@dataclass
class DecisionTree:
    """Forest of top-level decisions plus the global optimum."""

    children: list[Node] = field(default_factory=list)
    min_path_time: float = math.inf
    best_child: int | None = None

    def node_count(self) -> int:
        return sum(child.node_count() for child in self.children)

    def iter_nodes(self) -> Iterator[Node]:
        """Every node, depth-first, in generation order."""
        stack = list(reversed(self.children))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def leaf_count(self) -> int:
        return sum(1 for n in self.iter_nodes() if n.is_leaf and math.isfinite(n.min_path_time))

    def summarize(self) -> TreeSummary:
        leaves = dead_ends = nodes = 0
        for node in self.iter_nodes():
            nodes += 1
            if node.is_leaf:
                if math.isfinite(node.min_path_time):
                    leaves += 1
                else:
                    dead_ends += 1
        return TreeSummary(nodes, leaves, dead_ends, self.min_path_time)

    def iter_paths(self) -> Iterator[tuple[list[Edge], Node]]:
        """Yield ``(edges, leaf)`` for every complete root-to-leaf path."""
        stack: list[tuple[Node, list[Edge]]] = [
            (node, [node.edge]) for node in reversed(self.children)
        ]
        while stack:
            node, edges = stack.pop()
            if node.is_leaf:
                if math.isfinite(node.min_path_time):
                    yield edges, node
                continue
            for child in reversed(node.children):
                stack.append((child, edges + [child.edge]))


def best_path(tree: DecisionTree) -> list[Edge]:
    """Walk the recorded best children from the forest down to a leaf.

    At every level the chosen child's value must equal the value folded into
    its parent. Anything else means the fold and the recorded indices
    disagree.

    Raises:
        ReconstructionError: If a level has no recorded best child, or the
            recorded child does not carry the parent's folded value.
    """
    path: list[Edge] = []
    level, target, idx = tree.children, tree.min_path_time, tree.best_child
    depth = 0
    while level:
        if idx is None or not 0 <= idx < len(level):
            raise ReconstructionError(f"No best child recorded at depth {depth}")
        node = level[idx]
        if node.min_path_time != target:
            raise ReconstructionError(
                f"Best child at depth {depth} has time {node.min_path_time!r}, "
                f"parent folded {target!r}"
            )
        path.append(node.edge)
        level, target, idx = node.children, node.min_path_time, node.best_child
        depth += 1
    return path
