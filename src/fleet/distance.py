"""
Distance capability and the state types shipped with the scheduler.

The schedulers never look inside a state: all they need is
``a.distance(b) -> float``. Anything satisfying the ``Distance`` protocol can
be used as an agent or task state, e.g. grid cells, plane points, or nodes
of a road network.

Provided states:
  GridCoord      integer grid cell, Manhattan distance
  Point          plane point, Euclidean distance
  GraphLocation  node of a RoadNetwork, shortest-path length
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from src.fleet.network import RoadNetwork


@runtime_checkable
class Distance(Protocol):
    """Any state with a pairwise cost to another state of the same type."""

    def distance(self, other) -> float:  # pragma: no cover - protocol
        ...


@dataclass(frozen=True)
class GridCoord:
    """Cell of an integer grid. Distance is Manhattan (taxicab)."""

    x: int
    y: int

    def distance(self, other: GridCoord) -> float:
        return float(abs(self.x - other.x) + abs(self.y - other.y))

    def __repr__(self) -> str:
        return f"({self.x}, {self.y})"


@dataclass(frozen=True)
class Point:
    """Point on the plane. Distance is Euclidean."""

    x: float
    y: float

    def distance(self, other: Point) -> float:
        return math.hypot(self.x - other.x, self.y - other.y)

    def __repr__(self) -> str:
        return f"Point({self.x:.2f}, {self.y:.2f})"


@dataclass(frozen=True)
class GraphLocation:
    """A node of a road network.

    Distance is the weighted shortest-path length between the two nodes.
    Unreachable pairs report ``inf``; the schedulers reject non-finite costs,
    so a disconnected instance fails loudly instead of producing a schedule.

    Attributes:
        node: Node ID in the network.
        network: The network both locations live on (excluded from equality).
    """

    node: str
    network: RoadNetwork = field(compare=False, repr=False)

    def distance(self, other: GraphLocation) -> float:
        if other.network is not self.network:
            raise ValueError(
                f"Locations {self.node!r} and {other.node!r} belong to different networks"
            )
        return self.network.shortest_path_distance(self.node, other.node)

    def __repr__(self) -> str:
        return f"GraphLocation({self.node!r})"
