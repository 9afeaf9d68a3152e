"""Road network used by ``GraphLocation`` states.

The network is an undirected weighted graph where:
- Nodes are places an agent can stand (depots, pickup points, drop-offs)
- Edges are roads with a non-negative length

Shortest-path lengths are the travel cost between two locations. For repeated
searches over the same network call ``precompute_distances`` once; the
exhaustive scheduler evaluates the same pairs many times.
"""

from __future__ import annotations

import math

import networkx as nx

from src.fleet.distance import GraphLocation


class RoadNetwork:
    """Undirected road graph with a shortest-path distance oracle.

    Wraps a NetworkX Graph, keeping the raw graph accessible for callers
    that want to run their own analysis on it.

    Attributes:
        graph: The underlying NetworkX Graph.
    """

    def __init__(self) -> None:
        self.graph = nx.Graph()
        self._distance_cache: dict[tuple[str, str], float] | None = None

    # ── Construction ─────────────────────────────────────────────────

    def add_location(self, node_id: str, x: float = 0.0, y: float = 0.0) -> None:
        """Add a location. Coordinates are only used for plotting."""
        self.graph.add_node(node_id, x=x, y=y)
        self._distance_cache = None  # invalidate cache

    def add_road(self, a: str, b: str, length: float) -> None:
        """Add a two-way road of the given length between two locations.

        Raises:
            ValueError: If the length is negative or not finite.
        """
        if not math.isfinite(length) or length < 0:
            raise ValueError(f"Road {a!r}-{b!r} has invalid length {length!r}")
        for node in (a, b):
            if node not in self.graph:
                self.graph.add_node(node, x=0.0, y=0.0)
        self.graph.add_edge(a, b, distance=float(length))
        self._distance_cache = None

    def location(self, node_id: str) -> GraphLocation:
        """Return the state object for a node of this network."""
        if node_id not in self.graph:
            raise KeyError(f"Unknown location {node_id!r}")
        return GraphLocation(node_id, self)

    # ── Queries ──────────────────────────────────────────────────────

    @property
    def n_locations(self) -> int:
        return self.graph.number_of_nodes()

    @property
    def n_roads(self) -> int:
        return self.graph.number_of_edges()

    def shortest_path_distance(self, source: str, target: str) -> float:
        """Length of the shortest path between two locations.

        Uses the cached all-pairs distances if available, otherwise runs
        Dijkstra on the fly.

        Returns:
            Path length, or ``inf`` when the target is unreachable.
        """
        if source == target:
            return 0.0
        if self._distance_cache is not None:
            return self._distance_cache.get((source, target), math.inf)
        try:
            return float(nx.shortest_path_length(self.graph, source, target, weight="distance"))
        except nx.NetworkXNoPath:
            return math.inf

    def precompute_distances(self) -> None:
        """Cache all-pairs shortest path lengths."""
        self._distance_cache = {}
        lengths = dict(nx.all_pairs_dijkstra_path_length(self.graph, weight="distance"))
        for src, targets in lengths.items():
            for tgt, dist in targets.items():
                self._distance_cache[(src, tgt)] = float(dist)

    def is_connected(self) -> bool:
        return self.n_locations > 0 and nx.is_connected(self.graph)
