"""
Closed-form size of the search spaces, for judging pruning and heuristics.

Exhaustive tree (m agents, n tasks)
───────────────────────────────────
Level i (0-based) holds one node per assignment sequence of length i+1, and
each step picks one of m agents and one of the (n−j) tasks still pending:

    nodes(i)  = Π_{j=0..i} m·(n−j)
    bound     = Σ_{i=0..n−1} nodes(i)          every node (= every edge)
    leaf_bound = nodes(n−1) = mⁿ·n!            every complete schedule

Greedy rounds (m agents, n tasks)
─────────────────────────────────
A round with k tasks left evaluates N = m·k pairs, sorts them with at most
N·⌈log₂ N⌉ comparisons, and assigns min(m, k) tasks.

    approx_bound = Σ_rounds (N + N·⌈log₂ N⌉)

All values are exact Python integers.
"""

from __future__ import annotations

from src.scheduling.errors import InvalidConfigurationError


def _check_sizes(m: int, n: int) -> None:
    if m < 0 or n < 0:
        raise InvalidConfigurationError(f"Sizes must be non-negative, got m={m}, n={n}")


def bound(m: int, n: int) -> int:
    """Exact node count of the unpruned tree for m agents and n tasks.

    >>> bound(2, 2)
    12
    """
    _check_sizes(m, n)
    total = 0
    level = 1
    for j in range(n):
        level *= m * (n - j)
        total += level
    return total


def leaf_bound(m: int, n: int) -> int:
    """Exact leaf count (complete schedules) of the unpruned tree.

    >>> leaf_bound(2, 2)
    8
    """
    _check_sizes(m, n)
    if n == 0:
        return 0
    leaves = 1
    for j in range(n):
        leaves *= m * (n - j)
    return leaves


def approx_bound(m: int, n: int) -> int:
    """Comparison work of the round-based greedy heuristic.

    >>> approx_bound(1, 2)
    5
    """
    _check_sizes(m, n)
    if m == 0 and n > 0:
        raise InvalidConfigurationError("Greedy rounds need at least one agent")
    total = 0
    k = n
    while k > 0:
        pairs = m * k
        total += pairs + pairs * (pairs - 1).bit_length()
        k -= min(m, k)
    return total
