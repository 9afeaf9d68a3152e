"""
Agent and Task models.

Design decisions:
- Both are frozen. A branch of the search that assigns a task to an agent
  works on ``agent.moved_to(task.end)``, a new value, so sibling branches
  never observe each other's moves.
- Task ids are stable identifiers, not positions. Tasks leave the pool as
  the search descends, so positional indices would not survive.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Generic, TypeVar

S = TypeVar("S")


@dataclass(frozen=True)
class Agent(Generic[S]):
    """A mobile agent (taxi, drone, AGV) identified by its position in the fleet.

    Attributes:
        state: Current state, e.g. a GridCoord.
    """

    state: S

    def moved_to(self, state: S) -> Agent[S]:
        """Copy of this agent standing at ``state``."""
        return replace(self, state=state)


@dataclass(frozen=True)
class Task(Generic[S]):
    """Move something from ``start`` to ``end``.

    Attributes:
        id: Stable task identifier.
        start: State the agent must reach before the task begins.
        end: State the agent is left in once the task is done.
    """

    id: int
    start: S
    end: S

    def __repr__(self) -> str:
        return f"Task(id={self.id}, {self.start!r} -> {self.end!r})"
