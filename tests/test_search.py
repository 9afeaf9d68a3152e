"""
Tests for the exhaustive decision-tree search.

Tests cover:
1. Hand-checked single-agent instance (optimum and edge order)
2. Tree size against the closed-form bounds
3. Leaf values recomputed from their edge sequences
4. Completeness and determinism of the reconstructed path
5. Restriction pruning: monotonicity, infeasibility
6. Input validation and cost validation
7. Reconstruction consistency checks
8. ExhaustiveScheduler configuration and totals

Run with: pytest tests/test_search.py -v
"""

import math
from dataclasses import dataclass

import numpy as np
import pytest

from src.fleet.distance import GridCoord
from src.fleet.models import Agent, Task
from src.fleet.network import RoadNetwork
from src.instances.generator import generate_instance
from src.scheduling.bounds import bound, leaf_bound
from src.scheduling.config import SearchConfig
from src.scheduling.costs import index_tasks, replay_schedule
from src.scheduling.engine import (
    ExhaustiveScheduler,
    SearchStatus,
    construct,
    deadhead_limit,
)
from src.scheduling.errors import (
    InvalidConfigurationError,
    InvalidCostError,
    ReconstructionError,
)
from src.scheduling.tree import best_path


# ── Helpers ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class Scalar:
    """1-D state whose distance can be made invalid on purpose."""

    v: float
    broken: float | None = None

    def distance(self, other: "Scalar") -> float:
        if self.broken is not None:
            return self.broken
        return abs(self.v - other.v)


def _leaf_value(agents, tasks_by_id, edges) -> float:
    pairs = [(e.agent, e.task) for e in edges]
    return max(replay_schedule(agents, tasks_by_id, pairs))


# ── Fixtures ──────────────────────────────────────────────────────


@pytest.fixture
def single_agent():
    """1 agent at (0,0); task 0 (0,0)->(1,0), task 1 (2,0)->(2,1)."""
    agents = [Agent(GridCoord(0, 0))]
    tasks = index_tasks(
        [
            Task(0, GridCoord(0, 0), GridCoord(1, 0)),
            Task(1, GridCoord(2, 0), GridCoord(2, 1)),
        ]
    )
    return agents, tasks


@pytest.fixture
def two_by_two():
    agents = [Agent(GridCoord(0, 0)), Agent(GridCoord(4, 4))]
    tasks = index_tasks(
        [
            Task(0, GridCoord(1, 0), GridCoord(2, 0)),
            Task(1, GridCoord(4, 3), GridCoord(3, 3)),
        ]
    )
    return agents, tasks


@pytest.fixture
def random_instances():
    rng = np.random.default_rng(7)
    return [generate_instance(m, n, 10, rng) for m, n in [(1, 3), (2, 3), (3, 2), (2, 4)]]


# ── Known optimum ─────────────────────────────────────────────────


class TestKnownOptimum:
    """Hand-computed instance: order 0→1 costs 3, order 1→0 costs 7."""

    def test_optimum_is_three(self, single_agent):
        agents, tasks = single_agent
        result = construct(agents, tasks)
        assert result.status == SearchStatus.OPTIMAL
        assert result.min_path_time == pytest.approx(3.0)

    def test_edge_order(self, single_agent):
        agents, tasks = single_agent
        result = construct(agents, tasks)
        assert [e.task for e in result.path] == [0, 1]
        assert result.assignments == [(0, 0), (0, 1)]

    def test_both_orders_present_as_leaves(self, single_agent):
        agents, tasks = single_agent
        result = construct(agents, tasks)
        values = sorted(leaf.min_path_time for _, leaf in result.tree.iter_paths())
        assert values == pytest.approx([3.0, 7.0])

    def test_two_agents_split_work(self, two_by_two):
        """Each agent takes the task next to it: 1+1 and 1+1."""
        agents, tasks = two_by_two
        result = construct(agents, tasks)
        assert result.min_path_time == pytest.approx(2.0)
        assert sorted(result.assignments) == [(0, 0), (1, 1)]


# ── Tree size ─────────────────────────────────────────────────────


class TestTreeSize:
    """Unrestricted trees match bound() and leaf_bound() exactly."""

    def test_two_by_two_counts(self, two_by_two):
        agents, tasks = two_by_two
        result = construct(agents, tasks)
        assert result.node_count() == bound(2, 2) == 12
        assert result.summary.leaf_count == leaf_bound(2, 2) == 8
        assert result.summary.dead_end_count == 0

    def test_random_sizes(self, random_instances):
        for inst in random_instances:
            m, n = inst.n_agents, inst.n_tasks
            result = construct(inst.agents, inst.tasks_by_id)
            assert result.node_count() == bound(m, n)
            assert result.tree.node_count() == bound(m, n)
            assert result.tree.leaf_count() == leaf_bound(m, n)

    def test_edges_explored_counts_every_node(self, random_instances):
        inst = random_instances[1]
        result = construct(inst.agents, inst.tasks_by_id)
        assert result.stats.edges_explored == result.node_count()
        assert result.stats.branches_pruned == 0

    def test_summary_kept_without_tree(self, random_instances):
        inst = random_instances[3]
        full = construct(inst.agents, inst.tasks_by_id)
        slim = construct(inst.agents, inst.tasks_by_id, keep_tree=False)
        assert slim.tree is None
        assert slim.summary == full.summary
        assert slim.path == full.path


# ── Leaf values and paths ─────────────────────────────────────────


class TestPaths:
    def test_leaf_values_match_replay(self, random_instances):
        for inst in random_instances:
            result = construct(inst.agents, inst.tasks_by_id)
            for edges, leaf in result.tree.iter_paths():
                expected = _leaf_value(inst.agents, inst.tasks_by_id, edges)
                assert leaf.min_path_time == pytest.approx(expected)

    def test_every_path_complete(self, random_instances):
        for inst in random_instances:
            result = construct(inst.agents, inst.tasks_by_id)
            ids = sorted(inst.tasks_by_id)
            for edges, _ in result.tree.iter_paths():
                assert sorted(e.task for e in edges) == ids

    def test_optimum_is_minimum_leaf(self, random_instances):
        for inst in random_instances:
            result = construct(inst.agents, inst.tasks_by_id)
            leaves = [leaf.min_path_time for _, leaf in result.tree.iter_paths()]
            assert result.min_path_time == min(leaves)

    def test_best_path_replays_to_optimum(self, random_instances):
        for inst in random_instances:
            result = construct(inst.agents, inst.tasks_by_id)
            replayed = max(replay_schedule(inst.agents, inst.tasks_by_id, result.assignments))
            assert replayed == pytest.approx(result.min_path_time)

    def test_deterministic(self, random_instances):
        inst = random_instances[3]
        a = construct(inst.agents, inst.tasks_by_id)
        b = construct(inst.agents, inst.tasks_by_id)
        assert a.min_path_time == b.min_path_time
        assert a.path == b.path

    def test_diagnostics_do_not_change_result(self, random_instances):
        inst = random_instances[3]
        plain = construct(inst.agents, inst.tasks_by_id)
        traced = construct(inst.agents, inst.tasks_by_id, diagnostics=True)
        assert traced.assignments == plain.assignments
        assert traced.min_path_time == plain.min_path_time
        assert all(e.trace is not None for e in traced.path)
        assert all(e.trace is None for e in plain.path)

    def test_trace_contents(self, single_agent):
        agents, tasks = single_agent
        result = construct(agents, tasks, diagnostics=True)
        first, second = result.path
        assert first.trace.agent_state == GridCoord(0, 0)
        assert first.trace.cost == pytest.approx(1.0)
        assert second.trace.agent_state == GridCoord(1, 0)
        assert second.trace.task_start == GridCoord(2, 0)
        assert second.trace.task_end == GridCoord(2, 1)
        assert second.trace.cost == pytest.approx(2.0)

    def test_first_minimum_wins_ties(self):
        """Two identical agents: the first generated child is kept."""
        agents = [Agent(GridCoord(0, 0)), Agent(GridCoord(0, 0))]
        tasks = index_tasks([Task(0, GridCoord(0, 0), GridCoord(1, 0))])
        result = construct(agents, tasks)
        assert result.assignments == [(0, 0)]

    def test_input_not_mutated(self, two_by_two):
        agents, tasks = two_by_two
        before = (list(agents), dict(tasks))
        construct(agents, tasks)
        assert (agents, tasks) == before


# ── Restrictions ──────────────────────────────────────────────────


class TestRestriction:
    def test_monotonicity(self, random_instances):
        for inst in random_instances:
            free = construct(inst.agents, inst.tasks_by_id)
            for limit in (12.0, 8.0, 4.0):
                cut = construct(inst.agents, inst.tasks_by_id, restriction=deadhead_limit(limit))
                assert cut.node_count() <= free.node_count()
                assert cut.min_path_time >= free.min_path_time

    def test_permissive_restriction_is_exact(self, random_instances):
        inst = random_instances[2]
        free = construct(inst.agents, inst.tasks_by_id)
        cut = construct(inst.agents, inst.tasks_by_id, restriction=lambda d: False)
        assert cut.summary == free.summary
        assert cut.path == free.path

    def test_veto_all_is_infeasible(self, two_by_two):
        agents, tasks = two_by_two
        result = construct(agents, tasks, restriction=lambda d: True)
        assert result.status == SearchStatus.INFEASIBLE
        assert math.isinf(result.min_path_time)
        assert result.path == []
        assert result.node_count() == 0
        assert result.stats.branches_pruned == 4

    def test_dead_ends_counted(self, single_agent):
        """Limit 2 allows both first moves but not the 3-unit return trip."""
        agents, tasks = single_agent
        result = construct(agents, tasks, restriction=deadhead_limit(2.0))
        assert result.status == SearchStatus.OPTIMAL
        assert result.min_path_time == pytest.approx(3.0)
        assert result.summary.leaf_count == 1
        assert result.summary.dead_end_count == 1
        assert result.stats.branches_pruned == 1

    def test_restriction_sees_deadhead(self, single_agent):
        agents, tasks = single_agent
        seen = []
        construct(agents, tasks, restriction=lambda d: seen.append(d) or False)
        assert sorted(seen) == pytest.approx([0.0, 1.0, 2.0, 3.0])

    def test_no_tasks_is_not_infeasible(self):
        result = construct([Agent(GridCoord(0, 0))], {}, restriction=lambda d: True)
        assert result.status == SearchStatus.NO_TASKS
        assert result.min_path_time == 0.0
        assert result.path == []
        assert result.node_count() == 0


# ── Validation ────────────────────────────────────────────────────


class TestValidation:
    def test_no_agents(self, single_agent):
        _, tasks = single_agent
        with pytest.raises(InvalidConfigurationError):
            construct([], tasks)

    def test_mismatched_key(self):
        tasks = {5: Task(0, GridCoord(0, 0), GridCoord(1, 0))}
        with pytest.raises(InvalidConfigurationError):
            construct([Agent(GridCoord(0, 0))], tasks)

    def test_duplicate_ids(self):
        with pytest.raises(InvalidConfigurationError):
            index_tasks(
                [
                    Task(0, GridCoord(0, 0), GridCoord(1, 0)),
                    Task(0, GridCoord(1, 0), GridCoord(2, 0)),
                ]
            )

    @pytest.mark.parametrize("bad", [float("nan"), float("inf"), -1.0])
    def test_invalid_distance(self, bad):
        agents = [Agent(Scalar(0.0, broken=bad))]
        tasks = index_tasks([Task(0, Scalar(1.0), Scalar(2.0))])
        with pytest.raises(InvalidCostError):
            construct(agents, tasks)

    def test_unreachable_graph_location(self):
        net = RoadNetwork()
        net.add_road("a", "b", 1.0)
        net.add_location("island")
        agents = [Agent(net.location("a"))]
        tasks = index_tasks([Task(0, net.location("island"), net.location("b"))])
        with pytest.raises(InvalidCostError):
            construct(agents, tasks)


# ── Reconstruction ────────────────────────────────────────────────


class TestReconstruction:
    def test_tampered_value_detected(self, two_by_two):
        agents, tasks = two_by_two
        tree = construct(agents, tasks).tree
        tree.children[tree.best_child].min_path_time += 1.0
        with pytest.raises(ReconstructionError):
            best_path(tree)

    def test_missing_index_detected(self, two_by_two):
        agents, tasks = two_by_two
        tree = construct(agents, tasks).tree
        tree.children[tree.best_child].best_child = None
        with pytest.raises(ReconstructionError):
            best_path(tree)

    def test_out_of_range_index_detected(self, two_by_two):
        agents, tasks = two_by_two
        tree = construct(agents, tasks).tree
        tree.best_child = len(tree.children)
        with pytest.raises(ReconstructionError):
            best_path(tree)

    def test_rebuild_matches_result(self, random_instances):
        inst = random_instances[0]
        result = construct(inst.agents, inst.tasks_by_id)
        assert best_path(result.tree) == result.path


# ── Graph states ──────────────────────────────────────────────────


class TestGraphStates:
    @pytest.fixture
    def line_network(self) -> RoadNetwork:
        """a --1-- b --1-- c --1-- d"""
        net = RoadNetwork()
        for i, node in enumerate("abcd"):
            net.add_location(node, x=float(i))
        for u, v in ["ab", "bc", "cd"]:
            net.add_road(u, v, 1.0)
        return net

    def test_graph_optimum(self, line_network):
        loc = line_network.location
        agents = [Agent(loc("a")), Agent(loc("d"))]
        tasks = index_tasks([Task(0, loc("a"), loc("b")), Task(1, loc("d"), loc("c"))])
        result = construct(agents, tasks)
        assert result.min_path_time == pytest.approx(1.0)
        assert sorted(result.assignments) == [(0, 0), (1, 1)]

    def test_precomputed_matches_on_the_fly(self, line_network):
        loc = line_network.location
        agents = [Agent(loc("b"))]
        tasks = index_tasks([Task(0, loc("a"), loc("d")), Task(1, loc("c"), loc("a"))])
        lazy = construct(agents, tasks)
        line_network.precompute_distances()
        cached = construct(agents, tasks)
        assert cached.min_path_time == lazy.min_path_time
        assert cached.path == lazy.path


# ── Scheduler front end ───────────────────────────────────────────


class TestExhaustiveScheduler:
    def test_default_is_unrestricted(self, two_by_two):
        agents, tasks = two_by_two
        scheduler = ExhaustiveScheduler()
        assert scheduler.restriction is None
        assert scheduler.solve(agents, tasks).node_count() == bound(2, 2)

    def test_config_options_applied(self, single_agent):
        agents, tasks = single_agent
        config = SearchConfig(diagnostics=True, keep_tree=False, max_deadhead=2.0)
        result = ExhaustiveScheduler(config).solve(agents, tasks)
        assert result.tree is None
        assert result.path[0].trace is not None
        assert result.stats.branches_pruned == 1

    def test_totals(self, two_by_two):
        agents, tasks = two_by_two
        scheduler = ExhaustiveScheduler(SearchConfig(max_deadhead=0.5))
        scheduler.solve(agents, tasks)
        scheduler.solve(agents, {})
        assert scheduler.total_solves == 2
        assert scheduler.total_infeasible == 1
        assert scheduler.total_solve_time_ms >= 0.0

    def test_moved_agent_leaves_original(self, single_agent):
        agents, tasks = single_agent
        moved = [agents[0].moved_to(GridCoord(2, 0))]
        result = ExhaustiveScheduler().solve(moved, tasks)
        assert agents[0].state == GridCoord(0, 0)
        assert result.min_path_time == pytest.approx(5.0)
