"""
Tests for random instance generation and the schedule plots.

Run with: pytest tests/test_instances.py -v
"""

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402
import pytest  # noqa: E402

from src.analysis.visualizations import plot_agent_loads, plot_schedule  # noqa: E402
from src.fleet.distance import GridCoord  # noqa: E402
from src.instances.generator import generate_instance, instance_from_config  # noqa: E402
from src.scheduling.config import InstanceConfig  # noqa: E402
from src.scheduling.engine import construct  # noqa: E402
from src.scheduling.errors import InvalidConfigurationError  # noqa: E402
from src.scheduling.greedy import approximate_construct  # noqa: E402


@pytest.fixture(autouse=True)
def _close_figures():
    yield
    plt.close("all")


class TestGenerator:
    def test_sizes_and_ids(self):
        inst = generate_instance(3, 5, 10, np.random.default_rng(0))
        assert inst.n_agents == 3
        assert inst.n_tasks == 5
        assert list(inst.tasks_by_id) == [0, 1, 2, 3, 4]
        assert all(task.id == key for key, task in inst.tasks_by_id.items())

    def test_coordinates_in_grid(self):
        inst = generate_instance(4, 8, 6, np.random.default_rng(1))
        states = [a.state for a in inst.agents]
        states += [s for t in inst.tasks_by_id.values() for s in (t.start, t.end)]
        assert all(isinstance(s, GridCoord) for s in states)
        assert all(0 <= s.x < 6 and 0 <= s.y < 6 for s in states)

    def test_seed_reproducible(self):
        config = InstanceConfig(grid_size=50, n_agents=2, n_tasks=4, random_seed=9)
        a, b = instance_from_config(config), instance_from_config(config)
        assert a.agents == b.agents
        assert a.tasks_by_id == b.tasks_by_id

    def test_different_seeds_differ(self):
        a = instance_from_config(InstanceConfig(grid_size=1000, random_seed=1))
        b = instance_from_config(InstanceConfig(grid_size=1000, random_seed=2))
        assert a.tasks_by_id != b.tasks_by_id

    def test_zero_tasks(self):
        inst = generate_instance(2, 0, 5, np.random.default_rng(0))
        assert inst.tasks_by_id == {}

    @pytest.mark.parametrize("m, n, grid", [(0, 3, 5), (2, -1, 5), (2, 3, 0)])
    def test_bad_sizes(self, m, n, grid):
        with pytest.raises(InvalidConfigurationError):
            generate_instance(m, n, grid, np.random.default_rng(0))


class TestPlots:
    @pytest.fixture
    def solved(self):
        inst = generate_instance(2, 3, 8, np.random.default_rng(3))
        return inst, construct(inst.agents, inst.tasks_by_id)

    def test_plot_schedule(self, solved):
        inst, result = solved
        fig = plot_schedule(inst.agents, inst.tasks_by_id, result.assignments, title="t")
        ax = fig.axes[0]
        assert ax.get_title() == "t"
        labels = [text.get_text() for text in ax.texts]
        assert {"1", "2", "3"} <= set(labels)

    def test_plot_into_existing_axes(self, solved):
        inst, result = solved
        fig, ax = plt.subplots()
        assert plot_schedule(inst.agents, inst.tasks_by_id, result.assignments, ax=ax) is fig

    def test_plot_unserved_tasks(self, solved):
        inst, _ = solved
        fig = plot_schedule(inst.agents, inst.tasks_by_id, [])
        assert fig.axes

    def test_plot_agent_loads(self, solved):
        inst, result = solved
        approx = approximate_construct(inst.agents, inst.tasks_by_id)
        fig = plot_agent_loads({"exhaustive": [1.0, 2.0], "greedy": approx.agent_times})
        ax = fig.axes[0]
        assert len(ax.patches) == 4
        assert [t.get_text() for t in ax.get_xticklabels()] == ["Agent 0", "Agent 1"]
