"""
Unit tests for ant colony routing.
"""

from unittest.mock import patch

import numpy as np
import pytest

from crisisnet.errors import ConfigurationError, ValidationError
from crisisnet.mesh import MeshConfig, MeshNetwork, NodeStatus
from crisisnet.routing import (
    AntColonyRouter,
    DijkstraRouter,
    PheromoneMap,
    Priority,
    RoutingConfig,
    RoutingStrategy,
)


def build_network(positions, max_range=150.0):
    """Create nodes in the given order; ids are the dictionary keys."""
    network = MeshNetwork(MeshConfig(max_range=max_range))
    for node_id, (x, y) in positions.items():
        network.create_node(node_id.upper(), x, y, node_id=node_id)
    return network


@pytest.fixture
def line_network():
    """n0 - n1 - n2, 100 apart."""
    return build_network({f"n{i}": (i * 100.0, 0.0) for i in range(3)})


@pytest.fixture
def diamond_network():
    """s connects to u and l, both of which connect to t."""
    return build_network(
        {"s": (0.0, 0.0), "u": (100.0, 100.0), "l": (100.0, -100.0), "t": (200.0, 0.0)}
    )


@pytest.fixture
def braided_network():
    """A direct corridor s - m - t plus longer detours through u1..u4."""
    return build_network(
        {
            "s": (0.0, 0.0),
            "t": (400.0, 0.0),
            "m": (200.0, 0.0),
            "u1": (200.0, 150.0),
            "u2": (200.0, -150.0),
            "u3": (100.0, 200.0),
            "u4": (300.0, 200.0),
        },
        max_range=260.0,
    )


class TestRoutingConfig:
    """Test the RoutingConfig class."""

    def test_defaults(self):
        """Test default configuration values."""
        config = RoutingConfig()

        assert config.aco_iterations == 100
        assert config.ant_count == 10
        assert config.pheromone_initial == 1.0
        assert config.pheromone_evaporation == 0.5
        assert config.alpha == 1.0
        assert config.beta == 2.0
        assert config.q == 100.0
        assert config.stochastic_reliability == 0.9
        assert config.stochastic_latency_per_node == 15.0
        assert config.deterministic_candidate_reliability == 0.95
        assert config.deadline is None

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"aco_iterations": 0},
            {"ant_count": 0},
            {"pheromone_initial": -1.0},
            {"pheromone_evaporation": 1.5},
            {"q": 0.0},
            {"stochastic_reliability": 2.0},
            {"stochastic_latency_per_node": -1.0},
            {"deterministic_candidate_reliability": 1.5},
            {"deadline": 0.0},
        ],
    )
    def test_invalid_values(self, kwargs):
        """Test configuration validation."""
        with pytest.raises(ConfigurationError):
            RoutingConfig(**kwargs)

    def test_from_dict(self):
        """Test building a config from a dictionary."""
        config = RoutingConfig.from_dict({"ant_count": 4, "unused": True})

        assert config.ant_count == 4
        assert config.aco_iterations == 100


class TestPheromoneMap:
    """Test the PheromoneMap class."""

    def test_initial_levels(self, line_network):
        """Test that every snapshot edge starts at the initial level."""
        pheromones = PheromoneMap(line_network.snapshot(), 1.0)

        assert len(pheromones) == 2
        assert (0, 1) in pheromones
        assert pheromones.levels() == {(0, 1): 1.0, (1, 2): 1.0}

    def test_get_is_unordered(self, line_network):
        """Test lookup in either direction and for unknown edges."""
        pheromones = PheromoneMap(line_network.snapshot(), 2.0)

        assert pheromones.get(1, 0) == 2.0
        assert pheromones.get(0, 2) == 2.0

    def test_evaporate_and_deposit(self, line_network):
        """Test evaporation followed by deposit."""
        pheromones = PheromoneMap(line_network.snapshot(), 1.0)

        pheromones.evaporate(0.25)
        pheromones.deposit([2, 1], 0.5)

        assert pheromones.get(0, 1) == pytest.approx(0.75)
        assert pheromones.get(1, 2) == pytest.approx(1.25)


class TestAntColonyRouter:
    """Test the AntColonyRouter class."""

    def test_line_route(self, line_network):
        """Test the only path along a line."""
        router = AntColonyRouter(RoutingConfig(aco_iterations=5, ant_count=3), rng=0)

        route = router.find_optimal_path(line_network.snapshot(), "n0", "n2")

        assert route.path == ["n0", "n1", "n2"]
        assert route.cost == pytest.approx(200.0)
        assert route.latency == pytest.approx(45.0)
        assert route.reliability == pytest.approx(0.9)
        assert route.strategy == RoutingStrategy.ANT_COLONY

    def test_latency_counts_path_nodes(self, braided_network):
        """Test that latency is the per-node figure times the path length."""
        config = RoutingConfig(
            aco_iterations=5, ant_count=3, stochastic_latency_per_node=20.0
        )
        router = AntColonyRouter(config, rng=5)

        route = router.find_optimal_path(braided_network.snapshot(), "s", "t")

        assert route.latency == pytest.approx(len(route.path) * 20.0)

    @pytest.mark.parametrize(
        "priority,expected_cost",
        [
            (Priority.CRITICAL, 100.0),
            (Priority.HIGH, 150.0),
            (Priority.NORMAL, 200.0),
            (Priority.LOW, 200.0),
        ],
    )
    def test_priority_cost_modifier(self, line_network, priority, expected_cost):
        """Test that step costs scale with priority."""
        router = AntColonyRouter(RoutingConfig(aco_iterations=1, ant_count=1), rng=0)

        route = router.find_optimal_path(
            line_network.snapshot(), "n0", "n2", priority
        )

        assert route.cost == pytest.approx(expected_cost)

    @pytest.mark.parametrize(
        "priority,expected_level",
        [
            # 0.5 after evaporation plus q / cost * multiplier
            (Priority.CRITICAL, 2.5),
            (Priority.HIGH, 1.5),
            (Priority.NORMAL, 1.0),
            (Priority.LOW, 1.0),
        ],
    )
    def test_priority_deposit(self, line_network, priority, expected_level):
        """Test evaporation then priority-weighted deposit."""
        router = AntColonyRouter(RoutingConfig(aco_iterations=1, ant_count=1), rng=0)

        _, pheromones = router._run(line_network.snapshot(), "n0", "n2", priority)

        levels = pheromones.levels()
        assert levels[(0, 1)] == pytest.approx(expected_level)
        assert levels[(1, 2)] == pytest.approx(expected_level)

    def test_priority_label(self, line_network):
        """Test that priority labels are accepted and validated."""
        router = AntColonyRouter(RoutingConfig(aco_iterations=1, ant_count=1), rng=0)
        snapshot = line_network.snapshot()

        assert router.find_optimal_path(snapshot, "n0", "n2", "high") is not None
        with pytest.raises(ValidationError):
            router.find_optimal_path(snapshot, "n0", "n2", "urgent")

    def test_source_is_destination(self, line_network):
        """Test the trivial single-node route."""
        router = AntColonyRouter(RoutingConfig(aco_iterations=2, ant_count=2), rng=0)

        route = router.find_optimal_path(line_network.snapshot(), "n1", "n1")

        assert route.path == ["n1"]
        assert route.cost == 0.0

    def test_unknown_and_offline_endpoints(self, line_network):
        """Test that missing or offline endpoints yield no path."""
        router = AntColonyRouter(RoutingConfig(aco_iterations=2, ant_count=2), rng=0)
        line_network.update_node_status("n2", NodeStatus.OFFLINE)
        snapshot = line_network.snapshot()

        assert router.find_optimal_path(snapshot, "ghost", "n0") is None
        assert router.find_optimal_path(snapshot, "n0", "n2") is None

    def test_unreachable(self):
        """Test that ants dead-ending everywhere yields no path."""
        network = build_network({"a": (0.0, 0.0), "b": (100.0, 0.0), "c": (900.0, 0.0)})
        router = AntColonyRouter(RoutingConfig(aco_iterations=3, ant_count=2), rng=0)

        assert router.find_optimal_path(network.snapshot(), "a", "c") is None

    def test_pheromones_reset_per_call(self, line_network):
        """Test that each call starts from fresh pheromone levels."""
        router = AntColonyRouter(RoutingConfig(aco_iterations=1, ant_count=1), rng=0)
        snapshot = line_network.snapshot()

        _, first = router._run(snapshot, "n0", "n2")
        _, second = router._run(snapshot, "n0", "n2")

        assert second is not first
        assert second.levels() == first.levels()

    def test_router_keeps_no_pheromone_state(self, line_network):
        """Test that a search leaves nothing per-call on the router."""
        router = AntColonyRouter(RoutingConfig(aco_iterations=2, ant_count=2), rng=0)
        before = set(vars(router))

        router.find_optimal_path(line_network.snapshot(), "n0", "n2")

        assert set(vars(router)) == before
        assert not any(isinstance(value, PheromoneMap) for value in vars(router).values())

    def test_run_without_endpoints_has_no_map(self, line_network):
        """Test that unresolved endpoints never build a pheromone map."""
        router = AntColonyRouter(RoutingConfig(aco_iterations=1, ant_count=1), rng=0)

        assert router._run(line_network.snapshot(), "ghost", "n0") == (None, None)

    def test_reproducible_for_seed(self, braided_network):
        """Test that a fixed seed yields identical results."""
        snapshot = braided_network.snapshot()
        config = RoutingConfig(aco_iterations=10, ant_count=5)

        first = AntColonyRouter(config, rng=123)
        second = AntColonyRouter(config, rng=np.random.default_rng(123))
        route_a, pheromones_a = first._run(snapshot, "s", "t")
        route_b, pheromones_b = second._run(snapshot, "s", "t")

        assert route_a.path == route_b.path
        assert route_a.cost == route_b.cost
        assert pheromones_a.levels() == pheromones_b.levels()

    def test_explicit_rng_overrides_default(self, braided_network):
        """Test passing a generator per call."""
        snapshot = braided_network.snapshot()
        router = AntColonyRouter(RoutingConfig(aco_iterations=5, ant_count=3), rng=1)

        route_a = router.find_optimal_path(
            snapshot, "s", "t", rng=np.random.default_rng(9)
        )
        route_b = router.find_optimal_path(
            snapshot, "s", "t", rng=np.random.default_rng(9)
        )

        assert route_a.path == route_b.path

    def test_zero_weight_takes_first_candidate(self, diamond_network):
        """Test the fallback when every selection weight is zero."""
        config = RoutingConfig(aco_iterations=1, ant_count=1, pheromone_initial=0.0)
        router = AntColonyRouter(config, rng=0)

        route = router.find_optimal_path(diamond_network.snapshot(), "s", "t")

        assert route.path == ["s", "u", "t"]

    @pytest.mark.slow
    @pytest.mark.parametrize("seed", range(10))
    def test_converges_near_optimum(self, braided_network, seed):
        """Test that the colony finds a route close to the shortest one."""
        snapshot = braided_network.snapshot()
        optimum = DijkstraRouter().find_shortest_path(snapshot, "s", "t")

        route = AntColonyRouter(rng=seed).find_optimal_path(snapshot, "s", "t")

        assert optimum.path == ["s", "m", "t"]
        assert route is not None
        assert route.cost <= optimum.cost * 1.1

    def test_deadline_returns_best_so_far(self, braided_network):
        """Test that an elapsed deadline stops after the current iteration."""
        config = RoutingConfig(aco_iterations=50, ant_count=3, deadline=1.0)
        router = AntColonyRouter(config, rng=0)

        with patch("crisisnet.routing.aco.time") as mock_time, patch.object(
            router, "_traverse", wraps=router._traverse
        ) as traverse:
            mock_time.monotonic.side_effect = [0.0, 10.0]
            route = router.find_optimal_path(braided_network.snapshot(), "s", "t")

        assert traverse.call_count == 3
        assert route is not None
        assert route.path[0] == "s" and route.path[-1] == "t"
