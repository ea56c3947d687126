"""
Integration tests: failure, healing and routing on a ring mesh.

Twelve nodes sit on a circle of radius 100 with a range that only links
adjacent nodes, so the ring is the whole topology unless a chord is added.
"""

import math

import pytest

from crisisnet.mesh import MeshConfig, MeshNetwork, NodeStatus
from crisisnet.routing import Priority, Router, RoutingConfig, RoutingStrategy
from crisisnet.simulation import MeshSimulator, SimulationConfig

RADIUS = 100.0
SIDE = 2 * RADIUS * math.sin(math.radians(15))
CHORD = 2 * RADIUS * math.sin(math.radians(75))


def build_ring(chord: bool = True) -> MeshNetwork:
    network = MeshNetwork(MeshConfig(max_range=60.0))
    for i in range(12):
        angle = math.radians(30 * i)
        network.create_node(
            f"N{i}", RADIUS * math.cos(angle), RADIUS * math.sin(angle), node_id=f"n{i}"
        )
    if chord:
        network.establish_connection(network.get_node("n0"), network.get_node("n5"))
    return network


@pytest.fixture
def router():
    return Router(RoutingConfig(), rng=2024)


class TestRingTopology:
    """Topology shape of the ring."""

    def test_ring_degrees(self):
        """Every node links only to its two ring neighbours."""
        network = build_ring(chord=False)

        assert len(network.get_connections()) == 12
        for i, node in enumerate(network.get_nodes()):
            expected = {f"n{(i - 1) % 12}", f"n{(i + 1) % 12}"}
            assert set(node.connections) == expected

    def test_chord_survives_healing(self):
        """A manual link between online nodes is never pruned."""
        network = build_ring()

        network.heal_network()

        assert network.get_connection("n0", "n5") is not None
        assert network.get_connection("n0", "n5").latency == pytest.approx(
            10.0 + CHORD / 10.0
        )


class TestRingRouting:
    """Routing across the ring under failures."""

    def test_critical_route_takes_chord(self, router):
        """The shortest path to the far side uses the chord."""
        network = build_ring()

        route = router.find_route(network, "n0", "n6", Priority.CRITICAL)

        assert route.strategy == RoutingStrategy.DIJKSTRA
        assert route.path == ["n0", "n5", "n6"]
        assert route.cost == pytest.approx(CHORD + SIDE)
        assert route.latency == pytest.approx(20.0 + (CHORD + SIDE) / 10.0)

    def test_gap_is_routed_around(self, router):
        """A run of failed nodes forces the path through the chord."""
        network = build_ring()
        for node_id in ("n1", "n2", "n3"):
            network.simulate_failure(node_id)

        shortest = router.find_route(network, "n0", "n4", Priority.CRITICAL)
        colony = router.find_route(network, "n0", "n4", Priority.NORMAL)

        assert shortest.path == ["n0", "n5", "n4"]
        assert colony.path == ["n0", "n5", "n4"]
        assert colony.cost == pytest.approx(CHORD + SIDE)
        assert network.get_partitions() == [
            {f"n{i}" for i in range(12) if i not in (1, 2, 3)}
        ]

    def test_double_gap_has_no_route(self, router):
        """Two breaks without a chord split the ring."""
        network = build_ring(chord=False)
        network.simulate_failure("n2")
        network.simulate_failure("n8")

        for priority in Priority:
            assert router.find_route(network, "n0", "n5", priority) is None
        assert router.find_all_routes(network, "n0", "n5") == []
        assert len(network.get_partitions()) == 2

    def test_recovery_restores_route(self, router):
        """Bringing a failed relay back reconnects the ring."""
        network = build_ring(chord=False)
        network.simulate_failure("n2")
        network.simulate_failure("n8")

        network.simulate_recovery("n2")
        route = router.find_route(network, "n0", "n5", Priority.CRITICAL)

        assert route.path == ["n0", "n1", "n2", "n3", "n4", "n5"]
        assert route.cost == pytest.approx(5 * SIDE)

    def test_weak_nodes_inflate_cost(self, router):
        """Drained relays make the chord more expensive than the ring."""
        network = build_ring()
        network.update_node_metrics("n5", battery=0.0, signal_strength=0.0)

        route = router.find_route(network, "n0", "n6", Priority.CRITICAL)

        assert "n5" not in route.path
        assert route.hops == 6
        assert route.cost == pytest.approx(6 * SIDE)
        assert route.reliability == pytest.approx(1.0)

    def test_route_on_snapshot_ignores_later_failure(self, router):
        """A snapshot taken before a failure still routes through it."""
        network = build_ring()
        snapshot = network.snapshot()

        network.simulate_failure("n5")

        assert router.find_route(snapshot, "n0", "n6", Priority.CRITICAL).path == [
            "n0",
            "n5",
            "n6",
        ]
        assert router.find_route(network, "n0", "n6", Priority.CRITICAL).path == [
            "n0",
            "n11",
            "n10",
            "n9",
            "n8",
            "n7",
            "n6",
        ]


class TestSimulationScenario:
    """End-to-end simulation run."""

    def test_outage_heal_and_delivery(self):
        """Messages keep flowing among the survivors of an outage."""
        sim = MeshSimulator(
            routing_config=RoutingConfig(aco_iterations=20, ant_count=5),
            config=SimulationConfig(
                seed=7, node_failure_rate=0.0, recovery_rate=0.0, crisis_chance=0.0
            ),
        )
        sim.init(16)

        affected = sim.trigger_outage(4)
        survivors = [n.node_id for n in sim.network.get_nodes() if n.is_online]

        for _ in range(3):
            sim.tick()

        for i, priority in enumerate(Priority):
            delivery = sim.send_message(survivors[i], survivors[-1 - i], priority)
            assert delivery.delivered
            assert not set(delivery.route.path) & set(affected)

        stats = sim.get_stats()
        assert stats.offline_nodes == 4
        assert stats.delivered_messages == 4
        assert stats.failed_messages == 0
        assert sim.network.get_partitions() == [set(survivors)]
