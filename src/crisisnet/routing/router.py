"""
Routing facade.

Dispatches a delivery request to the deterministic or the stochastic
strategy by priority, and can produce a candidate set from both. Whatever
topology it is given is frozen into a snapshot first.
"""

from dataclasses import replace
from typing import Iterable, List, Optional, Union

import numpy as np

from ..logging import get_logger
from ..mesh.network import MeshNetwork
from ..mesh.snapshot import TopologySnapshot
from ..mesh.types import Node
from .aco import AntColonyRouter
from .config import RoutingConfig
from .dijkstra import DijkstraRouter
from .types import Priority, Route, RoutingStrategy

logger = get_logger(__name__)

Topology = Union[MeshNetwork, TopologySnapshot, Iterable[Node]]


def as_snapshot(topology: Topology) -> TopologySnapshot:
    """Freeze a live network or a node collection; snapshots pass through."""
    if isinstance(topology, TopologySnapshot):
        return topology
    if isinstance(topology, MeshNetwork):
        return topology.snapshot()
    return TopologySnapshot.from_nodes(topology)


class Router:
    """Selects a routing strategy per message priority."""

    def __init__(
        self,
        config: Optional[RoutingConfig] = None,
        rng: Optional[Union[np.random.Generator, int]] = None,
    ):
        self.config = config or RoutingConfig()
        self.dijkstra = DijkstraRouter()
        self.aco = AntColonyRouter(self.config, rng)

    def find_route(
        self,
        topology: Topology,
        source: str,
        destination: str,
        priority: Union[Priority, str] = Priority.NORMAL,
    ) -> Optional[Route]:
        """Best route for one message, or None if none exists.

        Critical traffic takes the deterministic shortest path; everything
        else goes through the ant colony.
        """
        priority = Priority.parse(priority)
        strategy = (
            RoutingStrategy.DIJKSTRA
            if priority == Priority.CRITICAL
            else RoutingStrategy.ANT_COLONY
        )
        return self.find_route_with(topology, source, destination, strategy, priority)

    def find_route_with(
        self,
        topology: Topology,
        source: str,
        destination: str,
        strategy: Union[RoutingStrategy, str],
        priority: Union[Priority, str] = Priority.NORMAL,
    ) -> Optional[Route]:
        """Route with an explicitly chosen strategy.

        ``priority`` only shapes the colony's costs and deposits; the
        shortest-path search ignores it.
        """
        strategy = RoutingStrategy.parse(strategy)
        priority = Priority.parse(priority)
        snapshot = as_snapshot(topology)

        if strategy == RoutingStrategy.DIJKSTRA:
            route = self.dijkstra.find_shortest_path(snapshot, source, destination)
        else:
            route = self.aco.find_optimal_path(snapshot, source, destination, priority)

        if route is None:
            logger.info(
                f"No route {source} -> {destination} for {priority.value} traffic "
                f"({strategy.value})"
            )
        return route

    def find_all_routes(
        self, topology: Topology, source: str, destination: str
    ) -> List[Route]:
        """Candidate routes from both strategies, deterministic first.

        The colony runs at critical priority. Both candidates carry the
        configured reliability stand-ins rather than computed estimates.
        """
        snapshot = as_snapshot(topology)
        routes = []

        shortest = self.dijkstra.find_shortest_path(snapshot, source, destination)
        if shortest is not None:
            routes.append(
                replace(
                    shortest,
                    reliability=self.config.deterministic_candidate_reliability,
                )
            )

        colony = self.aco.find_optimal_path(
            snapshot, source, destination, Priority.CRITICAL
        )
        if colony is not None:
            routes.append(colony)

        return routes
