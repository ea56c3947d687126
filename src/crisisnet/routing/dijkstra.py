"""
Deterministic shortest-path routing.

Dijkstra's algorithm over the online subgraph of a topology snapshot, with
an edge cost that inflates geometric distance for weak signal and low
battery on either endpoint. The frontier is a linear scan, which is O(V^2)
and fine for meshes of tens of nodes.
"""

import math
from typing import List, Optional

from ..logging import get_logger
from ..mesh.snapshot import TopologySnapshot
from .metrics import calculate_reliability, estimate_latency, resolve_online
from .types import Route, RoutingStrategy

logger = get_logger(__name__)


def calculate_edge_cost(snapshot: TopologySnapshot, i: int, j: int) -> float:
    """Distance weighted by the signal and battery deficit of both endpoints."""
    a = snapshot.node(i)
    b = snapshot.node(j)
    signal_factor = (200.0 - a.signal_strength - b.signal_strength) / 200.0
    battery_factor = (200.0 - a.battery - b.battery) / 200.0
    return snapshot.distance(i, j) * (1.0 + signal_factor * 0.5 + battery_factor * 0.3)


class DijkstraRouter:
    """Shortest path router used for critical traffic."""

    def find_shortest_path(
        self, snapshot: TopologySnapshot, source_id: str, destination_id: str
    ) -> Optional[Route]:
        """Find the minimum-cost path, or None if the destination is unreachable."""
        source = resolve_online(snapshot, source_id)
        destination = resolve_online(snapshot, destination_id)
        if source is None or destination is None:
            logger.debug(
                f"No shortest path {source_id} -> {destination_id}: "
                f"endpoint unknown or not online"
            )
            return None

        n = len(snapshot)
        distances = [math.inf] * n
        previous: List[Optional[int]] = [None] * n
        unvisited = [snapshot.is_online(i) for i in range(n)]
        distances[source] = 0.0

        while True:
            current = None
            best = math.inf
            for i in range(n):
                if unvisited[i] and distances[i] < best:
                    best = distances[i]
                    current = i

            if current is None or current == destination:
                break

            unvisited[current] = False

            for neighbour in snapshot.neighbors(current):
                if not unvisited[neighbour]:
                    continue
                candidate = distances[current] + calculate_edge_cost(
                    snapshot, current, neighbour
                )
                if candidate < distances[neighbour]:
                    distances[neighbour] = candidate
                    previous[neighbour] = current

        path = [destination]
        while previous[path[-1]] is not None:
            path.append(previous[path[-1]])
        path.reverse()

        if path[0] != source:
            logger.debug(f"Destination {destination_id} unreachable from {source_id}")
            return None

        route = Route(
            source=source_id,
            destination=destination_id,
            path=snapshot.path_ids(path),
            cost=distances[destination],
            latency=estimate_latency(snapshot, path),
            reliability=calculate_reliability(snapshot, path),
            strategy=RoutingStrategy.DIJKSTRA,
        )
        logger.debug(
            f"Shortest path {source_id} -> {destination_id}: "
            f"{route.hops} hops, cost {route.cost:.2f}"
        )
        return route
