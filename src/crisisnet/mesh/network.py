"""
Mesh Network Topology Manager

This module owns the live mesh topology:
- Proximity-based neighbour discovery and connection establishment
- Node status transitions and metric updates
- Node removal with full scrubbing of neighbour references
- Self-healing of under-connected nodes and stale edges
- Read accessors, statistics and immutable routing snapshots

The edge map and the per-node adjacency lists are two views of the same
undirected graph. Every mutation updates both.
"""

import time
import uuid
from collections import deque
from typing import Dict, Iterable, List, Optional, Set, Union

import numpy as np

from ..errors import TopologyError, ValidationError
from ..logging import get_logger
from .config import MeshConfig
from .snapshot import TopologySnapshot
from .types import (
    Connection,
    EdgeKey,
    NetworkStats,
    Node,
    NodeStatus,
    edge_key,
    hop_latency,
)

logger = get_logger(__name__)


class MeshNetwork:
    """Topology manager for a proximity mesh of communication nodes."""

    def __init__(
        self,
        config: Optional[MeshConfig] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        """Initialize mesh network."""
        self.config = config or MeshConfig()
        self.rng = rng if rng is not None else np.random.default_rng()
        self._nodes: Dict[str, Node] = {}
        self._connections: Dict[EdgeKey, Connection] = {}
        logger.debug(
            f"Initialized mesh network (range={self.config.max_range}, "
            f"max_connections={self.config.max_connections})"
        )

    # ------------------------------------------------------------------
    # Node lifecycle
    # ------------------------------------------------------------------

    def create_node(
        self, name: str, x: float, y: float, node_id: Optional[str] = None
    ) -> Node:
        """Create an online node at ``(x, y)`` and connect it to its neighbours."""
        if node_id is not None and node_id in self._nodes:
            raise ValidationError(
                f"Node id {node_id} is already in use", field="node_id", value=node_id
            )

        node = Node(
            node_id=node_id or uuid.uuid4().hex,
            name=name,
            x=x,
            y=y,
            status=NodeStatus.ONLINE,
            battery=100.0,
            signal_strength=100.0,
            ip_address=self._generate_ip_address(),
        )
        self._nodes[node.node_id] = node
        self.discover_connections(node)
        logger.debug(
            f"Created node {node.name} ({node.node_id}) at ({x}, {y}) "
            f"with {len(node.connections)} connections"
        )
        return node

    def _generate_ip_address(self) -> str:
        """Random display address for the simulation."""
        third, fourth = self.rng.integers(0, 255, size=2)
        return f"192.168.{third}.{fourth}"

    def remove_node(self, node_id: str) -> None:
        """Remove a node and every reference to it."""
        node = self._nodes.get(node_id)
        if node is None:
            logger.debug(f"Ignoring removal of unknown node {node_id}")
            return

        for neighbour_id in list(node.connections):
            neighbour = self._nodes.get(neighbour_id)
            if neighbour is not None:
                neighbour.connections = [
                    nid for nid in neighbour.connections if nid != node_id
                ]

        self._connections = {
            key: connection
            for key, connection in self._connections.items()
            if not connection.involves(node_id)
        }

        node.connections = []
        del self._nodes[node_id]
        logger.debug(f"Removed node {node_id} and its connections")

    def update_node_status(
        self, node_id: str, status: Union[NodeStatus, str]
    ) -> None:
        """Set node status; a transition to online refreshes ``last_seen``."""
        new_status = NodeStatus.parse(status)
        node = self._nodes.get(node_id)
        if node is None:
            logger.debug(f"Ignoring status update for unknown node {node_id}")
            return

        previous = node.status
        node.status = new_status
        if new_status == NodeStatus.ONLINE and previous != NodeStatus.ONLINE:
            node.last_seen = time.time()

        self._refresh_active_flags(node)

        if previous != new_status:
            logger.debug(
                f"Node {node_id} status {previous.value} -> {new_status.value}"
            )

    def update_node_metrics(
        self,
        node_id: str,
        battery: Optional[float] = None,
        signal_strength: Optional[float] = None,
    ) -> None:
        """Update battery and signal levels, clamped to [0, 100]."""
        node = self._nodes.get(node_id)
        if node is None:
            logger.debug(f"Ignoring metric update for unknown node {node_id}")
            return

        if battery is not None:
            node.battery = min(100.0, max(0.0, float(battery)))
        if signal_strength is not None:
            node.signal_strength = min(100.0, max(0.0, float(signal_strength)))

    def record_delivery(self, path: Iterable[str]) -> None:
        """Count a delivered message against every node on its path."""
        for node_id in path:
            node = self._nodes.get(node_id)
            if node is not None:
                node.message_count += 1

    # ------------------------------------------------------------------
    # Connections
    # ------------------------------------------------------------------

    def discover_connections(self, node: Node) -> None:
        """Connect ``node`` to its nearest reachable, not yet connected peers.

        Candidates are all other nodes that are not offline and lie within
        ``max_range``, sorted by distance. Equal distances keep node
        creation order. At most ``max_connections`` new links are made.
        """
        candidates = []
        for other in self._nodes.values():
            if other.node_id == node.node_id or other.status == NodeStatus.OFFLINE:
                continue
            distance = node.distance_to(other)
            if distance <= self.config.max_range:
                candidates.append((distance, other))

        # sort is stable, so ties keep insertion order
        candidates.sort(key=lambda item: item[0])

        connected = set(node.connections)
        fresh = [other for _, other in candidates if other.node_id not in connected]

        for other in fresh[: self.config.max_connections]:
            self.establish_connection(node, other)

    def establish_connection(self, node_a: Node, node_b: Node) -> Connection:
        """Create an undirected link, updating both endpoints and the edge map."""
        if node_a.node_id == node_b.node_id:
            raise ValidationError(
                f"Cannot connect node {node_a.node_id} to itself",
                field="node_b",
                value=node_b.node_id,
            )
        for node in (node_a, node_b):
            if self._nodes.get(node.node_id) is not node:
                raise TopologyError(
                    f"Node {node.node_id} is not part of this mesh",
                    node_id=node.node_id,
                )

        key = edge_key(node_a.node_id, node_b.node_id)
        existing = self._connections.get(key)
        if existing is not None:
            return existing

        distance = node_a.distance_to(node_b)
        connection = Connection(
            node_a=node_a.node_id,
            node_b=node_b.node_id,
            strength=max(0.0, 100.0 - (distance / self.config.max_range * 50.0)),
            latency=hop_latency(distance),
            active=node_a.is_online and node_b.is_online,
        )

        if node_b.node_id not in node_a.connections:
            node_a.connections.append(node_b.node_id)
        if node_a.node_id not in node_b.connections:
            node_b.connections.append(node_a.node_id)
        self._connections[key] = connection

        logger.trace(
            f"Connected {node_a.node_id} <-> {node_b.node_id} "
            f"(distance={distance:.1f}, strength={connection.strength:.1f})"
        )
        return connection

    def remove_connection(self, node_a_id: str, node_b_id: str) -> bool:
        """Remove one undirected link. Returns False if it did not exist."""
        connection = self._connections.pop(edge_key(node_a_id, node_b_id), None)

        node_a = self._nodes.get(node_a_id)
        node_b = self._nodes.get(node_b_id)
        if node_a is not None:
            node_a.connections = [nid for nid in node_a.connections if nid != node_b_id]
        if node_b is not None:
            node_b.connections = [nid for nid in node_b.connections if nid != node_a_id]

        return connection is not None

    def _refresh_active_flags(self, node: Node) -> None:
        for neighbour_id in node.connections:
            connection = self._connections.get(edge_key(node.node_id, neighbour_id))
            neighbour = self._nodes.get(neighbour_id)
            if connection is not None and neighbour is not None:
                connection.active = node.is_online and neighbour.is_online

    # ------------------------------------------------------------------
    # Self-healing
    # ------------------------------------------------------------------

    def heal_network(self) -> None:
        """Prune stale links, then reconnect under-connected online nodes.

        A link is stale when either endpoint is offline or no longer exists;
        it is removed from both endpoints and from the edge map. Links between
        two nodes that are not offline are never removed. Running the pass
        twice with no topology change in between yields the same topology.
        """
        pruned = 0
        for key, connection in list(self._connections.items()):
            a = self._nodes.get(connection.node_a)
            b = self._nodes.get(connection.node_b)
            if (
                a is None
                or b is None
                or a.status == NodeStatus.OFFLINE
                or b.status == NodeStatus.OFFLINE
            ):
                self.remove_connection(connection.node_a, connection.node_b)
                pruned += 1

        # adjacency entries without an edge record (e.g. edited from outside)
        for node in self._nodes.values():
            for neighbour_id in list(node.connections):
                neighbour = self._nodes.get(neighbour_id)
                if (
                    neighbour is None
                    or neighbour.status == NodeStatus.OFFLINE
                    or node.status == NodeStatus.OFFLINE
                    or edge_key(node.node_id, neighbour_id) not in self._connections
                ):
                    self.remove_connection(node.node_id, neighbour_id)
                    pruned += 1

        rediscovered = 0
        for node in list(self._nodes.values()):
            if (
                node.status == NodeStatus.ONLINE
                and len(node.connections) < self.config.min_connections
            ):
                self.discover_connections(node)
                rediscovered += 1

        logger.debug(
            f"Healed network: pruned {pruned} stale links, "
            f"rediscovered {rediscovered} under-connected nodes"
        )

    def simulate_failure(self, node_id: str) -> None:
        """Take a node offline and heal around it."""
        self.update_node_status(node_id, NodeStatus.OFFLINE)
        self.heal_network()

    def simulate_recovery(self, node_id: str) -> None:
        """Bring a node back online and rediscover its neighbours."""
        node = self._nodes.get(node_id)
        if node is None:
            logger.debug(f"Ignoring recovery of unknown node {node_id}")
            return
        self.update_node_status(node_id, NodeStatus.ONLINE)
        self.discover_connections(node)

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    def get_nodes(self) -> List[Node]:
        """All nodes in creation order."""
        return list(self._nodes.values())

    def get_connections(self) -> List[Connection]:
        """All connections in establishment order."""
        return list(self._connections.values())

    def get_node(self, node_id: str) -> Optional[Node]:
        return self._nodes.get(node_id)

    def get_connection(self, node_a_id: str, node_b_id: str) -> Optional[Connection]:
        return self._connections.get(edge_key(node_a_id, node_b_id))

    def get_stats(self) -> NetworkStats:
        """Aggregate node and connection counts."""
        nodes = self.get_nodes()
        counts = {status: 0 for status in NodeStatus}
        for node in nodes:
            counts[node.status] += 1

        return NetworkStats(
            total_nodes=len(nodes),
            online_nodes=counts[NodeStatus.ONLINE],
            offline_nodes=counts[NodeStatus.OFFLINE],
            busy_nodes=counts[NodeStatus.BUSY],
            relay_nodes=counts[NodeStatus.RELAY],
            total_connections=len(self._connections),
            avg_connections=(
                float(np.mean([len(node.connections) for node in nodes]))
                if nodes
                else 0.0
            ),
        )

    def get_partitions(self) -> List[Set[str]]:
        """Connected components of the online subgraph."""
        visited: Set[str] = set()
        partitions = []

        for node in self._nodes.values():
            if not node.is_online or node.node_id in visited:
                continue

            component = {node.node_id}
            visited.add(node.node_id)
            queue = deque([node.node_id])
            while queue:
                current = self._nodes[queue.popleft()]
                for neighbour_id in current.connections:
                    neighbour = self._nodes.get(neighbour_id)
                    if (
                        neighbour is not None
                        and neighbour.is_online
                        and neighbour_id not in visited
                    ):
                        visited.add(neighbour_id)
                        component.add(neighbour_id)
                        queue.append(neighbour_id)

            partitions.append(component)

        return partitions

    def snapshot(self) -> TopologySnapshot:
        """Immutable copy of the current topology for routing."""
        return TopologySnapshot.from_nodes(self._nodes.values())

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __repr__(self) -> str:
        return (
            f"MeshNetwork(nodes={len(self._nodes)}, "
            f"connections={len(self._connections)})"
        )


__all__ = ["MeshNetwork"]
