"""
Mesh data model.

Nodes, undirected connections and aggregate statistics for the mesh
topology, plus the geometric helpers shared with the routing package.
"""

import math
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Tuple, Union

from ..errors import create_validation_error


class NodeStatus(Enum):
    """Node status.

    Only ONLINE and OFFLINE are driven by the topology manager. BUSY and
    RELAY are reserved: they can be set explicitly, are not treated as
    offline by self-healing, and are not traversed by routing.
    """

    ONLINE = "online"
    OFFLINE = "offline"
    BUSY = "busy"
    RELAY = "relay"

    @classmethod
    def parse(cls, value: Union["NodeStatus", str]) -> "NodeStatus":
        """Coerce a status or its string value into a NodeStatus."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise create_validation_error(
                "status", value, [status.value for status in cls]
            ) from None


EdgeKey = Tuple[str, str]


def edge_key(node_a: str, node_b: str) -> EdgeKey:
    """Unordered pair identifying an undirected connection."""
    return (node_a, node_b) if node_a <= node_b else (node_b, node_a)


def calculate_distance(ax: float, ay: float, bx: float, by: float) -> float:
    """Euclidean distance in simulation coordinates."""
    return math.hypot(bx - ax, by - ay)


def hop_latency(distance: float) -> float:
    """Estimated latency of a single hop: base 10 plus a distance term."""
    return 10.0 + distance / 10.0


@dataclass
class Node:
    """A communication node in the mesh."""

    node_id: str
    name: str
    x: float
    y: float
    status: NodeStatus = NodeStatus.ONLINE
    battery: float = 100.0
    signal_strength: float = 100.0
    connections: List[str] = field(default_factory=list)
    last_seen: float = field(default_factory=time.time)
    message_count: int = 0
    ip_address: str = ""

    @property
    def is_online(self) -> bool:
        """Whether the node currently participates in routing."""
        return self.status == NodeStatus.ONLINE

    def distance_to(self, other: "Node") -> float:
        """Euclidean distance to another node."""
        return calculate_distance(self.x, self.y, other.x, other.y)


@dataclass
class Connection:
    """An undirected link between two nodes."""

    node_a: str
    node_b: str
    strength: float
    latency: float
    active: bool = True

    @property
    def key(self) -> EdgeKey:
        """Unordered edge key."""
        return edge_key(self.node_a, self.node_b)

    def involves(self, node_id: str) -> bool:
        """Whether the connection has ``node_id`` as an endpoint."""
        return node_id in (self.node_a, self.node_b)

    def other(self, node_id: str) -> str:
        """The endpoint opposite ``node_id``."""
        return self.node_b if node_id == self.node_a else self.node_a


@dataclass
class NetworkStats:
    """Aggregate topology statistics."""

    total_nodes: int = 0
    online_nodes: int = 0
    offline_nodes: int = 0
    busy_nodes: int = 0
    relay_nodes: int = 0
    total_connections: int = 0
    avg_connections: float = 0.0
