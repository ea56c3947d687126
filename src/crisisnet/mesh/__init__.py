"""
CrisisNet mesh topology.

This package maintains the dynamic graph of communication nodes: proximity
discovery, symmetric connection bookkeeping, status transitions, removal and
self-healing, plus immutable snapshots consumed by the routing package.
"""

from .config import MeshConfig
from .network import MeshNetwork
from .snapshot import SnapshotNode, TopologySnapshot
from .types import (
    Connection,
    EdgeKey,
    NetworkStats,
    Node,
    NodeStatus,
    calculate_distance,
    edge_key,
    hop_latency,
)

__all__ = [
    "MeshConfig",
    "MeshNetwork",
    "Node",
    "NodeStatus",
    "Connection",
    "NetworkStats",
    "EdgeKey",
    "edge_key",
    "calculate_distance",
    "hop_latency",
    "SnapshotNode",
    "TopologySnapshot",
]
