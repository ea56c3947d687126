"""Path quality estimates shared by the routing strategies."""

from typing import Optional, Sequence

from ..mesh.snapshot import TopologySnapshot
from ..mesh.types import hop_latency


def estimate_latency(snapshot: TopologySnapshot, path: Sequence[int]) -> float:
    """Sum of per-hop latencies along a path of snapshot indices."""
    return sum(
        hop_latency(snapshot.distance(path[i], path[i + 1]))
        for i in range(len(path) - 1)
    )


def calculate_reliability(snapshot: TopologySnapshot, path: Sequence[int]) -> float:
    """Product of ``signal/100 * battery/100`` over every node on the path.

    A crude multiplicative degradation estimate, not a probability.
    """
    reliability = 1.0
    for index in path:
        node = snapshot.node(index)
        reliability *= (node.signal_strength / 100.0) * (node.battery / 100.0)
    return min(1.0, max(0.0, reliability))


def resolve_online(snapshot: TopologySnapshot, node_id: str) -> Optional[int]:
    """Snapshot index of ``node_id`` if it exists and is online."""
    index = snapshot.index_of(node_id)
    if index is None or not snapshot.is_online(index):
        return None
    return index
