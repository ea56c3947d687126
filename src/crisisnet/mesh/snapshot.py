"""
Immutable topology snapshots.

Routing never looks at live ``Node`` objects. A snapshot copies the fields
routing needs into an arena of records indexed by position, with adjacency
held as tuples of indices, so a topology mutated after a routing call has
started cannot be observed by that call.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Set, Tuple

from .types import Node, NodeStatus, calculate_distance


@dataclass(frozen=True)
class SnapshotNode:
    """Read-only copy of the routing-relevant fields of a node."""

    node_id: str
    x: float
    y: float
    status: NodeStatus
    battery: float
    signal_strength: float

    @property
    def is_online(self) -> bool:
        return self.status == NodeStatus.ONLINE


class TopologySnapshot:
    """Arena of nodes indexed by position with index-list adjacency."""

    def __init__(
        self,
        nodes: Tuple[SnapshotNode, ...],
        adjacency: Tuple[Tuple[int, ...], ...],
    ):
        if len(nodes) != len(adjacency):
            raise ValueError("Adjacency must have one entry per node")
        self._nodes = nodes
        self._adjacency = adjacency
        self._index: Dict[str, int] = {node.node_id: i for i, node in enumerate(nodes)}

    @classmethod
    def from_nodes(cls, nodes: Iterable[Node]) -> "TopologySnapshot":
        """Freeze a collection of nodes.

        Neighbour ids that do not name a node in the collection are dropped,
        and adjacency is made symmetric: if either endpoint lists the other,
        both see the edge. Neighbour order follows the first listing.
        """
        node_list = list(nodes)
        records = tuple(
            SnapshotNode(
                node_id=node.node_id,
                x=float(node.x),
                y=float(node.y),
                status=node.status,
                battery=float(node.battery),
                signal_strength=float(node.signal_strength),
            )
            for node in node_list
        )
        index = {record.node_id: i for i, record in enumerate(records)}

        neighbours: List[List[int]] = [[] for _ in records]
        seen: List[Set[int]] = [set() for _ in records]
        for i, node in enumerate(node_list):
            for neighbour_id in node.connections:
                j = index.get(neighbour_id)
                if j is None or j == i:
                    continue
                if j not in seen[i]:
                    seen[i].add(j)
                    neighbours[i].append(j)
                if i not in seen[j]:
                    seen[j].add(i)
                    neighbours[j].append(i)

        return cls(records, tuple(tuple(adj) for adj in neighbours))

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._index

    def __iter__(self) -> Iterator[SnapshotNode]:
        return iter(self._nodes)

    def index_of(self, node_id: str) -> Optional[int]:
        """Position of ``node_id`` in the arena, or None if unknown."""
        return self._index.get(node_id)

    def node(self, index: int) -> SnapshotNode:
        return self._nodes[index]

    def node_id(self, index: int) -> str:
        return self._nodes[index].node_id

    def neighbors(self, index: int) -> Tuple[int, ...]:
        return self._adjacency[index]

    def is_online(self, index: int) -> bool:
        return self._nodes[index].is_online

    def distance(self, i: int, j: int) -> float:
        """Euclidean distance between two arena positions."""
        a = self._nodes[i]
        b = self._nodes[j]
        return calculate_distance(a.x, a.y, b.x, b.y)

    def edges(self) -> Iterator[Tuple[int, int]]:
        """Each undirected edge once, as ``(i, j)`` with ``i < j``."""
        for i, adjacent in enumerate(self._adjacency):
            for j in adjacent:
                if i < j:
                    yield (i, j)

    def path_ids(self, path: Iterable[int]) -> List[str]:
        """Translate a path of indices into node ids."""
        return [self._nodes[i].node_id for i in path]

    def __repr__(self) -> str:
        edge_count = sum(len(adj) for adj in self._adjacency) // 2
        return f"TopologySnapshot(nodes={len(self._nodes)}, edges={edge_count})"
