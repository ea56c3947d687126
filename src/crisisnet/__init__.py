"""CrisisNet mesh topology and routing.

Maintains a dynamic mesh of communication nodes and computes delivery paths
across it with a deterministic shortest-path search or a stochastic
pheromone-guided search, selected by message priority.
"""

__version__ = "0.1.0"

from .mesh import MeshConfig, MeshNetwork, Node, NodeStatus, TopologySnapshot
from .routing import Priority, Route, Router, RoutingConfig, RoutingStrategy
from .simulation import MeshSimulator, SimulationConfig

__all__ = [
    "MeshConfig",
    "MeshNetwork",
    "Node",
    "NodeStatus",
    "TopologySnapshot",
    "Priority",
    "Route",
    "Router",
    "RoutingConfig",
    "RoutingStrategy",
    "MeshSimulator",
    "SimulationConfig",
]
