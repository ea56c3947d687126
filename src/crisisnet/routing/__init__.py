"""
CrisisNet route planning.

This package computes delivery paths over a mesh topology snapshot:
- Deterministic weighted shortest path (Dijkstra) for critical traffic
- Stochastic ant colony optimisation for high, normal and low traffic
- A facade that dispatches by priority and gathers candidates from both
"""

from .aco import AntColonyRouter, PheromoneMap
from .config import RoutingConfig
from .dijkstra import DijkstraRouter, calculate_edge_cost
from .metrics import calculate_reliability, estimate_latency
from .router import Router, as_snapshot
from .types import (
    PRIORITY_COST_MODIFIER,
    PRIORITY_DEPOSIT_MULTIPLIER,
    Priority,
    Route,
    RoutingStrategy,
)

__all__ = [
    "Router",
    "as_snapshot",
    "DijkstraRouter",
    "AntColonyRouter",
    "PheromoneMap",
    "RoutingConfig",
    "Priority",
    "Route",
    "RoutingStrategy",
    "PRIORITY_COST_MODIFIER",
    "PRIORITY_DEPOSIT_MULTIPLIER",
    "calculate_edge_cost",
    "calculate_reliability",
    "estimate_latency",
]
