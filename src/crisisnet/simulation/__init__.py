"""
CrisisNet simulation driver.

Headless stand-in for the interactive front end: spawns nodes, injects
failures, recoveries and crisis events, heals the mesh and sends messages
through the routing facade.
"""

from .simulator import (
    CrisisEvent,
    CrisisSeverity,
    CrisisType,
    MeshSimulator,
    MessageDelivery,
    SimulationConfig,
    SimulationStats,
    TickResult,
)

__all__ = [
    "CrisisEvent",
    "CrisisSeverity",
    "CrisisType",
    "MeshSimulator",
    "MessageDelivery",
    "SimulationConfig",
    "SimulationStats",
    "TickResult",
]
