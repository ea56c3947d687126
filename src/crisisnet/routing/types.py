"""Routing data types: priorities, strategies and routes."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Union

from ..errors import RoutingError, create_validation_error


class Priority(Enum):
    """Message priority supplied by the classification component."""

    CRITICAL = "critical"
    HIGH = "high"
    NORMAL = "normal"
    LOW = "low"

    @classmethod
    def parse(cls, value: Union["Priority", str]) -> "Priority":
        """Coerce a priority or its label. Only membership is checked."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise create_validation_error(
                "priority", value, [priority.value for priority in cls]
            ) from None


class RoutingStrategy(Enum):
    """Path-finding strategies."""

    DIJKSTRA = "dijkstra"
    ANT_COLONY = "ant_colony"

    @classmethod
    def parse(cls, value: Union["RoutingStrategy", str]) -> "RoutingStrategy":
        """Coerce a strategy or its name."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise RoutingError(
                f"Unknown routing strategy {value!r}", strategy=str(value)
            ) from None


# Step cost multiplier applied by the ant colony router.
PRIORITY_COST_MODIFIER: Dict[Priority, float] = {
    Priority.CRITICAL: 0.5,
    Priority.HIGH: 0.75,
    Priority.NORMAL: 1.0,
    Priority.LOW: 1.0,
}

# Pheromone deposit multiplier applied by the ant colony router.
PRIORITY_DEPOSIT_MULTIPLIER: Dict[Priority, float] = {
    Priority.CRITICAL: 2.0,
    Priority.HIGH: 1.5,
    Priority.NORMAL: 1.0,
    Priority.LOW: 1.0,
}


@dataclass
class Route:
    """A delivery path from source to destination, both inclusive.

    ``cost`` is in strategy-specific units and is not comparable between
    routes produced by different strategies.
    """

    source: str
    destination: str
    path: List[str] = field(default_factory=list)
    cost: float = 0.0
    latency: float = 0.0
    reliability: float = 1.0
    strategy: RoutingStrategy = RoutingStrategy.DIJKSTRA

    def __post_init__(self):
        """Validate route."""
        if not self.path:
            raise ValueError("Route path cannot be empty")

        if self.path[0] != self.source or self.path[-1] != self.destination:
            raise ValueError("Route path must run from source to destination")

        if self.cost < 0:
            raise ValueError("Route cost cannot be negative")

        if not 0 <= self.reliability <= 1:
            raise ValueError("Route reliability must be between 0 and 1")

    @property
    def hops(self) -> int:
        """Number of links traversed."""
        return len(self.path) - 1
