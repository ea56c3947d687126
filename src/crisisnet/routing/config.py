"""Configuration for the route planner."""

from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

from ..errors import create_configuration_error


@dataclass
class RoutingConfig:
    """Configuration for the ant colony router and the routing facade."""

    aco_iterations: int = 100
    ant_count: int = 10
    pheromone_initial: float = 1.0
    pheromone_evaporation: float = 0.5
    alpha: float = 1.0  # pheromone importance
    beta: float = 2.0  # heuristic importance
    q: float = 100.0  # pheromone deposit factor
    stochastic_reliability: float = 0.9
    stochastic_latency_per_node: float = 15.0  # ms per path node
    deterministic_candidate_reliability: float = 0.95  # find_all_routes only
    deadline: Optional[float] = None  # seconds; None runs every iteration

    def __post_init__(self):
        """Validate configuration."""
        if self.aco_iterations < 1:
            raise create_configuration_error(
                "aco_iterations", self.aco_iterations, "must be at least 1"
            )
        if self.ant_count < 1:
            raise create_configuration_error(
                "ant_count", self.ant_count, "must be at least 1"
            )
        if self.pheromone_initial < 0:
            raise create_configuration_error(
                "pheromone_initial", self.pheromone_initial, "cannot be negative"
            )
        if not 0 <= self.pheromone_evaporation <= 1:
            raise create_configuration_error(
                "pheromone_evaporation",
                self.pheromone_evaporation,
                "must be between 0 and 1",
            )
        if self.q <= 0:
            raise create_configuration_error("q", self.q, "must be positive")
        if not 0 <= self.stochastic_reliability <= 1:
            raise create_configuration_error(
                "stochastic_reliability",
                self.stochastic_reliability,
                "must be between 0 and 1",
            )
        if self.stochastic_latency_per_node < 0:
            raise create_configuration_error(
                "stochastic_latency_per_node",
                self.stochastic_latency_per_node,
                "cannot be negative",
            )
        if not 0 <= self.deterministic_candidate_reliability <= 1:
            raise create_configuration_error(
                "deterministic_candidate_reliability",
                self.deterministic_candidate_reliability,
                "must be between 0 and 1",
            )
        if self.deadline is not None and self.deadline <= 0:
            raise create_configuration_error(
                "deadline", self.deadline, "must be positive when set"
            )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RoutingConfig":
        """Create a config from a dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})
