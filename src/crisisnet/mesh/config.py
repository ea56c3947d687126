"""Configuration for the mesh topology manager."""

from dataclasses import dataclass, fields
from typing import Any, Dict

from ..errors import create_configuration_error


@dataclass
class MeshConfig:
    """Configuration for proximity discovery and self-healing."""

    max_connections: int = 8
    min_connections: int = 2
    max_range: float = 500.0

    def __post_init__(self):
        """Validate configuration."""
        if self.max_connections < 1:
            raise create_configuration_error(
                "max_connections", self.max_connections, "must be at least 1"
            )
        if self.min_connections < 0:
            raise create_configuration_error(
                "min_connections", self.min_connections, "cannot be negative"
            )
        if self.min_connections > self.max_connections:
            raise create_configuration_error(
                "min_connections",
                self.min_connections,
                "cannot exceed max_connections",
            )
        if self.max_range <= 0:
            raise create_configuration_error(
                "max_range", self.max_range, "must be positive"
            )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MeshConfig":
        """Create a config from a dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})
