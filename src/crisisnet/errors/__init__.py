"""CrisisNet Error Handling System.

This module provides the exception hierarchy shared by the mesh topology,
routing and simulation packages.
"""

from .exceptions import (
    ConfigurationError,
    CrisisNetError,
    ErrorCategory,
    ErrorContext,
    ErrorSeverity,
    RoutingError,
    TopologyError,
    ValidationError,
    create_configuration_error,
    create_validation_error,
)

__all__ = [
    "CrisisNetError",
    "ValidationError",
    "ConfigurationError",
    "TopologyError",
    "RoutingError",
    "ErrorSeverity",
    "ErrorCategory",
    "ErrorContext",
    "create_validation_error",
    "create_configuration_error",
]
