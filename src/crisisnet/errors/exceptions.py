"""Exception hierarchy for CrisisNet.

This module defines the exceptions raised by the mesh topology and routing
core. Unreachable destinations and unknown node ids are not errors; they are
reported as "no route" or ignored. Exceptions here signal caller misuse
such as invalid configuration values or malformed priority labels.
"""

import time
import traceback
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class ErrorSeverity(Enum):
    """Error severity levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Error categories."""

    VALIDATION = "validation"
    CONFIGURATION = "configuration"
    TOPOLOGY = "topology"
    ROUTING = "routing"
    SYSTEM = "system"


@dataclass
class ErrorContext:
    """Context information for an error."""

    timestamp: float = field(default_factory=time.time)
    node_id: Optional[str] = None
    component: Optional[str] = None
    operation: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert context to dictionary."""
        return {
            "timestamp": self.timestamp,
            "node_id": self.node_id,
            "component": self.component,
            "operation": self.operation,
            "metadata": self.metadata,
        }


class CrisisNetError(Exception):
    """Base exception for all CrisisNet errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        category: ErrorCategory = ErrorCategory.SYSTEM,
        context: Optional[ErrorContext] = None,
        cause: Optional[Exception] = None,
        retryable: bool = False,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.severity = severity
        self.category = category
        self.context = context or ErrorContext()
        self.cause = cause
        self.retryable = retryable
        self.metadata = metadata or {}
        self.timestamp = time.time()
        self.traceback = traceback.format_exc()

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary."""
        return {
            "type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "severity": self.severity.value,
            "category": self.category.value,
            "context": self.context.to_dict(),
            "cause": str(self.cause) if self.cause else None,
            "retryable": self.retryable,
            "metadata": self.metadata,
            "timestamp": self.timestamp,
        }

    def __str__(self) -> str:
        """String representation of the error."""
        parts = [f"{self.__class__.__name__}: {self.message}"]

        if self.error_code:
            parts.append(f"Code: {self.error_code}")

        if self.severity != ErrorSeverity.MEDIUM:
            parts.append(f"Severity: {self.severity.value}")

        if self.category != ErrorCategory.SYSTEM:
            parts.append(f"Category: {self.category.value}")

        if self.retryable:
            parts.append("Retryable: Yes")

        return " | ".join(parts)


class ValidationError(CrisisNetError):
    """Validation error."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        expected: Optional[Any] = None,
        **kwargs,
    ):
        super().__init__(message, category=ErrorCategory.VALIDATION, **kwargs)
        self.field = field
        self.value = value
        self.expected = expected

    def to_dict(self) -> Dict[str, Any]:
        """Convert validation error to dictionary."""
        data = super().to_dict()
        data.update(
            {
                "field": self.field,
                "value": str(self.value) if self.value is not None else None,
                "expected": str(self.expected) if self.expected is not None else None,
            }
        )
        return data


class ConfigurationError(CrisisNetError):
    """Configuration error."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
        **kwargs,
    ):
        super().__init__(
            message,
            category=ErrorCategory.CONFIGURATION,
            severity=ErrorSeverity.MEDIUM,
            **kwargs,
        )
        self.config_key = config_key
        self.config_value = config_value

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration error to dictionary."""
        data = super().to_dict()
        data.update(
            {
                "config_key": self.config_key,
                "config_value": str(self.config_value)
                if self.config_value is not None
                else None,
            }
        )
        return data


class TopologyError(CrisisNetError):
    """Topology error, e.g. an edge requested for an unregistered node."""

    def __init__(self, message: str, node_id: Optional[str] = None, **kwargs):
        super().__init__(message, category=ErrorCategory.TOPOLOGY, **kwargs)
        self.node_id = node_id

    def to_dict(self) -> Dict[str, Any]:
        """Convert topology error to dictionary."""
        data = super().to_dict()
        data.update({"node_id": self.node_id})
        return data


class RoutingError(CrisisNetError):
    """Routing error.

    Never raised for an unreachable destination, which is a normal
    outcome reported as ``None``.
    """

    def __init__(self, message: str, strategy: Optional[str] = None, **kwargs):
        super().__init__(message, category=ErrorCategory.ROUTING, **kwargs)
        self.strategy = strategy

    def to_dict(self) -> Dict[str, Any]:
        """Convert routing error to dictionary."""
        data = super().to_dict()
        data.update({"strategy": self.strategy})
        return data


# Convenience functions for common error patterns
def create_validation_error(
    field: str, value: Any, expected: Any, message: Optional[str] = None
) -> ValidationError:
    """Create a validation error."""
    if message is None:
        message = f"Invalid value for field '{field}': expected {expected}, got {value}"

    return ValidationError(message=message, field=field, value=value, expected=expected)


def create_configuration_error(
    config_key: str, config_value: Any, reason: str
) -> ConfigurationError:
    """Create a configuration error."""
    return ConfigurationError(
        message=f"Invalid configuration '{config_key}'={config_value!r}: {reason}",
        config_key=config_key,
        config_value=config_value,
    )
