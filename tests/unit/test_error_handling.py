"""
Tests for the CrisisNet exception hierarchy.
"""

import pytest

from crisisnet.errors import (
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
from crisisnet.mesh import MeshConfig, NodeStatus
from crisisnet.routing import Priority, RoutingStrategy


class TestCrisisNetError:
    """Test the base exception."""

    def test_defaults(self):
        """Test default attributes."""
        error = CrisisNetError("something broke")

        assert error.message == "something broke"
        assert error.severity == ErrorSeverity.MEDIUM
        assert error.category == ErrorCategory.SYSTEM
        assert isinstance(error.context, ErrorContext)
        assert error.retryable is False
        assert str(error) == "CrisisNetError: something broke"

    def test_str_includes_non_default_fields(self):
        """Test string representation with extra fields."""
        error = CrisisNetError(
            "mesh partitioned",
            error_code="E42",
            severity=ErrorSeverity.HIGH,
            retryable=True,
        )

        assert str(error) == (
            "CrisisNetError: mesh partitioned | Code: E42 | Severity: high | Retryable: Yes"
        )

    def test_to_dict(self):
        """Test dictionary conversion."""
        cause = OSError("radio down")
        error = CrisisNetError(
            "send failed",
            context=ErrorContext(node_id="n1", component="simulation"),
            cause=cause,
            metadata={"attempt": 2},
        )

        data = error.to_dict()

        assert data["type"] == "CrisisNetError"
        assert data["context"]["node_id"] == "n1"
        assert data["cause"] == "radio down"
        assert data["metadata"] == {"attempt": 2}


class TestSubclasses:
    """Test specialised exceptions."""

    def test_validation_error(self):
        """Test validation error fields."""
        error = create_validation_error("priority", "urgent", ["critical", "high"])

        assert isinstance(error, CrisisNetError)
        assert error.category == ErrorCategory.VALIDATION
        assert error.field == "priority"
        assert error.to_dict()["value"] == "urgent"
        assert "priority" in error.message

    def test_configuration_error(self):
        """Test configuration error fields."""
        error = create_configuration_error("max_range", -1, "must be positive")

        assert error.category == ErrorCategory.CONFIGURATION
        assert error.config_key == "max_range"
        assert error.to_dict()["config_value"] == "-1"
        assert "must be positive" in str(error)

    def test_topology_error(self):
        """Test topology error fields."""
        error = TopologyError("not in mesh", node_id="n7")

        assert error.category == ErrorCategory.TOPOLOGY
        assert error.to_dict()["node_id"] == "n7"

    def test_routing_error(self):
        """Test routing error fields."""
        error = RoutingError("no such strategy", strategy="flooding")

        assert error.category == ErrorCategory.ROUTING
        assert error.to_dict()["strategy"] == "flooding"


class TestRaisedErrors:
    """Test the errors raised by the public API."""

    def test_bad_config_raises_configuration_error(self):
        """Test that invalid configs raise configuration errors."""
        with pytest.raises(ConfigurationError) as exc_info:
            MeshConfig(max_range=-5.0)

        assert exc_info.value.config_key == "max_range"

    def test_bad_labels_raise_validation_error(self):
        """Test label parsing."""
        assert Priority.parse("critical") == Priority.CRITICAL
        assert NodeStatus.parse("relay") == NodeStatus.RELAY

        with pytest.raises(ValidationError):
            Priority.parse("asap")
        with pytest.raises(ValidationError):
            Priority.parse("CRITICAL")
        with pytest.raises(ValidationError):
            Priority.parse(" high")
        with pytest.raises(ValidationError):
            NodeStatus.parse(3)

    def test_bad_strategy_raises_routing_error(self):
        """Test strategy parsing."""
        assert RoutingStrategy.parse("DIJKSTRA") == RoutingStrategy.DIJKSTRA

        with pytest.raises(RoutingError):
            RoutingStrategy.parse("bellman_ford")
