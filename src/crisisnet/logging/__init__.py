"""CrisisNet Logging System.

Structured logging for the mesh topology, routing and simulation packages:
a process-wide manager, named loggers, JSON and text formatters, and
console and in-memory handlers.
"""

from .core import (
    CrisisNetLogger,
    LogConfig,
    LogContext,
    LogEntry,
    LogFilter,
    LogFormatter,
    LogHandler,
    LogLevel,
    LogManager,
    get_log_manager,
    get_logger,
    setup_logging,
    shutdown_logging,
)
from .formatters import JSONFormatter, TextFormatter
from .handlers import ConsoleHandler, MemoryHandler

__all__ = [
    # Core
    "LogLevel",
    "LogConfig",
    "LogContext",
    "LogEntry",
    "LogFilter",
    "LogFormatter",
    "LogHandler",
    "LogManager",
    "CrisisNetLogger",
    "get_log_manager",
    "get_logger",
    "setup_logging",
    "shutdown_logging",
    # Formatters
    "JSONFormatter",
    "TextFormatter",
    # Handlers
    "ConsoleHandler",
    "MemoryHandler",
]
