"""Core logging interfaces and data structures for CrisisNet.

This module defines the logging interfaces, data structures and
configuration used across the mesh, routing and simulation packages.
Every module obtains its logger through :func:`get_logger`.
"""

import json
import os
import sys
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class LogLevel(Enum):
    """Log levels."""

    TRACE = "trace"
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


LEVEL_ORDER: Dict[LogLevel, int] = {level: i for i, level in enumerate(LogLevel)}


@dataclass
class LogContext:
    """Log context information."""

    node_id: Optional[str] = None
    component: Optional[str] = None
    operation: Optional[str] = None
    request_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert context to dictionary."""
        return {
            "node_id": self.node_id,
            "component": self.component,
            "operation": self.operation,
            "request_id": self.request_id,
            "metadata": self.metadata,
        }

    def merged_with(self, other: "LogContext") -> "LogContext":
        """Return a context where fields of ``self`` override ``other``."""
        return LogContext(
            node_id=self.node_id or other.node_id,
            component=self.component or other.component,
            operation=self.operation or other.operation,
            request_id=self.request_id or other.request_id,
            metadata={**other.metadata, **self.metadata},
        )


@dataclass
class LogEntry:
    """Log entry data structure."""

    timestamp: float
    level: LogLevel
    message: str
    logger_name: str
    context: LogContext
    exception: Optional[BaseException] = None
    extra: Dict[str, Any] = field(default_factory=dict)
    thread_id: Optional[int] = None
    process_id: Optional[int] = None

    def __post_init__(self):
        if self.thread_id is None:
            self.thread_id = threading.get_ident()
        if self.process_id is None:
            self.process_id = os.getpid()

    def to_dict(self) -> Dict[str, Any]:
        """Convert log entry to dictionary."""
        return {
            "timestamp": self.timestamp,
            "level": self.level.value,
            "message": self.message,
            "logger_name": self.logger_name,
            "context": self.context.to_dict(),
            "exception": str(self.exception) if self.exception else None,
            "extra": self.extra,
            "thread_id": self.thread_id,
            "process_id": self.process_id,
        }

    def to_json(self) -> str:
        """Convert log entry to JSON string."""
        return json.dumps(self.to_dict(), default=str)


class LogConfig:
    """Log configuration."""

    def __init__(
        self,
        name: str = "crisisnet",
        level: LogLevel = LogLevel.WARNING,
        format_type: str = "text",
        handlers: List[str] = None,
    ):
        self.name = name
        self.level = level
        self.format_type = format_type
        self.handlers = handlers or ["console"]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LogConfig":
        """Create log configuration from a plain dictionary."""
        level = data.get("level", LogLevel.WARNING)
        if isinstance(level, str):
            level = LogLevel(level.lower())
        return cls(
            name=data.get("name", "crisisnet"),
            level=level,
            format_type=data.get("format_type", "text"),
            handlers=data.get("handlers"),
        )


class LogFilter(ABC):
    """Abstract log filter."""

    @abstractmethod
    def filter(self, entry: LogEntry) -> bool:
        """Filter log entry. Return True to allow, False to block."""
        pass


class LogFormatter(ABC):
    """Abstract log formatter."""

    @abstractmethod
    def format(self, entry: LogEntry) -> str:
        """Format log entry."""
        pass


class LogHandler(ABC):
    """Abstract log handler."""

    def __init__(self, name: str = None):
        self.name = name or self.__class__.__name__
        self.formatter: Optional[LogFormatter] = None
        self.filters: List[LogFilter] = []
        self.level: LogLevel = LogLevel.TRACE
        self._lock = threading.RLock()

    def set_formatter(self, formatter: LogFormatter) -> None:
        """Set formatter."""
        with self._lock:
            self.formatter = formatter

    def add_filter(self, filter_obj: LogFilter) -> None:
        """Add filter."""
        with self._lock:
            self.filters.append(filter_obj)

    def set_level(self, level: LogLevel) -> None:
        """Set log level."""
        with self._lock:
            self.level = level

    def should_handle(self, entry: LogEntry) -> bool:
        """Check if handler should handle the entry."""
        with self._lock:
            if LEVEL_ORDER[entry.level] < LEVEL_ORDER[self.level]:
                return False

            for filter_obj in self.filters:
                if not filter_obj.filter(entry):
                    return False

            return True

    def format_entry(self, entry: LogEntry) -> str:
        """Format an entry with the configured formatter or a plain default."""
        if self.formatter:
            return self.formatter.format(entry)
        return f"{entry.timestamp} [{entry.level.value.upper()}] {entry.logger_name}: {entry.message}"

    @abstractmethod
    def emit(self, entry: LogEntry) -> None:
        """Emit log entry."""
        pass

    def handle(self, entry: LogEntry) -> None:
        """Handle log entry."""
        if self.should_handle(entry):
            self.emit(entry)

    def close(self) -> None:
        """Release handler resources."""
        pass


class LogManager:
    """Log manager for orchestrating logging operations."""

    def __init__(self, config: LogConfig = None):
        self.config = config or LogConfig()
        self.loggers: Dict[str, "CrisisNetLogger"] = {}
        self.handlers: Dict[str, LogHandler] = {}
        self._lock = threading.RLock()
        self._context = LogContext()

        self._setup_defaults()

    def _setup_defaults(self) -> None:
        """Setup default logging components."""
        from .formatters import JSONFormatter, TextFormatter
        from .handlers import ConsoleHandler, MemoryHandler

        formatter = JSONFormatter() if self.config.format_type == "json" else TextFormatter()

        console = ConsoleHandler(stream=sys.stderr)
        console.set_formatter(formatter)
        self.add_handler("console", console)

        memory = MemoryHandler()
        memory.set_formatter(formatter)
        self.add_handler("memory", memory)

    def get_logger(self, name: str) -> "CrisisNetLogger":
        """Get logger."""
        with self._lock:
            if name not in self.loggers:
                self.loggers[name] = CrisisNetLogger(name, self, self.config.level)
            return self.loggers[name]

    def add_handler(self, name: str, handler: LogHandler) -> None:
        """Add handler."""
        with self._lock:
            self.handlers[name] = handler

    def remove_handler(self, name: str) -> None:
        """Remove handler."""
        with self._lock:
            handler = self.handlers.pop(name, None)
            if handler is not None:
                handler.close()

    def set_context(self, context: LogContext) -> None:
        """Set global context."""
        with self._lock:
            self._context = context

    def get_context(self) -> LogContext:
        """Get global context."""
        with self._lock:
            return self._context

    def log(
        self,
        level: LogLevel,
        message: str,
        logger_name: str = "root",
        context: LogContext = None,
        exception: BaseException = None,
        extra: Dict[str, Any] = None,
    ) -> None:
        """Log a message."""
        with self._lock:
            if context is None:
                context = self._context
            else:
                context = context.merged_with(self._context)

            entry = LogEntry(
                timestamp=time.time(),
                level=level,
                message=message,
                logger_name=logger_name,
                context=context,
                exception=exception,
                extra=extra or {},
            )

            for handler_name in self.config.handlers:
                if handler_name in self.handlers:
                    self.handlers[handler_name].handle(entry)

    def shutdown(self) -> None:
        """Shutdown log manager."""
        with self._lock:
            for handler in self.handlers.values():
                handler.close()

            self.loggers.clear()
            self.handlers.clear()


class CrisisNetLogger:
    """CrisisNet logger implementation."""

    def __init__(self, name: str, manager: LogManager, level: LogLevel = LogLevel.INFO):
        self.name = name
        self.manager = manager
        self.level = level
        self._lock = threading.RLock()

    def set_level(self, level: LogLevel) -> None:
        """Set log level."""
        with self._lock:
            self.level = level

    def is_enabled_for(self, level: LogLevel) -> bool:
        """Check if logger is enabled for level."""
        with self._lock:
            return LEVEL_ORDER[level] >= LEVEL_ORDER[self.level]

    def log(
        self,
        level: LogLevel,
        message: str,
        context: LogContext = None,
        exception: BaseException = None,
        extra: Dict[str, Any] = None,
    ) -> None:
        """Log a message."""
        if self.manager is None:
            # a fresh manager re-binds known loggers and resets their level
            self.manager = get_log_manager()
        if self.is_enabled_for(level):
            self.manager.log(
                level=level,
                message=message,
                logger_name=self.name,
                context=context,
                exception=exception,
                extra=extra,
            )

    def trace(self, message: str, **kwargs) -> None:
        """Log trace message."""
        self.log(LogLevel.TRACE, message, **kwargs)

    def debug(self, message: str, **kwargs) -> None:
        """Log debug message."""
        self.log(LogLevel.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs) -> None:
        """Log info message."""
        self.log(LogLevel.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs) -> None:
        """Log warning message."""
        self.log(LogLevel.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs) -> None:
        """Log error message."""
        self.log(LogLevel.ERROR, message, **kwargs)

    def critical(self, message: str, **kwargs) -> None:
        """Log critical message."""
        self.log(LogLevel.CRITICAL, message, **kwargs)

    def exception(self, message: str, **kwargs) -> None:
        """Log exception message."""
        exc_info = sys.exc_info()
        if exc_info[0] is not None:
            kwargs["exception"] = exc_info[1]
        self.log(LogLevel.ERROR, message, **kwargs)


# Global log manager instance
_global_manager: Optional[LogManager] = None
_known_loggers: Dict[str, CrisisNetLogger] = {}


def _bind_known_loggers(manager: LogManager) -> None:
    for name, logger in _known_loggers.items():
        logger.manager = manager
        logger.set_level(manager.config.level)
        manager.loggers[name] = logger


def get_log_manager() -> LogManager:
    """Get the global log manager, creating it on first use."""
    global _global_manager
    if _global_manager is None:
        _global_manager = LogManager()
        _bind_known_loggers(_global_manager)
    return _global_manager


def get_logger(name: str = "root") -> CrisisNetLogger:
    """Get logger instance.

    Module-level loggers survive ``setup_logging`` and ``shutdown_logging``:
    they are re-bound to whichever manager is current.
    """
    logger = _known_loggers.get(name)
    if logger is None:
        logger = get_log_manager().get_logger(name)
        _known_loggers[name] = logger
    return logger


def setup_logging(config: LogConfig) -> LogManager:
    """Setup logging with configuration."""
    global _global_manager
    if _global_manager is not None:
        _global_manager.shutdown()
    _global_manager = LogManager(config)
    _bind_known_loggers(_global_manager)
    return _global_manager


def shutdown_logging() -> None:
    """Shutdown logging."""
    global _global_manager
    if _global_manager is not None:
        _global_manager.shutdown()
        _global_manager = None
    for logger in _known_loggers.values():
        logger.manager = None
