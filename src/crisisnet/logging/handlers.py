"""Log handlers for CrisisNet."""

import sys
from typing import Any, Dict, List

from .core import LogEntry, LogHandler


class ConsoleHandler(LogHandler):
    """Console log handler."""

    def __init__(self, stream: Any = None):
        super().__init__()
        self.stream = stream or sys.stdout

    def emit(self, entry: LogEntry) -> None:
        """Emit log entry to console."""
        with self._lock:
            if self.stream is None:
                return
            self.stream.write(self.format_entry(entry) + "\n")
            self.stream.flush()

    def close(self) -> None:
        """Close handler. Standard streams are flushed, never closed."""
        with self._lock:
            if self.stream is not None:
                if self.stream in (sys.stdout, sys.stderr):
                    self.stream.flush()
                else:
                    self.stream.close()
                self.stream = None


class MemoryHandler(LogHandler):
    """Memory log handler keeping the most recent entries."""

    def __init__(self, max_size: int = 1000):
        super().__init__()
        self.max_size = max_size
        self.buffer: List[Dict[str, Any]] = []

    def emit(self, entry: LogEntry) -> None:
        """Emit log entry to memory."""
        with self._lock:
            self.buffer.append(
                {
                    "timestamp": entry.timestamp,
                    "level": entry.level.value,
                    "message": entry.message,
                    "logger_name": entry.logger_name,
                    "formatted": self.format_entry(entry),
                }
            )

            if len(self.buffer) > self.max_size:
                self.buffer.pop(0)

    def get_logs(self) -> List[Dict[str, Any]]:
        """Get all logs from memory."""
        with self._lock:
            return self.buffer.copy()

    def clear_logs(self) -> None:
        """Clear all logs from memory."""
        with self._lock:
            self.buffer.clear()

    def close(self) -> None:
        """Close handler."""
        with self._lock:
            self.buffer.clear()
