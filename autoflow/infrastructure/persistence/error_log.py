"""Error log sinks - durable record of failed flow runs."""

import logging
import threading
import traceback
from datetime import datetime, timezone
from pathlib import Path

from autoflow.domain.ports.error_log import ErrorLogEntry

logger = logging.getLogger(__name__)


def entry_from_exception(error: BaseException) -> ErrorLogEntry:
    """Build a log entry stamped now (UTC, ISO 8601)."""
    return ErrorLogEntry(
        timestamp=datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        message=str(error) or type(error).__name__,
        stack="".join(traceback.format_exception(error)),
    )


def format_entry(entry: ErrorLogEntry) -> str:
    return (
        "\n---\n"
        f"Timestamp: {entry.timestamp}\n"
        f"Error: {entry.message}\n"
        "Stack Trace:\n"
        f"{entry.stack.rstrip()}\n"
        "---"
    )


class FileErrorLog:
    """Appends formatted entries to a plain-text log file."""

    def __init__(self, log_file: Path) -> None:
        self._file = Path(log_file)
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._file

    def record(self, entry: ErrorLogEntry) -> None:
        """Append entry (thread-safe). A failing log write is reported, never raised."""
        try:
            with self._lock:
                self._file.parent.mkdir(parents=True, exist_ok=True)
                with open(self._file, "a", encoding="utf-8") as f:
                    f.write(format_entry(entry))
        except OSError:
            logger.warning("Failed to write error log %s", self._file, exc_info=True)


class MemoryErrorLog:
    """Keeps entries in memory."""

    def __init__(self) -> None:
        self.entries: list[ErrorLogEntry] = []

    def record(self, entry: ErrorLogEntry) -> None:
        self.entries.append(entry)
