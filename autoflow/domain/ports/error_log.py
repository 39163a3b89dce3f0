"""Error Log Port - durable sink for failed flow runs."""

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class ErrorLogEntry:
    """One failure: ISO timestamp, message and formatted stack."""

    timestamp: str
    message: str
    stack: str


class ErrorLogSink(Protocol):
    """Append-only error log."""

    def record(self, entry: ErrorLogEntry) -> None:
        ...
