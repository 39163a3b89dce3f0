"""Tests for error log sinks."""

import re

from autoflow.domain.ports.error_log import ErrorLogEntry
from autoflow.infrastructure.persistence.error_log import (
    FileErrorLog,
    MemoryErrorLog,
    entry_from_exception,
    format_entry,
)


def _raise_and_capture() -> BaseException:
    try:
        raise ValueError("provider exploded")
    except ValueError as e:
        return e


class TestEntryFromException:
    def test_fields(self):
        entry = entry_from_exception(_raise_and_capture())

        assert entry.message == "provider exploded"
        assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z", entry.timestamp)
        assert "ValueError: provider exploded" in entry.stack
        assert "_raise_and_capture" in entry.stack

    def test_empty_message_uses_type_name(self):
        assert entry_from_exception(RuntimeError()).message == "RuntimeError"


class TestFormatEntry:
    def test_block_layout(self):
        entry = ErrorLogEntry(timestamp="2024-03-01T08:00:00.000Z", message="boom", stack="Traceback\n  line\n")
        assert format_entry(entry) == (
            "\n---\nTimestamp: 2024-03-01T08:00:00.000Z\nError: boom\nStack Trace:\nTraceback\n  line\n---"
        )


class TestFileErrorLog:
    def test_appends_entries(self, tmp_path):
        log_file = tmp_path / "logs" / "latest.log"
        sink = FileErrorLog(log_file)

        sink.record(ErrorLogEntry(timestamp="t1", message="first", stack="s1"))
        sink.record(ErrorLogEntry(timestamp="t2", message="second", stack="s2"))

        text = log_file.read_text(encoding="utf-8")
        assert text.count("Timestamp:") == 2
        assert text.index("Error: first") < text.index("Error: second")

    def test_write_failure_is_swallowed(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("x", encoding="utf-8")
        sink = FileErrorLog(blocker / "latest.log")

        sink.record(ErrorLogEntry(timestamp="t", message="m", stack="s"))


class TestMemoryErrorLog:
    def test_keeps_entries(self):
        sink = MemoryErrorLog()
        entry = ErrorLogEntry(timestamp="t", message="m", stack="s")
        sink.record(entry)
        assert sink.entries == [entry]
