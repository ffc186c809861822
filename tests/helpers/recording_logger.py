"""Capture rpulse log calls without a running femtologging worker."""

from __future__ import annotations

import contextlib
import dataclasses
import importlib
import typing as typ


@dataclasses.dataclass(slots=True)
class LogRecord:
    """One captured log call."""

    level: str
    message: str
    exc_info: object | None = None


class RecordingLogger:
    """femtologging-compatible logger that keeps every call in memory."""

    def __init__(self) -> None:
        """Start with no records."""
        self.records: list[LogRecord] = []

    def log(
        self,
        level: str,
        message: str,
        /,
        *,
        exc_info: object | None = None,
        stack_info: bool = False,
    ) -> str:
        """Record the call and echo the message like femtologging does."""
        del stack_info
        self.records.append(LogRecord(str(level), message, exc_info))
        return message

    def messages(self, level: str | None = None) -> list[str]:
        """Return captured messages, optionally only those at ``level``."""
        return [
            record.message
            for record in self.records
            if level is None or record.level == level
        ]


@contextlib.contextmanager
def capture_module_logs(module_name: str) -> typ.Iterator[RecordingLogger]:
    """Swap ``module_name.logger`` for a :class:`RecordingLogger`."""
    module = importlib.import_module(module_name)
    original = module.logger
    recorder = RecordingLogger()
    module.logger = recorder
    try:
        yield recorder
    finally:
        module.logger = original
