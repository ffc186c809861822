"""Errors raised by the demand aggregation service."""

from __future__ import annotations


class AggregationFailedError(Exception):
    """Raised when any of the concurrent demand reads fails.

    No partial snapshot is produced; ``exceptions`` holds every read failure.
    """

    def __init__(self, exceptions: tuple[BaseException, ...]) -> None:
        """Keep the underlying failures for logging and inspection."""
        self.exceptions = exceptions
        names = ", ".join(type(exc).__name__ for exc in exceptions)
        super().__init__(
            f"demand aggregation failed: {len(exceptions)} read(s) failed ({names})"
        )
