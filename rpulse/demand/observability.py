"""Structured log events for demand snapshot reads."""

from __future__ import annotations

import enum

from rpulse.logging import format_log_message, get_logger, log_exception

logger = get_logger(__name__)


class DemandEventType(enum.StrEnum):
    """Structured log event types for the demand service."""

    SNAPSHOT_FAILED = "demand.snapshot.failed"


class DemandEventLogger:
    """Emit structured demand events."""

    def log_snapshot_failed(
        self, period: str, reads: dict[str, BaseException]
    ) -> None:
        """Log every failed read of an abandoned snapshot."""
        for read, error in reads.items():
            message = format_log_message(
                "[%s] period=%s read=%s failed_reads=%d error_type=%s "
                "error_message=%s",
                DemandEventType.SNAPSHOT_FAILED,
                period,
                read,
                len(reads),
                type(error).__name__,
                str(error),
            )
            log_exception(logger, message, error)
