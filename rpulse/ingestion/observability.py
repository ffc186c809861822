"""Structured log events for webhook ingestion.

Events are emitted as ``[<event type>] key=value ...`` lines so log
aggregators can count processed deliveries and alert on failing stages.
"""

from __future__ import annotations

import enum
import typing as typ

from rpulse.logging import (
    format_log_message,
    get_logger,
    log_debug,
    log_exception,
    log_info,
    log_warning,
)

if typ.TYPE_CHECKING:
    import datetime as dt

    from rpulse.ingestion.errors import IngestionStage
    from rpulse.ingestion.pipeline import IngestionResult
    from rpulse.jobs.models import WorkflowJobState

logger = get_logger(__name__)


class IngestionEventType(enum.StrEnum):
    """Structured log event types for ingestion observability."""

    EVENT_PROCESSED = "ingestion.event.processed"
    EVENT_FAILED = "ingestion.event.failed"
    QUEUE_TIME_RECORDED = "ingestion.queue_time.recorded"
    QUEUE_TIME_FAILED = "ingestion.queue_time.failed"


class IngestionEventLogger:
    """Emit structured ingestion events.

    Processed events log at INFO, skipped latency samples at WARNING (the
    pipeline carries on) and failed stages at ERROR.
    """

    def log_event_processed(self, result: IngestionResult) -> None:
        """Log a delivery that went through every stage."""
        snapshot = result.snapshot
        log_info(
            logger,
            "[%s] job_id=%d status=%s runner_type=%s count_self_hosted=%d "
            "count_github_hosted=%d count_queued=%d",
            IngestionEventType.EVENT_PROCESSED,
            result.job.id,
            result.job.status,
            result.job.runner_type,
            snapshot.count_self_hosted,
            snapshot.count_github_hosted,
            snapshot.count_queued,
        )

    def log_event_failed(
        self,
        job: WorkflowJobState,
        stage: IngestionStage,
        error: BaseException,
    ) -> None:
        """Log a delivery abandoned at ``stage``."""
        message = format_log_message(
            "[%s] job_id=%d status=%s stage=%s error_type=%s error_message=%s",
            IngestionEventType.EVENT_FAILED,
            job.id,
            job.status,
            stage,
            type(error).__name__,
            str(error),
        )
        log_exception(logger, message, error)

    def log_queue_time_recorded(
        self, job: WorkflowJobState, duration: dt.timedelta
    ) -> None:
        """Log a recorded queue wait sample."""
        log_debug(
            logger,
            "[%s] job_id=%d runner_type=%s duration_ms=%d",
            IngestionEventType.QUEUE_TIME_RECORDED,
            job.id,
            job.runner_type,
            int(duration.total_seconds() * 1000),
        )

    def log_queue_time_failed(
        self, job: WorkflowJobState, error: BaseException
    ) -> None:
        """Log a queue wait sample that could not be stored."""
        log_warning(
            logger,
            "[%s] job_id=%d error_type=%s error_message=%s",
            IngestionEventType.QUEUE_TIME_FAILED,
            job.id,
            type(error).__name__,
            str(error),
            exc_info=error,
        )
