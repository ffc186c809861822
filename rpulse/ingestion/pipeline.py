"""Sequential processing of ``workflow_job`` lifecycle events.

Each event moves through four stages: the job state upsert, an optional queue
latency sample, a read of current demand, and a snapshot append. Stages commit
independently; a failure leaves earlier stages' effects in place.
"""

from __future__ import annotations

import dataclasses as dc
import datetime as dt
import typing as typ

from rpulse.common.time import utcnow
from rpulse.history.models import HistoricalEntry
from rpulse.ingestion.errors import IngestionFailedError, IngestionStage
from rpulse.ingestion.observability import IngestionEventLogger
from rpulse.jobs.models import JobStatus, RunnerType, WorkflowJobState
from rpulse.store.errors import PersistenceError

if typ.TYPE_CHECKING:
    from rpulse.common.time import Clock
    from rpulse.jobs.models import WorkflowJobEvent
    from rpulse.store.protocol import (
        JobRecordStore,
        QueueLatencyRecorder,
        SnapshotStore,
    )


@dc.dataclass(frozen=True, slots=True)
class IngestionPipelineDependencies:
    """Stores the pipeline writes to and reads from."""

    job_store: JobRecordStore
    latency_recorder: QueueLatencyRecorder
    snapshot_store: SnapshotStore


@dc.dataclass(frozen=True, slots=True)
class IngestionResult:
    """Outcome of one processed event."""

    job: WorkflowJobState
    snapshot: HistoricalEntry
    queue_time: dt.timedelta | None = None


class IngestionPipeline:
    """Apply lifecycle events to job state and append demand snapshots."""

    def __init__(
        self,
        dependencies: IngestionPipelineDependencies,
        *,
        clock: Clock = utcnow,
        event_logger: IngestionEventLogger | None = None,
    ) -> None:
        """Bind the stores, the snapshot clock and the event logger."""
        self._deps = dependencies
        self._clock = clock
        self._event_logger = event_logger or IngestionEventLogger()

    async def ingest(self, event: WorkflowJobEvent) -> IngestionResult:
        """Process one trusted ``workflow_job`` event.

        Parameters
        ----------
        event : WorkflowJobEvent
            Decoded, signature-verified delivery.

        Returns
        -------
        IngestionResult
            The job state written and the snapshot appended.

        Raises
        ------
        IngestionFailedError
            When the upsert, the demand read or the snapshot append fails.
            Queue latency failures are logged and do not abort processing.

        """
        job = WorkflowJobState.from_event(event)

        try:
            await self._deps.job_store.upsert_job(job)
        except PersistenceError as exc:
            self._fail(job, IngestionStage.STATE, exc)

        queue_time = await self._sample_queue_time(job)

        try:
            snapshot = await self._current_demand()
        except PersistenceError as exc:
            self._fail(job, IngestionStage.COUNTS, exc)

        try:
            await self._deps.snapshot_store.append_snapshot(snapshot)
        except PersistenceError as exc:
            self._fail(job, IngestionStage.SNAPSHOT, exc)

        result = IngestionResult(job=job, snapshot=snapshot, queue_time=queue_time)
        self._event_logger.log_event_processed(result)
        return result

    def _fail(
        self, job: WorkflowJobState, stage: IngestionStage, exc: PersistenceError
    ) -> typ.NoReturn:
        self._event_logger.log_event_failed(job, stage, exc)
        raise IngestionFailedError.at_stage(stage, job.id) from exc

    async def _sample_queue_time(self, job: WorkflowJobState) -> dt.timedelta | None:
        if job.status != JobStatus.IN_PROGRESS:
            return None
        duration = job.queue_duration
        if duration is None:
            return None
        try:
            await self._deps.latency_recorder.record_queue_time(
                job.id, job.created_at, duration
            )
        except PersistenceError as exc:
            self._event_logger.log_queue_time_failed(job, exc)
            return None
        self._event_logger.log_queue_time_recorded(job, duration)
        return duration

    async def _current_demand(self) -> HistoricalEntry:
        store = self._deps.job_store
        self_hosted = await store.list_running_jobs(RunnerType.SELF_HOSTED)
        github_hosted = await store.list_running_jobs(RunnerType.GITHUB_HOSTED)
        queued = await store.count_queued_jobs()
        return HistoricalEntry(
            timestamp=self._clock(),
            count_self_hosted=len(self_hosted),
            count_github_hosted=len(github_hosted),
            count_queued=queued,
        )
