"""Storage capabilities consumed by the ingestion pipeline and demand service.

Each capability is a ``typing.Protocol`` so that SQLAlchemy-backed stores and
the in-memory fake in :mod:`rpulse.store.memory` are interchangeable. All
methods raise :class:`rpulse.store.errors.PersistenceError` when the backend
fails; none of them return partial results.
"""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    import datetime as dt

    from rpulse.history.models import HistoricalEntry, PeakDemand
    from rpulse.history.periods import Period
    from rpulse.jobs.models import RunnerType, WorkflowJobState


@typ.runtime_checkable
class JobRecordStore(typ.Protocol):
    """Durable, idempotent job state keyed by ``(id, created_at)``."""

    async def upsert_job(self, job: WorkflowJobState) -> None:
        """Insert ``job`` or overwrite the mutable fields of the existing row."""
        ...

    async def count_queued_jobs(self) -> int:
        """Return the number of jobs whose status is ``queued``."""
        ...

    async def list_running_jobs(self, runner_type: RunnerType) -> list[int]:
        """Return ids of ``in_progress`` jobs on ``runner_type`` runners."""
        ...


@typ.runtime_checkable
class QueueLatencyRecorder(typ.Protocol):
    """Append-only log of queue wait samples."""

    async def record_queue_time(
        self, job_id: int, created_at: dt.datetime, duration: dt.timedelta
    ) -> None:
        """Append one sample; repeated calls append repeated samples."""
        ...

    async def average_queue_time(self) -> dt.timedelta:
        """Return the mean recorded wait, or zero when nothing was recorded."""
        ...


@typ.runtime_checkable
class SnapshotStore(typ.Protocol):
    """Append-only demand snapshots and their period-scoped history."""

    async def append_snapshot(self, entry: HistoricalEntry) -> None:
        """Persist one snapshot row."""
        ...

    async def historical_by_period(self, period: Period) -> list[HistoricalEntry]:
        """Return the series for ``period`` ordered by ascending timestamp.

        ``Period.HOUR`` reads raw snapshots; the other periods read the
        matching rollup aggregate with averaged counts rounded to integers.
        """
        ...


@typ.runtime_checkable
class PeakDemandReader(typ.Protocol):
    """Peak concurrent demand over a trailing period."""

    async def peak_demand(self, period: Period) -> PeakDemand:
        """Return the maximum total demand and when it occurred."""
        ...


__all__ = [
    "JobRecordStore",
    "PeakDemandReader",
    "QueueLatencyRecorder",
    "SnapshotStore",
]
