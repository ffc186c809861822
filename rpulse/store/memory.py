"""In-memory implementation of every storage capability.

Used by tests and local experiments; it mirrors the SQL stores' semantics
(natural-key upsert, append-only samples and snapshots, trailing windows)
without a database.
"""

from __future__ import annotations

import dataclasses as dc
import datetime as dt
import typing as typ

from rpulse.common.time import utcnow
from rpulse.history.models import HistoricalEntry, PeakDemand, RollupBucket
from rpulse.history.periods import Period, parse_period, window_start
from rpulse.jobs.models import JobStatus

if typ.TYPE_CHECKING:
    from rpulse.common.time import Clock
    from rpulse.jobs.models import RunnerType, WorkflowJobState

type JobKey = tuple[int, dt.datetime]


@dc.dataclass(frozen=True, slots=True)
class QueueTimeSample:
    """Recorded queue wait for one job start."""

    job_id: int
    job_created_at: dt.datetime
    duration_ms: int
    recorded_at: dt.datetime


class InMemoryDemandStore:
    """Job, latency, snapshot and peak storage held in process memory."""

    def __init__(self, *, clock: Clock = utcnow) -> None:
        """Start with empty tables; ``clock`` anchors trailing windows."""
        self._clock = clock
        self.jobs: dict[JobKey, WorkflowJobState] = {}
        self.queue_samples: list[QueueTimeSample] = []
        self.snapshots: list[HistoricalEntry] = []
        self.rollups: dict[Period, list[RollupBucket]] = {
            period: [] for period in Period if period.uses_rollup
        }

    async def upsert_job(self, job: WorkflowJobState) -> None:
        """Insert or replace the job stored under ``(id, created_at)``."""
        self.jobs[(job.id, job.created_at)] = job

    async def count_queued_jobs(self) -> int:
        """Return the number of queued jobs."""
        return sum(1 for job in self.jobs.values() if job.status == JobStatus.QUEUED)

    async def list_running_jobs(self, runner_type: RunnerType) -> list[int]:
        """Return ids of in-progress jobs on ``runner_type`` runners."""
        return sorted(
            job.id
            for job in self.jobs.values()
            if job.status == JobStatus.IN_PROGRESS and job.runner_type == runner_type
        )

    async def record_queue_time(
        self, job_id: int, created_at: dt.datetime, duration: dt.timedelta
    ) -> None:
        """Append a queue wait sample."""
        self.queue_samples.append(
            QueueTimeSample(
                job_id=job_id,
                job_created_at=created_at,
                duration_ms=int(duration / dt.timedelta(milliseconds=1)),
                recorded_at=self._clock(),
            )
        )

    async def average_queue_time(self) -> dt.timedelta:
        """Return the truncated mean wait, or zero without samples."""
        if not self.queue_samples:
            return dt.timedelta(0)
        total = sum(sample.duration_ms for sample in self.queue_samples)
        return dt.timedelta(milliseconds=int(total / len(self.queue_samples)))

    async def append_snapshot(self, entry: HistoricalEntry) -> None:
        """Append a demand snapshot."""
        self.snapshots.append(entry)

    def add_rollup(self, period: Period, bucket: RollupBucket) -> None:
        """Seed a rollup row, standing in for the external materialiser."""
        self.rollups[period].append(bucket)

    def _rollup_rows(self, period: Period) -> list[RollupBucket]:
        since = window_start(period, self._clock())
        rows = [row for row in self.rollups[period] if row.bucket >= since]
        return sorted(rows, key=lambda row: row.bucket)

    def _snapshot_rows(self) -> list[HistoricalEntry]:
        since = window_start(Period.HOUR, self._clock())
        rows = [entry for entry in self.snapshots if entry.timestamp >= since]
        return sorted(rows, key=lambda entry: entry.timestamp)

    async def historical_by_period(
        self, period: Period | str
    ) -> list[HistoricalEntry]:
        """Return the trailing series for ``period`` in timestamp order."""
        resolved = parse_period(period)
        if resolved.uses_rollup:
            return [row.to_entry() for row in self._rollup_rows(resolved)]
        return self._snapshot_rows()

    async def peak_demand(self, period: Period | str) -> PeakDemand:
        """Return the maximum total demand; earliest timestamp wins ties."""
        resolved = parse_period(period)
        if resolved.uses_rollup:
            candidates = [
                (row.peak_total, row.bucket) for row in self._rollup_rows(resolved)
            ]
        else:
            candidates = [
                (entry.total, entry.timestamp) for entry in self._snapshot_rows()
            ]
        if not candidates:
            return PeakDemand()
        count, timestamp = min(candidates, key=lambda item: (-item[0], item[1]))
        return PeakDemand(count=count, timestamp=timestamp)


__all__ = ["InMemoryDemandStore", "QueueTimeSample"]
