"""Unit tests for the demand snapshot service."""

from __future__ import annotations

import asyncio
import datetime as dt
import typing as typ
from unittest import mock

import pytest

from rpulse.demand import (
    AggregationFailedError,
    DemandSnapshotDependencies,
    DemandSnapshotService,
    resolve_snapshot_period,
)
from rpulse.history import (
    HistoricalEntry,
    InvalidPeriodError,
    PeakDemand,
    Period,
    RollupBucket,
)
from rpulse.jobs import JobStatus, RunnerType, WorkflowJobState
from rpulse.store import PersistenceError
from rpulse.store.memory import InMemoryDemandStore

if typ.TYPE_CHECKING:
    from rpulse.common.time import Clock

CREATED_AT = dt.datetime(2025, 3, 24, 11, 0, tzinfo=dt.UTC)


@pytest.fixture
def store(fixed_clock: Clock) -> InMemoryDemandStore:
    """Return an in-memory store anchored at the fixed clock."""
    return InMemoryDemandStore(clock=fixed_clock)


@pytest.fixture
def service(store: InMemoryDemandStore) -> DemandSnapshotService:
    """Return a service reading every capability from ``store``."""
    return DemandSnapshotService(
        DemandSnapshotDependencies(
            job_store=store,
            latency_recorder=store,
            snapshot_store=store,
            peak_reader=store,
        )
    )


async def _seed(store: InMemoryDemandStore, now: dt.datetime) -> None:
    jobs = [
        (1, JobStatus.IN_PROGRESS, RunnerType.SELF_HOSTED),
        (2, JobStatus.IN_PROGRESS, RunnerType.GITHUB_HOSTED),
        (3, JobStatus.IN_PROGRESS, RunnerType.GITHUB_HOSTED),
        (4, JobStatus.QUEUED, RunnerType.SELF_HOSTED),
    ]
    for job_id, status, runner_type in jobs:
        await store.upsert_job(
            WorkflowJobState(
                id=job_id,
                created_at=CREATED_AT,
                status=status,
                runner_type=runner_type,
            )
        )
    await store.record_queue_time(1, CREATED_AT, dt.timedelta(seconds=3))
    await store.append_snapshot(
        HistoricalEntry(
            timestamp=now - dt.timedelta(minutes=5),
            count_self_hosted=1,
            count_github_hosted=2,
            count_queued=1,
        )
    )


@pytest.mark.parametrize(
    ("value", "expected"),
    [("all", Period.HOUR), ("hour", Period.HOUR), ("month", Period.MONTH)],
)
def test_resolve_snapshot_period(value: str, expected: Period) -> None:
    """``all`` is an alias for the hour view."""
    assert resolve_snapshot_period(value) is expected


@pytest.mark.asyncio
async def test_snapshot_combines_all_reads(
    service: DemandSnapshotService, store: InMemoryDemandStore, fixed_clock: Clock
) -> None:
    """Every field of the payload comes from the stores."""
    now = fixed_clock()
    await _seed(store, now)

    snapshot = await service.get_snapshot()
    payload = snapshot.to_payload()

    assert payload == {
        "current_count_github_hosted": 2,
        "current_count_self_hosted": 1,
        "current_queued_count": 1,
        "historical_data": [
            {
                "timestamp": "2025-03-24T11:55:00Z",
                "count_self_hosted": 1,
                "count_github_hosted": 2,
                "count_queued": 1,
            }
        ],
        "avg_queue_time_ms": 3000,
        "peak_demand": 4,
        "peak_demand_timestamp": "2025-03-24T11:55:00Z",
        "period": "all",
    }


@pytest.mark.asyncio
async def test_empty_stores_render_zero_values(
    service: DemandSnapshotService,
) -> None:
    """No data is not an error: zeros, empty history and an empty timestamp."""
    payload = (await service.get_snapshot("hour")).to_payload()

    assert payload["historical_data"] == []
    assert payload["avg_queue_time_ms"] == 0
    assert payload["peak_demand"] == 0
    assert payload["peak_demand_timestamp"] == ""
    assert payload["period"] == "hour"


@pytest.mark.asyncio
async def test_rollup_period_reads_rollup_history(
    service: DemandSnapshotService, store: InMemoryDemandStore, fixed_clock: Clock
) -> None:
    """Requesting ``week`` serves the weekly rollup."""
    bucket = fixed_clock() - dt.timedelta(days=2)
    store.add_rollup(
        Period.WEEK,
        RollupBucket(
            bucket=bucket,
            avg_self_hosted=0.5,
            avg_github_hosted=1.4,
            avg_queued=2.6,
            peak_total=9,
        ),
    )

    snapshot = await service.get_snapshot("week")

    assert snapshot.historical_data == [
        HistoricalEntry(
            timestamp=bucket, count_self_hosted=1, count_github_hosted=1, count_queued=3
        )
    ]
    assert snapshot.peak_demand == PeakDemand(count=9, timestamp=bucket)


@pytest.mark.asyncio
async def test_invalid_period_fails_before_reading() -> None:
    """Unknown periods are rejected without touching the stores."""
    job_store = mock.AsyncMock()
    service = DemandSnapshotService(
        DemandSnapshotDependencies(
            job_store=job_store,
            latency_recorder=mock.AsyncMock(),
            snapshot_store=mock.AsyncMock(),
            peak_reader=mock.AsyncMock(),
        )
    )

    with pytest.raises(InvalidPeriodError):
        await service.get_snapshot("fortnight")

    job_store.count_queued_jobs.assert_not_awaited()
    job_store.list_running_jobs.assert_not_awaited()


@pytest.mark.parametrize(
    "method",
    [
        "historical_by_period",
        "average_queue_time",
        "peak_demand",
        "list_running_jobs",
        "count_queued_jobs",
    ],
)
@pytest.mark.asyncio
async def test_any_failed_read_fails_the_snapshot(
    service: DemandSnapshotService, store: InMemoryDemandStore, method: str
) -> None:
    """One failing read means no snapshot at all."""
    cause = PersistenceError.for_operation(method)
    with (
        mock.patch.object(store, method, side_effect=cause),
        pytest.raises(AggregationFailedError) as excinfo,
    ):
        await service.get_snapshot()

    assert cause in excinfo.value.exceptions


@pytest.mark.asyncio
async def test_single_runner_type_failure_fails_the_snapshot(
    service: DemandSnapshotService, store: InMemoryDemandStore
) -> None:
    """A failure for only the self-hosted count still aborts the snapshot."""
    original = store.list_running_jobs

    async def fail_self_hosted(runner_type: RunnerType) -> list[int]:
        if runner_type is RunnerType.SELF_HOSTED:
            raise PersistenceError.for_operation("list_running_jobs")
        return await original(runner_type)

    with (
        mock.patch.object(store, "list_running_jobs", side_effect=fail_self_hosted),
        pytest.raises(AggregationFailedError) as excinfo,
    ):
        await service.get_snapshot("hour")

    assert len(excinfo.value.exceptions) == 1


@pytest.mark.asyncio
async def test_cancellation_is_not_reported_as_aggregation_failure(
    service: DemandSnapshotService, store: InMemoryDemandStore
) -> None:
    """Non-Exception failures propagate unchanged."""
    with (
        mock.patch.object(
            store, "average_queue_time", side_effect=asyncio.CancelledError()
        ),
        pytest.raises(asyncio.CancelledError),
    ):
        await service.get_snapshot()
