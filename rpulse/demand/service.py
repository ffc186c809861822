"""Concurrent aggregation of live and historical runner demand."""

from __future__ import annotations

import asyncio
import dataclasses as dc
import datetime as dt
import typing as typ

import msgspec

from rpulse.demand.errors import AggregationFailedError
from rpulse.demand.observability import DemandEventLogger
from rpulse.history.periods import ALL_PERIODS_ALIAS, Period, parse_period
from rpulse.jobs.models import RunnerType

if typ.TYPE_CHECKING:
    from rpulse.history.models import HistoricalEntry, PeakDemand
    from rpulse.store.protocol import (
        JobRecordStore,
        PeakDemandReader,
        QueueLatencyRecorder,
        SnapshotStore,
    )

_ONE_MILLISECOND = dt.timedelta(milliseconds=1)


def resolve_snapshot_period(value: str) -> Period:
    """Map a requested period onto a :class:`Period`; ``all`` means ``hour``."""
    if value == ALL_PERIODS_ALIAS:
        return Period.HOUR
    return parse_period(value)


@dc.dataclass(frozen=True, slots=True)
class DemandSnapshotDependencies:
    """Read-side collaborators of the demand service."""

    job_store: JobRecordStore
    latency_recorder: QueueLatencyRecorder
    snapshot_store: SnapshotStore
    peak_reader: PeakDemandReader


@dc.dataclass(frozen=True, slots=True)
class DemandSnapshot:
    """Current and historical demand as seen by the dashboard."""

    period: str
    current_count_github_hosted: int
    current_count_self_hosted: int
    current_queued_count: int
    historical_data: list[HistoricalEntry]
    avg_queue_time: dt.timedelta
    peak_demand: PeakDemand

    @property
    def avg_queue_time_ms(self) -> int:
        """Return the average queue wait in whole milliseconds."""
        return self.avg_queue_time // _ONE_MILLISECOND

    def to_payload(self) -> dict[str, typ.Any]:
        """Render the JSON document returned by ``/running-count``."""
        peak_timestamp = self.peak_demand.timestamp
        return {
            "current_count_github_hosted": self.current_count_github_hosted,
            "current_count_self_hosted": self.current_count_self_hosted,
            "current_queued_count": self.current_queued_count,
            "historical_data": msgspec.to_builtins(self.historical_data),
            "avg_queue_time_ms": self.avg_queue_time_ms,
            "peak_demand": self.peak_demand.count,
            "peak_demand_timestamp": (
                "" if peak_timestamp is None else msgspec.to_builtins(peak_timestamp)
            ),
            "period": self.period,
        }


_READS = (
    "historical_data",
    "avg_queue_time",
    "peak_demand",
    "running_github_hosted",
    "running_self_hosted",
    "queued_count",
)


class DemandSnapshotService:
    """Fan out the six demand reads and combine them all-or-nothing."""

    def __init__(
        self,
        dependencies: DemandSnapshotDependencies,
        *,
        event_logger: DemandEventLogger | None = None,
    ) -> None:
        """Bind the read-side stores and event logger."""
        self._deps = dependencies
        self._event_logger = event_logger or DemandEventLogger()

    async def get_snapshot(self, period: str = ALL_PERIODS_ALIAS) -> DemandSnapshot:
        """Return current demand plus the history and peak for ``period``.

        Parameters
        ----------
        period : str, optional
            ``hour``, ``day``, ``week``, ``month`` or ``all`` (an alias of
            ``hour``). The value is echoed back unchanged in the snapshot.

        Returns
        -------
        DemandSnapshot
            Values from all six reads.

        Raises
        ------
        InvalidPeriodError
            If ``period`` is unknown. Raised before any read is issued.
        AggregationFailedError
            If one or more reads failed.

        """
        resolved = resolve_snapshot_period(period)
        deps = self._deps
        results = await asyncio.gather(
            deps.snapshot_store.historical_by_period(resolved),
            deps.latency_recorder.average_queue_time(),
            deps.peak_reader.peak_demand(resolved),
            deps.job_store.list_running_jobs(RunnerType.GITHUB_HOSTED),
            deps.job_store.list_running_jobs(RunnerType.SELF_HOSTED),
            deps.job_store.count_queued_jobs(),
            return_exceptions=True,
        )
        failures = self._collect_failures(results)
        if failures:
            self._event_logger.log_snapshot_failed(period, failures)
            raise AggregationFailedError(tuple(failures.values()))

        history, average, peak, github_hosted, self_hosted, queued = results
        return DemandSnapshot(
            period=period,
            current_count_github_hosted=len(github_hosted),
            current_count_self_hosted=len(self_hosted),
            current_queued_count=queued,
            historical_data=history,
            avg_queue_time=average,
            peak_demand=peak,
        )

    @staticmethod
    def _collect_failures(results: list[object]) -> dict[str, BaseException]:
        failures: dict[str, BaseException] = {}
        for name, result in zip(_READS, results, strict=True):
            if not isinstance(result, BaseException):
                continue
            if not isinstance(result, Exception):
                raise result
            failures[name] = result
        return failures


__all__ = [
    "DemandSnapshot",
    "DemandSnapshotDependencies",
    "DemandSnapshotService",
    "resolve_snapshot_period",
]
