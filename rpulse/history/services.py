"""SQLAlchemy implementations of the snapshot store and peak calculator."""

from __future__ import annotations

import typing as typ

from sqlalchemy import select

from rpulse.common.time import utcnow
from rpulse.history.models import HistoricalEntry, PeakDemand, RollupBucket
from rpulse.history.periods import parse_period, window_start
from rpulse.history.storage import ROLLUP_MODELS, HistoricalEntryRecord
from rpulse.store.errors import BACKEND_ERRORS, PersistenceError

if typ.TYPE_CHECKING:
    import datetime as dt

    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from rpulse.common.time import Clock
    from rpulse.history.periods import Period


class _PeriodQueries:
    """Session factory and clock shared by the period-scoped readers."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        clock: Clock = utcnow,
    ) -> None:
        """Store the session factory and the clock that anchors windows."""
        self._session_factory = session_factory
        self._clock = clock

    def _window(self, period: Period | str) -> tuple[Period, dt.datetime]:
        resolved = parse_period(period)
        return resolved, window_start(resolved, self._clock())


class SqlSnapshotStore(_PeriodQueries):
    """Snapshot store backed by ``historical_entries`` and the rollup tables."""

    async def append_snapshot(self, entry: HistoricalEntry) -> None:
        """Insert one snapshot row."""
        record = HistoricalEntryRecord(
            timestamp=entry.timestamp,
            count_self_hosted=entry.count_self_hosted,
            count_github_hosted=entry.count_github_hosted,
            count_queued=entry.count_queued,
        )
        try:
            async with self._session_factory() as session:
                session.add(record)
                await session.commit()
        except BACKEND_ERRORS as exc:
            raise PersistenceError.for_operation("append_snapshot") from exc

    async def historical_by_period(
        self, period: Period | str
    ) -> list[HistoricalEntry]:
        """Return the demand series for the trailing ``period``.

        Parameters
        ----------
        period : Period | str
            ``hour`` reads raw snapshots from the last 60 minutes; ``day``,
            ``week`` and ``month`` read the matching rollup aggregate.

        Returns
        -------
        list[HistoricalEntry]
            Entries in ascending timestamp order. Rollup averages are rounded
            to the nearest integer.

        Raises
        ------
        InvalidPeriodError
            If ``period`` is not a known period.
        PersistenceError
            If the read fails.

        """
        resolved, since = self._window(period)
        try:
            if resolved.uses_rollup:
                return await self._rollup_entries(resolved, since)
            return await self._snapshot_entries(since)
        except BACKEND_ERRORS as exc:
            raise PersistenceError.for_operation("historical_by_period") from exc

    async def _snapshot_entries(self, since: dt.datetime) -> list[HistoricalEntry]:
        stmt = (
            select(HistoricalEntryRecord)
            .where(HistoricalEntryRecord.timestamp >= since)
            .order_by(HistoricalEntryRecord.timestamp, HistoricalEntryRecord.id)
        )
        async with self._session_factory() as session:
            records = (await session.scalars(stmt)).all()
        return [
            HistoricalEntry(
                timestamp=record.timestamp,
                count_self_hosted=record.count_self_hosted,
                count_github_hosted=record.count_github_hosted,
                count_queued=record.count_queued,
            )
            for record in records
        ]

    async def _rollup_entries(
        self, period: Period, since: dt.datetime
    ) -> list[HistoricalEntry]:
        model = ROLLUP_MODELS[period]
        stmt = select(model).where(model.bucket >= since).order_by(model.bucket)
        async with self._session_factory() as session:
            rows = (await session.scalars(stmt)).all()
        return [
            RollupBucket(
                bucket=row.bucket,
                avg_self_hosted=row.avg_self_hosted,
                avg_github_hosted=row.avg_github_hosted,
                avg_queued=row.avg_queued,
                peak_total=row.peak_total,
            ).to_entry()
            for row in rows
        ]


class SqlPeakDemandCalculator(_PeriodQueries):
    """Resolve peak demand from raw snapshots or rollup aggregates."""

    async def peak_demand(self, period: Period | str) -> PeakDemand:
        """Return the highest total demand in the trailing ``period``.

        The earliest timestamp wins when several rows share the maximum. An
        empty window yields ``PeakDemand(0, None)``.
        """
        resolved, since = self._window(period)
        if resolved.uses_rollup:
            model = ROLLUP_MODELS[resolved]
            stmt = (
                select(model.peak_total, model.bucket)
                .where(model.bucket >= since)
                .order_by(model.peak_total.desc(), model.bucket)
                .limit(1)
            )
        else:
            record = HistoricalEntryRecord
            total = (
                record.count_self_hosted
                + record.count_github_hosted
                + record.count_queued
            )
            stmt = (
                select(total, record.timestamp)
                .where(record.timestamp >= since)
                .order_by(total.desc(), record.timestamp)
                .limit(1)
            )
        try:
            async with self._session_factory() as session:
                row = (await session.execute(stmt)).first()
        except BACKEND_ERRORS as exc:
            raise PersistenceError.for_operation("peak_demand") from exc
        if row is None:
            return PeakDemand()
        count, timestamp = row
        return PeakDemand(count=int(count), timestamp=timestamp)


__all__ = ["SqlPeakDemandCalculator", "SqlSnapshotStore"]
