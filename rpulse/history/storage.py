"""Persistence models for demand snapshots and rollup aggregates."""

from __future__ import annotations

import datetime as dt
import typing as typ

from sqlalchemy import Float, Integer
from sqlalchemy.orm import Mapped, mapped_column

from rpulse.history.periods import Period
from rpulse.store.storage import Base, UTCDateTime

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine


class HistoricalEntryRecord(Base):
    """Demand snapshot appended after every processed event."""

    __tablename__ = "historical_entries"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    timestamp: Mapped[dt.datetime] = mapped_column(UTCDateTime(), index=True)
    count_self_hosted: Mapped[int] = mapped_column(Integer)
    count_github_hosted: Mapped[int] = mapped_column(Integer)
    count_queued: Mapped[int] = mapped_column(Integer)


class _RollupColumns:
    """Columns shared by every rollup aggregate."""

    bucket: Mapped[dt.datetime] = mapped_column(UTCDateTime(), primary_key=True)
    avg_self_hosted: Mapped[float] = mapped_column(Float)
    avg_github_hosted: Mapped[float] = mapped_column(Float)
    avg_queued: Mapped[float] = mapped_column(Float)
    peak_total: Mapped[int] = mapped_column(Integer)


class DailyRunnerStats(_RollupColumns, Base):
    """Daily rollup, maintained outside rpulse."""

    __tablename__ = "daily_runner_stats"


class WeeklyRunnerStats(_RollupColumns, Base):
    """Weekly rollup, maintained outside rpulse."""

    __tablename__ = "weekly_runner_stats"


class MonthlyRunnerStats(_RollupColumns, Base):
    """Monthly rollup, maintained outside rpulse."""

    __tablename__ = "monthly_runner_stats"


type RollupModel = type[DailyRunnerStats | WeeklyRunnerStats | MonthlyRunnerStats]

ROLLUP_MODELS: dict[Period, RollupModel] = {
    Period.DAY: DailyRunnerStats,
    Period.WEEK: WeeklyRunnerStats,
    Period.MONTH: MonthlyRunnerStats,
}


async def init_history_storage(
    engine: AsyncEngine, *, include_rollups: bool = False
) -> None:
    """Create the snapshot table and, optionally, the rollup tables."""
    tables = [HistoricalEntryRecord.__table__]
    if include_rollups:
        tables.extend(model.__table__ for model in ROLLUP_MODELS.values())
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all, tables=tables)
