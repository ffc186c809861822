"""Demand history: snapshots, rollup aggregates and peak resolution."""

from __future__ import annotations

from .errors import InvalidPeriodError
from .models import HistoricalEntry, PeakDemand, RollupBucket
from .periods import ALL_PERIODS_ALIAS, Period, parse_period, window_start
from .services import SqlPeakDemandCalculator, SqlSnapshotStore
from .storage import (
    ROLLUP_MODELS,
    DailyRunnerStats,
    HistoricalEntryRecord,
    MonthlyRunnerStats,
    WeeklyRunnerStats,
    init_history_storage,
)

__all__ = [
    "ALL_PERIODS_ALIAS",
    "ROLLUP_MODELS",
    "DailyRunnerStats",
    "HistoricalEntry",
    "HistoricalEntryRecord",
    "InvalidPeriodError",
    "MonthlyRunnerStats",
    "PeakDemand",
    "Period",
    "RollupBucket",
    "SqlPeakDemandCalculator",
    "SqlSnapshotStore",
    "WeeklyRunnerStats",
    "init_history_storage",
    "parse_period",
    "window_start",
]
