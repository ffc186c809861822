"""Value objects for demand history and peaks."""

from __future__ import annotations

import dataclasses as dc
import datetime as dt
import decimal
import math

import msgspec


class HistoricalEntry(msgspec.Struct, kw_only=True, frozen=True):
    """Point-in-time demand snapshot.

    Attributes
    ----------
    timestamp : datetime
        When the snapshot was taken (UTC).
    count_self_hosted : int
        Jobs running on self-hosted runners.
    count_github_hosted : int
        Jobs running on GitHub-hosted runners.
    count_queued : int
        Jobs waiting for a runner.

    """

    timestamp: dt.datetime
    count_self_hosted: int
    count_github_hosted: int
    count_queued: int

    @property
    def total(self) -> int:
        """Return combined running and queued demand."""
        return self.count_self_hosted + self.count_github_hosted + self.count_queued


@dc.dataclass(frozen=True, slots=True)
class PeakDemand:
    """Largest total demand in a period; ``timestamp`` is None when empty."""

    count: int = 0
    timestamp: dt.datetime | None = None


def round_half_away_from_zero(value: float | decimal.Decimal) -> int:
    """Round to the nearest integer, resolving .5 away from zero."""
    number = float(value)
    return int(math.copysign(math.floor(abs(number) + 0.5), number))


@dc.dataclass(frozen=True, slots=True)
class RollupBucket:
    """One pre-aggregated row from a daily, weekly or monthly rollup."""

    bucket: dt.datetime
    avg_self_hosted: float
    avg_github_hosted: float
    avg_queued: float
    peak_total: int

    def to_entry(self) -> HistoricalEntry:
        """Return the bucket as a snapshot with averaged counts rounded."""
        return HistoricalEntry(
            timestamp=self.bucket,
            count_self_hosted=round_half_away_from_zero(self.avg_self_hosted),
            count_github_hosted=round_half_away_from_zero(self.avg_github_hosted),
            count_queued=round_half_away_from_zero(self.avg_queued),
        )


__all__ = [
    "HistoricalEntry",
    "PeakDemand",
    "RollupBucket",
    "round_half_away_from_zero",
]
