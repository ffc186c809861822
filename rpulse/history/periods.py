"""Query periods and their trailing windows."""

from __future__ import annotations

import calendar
import datetime as dt
import enum

from rpulse.history.errors import InvalidPeriodError

ALL_PERIODS_ALIAS = "all"


class Period(enum.StrEnum):
    """Supported history periods."""

    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"

    @property
    def uses_rollup(self) -> bool:
        """Return True when the period is served by a rollup aggregate."""
        return self is not Period.HOUR


def parse_period(value: str) -> Period:
    """Return the :class:`Period` named by ``value``.

    Matching is exact; there is no fallback for unknown strings.

    Raises
    ------
    InvalidPeriodError
        If ``value`` is not ``hour``, ``day``, ``week`` or ``month``.

    """
    try:
        return Period(value)
    except ValueError as exc:
        raise InvalidPeriodError.for_value(value) from exc


def _one_month_before(moment: dt.datetime) -> dt.datetime:
    year, month = (
        (moment.year - 1, 12) if moment.month == 1 else (moment.year, moment.month - 1)
    )
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


_FIXED_WINDOWS: dict[Period, dt.timedelta] = {
    Period.HOUR: dt.timedelta(hours=1),
    Period.DAY: dt.timedelta(days=1),
    Period.WEEK: dt.timedelta(weeks=1),
}


def window_start(period: Period, now: dt.datetime) -> dt.datetime:
    """Return the inclusive lower bound of the trailing window ending at ``now``.

    ``Period.MONTH`` steps back one calendar month, clamping the day to the
    length of the previous month (31 March becomes 28 or 29 February).
    """
    if period is Period.MONTH:
        return _one_month_before(now)
    return now - _FIXED_WINDOWS[period]


__all__ = ["ALL_PERIODS_ALIAS", "Period", "parse_period", "window_start"]
