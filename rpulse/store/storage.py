"""Declarative base, column types and schema bootstrap for rpulse."""

from __future__ import annotations

import datetime as dt
import typing as typ

from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.types import TypeDecorator

from rpulse.store.errors import TimezoneAwareRequiredError

if typ.TYPE_CHECKING:
    from sqlalchemy.engine import Dialect
    from sqlalchemy.ext.asyncio import AsyncEngine


class Base(DeclarativeBase):
    """Base declarative class for rpulse models."""


class UTCDateTime(TypeDecorator[dt.datetime]):
    """DateTime wrapper that round-trips UTC tzinfo even on SQLite."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(
        self, value: dt.datetime | None, dialect: Dialect
    ) -> dt.datetime | None:
        """Reject naive datetimes and normalise aware ones to UTC."""
        if value is None:
            return None
        if value.tzinfo is None:
            raise TimezoneAwareRequiredError.for_column()
        return value.astimezone(dt.UTC)

    def process_result_value(
        self, value: dt.datetime | None, dialect: Dialect
    ) -> dt.datetime | None:
        """Attach UTC to values the driver returned without tzinfo."""
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=dt.UTC)
        return value.astimezone(dt.UTC)


async def init_storage(engine: AsyncEngine, *, include_rollups: bool = False) -> None:
    """Create the engine-owned tables if they are absent.

    Parameters
    ----------
    engine : AsyncEngine
        Engine bound to the target database.
    include_rollups : bool, optional
        Also create the daily/weekly/monthly rollup tables. Production
        deployments receive these from the external materialisation process;
        local development and tests have no such process.

    """
    from rpulse.history.storage import init_history_storage
    from rpulse.jobs.storage import init_job_storage

    await init_job_storage(engine)
    await init_history_storage(engine, include_rollups=include_rollups)
