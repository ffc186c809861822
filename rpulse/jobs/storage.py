"""Persistence models for job records and queue latency samples."""

from __future__ import annotations

import datetime as dt
import typing as typ

from sqlalchemy import BigInteger, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from rpulse.common.time import utcnow
from rpulse.store.storage import Base, UTCDateTime

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine


class WorkflowJob(Base):
    """Current state of one job, keyed by ``(id, created_at)``."""

    __tablename__ = "workflow_jobs"
    __table_args__ = (
        Index("ix_workflow_jobs_status_runner", "status", "runner_type"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    created_at: Mapped[dt.datetime] = mapped_column(UTCDateTime(), primary_key=True)
    # Actions are stored verbatim, including ones GitHub adds later
    status: Mapped[str] = mapped_column(Text)
    runner_type: Mapped[str] = mapped_column(String(32))
    started_at: Mapped[dt.datetime | None] = mapped_column(UTCDateTime(), default=None)
    completed_at: Mapped[dt.datetime | None] = mapped_column(
        UTCDateTime(), default=None
    )


class QueueTimeDuration(Base):
    """Append-only queue wait sample recorded when a job starts."""

    __tablename__ = "queue_time_durations"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    job_id: Mapped[int] = mapped_column(BigInteger)
    job_created_at: Mapped[dt.datetime] = mapped_column(UTCDateTime())
    duration_ms: Mapped[int] = mapped_column(BigInteger)
    recorded_at: Mapped[dt.datetime] = mapped_column(UTCDateTime(), default=utcnow)


async def init_job_storage(engine: AsyncEngine) -> None:
    """Create the job record and latency tables if they are absent."""
    async with engine.begin() as conn:
        await conn.run_sync(
            Base.metadata.create_all,
            tables=[WorkflowJob.__table__, QueueTimeDuration.__table__],
        )
