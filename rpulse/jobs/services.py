"""SQLAlchemy implementations of the job record and queue latency stores."""

from __future__ import annotations

import asyncio
import dataclasses as dc
import datetime as dt
import typing as typ

from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError

from rpulse.common.time import utcnow
from rpulse.jobs.models import JobStatus
from rpulse.jobs.storage import QueueTimeDuration, WorkflowJob
from rpulse.logging import get_logger, log_warning
from rpulse.store.errors import BACKEND_ERRORS, PersistenceError

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from rpulse.common.time import Clock
    from rpulse.jobs.models import RunnerType, WorkflowJobState

logger = get_logger(__name__)

_INSERT_BY_DIALECT: dict[str, typ.Callable[..., typ.Any]] = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}
_UPSERT_FIELDS = ("status", "runner_type", "started_at", "completed_at")
_ONE_MILLISECOND = dt.timedelta(milliseconds=1)


@dc.dataclass(frozen=True, slots=True)
class UpsertRetryPolicy:
    """Bounded fixed-delay retry for job upserts."""

    max_attempts: int = 3
    delay: dt.timedelta = dt.timedelta(milliseconds=100)


def is_transient_error(exc: BaseException) -> bool:
    """Return True when ``exc`` looks like a dropped or unavailable connection.

    Driver-level socket failures such as ``ConnectionRefusedError`` and
    ``TimeoutError`` are ``OSError`` subclasses and count as transient.
    """
    if isinstance(exc, OSError | OperationalError | InterfaceError):
        return True
    return isinstance(exc, DBAPIError) and exc.connection_invalidated


class SqlJobRecordStore:
    """Job record store backed by the ``workflow_jobs`` table.

    Upserts use the dialect's ``ON CONFLICT DO UPDATE`` and are available on
    PostgreSQL and SQLite only; other backends fail with ``PersistenceError``.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        retry_policy: UpsertRetryPolicy | None = None,
    ) -> None:
        """Store the session factory and upsert retry policy."""
        self._session_factory = session_factory
        self._retry_policy = retry_policy or UpsertRetryPolicy()

    async def upsert_job(self, job: WorkflowJobState) -> None:
        """Insert ``job`` or overwrite the existing row with the same key.

        Transient connection failures are retried according to the retry
        policy; other database errors are raised immediately.

        Parameters
        ----------
        job : WorkflowJobState
            State to persist. ``status``, ``runner_type``, ``started_at`` and
            ``completed_at`` replace the stored values on conflict.

        Raises
        ------
        PersistenceError
            When the write fails permanently or every attempt failed.

        """
        policy = self._retry_policy
        for attempt in range(1, policy.max_attempts + 1):
            try:
                await self._execute_upsert(job)
            except BACKEND_ERRORS as exc:
                if not is_transient_error(exc):
                    raise PersistenceError.for_operation("upsert_job") from exc
                if attempt == policy.max_attempts:
                    raise PersistenceError.retries_exhausted(
                        "upsert_job", policy.max_attempts
                    ) from exc
                log_warning(
                    logger,
                    "Upsert of job %d failed (attempt %d/%d), retrying: %s",
                    job.id,
                    attempt,
                    policy.max_attempts,
                    exc,
                )
                await asyncio.sleep(policy.delay.total_seconds())
            else:
                return

    async def _execute_upsert(self, job: WorkflowJobState) -> None:
        async with self._session_factory() as session:
            dialect = session.get_bind().dialect.name
            insert = _INSERT_BY_DIALECT.get(dialect)
            if insert is None:
                raise PersistenceError.for_operation(
                    "upsert_job", f"dialect {dialect} has no upsert support"
                )
            stmt = insert(WorkflowJob).values(
                id=job.id,
                created_at=job.created_at,
                status=job.status,
                runner_type=job.runner_type.value,
                started_at=job.started_at,
                completed_at=job.completed_at,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=[WorkflowJob.id, WorkflowJob.created_at],
                set_={field: stmt.excluded[field] for field in _UPSERT_FIELDS},
            )
            await session.execute(stmt)
            await session.commit()

    async def count_queued_jobs(self) -> int:
        """Return the number of jobs currently queued."""
        stmt = (
            select(func.count())
            .select_from(WorkflowJob)
            .where(WorkflowJob.status == JobStatus.QUEUED.value)
        )
        try:
            async with self._session_factory() as session:
                return int(await session.scalar(stmt) or 0)
        except BACKEND_ERRORS as exc:
            raise PersistenceError.for_operation("count_queued_jobs") from exc

    async def list_running_jobs(self, runner_type: RunnerType) -> list[int]:
        """Return ids of in-progress jobs running on ``runner_type`` runners."""
        stmt = (
            select(WorkflowJob.id)
            .where(
                WorkflowJob.status == JobStatus.IN_PROGRESS.value,
                WorkflowJob.runner_type == runner_type.value,
            )
            .order_by(WorkflowJob.id)
        )
        try:
            async with self._session_factory() as session:
                return list((await session.scalars(stmt)).all())
        except BACKEND_ERRORS as exc:
            raise PersistenceError.for_operation("list_running_jobs") from exc


class SqlQueueLatencyRecorder:
    """Queue latency samples backed by the ``queue_time_durations`` table."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        clock: Clock = utcnow,
    ) -> None:
        """Store the session factory and the clock used for ``recorded_at``."""
        self._session_factory = session_factory
        self._clock = clock

    async def record_queue_time(
        self, job_id: int, created_at: dt.datetime, duration: dt.timedelta
    ) -> None:
        """Append one sample, truncating ``duration`` toward zero to milliseconds."""
        sample = QueueTimeDuration(
            job_id=job_id,
            job_created_at=created_at,
            duration_ms=int(duration / _ONE_MILLISECOND),
            recorded_at=self._clock(),
        )
        try:
            async with self._session_factory() as session:
                session.add(sample)
                await session.commit()
        except BACKEND_ERRORS as exc:
            raise PersistenceError.for_operation("record_queue_time") from exc

    async def average_queue_time(self) -> dt.timedelta:
        """Return the mean recorded wait truncated to whole milliseconds."""
        stmt = select(func.avg(QueueTimeDuration.duration_ms))
        try:
            async with self._session_factory() as session:
                average = await session.scalar(stmt)
        except BACKEND_ERRORS as exc:
            raise PersistenceError.for_operation("average_queue_time") from exc
        if average is None:
            return dt.timedelta(0)
        return dt.timedelta(milliseconds=int(average))


__all__ = [
    "SqlJobRecordStore",
    "SqlQueueLatencyRecorder",
    "UpsertRetryPolicy",
    "is_transient_error",
]
