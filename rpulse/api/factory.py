"""Wire the ingestion pipeline and demand service from one session factory.

Usage
-----
Build the engine components for the API layer::

    from rpulse.api.factory import build_engine

    components = build_engine(session_factory, RuntimeConfig.from_env())

"""

from __future__ import annotations

import dataclasses as dc
import datetime as dt
import typing as typ

from rpulse.config import RuntimeConfig
from rpulse.demand.service import DemandSnapshotDependencies, DemandSnapshotService
from rpulse.history.services import SqlPeakDemandCalculator, SqlSnapshotStore
from rpulse.ingestion.pipeline import IngestionPipeline, IngestionPipelineDependencies
from rpulse.jobs.services import (
    SqlJobRecordStore,
    SqlQueueLatencyRecorder,
    UpsertRetryPolicy,
)

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

__all__ = ["EngineComponents", "build_engine"]


@dc.dataclass(frozen=True, slots=True)
class EngineComponents:
    """Write path and read path sharing the same stores."""

    pipeline: IngestionPipeline
    snapshot_service: DemandSnapshotService


def build_engine(
    session_factory: async_sessionmaker[AsyncSession],
    config: RuntimeConfig | None = None,
) -> EngineComponents:
    """Build the SQL stores, the ingestion pipeline and the demand service.

    Parameters
    ----------
    session_factory
        Async session factory shared by every store.
    config
        Runtime settings supplying the upsert retry policy. Defaults apply
        when omitted.

    Returns
    -------
    EngineComponents
        Pipeline and snapshot service ready for the HTTP resources.

    """
    config = config or RuntimeConfig()
    job_store = SqlJobRecordStore(
        session_factory,
        retry_policy=UpsertRetryPolicy(
            max_attempts=config.upsert_max_attempts,
            delay=dt.timedelta(milliseconds=config.upsert_retry_delay_ms),
        ),
    )
    latency_recorder = SqlQueueLatencyRecorder(session_factory)
    snapshot_store = SqlSnapshotStore(session_factory)

    pipeline = IngestionPipeline(
        IngestionPipelineDependencies(
            job_store=job_store,
            latency_recorder=latency_recorder,
            snapshot_store=snapshot_store,
        )
    )
    snapshot_service = DemandSnapshotService(
        DemandSnapshotDependencies(
            job_store=job_store,
            latency_recorder=latency_recorder,
            snapshot_store=snapshot_store,
            peak_reader=SqlPeakDemandCalculator(session_factory),
        )
    )
    return EngineComponents(pipeline=pipeline, snapshot_service=snapshot_service)
