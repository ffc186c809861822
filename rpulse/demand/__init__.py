"""Live and historical runner demand aggregation."""

from __future__ import annotations

from .errors import AggregationFailedError
from .observability import DemandEventLogger, DemandEventType
from .service import (
    DemandSnapshot,
    DemandSnapshotDependencies,
    DemandSnapshotService,
    resolve_snapshot_period,
)

__all__ = [
    "AggregationFailedError",
    "DemandEventLogger",
    "DemandEventType",
    "DemandSnapshot",
    "DemandSnapshotDependencies",
    "DemandSnapshotService",
    "resolve_snapshot_period",
]
