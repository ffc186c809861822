"""Storage capabilities, errors and the shared declarative base.

The SQLAlchemy implementations live beside their models in
:mod:`rpulse.jobs` and :mod:`rpulse.history`; an in-memory implementation for
tests is available from :mod:`rpulse.store.memory`.
"""

from __future__ import annotations

from .errors import BACKEND_ERRORS, PersistenceError, TimezoneAwareRequiredError
from .protocol import (
    JobRecordStore,
    PeakDemandReader,
    QueueLatencyRecorder,
    SnapshotStore,
)

__all__ = [
    "BACKEND_ERRORS",
    "JobRecordStore",
    "PeakDemandReader",
    "PersistenceError",
    "QueueLatencyRecorder",
    "SnapshotStore",
    "TimezoneAwareRequiredError",
]
