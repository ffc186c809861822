"""Job record state and queue latency sampling."""

from __future__ import annotations

from .models import (
    JobStatus,
    RunnerType,
    WorkflowJobEvent,
    WorkflowJobPayload,
    WorkflowJobState,
    decode_workflow_job_event,
    runner_type_for_labels,
)
from .services import SqlJobRecordStore, SqlQueueLatencyRecorder, UpsertRetryPolicy
from .storage import QueueTimeDuration, WorkflowJob, init_job_storage

__all__ = [
    "JobStatus",
    "QueueTimeDuration",
    "RunnerType",
    "SqlJobRecordStore",
    "SqlQueueLatencyRecorder",
    "UpsertRetryPolicy",
    "WorkflowJob",
    "WorkflowJobEvent",
    "WorkflowJobPayload",
    "WorkflowJobState",
    "decode_workflow_job_event",
    "init_job_storage",
    "runner_type_for_labels",
]
