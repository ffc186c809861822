"""Domain and wire models for workflow job lifecycle events."""

from __future__ import annotations

import dataclasses as dc
import datetime as dt
import enum
import typing as typ

import msgspec

SELF_HOSTED_LABEL = "self-hosted"

AwareDatetime = typ.Annotated[dt.datetime, msgspec.Meta(tz=True)]


class JobStatus(enum.StrEnum):
    """Lifecycle states reported by ``workflow_job`` deliveries."""

    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class RunnerType(enum.StrEnum):
    """Category of runner a job executes on."""

    GITHUB_HOSTED = "github-hosted"
    SELF_HOSTED = "self-hosted"


def runner_type_for_labels(labels: typ.Iterable[str]) -> RunnerType:
    """Classify a job by its runner labels.

    Any job carrying the ``self-hosted`` label runs on a self-hosted runner;
    everything else is GitHub-hosted.
    """
    if SELF_HOSTED_LABEL in labels:
        return RunnerType.SELF_HOSTED
    return RunnerType.GITHUB_HOSTED


class WorkflowJobPayload(msgspec.Struct, kw_only=True):
    """The ``workflow_job`` object of a webhook delivery.

    Attributes
    ----------
    id : int
        GitHub job identifier.
    created_at : datetime
        When the job was queued. Together with ``id`` this forms the natural
        key of a job record.
    labels : list[str]
        Runner labels requested by the job.
    started_at : datetime, optional
        When a runner picked the job up.
    completed_at : datetime, optional
        When the job finished.

    """

    id: int
    created_at: AwareDatetime
    labels: list[str] = msgspec.field(default_factory=list)
    started_at: AwareDatetime | None = None
    completed_at: AwareDatetime | None = None


class WorkflowJobEvent(msgspec.Struct, kw_only=True):
    """A decoded ``workflow_job`` webhook delivery; unknown fields are ignored."""

    action: str
    workflow_job: WorkflowJobPayload


def decode_workflow_job_event(body: bytes | str) -> WorkflowJobEvent:
    """Decode a JSON delivery into a :class:`WorkflowJobEvent`.

    Raises
    ------
    msgspec.DecodeError
        When the body is not JSON or does not match the event shape
        (``msgspec.ValidationError`` is a subclass).

    """
    return msgspec.json.decode(body, type=WorkflowJobEvent)


@dc.dataclass(frozen=True, slots=True)
class WorkflowJobState:
    """Normalised job state written to the job record store."""

    id: int
    created_at: dt.datetime
    status: str
    runner_type: RunnerType
    started_at: dt.datetime | None = None
    completed_at: dt.datetime | None = None

    @classmethod
    def from_event(cls, event: WorkflowJobEvent) -> WorkflowJobState:
        """Map a webhook event onto job state; the action becomes the status."""
        job = event.workflow_job
        return cls(
            id=job.id,
            created_at=job.created_at,
            status=event.action,
            runner_type=runner_type_for_labels(job.labels),
            started_at=job.started_at,
            completed_at=job.completed_at,
        )

    @property
    def queue_duration(self) -> dt.timedelta | None:
        """Return how long the job waited for a runner, when known."""
        if self.started_at is None:
            return None
        return self.started_at - self.created_at


__all__ = [
    "SELF_HOSTED_LABEL",
    "AwareDatetime",
    "JobStatus",
    "RunnerType",
    "WorkflowJobEvent",
    "WorkflowJobPayload",
    "WorkflowJobState",
    "decode_workflow_job_event",
    "runner_type_for_labels",
]
