"""Errors raised by the event ingestion pipeline."""

from __future__ import annotations

import enum


class IngestionStage(enum.StrEnum):
    """Pipeline stages whose failure aborts processing of an event."""

    STATE = "state"
    COUNTS = "counts"
    SNAPSHOT = "snapshot"


class IngestionFailedError(Exception):
    """Raised when a mandatory pipeline stage fails.

    Stages that completed before the failure remain committed.
    """

    def __init__(self, stage: IngestionStage, job_id: int | None = None) -> None:
        """Record which stage failed and for which job."""
        self.stage = stage
        self.job_id = job_id
        suffix = "" if job_id is None else f" for job {job_id}"
        super().__init__(f"ingestion failed at stage {stage}{suffix}")

    @classmethod
    def at_stage(
        cls, stage: IngestionStage, job_id: int | None = None
    ) -> IngestionFailedError:
        """Return an error for ``stage``."""
        return cls(stage, job_id)
