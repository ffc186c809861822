"""Webhook event ingestion into job state and demand history."""

from __future__ import annotations

from .errors import IngestionFailedError, IngestionStage
from .observability import IngestionEventLogger, IngestionEventType
from .pipeline import IngestionPipeline, IngestionPipelineDependencies, IngestionResult

__all__ = [
    "IngestionEventLogger",
    "IngestionEventType",
    "IngestionFailedError",
    "IngestionPipeline",
    "IngestionPipelineDependencies",
    "IngestionResult",
    "IngestionStage",
]
