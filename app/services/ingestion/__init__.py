"""Catalog ingestion module."""

from .ingestion_service import (
    CycleReport,
    IngestionService,
    IngestionStep,
    StepResult,
    default_steps,
)
from .normalize import chunked, normalize_match, normalize_player

__all__ = [
    "CycleReport",
    "IngestionService",
    "IngestionStep",
    "StepResult",
    "default_steps",
    "chunked",
    "normalize_match",
    "normalize_player",
]
