"""Scheduling service module."""

from .scheduler_service import (
    INGESTION_JOB_ID,
    IngestionScheduler,
    SchedulerState,
    get_ingestion_scheduler,
)

__all__ = [
    "INGESTION_JOB_ID",
    "IngestionScheduler",
    "SchedulerState",
    "get_ingestion_scheduler",
]
