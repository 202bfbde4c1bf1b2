"""
VLRBUDDY - API Schemas
Pydantic response models for the mirror API
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


# =============================================================================
# BASE SCHEMAS
# =============================================================================

class ErrorResponse(BaseModel):
    """Error body returned for every failed request."""
    error: str


class SuccessResponse(BaseModel):
    """Simple acknowledgement."""
    success: bool = True


# =============================================================================
# COLLECTION SCHEMAS
# =============================================================================

class WriteResult(BaseModel):
    """Counts reported by a bulk upsert."""
    matched_count: int = 0
    modified_count: int = 0
    upserted_count: int = 0


class WriteResponse(SuccessResponse):
    """Response to POST /{collection}."""
    result: WriteResult


class DeleteResponse(SuccessResponse):
    """Response to DELETE /{collection}."""
    deleted_count: int = 0


# =============================================================================
# OPERATIONS SCHEMAS
# =============================================================================

class ComponentHealth(BaseModel):
    name: str
    status: str  # healthy, degraded, unhealthy
    latency_ms: Optional[float] = None
    message: Optional[str] = None


class HealthResponse(BaseModel):
    status: str  # healthy, degraded, unhealthy
    timestamp: datetime
    version: str
    uptime_seconds: float
    components: Dict[str, ComponentHealth]


class StepReport(BaseModel):
    collection: str
    success: bool
    fetched: int = 0
    written: int = 0
    failed_chunks: int = 0
    error: Optional[str] = None
    duration_ms: float = 0


class CycleReportResponse(BaseModel):
    started_at: datetime
    finished_at: Optional[datetime] = None
    success: bool
    steps: List[StepReport] = Field(default_factory=list)


class SchedulerStatus(BaseModel):
    state: str
    running: bool
    cycle_in_flight: bool
    interval_seconds: int
    last_run: Optional[datetime] = None
    next_run: Optional[datetime] = None
    run_count: int = 0
    error_count: int = 0
    last_error: Optional[str] = None
    last_report: Optional[CycleReportResponse] = None


class TriggerResponse(BaseModel):
    triggered: bool
    message: str


__all__ = [
    "ErrorResponse",
    "SuccessResponse",
    "WriteResult",
    "WriteResponse",
    "DeleteResponse",
    "ComponentHealth",
    "HealthResponse",
    "StepReport",
    "CycleReportResponse",
    "SchedulerStatus",
    "TriggerResponse",
]

