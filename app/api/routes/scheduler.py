"""
VLRBUDDY - Scheduler API Routes
Ingestion scheduler status and manual refresh
"""

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.dependencies import get_scheduler
from app.api.schemas import SchedulerStatus, TriggerResponse
from app.services.scheduling import IngestionScheduler

router = APIRouter()


@router.get("/scheduler", response_model=SchedulerStatus)
async def scheduler_status(scheduler: IngestionScheduler = Depends(get_scheduler)):
    """Get ingestion scheduler status and the last cycle report."""
    return scheduler.get_status()


@router.post("/scheduler/run", response_model=TriggerResponse, status_code=status.HTTP_202_ACCEPTED)
async def run_ingestion(scheduler: IngestionScheduler = Depends(get_scheduler)):
    """
    Start a catalog refresh in the background.

    A refresh already in flight is not doubled; the response says whether
    a new one was started.
    """
    if not scheduler.is_running:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Ingestion scheduler is {scheduler.state.value}",
        )

    triggered = scheduler.trigger_now()
    return TriggerResponse(
        triggered=triggered,
        message="Catalog refresh started" if triggered else "Catalog refresh already in flight",
    )
