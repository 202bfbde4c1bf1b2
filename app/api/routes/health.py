"""
VLRBUDDY - Health Check API Routes
Mirror and scheduler health for load balancers and monitoring
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from app.api.dependencies import get_scheduler, get_store
from app.api.schemas import ComponentHealth, HealthResponse
from app.core.config import settings
from app.core.database import MirrorStore
from app.services.scheduling import IngestionScheduler

router = APIRouter()

_start_time = datetime.now(timezone.utc)


@router.get("/health", response_model=HealthResponse)
async def health_check(
    store: MirrorStore = Depends(get_store),
    scheduler: IngestionScheduler = Depends(get_scheduler),
):
    """
    Basic health check.

    The mirror being unreachable makes the service unhealthy; a stopped
    scheduler (when it should be running) or a failing last cycle only
    degrades it, since reads still fall back to PandaScore.
    """
    now = datetime.now(timezone.utc)
    components = {}
    overall_status = "healthy"

    # Check mirror
    mirror_health = await store.health_check()
    mirror_healthy = mirror_health.get("status") == "healthy"
    components["mirror"] = ComponentHealth(
        name="MongoDB",
        status="healthy" if mirror_healthy else "unhealthy",
        latency_ms=mirror_health.get("latency_ms"),
        message=mirror_health.get("error"),
    )
    if not mirror_healthy:
        overall_status = "unhealthy"

    # Check scheduler
    if settings.SCHEDULER_ENABLED:
        scheduler_status = "healthy"
        message = None
        if not scheduler.is_running:
            scheduler_status = "degraded"
            message = f"scheduler is {scheduler.state.value}"
        elif scheduler.last_error:
            scheduler_status = "degraded"
            message = scheduler.last_error
        components["scheduler"] = ComponentHealth(
            name="APScheduler",
            status=scheduler_status,
            message=message,
        )
        if scheduler_status != "healthy" and overall_status == "healthy":
            overall_status = "degraded"

    return HealthResponse(
        status=overall_status,
        timestamp=now,
        version=settings.APP_VERSION,
        uptime_seconds=(now - _start_time).total_seconds(),
        components=components,
    )
