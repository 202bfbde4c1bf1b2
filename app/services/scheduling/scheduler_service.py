"""
VLRBUDDY - Ingestion Scheduler
Periodic catalog refresh with APScheduler
"""

import asyncio
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_MISSED, JobExecutionEvent
from apscheduler.executors.asyncio import AsyncIOExecutor
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from app.core.config import settings
from app.core.exceptions import VLRBuddyError
from app.services.ingestion.ingestion_service import CycleReport, IngestionService

logger = logging.getLogger(__name__)

INGESTION_JOB_ID = "ingest_catalog"


class SchedulerState(str, Enum):
    """Scheduler lifecycle states"""
    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"


class IngestionScheduler:
    """
    Lifecycle object for the periodic ingestion job.

    ``start`` runs one cycle and waits for it; only if that succeeds is
    the interval job registered. Scheduled cycles log their errors and
    never stop the timer. At most one cycle runs at a time.
    """

    def __init__(self, ingestion: IngestionService, interval_seconds: Optional[int] = None):
        self.ingestion = ingestion
        self.interval_seconds = interval_seconds or settings.INGESTION_INTERVAL_SECONDS
        self.state = SchedulerState.STOPPED
        self._scheduler: Optional[AsyncIOScheduler] = None
        self._cycle_lock = asyncio.Lock()
        self._inflight: Optional[asyncio.Task] = None
        self._closed = False

        # Execution tracking
        self.last_run: Optional[datetime] = None
        self.last_report: Optional[CycleReport] = None
        self.last_error: Optional[str] = None
        self.run_count: int = 0
        self.error_count: int = 0

    @property
    def is_running(self) -> bool:
        return self.state == SchedulerState.RUNNING

    @property
    def is_cycle_in_flight(self) -> bool:
        return self._cycle_lock.locked()

    async def start(self) -> CycleReport:
        """
        Run the startup cycle, then schedule one cycle per interval.

        Raises:
            RuntimeError: the scheduler was stopped, or is already started
            ConfigError / IngestionError: the startup cycle failed
        """
        if self._closed:
            raise RuntimeError("Ingestion scheduler has been stopped and cannot be restarted")
        if self.state != SchedulerState.STOPPED:
            raise RuntimeError(f"Ingestion scheduler is already {self.state.value}")

        self.state = SchedulerState.STARTING
        logger.info("[Scheduler] === Starting ingestion scheduler ===")

        try:
            report = await self.run_cycle()
        except Exception:
            self.state = SchedulerState.STOPPED
            logger.error("[Scheduler] Initial catalog refresh failed", exc_info=True)
            raise

        self._scheduler = AsyncIOScheduler(
            jobstores={'default': MemoryJobStore()},
            executors={'default': AsyncIOExecutor()},
            timezone='UTC',
        )
        self._scheduler.add_listener(self._on_job_error, EVENT_JOB_ERROR)
        self._scheduler.add_listener(self._on_job_missed, EVENT_JOB_MISSED)
        self._scheduler.add_job(
            self._scheduled_cycle,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id=INGESTION_JOB_ID,
            name="Refresh Esports Catalog",
            max_instances=1,
            coalesce=True,
            misfire_grace_time=self.interval_seconds,
            replace_existing=True,
        )
        self._scheduler.start()
        self.state = SchedulerState.RUNNING

        logger.info(f"[Scheduler] Scheduled catalog refresh every {self.interval_seconds}s")
        return report

    async def stop(self) -> None:
        """Cancel the timer. A cycle already in flight is left to finish."""
        if self._scheduler is not None:
            if self._scheduler.running:
                self._scheduler.shutdown(wait=False)
            self._scheduler = None
        if not self._closed:
            logger.info("[Scheduler] === Ingestion scheduler stopped ===")
        self.state = SchedulerState.STOPPED
        self._closed = True

    async def wait_idle(self) -> None:
        """Wait for an in-flight cycle, if any, to complete."""
        task = self._inflight
        if task is not None and not task.done():
            await asyncio.wait({task})
        # A cycle started through run_cycle() directly holds the lock only
        async with self._cycle_lock:
            pass

    async def run_cycle(self) -> CycleReport:
        """Run one cycle, serialized with any other cycle."""
        async with self._cycle_lock:
            self.last_run = datetime.now(timezone.utc)
            try:
                report = await self.ingestion.run_cycle()
            except Exception as e:
                self.error_count += 1
                self.last_error = str(e)
                report = getattr(e, "report", None)
                if report is not None:
                    self.last_report = report
                raise
            self.run_count += 1
            self.last_report = report
            self.last_error = None
            return report

    async def _scheduled_cycle(self) -> None:
        """Interval job body; errors are logged, never raised."""
        logger.info("[Scheduler] === Running scheduled catalog refresh ===")
        # Shielded so that shutting the executor down does not cancel a running cycle
        self._inflight = asyncio.ensure_future(self._run_logged())
        await asyncio.shield(self._inflight)

    async def _run_logged(self) -> None:
        try:
            await self.run_cycle()
            logger.info("[Scheduler] Scheduled catalog refresh completed")
        except VLRBuddyError as e:
            logger.error(f"[Scheduler] Scheduled catalog refresh failed: {e}")
        except Exception as e:
            logger.error(f"[Scheduler] Error in scheduled catalog refresh: {e}", exc_info=True)

    def trigger_now(self) -> bool:
        """Start an out-of-band cycle in the background."""
        if not self.is_running:
            return False
        if self.is_cycle_in_flight:
            logger.info("[Scheduler] Refresh already in flight, not triggering another")
            return False
        self._inflight = asyncio.ensure_future(self._run_logged())
        return True

    def _on_job_error(self, event: JobExecutionEvent):
        self.error_count += 1
        self.last_error = str(event.exception) if event.exception else "Unknown error"
        logger.error(f"[Scheduler] Job failed: {event.job_id} - {event.exception}")

    def _on_job_missed(self, event: JobExecutionEvent):
        logger.warning(f"[Scheduler] Job missed: {event.job_id}")

    def next_run_time(self) -> Optional[datetime]:
        if self._scheduler is None:
            return None
        job = self._scheduler.get_job(INGESTION_JOB_ID)
        return job.next_run_time if job else None

    def get_status(self) -> Dict[str, Any]:
        """Get scheduler status"""
        next_run = self.next_run_time()
        return {
            "state": self.state.value,
            "running": self.is_running,
            "cycle_in_flight": self.is_cycle_in_flight,
            "interval_seconds": self.interval_seconds,
            "last_run": self.last_run.isoformat() if self.last_run else None,
            "next_run": next_run.isoformat() if next_run else None,
            "run_count": self.run_count,
            "error_count": self.error_count,
            "last_error": self.last_error,
            "last_report": self.last_report.to_dict() if self.last_report else None,
        }


# Global scheduler instance, built on first use
_ingestion_scheduler: Optional[IngestionScheduler] = None


def get_ingestion_scheduler() -> IngestionScheduler:
    """
    Dependency-style accessor for the ingestion scheduler.
    Keeps imports stable and avoids circular imports.
    """
    global _ingestion_scheduler
    if _ingestion_scheduler is None:
        from app.core.database import get_mirror_store
        from app.services.collectors.pandascore import get_pandascore_collector

        ingestion = IngestionService(get_pandascore_collector(), get_mirror_store())
        _ingestion_scheduler = IngestionScheduler(ingestion)
    return _ingestion_scheduler
