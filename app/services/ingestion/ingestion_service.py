"""
VLRBUDDY - Catalog Ingestion Service

One ingestion cycle pulls the full catalog from PandaScore and replaces
each mirrored collection in turn:

    teams → tournaments → series → players → matches → leagues

Steps run sequentially; the past/running/upcoming fan-out inside a step
runs concurrently. A failed step is logged and recorded, and the cycle
moves on. Nothing already written is rolled back.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from app.core.config import settings
from app.core.database import MirrorStore, WriteSummary
from app.core.exceptions import IngestionError, NotFoundError, StoreError, UpstreamError, ValidationError
from app.models.catalog import Collection, Record
from app.services.collectors.pandascore import PandaScoreCollector
from app.services.ingestion.normalize import chunked, normalize_match, normalize_player

logger = logging.getLogger(__name__)

StepErrors = (UpstreamError, NotFoundError, ValidationError, StoreError, asyncio.TimeoutError)


@dataclass
class IngestionStep:
    """One collection's refresh within a cycle"""
    collection: Collection
    normalize: Optional[Callable[[Record], Record]] = None
    require_non_empty: bool = True
    chunk_size: int = 10
    chunk_timeout: float = 10.0


@dataclass
class StepResult:
    """Outcome of one ingestion step"""
    collection: Collection
    success: bool
    fetched: int = 0
    written: int = 0
    failed_chunks: int = 0
    error: Optional[str] = None
    duration_ms: float = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "collection": self.collection.value,
            "success": self.success,
            "fetched": self.fetched,
            "written": self.written,
            "failed_chunks": self.failed_chunks,
            "error": self.error,
            "duration_ms": round(self.duration_ms, 1),
        }


@dataclass
class CycleReport:
    """Outcome of a full ingestion cycle"""
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None
    steps: List[StepResult] = field(default_factory=list)

    @property
    def succeeded(self) -> List[Collection]:
        return [s.collection for s in self.steps if s.success]

    @property
    def failed(self) -> List[Collection]:
        return [s.collection for s in self.steps if not s.success]

    @property
    def success(self) -> bool:
        return bool(self.steps) and not self.failed

    def to_dict(self) -> Dict[str, Any]:
        return {
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "success": self.success,
            "steps": [s.to_dict() for s in self.steps],
        }


def default_steps() -> List[IngestionStep]:
    """Cycle order and write chunking for each collection"""
    default_chunk = dict(chunk_size=settings.DEFAULT_CHUNK_SIZE, chunk_timeout=settings.DEFAULT_CHUNK_TIMEOUT)
    return [
        IngestionStep(Collection.TEAMS, **default_chunk),
        IngestionStep(Collection.TOURNAMENTS, **default_chunk),
        IngestionStep(Collection.SERIES, **default_chunk),
        IngestionStep(Collection.PLAYERS, normalize=normalize_player, require_non_empty=False, **default_chunk),
        IngestionStep(
            Collection.MATCHES,
            normalize=normalize_match,
            chunk_size=settings.MATCH_CHUNK_SIZE,
            chunk_timeout=settings.MATCH_CHUNK_TIMEOUT,
        ),
        IngestionStep(Collection.LEAGUES, require_non_empty=False, **default_chunk),
    ]


class IngestionService:
    """Runs ingestion cycles from the upstream collector into the mirror store"""

    def __init__(
        self,
        upstream: PandaScoreCollector,
        store: MirrorStore,
        steps: Optional[List[IngestionStep]] = None,
    ):
        self.upstream = upstream
        self.store = store
        self.steps = steps if steps is not None else default_steps()

    async def run_cycle(self) -> CycleReport:
        """
        Run one full cycle.

        Raises:
            ConfigError: the upstream credential is missing
            IngestionError: every step failed
        """
        self.upstream.require_credentials()

        report = CycleReport()
        logger.info("[Ingestion] === Starting catalog refresh ===")

        for step in self.steps:
            result = await self._run_step(step)
            report.steps.append(result)

        report.finished_at = datetime.now(timezone.utc)

        if report.steps and not report.succeeded:
            raise IngestionError("Every ingestion step failed", report=report)

        if report.failed:
            logger.warning(
                f"[Ingestion] Refresh finished with failures: {', '.join(c.value for c in report.failed)}"
            )
        else:
            logger.info("[Ingestion] === Catalog refresh completed ===")
        return report

    async def _run_step(self, step: IngestionStep) -> StepResult:
        start = time.perf_counter()
        collection = step.collection
        result = StepResult(collection=collection, success=False)

        try:
            records = await self.upstream.fetch_collection(collection)
            result.fetched = len(records) if isinstance(records, list) else 0
            records = self._validate(step, records)
            if step.normalize:
                records = [step.normalize(record) for record in records]
            summary, failed_chunks = await self.write_chunked(
                collection, records, step.chunk_size, step.chunk_timeout
            )
            result.written = summary.matched + summary.upserted
            result.failed_chunks = failed_chunks
            result.success = True
            logger.info(
                f"[Ingestion] {collection.value}: {result.fetched} fetched, "
                f"{result.written} written, {failed_chunks} failed chunks"
            )
        except StepErrors as e:
            result.error = str(e) or type(e).__name__
            logger.error(f"[Ingestion] {collection.value} step failed: {result.error}")

        result.duration_ms = (time.perf_counter() - start) * 1000
        return result

    @staticmethod
    def _validate(step: IngestionStep, records: Any) -> List[Record]:
        """Reject non-array payloads and drop non-object elements."""
        if not isinstance(records, list):
            raise ValidationError(f"Invalid {step.collection.value} data received")
        objects = [record for record in records if isinstance(record, dict)]
        if len(objects) < len(records):
            logger.warning(
                f"[Ingestion] {step.collection.value}: dropped {len(records) - len(objects)} non-object elements"
            )
        if step.require_non_empty and not objects:
            raise ValidationError(f"No {step.collection.value} data received")
        return objects

    async def write_chunked(
        self,
        collection: Collection,
        records: List[Record],
        chunk_size: int,
        chunk_timeout: float,
    ) -> Tuple[WriteSummary, int]:
        """
        Clear the collection, then write records in chunks.

        A chunk that fails or exceeds its timeout is logged and skipped;
        the remaining chunks are still written. Clearing is not chunked,
        so a failure there fails the step.
        """
        await self.store.clear(collection)

        total = WriteSummary()
        failed = 0
        chunks = list(chunked(records, chunk_size))
        for index, chunk in enumerate(chunks, start=1):
            try:
                total = total + await asyncio.wait_for(self.store.upsert_many(collection, chunk), timeout=chunk_timeout)
            except (StoreError, ValidationError, asyncio.TimeoutError) as e:
                failed += 1
                logger.warning(
                    f"[Ingestion] {collection.value} chunk {index}/{len(chunks)} failed: {e or type(e).__name__}"
                )
        return total, failed
