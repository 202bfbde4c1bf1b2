"""
VLRBUDDY - PandaScore Collector
===============================

Bearer-authenticated client for the PandaScore esports catalog.

Endpoints (per game, e.g. /valorant):
- /teams, /players, /leagues                  → JSON arrays
- /{tournaments,series,matches}{,/past,/running,/upcoming}
- /{collection}/{id}                          → single object
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import httpx

from app.core.config import settings
from app.core.exceptions import ConfigError, NotFoundError, ValidationError
from app.models.catalog import VARIANTS, Collection, EntityStatus, Record, coerce_id, dedupe_by_id
from app.services.collectors.base_collector import BaseCollector

logger = logging.getLogger(__name__)


class PandaScoreCollector(BaseCollector):
    """PandaScore REST client for one game title."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        game: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(
            name="pandascore",
            base_url=base_url or settings.PANDASCORE_BASE_URL,
            timeout=settings.UPSTREAM_TIMEOUT,
            max_attempts=settings.UPSTREAM_MAX_ATTEMPTS,
            retry_delay=settings.UPSTREAM_RETRY_DELAY,
            transport=transport,
        )
        self.api_key = settings.PANDASCORE_API_KEY if api_key is None else api_key
        self.game = (game or settings.PANDASCORE_GAME).strip("/")

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    def require_credentials(self) -> None:
        if not self.has_credentials:
            raise ConfigError("PANDASCORE_API_KEY is not set")

    def _get_headers(self) -> Dict[str, str]:
        self.require_credentials()
        return {
            "Accept": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

    def _path(self, endpoint: str) -> str:
        return f"/{self.game}/{endpoint.strip('/')}"

    async def fetch(self, endpoint: str) -> List[Record]:
        """GET a list endpoint and return the decoded array."""
        data = await self.get(self._path(endpoint))
        if not isinstance(data, list):
            raise ValidationError(f"Expected an array from {self._path(endpoint)}, got {type(data).__name__}")
        logger.info(f"[PandaScore] {self._path(endpoint)}: {len(data)} records")
        return data

    async def fetch_one(self, collection: Collection, record_id: Any) -> Record:
        """GET /{collection}/{id} and return the single object."""
        record_id = coerce_id(record_id)
        try:
            data = await self.get(self._path(f"{collection.value}/{record_id}"))
        except NotFoundError:
            raise NotFoundError(collection.label, record_id)
        if not isinstance(data, dict):
            raise ValidationError(f"Expected an object for {collection.label} {record_id}")
        return data

    async def fetch_collection(self, collection: Collection) -> List[Record]:
        """Full list of a collection, merging variants where the upstream has them."""
        if collection.has_variants:
            return await self.fetch_variants(collection)
        return await self.fetch(collection.value)

    async def fetch_variants(self, collection: Collection) -> List[Record]:
        """
        Fetch all/past/running/upcoming concurrently and dedupe by id.

        A failure of any variant fails the whole call.
        """
        endpoints = [f"{collection.value}/{variant}" if variant else collection.value for variant in VARIANTS]
        batches = await asyncio.gather(*(self.fetch(endpoint) for endpoint in endpoints))
        merged = dedupe_by_id(*batches)
        logger.info(
            f"[PandaScore] {collection.value}: {sum(len(b) for b in batches)} fetched, {len(merged)} unique"
        )
        return merged

    async def fetch_status(self, collection: Collection, status: EntityStatus) -> List[Record]:
        """Records of a variant collection in one status, via the matching variant endpoint"""
        records = await self.fetch(f"{collection.value}/{status.variant}")
        return [r for r in records if isinstance(r, dict) and r.get("status") == status.value]


# Global collector instance
pandascore_collector = PandaScoreCollector()


def get_pandascore_collector() -> PandaScoreCollector:
    return pandascore_collector
