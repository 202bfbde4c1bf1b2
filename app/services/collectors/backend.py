"""
VLRBUDDY - Backend Mirror Client

Reads the mirror through this backend's own /api surface (BACKEND_URL),
the way a remote client does. Responses are returned undecorated; shape
validation is left to the catalog service so a malformed body can trigger
the upstream fallback.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from app.core.config import settings
from app.core.database import MirrorReader
from app.core.exceptions import NotFoundError
from app.models.catalog import Collection, coerce_id
from app.services.collectors.base_collector import BaseCollector

logger = logging.getLogger(__name__)


class BackendMirrorClient(BaseCollector, MirrorReader):
    """HTTP mirror reader for BACKEND_URL"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(
            name="backend",
            base_url=base_url or settings.BACKEND_URL,
            timeout=settings.UPSTREAM_TIMEOUT,
            max_attempts=settings.UPSTREAM_MAX_ATTEMPTS,
            retry_delay=settings.UPSTREAM_RETRY_DELAY,
            transport=transport,
        )

    async def list_records(self, collection: Collection, filters: Optional[Dict[str, Any]] = None) -> Any:
        return await self.get(f"/{collection.value}", params=filters or None)

    async def get_record(self, collection: Collection, record_id: Any) -> Any:
        record_id = coerce_id(record_id)
        try:
            return await self._make_request("GET", f"/{collection.value}/{record_id}")
        except NotFoundError:
            raise NotFoundError(collection.label, record_id)
