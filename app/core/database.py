"""
VLRBUDDY - Mirror Store
Async MongoDB mirror of the upstream catalog with upsert-by-id writes
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, UpdateOne
from pymongo.errors import PyMongoError

from app.core.config import settings
from app.core.exceptions import NotFoundError, StoreError, ValidationError
from app.models.catalog import Collection, Record, coerce_id

logger = logging.getLogger(__name__)

# Never leak Mongo's internal key to readers
_PROJECTION = {"_id": 0}


@dataclass
class WriteSummary:
    """Outcome of a bulk upsert"""
    matched: int = 0
    modified: int = 0
    upserted: int = 0

    def __add__(self, other: "WriteSummary") -> "WriteSummary":
        return WriteSummary(
            matched=self.matched + other.matched,
            modified=self.modified + other.modified,
            upserted=self.upserted + other.upserted,
        )

    def to_dict(self) -> Dict[str, int]:
        return {
            "matched_count": self.matched,
            "modified_count": self.modified,
            "upserted_count": self.upserted,
        }


class MirrorReader(ABC):
    """Read side of the mirror, as seen by the catalog read service"""

    @abstractmethod
    async def list_records(self, collection: Collection, filters: Optional[Dict[str, Any]] = None) -> Any:
        """Return all records of a collection matching a shallow filter."""

    @abstractmethod
    async def get_record(self, collection: Collection, record_id: Any) -> Any:
        """Return one record by id or raise NotFoundError."""


class MirrorStore(MirrorReader):
    """MongoDB mirror with one collection per entity type"""

    def __init__(self, uri: Optional[str] = None, db_name: Optional[str] = None):
        self._uri = uri or settings.MONGODB_URI
        self._db_name = db_name or settings.MONGODB_DB_NAME
        self._client: Optional[AsyncIOMotorClient] = None
        self._db: Optional[AsyncIOMotorDatabase] = None
        self._stats: Dict[str, int] = {
            "reads": 0,
            "writes": 0,
            "errors": 0,
        }

    @property
    def is_initialized(self) -> bool:
        return self._db is not None

    async def initialize(self) -> None:
        """Connect, ping and ensure the unique id index on every collection"""
        if self._db is not None:
            return

        logger.info("Initializing mirror store connection...")
        self._client = AsyncIOMotorClient(
            self._uri,
            serverSelectionTimeoutMS=settings.MONGODB_SERVER_SELECTION_TIMEOUT_MS,
            tz_aware=True,
        )
        self._db = self._client[self._db_name]

        try:
            await self._client.admin.command("ping")
            for collection in Collection:
                await self._db[collection.value].create_index([("id", ASCENDING)], unique=True)
        except PyMongoError as e:
            logger.error(f"Failed to connect to MongoDB: {e}")
            self._client.close()
            self._client = None
            self._db = None
            raise StoreError(f"MongoDB unreachable: {e}") from e

        logger.info(f"Mirror store connected (database: {self._db_name})")

    async def close(self) -> None:
        """Close the MongoDB client"""
        if self._client:
            logger.info("Closing mirror store connection...")
            self._client.close()
            self._client = None
            self._db = None
            logger.info("Mirror store connection closed")

    def _collection(self, collection: Collection):
        if self._db is None:
            raise StoreError("Mirror store is not initialized")
        return self._db[Collection(collection).value]

    @staticmethod
    def _to_query(filters: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """Translate a shallow equality filter; numeric strings also match ints."""
        query: Dict[str, Any] = {}
        for key, value in (filters or {}).items():
            if isinstance(value, str) and value.strip().lstrip("-").isdigit():
                query[key] = {"$in": [value, int(value)]}
            else:
                query[key] = value
        return query

    async def list_records(self, collection: Collection, filters: Optional[Dict[str, Any]] = None) -> List[Record]:
        coll = self._collection(collection)
        try:
            records = await coll.find(self._to_query(filters), _PROJECTION).to_list(length=None)
        except PyMongoError as e:
            self._stats["errors"] += 1
            raise StoreError(f"Failed to list {collection.value}: {e}") from e
        self._stats["reads"] += 1
        return records

    async def get_record(self, collection: Collection, record_id: Any) -> Record:
        coll = self._collection(collection)
        record_id = coerce_id(record_id)
        try:
            record = await coll.find_one({"id": record_id}, _PROJECTION)
        except PyMongoError as e:
            self._stats["errors"] += 1
            raise StoreError(f"Failed to read {collection.label} {record_id}: {e}") from e
        self._stats["reads"] += 1
        if record is None:
            raise NotFoundError(collection.label, record_id)
        return record

    async def count(self, collection: Collection) -> int:
        coll = self._collection(collection)
        try:
            return await coll.count_documents({})
        except PyMongoError as e:
            self._stats["errors"] += 1
            raise StoreError(f"Failed to count {collection.value}: {e}") from e

    async def upsert_many(self, collection: Collection, records: Iterable[Record]) -> WriteSummary:
        """
        Bulk upsert by id, stamping modified_at on every record.

        Each record is shallow-copied into a ``$set`` so fields the mirror
        does not know about are stored verbatim.
        """
        coll = self._collection(collection)
        now = datetime.now(timezone.utc)
        operations = []
        for record in records:
            if not isinstance(record, dict) or record.get("id") is None:
                raise ValidationError(f"Every {collection.label} record needs an id")
            document = {k: v for k, v in record.items() if k != "_id"}
            document["id"] = coerce_id(document["id"])
            document["modified_at"] = now
            operations.append(UpdateOne({"id": document["id"]}, {"$set": document}, upsert=True))

        if not operations:
            return WriteSummary()

        try:
            result = await coll.bulk_write(operations, ordered=False)
        except PyMongoError as e:
            self._stats["errors"] += 1
            raise StoreError(f"Failed to write {collection.value}: {e}") from e

        self._stats["writes"] += 1
        return WriteSummary(
            matched=result.matched_count,
            modified=result.modified_count,
            upserted=result.upserted_count,
        )

    async def clear(self, collection: Collection) -> int:
        coll = self._collection(collection)
        try:
            result = await coll.delete_many({})
        except PyMongoError as e:
            self._stats["errors"] += 1
            raise StoreError(f"Failed to clear {collection.value}: {e}") from e
        self._stats["writes"] += 1
        return result.deleted_count

    async def replace_all(self, collection: Collection, records: List[Record]) -> WriteSummary:
        """Clear a collection and write a fresh batch in one request"""
        await self.clear(collection)
        return await self.upsert_many(collection, records)

    async def health_check(self) -> Dict[str, Any]:
        """Ping MongoDB and report latency"""
        if self._client is None:
            return {"status": "unhealthy", "error": "not initialized", "stats": self._stats}
        try:
            start_time = asyncio.get_running_loop().time()
            await self._client.admin.command("ping")
            latency_ms = (asyncio.get_running_loop().time() - start_time) * 1000
            return {
                "status": "healthy",
                "latency_ms": round(latency_ms, 2),
                "stats": self._stats,
            }
        except PyMongoError as e:
            logger.error(f"Mirror store health check failed: {e}")
            return {"status": "unhealthy", "error": str(e), "stats": self._stats}

    def get_stats(self) -> Dict[str, int]:
        return dict(self._stats)


# Global mirror store instance
mirror_store = MirrorStore()


def get_mirror_store() -> MirrorStore:
    """Get the global mirror store instance."""
    return mirror_store
