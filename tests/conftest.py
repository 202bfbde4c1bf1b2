"""
VLRBUDDY - Test Configuration
Pytest fixtures and configuration for the test suite.
"""

import copy
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

from app.core.database import MirrorReader, WriteSummary
from app.core.exceptions import NotFoundError, StoreError, ValidationError
from app.models.catalog import Collection, Record, coerce_id, filter_records
from app.services.collectors.base_collector import RetryStrategy
from app.services.collectors.pandascore import PandaScoreCollector

UPSTREAM_BASE_URL = "https://api.pandascore.test"
BACKEND_BASE_URL = "http://backend.test/api"


class InMemoryMirror(MirrorReader):
    """
    Dict-backed mirror with the MirrorStore surface used by services and routes.

    ``failing`` holds collections whose reads and writes raise StoreError;
    ``fail_all`` makes every operation fail.
    """

    def __init__(self):
        self.data: Dict[Collection, Dict[int, Record]] = {c: {} for c in Collection}
        self.failing = set()
        self.fail_all = False
        self.calls: List[tuple] = []

    def _check(self, collection: Collection):
        if self.fail_all or collection in self.failing:
            raise StoreError(f"mirror down for {collection.value}")

    def seed(self, collection: Collection, records: List[Record]) -> None:
        for record in records:
            self.data[collection][record["id"]] = copy.deepcopy(record)

    async def initialize(self) -> None:
        return None

    async def close(self) -> None:
        return None

    async def list_records(self, collection: Collection, filters: Optional[Dict[str, Any]] = None) -> List[Record]:
        self.calls.append(("list", collection, filters))
        self._check(collection)
        return filter_records(copy.deepcopy(list(self.data[collection].values())), filters)

    async def get_record(self, collection: Collection, record_id: Any) -> Record:
        self.calls.append(("get", collection, record_id))
        self._check(collection)
        record_id = coerce_id(record_id)
        if record_id not in self.data[collection]:
            raise NotFoundError(collection.label, record_id)
        return copy.deepcopy(self.data[collection][record_id])

    async def count(self, collection: Collection) -> int:
        self._check(collection)
        return len(self.data[collection])

    async def upsert_many(self, collection: Collection, records) -> WriteSummary:
        self._check(collection)
        summary = WriteSummary()
        now = datetime.now(timezone.utc)
        for record in records:
            if not isinstance(record, dict) or record.get("id") is None:
                raise ValidationError(f"Every {collection.label} record needs an id")
            document = {k: v for k, v in record.items() if k != "_id"}
            document["id"] = coerce_id(document["id"])
            document["modified_at"] = now
            if document["id"] in self.data[collection]:
                summary = summary + WriteSummary(matched=1, modified=1)
                self.data[collection][document["id"]].update(document)
            else:
                summary = summary + WriteSummary(upserted=1)
                self.data[collection][document["id"]] = document
        return summary

    async def clear(self, collection: Collection) -> int:
        self._check(collection)
        deleted = len(self.data[collection])
        self.data[collection] = {}
        return deleted

    async def replace_all(self, collection: Collection, records: List[Record]) -> WriteSummary:
        await self.clear(collection)
        return await self.upsert_many(collection, records)

    async def health_check(self) -> Dict[str, Any]:
        if self.fail_all:
            return {"status": "unhealthy", "error": "mirror down"}
        return {"status": "healthy", "latency_ms": 0.1}


class MockUpstream:
    """
    Route table for an httpx.MockTransport.

    Values are JSON payloads, an int status code, or a callable taking
    the request and returning an httpx.Response. Unknown paths answer 404.
    """

    def __init__(self, routes: Optional[Dict[str, Any]] = None):
        self.routes: Dict[str, Any] = dict(routes or {})
        self.requests: List[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"error": "Not found"})
        if callable(route):
            return route(request)
        if isinstance(route, int):
            return httpx.Response(route, json={"error": "boom"})
        return httpx.Response(200, json=route)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def paths(self) -> List[str]:
        return [r.url.path for r in self.requests]


def make_collector(upstream: MockUpstream, api_key: str = "test-key") -> PandaScoreCollector:
    collector = PandaScoreCollector(
        api_key=api_key,
        base_url=UPSTREAM_BASE_URL,
        game="valorant",
        transport=upstream.transport(),
    )
    collector.retry_strategy = RetryStrategy(max_attempts=3, base_delay=0)
    return collector


def variant_routes(collection: str, **variants: List[Record]) -> Dict[str, List[Record]]:
    """Routes for /valorant/{collection}{,/past,/running,/upcoming}; missing variants are empty."""
    routes = {}
    for variant in ("", "past", "running", "upcoming"):
        path = f"/valorant/{collection}/{variant}" if variant else f"/valorant/{collection}"
        routes[path] = variants.get(variant or "all", [])
    return routes


# =============================================================================
# SAMPLE CATALOG
# =============================================================================

def _ref(record_id: int, name: str) -> Record:
    return {"id": record_id, "name": name, "image_url": f"https://cdn.test/{record_id}.png"}


def _match(match_id: int, status: str, team_ids: List[int], tournament_id: int, scheduled_at: Optional[str]) -> Record:
    return {
        "id": match_id,
        "name": f"Match {match_id}",
        "status": status,
        "scheduled_at": scheduled_at,
        "opponent_type": "Team",
        "opponents": [{"type": "Team", "opponent": _ref(t, f"Team {t}"), "score": 0} for t in team_ids],
        "tournament": _ref(tournament_id, f"Tournament {tournament_id}"),
        "league": _ref(900, "VCT"),
    }


@pytest.fixture
def sample_catalog() -> Dict[Collection, List[Record]]:
    """Small catalog covering every collection, with enough links for the detail joins."""
    return {
        Collection.TEAMS: [
            {"id": 1, "name": "Alpha", "acronym": "ALP"},
            {"id": 2, "name": "Bravo", "acronym": "BRV"},
            {"id": 3, "name": "Charlie", "acronym": "CHR"},
        ],
        Collection.PLAYERS: [
            {"id": 10, "name": "ace", "role": "duelist", "current_team": _ref(1, "Alpha")},
            {"id": 11, "name": "clutch", "role": "controller", "current_team": _ref(1, "Alpha")},
            {"id": 20, "name": "flick", "role": "sentinel", "current_team": _ref(2, "Bravo")},
            {"id": 30, "name": "freeagent", "role": None, "current_team": None},
        ],
        Collection.MATCHES: [
            _match(100, "running", [1, 2], 500, "2026-10-19T18:00:00Z"),
            _match(101, "not_started", [1, 3], 501, "2026-10-21T18:00:00Z"),
            _match(102, "finished", [2, 3], 500, "2026-10-10T18:00:00Z"),
            _match(103, "finished", [1, 2], 502, "2026-10-12T18:00:00Z"),
            _match(104, "not_started", [1, 99], 501, None),
        ],
        Collection.TOURNAMENTS: [
            {
                "id": 500,
                "name": "Tournament 500",
                "status": "running",
                "teams": [
                    {"id": 1, "name": "Alpha", "players": [{"id": 10}, {"id": 11}]},
                    {"id": 2, "name": "Bravo", "players": [{"id": 20}]},
                ],
            },
            {"id": 501, "name": "Tournament 501", "status": "not_started", "teams": []},
            {
                "id": 502,
                "name": "Tournament 502",
                "status": "finished",
                "teams": [{"id": 2, "name": "Bravo"}, {"id": 3, "name": "Charlie"}],
            },
        ],
        Collection.SERIES: [
            {"id": 800, "name": "Stage 1", "status": "running"},
            {"id": 801, "name": "Stage 2", "status": "not_started"},
        ],
        Collection.LEAGUES: [{"id": 900, "name": "VCT"}],
    }


@pytest.fixture
def mirror() -> InMemoryMirror:
    return InMemoryMirror()


@pytest.fixture
def seeded_mirror(mirror, sample_catalog) -> InMemoryMirror:
    for collection, records in sample_catalog.items():
        mirror.seed(collection, records)
    return mirror


@pytest.fixture
def upstream() -> MockUpstream:
    return MockUpstream()


@pytest.fixture
def collector_factory() -> Callable[..., PandaScoreCollector]:
    return make_collector


@pytest.fixture
def catalog_upstream(sample_catalog) -> MockUpstream:
    """Upstream serving the sample catalog, variants split by status."""
    routes: Dict[str, Any] = {}
    for collection, records in sample_catalog.items():
        if collection.has_variants:
            routes.update(variant_routes(
                collection.value,
                all=records,
                past=[r for r in records if r.get("status") == "finished"],
                running=[r for r in records if r.get("status") == "running"],
                upcoming=[r for r in records if r.get("status") == "not_started"],
            ))
        else:
            routes[f"/valorant/{collection.value}"] = records
        for record in records:
            routes[f"/valorant/{collection.value}/{record['id']}"] = record
    return MockUpstream(routes)


@pytest.fixture
def make_variant_routes() -> Callable[..., Dict[str, List[Record]]]:
    return variant_routes
