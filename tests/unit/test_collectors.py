"""
VLRBUDDY - Collector Unit Tests
Retry policy, PandaScore endpoints and the backend mirror client
"""

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from app.core.exceptions import ConfigError, NotFoundError, UpstreamError, ValidationError
from app.models.catalog import Collection, EntityStatus
from app.services.collectors.base_collector import RetryStrategy

pytestmark = pytest.mark.unit


def flaky(failures: int, status: int = 500, payload=None):
    """Route that fails ``failures`` times, then answers ``payload``."""
    state = {"calls": 0}

    def route(request: httpx.Request) -> httpx.Response:
        state["calls"] += 1
        if state["calls"] <= failures:
            return httpx.Response(status, json={"error": "try again"})
        return httpx.Response(200, json=payload if payload is not None else [])

    return route


class TestRetryStrategy:
    """Test linear backoff."""

    def test_linear_delays(self):
        strategy = RetryStrategy(max_attempts=3, base_delay=1.0)
        assert [strategy.get_delay(n) for n in (1, 2, 3)] == [1.0, 2.0, 3.0]


class TestRetries:
    """Test request retries against a mocked upstream."""

    @pytest.mark.asyncio
    async def test_transient_failures_recovered(self, upstream, collector_factory):
        """Two 500s then a 200 succeeds on the third attempt."""
        upstream.routes["/valorant/teams"] = flaky(2, payload=[{"id": 1}])
        collector = collector_factory(upstream)

        assert await collector.fetch("teams") == [{"id": 1}]
        assert len(upstream.requests) == 3

    @pytest.mark.asyncio
    async def test_exhausted_retries_raise_upstream_error(self, upstream, collector_factory):
        upstream.routes["/valorant/teams"] = 503
        collector = collector_factory(upstream)

        with pytest.raises(UpstreamError) as exc_info:
            await collector.fetch("teams")

        assert exc_info.value.status == 503
        assert len(upstream.requests) == 3

    @pytest.mark.asyncio
    async def test_rate_limit_retried(self, upstream, collector_factory):
        upstream.routes["/valorant/teams"] = flaky(1, status=429, payload=[{"id": 1}])
        collector = collector_factory(upstream)

        assert await collector.fetch("teams") == [{"id": 1}]
        assert len(upstream.requests) == 2

    @pytest.mark.asyncio
    async def test_not_found_not_retried(self, upstream, collector_factory):
        collector = collector_factory(upstream)

        with pytest.raises(NotFoundError):
            await collector.fetch("nothing")

        assert len(upstream.requests) == 1

    @pytest.mark.asyncio
    async def test_malformed_json_not_retried(self, upstream, collector_factory):
        upstream.routes["/valorant/teams"] = lambda request: httpx.Response(200, content=b"<html>oops</html>")
        collector = collector_factory(upstream)

        with pytest.raises(UpstreamError, match="Malformed JSON"):
            await collector.fetch("teams")

        assert len(upstream.requests) == 1

    @pytest.mark.asyncio
    async def test_transport_errors_retried(self, upstream, collector_factory):
        def down(request):
            raise httpx.ConnectError("connection refused", request=request)

        upstream.routes["/valorant/teams"] = down
        collector = collector_factory(upstream)

        with pytest.raises(UpstreamError) as exc_info:
            await collector.fetch("teams")

        assert exc_info.value.status is None
        assert len(upstream.requests) == 3

    @pytest.mark.asyncio
    async def test_backoff_delays(self, upstream, collector_factory):
        """Retries wait base_delay * retry number."""
        upstream.routes["/valorant/teams"] = 500
        collector = collector_factory(upstream)
        collector.retry_strategy = RetryStrategy(max_attempts=3, base_delay=1.0)

        with patch("app.services.collectors.base_collector.asyncio.sleep", new_callable=AsyncMock) as sleep:
            with pytest.raises(UpstreamError):
                await collector.fetch("teams")

        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0]


class TestPandaScoreCollector:
    """Test PandaScore endpoint handling."""

    @pytest.mark.asyncio
    async def test_bearer_auth_and_game_path(self, upstream, collector_factory):
        upstream.routes["/valorant/leagues"] = [{"id": 900}]
        collector = collector_factory(upstream)

        await collector.fetch("leagues")

        request = upstream.requests[0]
        assert request.url.path == "/valorant/leagues"
        assert request.headers["Authorization"] == "Bearer test-key"

    @pytest.mark.asyncio
    async def test_missing_key_is_config_error(self, upstream, collector_factory):
        upstream.routes["/valorant/teams"] = []
        collector = collector_factory(upstream, api_key="")

        assert not collector.has_credentials
        with pytest.raises(ConfigError):
            await collector.fetch("teams")
        assert upstream.requests == []

    @pytest.mark.asyncio
    async def test_non_array_rejected(self, upstream, collector_factory):
        upstream.routes["/valorant/teams"] = {"error": "unexpected"}
        collector = collector_factory(upstream)

        with pytest.raises(ValidationError):
            await collector.fetch("teams")

    @pytest.mark.asyncio
    async def test_variants_deduplicated(self, upstream, collector_factory, make_variant_routes):
        """all=[7,8], past=[8], running=[], upcoming=[9] merges to {7,8,9}."""
        upstream.routes.update(make_variant_routes(
            "matches",
            all=[{"id": 7}, {"id": 8}],
            past=[{"id": 8}],
            upcoming=[{"id": 9}],
        ))
        collector = collector_factory(upstream)

        merged = await collector.fetch_collection(Collection.MATCHES)

        assert sorted(r["id"] for r in merged) == [7, 8, 9]
        assert sorted(upstream.paths()) == [
            "/valorant/matches",
            "/valorant/matches/past",
            "/valorant/matches/running",
            "/valorant/matches/upcoming",
        ]

    @pytest.mark.asyncio
    async def test_failed_variant_fails_collection(self, upstream, collector_factory, make_variant_routes):
        upstream.routes.update(make_variant_routes("series", all=[{"id": 1}]))
        upstream.routes["/valorant/series/running"] = 500
        collector = collector_factory(upstream)

        with pytest.raises(UpstreamError):
            await collector.fetch_collection(Collection.SERIES)

    @pytest.mark.asyncio
    async def test_flat_collection_single_request(self, upstream, collector_factory):
        upstream.routes["/valorant/players"] = [{"id": 10}]
        collector = collector_factory(upstream)

        assert await collector.fetch_collection(Collection.PLAYERS) == [{"id": 10}]
        assert upstream.paths() == ["/valorant/players"]

    @pytest.mark.asyncio
    async def test_fetch_status_uses_variant_endpoint(self, upstream, collector_factory):
        upstream.routes["/valorant/matches/running"] = [
            {"id": 1, "status": "running"},
            {"id": 2, "status": "finished"},
        ]
        collector = collector_factory(upstream)

        live = await collector.fetch_status(Collection.MATCHES, EntityStatus.RUNNING)

        assert [m["id"] for m in live] == [1]
        assert upstream.paths() == ["/valorant/matches/running"]

    @pytest.mark.asyncio
    async def test_fetch_one(self, upstream, collector_factory):
        upstream.routes["/valorant/teams/1"] = {"id": 1, "name": "Alpha"}
        collector = collector_factory(upstream)

        assert (await collector.fetch_one(Collection.TEAMS, "1"))["name"] == "Alpha"

    @pytest.mark.asyncio
    async def test_fetch_one_not_found(self, upstream, collector_factory):
        collector = collector_factory(upstream)

        with pytest.raises(NotFoundError) as exc_info:
            await collector.fetch_one(Collection.MATCHES, 404404)

        assert str(exc_info.value) == "match 404404 not found"


class TestBackendMirrorClient:
    """Test the HTTP mirror reader."""

    def _client(self, upstream):
        from app.services.collectors.backend import BackendMirrorClient

        client = BackendMirrorClient(base_url="http://backend.test/api", transport=upstream.transport())
        client.retry_strategy = RetryStrategy(max_attempts=2, base_delay=0)
        return client

    @pytest.mark.asyncio
    async def test_list_passes_filters(self, upstream):
        upstream.routes["/api/matches"] = [{"id": 1, "status": "running"}]
        client = self._client(upstream)

        records = await client.list_records(Collection.MATCHES, {"status": "running"})

        assert records == [{"id": 1, "status": "running"}]
        assert upstream.requests[0].url.params["status"] == "running"
        assert "Authorization" not in upstream.requests[0].headers

    @pytest.mark.asyncio
    async def test_list_returns_body_unvalidated(self, upstream):
        upstream.routes["/api/matches"] = {"error": "Failed to fetch matches"}
        client = self._client(upstream)

        assert await client.list_records(Collection.MATCHES) == {"error": "Failed to fetch matches"}

    @pytest.mark.asyncio
    async def test_get_record_not_found(self, upstream):
        client = self._client(upstream)

        with pytest.raises(NotFoundError) as exc_info:
            await client.get_record(Collection.TEAMS, "5")

        assert exc_info.value.collection == "team"
        assert exc_info.value.record_id == 5
