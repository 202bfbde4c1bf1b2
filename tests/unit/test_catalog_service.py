"""
VLRBUDDY - Catalog Service Unit Tests
Mirror-first reads, upstream fallback, status views and detail joins
"""

from unittest.mock import AsyncMock

import pytest

from app.core.exceptions import (
    CatalogUnavailableError,
    NotFoundError,
    StoreError,
    UpstreamError,
    ValidationError,
)
from app.models.catalog import Collection
from app.services.catalog import CatalogService

pytestmark = pytest.mark.unit


@pytest.fixture
def service(seeded_mirror, catalog_upstream, collector_factory):
    return CatalogService(seeded_mirror, collector_factory(catalog_upstream))


def ids(records):
    return [r["id"] for r in records]


class TestMirrorReads:
    """Test reads served by the mirror."""

    @pytest.mark.asyncio
    async def test_list_from_mirror(self, service, catalog_upstream):
        teams = await service.get_teams()

        assert sorted(ids(teams)) == [1, 2, 3]
        assert catalog_upstream.requests == []

    @pytest.mark.asyncio
    async def test_filters_passed_to_mirror(self, service, seeded_mirror):
        finished = await service.get_matches({"status": "finished"})

        assert sorted(ids(finished)) == [102, 103]
        assert seeded_mirror.calls[-1] == ("list", Collection.MATCHES, {"status": "finished"})

    @pytest.mark.asyncio
    async def test_get_by_string_id(self, service):
        assert (await service.get_team("2"))["name"] == "Bravo"

    @pytest.mark.asyncio
    async def test_every_single_record_getter(self, service):
        assert (await service.get_player(10))["name"] == "ace"
        assert (await service.get_league(900))["name"] == "VCT"
        assert (await service.get_serie(800))["name"] == "Stage 1"
        assert (await service.get_match(100))["status"] == "running"
        assert (await service.get_tournament(500))["name"] == "Tournament 500"

    @pytest.mark.asyncio
    async def test_invalid_id_rejected_without_io(self, service, seeded_mirror, catalog_upstream):
        with pytest.raises(ValidationError):
            await service.get_match("abc")

        assert seeded_mirror.calls == []
        assert catalog_upstream.requests == []

    @pytest.mark.asyncio
    async def test_not_found_does_not_fall_back(self, service, catalog_upstream):
        with pytest.raises(NotFoundError):
            await service.get_team(12345)

        assert catalog_upstream.requests == []


class TestFallback:
    """Test upstream fallback when the mirror fails."""

    @pytest.mark.asyncio
    async def test_fallback_is_transparent(self, service, seeded_mirror):
        """Mirror down returns the same records the mirror would have."""
        from_mirror = await service.get_matches()
        seeded_mirror.fail_all = True
        from_upstream = await service.get_matches()

        assert sorted(ids(from_upstream)) == sorted(ids(from_mirror))

    @pytest.mark.asyncio
    async def test_fallback_applies_filters(self, service, seeded_mirror):
        seeded_mirror.fail_all = True

        assert ids(await service.get_teams({"acronym": "BRV"})) == [2]

    @pytest.mark.asyncio
    async def test_non_array_mirror_body_falls_back(self, service, seeded_mirror, catalog_upstream):
        """A remote mirror answering an error object is treated as a failure."""
        seeded_mirror.list_records = AsyncMock(return_value={"error": "Failed to fetch matches"})

        matches = await service.get_matches()

        assert sorted(ids(matches)) == [100, 101, 102, 103, 104]
        assert "/valorant/matches" in catalog_upstream.paths()

    @pytest.mark.asyncio
    async def test_non_object_mirror_record_falls_back(self, service, seeded_mirror, catalog_upstream):
        seeded_mirror.get_record = AsyncMock(return_value=[{"id": 1}])

        team = await service.get_team(1)

        assert team["name"] == "Alpha"
        assert catalog_upstream.paths() == ["/valorant/teams/1"]

    @pytest.mark.asyncio
    async def test_remote_mirror_error_falls_back(self, service, seeded_mirror):
        seeded_mirror.get_record = AsyncMock(side_effect=UpstreamError("backend returned HTTP 500", status=500))

        assert (await service.get_player(20))["name"] == "flick"

    @pytest.mark.asyncio
    async def test_status_fallback_uses_variant_endpoint(self, service, seeded_mirror, catalog_upstream):
        seeded_mirror.fail_all = True

        live = await service.get_live_matches()

        assert ids(live) == [100]
        assert catalog_upstream.paths() == ["/valorant/matches/running"]

    @pytest.mark.asyncio
    async def test_not_found_upstream_surfaces(self, service, seeded_mirror):
        seeded_mirror.fail_all = True

        with pytest.raises(NotFoundError):
            await service.get_match(999)

    @pytest.mark.asyncio
    async def test_both_paths_failing(self, service, seeded_mirror, catalog_upstream):
        seeded_mirror.fail_all = True
        catalog_upstream.routes["/valorant/teams"] = 500

        with pytest.raises(CatalogUnavailableError) as exc_info:
            await service.get_teams()

        error = exc_info.value
        assert isinstance(error.mirror_error, StoreError)
        assert isinstance(error.upstream_error, UpstreamError)
        assert str(error).startswith("Failed to fetch teams")

    @pytest.mark.asyncio
    async def test_fallback_not_cached(self, service, seeded_mirror, catalog_upstream):
        seeded_mirror.fail_all = True
        await service.get_leagues()
        await service.get_leagues()

        assert catalog_upstream.paths() == ["/valorant/leagues", "/valorant/leagues"]
        assert seeded_mirror.data[Collection.LEAGUES]


class TestStatusViews:
    """Test status-filtered views."""

    @pytest.mark.asyncio
    async def test_live_matches(self, service):
        """Only matches with status running are live."""
        assert ids(await service.get_live_matches()) == [100]

    @pytest.mark.asyncio
    async def test_upcoming_and_past_matches(self, service):
        assert sorted(ids(await service.get_upcoming_matches())) == [101, 104]
        assert sorted(ids(await service.get_past_matches())) == [102, 103]

    @pytest.mark.asyncio
    async def test_tournament_views(self, service):
        assert ids(await service.get_upcoming_tournaments()) == [501]
        assert ids(await service.get_running_tournaments()) == [500]
        assert ids(await service.get_past_tournaments()) == [502]

    @pytest.mark.asyncio
    async def test_series_views(self, service):
        assert ids(await service.get_running_series()) == [800]
        assert ids(await service.get_upcoming_series()) == [801]
        assert ids(await service.get_past_series()) == []

    @pytest.mark.asyncio
    async def test_undated_collection_has_no_status_view(self, service):
        from app.models.catalog import EntityStatus

        with pytest.raises(ValidationError):
            await service.get_by_status(Collection.TEAMS, EntityStatus.RUNNING)


class TestTeamDetails:
    """Test the team detail join."""

    @pytest.mark.asyncio
    async def test_team_details(self, service):
        details = await service.get_team_details("1")

        assert details["name"] == "Alpha"
        assert ids(details["players"]) == [10, 11]
        # Undated matches sort last
        assert ids(details["upcoming_matches"]) == [101, 104]
        assert ids(details["past_matches"]) == [103]

    @pytest.mark.asyncio
    async def test_tournament_membership(self, service):
        """Roster membership wins; tournaments without a roster go by the team's matches."""
        details = await service.get_team_details(1)

        assert sorted(ids(details["tournaments"])) == [500, 501]

    @pytest.mark.asyncio
    async def test_past_matches_newest_first(self, service):
        details = await service.get_team_details(2)

        assert ids(details["past_matches"]) == [103, 102]
        assert ids(details["upcoming_matches"]) == []

    @pytest.mark.asyncio
    async def test_unknown_team(self, service):
        with pytest.raises(NotFoundError):
            await service.get_team_details(4242)

    @pytest.mark.asyncio
    async def test_team_details_during_outage(self, service, seeded_mirror):
        seeded_mirror.fail_all = True

        details = await service.get_team_details(1)

        assert ids(details["players"]) == [10, 11]
        assert sorted(ids(details["tournaments"])) == [500, 501]


class TestPlayerDetails:
    """Test the player detail join."""

    @pytest.mark.asyncio
    async def test_player_details(self, service):
        details = await service.get_player_details(10)

        assert details["name"] == "ace"
        assert sorted(ids(details["matches"])) == [100, 101, 103, 104]
        assert sorted(ids(details["tournaments"])) == [500, 501]

    @pytest.mark.asyncio
    async def test_player_listed_on_tournament_roster(self, service):
        details = await service.get_player_details(20)

        assert sorted(ids(details["tournaments"])) == [500, 502]

    @pytest.mark.asyncio
    async def test_free_agent(self, service):
        details = await service.get_player_details(30)

        assert details["matches"] == []
        assert details["tournaments"] == []

    @pytest.mark.asyncio
    async def test_solo_match_opponents_are_players(self, service, seeded_mirror):
        seeded_mirror.seed(Collection.MATCHES, [{
            "id": 200,
            "status": "finished",
            "opponent_type": "Player",
            "opponents": [{"type": "Player", "opponent": {"id": 30}}, {"type": "Player", "opponent": {"id": 1}}],
        }])

        details = await service.get_player_details(30)

        assert ids(details["matches"]) == [200]

    @pytest.mark.asyncio
    async def test_player_listed_directly_without_opponent_type(self, service, seeded_mirror):
        """A match naming the player as an opponent counts even without opponent_type."""
        seeded_mirror.seed(Collection.MATCHES, [{
            "id": 201,
            "status": "finished",
            "opponents": [{"opponent": {"id": 10}}],
        }])

        details = await service.get_player_details("10")

        assert sorted(ids(details["matches"])) == [100, 101, 103, 104, 201]


class TestMatchDetails:
    """Test the match detail join."""

    @pytest.mark.asyncio
    async def test_match_details(self, service):
        details = await service.get_match_details(100)

        assert ids(details["teams"]) == [1, 2]
        assert ids(details["players"]["1"]) == [10, 11]
        assert ids(details["players"]["2"]) == [20]
        assert details["missing_team_ids"] == []

    @pytest.mark.asyncio
    async def test_dangling_opponent_reported(self, service):
        details = await service.get_match_details(104)

        assert ids(details["teams"]) == [1]
        assert details["missing_team_ids"] == [99]
        assert set(details["players"]) == {"1"}
