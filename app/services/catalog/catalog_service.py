"""
VLRBUDDY - Catalog Read Service

Read path for the esports catalog. Every read goes to the mirror first;
when the mirror is unreachable, errors, or answers with the wrong shape,
the same read is issued against PandaScore and filtered locally with the
same criteria. Nothing read from the fallback is cached or written back.

A record the mirror reports as missing is surfaced as NotFoundError and
does not trigger the fallback.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set

from app.core.database import MirrorReader
from app.core.exceptions import (
    CatalogUnavailableError,
    ConfigError,
    NotFoundError,
    StoreError,
    UpstreamError,
    ValidationError,
)
from app.models.catalog import (
    Collection,
    EntityStatus,
    Record,
    coerce_id,
    filter_records,
    has_status,
    opponent_ids,
    ref_id,
    tournament_player_ids,
    tournament_team_ids,
)
from app.services.collectors.pandascore import PandaScoreCollector
from app.utils.time_format import sort_by_timestamp

logger = logging.getLogger(__name__)

# Mirror failures that send a read to the upstream
FALLBACK_ERRORS = (StoreError, UpstreamError, ValidationError)

# Upstream failures that make a read unavailable
UPSTREAM_ERRORS = (UpstreamError, ValidationError, ConfigError)


class CatalogService:
    """Mirror-first catalog reads with upstream fallback"""

    def __init__(self, mirror: MirrorReader, upstream: PandaScoreCollector):
        self.mirror = mirror
        self.upstream = upstream

    # =========================================================================
    # FALLBACK CORE
    # =========================================================================

    async def _with_fallback(
        self,
        description: str,
        primary: Callable[[], Awaitable[Any]],
        fallback: Callable[[], Awaitable[Any]],
        expected: type,
    ) -> Any:
        try:
            data = await primary()
            if not isinstance(data, expected):
                raise ValidationError(f"Invalid {description} data received from mirror")
            return data
        except NotFoundError:
            raise
        except FALLBACK_ERRORS as mirror_error:
            logger.warning(f"[Catalog] Mirror read of {description} failed ({mirror_error}), using PandaScore")
            try:
                data = await fallback()
            except NotFoundError:
                raise
            except UPSTREAM_ERRORS as upstream_error:
                logger.error(f"[Catalog] Failed to fetch {description}: {upstream_error}")
                raise CatalogUnavailableError(description, mirror_error, upstream_error) from upstream_error
            if not isinstance(data, expected):
                upstream_error = ValidationError(f"Invalid {description} data received from PandaScore")
                raise CatalogUnavailableError(description, mirror_error, upstream_error)
            return data

    async def _list(
        self,
        collection: Collection,
        filters: Optional[Dict[str, Any]] = None,
        status: Optional[EntityStatus] = None,
    ) -> List[Record]:
        criteria = dict(filters or {})
        if status is not None:
            criteria["status"] = status.value
        description = f"{status.variant} {collection.value}" if status else collection.value

        async def from_upstream() -> List[Record]:
            if status is not None and collection.has_variants:
                records = await self.upstream.fetch_status(collection, status)
            else:
                records = await self.upstream.fetch_collection(collection)
            return filter_records(records, criteria)

        return await self._with_fallback(
            description,
            lambda: self.mirror.list_records(collection, criteria or None),
            from_upstream,
            list,
        )

    async def _get(self, collection: Collection, record_id: Any) -> Record:
        record_id = coerce_id(record_id)
        return await self._with_fallback(
            f"{collection.label} {record_id}",
            lambda: self.mirror.get_record(collection, record_id),
            lambda: self.upstream.fetch_one(collection, record_id),
            dict,
        )

    # =========================================================================
    # COLLECTIONS
    # =========================================================================

    async def get_teams(self, filters: Optional[Dict[str, Any]] = None) -> List[Record]:
        return await self._list(Collection.TEAMS, filters)

    async def get_players(self, filters: Optional[Dict[str, Any]] = None) -> List[Record]:
        return await self._list(Collection.PLAYERS, filters)

    async def get_leagues(self, filters: Optional[Dict[str, Any]] = None) -> List[Record]:
        return await self._list(Collection.LEAGUES, filters)

    async def get_series(self, filters: Optional[Dict[str, Any]] = None) -> List[Record]:
        return await self._list(Collection.SERIES, filters)

    async def get_matches(self, filters: Optional[Dict[str, Any]] = None) -> List[Record]:
        return await self._list(Collection.MATCHES, filters)

    async def get_tournaments(self, filters: Optional[Dict[str, Any]] = None) -> List[Record]:
        return await self._list(Collection.TOURNAMENTS, filters)

    async def get_team(self, team_id: Any) -> Record:
        return await self._get(Collection.TEAMS, team_id)

    async def get_player(self, player_id: Any) -> Record:
        return await self._get(Collection.PLAYERS, player_id)

    async def get_league(self, league_id: Any) -> Record:
        return await self._get(Collection.LEAGUES, league_id)

    async def get_serie(self, serie_id: Any) -> Record:
        return await self._get(Collection.SERIES, serie_id)

    async def get_match(self, match_id: Any) -> Record:
        return await self._get(Collection.MATCHES, match_id)

    async def get_tournament(self, tournament_id: Any) -> Record:
        return await self._get(Collection.TOURNAMENTS, tournament_id)

    # =========================================================================
    # STATUS VIEWS
    # =========================================================================

    async def get_by_status(self, collection: Collection, status: EntityStatus) -> List[Record]:
        if not collection.has_variants:
            raise ValidationError(f"{collection.value} have no status")
        return await self._list(collection, status=status)

    async def get_upcoming_matches(self) -> List[Record]:
        return await self.get_by_status(Collection.MATCHES, EntityStatus.NOT_STARTED)

    async def get_live_matches(self) -> List[Record]:
        return await self.get_by_status(Collection.MATCHES, EntityStatus.RUNNING)

    async def get_past_matches(self) -> List[Record]:
        return await self.get_by_status(Collection.MATCHES, EntityStatus.FINISHED)

    async def get_upcoming_tournaments(self) -> List[Record]:
        return await self.get_by_status(Collection.TOURNAMENTS, EntityStatus.NOT_STARTED)

    async def get_running_tournaments(self) -> List[Record]:
        return await self.get_by_status(Collection.TOURNAMENTS, EntityStatus.RUNNING)

    async def get_past_tournaments(self) -> List[Record]:
        return await self.get_by_status(Collection.TOURNAMENTS, EntityStatus.FINISHED)

    async def get_upcoming_series(self) -> List[Record]:
        return await self.get_by_status(Collection.SERIES, EntityStatus.NOT_STARTED)

    async def get_running_series(self) -> List[Record]:
        return await self.get_by_status(Collection.SERIES, EntityStatus.RUNNING)

    async def get_past_series(self) -> List[Record]:
        return await self.get_by_status(Collection.SERIES, EntityStatus.FINISHED)

    # =========================================================================
    # DETAIL JOINS
    # =========================================================================

    async def get_team_details(self, team_id: Any) -> Record:
        """
        Team with its roster, matches split by status, and tournaments.

        Tournament membership comes from the tournament's own ``teams``
        roster; tournaments without one are matched through the team's
        matches instead.
        """
        team_id = coerce_id(team_id)
        team = await self.get_team(team_id)
        players, matches, tournaments = await asyncio.gather(
            self.get_players(), self.get_matches(), self.get_tournaments()
        )

        team_matches = [m for m in matches if team_id in opponent_ids(m)]
        played_in = _tournament_ids(team_matches)

        return {
            **team,
            "players": [p for p in players if ref_id(p.get("current_team")) == team_id],
            "upcoming_matches": sort_by_timestamp(
                m for m in team_matches if has_status(m, EntityStatus.NOT_STARTED)
            ),
            "past_matches": sort_by_timestamp(
                (m for m in team_matches if has_status(m, EntityStatus.FINISHED)), descending=True
            ),
            "tournaments": [t for t in tournaments if _team_in_tournament(t, team_id, played_in)],
        }

    async def get_player_details(self, player_id: Any) -> Record:
        """Player with the matches and tournaments they (or their current team) took part in."""
        player_id = coerce_id(player_id)
        player = await self.get_player(player_id)
        team_id = ref_id(player.get("current_team"))
        matches, tournaments = await asyncio.gather(self.get_matches(), self.get_tournaments())

        player_matches = [m for m in matches if _involves(m, player_id, team_id)]
        played_in = _tournament_ids(player_matches)

        player_tournaments = []
        for tournament in tournaments:
            if player_id in tournament_player_ids(tournament):
                player_tournaments.append(tournament)
            elif team_id is not None and _team_in_tournament(tournament, team_id, played_in):
                player_tournaments.append(tournament)

        return {
            **player,
            "matches": sort_by_timestamp(player_matches, descending=True),
            "tournaments": player_tournaments,
        }

    async def get_match_details(self, match_id: Any) -> Record:
        """
        Match with its opponents resolved against the teams collection.

        ``players`` maps each resolved team id to its current roster;
        ``missing_team_ids`` lists opponents absent from the teams collection.
        """
        match_id = coerce_id(match_id)
        match = await self.get_match(match_id)
        teams, players = await asyncio.gather(self.get_teams(), self.get_players())

        teams_by_id = {}
        for team in teams:
            team_key = ref_id(team)
            if team_key is not None:
                teams_by_id[team_key] = team

        resolved = []
        missing = []
        for opponent_id in _ordered_opponent_ids(match):
            if opponent_id in teams_by_id:
                resolved.append(teams_by_id[opponent_id])
            else:
                missing.append(opponent_id)

        rosters: Dict[str, List[Record]] = {str(ref_id(team)): [] for team in resolved}
        for player in players:
            current_team = ref_id(player.get("current_team"))
            if current_team is not None and str(current_team) in rosters:
                rosters[str(current_team)].append(player)

        if missing:
            logger.warning(f"[Catalog] Match {match_id} references unknown teams: {missing}")

        return {**match, "teams": resolved, "players": rosters, "missing_team_ids": missing}


def _ordered_opponent_ids(match: Record) -> List[int]:
    ids = []
    for entry in match.get("opponents") or []:
        opponent_id = ref_id(entry.get("opponent")) if isinstance(entry, dict) else None
        if opponent_id is not None and opponent_id not in ids:
            ids.append(opponent_id)
    return ids


def _tournament_ids(matches: List[Record]) -> Set[int]:
    ids = {ref_id(m.get("tournament")) for m in matches}
    ids.discard(None)
    return ids


def _team_in_tournament(tournament: Record, team_id: int, played_in: Set[int]) -> bool:
    roster = tournament_team_ids(tournament)
    if roster is None:
        return ref_id(tournament) in played_in
    return team_id in roster


def _involves(match: Record, player_id: int, team_id: Optional[int]) -> bool:
    # Solo titles list players as opponents; team titles list teams
    ids = opponent_ids(match)
    return player_id in ids or (team_id is not None and team_id in ids)


# Global service instance, built on first use
_catalog_service: Optional[CatalogService] = None


def get_catalog_service() -> CatalogService:
    global _catalog_service
    if _catalog_service is None:
        from app.core.database import get_mirror_store
        from app.services.collectors.pandascore import get_pandascore_collector

        _catalog_service = CatalogService(get_mirror_store(), get_pandascore_collector())
    return _catalog_service
