"""
VLRBUDDY - Catalog Model
Collections, statuses and reference helpers for the mirrored esports catalog.

Records are plain dicts exactly as the upstream returns them (plus
``modified_at``), so unknown upstream fields survive a round trip through
the mirror. The helpers here only read the fields the joins need.
"""

from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Set

from app.core.exceptions import ValidationError

Record = Dict[str, Any]


class Collection(str, Enum):
    """Mirrored collections, named as in the upstream and backend URLs"""
    TEAMS = "teams"
    TOURNAMENTS = "tournaments"
    SERIES = "series"
    PLAYERS = "players"
    MATCHES = "matches"
    LEAGUES = "leagues"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def has_variants(self) -> bool:
        """Whether the upstream exposes past/running/upcoming lists"""
        return self in (Collection.TOURNAMENTS, Collection.SERIES, Collection.MATCHES)


_LABELS = {
    Collection.TEAMS: "team",
    Collection.TOURNAMENTS: "tournament",
    Collection.SERIES: "serie",
    Collection.PLAYERS: "player",
    Collection.MATCHES: "match",
    Collection.LEAGUES: "league",
}


class EntityStatus(str, Enum):
    """Closed set of lifecycle statuses for matches, tournaments and series"""
    NOT_STARTED = "not_started"
    RUNNING = "running"
    FINISHED = "finished"

    @property
    def variant(self) -> str:
        """Upstream list variant holding records with this status"""
        return _STATUS_VARIANTS[self]


_STATUS_VARIANTS = {
    EntityStatus.NOT_STARTED: "upcoming",
    EntityStatus.RUNNING: "running",
    EntityStatus.FINISHED: "past",
}

# "" is the unfiltered list endpoint; order matters, later variants win on dedupe
VARIANTS = ("", "past", "running", "upcoming")

REFERENCE_FIELDS = ("id", "name", "image_url")


def coerce_id(value: Any) -> int:
    """Coerce an identifier (int, numeric string) to int."""
    if isinstance(value, bool):
        raise ValidationError(f"Invalid identifier: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        if text.lstrip("-").isdigit():
            return int(text)
    raise ValidationError(f"Invalid identifier: {value!r}")


def safe_id(value: Any) -> Optional[int]:
    """Like coerce_id, but returns None for missing or malformed ids."""
    if value is None:
        return None
    try:
        return coerce_id(value)
    except ValidationError:
        return None


def project_ref(ref: Any) -> Optional[Record]:
    """Project a nested entity reference to {id, name, image_url}."""
    if not isinstance(ref, dict):
        return None
    return {key: ref.get(key) for key in REFERENCE_FIELDS}


def ref_id(ref: Any) -> Optional[int]:
    if not isinstance(ref, dict):
        return None
    return safe_id(ref.get("id"))


def has_status(record: Record, status: EntityStatus) -> bool:
    """Status comparison; unknown statuses never match."""
    return record.get("status") == status.value


def opponent_ids(match: Record) -> Set[int]:
    """Ids of the teams (or players) listed as opponents of a match"""
    ids = set()
    for entry in match.get("opponents") or []:
        if not isinstance(entry, dict):
            continue
        opponent_id = ref_id(entry.get("opponent"))
        if opponent_id is not None:
            ids.add(opponent_id)
    return ids


def tournament_team_ids(tournament: Record) -> Optional[Set[int]]:
    """
    Team ids listed on a tournament.

    Returns None when the tournament carries no ``teams`` roster, which
    means membership is unknown rather than empty.
    """
    teams = tournament.get("teams")
    if not isinstance(teams, list) or not teams:
        return None
    return {team_id for team_id in (ref_id(team) for team in teams) if team_id is not None}


def tournament_player_ids(tournament: Record) -> Set[int]:
    ids = set()
    for team in tournament.get("teams") or []:
        if not isinstance(team, dict):
            continue
        for player in team.get("players") or []:
            player_id = ref_id(player)
            if player_id is not None:
                ids.add(player_id)
    return ids


def dedupe_by_id(*batches: Iterable[Record]) -> List[Record]:
    """Merge batches keyed by int id; a later record replaces an earlier one."""
    merged: Dict[int, Record] = {}
    for batch in batches:
        for record in batch:
            if not isinstance(record, dict):
                continue
            record_id = safe_id(record.get("id"))
            if record_id is not None:
                merged[record_id] = record
    return list(merged.values())


def filter_records(records: Iterable[Record], filters: Optional[Dict[str, Any]] = None) -> List[Record]:
    """Shallow equality filter over top-level fields, ids compared as ints. Non-objects are dropped."""
    records = [r for r in records if isinstance(r, dict)]
    if not filters:
        return records
    return [r for r in records if all(_field_matches(r.get(k), v) for k, v in filters.items())]


def _field_matches(actual: Any, expected: Any) -> bool:
    if actual == expected:
        return True
    if isinstance(actual, (int, str)) and isinstance(expected, (int, str)):
        left, right = safe_id(actual), safe_id(expected)
        return left is not None and left == right
    return False
