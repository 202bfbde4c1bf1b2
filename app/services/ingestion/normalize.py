"""Record normalization applied before writing to the mirror."""

from typing import Any, Iterator, List, Sequence

from app.core.exceptions import ValidationError
from app.models.catalog import Record, project_ref


def _require_object(record: Any, kind: str) -> Record:
    if not isinstance(record, dict):
        raise ValidationError(f"Invalid {kind} record: {record!r}")
    return record


def normalize_player(player: Record) -> Record:
    """Keep only {id, name, image_url} of the player's current team."""
    player = _require_object(player, "player")
    return {**player, "current_team": project_ref(player.get("current_team"))}


def normalize_match(match: Record) -> Record:
    """Project opponent, tournament and league references to {id, name, image_url}."""
    match = _require_object(match, "match")
    opponents = match.get("opponents")
    if isinstance(opponents, list):
        opponents = [
            {**entry, "opponent": project_ref(entry.get("opponent"))}
            for entry in opponents
            if isinstance(entry, dict)
        ]
    else:
        opponents = []
    return {
        **match,
        "opponents": opponents,
        "tournament": project_ref(match.get("tournament")),
        "league": project_ref(match.get("league")),
    }


def chunked(records: Sequence[Record], size: int) -> Iterator[List[Record]]:
    for start in range(0, len(records), size):
        yield list(records[start:start + size])
