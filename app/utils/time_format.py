"""
Time formatting utilities for catalog timestamps.

Upstream timestamps are ISO-8601 strings (``2024-05-01T18:00:00Z``) or
missing entirely for matches that have not been scheduled yet.

Used by:
- Catalog detail views (match ordering)
- CLI tables
"""

import math
from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional

from app.models.catalog import Record

PLACEHOLDER_TIME = "TBD"
PLACEHOLDER_SCORE = "-"


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp into an aware datetime.

    Naive values are taken as UTC. Returns None for missing or
    unparseable input.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def to_epoch_ms(value: Any) -> Optional[int]:
    dt = parse_timestamp(value)
    if dt is None:
        return None
    return int(dt.timestamp() * 1000)


def format_timestamp(value: Any, fmt: str = "%Y-%m-%d %H:%M UTC") -> str:
    """
    Format a timestamp for display in UTC.

    Examples:
        >>> format_timestamp("2024-05-01T18:00:00Z")  # "2024-05-01 18:00 UTC"
        >>> format_timestamp(None)                    # "TBD"
    """
    dt = parse_timestamp(value)
    if dt is None:
        return PLACEHOLDER_TIME
    return dt.astimezone(timezone.utc).strftime(fmt)


def format_score(match: Record) -> str:
    """
    Render a match score from its opponents, e.g. "2 - 1".

    Each side missing a numeric score shows "-"; a match without
    opponents renders as a single "-".

        >>> format_score({"opponents": [{"score": 2}, {"score": 1}]})
        '2 - 1'
        >>> format_score({"opponents": [{"score": 1}]})
        '1 - -'
    """
    opponents = match.get("opponents")
    if not isinstance(opponents, list) or not opponents:
        return PLACEHOLDER_SCORE

    sides = []
    for index in range(2):
        entry = opponents[index] if index < len(opponents) else None
        score = entry.get("score") if isinstance(entry, dict) else None
        sides.append(_format_side(score))
    return " - ".join(sides)


def _format_side(score: Any) -> str:
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        return PLACEHOLDER_SCORE
    if isinstance(score, float):
        if not math.isfinite(score):
            return PLACEHOLDER_SCORE
        return f"{score:g}"
    return str(score)


def sort_by_timestamp(
    records: Iterable[Record],
    field: str = "scheduled_at",
    descending: bool = False,
) -> List[Record]:
    """
    Sort records by a timestamp field.

    Records without a usable timestamp always sort last, whichever the
    direction.
    """
    dated = []
    undated = []
    for record in records:
        dt = parse_timestamp(record.get(field))
        if dt is None:
            undated.append(record)
        else:
            dated.append((dt, record))
    dated.sort(key=lambda pair: pair[0], reverse=descending)
    return [record for _, record in dated] + undated
