"""
VLRBUDDY - Catalog Models
Collections, statuses and record helpers for the mirrored catalog.
"""

from app.models.catalog import (
    REFERENCE_FIELDS,
    VARIANTS,
    Collection,
    EntityStatus,
    Record,
    coerce_id,
    dedupe_by_id,
    filter_records,
    has_status,
    opponent_ids,
    project_ref,
    ref_id,
    safe_id,
    tournament_player_ids,
    tournament_team_ids,
)

__all__ = [
    "REFERENCE_FIELDS",
    "VARIANTS",
    "Collection",
    "EntityStatus",
    "Record",
    "coerce_id",
    "dedupe_by_id",
    "filter_records",
    "has_status",
    "opponent_ids",
    "project_ref",
    "ref_id",
    "safe_id",
    "tournament_player_ids",
    "tournament_team_ids",
]
