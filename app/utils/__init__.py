"""Shared utilities."""

from .time_format import format_score, format_timestamp, parse_timestamp, sort_by_timestamp, to_epoch_ms

__all__ = [
    "format_score",
    "format_timestamp",
    "parse_timestamp",
    "sort_by_timestamp",
    "to_epoch_ms",
]
