"""
VLRBUDDY - Data Collectors Package

COLLECTORS:
    base_collector.py - HTTP client with linear-backoff retries
    pandascore.py     - PandaScore esports catalog (Bearer key required)
    backend.py        - This service's own /api, read as a remote mirror
"""

from app.services.collectors.backend import BackendMirrorClient
from app.services.collectors.base_collector import BaseCollector, RetryStrategy
from app.services.collectors.pandascore import (
    PandaScoreCollector,
    get_pandascore_collector,
    pandascore_collector,
)

__all__ = [
    "BaseCollector",
    "RetryStrategy",
    "PandaScoreCollector",
    "get_pandascore_collector",
    "pandascore_collector",
    "BackendMirrorClient",
]
