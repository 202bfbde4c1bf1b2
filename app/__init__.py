"""
VLRBUDDY - Esports Catalog Mirror

Backend for the VLRBuddy Valorant companion app:
- PandaScore upstream client with retries
- MongoDB mirror of teams, players, tournaments, series, matches and leagues
- Periodic ingestion scheduler
- Mirror-first read service with upstream fallback
"""

__version__ = "1.0.0"
__author__ = "VLRBuddy Team"
__description__ = "Esports catalog mirror and ingestion service"


def get_version() -> str:
    """Return the package version."""
    return __version__
