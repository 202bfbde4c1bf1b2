"""
VLRBUDDY - Core Module
Configuration, error taxonomy and the mirror store.
"""

from app.core.config import Settings, get_settings, settings
from app.core.database import (
    MirrorReader,
    MirrorStore,
    WriteSummary,
    get_mirror_store,
    mirror_store,
)
from app.core.exceptions import (
    CatalogUnavailableError,
    ConfigError,
    IngestionError,
    NotFoundError,
    StoreError,
    UpstreamError,
    ValidationError,
    VLRBuddyError,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    "settings",

    # Mirror store
    "MirrorReader",
    "MirrorStore",
    "WriteSummary",
    "get_mirror_store",
    "mirror_store",

    # Errors
    "VLRBuddyError",
    "ConfigError",
    "UpstreamError",
    "StoreError",
    "NotFoundError",
    "ValidationError",
    "IngestionError",
    "CatalogUnavailableError",
]
