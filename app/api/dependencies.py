"""
VLRBUDDY - API Dependencies
FastAPI dependency injection for the mirror, read service and scheduler
"""

from fastapi import HTTPException, status

from app.core.database import MirrorStore, get_mirror_store
from app.models.catalog import Collection
from app.services.catalog import CatalogService, get_catalog_service
from app.services.scheduling import IngestionScheduler, get_ingestion_scheduler


def get_store() -> MirrorStore:
    """Mirror store dependency."""
    return get_mirror_store()


def get_catalog() -> CatalogService:
    """Catalog read service dependency."""
    return get_catalog_service()


def get_scheduler() -> IngestionScheduler:
    """Ingestion scheduler dependency."""
    return get_ingestion_scheduler()


def resolve_collection(collection: str) -> Collection:
    """
    Path parameter dependency for ``{collection}``.

    Unknown collection names are reported as 404 rather than as a
    request validation error.
    """
    try:
        return Collection(collection)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown collection: {collection}",
        )
