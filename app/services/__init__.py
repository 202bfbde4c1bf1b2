"""
VLRBUDDY - Services Module
Upstream collectors, ingestion, scheduling and the catalog read service.
"""

# Collectors
from app.services.collectors import BackendMirrorClient, BaseCollector, PandaScoreCollector

# Ingestion
from app.services.ingestion import CycleReport, IngestionService, IngestionStep, StepResult

# Scheduling
from app.services.scheduling import IngestionScheduler, get_ingestion_scheduler

# Read service
from app.services.catalog import CatalogService, get_catalog_service

__all__ = [
    # Collectors
    "BaseCollector",
    "PandaScoreCollector",
    "BackendMirrorClient",

    # Ingestion
    "IngestionService",
    "IngestionStep",
    "StepResult",
    "CycleReport",

    # Scheduling
    "IngestionScheduler",
    "get_ingestion_scheduler",

    # Read service
    "CatalogService",
    "get_catalog_service",
]
