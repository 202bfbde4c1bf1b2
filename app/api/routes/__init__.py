"""
VLRBUDDY - API Routes Package

Route modules:
- Health checks (health)
- Scheduler status and manual refresh (scheduler)
- Catalog views and detail joins (catalog)
- Raw collection CRUD (collections)

Registration order matters: the fixed paths must come before the
``/{collection}/{record_id}`` catch-all.
"""

from fastapi import APIRouter

from app.api.routes import catalog
from app.api.routes import collections
from app.api.routes import health
from app.api.routes import scheduler

# Create main API router
api_router = APIRouter()

api_router.include_router(health.router, tags=["Health"])
api_router.include_router(scheduler.router, tags=["Scheduler"])
api_router.include_router(catalog.router, tags=["Catalog"])
api_router.include_router(collections.router, tags=["Collections"])

__all__ = ["api_router"]
