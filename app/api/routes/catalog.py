"""
VLRBUDDY - Catalog API Routes
Status views and detail joins served by the catalog read service
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends

from app.api.dependencies import get_catalog
from app.services.catalog import CatalogService

router = APIRouter()


# =============================================================================
# STATUS VIEWS
# =============================================================================

@router.get("/matches/upcoming")
async def upcoming_matches(catalog: CatalogService = Depends(get_catalog)) -> List[Dict[str, Any]]:
    return await catalog.get_upcoming_matches()


@router.get("/matches/live")
async def live_matches(catalog: CatalogService = Depends(get_catalog)) -> List[Dict[str, Any]]:
    return await catalog.get_live_matches()


@router.get("/matches/past")
async def past_matches(catalog: CatalogService = Depends(get_catalog)) -> List[Dict[str, Any]]:
    return await catalog.get_past_matches()


@router.get("/tournaments/upcoming")
async def upcoming_tournaments(catalog: CatalogService = Depends(get_catalog)) -> List[Dict[str, Any]]:
    return await catalog.get_upcoming_tournaments()


@router.get("/tournaments/running")
async def running_tournaments(catalog: CatalogService = Depends(get_catalog)) -> List[Dict[str, Any]]:
    return await catalog.get_running_tournaments()


@router.get("/tournaments/past")
async def past_tournaments(catalog: CatalogService = Depends(get_catalog)) -> List[Dict[str, Any]]:
    return await catalog.get_past_tournaments()


@router.get("/series/upcoming")
async def upcoming_series(catalog: CatalogService = Depends(get_catalog)) -> List[Dict[str, Any]]:
    return await catalog.get_upcoming_series()


@router.get("/series/running")
async def running_series(catalog: CatalogService = Depends(get_catalog)) -> List[Dict[str, Any]]:
    return await catalog.get_running_series()


@router.get("/series/past")
async def past_series(catalog: CatalogService = Depends(get_catalog)) -> List[Dict[str, Any]]:
    return await catalog.get_past_series()


# =============================================================================
# DETAILS
# =============================================================================

@router.get("/teams/{team_id}/details")
async def team_details(team_id: str, catalog: CatalogService = Depends(get_catalog)) -> Dict[str, Any]:
    """Team with roster, upcoming and past matches, and tournaments."""
    return await catalog.get_team_details(team_id)


@router.get("/players/{player_id}/details")
async def player_details(player_id: str, catalog: CatalogService = Depends(get_catalog)) -> Dict[str, Any]:
    """Player with their matches and tournaments."""
    return await catalog.get_player_details(player_id)


@router.get("/matches/{match_id}/details")
async def match_details(match_id: str, catalog: CatalogService = Depends(get_catalog)) -> Dict[str, Any]:
    """Match with resolved opponent teams and their rosters."""
    return await catalog.get_match_details(match_id)
