"""
VLRBUDDY - Collection API Routes
Raw CRUD over the mirrored collections
"""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, Request

from app.api.dependencies import get_store, resolve_collection
from app.api.schemas import DeleteResponse, WriteResponse, WriteResult
from app.core.database import MirrorStore
from app.core.exceptions import ValidationError
from app.models.catalog import Collection

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/{collection}")
async def list_collection(
    request: Request,
    collection: Collection = Depends(resolve_collection),
    store: MirrorStore = Depends(get_store),
) -> List[Dict[str, Any]]:
    """
    List a collection.

    Query-string parameters are shallow equality filters on top-level
    fields, e.g. ``/matches?status=running``.
    """
    filters = dict(request.query_params)
    return await store.list_records(collection, filters or None)


@router.post("/{collection}", response_model=WriteResponse)
async def upsert_collection(
    collection: Collection = Depends(resolve_collection),
    records: Any = Body(...),
    store: MirrorStore = Depends(get_store),
):
    """Upsert an array of records by id."""
    if not isinstance(records, list):
        raise ValidationError("Request body must be an array of records")

    summary = await store.upsert_many(collection, records)
    logger.info(f"[API] Upserted {len(records)} {collection.value}")
    return WriteResponse(result=WriteResult(**summary.to_dict()))


@router.delete("/{collection}", response_model=DeleteResponse)
async def clear_collection(
    collection: Collection = Depends(resolve_collection),
    store: MirrorStore = Depends(get_store),
):
    """Delete every record of a collection."""
    deleted = await store.clear(collection)
    logger.info(f"[API] Cleared {deleted} {collection.value}")
    return DeleteResponse(deleted_count=deleted)


@router.get("/{collection}/{record_id}")
async def get_record(
    record_id: str,
    collection: Collection = Depends(resolve_collection),
    store: MirrorStore = Depends(get_store),
) -> Dict[str, Any]:
    """Get one record by id."""
    return await store.get_record(collection, record_id)
