"""Marketplace event ingestion routes."""

import asyncio

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from marketplace.store import MarketplaceStore
from web.auth import verify_secret
from web.deps import get_store
from web.errors import ValidationError
from web.models import SyncUserRequest

logger = structlog.get_logger()

router = APIRouter(prefix="/sync", tags=["sync"], dependencies=[Depends(verify_secret)])


@router.post("/user")
async def sync_user(body: SyncUserRequest, store: MarketplaceStore = Depends(get_store)):
    user = body.user or {}
    if not body.eventId or user.get("id") in (None, ""):
        raise ValidationError("Missing eventId or user")

    try:
        applied = await asyncio.to_thread(store.ingest_user_event, body.eventId, user)
    except Exception as e:
        logger.error("sync.user_failed", event_id=body.eventId, error=str(e))
        return JSONResponse(status_code=500, content={"error": "Sync failed"})

    if not applied:
        logger.info("sync.skipped", event_id=body.eventId)
        return {"skipped": True}
    logger.info("sync.applied", event_id=body.eventId, user_id=str(user["id"]))
    return {"success": True}
