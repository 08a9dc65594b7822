"""
Sync API endpoints.

Syncing pulls a peer's snapshot into my ledger. A single-peer sync
commits or rolls back as a whole; /sync/all commits per peer and
always answers 200 with one result per peer.
"""

import asyncio

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ledger_share.api.deps import http_error, sync_engine
from ledger_share.errors import SharingError
from ledger_share.models.base import get_db
from ledger_share.schemas.sync import SyncResultResponse
from ledger_share.services.sync_engine import SyncEngine

router = APIRouter(prefix="/sync", tags=["Sync"])


@router.post("/peers/{peer_id}", response_model=SyncResultResponse)
async def sync_peer(
    peer_id: str,
    db: Session = Depends(get_db),
    engine: SyncEngine = Depends(sync_engine),
):
    """
    Merge one peer's published ledger into mine.

    Fails with 403 when the peer has not shared their data with me
    and with 400 when they have not given me a snapshot reference.
    """
    try:
        result = await engine.sync_peer(peer_id)
        await asyncio.to_thread(db.commit)
        return result
    except SharingError as e:
        await asyncio.to_thread(db.rollback)
        raise http_error(e)


@router.post("/all", response_model=list[SyncResultResponse])
async def sync_all(engine: SyncEngine = Depends(sync_engine)):
    """Sync every peer that shares data with me, one at a time."""
    try:
        return await engine.sync_all()
    except SharingError as e:
        raise http_error(e)
