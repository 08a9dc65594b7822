"""
Snapshot API endpoints: publishing my ledger and its backups.
"""

import asyncio

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ledger_share.api.deps import http_error, snapshot_publisher
from ledger_share.errors import SharingError
from ledger_share.models.base import get_db
from ledger_share.schemas.sync import PublicationResponse, RemoteObjectResponse
from ledger_share.services.snapshot_publisher import SnapshotPublisher

router = APIRouter(prefix="/snapshots", tags=["Snapshots"])


@router.post("/publish", response_model=PublicationResponse, status_code=201)
async def publish_snapshot(
    db: Session = Depends(get_db),
    publisher: SnapshotPublisher = Depends(snapshot_publisher),
):
    """
    Upload the whole ledger to the well-known remote location.

    Every call uploads again and replaces the previous object.
    """
    try:
        await publisher.ensure_published()
        await asyncio.to_thread(db.commit)
        return publisher.current_publication()
    except SharingError as e:
        await asyncio.to_thread(db.rollback)
        raise http_error(e)


@router.get("/current", response_model=PublicationResponse)
def get_current_publication(
    publisher: SnapshotPublisher = Depends(snapshot_publisher),
):
    try:
        publication = publisher.current_publication()
    except SharingError as e:
        raise http_error(e)
    if not publication:
        raise HTTPException(status_code=404, detail="Ledger has not been published")
    return publication


@router.post("/backups", response_model=RemoteObjectResponse, status_code=201)
async def create_backup(
    publisher: SnapshotPublisher = Depends(snapshot_publisher),
):
    """Upload a timestamped copy of the ledger."""
    try:
        ref = await publisher.backup()
        backups = await publisher.list_backups()
    except SharingError as e:
        raise http_error(e)
    for backup in backups:
        if backup.ref == ref:
            return backup
    raise HTTPException(status_code=502, detail=f"Backup {ref} not listed by remote store")


@router.get("/backups", response_model=list[RemoteObjectResponse])
async def list_backups(
    publisher: SnapshotPublisher = Depends(snapshot_publisher),
):
    """Backups in the snapshot folder, newest first."""
    try:
        return await publisher.list_backups()
    except SharingError as e:
        raise http_error(e)
