"""
Sync engine: pulls a peer's published snapshot into the local ledger.

Within one sync the steps are strictly sequential:
1. Download the peer's object into a temporary file
2. Decode it (nothing is merged if this fails)
3. Merge it through the configured merge policy
4. Stamp the peer's last sync time

The temporary file is removed on every exit path, including
cancellation. Decoding and merging run in a worker thread so a
large merge does not hold up the event loop. Role checks happen
before sync_from is called; there is no write-back path to the peer,
so READER and WRITER behave the same here.
"""

import asyncio
import logging
import os
import tempfile
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Callable

from ledger_share.errors import (
    DownloadError,
    NoRemoteRefError,
    PeerAccessError,
    SharingError,
)
from ledger_share.models.base import utcnow
from ledger_share.models.sharing import SharedPeer
from ledger_share.remote.base import RemoteObjectStore, RemoteStoreError, run_blocking
from ledger_share.services.ledger_store import LedgerStore
from ledger_share.services.merge_policy import InsertOrReplaceById, MergeCounts, MergePolicy
from ledger_share.services.sharing_directory import SharingDirectory
from ledger_share.services.snapshot_codec import LedgerSnapshotCodec

logger = logging.getLogger(__name__)


class SyncStatus(str, Enum):
    SYNCED = "synced"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class SyncResult:
    """Outcome of syncing one peer."""
    peer_id: str
    status: str
    categories: int = 0
    budgets: int = 0
    expenses: int = 0
    synced_at: datetime | None = None
    error: str | None = None
    error_type: str | None = field(default=None, repr=False)

    @property
    def ok(self) -> bool:
        return self.status == SyncStatus.SYNCED.value

    def to_dict(self) -> dict[str, Any]:
        return {
            "peer_id": self.peer_id,
            "status": self.status,
            "categories": self.categories,
            "budgets": self.budgets,
            "expenses": self.expenses,
            "synced_at": self.synced_at.isoformat() if self.synced_at else None,
            "error": self.error,
        }


class SyncEngine:

    def __init__(
        self,
        ledger_store: LedgerStore,
        directory: SharingDirectory,
        remote: RemoteObjectStore,
        codec: LedgerSnapshotCodec | None = None,
        policy: MergePolicy | None = None,
        timeout: float = 30.0,
        temp_dir: str | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.ledger_store = ledger_store
        self.directory = directory
        self.remote = remote
        self.codec = codec or LedgerSnapshotCodec()
        self.policy = policy or InsertOrReplaceById()
        self.timeout = timeout
        self.temp_dir = temp_dir
        self.clock = clock

    async def _download(self, ref: str) -> bytes:
        try:
            return await run_blocking(self.timeout, self.remote.download, ref)
        except asyncio.TimeoutError as e:
            logger.error("Download of %s timed out after %ss", ref, self.timeout)
            raise DownloadError(
                f"Download of {ref} timed out after {self.timeout}s", ref=ref
            ) from e
        except RemoteStoreError as e:
            logger.error("Download of %s failed: %s", ref, e, exc_info=True)
            raise DownloadError(f"Download of {ref} failed: {e}", ref=ref) from e

    def _merge(self, peer_id: str, content: bytes) -> tuple[MergeCounts, datetime]:
        """Decode, merge and stamp the peer. Runs in a worker thread."""
        snapshot = self.codec.decode(content)
        counts = self.policy.apply(self.ledger_store, snapshot)
        synced_at = self.clock()
        self.directory.record_sync(peer_id, synced_at)
        return counts, synced_at

    async def sync_from(self, peer: SharedPeer) -> SyncResult:
        """
        Fetch the peer's snapshot and merge it into the local ledger.

        Raises NoRemoteRefError, DownloadError, CorruptSnapshotError or
        StorageError. The caller commits on success and rolls back on
        failure.
        """
        ref = peer.their_remote_snapshot_ref
        if not ref:
            raise NoRemoteRefError(peer.peer_id)

        logger.info("Syncing from %s (object %s)", peer.peer_id, ref)
        try:
            fd, temp_path = tempfile.mkstemp(
                prefix="shared_data_", suffix=".json", dir=self.temp_dir
            )
        except OSError as e:
            raise DownloadError(f"Cannot create temporary file: {e}", ref=ref) from e

        try:
            with os.fdopen(fd, "wb") as fh:
                content = await self._download(ref)
                try:
                    fh.write(content)
                except OSError as e:
                    raise DownloadError(f"Cannot write {temp_path}: {e}", ref=ref) from e

            staged = Path(temp_path).read_bytes()
            counts, synced_at = await asyncio.to_thread(self._merge, peer.peer_id, staged)
        finally:
            Path(temp_path).unlink(missing_ok=True)

        logger.info(
            "Synced from %s: %d categories, %d budgets, %d expenses",
            peer.peer_id, counts.categories, counts.budgets, counts.expenses,
        )
        return SyncResult(
            peer_id=peer.peer_id,
            status=SyncStatus.SYNCED.value,
            categories=counts.categories,
            budgets=counts.budgets,
            expenses=counts.expenses,
            synced_at=synced_at,
        )

    async def sync_peer(self, peer_id: str) -> SyncResult:
        """Sync one peer by id, refusing peers that granted me nothing."""
        peer = self.directory.require_peer(peer_id)
        if peer.my_role_for_their_data is None:
            raise PeerAccessError(peer_id)
        return await self.sync_from(peer)

    async def sync_all(self) -> list[SyncResult]:
        """
        Sync every peer that shares data with me, one after another.

        Each peer is committed or rolled back on its own, so one
        peer's failure neither undoes nor blocks the others. Later
        peers win when ids collide.
        """
        db = self.ledger_store.db
        peer_ids = [p.peer_id for p in self.directory.list_peers()]
        results: list[SyncResult] = []

        for peer_id in peer_ids:
            peer = self.directory.get_peer(peer_id)
            if peer is None:
                continue
            if peer.my_role_for_their_data is None or not peer.their_remote_snapshot_ref:
                results.append(SyncResult(
                    peer_id=peer_id, status=SyncStatus.SKIPPED.value
                ))
                continue

            try:
                result = await self.sync_from(peer)
                await asyncio.to_thread(db.commit)
            except SharingError as e:
                await asyncio.to_thread(db.rollback)
                logger.warning("Sync from %s failed: %s", peer_id, e)
                result = SyncResult(
                    peer_id=peer_id,
                    status=SyncStatus.FAILED.value,
                    error=str(e),
                    error_type=type(e).__name__,
                )
            results.append(result)

        return results
