"""
Snapshot publisher: makes the local ledger fetchable by peers.

Publishing encodes the whole ledger, writes it to a temporary file,
makes sure the well-known remote folder exists and uploads the
document under a fixed name. Each publish replaces the previous
object; nothing is versioned and nothing is skipped when the ledger
did not change. The temporary file is removed on every exit path,
including cancellation.

Steps:
1. Encode the ledger snapshot (worker thread)
2. Write the temporary file
3. Get or create the remote folder
4. Upload the file
5. Record the publication locally (caller commits)
"""

import asyncio
import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Callable

from ledger_share.errors import PublishError, storage_errors
from ledger_share.identity import Identity
from ledger_share.models.base import utcnow
from ledger_share.models.sharing import SnapshotPublication
from ledger_share.remote.base import (
    ObjectMetadata,
    ObjectRef,
    RemoteObjectStore,
    RemoteStoreError,
    run_blocking,
)
from ledger_share.services.ledger_store import LedgerStore
from ledger_share.services.snapshot_codec import LedgerSnapshotCodec, SNAPSHOT_MIME_TYPE

logger = logging.getLogger(__name__)

DEFAULT_FOLDER_NAME = "PersonalBudgetBackups"
DEFAULT_FILE_NAME = "my_personalbudget_data.json"
DEFAULT_BACKUP_PREFIX = "personalbudget_backup_"
BACKUP_EXTENSION = ".json"


class SnapshotPublisher:

    def __init__(
        self,
        ledger_store: LedgerStore,
        remote: RemoteObjectStore,
        identity: Identity,
        codec: LedgerSnapshotCodec | None = None,
        folder_name: str = DEFAULT_FOLDER_NAME,
        file_name: str = DEFAULT_FILE_NAME,
        backup_prefix: str = DEFAULT_BACKUP_PREFIX,
        timeout: float = 30.0,
        temp_dir: str | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.ledger_store = ledger_store
        self.remote = remote
        self.identity = identity
        self.codec = codec or LedgerSnapshotCodec()
        self.folder_name = folder_name
        self.file_name = file_name
        self.backup_prefix = backup_prefix
        self.timeout = timeout
        self.temp_dir = temp_dir
        self.clock = clock

    async def _remote(self, what: str, func, *args):
        try:
            return await run_blocking(self.timeout, func, *args)
        except asyncio.TimeoutError as e:
            logger.error("%s timed out after %ss", what, self.timeout)
            raise PublishError(f"{what} timed out after {self.timeout}s") from e
        except RemoteStoreError as e:
            logger.error("%s failed: %s", what, e, exc_info=True)
            raise PublishError(f"{what} failed: {e}") from e

    def _encode_ledger(self) -> bytes:
        return self.codec.encode(self.ledger_store.snapshot())

    async def _upload_ledger(self, name: str) -> tuple[str, ObjectRef, int]:
        """Encode, stage in a temp file and upload. Returns (folder, ref, size)."""
        content = await asyncio.to_thread(self._encode_ledger)

        try:
            fd, temp_path = tempfile.mkstemp(
                prefix="ledger_snapshot_", suffix=".json", dir=self.temp_dir
            )
        except OSError as e:
            raise PublishError(f"Cannot create temporary file: {e}") from e
        try:
            try:
                with os.fdopen(fd, "wb") as fh:
                    fh.write(content)
                staged = Path(temp_path).read_bytes()
            except OSError as e:
                raise PublishError(f"Cannot stage snapshot locally: {e}") from e

            folder = await self._remote(
                f"Creating folder {self.folder_name}",
                self.remote.get_or_create_folder, self.folder_name,
            )
            ref = await self._remote(
                f"Uploading {name}",
                self.remote.upload, name, staged, SNAPSHOT_MIME_TYPE, folder,
            )
        finally:
            Path(temp_path).unlink(missing_ok=True)

        return folder, ref, len(staged)

    async def ensure_published(self) -> ObjectRef:
        """
        Publish the current ledger and return the object reference.

        Old references are not guaranteed to stay retrievable after a
        new publish.
        """
        logger.info("Publishing ledger snapshot for %s", self.identity.email)
        folder, ref, size = await self._upload_ledger(self.file_name)

        await asyncio.to_thread(self._record_publication, folder, ref, size)

        logger.info("Published snapshot %s (%d bytes)", ref, size)
        return ref

    def _record_publication(self, folder: str, ref: ObjectRef, size: int) -> None:
        with storage_errors("record publication"):
            self.ledger_store.db.merge(SnapshotPublication(
                owner_email=self.identity.email,
                folder_ref=folder,
                object_ref=ref,
                byte_size=size,
                published_at=self.clock(),
            ))
            self.ledger_store.db.flush()

    def current_publication(self) -> SnapshotPublication | None:
        with storage_errors("read publication"):
            return self.ledger_store.db.get(SnapshotPublication, self.identity.email)

    def current_ref(self) -> ObjectRef | None:
        """The last reference this ledger was published under, if any."""
        publication = self.current_publication()
        return publication.object_ref if publication else None

    async def backup(self) -> ObjectRef:
        """Upload a timestamped copy of the ledger next to the snapshot."""
        stamp = self.clock().strftime("%Y%m%d_%H%M%S")
        name = f"{self.backup_prefix}{stamp}{BACKUP_EXTENSION}"
        _, ref, size = await self._upload_ledger(name)
        logger.info("Backup %s uploaded (%d bytes)", name, size)
        return ref

    async def list_backups(self) -> list[ObjectMetadata]:
        folder = await self._remote(
            f"Creating folder {self.folder_name}",
            self.remote.get_or_create_folder, self.folder_name,
        )
        backups = await self._remote(
            "Listing backups",
            self.remote.list, folder, f"{self.backup_prefix}*",
        )
        return sorted(backups, key=lambda m: m.name, reverse=True)
