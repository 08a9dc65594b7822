"""
Shared FastAPI dependencies and error mapping.

Services are built per request from the request's session. The
remote store and the peer feed are process-wide.
"""

from functools import lru_cache
from pathlib import Path

from fastapi import Depends, HTTPException
from sqlalchemy.orm import Session

from ledger_share.config import get_settings
from ledger_share.errors import (
    SharingError,
    SnapshotNotReadyError,
    InvalidInvitationError,
    PublishError,
    NoRemoteRefError,
    DownloadError,
    CorruptSnapshotError,
    StorageError,
    PeerNotFoundError,
    PeerAccessError,
)
from ledger_share.identity import Identity, get_identity
from ledger_share.models.base import get_db
from ledger_share.remote.base import RemoteObjectStore, RemoteStoreError
from ledger_share.remote.filesystem import FilesystemObjectStore
from ledger_share.services.invitation_protocol import InvitationProtocol
from ledger_share.services.ledger_store import LedgerStore
from ledger_share.services.merge_policy import get_merge_policy
from ledger_share.services.peer_feed import PeerFeed
from ledger_share.services.sharing_directory import SharingDirectory
from ledger_share.services.snapshot_publisher import SnapshotPublisher
from ledger_share.services.sync_engine import SyncEngine

# Most specific classes first
ERROR_STATUS: list[tuple[type[SharingError], int]] = [
    (PeerNotFoundError, 404),
    (PeerAccessError, 403),
    (InvalidInvitationError, 409),
    (SnapshotNotReadyError, 409),
    (NoRemoteRefError, 400),
    (CorruptSnapshotError, 422),
    (DownloadError, 502),
    (PublishError, 502),
    (StorageError, 500),
]


def http_error(error: SharingError) -> HTTPException:
    """Translate a service error into the HTTP error the client sees."""
    for error_type, status_code in ERROR_STATUS:
        if isinstance(error, error_type):
            break
    else:
        status_code = 500

    if isinstance(error, InvalidInvitationError):
        detail = error.reason
    else:
        detail = str(error)
    return HTTPException(status_code=status_code, detail=detail)


# --- Process-wide collaborators ---

_peer_feed = PeerFeed()


def get_peer_feed() -> PeerFeed:
    return _peer_feed


@lru_cache()
def get_remote_store() -> RemoteObjectStore:
    """Build the configured remote store once per process."""
    settings = get_settings()
    backend = settings.REMOTE_STORE_BACKEND.lower()

    if backend == "filesystem":
        return FilesystemObjectStore(Path(settings.REMOTE_STORE_ROOT))
    if backend == "drive":
        # Imported here so the Google client is only loaded when used
        from ledger_share.remote.drive import GoogleDriveObjectStore
        return GoogleDriveObjectStore.from_token_file(settings.GOOGLE_CREDENTIALS_FILE)
    raise ValueError(f"Unknown REMOTE_STORE_BACKEND: {settings.REMOTE_STORE_BACKEND}")


def remote_store() -> RemoteObjectStore:
    try:
        return get_remote_store()
    except RemoteStoreError as e:
        raise HTTPException(status_code=503, detail=str(e))


def current_identity() -> Identity:
    try:
        return get_identity()
    except ValueError:
        raise HTTPException(
            status_code=500, detail="CURRENT_USER_EMAIL is not configured"
        )


# --- Per-request services ---

def sharing_directory(
    db: Session = Depends(get_db),
    feed: PeerFeed = Depends(get_peer_feed),
) -> SharingDirectory:
    return SharingDirectory(db, feed)


def invitation_protocol(
    directory: SharingDirectory = Depends(sharing_directory),
    identity: Identity = Depends(current_identity),
) -> InvitationProtocol:
    return InvitationProtocol(directory, identity)


def snapshot_publisher(
    db: Session = Depends(get_db),
    remote: RemoteObjectStore = Depends(remote_store),
    identity: Identity = Depends(current_identity),
) -> SnapshotPublisher:
    settings = get_settings()
    return SnapshotPublisher(
        LedgerStore(db),
        remote,
        identity,
        folder_name=settings.SNAPSHOT_FOLDER_NAME,
        file_name=settings.SNAPSHOT_FILE_NAME,
        backup_prefix=settings.BACKUP_FILE_PREFIX,
        timeout=settings.REMOTE_TIMEOUT_SECONDS,
        temp_dir=settings.TEMP_DIR,
    )


def sync_engine(
    db: Session = Depends(get_db),
    directory: SharingDirectory = Depends(sharing_directory),
    remote: RemoteObjectStore = Depends(remote_store),
) -> SyncEngine:
    settings = get_settings()
    return SyncEngine(
        LedgerStore(db),
        directory,
        remote,
        policy=get_merge_policy(settings.MERGE_POLICY),
        timeout=settings.REMOTE_TIMEOUT_SECONDS,
        temp_dir=settings.TEMP_DIR,
    )
