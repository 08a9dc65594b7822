"""Remote object stores used as the snapshot transport between peers."""

from ledger_share.remote.base import (
    FolderRef,
    ObjectMetadata,
    ObjectRef,
    RemoteObjectNotFoundError,
    RemoteObjectStore,
    RemoteStoreError,
    run_blocking,
)
from ledger_share.remote.filesystem import FilesystemObjectStore

__all__ = [
    "FolderRef",
    "ObjectMetadata",
    "ObjectRef",
    "RemoteObjectNotFoundError",
    "RemoteObjectStore",
    "RemoteStoreError",
    "FilesystemObjectStore",
    "run_blocking",
]
