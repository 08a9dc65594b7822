"""
Remote object store interface.

Snapshots travel between peers through a blob store that both can
reach, such as a cloud drive. Implementations are blocking; the
publisher and the sync engine run them off the event loop with a
timeout.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, List, Optional, TypeVar

T = TypeVar("T")

# Opaque identifiers handed out by the store
FolderRef = str
ObjectRef = str


class RemoteStoreError(Exception):
    """Any failure talking to the remote store."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RemoteObjectNotFoundError(RemoteStoreError):
    """The referenced object or folder does not exist."""
    pass


@dataclass(frozen=True)
class ObjectMetadata:
    """Metadata for one stored object."""
    ref: ObjectRef
    name: str
    mime_type: str
    modified_at: Optional[datetime] = None


class RemoteObjectStore(ABC):
    """Upload, download and list named blobs in folders."""

    @abstractmethod
    def get_or_create_folder(self, name: str) -> FolderRef:
        """Return the folder with this name, creating it if needed."""

    @abstractmethod
    def upload(
        self, name: str, content: bytes, mime_type: str, folder: FolderRef
    ) -> ObjectRef:
        """
        Store content under name in folder and return its reference.

        An existing object with the same name in the same folder is
        replaced.
        """

    @abstractmethod
    def download(self, ref: ObjectRef) -> bytes:
        """Return the object's content. Raises RemoteObjectNotFoundError."""

    @abstractmethod
    def list(
        self, folder: FolderRef, name_filter: Optional[str] = None
    ) -> List[ObjectMetadata]:
        """List objects in folder, optionally filtered by name pattern."""


async def run_blocking(timeout: float, func: Callable[..., T], *args: Any) -> T:
    """
    Run a blocking store call in a worker thread, bounded by timeout.

    Raises asyncio.TimeoutError when the call does not finish in time.
    Cancelling the awaiting task stops waiting; the thread itself
    runs to completion in the background.
    """
    return await asyncio.wait_for(asyncio.to_thread(func, *args), timeout)
