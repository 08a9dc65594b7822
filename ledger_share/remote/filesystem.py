"""
Filesystem-backed remote object store.

Folders are directories under a root, object references are
"folder/name" paths relative to that root. Useful for a shared
network mount, for local development and for tests.
"""

import fnmatch
import logging
import mimetypes
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from ledger_share.remote.base import (
    FolderRef,
    ObjectMetadata,
    ObjectRef,
    RemoteObjectNotFoundError,
    RemoteObjectStore,
    RemoteStoreError,
)

logger = logging.getLogger(__name__)


class FilesystemObjectStore(RemoteObjectStore):

    def __init__(self, root: Path):
        self.root = Path(root)

    def _resolve(self, ref: str) -> Path:
        """Map a reference to a path, refusing anything outside the root."""
        root = self.root.resolve()
        path = (root / ref).resolve()
        if path != root and root not in path.parents:
            raise RemoteObjectNotFoundError(f"Reference outside store: {ref}")
        return path

    def get_or_create_folder(self, name: str) -> FolderRef:
        if not name or "/" in name or name in (".", ".."):
            raise RemoteStoreError(f"Invalid folder name: {name!r}")
        try:
            self._resolve(name).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise RemoteStoreError(f"Cannot create folder {name}: {e}") from e
        return name

    def upload(
        self, name: str, content: bytes, mime_type: str, folder: FolderRef
    ) -> ObjectRef:
        folder_path = self._resolve(folder)
        if not folder_path.is_dir():
            raise RemoteObjectNotFoundError(f"Folder not found: {folder}")

        ref = f"{folder}/{name}"
        target = self._resolve(ref)
        # Write next to the target, then rename over it
        fd, tmp_name = tempfile.mkstemp(dir=folder_path, prefix=".upload_")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(content)
            os.replace(tmp_name, target)
        except OSError as e:
            Path(tmp_name).unlink(missing_ok=True)
            raise RemoteStoreError(f"Upload of {ref} failed: {e}") from e

        logger.debug("Stored %s (%d bytes, %s)", ref, len(content), mime_type)
        return ref

    def download(self, ref: ObjectRef) -> bytes:
        path = self._resolve(ref)
        if not path.is_file():
            raise RemoteObjectNotFoundError(f"Object not found: {ref}")
        try:
            return path.read_bytes()
        except OSError as e:
            raise RemoteStoreError(f"Download of {ref} failed: {e}") from e

    def list(
        self, folder: FolderRef, name_filter: Optional[str] = None
    ) -> List[ObjectMetadata]:
        folder_path = self._resolve(folder)
        if not folder_path.is_dir():
            raise RemoteObjectNotFoundError(f"Folder not found: {folder}")

        objects = []
        for path in sorted(folder_path.iterdir()):
            if not path.is_file() or path.name.startswith(".upload_"):
                continue
            if name_filter and not fnmatch.fnmatch(path.name, name_filter):
                continue
            mime_type, _ = mimetypes.guess_type(path.name)
            objects.append(ObjectMetadata(
                ref=f"{folder}/{path.name}",
                name=path.name,
                mime_type=mime_type or "application/octet-stream",
                modified_at=datetime.fromtimestamp(
                    path.stat().st_mtime, tz=timezone.utc
                ),
            ))
        return objects
