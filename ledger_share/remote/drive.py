"""
Google Drive-backed remote object store (Drive API v3).

Each user writes into their own Drive; a peer's snapshot is fetched
by its file id once the owner has shared the file with them.
"""

import io
import logging
from datetime import datetime
from typing import Any, List, Optional

import google.auth.exceptions
import google.oauth2.credentials
import httplib2
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseDownload, MediaIoBaseUpload

from ledger_share.remote.base import (
    FolderRef,
    ObjectMetadata,
    ObjectRef,
    RemoteObjectNotFoundError,
    RemoteObjectStore,
    RemoteStoreError,
)

logger = logging.getLogger(__name__)

# Access to files created or opened by the app only
DRIVE_SCOPES = ["https://www.googleapis.com/auth/drive.file"]
FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"

# Failures below the Drive client. socket.timeout, ssl.SSLError and
# ConnectionError are all OSErrors.
TRANSPORT_ERRORS = (
    OSError,
    httplib2.HttpLib2Error,
    google.auth.exceptions.GoogleAuthError,
)


def _quote(value: str) -> str:
    """Escape a value for use inside a Drive query string literal."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


def _translate(ex: HttpError, what: str) -> RemoteStoreError:
    status: Optional[int] = ex.resp.status if ex.resp else None
    if status == 404:
        return RemoteObjectNotFoundError(f"{what}: not found", status_code=404)
    return RemoteStoreError(f"{what}: HTTP {status}", status_code=status)


def _transport_error(ex: Exception, what: str) -> RemoteStoreError:
    return RemoteStoreError(f"{what}: {type(ex).__name__}: {ex}")


class GoogleDriveObjectStore(RemoteObjectStore):

    def __init__(self, service: Any):
        self.service = service

    @classmethod
    def from_token_file(cls, path: str) -> "GoogleDriveObjectStore":
        """Build a store from a saved authorized-user token file."""
        try:
            creds = google.oauth2.credentials.Credentials.from_authorized_user_file(
                path, DRIVE_SCOPES
            )
        except (OSError, ValueError) as e:
            raise RemoteStoreError(f"Cannot load Google credentials from {path}: {e}") from e
        service = build("drive", "v3", credentials=creds, cache_discovery=False)
        return cls(service)

    def get_or_create_folder(self, name: str) -> FolderRef:
        query = (
            f"mimeType='{FOLDER_MIME_TYPE}' and name='{_quote(name)}' "
            f"and trashed=false"
        )
        try:
            result = self.service.files().list(
                q=query, spaces="drive", fields="files(id, name)"
            ).execute()
            files = result.get("files", [])
            if files:
                return files[0]["id"]

            created = self.service.files().create(
                body={"name": name, "mimeType": FOLDER_MIME_TYPE},
                fields="id",
            ).execute()
        except HttpError as ex:
            raise _translate(ex, f"Folder {name}") from ex
        except TRANSPORT_ERRORS as ex:
            raise _transport_error(ex, f"Folder {name}") from ex

        logger.info("Created Drive folder %s (%s)", name, created["id"])
        return created["id"]

    def _find_in_folder(self, name: str, folder: FolderRef) -> Optional[str]:
        query = (
            f"name='{_quote(name)}' and '{_quote(folder)}' in parents "
            f"and trashed=false"
        )
        result = self.service.files().list(
            q=query, spaces="drive", fields="files(id, name)"
        ).execute()
        files = result.get("files", [])
        return files[0]["id"] if files else None

    def upload(
        self, name: str, content: bytes, mime_type: str, folder: FolderRef
    ) -> ObjectRef:
        media = MediaIoBaseUpload(io.BytesIO(content), mimetype=mime_type)
        try:
            existing_id = self._find_in_folder(name, folder)
            if existing_id:
                uploaded = self.service.files().update(
                    fileId=existing_id, media_body=media, fields="id"
                ).execute()
            else:
                uploaded = self.service.files().create(
                    body={"name": name, "parents": [folder]},
                    media_body=media,
                    fields="id",
                ).execute()
        except HttpError as ex:
            raise _translate(ex, f"Upload of {name}") from ex
        except TRANSPORT_ERRORS as ex:
            raise _transport_error(ex, f"Upload of {name}") from ex
        return uploaded["id"]

    def download(self, ref: ObjectRef) -> bytes:
        buffer = io.BytesIO()
        try:
            request = self.service.files().get_media(fileId=ref)
            downloader = MediaIoBaseDownload(buffer, request)
            done = False
            while not done:
                _, done = downloader.next_chunk()
        except HttpError as ex:
            raise _translate(ex, f"Download of {ref}") from ex
        except TRANSPORT_ERRORS as ex:
            raise _transport_error(ex, f"Download of {ref}") from ex
        return buffer.getvalue()

    def list(
        self, folder: FolderRef, name_filter: Optional[str] = None
    ) -> List[ObjectMetadata]:
        query = f"'{_quote(folder)}' in parents and trashed=false"
        if name_filter:
            # Drive has no glob; a trailing * becomes a prefix match
            prefix = name_filter.rstrip("*")
            query += f" and name contains '{_quote(prefix)}'"

        objects: List[ObjectMetadata] = []
        page_token = None
        try:
            while True:
                result = self.service.files().list(
                    q=query,
                    spaces="drive",
                    fields="nextPageToken, files(id, name, mimeType, modifiedTime)",
                    pageToken=page_token,
                ).execute()
                for item in result.get("files", []):
                    modified = item.get("modifiedTime")
                    objects.append(ObjectMetadata(
                        ref=item["id"],
                        name=item.get("name", "Unnamed File"),
                        mime_type=item.get("mimeType", "application/octet-stream"),
                        modified_at=(
                            datetime.fromisoformat(modified.replace("Z", "+00:00"))
                            if modified else None
                        ),
                    ))
                page_token = result.get("nextPageToken")
                if not page_token:
                    break
        except HttpError as ex:
            raise _translate(ex, f"Listing of folder {folder}") from ex
        except TRANSPORT_ERRORS as ex:
            raise _transport_error(ex, f"Listing of folder {folder}") from ex

        if name_filter and name_filter.endswith("*"):
            prefix = name_filter.rstrip("*")
            objects = [o for o in objects if o.name.startswith(prefix)]
        return objects
