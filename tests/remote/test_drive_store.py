"""
Tests for the GoogleDriveObjectStore against a mocked Drive service.
"""

import socket
import ssl
from unittest.mock import MagicMock, patch

import google.auth.exceptions
import httplib2
import pytest
from googleapiclient.errors import HttpError

from ledger_share.remote.base import RemoteObjectNotFoundError, RemoteStoreError
from ledger_share.remote.drive import FOLDER_MIME_TYPE, GoogleDriveObjectStore


def http_error(status):
    """Helper: an HttpError as the Drive client raises it."""
    return HttpError(resp=MagicMock(status=status, reason="error"), content=b"")


@pytest.fixture
def service():
    return MagicMock()


@pytest.fixture
def drive(service):
    return GoogleDriveObjectStore(service)


class TestFolders:

    def test_returns_existing_folder(self, drive, service):
        service.files().list().execute.return_value = {
            "files": [{"id": "folder-1", "name": "PersonalBudgetBackups"}]
        }

        assert drive.get_or_create_folder("PersonalBudgetBackups") == "folder-1"
        service.files().create.assert_not_called()

    def test_creates_missing_folder(self, drive, service):
        service.files().list().execute.return_value = {"files": []}
        service.files().create().execute.return_value = {"id": "folder-2"}

        assert drive.get_or_create_folder("PersonalBudgetBackups") == "folder-2"
        service.files().create.assert_called_with(
            body={"name": "PersonalBudgetBackups", "mimeType": FOLDER_MIME_TYPE},
            fields="id",
        )


class TestUpload:

    def test_creates_new_file_in_folder(self, drive, service):
        service.files().list().execute.return_value = {"files": []}
        service.files().create().execute.return_value = {"id": "file-1"}

        ref = drive.upload("data.json", b"{}", "application/json", "folder-1")

        assert ref == "file-1"
        kwargs = service.files().create.call_args.kwargs
        assert kwargs["body"] == {"name": "data.json", "parents": ["folder-1"]}

    def test_updates_existing_file(self, drive, service):
        service.files().list().execute.return_value = {
            "files": [{"id": "file-1", "name": "data.json"}]
        }
        service.files().update().execute.return_value = {"id": "file-1"}

        ref = drive.upload("data.json", b"{}", "application/json", "folder-1")

        assert ref == "file-1"
        assert service.files().update.call_args.kwargs["fileId"] == "file-1"

    def test_http_error_is_translated(self, drive, service):
        service.files().list().execute.side_effect = http_error(403)

        with pytest.raises(RemoteStoreError) as exc_info:
            drive.upload("data.json", b"{}", "application/json", "folder-1")
        assert exc_info.value.status_code == 403


class TestDownload:

    def test_reads_all_chunks(self, drive, service):
        def fake_downloader(buffer, request):
            downloader = MagicMock()
            chunks = iter([(None, False), (None, True)])

            def next_chunk():
                buffer.write(b"part")
                return next(chunks)

            downloader.next_chunk.side_effect = next_chunk
            return downloader

        with patch("ledger_share.remote.drive.MediaIoBaseDownload", side_effect=fake_downloader):
            content = drive.download("file-1")

        assert content == b"partpart"
        service.files().get_media.assert_called_with(fileId="file-1")

    def test_not_found(self, drive, service):
        service.files().get_media.side_effect = http_error(404)

        with pytest.raises(RemoteObjectNotFoundError):
            drive.download("missing")


class TestList:

    def test_paginates_and_filters_by_prefix(self, drive, service):
        service.files().list().execute.side_effect = [
            {
                "files": [
                    {"id": "a", "name": "personalbudget_backup_1.json",
                     "mimeType": "application/json",
                     "modifiedTime": "2024-03-01T10:00:00.000Z"},
                    {"id": "b", "name": "my_personalbudget_backup_x.json",
                     "mimeType": "application/json"},
                ],
                "nextPageToken": "page-2",
            },
            {
                "files": [
                    {"id": "c", "name": "personalbudget_backup_2.json",
                     "mimeType": "application/json"},
                ],
            },
        ]

        objects = drive.list("folder-1", "personalbudget_backup_*")

        assert [o.ref for o in objects] == ["a", "c"]
        assert objects[0].modified_at.year == 2024
        assert objects[1].modified_at is None


class TestTransportErrors:

    @pytest.mark.parametrize("error", [
        ssl.SSLError("EOF occurred in violation of protocol"),
        ConnectionResetError("connection reset by peer"),
        socket.timeout("timed out"),
        httplib2.ServerNotFoundError("Unable to find the server"),
        google.auth.exceptions.RefreshError("invalid_grant"),
        google.auth.exceptions.TransportError("connection aborted"),
    ])
    def test_download_failure_is_translated(self, drive, service, error):
        service.files().get_media.side_effect = error

        with pytest.raises(RemoteStoreError) as exc_info:
            drive.download("file-1")

        assert exc_info.value.__cause__ is error
        assert not isinstance(exc_info.value, RemoteObjectNotFoundError)

    def test_folder_failure_is_translated(self, drive, service):
        service.files().list().execute.side_effect = ssl.SSLError("handshake failed")

        with pytest.raises(RemoteStoreError, match="SSLError"):
            drive.get_or_create_folder("PersonalBudgetBackups")

    def test_upload_failure_is_translated(self, drive, service):
        service.files().list().execute.return_value = {"files": []}
        service.files().create().execute.side_effect = ConnectionResetError("reset")

        with pytest.raises(RemoteStoreError, match="Upload of data.json"):
            drive.upload("data.json", b"{}", "application/json", "folder-1")

    def test_list_failure_is_translated(self, drive, service):
        service.files().list().execute.side_effect = (
            google.auth.exceptions.RefreshError("token expired")
        )

        with pytest.raises(RemoteStoreError, match="RefreshError"):
            drive.list("folder-1")
