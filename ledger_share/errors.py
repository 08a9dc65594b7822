"""
Error taxonomy for the sharing and sync protocol.

Every failure a caller can act on has its own class. The HTTP layer
maps each class to a status code; the sync engine turns them into
per-peer results.
"""

from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError


class SharingError(Exception):
    """Base exception for all sharing and sync errors."""
    pass


class SnapshotNotReadyError(SharingError):
    """An invitation was requested before the ledger was published."""
    pass


class InvalidInvitationError(SharingError):
    """
    The invitation does not exist or is no longer pending.

    Raised when:
    - No invitation has the given id
    - The invitation was already accepted or rejected
    - A concurrent accept/reject resolved it first
    """

    def __init__(self, invitation_id: str, reason: str = "invitation invalid or already processed"):
        super().__init__(f"{reason}: {invitation_id}")
        self.invitation_id = invitation_id
        self.reason = reason


class PublishError(SharingError):
    """Creating the snapshot folder or uploading the snapshot failed."""
    pass


class NoRemoteRefError(SharingError):
    """The peer has not shared a snapshot reference with us."""

    def __init__(self, peer_id: str):
        super().__init__(f"Peer '{peer_id}' has no remote snapshot reference")
        self.peer_id = peer_id


class DownloadError(SharingError):
    """The peer's snapshot could not be fetched (I/O, timeout, not found)."""

    def __init__(self, message: str, ref: str | None = None):
        super().__init__(message)
        self.ref = ref


class CorruptSnapshotError(SharingError):
    """
    A document could not be decoded.

    Raised when:
    - The payload is not valid UTF-8 or not valid JSON
    - A required array or field is missing or has the wrong type
    - An enum field holds an unknown string
    """

    def __init__(self, message: str, validation_errors: list | None = None):
        super().__init__(message)
        self.validation_errors = validation_errors or []


class StorageError(SharingError):
    """A local-store read or write failed."""
    pass


class PeerNotFoundError(SharingError):
    """No shared peer is recorded under the given id."""

    def __init__(self, peer_id: str):
        super().__init__(f"Peer '{peer_id}' not found")
        self.peer_id = peer_id


class PeerAccessError(SharingError):
    """The peer has not granted us any role over their data."""

    def __init__(self, peer_id: str):
        super().__init__(f"Peer '{peer_id}' has not shared their data with you")
        self.peer_id = peer_id


@contextmanager
def storage_errors(action: str):
    """Re-raise SQLAlchemy failures inside the block as StorageError."""
    try:
        yield
    except SQLAlchemyError as e:
        raise StorageError(f"Failed to {action}: {e}") from e
