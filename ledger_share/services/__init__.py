"""Sharing, publishing and sync services."""

from ledger_share.services.ledger_store import LedgerStore
from ledger_share.services.sharing_directory import SharingDirectory
from ledger_share.services.invitation_protocol import InvitationProtocol
from ledger_share.services.snapshot_codec import LedgerSnapshotCodec
from ledger_share.services.snapshot_publisher import SnapshotPublisher
from ledger_share.services.sync_engine import SyncEngine, SyncResult, SyncStatus
from ledger_share.services.peer_feed import PeerFeed

__all__ = [
    "LedgerStore",
    "SharingDirectory",
    "InvitationProtocol",
    "LedgerSnapshotCodec",
    "SnapshotPublisher",
    "SyncEngine",
    "SyncResult",
    "SyncStatus",
    "PeerFeed",
]
