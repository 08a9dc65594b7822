"""
Sharing directory: persistent record of peers and invitations.

Plain CRUD over the shared_peers and sharing_invitations tables.
No cross-peer coordination happens here; the invitation protocol
decides what may change and when. The caller controls the commit.
"""

import logging
from contextlib import aclosing
from datetime import datetime
from typing import AsyncIterator

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from ledger_share.errors import PeerNotFoundError, storage_errors
from ledger_share.models.enums import InvitationStatus, InvitationDirection
from ledger_share.models.sharing import (
    SharedPeer,
    SharingInvitation,
    VALID_TRANSITIONS,
)
from ledger_share.schemas.sharing import SharedPeerResponse
from ledger_share.services.peer_feed import PeerFeed

logger = logging.getLogger(__name__)


class SharingDirectory:

    def __init__(self, db: Session, feed: PeerFeed | None = None):
        self.db = db
        self.feed = feed

    def _notify(self) -> None:
        if self.feed is not None:
            self.feed.publish(self._peer_views())

    def _peer_views(self) -> list[SharedPeerResponse]:
        return [SharedPeerResponse.model_validate(p) for p in self.list_peers()]

    # --- Peers ---

    def upsert_peer(self, peer: SharedPeer) -> SharedPeer:
        """Insert the peer, or replace every field of an existing one."""
        with storage_errors("save peer"):
            peer = self.db.merge(peer)
            self.db.flush()
        logger.info("Saved shared peer %s", peer.peer_id)
        self._notify()
        return peer

    def update_peer(self, peer: SharedPeer) -> SharedPeer:
        """Persist changes made to a peer loaded from this directory."""
        with storage_errors("update peer"):
            self.db.flush()
        self._notify()
        return peer

    def get_peer(self, peer_id: str) -> SharedPeer | None:
        with storage_errors("read peer"):
            return self.db.get(SharedPeer, peer_id)

    def require_peer(self, peer_id: str) -> SharedPeer:
        peer = self.get_peer(peer_id)
        if not peer:
            raise PeerNotFoundError(peer_id)
        return peer

    def list_peers(self) -> list[SharedPeer]:
        with storage_errors("list peers"):
            peers = self.db.execute(
                select(SharedPeer).order_by(SharedPeer.peer_id)
            ).scalars().all()
        return list(peers)

    def remove_peer(self, peer_id: str) -> None:
        """
        Delete the peer.

        Ledger records already merged from this peer stay where they
        are; nothing links them back to it.
        """
        peer = self.require_peer(peer_id)
        with storage_errors("remove peer"):
            self.db.delete(peer)
            self.db.flush()
        logger.info("Removed shared peer %s", peer_id)
        self._notify()

    def record_sync(self, peer_id: str, synced_at: datetime) -> SharedPeer:
        peer = self.require_peer(peer_id)
        peer.last_sync_at = synced_at
        return self.update_peer(peer)

    async def watch_peers(self) -> AsyncIterator[list[SharedPeerResponse]]:
        """Yield the peer list now and again after every peer change."""
        if self.feed is None:
            raise RuntimeError("SharingDirectory was created without a PeerFeed")
        async with aclosing(self.feed.subscribe(self._peer_views)) as updates:
            async for peers in updates:
                yield peers

    # --- Invitations ---

    def upsert_invitation(self, invitation: SharingInvitation) -> SharingInvitation:
        with storage_errors("save invitation"):
            invitation = self.db.merge(invitation)
            self.db.flush()
        return invitation

    def update_invitation(self, invitation: SharingInvitation) -> SharingInvitation:
        with storage_errors("update invitation"):
            self.db.flush()
        return invitation

    def get_invitation(self, invitation_id: str) -> SharingInvitation | None:
        with storage_errors("read invitation"):
            return self.db.get(SharingInvitation, invitation_id)

    def resolve_invitation(
        self,
        invitation_id: str,
        new_status: InvitationStatus,
        resolved_at: datetime,
    ) -> bool:
        """
        Move a PENDING invitation to new_status.

        The status check and the write are one conditional UPDATE, so
        when two callers race only one sees True.
        """
        if new_status not in VALID_TRANSITIONS[InvitationStatus.PENDING]:
            raise ValueError(f"Cannot resolve an invitation to {new_status.value}")

        with storage_errors("resolve invitation"):
            result = self.db.execute(
                update(SharingInvitation)
                .where(
                    SharingInvitation.invitation_id == invitation_id,
                    SharingInvitation.status == InvitationStatus.PENDING,
                )
                .values(status=new_status, resolved_at=resolved_at)
            )
        return result.rowcount == 1

    def list_received(
        self, email: str, status: InvitationStatus | None = None
    ) -> list[SharingInvitation]:
        query = select(SharingInvitation).where(
            SharingInvitation.invited_email == email,
            SharingInvitation.direction == InvitationDirection.RECEIVED,
        )
        if status is not None:
            query = query.where(SharingInvitation.status == status)
        with storage_errors("list received invitations"):
            invitations = self.db.execute(
                query.order_by(SharingInvitation.created_at.desc())
            ).scalars().all()
        return list(invitations)

    def list_sent(self, email: str) -> list[SharingInvitation]:
        with storage_errors("list sent invitations"):
            invitations = self.db.execute(
                select(SharingInvitation)
                .where(
                    SharingInvitation.inviter_email == email,
                    SharingInvitation.direction == InvitationDirection.SENT,
                )
                .order_by(SharingInvitation.created_at.desc())
            ).scalars().all()
        return list(invitations)
