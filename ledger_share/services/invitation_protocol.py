"""
Invitation protocol: the lifecycle of a sharing invitation.

    PENDING -> ACCEPTED   (creates a SharedPeer for the inviter)
    PENDING -> REJECTED   (creates nothing)

Both outcomes are terminal and happen at most once. Delivering the
invitation to the other person is out of band: send() only records
what the inviter believes was communicated, export() produces a
portable envelope, receive() records one on the invitee's side.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Callable

from ledger_share.errors import InvalidInvitationError, SnapshotNotReadyError
from ledger_share.identity import Identity
from ledger_share.models.base import utcnow
from ledger_share.models.enums import Role, InvitationStatus, InvitationDirection
from ledger_share.models.sharing import SharedPeer, SharingInvitation
from ledger_share.schemas.sharing import InvitationEnvelope
from ledger_share.services.sharing_directory import SharingDirectory

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def new_invitation_id() -> str:
    return str(uuid.uuid4())


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class InvitationProtocol:

    def __init__(
        self,
        directory: SharingDirectory,
        identity: Identity,
        id_factory: Callable[[], str] = new_invitation_id,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.directory = directory
        self.identity = identity
        self.id_factory = id_factory
        self.clock = clock

    # --- Sending side ---

    def send(
        self, invited_email: str, role: Role, my_snapshot_ref: str | None
    ) -> SharingInvitation:
        """
        Record a new PENDING invitation from the current user.

        my_snapshot_ref must point at an already published snapshot;
        without it the invitee would have nothing to fetch.
        """
        if not my_snapshot_ref:
            raise SnapshotNotReadyError(
                "Publish your ledger before sending an invitation"
            )

        invitation = SharingInvitation(
            invitation_id=self.id_factory(),
            invited_email=normalize_email(invited_email),
            inviter_email=normalize_email(self.identity.email),
            requested_role=role,
            status=InvitationStatus.PENDING,
            inviter_snapshot_ref=my_snapshot_ref,
            direction=InvitationDirection.SENT,
            created_at=self.clock(),
        )
        invitation = self.directory.upsert_invitation(invitation)
        logger.info(
            "Invitation %s sent to %s as %s",
            invitation.invitation_id, invitation.invited_email, role.value,
        )
        return invitation

    def export(self, invitation_id: str) -> InvitationEnvelope:
        """Portable envelope for delivering a sent invitation."""
        invitation = self.directory.get_invitation(invitation_id)
        if not invitation or invitation.direction != InvitationDirection.SENT:
            raise InvalidInvitationError(invitation_id, "no sent invitation")
        return InvitationEnvelope(
            invitation_id=invitation.invitation_id,
            invited_email=invitation.invited_email,
            inviter_email=invitation.inviter_email,
            requested_role=invitation.requested_role,
            inviter_snapshot_ref=invitation.inviter_snapshot_ref,
            created_at=invitation.created_at,
        )

    # --- Receiving side ---

    def receive(self, envelope: InvitationEnvelope) -> SharingInvitation:
        """
        Record an invitation delivered out of band as RECEIVED/PENDING.

        Receiving a still-pending invitation again returns the stored
        one. An invitation that was already accepted or rejected
        cannot be received again.
        """
        existing = self.directory.get_invitation(envelope.invitation_id)
        if existing:
            if existing.status != InvitationStatus.PENDING:
                raise InvalidInvitationError(envelope.invitation_id)
            return existing

        invitation = SharingInvitation(
            invitation_id=envelope.invitation_id,
            invited_email=normalize_email(envelope.invited_email),
            inviter_email=normalize_email(envelope.inviter_email),
            requested_role=envelope.requested_role,
            status=InvitationStatus.PENDING,
            inviter_snapshot_ref=envelope.inviter_snapshot_ref,
            direction=InvitationDirection.RECEIVED,
            created_at=_naive_utc(envelope.created_at),
        )
        invitation = self.directory.upsert_invitation(invitation)
        logger.info(
            "Invitation %s received from %s",
            invitation.invitation_id, invitation.inviter_email,
        )
        return invitation

    def _load_pending(self, invitation_id: str) -> SharingInvitation:
        invitation = self.directory.get_invitation(invitation_id)
        if not invitation or invitation.status != InvitationStatus.PENDING:
            logger.warning("Invitation %s is invalid or already processed", invitation_id)
            raise InvalidInvitationError(invitation_id)
        return invitation

    def _resolve(self, invitation_id: str, new_status: InvitationStatus) -> None:
        if not self.directory.resolve_invitation(
            invitation_id, new_status, self.clock()
        ):
            # Someone else resolved it between our read and our write
            logger.warning("Invitation %s was resolved concurrently", invitation_id)
            raise InvalidInvitationError(invitation_id)

    def accept(self, invitation_id: str) -> SharedPeer:
        """
        Accept a pending invitation and record the inviter as a peer.

        The new peer carries the inviter's snapshot ref and the
        requested role as my role over their data. Accepting grants
        the inviter nothing over mine; a grant I had already given
        them and the time I last synced from them are kept.
        """
        invitation = self._load_pending(invitation_id)
        self._resolve(invitation_id, InvitationStatus.ACCEPTED)

        existing = self.directory.get_peer(invitation.inviter_email)
        peer = self.directory.upsert_peer(SharedPeer(
            peer_id=invitation.inviter_email,
            email=invitation.inviter_email,
            role_given_by_me=existing.role_given_by_me if existing else None,
            their_remote_snapshot_ref=invitation.inviter_snapshot_ref,
            my_role_for_their_data=invitation.requested_role,
            last_sync_at=existing.last_sync_at if existing else None,
        ))
        logger.info(
            "Invitation %s accepted; %s shares their data as %s",
            invitation_id, peer.peer_id, invitation.requested_role.value,
        )
        return peer

    def reject(self, invitation_id: str) -> None:
        self._load_pending(invitation_id)
        self._resolve(invitation_id, InvitationStatus.REJECTED)
        logger.info("Invitation %s rejected", invitation_id)

    # --- Queries ---

    def list_received(self, email: str | None = None) -> list[SharingInvitation]:
        return self.directory.list_received(
            normalize_email(email or self.identity.email)
        )

    def list_received_pending(self, email: str | None = None) -> list[SharingInvitation]:
        return self.directory.list_received(
            normalize_email(email or self.identity.email),
            status=InvitationStatus.PENDING,
        )

    def list_sent(self, email: str | None = None) -> list[SharingInvitation]:
        return self.directory.list_sent(
            normalize_email(email or self.identity.email)
        )

    # --- Direct peer management ---

    def add_shared_peer(
        self,
        email: str,
        role_given_by_me: Role | None,
        their_snapshot_ref: str | None,
        my_role_for_their_data: Role | None,
    ) -> SharedPeer:
        """Record a peer directly, without an invitation round-trip."""
        email = normalize_email(email)
        return self.directory.upsert_peer(SharedPeer(
            peer_id=email,
            email=email,
            role_given_by_me=role_given_by_me,
            their_remote_snapshot_ref=their_snapshot_ref,
            my_role_for_their_data=my_role_for_their_data,
            last_sync_at=None,
        ))

    def update_role(self, peer_id: str, role: Role) -> SharedPeer:
        """Change the role I grant this peer over my data."""
        peer = self.directory.require_peer(peer_id)
        peer.role_given_by_me = role
        peer = self.directory.update_peer(peer)
        logger.info("Peer %s now has role %s over my data", peer_id, role.value)
        return peer
