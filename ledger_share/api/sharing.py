"""
Sharing API endpoints: invitations and peers.

The API layer is thin. It maps service errors to HTTP status codes,
commits on success and rolls back on failure. Delivering an
invitation to the other person happens out of band: the inviter
fetches the envelope, the invitee posts it to /receive.
"""

import asyncio

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from ledger_share.api.deps import (
    http_error,
    invitation_protocol,
    sharing_directory,
    snapshot_publisher,
)
from ledger_share.errors import SharingError
from ledger_share.models.base import get_db
from ledger_share.schemas.sharing import (
    SendInvitationRequest,
    InvitationResponse,
    InvitationEnvelope,
    SharedPeerCreate,
    SharedPeerResponse,
    RoleUpdate,
)
from ledger_share.services.invitation_protocol import InvitationProtocol
from ledger_share.services.sharing_directory import SharingDirectory
from ledger_share.services.snapshot_publisher import SnapshotPublisher

router = APIRouter(prefix="/sharing", tags=["Sharing"])


# --- Invitation Endpoints ---

@router.post("/invitations", response_model=InvitationResponse, status_code=201)
async def send_invitation(
    request: SendInvitationRequest,
    db: Session = Depends(get_db),
    protocol: InvitationProtocol = Depends(invitation_protocol),
    publisher: SnapshotPublisher = Depends(snapshot_publisher),
):
    """
    Invite someone to my ledger.

    Without an explicit snapshot_ref the ledger is published first,
    so the invitee always has something to fetch.
    """
    try:
        snapshot_ref = request.snapshot_ref
        if not snapshot_ref:
            snapshot_ref = await publisher.ensure_published()
        invitation = protocol.send(request.invited_email, request.role, snapshot_ref)
        await asyncio.to_thread(db.commit)
        return invitation
    except SharingError as e:
        await asyncio.to_thread(db.rollback)
        raise http_error(e)


@router.post("/invitations/receive", response_model=InvitationResponse, status_code=201)
def receive_invitation(
    envelope: InvitationEnvelope,
    db: Session = Depends(get_db),
    protocol: InvitationProtocol = Depends(invitation_protocol),
):
    """Record an invitation delivered out of band."""
    try:
        invitation = protocol.receive(envelope)
        db.commit()
        return invitation
    except SharingError as e:
        db.rollback()
        raise http_error(e)


@router.get("/invitations/received", response_model=list[InvitationResponse])
def list_received_invitations(
    email: str | None = None,
    pending_only: bool = False,
    protocol: InvitationProtocol = Depends(invitation_protocol),
):
    """Invitations addressed to email (default: me), newest first."""
    try:
        if pending_only:
            return protocol.list_received_pending(email)
        return protocol.list_received(email)
    except SharingError as e:
        raise http_error(e)


@router.get("/invitations/sent", response_model=list[InvitationResponse])
def list_sent_invitations(
    email: str | None = None,
    protocol: InvitationProtocol = Depends(invitation_protocol),
):
    try:
        return protocol.list_sent(email)
    except SharingError as e:
        raise http_error(e)


@router.get("/invitations/{invitation_id}/envelope", response_model=InvitationEnvelope)
def export_invitation(
    invitation_id: str,
    protocol: InvitationProtocol = Depends(invitation_protocol),
):
    """The portable form of a sent invitation, for delivery to the invitee."""
    try:
        return protocol.export(invitation_id)
    except SharingError as e:
        raise http_error(e)


@router.post("/invitations/{invitation_id}/accept", response_model=SharedPeerResponse)
def accept_invitation(
    invitation_id: str,
    db: Session = Depends(get_db),
    protocol: InvitationProtocol = Depends(invitation_protocol),
):
    """
    Accept a pending invitation.

    The inviter becomes a shared peer whose data I may sync. Accepting
    twice, or after a rejection, fails with 409.
    """
    try:
        peer = protocol.accept(invitation_id)
        db.commit()
        return peer
    except SharingError as e:
        db.rollback()
        raise http_error(e)


@router.post("/invitations/{invitation_id}/reject", response_model=InvitationResponse)
def reject_invitation(
    invitation_id: str,
    db: Session = Depends(get_db),
    protocol: InvitationProtocol = Depends(invitation_protocol),
    directory: SharingDirectory = Depends(sharing_directory),
):
    try:
        protocol.reject(invitation_id)
        db.commit()
        return directory.get_invitation(invitation_id)
    except SharingError as e:
        db.rollback()
        raise http_error(e)


# --- Peer Endpoints ---

@router.get("/peers", response_model=list[SharedPeerResponse])
def list_peers(directory: SharingDirectory = Depends(sharing_directory)):
    try:
        return directory.list_peers()
    except SharingError as e:
        raise http_error(e)


@router.post("/peers", response_model=SharedPeerResponse, status_code=201)
def add_peer(
    request: SharedPeerCreate,
    db: Session = Depends(get_db),
    protocol: InvitationProtocol = Depends(invitation_protocol),
):
    """Record a peer directly, without an invitation round-trip."""
    try:
        peer = protocol.add_shared_peer(
            request.email,
            request.role_given_by_me,
            request.their_snapshot_ref,
            request.my_role_for_their_data,
        )
        db.commit()
        return peer
    except SharingError as e:
        db.rollback()
        raise http_error(e)


@router.get("/peers/{peer_id}", response_model=SharedPeerResponse)
def get_peer(
    peer_id: str,
    directory: SharingDirectory = Depends(sharing_directory),
):
    try:
        return directory.require_peer(peer_id)
    except SharingError as e:
        raise http_error(e)


@router.delete("/peers/{peer_id}", status_code=204)
def remove_peer(
    peer_id: str,
    db: Session = Depends(get_db),
    directory: SharingDirectory = Depends(sharing_directory),
):
    """Forget a peer. Records already merged from them are kept."""
    try:
        directory.remove_peer(peer_id)
        db.commit()
    except SharingError as e:
        db.rollback()
        raise http_error(e)
    return Response(status_code=204)


@router.put("/peers/{peer_id}/role", response_model=SharedPeerResponse)
def update_peer_role(
    peer_id: str,
    request: RoleUpdate,
    db: Session = Depends(get_db),
    protocol: InvitationProtocol = Depends(invitation_protocol),
):
    """Change the role I grant this peer over my data."""
    try:
        peer = protocol.update_role(peer_id, request.role)
        db.commit()
        return peer
    except SharingError as e:
        db.rollback()
        raise http_error(e)
