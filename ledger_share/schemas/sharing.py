"""
Pydantic schemas for peers and invitations.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from ledger_share.models.enums import Role, InvitationStatus, InvitationDirection
from ledger_share.schemas.ledger import WireModel


# --- Invitation Schemas ---

class SendInvitationRequest(BaseModel):
    """
    Invite someone to read (or write) my ledger.

    When snapshot_ref is omitted the ledger is published first and the
    fresh reference is used.
    """
    invited_email: str = Field(min_length=3, max_length=255)
    role: Role
    snapshot_ref: str | None = Field(default=None, max_length=500)


class InvitationResponse(BaseModel):
    invitation_id: str
    invited_email: str
    inviter_email: str
    requested_role: Role
    status: InvitationStatus
    inviter_snapshot_ref: str
    direction: InvitationDirection
    created_at: datetime
    resolved_at: datetime | None

    model_config = {"from_attributes": True}


class InvitationEnvelope(WireModel):
    """
    Portable form of an invitation, delivered out of band.

    The inviter exports it, the invitee records it with
    InvitationProtocol.receive.
    """
    invitation_id: str = Field(min_length=1, max_length=64)
    invited_email: str = Field(min_length=3, max_length=255)
    inviter_email: str = Field(min_length=3, max_length=255)
    requested_role: Role
    inviter_snapshot_ref: str = Field(min_length=1, max_length=500)
    created_at: datetime


# --- Peer Schemas ---

class SharedPeerCreate(BaseModel):
    """Record a peer directly, without going through an invitation."""
    email: str = Field(min_length=3, max_length=255)
    role_given_by_me: Role | None = None
    their_snapshot_ref: str | None = Field(default=None, max_length=500)
    my_role_for_their_data: Role | None = None


class SharedPeerResponse(BaseModel):
    peer_id: str
    email: str
    role_given_by_me: Role | None
    their_remote_snapshot_ref: str | None
    my_role_for_their_data: Role | None
    last_sync_at: datetime | None

    model_config = {"from_attributes": True}


class RoleUpdate(BaseModel):
    """Change the role I grant a peer over my data."""
    role: Role
