"""
Sharing models: peers, invitations and this ledger's publication record.

A SharedPeer row describes a bidirectional, asymmetric relationship:
role_given_by_me is what the peer may do with my data,
my_role_for_their_data is what I may do with theirs. The two are
independent and either may be empty.

An invitation has a state machine governing its lifecycle.
Invalid state transitions are rejected.
"""

from datetime import datetime

from sqlalchemy import String, DateTime, Integer, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from ledger_share.models.base import Base, utcnow
from ledger_share.models.enums import Role, InvitationStatus, InvitationDirection


# Valid state transitions, the source of truth for the invitation state machine
VALID_TRANSITIONS: dict[InvitationStatus, set[InvitationStatus]] = {
    InvitationStatus.PENDING: {
        InvitationStatus.ACCEPTED,
        InvitationStatus.REJECTED,
    },
    InvitationStatus.ACCEPTED: set(),  # Terminal
    InvitationStatus.REJECTED: set(),  # Terminal
}


class SharedPeer(Base):
    __tablename__ = "shared_peers"

    peer_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    role_given_by_me: Mapped[Role | None] = mapped_column(
        SAEnum(Role, name="role_enum", create_constraint=True),
        nullable=True,
    )
    their_remote_snapshot_ref: Mapped[str | None] = mapped_column(
        String(500), nullable=True
    )
    my_role_for_their_data: Mapped[Role | None] = mapped_column(
        SAEnum(Role, name="role_enum", create_constraint=True),
        nullable=True,
    )
    last_sync_at: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True, default=None
    )

    def __repr__(self) -> str:
        return f"<SharedPeer {self.peer_id}>"


class SharingInvitation(Base):
    __tablename__ = "sharing_invitations"

    invitation_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    invited_email: Mapped[str] = mapped_column(
        String(255), nullable=False, index=True
    )
    inviter_email: Mapped[str] = mapped_column(
        String(255), nullable=False, index=True
    )
    requested_role: Mapped[Role] = mapped_column(
        SAEnum(Role, name="role_enum", create_constraint=True),
        nullable=False,
    )
    status: Mapped[InvitationStatus] = mapped_column(
        SAEnum(
            InvitationStatus,
            name="invitation_status_enum",
            create_constraint=True,
        ),
        nullable=False,
        default=InvitationStatus.PENDING,
    )
    inviter_snapshot_ref: Mapped[str] = mapped_column(
        String(500), nullable=False
    )
    direction: Mapped[InvitationDirection] = mapped_column(
        SAEnum(
            InvitationDirection,
            name="invitation_direction_enum",
            create_constraint=True,
        ),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow
    )
    resolved_at: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True, default=None
    )

    def __repr__(self) -> str:
        return (
            f"<SharingInvitation {self.invitation_id} "
            f"{self.direction.value} ({self.status.value})>"
        )


class SnapshotPublication(Base):
    """Where this ledger's owner last published their snapshot."""

    __tablename__ = "snapshot_publications"

    owner_email: Mapped[str] = mapped_column(String(255), primary_key=True)
    folder_ref: Mapped[str] = mapped_column(String(500), nullable=False)
    object_ref: Mapped[str] = mapped_column(String(500), nullable=False)
    byte_size: Mapped[int] = mapped_column(Integer, nullable=False)
    published_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow
    )

    def __repr__(self) -> str:
        return f"<SnapshotPublication {self.owner_email} -> {self.object_ref}>"
