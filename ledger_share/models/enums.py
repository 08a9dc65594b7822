"""
Shared enumerations for database models and wire documents.

Roles and statuses are closed sets. They are stored and sent as
their upper-case names; any other string is rejected on read.
"""

import enum


class Role(str, enum.Enum):
    """Permission one user grants another over their own data."""
    READER = "READER"
    WRITER = "WRITER"


class InvitationStatus(str, enum.Enum):
    """Lifecycle of an invitation. ACCEPTED and REJECTED are terminal."""
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


class InvitationDirection(str, enum.Enum):
    """Whether this ledger's owner sent or received the invitation."""
    SENT = "SENT"
    RECEIVED = "RECEIVED"
