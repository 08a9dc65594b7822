"""
Database models package.

All models must be imported here so that Alembic can discover
them through Base.metadata when generating migrations.
"""

from ledger_share.models.base import Base
from ledger_share.models.enums import (
    Role,
    InvitationStatus,
    InvitationDirection,
)
from ledger_share.models.ledger import Category, Expense, Budget
from ledger_share.models.sharing import (
    SharedPeer,
    SharingInvitation,
    SnapshotPublication,
)

__all__ = [
    "Base",
    "Role",
    "InvitationStatus",
    "InvitationDirection",
    "Category",
    "Expense",
    "Budget",
    "SharedPeer",
    "SharingInvitation",
    "SnapshotPublication",
]
