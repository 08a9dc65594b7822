"""ledger and sharing tables

Revision ID: 0001
Revises:
Create Date: 2026-10-17 00:00:00
"""

from alembic import op
import sqlalchemy as sa

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

role_enum = sa.Enum("READER", "WRITER", name="role_enum", create_constraint=True)


def upgrade() -> None:
    op.create_table(
        "categories",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
    )
    op.create_table(
        "expenses",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("amount", sa.Numeric(19, 4), nullable=False),
        sa.Column("date", sa.Text(), nullable=False),
        sa.Column("time", sa.Text(), nullable=False),
        sa.Column("merchant", sa.Text(), nullable=False),
        sa.Column("category_id", sa.Integer(), nullable=True),
        sa.Column("installments", sa.Integer(), nullable=True),
        sa.Column("last_card_digits", sa.String(length=4), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
    )
    op.create_index("ix_expenses_category_id", "expenses", ["category_id"])
    op.create_table(
        "budgets",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("category_id", sa.Integer(), nullable=False),
        sa.Column("amount", sa.Numeric(19, 4), nullable=False),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
    )
    op.create_index("ix_budgets_category_id", "budgets", ["category_id"])

    op.create_table(
        "shared_peers",
        sa.Column("peer_id", sa.String(length=255), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("role_given_by_me", role_enum, nullable=True),
        sa.Column("their_remote_snapshot_ref", sa.String(length=500), nullable=True),
        sa.Column("my_role_for_their_data", role_enum, nullable=True),
        sa.Column("last_sync_at", sa.DateTime(), nullable=True),
    )
    op.create_table(
        "sharing_invitations",
        sa.Column("invitation_id", sa.String(length=64), primary_key=True),
        sa.Column("invited_email", sa.String(length=255), nullable=False),
        sa.Column("inviter_email", sa.String(length=255), nullable=False),
        sa.Column("requested_role", role_enum, nullable=False),
        sa.Column(
            "status",
            sa.Enum(
                "PENDING", "ACCEPTED", "REJECTED",
                name="invitation_status_enum", create_constraint=True,
            ),
            nullable=False,
        ),
        sa.Column("inviter_snapshot_ref", sa.String(length=500), nullable=False),
        sa.Column(
            "direction",
            sa.Enum(
                "SENT", "RECEIVED",
                name="invitation_direction_enum", create_constraint=True,
            ),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("resolved_at", sa.DateTime(), nullable=True),
    )
    op.create_index(
        "ix_sharing_invitations_invited_email", "sharing_invitations", ["invited_email"]
    )
    op.create_index(
        "ix_sharing_invitations_inviter_email", "sharing_invitations", ["inviter_email"]
    )
    op.create_table(
        "snapshot_publications",
        sa.Column("owner_email", sa.String(length=255), primary_key=True),
        sa.Column("folder_ref", sa.String(length=500), nullable=False),
        sa.Column("object_ref", sa.String(length=500), nullable=False),
        sa.Column("byte_size", sa.Integer(), nullable=False),
        sa.Column("published_at", sa.DateTime(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("snapshot_publications")
    op.drop_index("ix_sharing_invitations_inviter_email", table_name="sharing_invitations")
    op.drop_index("ix_sharing_invitations_invited_email", table_name="sharing_invitations")
    op.drop_table("sharing_invitations")
    op.drop_table("shared_peers")
    op.drop_index("ix_budgets_category_id", table_name="budgets")
    op.drop_table("budgets")
    op.drop_index("ix_expenses_category_id", table_name="expenses")
    op.drop_table("expenses")
    op.drop_table("categories")
    sa.Enum(name="invitation_direction_enum").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="invitation_status_enum").drop(op.get_bind(), checkfirst=True)
    role_enum.drop(op.get_bind(), checkfirst=True)
