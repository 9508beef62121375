"""Initial schema: users, contacts, leads, and meetings.

Revision ID: 001_initial_meetings
Revises:
Create Date: 2026-10-19

meetings.attendees_data / attendee_leads_data hold ordered JSON arrays of
contact / lead ids. No foreign key constraints (application-level
referential integrity via repository).
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_initial_meetings"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ── people tables ────────────────────────────────────────────────────

    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=True),
        sa.Column("last_name", sa.String(100), nullable=True),
        sa.Column("role", sa.String(50), server_default="user", nullable=False),
        sa.Column("deleted", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    op.create_table(
        "contacts",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("first_name", sa.String(100), nullable=True),
        sa.Column("last_name", sa.String(100), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("deleted", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "leads",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("lead_name", sa.String(200), nullable=True),
        sa.Column("lead_email", sa.String(255), nullable=True),
        sa.Column("deleted", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # ── meetings table ───────────────────────────────────────────────────

    op.create_table(
        "meetings",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("agenda", sa.Text(), nullable=True),
        sa.Column("attendees_data", sa.JSON(), nullable=False),
        sa.Column("attendee_leads_data", sa.JSON(), nullable=False),
        sa.Column("location", sa.String(500), nullable=True),
        sa.Column("related", sa.String(100), nullable=True),
        sa.Column("date_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by", sa.Uuid(), nullable=False),
        sa.Column("deleted", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column(
            "timestamp",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    # List filter by creator
    op.create_index("idx_meetings_created_by", "meetings", ["created_by"])


def downgrade() -> None:
    op.drop_index("idx_meetings_created_by", table_name="meetings")
    op.drop_table("meetings")
    op.drop_table("leads")
    op.drop_table("contacts")
    op.drop_table("users")
