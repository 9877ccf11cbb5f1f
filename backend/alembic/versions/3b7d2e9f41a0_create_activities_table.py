"""create activities table

Revision ID: 3b7d2e9f41a0
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3b7d2e9f41a0"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create activities table with the indexes the lifecycle scheduler filters on."""
    op.create_table(
        "activities",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("place_id", sa.Integer(), nullable=True),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("slug", sa.String(length=200), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("activity_type", sa.String(length=20), nullable=False, server_default="event"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="upcoming"),
        sa.Column("location", sa.String(length=500), nullable=True),
        sa.Column("latitude", sa.Numeric(10, 8), nullable=True),
        sa.Column("longitude", sa.Numeric(11, 8), nullable=True),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("image_path", sa.String(length=255), nullable=True),
        sa.Column("entry_fee", sa.Numeric(10, 2), nullable=True, server_default="0"),
        sa.Column("is_free", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("max_participants", sa.Integer(), nullable=True),
        sa.Column("current_participants", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("contact_phone", sa.String(length=20), nullable=True),
        sa.Column("contact_email", sa.String(length=100), nullable=True),
        sa.Column("organizer_name", sa.String(length=200), nullable=True),
        sa.Column("tags", sa.JSON(), nullable=True),
        sa.Column("is_featured", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("view_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_by", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint(
            "status IN ('upcoming', 'live', 'completed', 'cancelled')",
            name="ck_activities_status",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("slug"),
    )
    op.create_index(op.f("ix_activities_place_id"), "activities", ["place_id"], unique=False)
    op.create_index(op.f("ix_activities_slug"), "activities", ["slug"], unique=False)
    op.create_index(op.f("ix_activities_activity_type"), "activities", ["activity_type"], unique=False)
    op.create_index(op.f("ix_activities_status"), "activities", ["status"], unique=False)
    op.create_index(op.f("ix_activities_start_date"), "activities", ["start_date"], unique=False)
    op.create_index("idx_activities_active_status", "activities", ["is_active", "status"], unique=False)


def downgrade() -> None:
    """Drop activities table."""
    op.drop_index("idx_activities_active_status", table_name="activities")
    op.drop_index(op.f("ix_activities_start_date"), table_name="activities")
    op.drop_index(op.f("ix_activities_status"), table_name="activities")
    op.drop_index(op.f("ix_activities_activity_type"), table_name="activities")
    op.drop_index(op.f("ix_activities_slug"), table_name="activities")
    op.drop_index(op.f("ix_activities_place_id"), table_name="activities")
    op.drop_table("activities")
