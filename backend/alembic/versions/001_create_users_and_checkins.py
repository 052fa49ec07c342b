"""Create users and checkins tables

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

Mirrors moodtrack.models.user and moodtrack.models.checkin, including the
index names sync_indexes() declares, so running sync_indexes() after this
migration is a no-op.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

RATING_FIELDS = ("mood_rating", "intensity", "energy_level", "stress_level", "wellbeing")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("password", sa.String(128), nullable=False, comment="bcrypt hash, never plaintext"),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("locked_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_users_email", "users", ["email"], unique=True)

    op.create_table(
        "checkins",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user", sa.Uuid(), nullable=False, comment="Owning account id"),
        sa.Column("mood_rating", sa.SmallInteger(), nullable=False),
        sa.Column("primary_emotion", sa.String(20), nullable=False),
        sa.Column("intensity", sa.SmallInteger(), nullable=False),
        sa.Column("energy_level", sa.SmallInteger(), nullable=False),
        sa.Column("stress_level", sa.SmallInteger(), nullable=False),
        sa.Column("wellbeing", sa.SmallInteger(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        *(
            sa.CheckConstraint(f"{name} BETWEEN 1 AND 5", name=f"ck_checkins_{name}_range")
            for name in RATING_FIELDS
        ),
    )
    op.create_index("idx_checkins_user_created_at", "checkins", ["user", "created_at"])


def downgrade() -> None:
    op.drop_index("idx_checkins_user_created_at", table_name="checkins")
    op.drop_table("checkins")
    op.drop_index("idx_users_email", table_name="users")
    op.drop_table("users")
