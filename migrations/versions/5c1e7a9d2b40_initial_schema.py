"""initial schema

Revision ID: 5c1e7a9d2b40
Revises:
Create Date: 2026-10-18 09:12:44.518203

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5c1e7a9d2b40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the school and clicker_session tables."""
    op.create_table(
        "school",
        sa.Column("id", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("region", sa.Text(), nullable=False),
        sa.Column("logo_url", sa.Text(), nullable=True),
        sa.Column("requested_by_email", sa.Text(), nullable=True),
        sa.Column("score", sa.BigInteger(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint(
            "score >= -1000000000000 AND score <= 1000000000000",
            name="ck_school_score_bounds",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_school_score"), "school", ["score"], unique=False)

    op.create_table(
        "clicker_session",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("last_used_at", sa.DateTime(), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("ip_address", sa.Text(), nullable=True),
        sa.Column("user_agent", sa.Text(), nullable=True),
        sa.Column("request_count", sa.Integer(), nullable=False),
        sa.Column("friction_level", sa.Integer(), nullable=False),
        sa.Column("blocked_until", sa.DateTime(), nullable=True),
        sa.Column("last_friction_reason", sa.Text(), nullable=True),
        sa.Column("last_captcha_solved_at", sa.DateTime(), nullable=True),
        sa.Column("last_captcha_failed_at", sa.DateTime(), nullable=True),
        sa.Column("rate_limited_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint("friction_level >= 0", name="ck_clicker_session_friction"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_clicker_session_expires_at"),
        "clicker_session",
        ["expires_at"],
        unique=False,
    )


def downgrade() -> None:
    """Drop the school and clicker_session tables."""
    op.drop_index(op.f("ix_clicker_session_expires_at"), table_name="clicker_session")
    op.drop_table("clicker_session")
    op.drop_index(op.f("ix_school_score"), table_name="school")
    op.drop_table("school")
