"""Create per-guild config tables (erlc, reminders, restrictions)

Revision ID: 0001
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _guild_config_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("guild_id", sa.String(32), nullable=False, unique=True),
        sa.Column("disabled", sa.Boolean(), nullable=True),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=True,
            server_default=sa.func.now(),
        ),
    ]


def upgrade() -> None:
    """Create one table per config domain, unique on guild_id."""
    op.create_table(
        "erlc_configs",
        *_guild_config_columns(),
        sa.Column("api_key", sa.Text(), nullable=True),
        sa.Column("staff_role_id", sa.String(32), nullable=True),
        sa.Column("hr_role_id", sa.String(32), nullable=True),
        sa.Column("command_logs_channel_id", sa.String(32), nullable=True),
    )
    op.create_table(
        "reminder_configs",
        *_guild_config_columns(),
        sa.Column("reminder_text", sa.Text(), nullable=True),
        sa.Column("reminder_interval", sa.Float(), nullable=True),
    )
    op.create_table(
        "restriction_configs",
        *_guild_config_columns(),
        sa.Column("livery_restrictions", postgresql.JSONB(), nullable=True),
        sa.Column("team_restrictions", postgresql.JSONB(), nullable=True),
    )


def downgrade() -> None:
    """Drop the config tables."""
    op.drop_table("restriction_configs")
    op.drop_table("reminder_configs")
    op.drop_table("erlc_configs")
