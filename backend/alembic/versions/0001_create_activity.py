"""create t_activity

Revision ID: 0001
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "t_activity",
        sa.Column("activity", sa.String(length=255), primary_key=True),
        sa.Column("priority", sa.Double(), nullable=False, server_default="1.0"),
    )


def downgrade() -> None:
    op.drop_table("t_activity")
