"""baseline

Revision ID: 3f2b7c91d0a4
Revises:
Create Date: 2026-10-19 09:12:44.518302

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3f2b7c91d0a4"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "ptr_entries",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("date", sa.Text(), nullable=False),
        sa.Column("crew", sa.Text(), nullable=False),
        sa.Column("type", sa.Text(), nullable=False),
        sa.Column("feet", sa.Integer(), nullable=False),
        sa.Column("username", sa.Text(), nullable=False),
        sa.Column("created_at", sa.Text(), nullable=False),
        sa.CheckConstraint("feet > 0", name="ck_ptr_entries_feet_positive"),
    )
    op.create_index("ix_ptr_entries_date", "ptr_entries", ["date"])
    op.create_index("ix_ptr_entries_username", "ptr_entries", ["username"])
    for table in ("ptr_crews", "ptr_types"):
        op.create_table(
            table,
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column("name", sa.Text(), nullable=False, unique=True),
            sa.Column("color", sa.Text(), nullable=False, server_default="#3B82F6"),
            sa.Column("created_at", sa.Text(), nullable=False),
        )
    op.create_table(
        "ptr_users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("username", sa.Text(), nullable=False),
        sa.Column("password", sa.Text(), nullable=False),
        sa.Column("role", sa.Text(), nullable=False, server_default="supervisor"),
        sa.Column("crew", sa.Text(), nullable=True),
        sa.Column("created_at", sa.Text(), nullable=False),
    )
    op.create_index("ix_ptr_users_username", "ptr_users", ["username"], unique=True)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("ptr_users")
    op.drop_table("ptr_types")
    op.drop_table("ptr_crews")
    op.drop_table("ptr_entries")
