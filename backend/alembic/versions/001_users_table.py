"""Users table — primary key plus unique username/email indexes.

Revision ID: 001_users
Revises: None
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_users"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("username", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.PrimaryKeyConstraint("id", name="users_pkey"),
    )
    op.create_index("idx_username", "users", ["username"], unique=True)
    op.create_index("idx_email", "users", ["email"], unique=True)


def downgrade() -> None:
    op.drop_index("idx_email", table_name="users")
    op.drop_index("idx_username", table_name="users")
    op.drop_table("users")
