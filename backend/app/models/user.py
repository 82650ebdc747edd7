"""User ORM — the users table and the constraint names the classifier relies on.

Invariants:
    - Primary key constraint is named users_pkey
    - Unique indexes are named idx_username and idx_email
    - All four columns are NOT NULL
    - id is supplied by the application (no server default)

Design Decisions:
    - Constraint names fixed in metadata, not left to dialect defaults: classification in
      infrastructure/constraint_errors.py keys on them
    - String(26) for id: exact ULID width
"""

from sqlalchemy import Index, PrimaryKeyConstraint, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base

USERS_PKEY = "users_pkey"
USERNAME_INDEX = "idx_username"
EMAIL_INDEX = "idx_email"


class User(Base):
    """Row of the users table."""
    __tablename__ = "users"
    __table_args__ = (
        PrimaryKeyConstraint("id", name=USERS_PKEY),
        Index(USERNAME_INDEX, "username", unique=True),
        Index(EMAIL_INDEX, "email", unique=True),
    )

    id: Mapped[str] = mapped_column(String(26), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    username: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
