"""User Entity — the single resource managed by the service, plus its input projections.

Invariants:
    - User.id is assigned by the orchestrator only (UserCreateRequest has no id)
    - id, name, username, email are non-empty for every persisted User
    - UserUpdate fields left as None are never written

Design Decisions:
    - Plain dataclasses over ORM objects: core never imports SQLAlchemy (ADR: ports and adapters)
    - NewType for UserId: zero runtime cost, type-checker support
"""

from dataclasses import dataclass
from typing import NewType

UserId = NewType("UserId", str)

UPDATABLE_FIELDS = ("name", "username", "email")


@dataclass
class User:
    """A stored user record."""
    id: UserId
    name: str
    username: str
    email: str


@dataclass(frozen=True)
class UserCreateRequest:
    """Create input — everything but the identifier."""
    name: str
    username: str
    email: str

    def to_user(self, user_id: UserId) -> User:
        return User(
            id=user_id, name=self.name,
            username=self.username, email=self.email,
        )


@dataclass(frozen=True)
class UserUpdate:
    """Partial update addressed by id."""
    id: UserId
    name: str | None = None
    username: str | None = None
    email: str | None = None

    def changes(self) -> dict[str, str]:
        """Only the fields the caller actually provided."""
        return {
            name: getattr(self, name)
            for name in UPDATABLE_FIELDS
            if getattr(self, name) is not None
        }
