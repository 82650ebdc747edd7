"""Boundary Protocols — contracts between the orchestrator and persistence.

Invariants:
    - Core NEVER imports from infrastructure — dependency arrows point inward only
    - Every failure surfaces as a DomainError (core/errors.py); raw driver errors never cross
    - A unit of work receives a repository view bound to its own transaction, never the pool-wide one

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - "Returns an error" is expressed as "raises DomainError"; returning normally is success
    - execute() hands back the unit of work's return value so callers need no captured variable
"""

from typing import Awaitable, Callable, Protocol, TypeVar

from app.core.user import User, UserId, UserUpdate

T = TypeVar("T")


class UserRepository(Protocol):
    """CRUD contract for user persistence — implemented by infrastructure."""

    async def create(self, user: User) -> None:
        """Insert one record. Raises IdInUse/UsernameInUse/EmailInUse, ValueNotNullable,
        InternalFailure."""
        ...

    async def find_all(self) -> list[User]:
        """All live records, possibly empty. Ordering is not part of the contract."""
        ...

    async def find_by_id(self, user_id: UserId) -> User:
        """Raises UserNotFoundError when absent."""
        ...

    async def update(self, user: UserUpdate) -> None:
        """Partial update by id. Raises UserNotFoundError when nothing matched, plus the
        create() conflict/not-nullable kinds."""
        ...

    async def delete(self, user_id: UserId) -> None:
        """Raises UserNotFoundError when nothing was deleted."""
        ...


UnitOfWork = Callable[[UserRepository], Awaitable[T]]


class UserTransactionPort(Protocol):
    """Runs a unit of work atomically."""

    async def execute(self, unit_of_work: UnitOfWork[T]) -> T:
        """Commit when unit_of_work returns, roll back when it raises.

        A DomainError raised by the unit of work is re-raised unchanged after a clean
        rollback. A commit or rollback the store cannot complete raises
        TransactionFailedError instead.
        """
        ...
