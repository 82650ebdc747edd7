"""User Repository — SQLAlchemy implementation of UserRepository and UserTransactionPort.

Invariants:
    - Every SQLAlchemy/driver error leaving this module is a DomainError (constraint_errors.py)
    - update()/delete() affecting zero rows raise UserNotFoundError — no error != success
    - execute() gives the unit of work a TransactionScopedUserRepository bound to ONE session;
      the pool-wide repository is never shared with a unit of work
    - Unit of work returns → commit; raises (DomainError, any Exception, cancellation) → rollback
      before the exception propagates
    - A commit or rollback the store cannot complete → TransactionFailedError

Design Decisions:
    - Statements live in one base class; the two subclasses differ only in where the session
      comes from (pool-wide: fresh session + own transaction; scoped: the unit of work's session)
    - Core insert/update/delete statements over ORM unit-of-work flushes: rowcount and driver
      errors surface at the statement that caused them, not at a later flush
    - find_all ordered by id: ids are time-sortable so this is creation order
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import AsyncGenerator

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.errors import (
    REDACTED_KINDS, DomainError, TransactionFailedError, UserNotFoundError,
)
from app.core.repository_protocols import UnitOfWork, T
from app.core.user import User, UserId, UserUpdate
from app.infrastructure.constraint_errors import classify_error
from app.models.user import User as UserModel

logger = logging.getLogger(__name__)


def _to_domain(row: UserModel) -> User:
    return User(
        id=UserId(row.id), name=row.name,
        username=row.username, email=row.email,
    )


def _classified(
    exc: SQLAlchemyError, operation: str, user_id: str | None = None,
) -> DomainError:
    """Classify and log one failed statement."""
    error = classify_error(exc)
    error.context.operation = operation
    error.context.user_id = error.context.user_id or user_id
    extra = {
        "error_kind": error.kind.value,
        "operation": operation,
        "user_id": error.context.user_id,
    }
    if error.kind in REDACTED_KINDS:
        logger.error(f"Unclassified storage failure in {operation}: {exc}", extra=extra)
    else:
        logger.debug(f"{operation} rejected by store: {error.message}", extra=extra)
    return error


class _UserStatements:
    """CRUD statements against whatever session the subclass's _session() provides."""

    async def create(self, user: User) -> None:
        try:
            async with self._session() as session:
                await session.execute(insert(UserModel).values(**asdict(user)))
        except SQLAlchemyError as e:
            raise _classified(e, "create", user.id) from e

    async def find_all(self) -> list[User]:
        try:
            async with self._session() as session:
                result = await session.execute(
                    select(UserModel).order_by(UserModel.id),
                )
                return [_to_domain(row) for row in result.scalars().all()]
        except SQLAlchemyError as e:
            raise _classified(e, "find_all") from e

    async def find_by_id(self, user_id: UserId) -> User:
        try:
            async with self._session() as session:
                result = await session.execute(
                    select(UserModel).where(UserModel.id == user_id),
                )
                return _to_domain(result.scalar_one())
        except SQLAlchemyError as e:
            raise _classified(e, "find_by_id", user_id) from e

    async def update(self, user: UserUpdate) -> None:
        changes = user.changes()
        try:
            async with self._session() as session:
                if not changes:
                    # Nothing to write; still report a missing record
                    exists = await session.scalar(
                        select(UserModel.id).where(UserModel.id == user.id),
                    )
                    if exists is None:
                        raise UserNotFoundError(user.id)
                    return
                result = await session.execute(
                    update(UserModel)
                    .where(UserModel.id == user.id)
                    .values(**changes)
                    .execution_options(synchronize_session=False),
                )
                if result.rowcount == 0:
                    raise UserNotFoundError(user.id)
        except SQLAlchemyError as e:
            raise _classified(e, "update", user.id) from e

    async def delete(self, user_id: UserId) -> None:
        try:
            async with self._session() as session:
                result = await session.execute(
                    delete(UserModel)
                    .where(UserModel.id == user_id)
                    .execution_options(synchronize_session=False),
                )
                if result.rowcount == 0:
                    raise UserNotFoundError(user_id)
        except SQLAlchemyError as e:
            raise _classified(e, "delete", user_id) from e


class TransactionScopedUserRepository(_UserStatements):
    """Repository view bound to the session of one unit of work. Never commits."""

    def __init__(self, session: AsyncSession):
        self._bound = session

    @asynccontextmanager
    async def _session(self) -> AsyncGenerator[AsyncSession, None]:
        yield self._bound


class SqlAlchemyUserRepository(_UserStatements):
    """Pool-wide repository and transaction port.

    Each CRUD call runs in its own short transaction; execute() runs a whole
    unit of work in one.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    @asynccontextmanager
    async def _session(self) -> AsyncGenerator[AsyncSession, None]:
        async with self._session_factory() as session:
            async with session.begin():
                yield session

    async def execute(self, unit_of_work: UnitOfWork[T]) -> T:
        async with self._session_factory() as session:
            scoped = TransactionScopedUserRepository(session)
            try:
                result = await unit_of_work(scoped)
            except BaseException as exc:
                await self._rollback(session, exc)
                raise
            await self._commit(session)
            return result

    async def _commit(self, session: AsyncSession) -> None:
        try:
            await session.commit()
        except SQLAlchemyError as e:
            logger.error(
                f"[transaction failed] commit error: {e}",
                extra={"error_kind": "transaction_failure", "operation": "commit"},
            )
            raise TransactionFailedError(f"commit failed: {e}") from e

    async def _rollback(self, session: AsyncSession, cause: BaseException) -> None:
        try:
            await session.rollback()
        except SQLAlchemyError as e:
            logger.error(
                f"[transaction failed] rollback error after {cause!r}: {e}",
                extra={"error_kind": "transaction_failure", "operation": "rollback"},
            )
            if isinstance(cause, Exception):
                raise TransactionFailedError(f"rollback failed: {e}") from e
            return
        if isinstance(cause, DomainError):
            logger.info(
                f"Unit of work rolled back: {cause.message}",
                extra={"error_kind": cause.kind.value},
            )
        else:
            logger.warning(f"Unit of work rolled back: {cause!r}")
