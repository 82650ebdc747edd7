"""User Service — create/read/update/delete use cases over the repository and transaction ports.

Invariants:
    - Ids are generated here (core/ids.py), never by the store
    - Every mutating use case runs in exactly one unit of work; reads go straight to the repository
    - DomainError propagates unchanged; any other exception becomes InternalFailureError with the
      original chained as __cause__
    - No retries: each failure is raised exactly once to the caller
    - Only failures first seen here are logged here; DomainError from the ports was logged
      where it was classified

Design Decisions:
    - update() re-reads the record inside the same unit of work: the caller gets the stored state,
      not an echo of a partial request
    - Ports injected as Protocols: the service never sees SQLAlchemy
"""

import logging
from contextlib import contextmanager
from typing import Iterator

from app.core.errors import (
    DomainError, ErrorContext, InternalFailureError,
)
from app.core.ids import new_user_id
from app.core.repository_protocols import UserRepository, UserTransactionPort
from app.core.user import User, UserCreateRequest, UserId, UserUpdate

logger = logging.getLogger(__name__)


class UserService:
    """Orchestrates the User lifecycle."""

    def __init__(
        self, repo: UserRepository, tx_port: UserTransactionPort,
        id_factory=new_user_id,
    ):
        self.repo = repo
        self.tx_port = tx_port
        self._new_id = id_factory

    async def create(self, request: UserCreateRequest) -> User:
        """Assign an id and persist the new user atomically."""
        user = request.to_user(UserId(self._new_id()))

        async def _create(repo: UserRepository) -> User:
            await repo.create(user)
            return user

        with self._mapped_errors("create", user.id):
            return await self.tx_port.execute(_create)

    async def find_all(self) -> list[User]:
        with self._mapped_errors("find_all"):
            return await self.repo.find_all()

    async def find_by_id(self, user_id: UserId) -> User:
        with self._mapped_errors("find_by_id", user_id):
            return await self.repo.find_by_id(user_id)

    async def update(self, user: UserUpdate) -> User:
        """Apply the provided fields and return the stored record."""
        async def _update(repo: UserRepository) -> User:
            await repo.update(user)
            return await repo.find_by_id(user.id)

        with self._mapped_errors("update", user.id):
            return await self.tx_port.execute(_update)

    async def delete(self, user_id: UserId) -> None:
        async def _delete(repo: UserRepository) -> None:
            await repo.delete(user_id)

        with self._mapped_errors("delete", user_id):
            await self.tx_port.execute(_delete)

    @contextmanager
    def _mapped_errors(
        self, operation: str, user_id: str | None = None,
    ) -> Iterator[None]:
        try:
            yield
        except DomainError:
            raise
        except Exception as e:
            raise self._map_repository_error(e, operation, user_id) from e

    def _map_repository_error(
        self, err: Exception, operation: str, user_id: str | None = None,
    ) -> InternalFailureError:
        """Wrap a failure the ports did not classify."""
        logger.error(
            f"Unexpected error in user {operation}: {err!r}",
            extra={"error_kind": "internal_failure", "operation": operation},
            exc_info=err,
        )
        return InternalFailureError(
            str(err),
            context=ErrorContext(user_id=user_id, operation=operation),
            prefix="internal service error",
        )
