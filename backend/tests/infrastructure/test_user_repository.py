"""User Repository — SQLAlchemy adapter against an in-memory SQLite store.

Tests cover:
    - CRUD round trips and NOT_FOUND on zero affected rows
    - Constraint violations classified per column
    - execute(): commit on return, rollback on DomainError / other exceptions / cancellation
    - Commit and rollback failures surface as TRANSACTION_FAILURE
"""

import asyncio

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.errors import (
    EmailInUseError,
    ErrorKind,
    IdInUseError,
    TransactionFailedError,
    UserNotFoundError,
    UsernameInUseError,
    ValueNotNullableError,
)
from app.core.user import User, UserUpdate
from app.infrastructure.user_repository import (
    SqlAlchemyUserRepository,
    TransactionScopedUserRepository,
)


def _user(suffix: str, user_id: str | None = None) -> User:
    return User(
        id=user_id or f"01HZ0000000000000000000{suffix:0>3}",
        name=f"User {suffix}",
        username=f"user{suffix}",
        email=f"user{suffix}@example.com",
    )


class _CommitFailsSession(AsyncSession):
    async def commit(self):
        raise OperationalError("COMMIT", {}, Exception("server closed the connection"))


class _RollbackFailsSession(AsyncSession):
    async def rollback(self):
        raise OperationalError("ROLLBACK", {}, Exception("connection reset"))


async def test_create_then_find_by_id(repository):
    user = _user("1")
    await repository.create(user)
    assert await repository.find_by_id(user.id) == user


async def test_find_all_empty(repository):
    assert await repository.find_all() == []


async def test_find_all_returns_in_id_order(repository):
    second, first = _user("2"), _user("1")
    await repository.create(second)
    await repository.create(first)
    assert await repository.find_all() == [first, second]


async def test_find_by_id_missing(repository):
    with pytest.raises(UserNotFoundError) as exc_info:
        await repository.find_by_id("missing")
    assert exc_info.value.context.user_id == "missing"


async def test_duplicate_id(repository):
    await repository.create(_user("1"))
    clash = _user("2", user_id=_user("1").id)
    with pytest.raises(IdInUseError):
        await repository.create(clash)


async def test_duplicate_username(repository):
    await repository.create(_user("1"))
    clash = _user("2")
    clash.username = "user1"
    with pytest.raises(UsernameInUseError):
        await repository.create(clash)


async def test_duplicate_email(repository):
    await repository.create(_user("1"))
    clash = _user("2")
    clash.email = "user1@example.com"
    with pytest.raises(EmailInUseError):
        await repository.create(clash)


async def test_null_column(repository):
    user = _user("1")
    user.name = None
    with pytest.raises(ValueNotNullableError) as exc_info:
        await repository.create(user)
    assert exc_info.value.field == "name"


async def test_update_partial(repository):
    user = _user("1")
    await repository.create(user)
    await repository.update(UserUpdate(id=user.id, name="Renamed"))
    stored = await repository.find_by_id(user.id)
    assert stored.name == "Renamed"
    assert stored.username == user.username
    assert stored.email == user.email


async def test_update_missing_is_not_found_and_creates_nothing(repository):
    with pytest.raises(UserNotFoundError):
        await repository.update(UserUpdate(id="missing", name="Ghost"))
    assert await repository.find_all() == []


async def test_update_without_changes(repository):
    user = _user("1")
    await repository.create(user)
    await repository.update(UserUpdate(id=user.id))
    with pytest.raises(UserNotFoundError):
        await repository.update(UserUpdate(id="missing"))


async def test_update_into_existing_email(repository):
    await repository.create(_user("1"))
    await repository.create(_user("2"))
    with pytest.raises(EmailInUseError):
        await repository.update(
            UserUpdate(id=_user("2").id, email="user1@example.com"),
        )


async def test_delete(repository):
    user = _user("1")
    await repository.create(user)
    await repository.delete(user.id)
    with pytest.raises(UserNotFoundError):
        await repository.find_by_id(user.id)


async def test_delete_missing(repository):
    with pytest.raises(UserNotFoundError):
        await repository.delete("missing")


# ─── Transaction port ───────────────────────────────────────────

async def test_execute_commits_and_returns_value(repository):
    user = _user("1")

    async def unit_of_work(repo):
        assert isinstance(repo, TransactionScopedUserRepository)
        await repo.create(user)
        return user.id

    assert await repository.execute(unit_of_work) == user.id
    assert await repository.find_by_id(user.id) == user


async def test_execute_rolls_back_prior_writes_on_domain_error(repository):
    first = _user("1")
    clash = _user("2")
    clash.username = first.username

    async def unit_of_work(repo):
        await repo.create(first)
        await repo.create(clash)

    with pytest.raises(UsernameInUseError):
        await repository.execute(unit_of_work)
    assert await repository.find_all() == []


async def test_execute_reraises_the_same_domain_error(repository):
    raised = UserNotFoundError("x")

    async def unit_of_work(repo):
        await repo.create(_user("1"))
        raise raised

    with pytest.raises(UserNotFoundError) as exc_info:
        await repository.execute(unit_of_work)
    assert exc_info.value is raised
    assert await repository.find_all() == []


async def test_execute_rolls_back_on_unexpected_exception(repository):
    async def unit_of_work(repo):
        await repo.create(_user("1"))
        raise RuntimeError("bug in use case")

    with pytest.raises(RuntimeError):
        await repository.execute(unit_of_work)
    assert await repository.find_all() == []


async def test_cancellation_rolls_back(repository):
    async def unit_of_work(repo):
        await repo.create(_user("1"))
        await asyncio.sleep(10)

    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(repository.execute(unit_of_work), timeout=0.05)
    assert await repository.find_all() == []


async def test_commit_failure_is_transaction_failure(test_engine, repository):
    broken = SqlAlchemyUserRepository(
        async_sessionmaker(test_engine, class_=_CommitFailsSession, expire_on_commit=False),
    )

    async def unit_of_work(repo):
        await repo.create(_user("1"))

    with pytest.raises(TransactionFailedError) as exc_info:
        await broken.execute(unit_of_work)
    assert exc_info.value.kind is ErrorKind.TRANSACTION_FAILURE
    assert isinstance(exc_info.value.__cause__, OperationalError)
    assert await repository.find_all() == []


async def test_rollback_failure_is_transaction_failure(test_engine):
    broken = SqlAlchemyUserRepository(
        async_sessionmaker(test_engine, class_=_RollbackFailsSession, expire_on_commit=False),
    )

    async def unit_of_work(repo):
        raise UserNotFoundError("x")

    with pytest.raises(TransactionFailedError):
        await broken.execute(unit_of_work)
