"""Root conftest — shared test configuration and an in-memory database per test.

Invariants:
    - Every test gets a fresh in-memory SQLite database with the users table created
    - Basic auth is disabled unless a test patches settings explicitly

Design Decisions:
    - SQLite in-memory via aiosqlite + StaticPool: one shared connection, so every session
      sees the same database (PostgreSQL error shapes are covered by classifier unit tests)
"""

import os

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///test.db")
os.environ.pop("BASIC_AUTH_USER", None)
os.environ.pop("BASIC_AUTH_PASS", None)

from app.db.base import Base  # noqa: E402
import app.models  # noqa: E402,F401
from app.infrastructure.user_repository import SqlAlchemyUserRepository  # noqa: E402
from app.services.user_service import UserService  # noqa: E402


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
def repository(test_session_factory):
    return SqlAlchemyUserRepository(test_session_factory)


@pytest.fixture
def user_service(repository):
    return UserService(repository, repository)
