"""Constraint Classification — turns driver-level failures into DomainError kinds.

Invariants:
    - classify_error() always returns a DomainError; it never returns None and never raises
    - Unique-violation codes always produce a conflict kind, even for unknown constraint names
    - Not-null codes produce ValueNotNullableError with the column when it is a known field,
      the "a column" placeholder otherwise
    - NoResultFound maps to UserNotFoundError, never InternalFailureError
    - Anything unclassified becomes InternalFailureError carrying the raw message for logs

Design Decisions:
    - Three error shapes reduced to one DbErrorData: asyncpg PostgresError on the cause chain,
      DB-API adapted errors with pgcode/sqlstate + diag, and SQLite constraint messages
      (ADR: the pool layer decides which one surfaces)
    - SQLite messages normalised to SQLSTATE codes so tests and production share one mapping
    - Duck-typed attribute reads: no hard dependency on psycopg, asyncpg only for isinstance
"""

import logging
import re
from dataclasses import dataclass

from asyncpg.exceptions import PostgresError
from sqlalchemy.exc import DBAPIError, NoResultFound

from app.core.errors import (
    DomainError,
    EmailInUseError,
    IdInUseError,
    InternalFailureError,
    UserNotFoundError,
    UsernameInUseError,
    ValueNotNullableError,
)
from app.models.user import EMAIL_INDEX, USERNAME_INDEX, USERS_PKEY

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"
NOT_NULL_VIOLATION = "23502"

NULLABLE_PLACEHOLDER = "a column"
KNOWN_COLUMNS = frozenset({"id", "name", "username", "email"})

_SQLITE_CONSTRAINT = re.compile(
    r"(?P<kind>UNIQUE|NOT NULL) constraint failed: (?:\w+\.)?(?P<column>\w+)",
)
_SQLITE_CODES = {"UNIQUE": UNIQUE_VIOLATION, "NOT NULL": NOT_NULL_VIOLATION}

# Postgres detail: Key (email)=(jane@example.com) already exists.
_PG_KEY_DETAIL = re.compile(r"Key \((?P<column>[^)]+)\)=")


@dataclass(frozen=True)
class DbErrorData:
    """Structured view of a driver error."""
    code: str
    constraint: str | None = None
    column: str | None = None
    message: str = ""


def _exception_chain(exc: BaseException):
    """exc, its DB-API .orig, then every __cause__/__context__ below them."""
    seen: set[int] = set()
    pending: list[BaseException | None] = [exc]
    while pending:
        current = pending.pop(0)
        if current is None or id(current) in seen:
            continue
        seen.add(id(current))
        yield current
        pending.append(getattr(current, "orig", None))
        pending.append(current.__cause__)
        pending.append(current.__context__)


def _from_asyncpg(err: BaseException) -> DbErrorData | None:
    """Low-level connection error raised by asyncpg itself."""
    if not isinstance(err, PostgresError):
        return None
    code = getattr(err, "sqlstate", None)
    if not code:
        return None
    column = getattr(err, "column_name", None)
    if not column:
        column = _column_from_detail(getattr(err, "detail", None))
    return DbErrorData(
        code=code,
        constraint=getattr(err, "constraint_name", None),
        column=column,
        message=str(err),
    )


def _from_dbapi(err: BaseException) -> DbErrorData | None:
    """Protocol-level error exposing pgcode/sqlstate and a diag block."""
    code = getattr(err, "pgcode", None) or getattr(err, "sqlstate", None)
    if not isinstance(code, str) or not code:
        return None
    diag = getattr(err, "diag", None)
    constraint = getattr(diag, "constraint_name", None)
    column = getattr(diag, "column_name", None)
    if not column:
        column = _column_from_detail(getattr(diag, "message_detail", None))
    if not constraint:
        constraint = getattr(err, "constraint_name", None)
    return DbErrorData(
        code=code, constraint=constraint, column=column, message=str(err),
    )


def _from_sqlite(err: BaseException) -> DbErrorData | None:
    match = _SQLITE_CONSTRAINT.search(str(err))
    if not match:
        return None
    return DbErrorData(
        code=_SQLITE_CODES[match.group("kind")],
        column=match.group("column"),
        message=str(err),
    )


def _column_from_detail(detail: str | None) -> str | None:
    if not detail:
        return None
    match = _PG_KEY_DETAIL.search(detail)
    return match.group("column") if match else None


_EXTRACTORS = (_from_asyncpg, _from_dbapi, _from_sqlite)


def extract_db_error(exc: BaseException) -> DbErrorData | None:
    """Most specific driver shape found anywhere in the exception chain."""
    chain = list(_exception_chain(exc))
    for extract in _EXTRACTORS:
        for err in chain:
            data = extract(err)
            if data is not None:
                return data
    return None


# ─── Mapping ────────────────────────────────────────────────────

_CONFLICT_BY_CONSTRAINT = {
    USERS_PKEY: IdInUseError,
    USERNAME_INDEX: UsernameInUseError,
    EMAIL_INDEX: EmailInUseError,
}

_CONFLICT_BY_COLUMN = {
    "id": IdInUseError,
    "username": UsernameInUseError,
    "email": EmailInUseError,
}


def _conflict_error(data: DbErrorData) -> DomainError:
    if data.constraint in _CONFLICT_BY_CONSTRAINT:
        return _CONFLICT_BY_CONSTRAINT[data.constraint](data.constraint)
    if data.column in _CONFLICT_BY_COLUMN:
        return _CONFLICT_BY_COLUMN[data.column](data.constraint)
    # Unknown name: best effort on whatever text we have
    haystack = f"{data.constraint or ''} {data.message}".lower()
    if "username" in haystack:
        return UsernameInUseError(data.constraint)
    if "email" in haystack:
        return EmailInUseError(data.constraint)
    logger.warning(
        f"Unrecognised unique constraint {data.constraint!r}, "
        f"classified as id conflict",
    )
    return IdInUseError(data.constraint)


def _not_nullable_error(data: DbErrorData) -> DomainError:
    field = data.column if data.column in KNOWN_COLUMNS else NULLABLE_PLACEHOLDER
    return ValueNotNullableError(field)


def classify_error(exc: BaseException) -> DomainError:
    """Map a persistence failure to exactly one DomainError."""
    if isinstance(exc, DomainError):
        return exc
    if isinstance(exc, NoResultFound):
        return UserNotFoundError()
    data = extract_db_error(exc)
    if data is not None and data.code == UNIQUE_VIOLATION:
        return _conflict_error(data)
    if data is not None and data.code == NOT_NULL_VIOLATION:
        return _not_nullable_error(data)
    detail = str(exc.orig) if isinstance(exc, DBAPIError) else str(exc)
    return InternalFailureError(detail or type(exc).__name__)
