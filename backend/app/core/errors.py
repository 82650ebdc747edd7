"""Error Hierarchy — the closed vocabulary of failures crossing persistence → application.

Invariants:
    - Every DomainError carries exactly one ErrorKind; callers branch on .kind, never on message text
    - ErrorKind is closed: boundary tables (HTTP status, log level) are keyed by every member
    - INTERNAL_FAILURE / TRANSACTION_FAILURE detail never reaches a client (public_message redacts)
    - The underlying driver/cause error travels as __cause__ (raise ... from), not in the message

Design Decisions:
    - Kind enum + one subclass per kind: exhaustive dict dispatch on kind, isinstance still works
      for except clauses (ADR: no identity-compared sentinel errors)
    - ErrorContext as dataclass: rich observability without coupling to logging framework
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONFLICT = "conflict"
    DATABASE = "database"
    INTERNAL = "internal"


class ErrorKind(str, Enum):
    """Domain failure kinds. The only error vocabulary the adapter may emit."""
    NOT_FOUND = "not_found"
    USERNAME_CONFLICT = "username_conflict"
    EMAIL_CONFLICT = "email_conflict"
    ID_CONFLICT = "id_conflict"
    NOT_NULLABLE = "not_nullable"
    INTERNAL_FAILURE = "internal_failure"
    TRANSACTION_FAILURE = "transaction_failure"


CONFLICT_KINDS = frozenset({
    ErrorKind.USERNAME_CONFLICT,
    ErrorKind.EMAIL_CONFLICT,
    ErrorKind.ID_CONFLICT,
})

REDACTED_KINDS = frozenset({
    ErrorKind.INTERNAL_FAILURE,
    ErrorKind.TRANSACTION_FAILURE,
})

GENERIC_FAILURE_MESSAGE = "An unexpected error occurred"

_CATEGORY_BY_KIND: dict[ErrorKind, ErrorCategory] = {
    ErrorKind.NOT_FOUND: ErrorCategory.RESOURCE_NOT_FOUND,
    ErrorKind.USERNAME_CONFLICT: ErrorCategory.CONFLICT,
    ErrorKind.EMAIL_CONFLICT: ErrorCategory.CONFLICT,
    ErrorKind.ID_CONFLICT: ErrorCategory.CONFLICT,
    ErrorKind.NOT_NULLABLE: ErrorCategory.VALIDATION,
    ErrorKind.INTERNAL_FAILURE: ErrorCategory.INTERNAL,
    ErrorKind.TRANSACTION_FAILURE: ErrorCategory.DATABASE,
}

_SEVERITY_BY_KIND: dict[ErrorKind, ErrorSeverity] = {
    ErrorKind.NOT_FOUND: ErrorSeverity.WARNING,
    ErrorKind.USERNAME_CONFLICT: ErrorSeverity.WARNING,
    ErrorKind.EMAIL_CONFLICT: ErrorSeverity.WARNING,
    ErrorKind.ID_CONFLICT: ErrorSeverity.WARNING,
    ErrorKind.NOT_NULLABLE: ErrorSeverity.ERROR,
    ErrorKind.INTERNAL_FAILURE: ErrorSeverity.CRITICAL,
    ErrorKind.TRANSACTION_FAILURE: ErrorSeverity.CRITICAL,
}


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    user_id: str | None = None
    operation: str | None = None
    debug_info: dict[str, Any] | None = None


class UserApiError(Exception):
    """Base exception for all User API errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()

    @property
    def public_message(self) -> str:
        """Message safe to show an external caller."""
        return self.message

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.public_message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
            }
        }


class DomainError(UserApiError):
    """A classified failure of one User use case."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        field: str | None = None,
        constraint: str | None = None,
        detail: str | None = None,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, kind.name, _CATEGORY_BY_KIND[kind],
            _SEVERITY_BY_KIND[kind], context,
        )
        self.kind = kind
        self.field = field
        self.constraint = constraint
        self.detail = detail

    @property
    def is_conflict(self) -> bool:
        return self.kind in CONFLICT_KINDS

    @property
    def public_message(self) -> str:
        if self.kind in REDACTED_KINDS:
            return GENERIC_FAILURE_MESSAGE
        return self.message


# ─── Client-visible kinds ───────────────────────────────────────

class UserNotFoundError(DomainError):
    """Requested identifier has no live record."""
    def __init__(self, user_id: str | None = None, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.user_id = ctx.user_id or user_id
        super().__init__(ErrorKind.NOT_FOUND, "user not found", context=ctx)


class UsernameInUseError(DomainError):
    """Unique index on username collided."""
    def __init__(self, constraint: str | None = None, context: ErrorContext | None = None):
        super().__init__(
            ErrorKind.USERNAME_CONFLICT, "username already in use",
            field="username", constraint=constraint, context=context,
        )


class EmailInUseError(DomainError):
    """Unique index on email collided."""
    def __init__(self, constraint: str | None = None, context: ErrorContext | None = None):
        super().__init__(
            ErrorKind.EMAIL_CONFLICT, "email already in use",
            field="email", constraint=constraint, context=context,
        )


class IdInUseError(DomainError):
    """Primary key collided."""
    def __init__(self, constraint: str | None = None, context: ErrorContext | None = None):
        super().__init__(
            ErrorKind.ID_CONFLICT, "id already in use",
            field="id", constraint=constraint, context=context,
        )


class ValueNotNullableError(DomainError):
    """A required column was left null at the storage layer."""
    def __init__(self, field: str, context: ErrorContext | None = None):
        super().__init__(
            ErrorKind.NOT_NULLABLE, f"{field} is not nullable",
            field=field, context=context,
        )


# ─── Redacted kinds (logged, never shown) ───────────────────────

class InternalFailureError(DomainError):
    """Unclassified storage or service failure."""
    def __init__(
        self, detail: str, context: ErrorContext | None = None,
        prefix: str = "internal server error",
    ):
        super().__init__(
            ErrorKind.INTERNAL_FAILURE, f"{prefix}: {detail}",
            detail=detail, context=context,
        )


class TransactionFailedError(DomainError):
    """The unit of work could not commit or roll back cleanly."""
    def __init__(self, detail: str, context: ErrorContext | None = None):
        super().__init__(
            ErrorKind.TRANSACTION_FAILURE, f"transaction failed: {detail}",
            detail=detail, context=context,
        )
