"""Error Handlers — the only place domain error kinds become HTTP responses.

Invariants:
    - STATUS_BY_KIND covers every ErrorKind
    - Redacted kinds were logged where they arose; here they are only traced at debug
    - DomainError → status from STATUS_BY_KIND, body from to_response() (redacted for
      INTERNAL_FAILURE / TRANSACTION_FAILURE)
    - RequestValidationError → 400 with field-level error details
    - Exception (catch-all) → 500, never leaks internal details

Design Decisions:
    - Three-layer handler: domain (DomainError), validation (Pydantic), catch-all (Exception)
    - Status codes live at the boundary, not on the error: core stays transport-agnostic
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from app.core.errors import (
    GENERIC_FAILURE_MESSAGE, REDACTED_KINDS, DomainError, ErrorKind, ErrorSeverity,
)

logger = logging.getLogger(__name__)

STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.USERNAME_CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.EMAIL_CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.ID_CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.NOT_NULLABLE: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INTERNAL_FAILURE: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.TRANSACTION_FAILURE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_domain_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def _register_domain_error_handler(app: FastAPI) -> None:
    """Register User API domain error handler."""

    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError):
        """Map the error kind to a status code."""
        extra = {
            "error_code": exc.code,
            "error_kind": exc.kind.value,
            "path": request.url.path,
        }
        if exc.kind in REDACTED_KINDS:
            logger.debug(f"DomainError: {exc.message}", extra=extra)
        else:
            logger.info(f"DomainError: {exc.message}", extra=extra)
        return JSONResponse(
            status_code=STATUS_BY_KIND[exc.kind], content=exc.to_response(),
        )


def _register_validation_error_handler(app: FastAPI) -> None:
    """Register Pydantic validation error handler."""

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        """Handle Pydantic validation errors."""
        logger.warning(
            f"Validation error on {request.url.path}: {exc.errors()}",
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_build_validation_error_response(exc),
        )


def _register_generic_error_handler(app: FastAPI) -> None:
    """Register catch-all error handler."""

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all — never leaks internal details."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": GENERIC_FAILURE_MESSAGE,
                    "category": "internal",
                    "severity": ErrorSeverity.CRITICAL.value,
                },
            },
        )


def _build_validation_error_response(exc: RequestValidationError) -> dict:
    """Build structured validation error response."""
    return {
        "error": {
            "code": "VALIDATION_ERROR",
            "message": "Invalid request data",
            "category": "validation",
            "severity": ErrorSeverity.ERROR.value,
            "details": [
                {
                    "field": ".".join(str(loc) for loc in e["loc"]),
                    "message": e["msg"],
                    "type": e["type"],
                }
                for e in exc.errors()
            ],
        },
    }
