"""HTTP Middleware — basic authentication and one log line per request.

Invariants:
    - When BASIC_AUTH_USER and BASIC_AUTH_PASS are both set, every non-public request must carry
      matching Basic credentials or gets 401 + WWW-Authenticate
    - When either is unset authentication is skipped (warned once at startup, see main.py)
    - The logged status is the status actually sent, including 401s and error responses

Design Decisions:
    - Credentials compared with secrets.compare_digest: constant time
    - Health probes are public: orchestrators probe without credentials
    - Settings read per request through get_settings() (cached): tests can patch it
"""

import base64
import binascii
import logging
import secrets
import time

from fastapi import Request, status
from fastapi.responses import PlainTextResponse

from app.config import Settings, get_settings

logger = logging.getLogger(__name__)

PUBLIC_PATH_PREFIXES = ("/api/v1/health",)


def _parse_basic_auth(header: str | None) -> tuple[str, str] | None:
    if not header:
        return None
    scheme, _, encoded = header.partition(" ")
    if scheme.lower() != "basic" or not encoded:
        return None
    try:
        decoded = base64.b64decode(encoded.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None
    user, sep, password = decoded.partition(":")
    if not sep:
        return None
    return user, password


def is_authorized(request: Request, settings: Settings) -> bool:
    """True when auth is disabled, the path is public, or credentials match."""
    if not settings.basic_auth_enabled:
        return True
    if request.url.path.startswith(PUBLIC_PATH_PREFIXES):
        return True
    credentials = _parse_basic_auth(request.headers.get("authorization"))
    if credentials is None:
        return False
    user, password = credentials
    user_ok = secrets.compare_digest(
        user.encode("utf-8"), settings.basic_auth_user.encode("utf-8"),
    )
    pass_ok = secrets.compare_digest(
        password.encode("utf-8"), settings.basic_auth_pass.encode("utf-8"),
    )
    return user_ok and pass_ok


def _log_request(request: Request, status_code: int, started: float) -> None:
    duration_ms = round((time.perf_counter() - started) * 1000, 2)
    protocol = f"HTTP/{request.scope.get('http_version', '1.1')}"
    logger.info(
        f"[{request.method}] {request.url.path} {protocol} | "
        f"Status: {status_code} | Duration: {duration_ms}ms",
        extra={
            "method": request.method,
            "path": request.url.path,
            "status_code": status_code,
            "duration_ms": duration_ms,
        },
    )


async def auth_and_logging_middleware(request: Request, call_next):
    """Reject unauthenticated requests, then log the real outcome."""
    started = time.perf_counter()
    if not is_authorized(request, get_settings()):
        response = PlainTextResponse(
            "Unauthorized",
            status_code=status.HTTP_401_UNAUTHORIZED,
            headers={"WWW-Authenticate": 'Basic realm="Restricted"'},
        )
    else:
        try:
            response = await call_next(request)
        except Exception:
            # The catch-all handler outside this middleware renders the 500
            _log_request(request, status.HTTP_500_INTERNAL_SERVER_ERROR, started)
            raise
    _log_request(request, response.status_code, started)
    return response
