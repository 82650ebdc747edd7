"""User API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map DomainError → status code + structured JSON (api/error_handlers.py)
    - Every request passes basic auth + request logging (api/middleware.py)
    - Database initialized on startup and disposed on shutdown via lifespan

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - create_schema_on_startup for environments without alembic (off by default)
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.error_handlers import register_error_handlers
from app.api.middleware import auth_and_logging_middleware
from app.api.routes import health, users
from app.config import get_settings
from app.infrastructure.database import init_db
from app.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    manager = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    if settings.create_schema_on_startup:
        await manager.create_schema()
    if not settings.basic_auth_enabled:
        logger.warning(
            "BASIC_AUTH_USER/BASIC_AUTH_PASS not set. Skipping authentication.",
        )
    logger.info("User API started")
    yield
    await manager.dispose()
    logger.info("User API shutting down")


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="User API", version="1.0.0", lifespan=lifespan)
    app.middleware("http")(auth_and_logging_middleware)
    # Outermost: CORS preflight never reaches basic auth
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(health.router)
    app.include_router(users.router)
    register_error_handlers(app)
    return app


app = create_app()


def serve() -> None:
    """Console entry point: run the API under uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    serve()
