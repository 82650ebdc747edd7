"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process
    - database_url always names an async driver (postgresql+asyncpg:// or sqlite+aiosqlite://)

Design Decisions:
    - DATABASE_URL wins; otherwise the URL is composed from POSTGRES_USER / PASSWORD_ / DB_HOST
      so existing container environments keep working
    - Basic auth disabled (with a startup warning) when either credential is unset
"""

from functools import lru_cache
from urllib.parse import quote

from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str | None = None
    postgres_user: str = "postgres"
    postgres_password: str = Field(
        "postgres",
        validation_alias=AliasChoices("postgres_password", "password_"),
    )
    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "users_db"
    database_pool_size: int = 20
    database_max_overflow: int = 10
    create_schema_on_startup: bool = False

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str | None) -> str | None:
        """Plain postgresql:// URLs need the asyncpg driver suffix."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v or None

    @model_validator(mode="after")
    def compose_database_url(self):
        if not self.database_url:
            self.database_url = (
                f"postgresql+asyncpg://{quote(self.postgres_user)}:"
                f"{quote(self.postgres_password)}@{self.db_host}:"
                f"{self.db_port}/{self.db_name}"
            )
        return self

    # Server
    host: str = "0.0.0.0"
    port: int = 8080

    # Auth
    basic_auth_user: str | None = None
    basic_auth_pass: str | None = None

    @property
    def basic_auth_enabled(self) -> bool:
        return bool(self.basic_auth_user and self.basic_auth_pass)

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
