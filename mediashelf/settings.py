"""Centralized configuration management for the MediaShelf backend."""

from __future__ import annotations

import logging
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field, PrivateAttr
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load variables from a local .env before the settings singleton is built so
# every importer of :mod:`mediashelf.settings` observes the same environment.
load_dotenv()

# -- Application-wide constants -------------------------------------------------

POSTGRES_ASYNC_PREFIX = "postgresql+psycopg://"
POSTGRES_SYNC_PREFIXES = ("postgres://", "postgresql://")
SQLITE_ASYNC_PREFIX = "sqlite+aiosqlite://"
DEFAULT_REDIS_URL = "redis://localhost:6379/0"
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_SESSION_COOKIE_NAME = "mediashelf-session"
DEFAULT_SESSION_MAX_AGE_SECONDS = 60 * 60 * 24 * 7
DEFAULT_TMDB_BASE_URL = "https://api.themoviedb.org/3"
DEFAULT_TMDB_IMAGE_BASE_URL = "https://image.tmdb.org/t/p/w500"
DEFAULT_CATALOG_CACHE_TTL_SECONDS = 3600
INSECURE_DEV_SESSION_SECRET = "mediashelf-dev-secret"


def _normalize_origin(origin: str) -> str:
    """Return the origin stripped of whitespace and trailing slashes."""

    return origin.strip().rstrip("/")


def normalize_database_url(url: str) -> str:
    """Coerce ``url`` into an async SQLAlchemy URL or raise ``RuntimeError``.

    PostgreSQL URLs supplied in sync format are upgraded to the psycopg async
    driver. SQLite is accepted only through the ``aiosqlite`` driver so local
    development can run without a database server.
    """

    normalized = url.strip()
    if not normalized:
        raise RuntimeError(
            "DATABASE_URL is set but empty. Provide a PostgreSQL or sqlite+aiosqlite URL."
        )

    for prefix in POSTGRES_SYNC_PREFIXES:
        if normalized.startswith(prefix):
            return normalized.replace(prefix, POSTGRES_ASYNC_PREFIX, 1)

    if normalized.startswith((POSTGRES_ASYNC_PREFIX, SQLITE_ASYNC_PREFIX)):
        return normalized

    raise RuntimeError(
        "DATABASE_URL must use the PostgreSQL scheme or sqlite+aiosqlite, "
        f"received: {normalized.split('://', 1)[0]}://..."
    )


class AppSettings(BaseSettings):
    """Typed configuration surface built on top of ``pydantic-settings``.

    Only ``DATABASE_URL`` is mandatory; the to-watch store cannot operate
    without it and :attr:`resolved_database_url` raises when it is missing.
    Everything else falls back to development-friendly defaults and is
    reported through :meth:`optional_config_warnings`.
    """

    _explicit_redis_url: bool = PrivateAttr(default=False)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    def __init__(self, **values: object) -> None:
        """Remember whether Redis was configured explicitly."""

        super().__init__(**values)
        # Environment-sourced values are passed through ``__init__`` by
        # pydantic-settings, so they appear in ``model_fields_set`` too.
        self._explicit_redis_url = "redis_url" in self.model_fields_set

    environment: str = Field(
        default="development",
        alias="ENVIRONMENT",
        description="Deployment environment name; 'production' enables secure cookies.",
    )
    database_url: str | None = Field(
        default=None,
        alias="DATABASE_URL",
        description=(
            "SQLAlchemy URL for the to-watch store. postgres:// and postgresql://"
            " are coerced into the async psycopg driver string at runtime."
        ),
    )
    redis_url: str = Field(
        default=DEFAULT_REDIS_URL,
        alias="REDIS_URL",
        description="Redis connection string used to cache catalog responses.",
    )
    session_secret: str = Field(
        default=INSECURE_DEV_SESSION_SECRET,
        alias="SESSION_SECRET",
        description="HMAC key used to sign and verify session cookies.",
    )
    session_cookie_name: str = Field(
        default=DEFAULT_SESSION_COOKIE_NAME,
        alias="SESSION_COOKIE_NAME",
    )
    session_max_age_seconds: int = Field(
        default=DEFAULT_SESSION_MAX_AGE_SECONDS,
        alias="SESSION_MAX_AGE_SECONDS",
        gt=0,
    )
    session_bootstrap_enabled: bool = Field(
        default=False,
        alias="SESSION_BOOTSTRAP_ENABLED",
        description=(
            "Expose POST /auth/session so a trusted front end can exchange an"
            " identity-provider login for a session cookie."
        ),
    )
    tmdb_api_key: str | None = Field(default=None, alias="TMDB_API_KEY")
    tmdb_base_url: str = Field(default=DEFAULT_TMDB_BASE_URL, alias="TMDB_BASE_URL")
    tmdb_image_base_url: str = Field(
        default=DEFAULT_TMDB_IMAGE_BASE_URL, alias="TMDB_IMAGE_BASE_URL"
    )
    catalog_cache_ttl_seconds: int = Field(
        default=DEFAULT_CATALOG_CACHE_TTL_SECONDS,
        alias="CATALOG_CACHE_TTL_SECONDS",
        gt=0,
    )
    cors_allow_origins_raw: str | None = Field(
        default=None,
        alias="CORS_ALLOW_ORIGINS",
        description="Comma-separated list of additional CORS origins.",
    )
    log_level: str = Field(
        default=DEFAULT_LOG_LEVEL,
        alias="LOG_LEVEL",
        description="Root logging level (e.g. INFO, DEBUG, WARNING).",
    )

    @property
    def resolved_database_url(self) -> str:
        """Return the async-compatible database URL or raise when unset."""

        if self.database_url is None:
            raise RuntimeError(
                "DATABASE_URL is not set. Configure the to-watch store before starting the API."
            )
        return normalize_database_url(self.database_url)

    @property
    def database_type(self) -> str:
        """Return ``sqlite`` or ``postgresql`` for the configured store."""

        if self.resolved_database_url.startswith(SQLITE_ASYNC_PREFIX):
            return "sqlite"
        return "postgresql"

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() == "production"

    @property
    def cors_allow_origins(self) -> list[str]:
        """Return normalised CORS origins supplied via environment variables."""

        if not self.cors_allow_origins_raw:
            return []

        origins = [
            _normalize_origin(origin)
            for origin in self.cors_allow_origins_raw.split(",")
            if origin.strip()
        ]
        return [origin for origin in origins if origin]

    @property
    def log_level_numeric(self) -> int:
        """Translate ``log_level`` into the numeric constant expected by logging."""

        candidate = logging.getLevelName(self.log_level.upper())
        if isinstance(candidate, int):
            return candidate
        return logging.INFO

    def optional_config_warnings(self) -> list[str]:
        """Return human-readable warnings for unset optional configuration."""

        warnings: list[str] = []

        if not self._explicit_redis_url:
            warnings.append(
                "REDIS_URL is not set - catalog responses will use the in-process cache"
            )

        if not self.tmdb_api_key:
            warnings.append(
                "TMDB_API_KEY is not set - catalog endpoints will return empty results"
            )

        if self.session_secret == INSECURE_DEV_SESSION_SECRET:
            warnings.append(
                "SESSION_SECRET is not set - session cookies are signed with a development key"
            )

        if not self.cors_allow_origins:
            warnings.append(
                "CORS_ALLOW_ORIGINS is not set - using default localhost origins only"
            )

        return warnings


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Return a cached instance of :class:`AppSettings`."""

    return AppSettings()


__all__ = [
    "AppSettings",
    "DEFAULT_CATALOG_CACHE_TTL_SECONDS",
    "DEFAULT_LOG_LEVEL",
    "DEFAULT_REDIS_URL",
    "DEFAULT_SESSION_COOKIE_NAME",
    "DEFAULT_SESSION_MAX_AGE_SECONDS",
    "DEFAULT_TMDB_BASE_URL",
    "DEFAULT_TMDB_IMAGE_BASE_URL",
    "INSECURE_DEV_SESSION_SECRET",
    "POSTGRES_ASYNC_PREFIX",
    "POSTGRES_SYNC_PREFIXES",
    "SQLITE_ASYNC_PREFIX",
    "get_settings",
    "normalize_database_url",
]
