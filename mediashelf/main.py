import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DBAPIError, OperationalError

from mediashelf.api import auth, catalog, to_watch
from mediashelf.cache import close_redis
from mediashelf.db.connection import (
    dispose_engine,
    get_database_type,
    get_database_url,
    get_engine,
)
from mediashelf.errors import AppError
from mediashelf.schemas.error import ErrorType, ValidationErrorDetail
from mediashelf.settings import AppSettings, get_settings
from mediashelf.utils.error_responses import (
    build_app_error_body,
    build_error_response,
    build_validation_error_response,
)
from mediashelf.utils.request_context import (
    clear_request_id,
    get_request_id,
    set_request_id,
)

logging.basicConfig(
    level=get_settings().log_level_numeric,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def _validate_environment(active_settings: AppSettings | None = None) -> None:
    """Log a warning block for every optional setting left unset."""
    warnings = (active_settings or get_settings()).optional_config_warnings()
    if warnings:
        logger.warning("=" * 60)
        logger.warning("Environment Configuration Warnings:")
        for warning in warnings:
            logger.warning("  - %s", warning)
        logger.warning("=" * 60)


def _sanitize_database_url(url: str) -> str:
    """Sanitize database URL to hide password in logs."""
    if "://" not in url:
        return url

    scheme, rest = url.split("://", 1)
    if "@" in rest:
        auth_part, host_db = rest.split("@", 1)
        if ":" in auth_part:
            user, _ = auth_part.split(":", 1)
            return f"{scheme}://{user}:***@{host_db}"
        return f"{scheme}://{auth_part}@{host_db}"

    return url


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Validate configuration, warm connections, and release them on shutdown."""
    _validate_environment()

    # Raises RuntimeError when DATABASE_URL is missing so startup aborts.
    db_url = get_database_url()
    db_type = get_database_type()

    logger.info("=" * 60)
    logger.info("MediaShelf API - Database Preflight Check")
    logger.info("=" * 60)
    logger.info("Database Type: %s", db_type.upper())
    logger.info("Database URL: %s", _sanitize_database_url(db_url))
    if db_type == "sqlite":
        logger.info("SQLite mode - run scripts/setup_local_db.py to create tables")
    logger.info("=" * 60)

    from mediashelf.warmup import warmup_all

    await warmup_all(resolve_engine=get_engine)

    yield

    logger.info("Shutting down MediaShelf API")
    await close_redis()
    await dispose_engine()


app = FastAPI(
    title="MediaShelf API",
    version="0.1.0",
    description="To-watch list and TMDB catalog API.",
    lifespan=lifespan,
    redirect_slashes=False,
)


def _default_origins() -> list[str]:
    ports = list(range(3000, 3011)) + [5173]
    origins = []
    for host in ("localhost", "127.0.0.1"):
        origins.extend([f"http://{host}:{port}" for port in ports])
    return origins


def _combine_origins(*origin_groups: list[str]) -> list[str]:
    """Merge origins preserving order and removing duplicates."""
    seen: set[str] = set()
    combined: list[str] = []
    for group in origin_groups:
        for origin in group:
            normalized = origin.rstrip("/")
            if normalized and normalized not in seen:
                seen.add(normalized)
                combined.append(normalized)
    return combined


allow_origins = _combine_origins(_default_origins(), get_settings().cors_allow_origins)
logger.info("Configured CORS allow_origins: %s", ", ".join(allow_origins))

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    # Session cookies must travel with cross-origin fetches from the front end.
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _request_id_for(request: Request) -> str:
    return getattr(request.state, "request_id", None) or get_request_id()


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Add unique request ID to each request for tracking."""
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id
    token = set_request_id(request_id)
    try:
        response = await call_next(request)
    finally:
        clear_request_id(token)
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """Render domain errors as ``{"error": message}``."""
    logger.warning(
        "%s for request %s to %s: %s",
        type(exc).__name__,
        _request_id_for(request),
        request.url.path,
        exc.message,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=build_app_error_body(exc.message),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle FastAPI request validation errors."""
    errors = [
        ValidationErrorDetail(
            field=".".join(str(loc) for loc in error["loc"]),
            message=error["msg"],
            value=error.get("input"),
        )
        for error in exc.errors()
    ]

    logger.warning(
        "Validation error for request %s to %s: %s errors",
        _request_id_for(request),
        request.url.path,
        len(errors),
    )

    error_response = build_validation_error_response(
        message="Request validation failed",
        detail=f"{len(errors)} validation error(s)",
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        path=str(request.url.path),
        errors=errors,
        request_id=_request_id_for(request),
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_response.model_dump(mode="json"),
    )


@app.exception_handler(OperationalError)
@app.exception_handler(DBAPIError)
async def database_connection_exception_handler(request: Request, exc: Exception):
    """Handle database connection errors."""
    logger.error(
        "Database connection error for request %s to %s: %s",
        _request_id_for(request),
        request.url.path,
        str(exc),
    )

    error_response = build_error_response(
        error_type=ErrorType.DATABASE_ERROR,
        message="Database connection failed",
        detail="Unable to connect to the database. Please try again later.",
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        path=str(request.url.path),
        retry_after=5,
        request_id=_request_id_for(request),
    )

    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=error_response.model_dump(mode="json"),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """Handle all other unhandled exceptions."""
    request_id = _request_id_for(request)
    logger.exception(
        "Unhandled exception for request %s to %s: %s",
        request_id,
        request.url.path,
        type(exc).__name__,
    )

    error_response = build_error_response(
        error_type=ErrorType.INTERNAL_ERROR,
        message="Internal server error",
        detail=f"An unexpected error occurred: {type(exc).__name__}",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        path=str(request.url.path),
        request_id=request_id,
    )

    # This handler runs outside the request-id middleware, so set the header here.
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_response.model_dump(mode="json"),
        headers={REQUEST_ID_HEADER: request_id} if request_id else None,
    )


@app.get("/health", tags=["system"])
async def healthcheck() -> dict[str, str]:
    """Simple health endpoint for readiness checks."""
    return {"status": "ok"}


app.include_router(to_watch.router, prefix="/to-watch-items", tags=["to-watch"])
app.include_router(catalog.router, prefix="/tmdb", tags=["catalog"])
app.include_router(auth.router, prefix="/auth", tags=["auth"])
