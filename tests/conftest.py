"""Shared fixtures: in-memory SQLite sessions, an in-memory repository double,
signed session cookies and an ASGI client wired to the FastAPI app."""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from tests import _ensure_repo_on_path

_ensure_repo_on_path()

from mediashelf.auth.session import SessionAccessor, get_session_accessor  # noqa: E402
from mediashelf.db.models import Base, utcnow  # noqa: E402
from mediashelf.errors import ToWatchConflictError  # noqa: E402
from mediashelf.main import app  # noqa: E402
from mediashelf.schemas.to_watch import NewToWatchItem, ToWatchItem  # noqa: E402
from mediashelf.services.to_watch_service import (  # noqa: E402
    ToWatchService,
    get_to_watch_service,
)
from mediashelf.settings import get_settings  # noqa: E402

TEST_SESSION_SECRET = "test-session-secret"


class InMemoryToWatchRepository:
    """Dictionary-backed stand-in honouring the repository contract."""

    def __init__(self) -> None:
        self.records: dict[tuple[str, str], ToWatchItem] = {}
        self.fail_with: Exception | None = None
        self.commits = 0
        self.fail_commit_with: Exception | None = None

    async def add(self, item: NewToWatchItem) -> ToWatchItem:
        if self.fail_with is not None:
            raise self.fail_with
        key = (item.user_id, item.media_id)
        if key in self.records:
            raise ToWatchConflictError()
        stored = ToWatchItem.model_validate(
            {**item.model_dump(), "created_at": item.created_at or utcnow()}
        )
        self.records[key] = stored
        return stored

    async def list(self, user_id: str) -> Sequence[ToWatchItem]:
        if self.fail_with is not None:
            raise self.fail_with
        return [item for (owner, _), item in self.records.items() if owner == user_id]

    async def remove(self, user_id: str, media_id: str) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.records.pop((user_id, media_id), None)

    async def commit(self) -> None:
        if self.fail_commit_with is not None:
            raise self.fail_commit_with
        self.commits += 1


@pytest_asyncio.fixture
async def session() -> AsyncIterator[AsyncSession]:
    """Provide an in-memory SQLite session for repository tests."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", future=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async_session = async_sessionmaker(engine, expire_on_commit=False)
    async with async_session() as db_session:
        yield db_session
        if db_session.in_transaction():
            await db_session.rollback()
    await engine.dispose()


@pytest.fixture
def session_accessor() -> SessionAccessor:
    return SessionAccessor(secret=TEST_SESSION_SECRET, max_age_seconds=3600)


@pytest.fixture
def repository() -> InMemoryToWatchRepository:
    return InMemoryToWatchRepository()


@pytest.fixture
def auth_headers_for(session_accessor: SessionAccessor):
    """Return a helper producing the ``Cookie`` header for a signed-in user."""

    def _auth_headers_for(user_id: str, username: str = "viewer") -> dict[str, str]:
        token = session_accessor.encode(user_id, username)
        return {"Cookie": f"{get_settings().session_cookie_name}={token}"}

    return _auth_headers_for


@pytest_asyncio.fixture
async def api_client(
    repository: InMemoryToWatchRepository, session_accessor: SessionAccessor
) -> AsyncIterator[httpx.AsyncClient]:
    """ASGI client with the store and session signer overridden."""

    app.dependency_overrides[get_to_watch_service] = lambda: ToWatchService(repository)
    app.dependency_overrides[get_session_accessor] = lambda: session_accessor
    transport = httpx.ASGITransport(app=app)
    try:
        async with httpx.AsyncClient(
            transport=transport, base_url="http://testserver"
        ) as client:
            yield client
    finally:
        app.dependency_overrides.clear()
