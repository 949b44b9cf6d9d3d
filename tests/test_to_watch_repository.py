"""Integration tests for the SQLAlchemy to-watch repository on in-memory SQLite."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from mediashelf.db.connection import get_database_type, get_database_url
from mediashelf.db.repositories import ToWatchRepository
from mediashelf.errors import ToWatchConflictError
from mediashelf.schemas.to_watch import MediaType, NewToWatchItem
from mediashelf.settings import AppSettings


def _new_item(user_id: str = "user-1", media_id: str = "movie:603", **overrides) -> NewToWatchItem:
    values = {
        "user_id": user_id,
        "media_id": media_id,
        "type": MediaType.MOVIE,
        "title": "The Matrix",
        "poster": "https://image.tmdb.org/t/p/w500/matrix.jpg",
        "year": 1999,
        "tmdb_id": 603,
    }
    values.update(overrides)
    return NewToWatchItem(**values)


@pytest.mark.asyncio
async def test_add_then_list_returns_item_with_created_at(session: AsyncSession) -> None:
    repo = ToWatchRepository(session)

    stored = await repo.add(_new_item())
    items = await repo.list("user-1")

    assert [item.media_id for item in items] == ["movie:603"]
    assert items[0].title == "The Matrix"
    assert items[0].type is MediaType.MOVIE
    assert items[0].created_at.tzinfo is not None
    assert stored.created_at is not None


@pytest.mark.asyncio
async def test_add_keeps_supplied_created_at(session: AsyncSession) -> None:
    repo = ToWatchRepository(session)
    created = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)

    await repo.add(_new_item(created_at=created))
    (item,) = await repo.list("user-1")

    assert item.created_at == created


@pytest.mark.asyncio
async def test_duplicate_add_raises_conflict_and_keeps_original(session: AsyncSession) -> None:
    repo = ToWatchRepository(session)
    await repo.add(_new_item())

    with pytest.raises(ToWatchConflictError):
        await repo.add(_new_item(title="Renamed"))

    items = await repo.list("user-1")
    assert len(items) == 1
    assert items[0].title == "The Matrix"


@pytest.mark.asyncio
async def test_same_media_for_different_users_does_not_conflict(
    session: AsyncSession,
) -> None:
    repo = ToWatchRepository(session)

    await repo.add(_new_item(user_id="user-1"))
    await repo.add(_new_item(user_id="user-2"))

    assert len(await repo.list("user-1")) == 1
    assert len(await repo.list("user-2")) == 1


@pytest.mark.asyncio
async def test_list_is_scoped_to_user_and_ordered_oldest_first(
    session: AsyncSession,
) -> None:
    repo = ToWatchRepository(session)
    await repo.add(
        _new_item(
            media_id="tv:1399",
            type=MediaType.TV,
            title="Game of Thrones",
            tmdb_id=1399,
            year=2011,
            created_at=datetime(2024, 2, 1, tzinfo=UTC),
        )
    )
    await repo.add(_new_item(created_at=datetime(2024, 1, 1, tzinfo=UTC)))
    await repo.add(_new_item(user_id="someone-else", media_id="movie:1"))

    items = await repo.list("user-1")

    assert [item.media_id for item in items] == ["movie:603", "tv:1399"]
    assert await repo.list("nobody") == []


@pytest.mark.asyncio
async def test_remove_is_idempotent(session: AsyncSession) -> None:
    repo = ToWatchRepository(session)
    await repo.add(_new_item())

    await repo.remove("user-1", "movie:603")
    await repo.remove("user-1", "movie:603")
    await repo.remove("user-1", "movie:does-not-exist")

    assert await repo.list("user-1") == []


@pytest.mark.asyncio
async def test_null_poster_round_trips(session: AsyncSession) -> None:
    repo = ToWatchRepository(session)

    await repo.add(_new_item(poster=None))
    (item,) = await repo.list("user-1")

    assert item.poster is None


def test_missing_database_url_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("DATABASE_URL", raising=False)

    with pytest.raises(RuntimeError, match="DATABASE_URL is not set"):
        get_database_url()


def test_postgres_url_is_coerced_to_async_driver(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "postgres://user:pw@db:5432/shelf")

    assert get_database_url() == "postgresql+psycopg://user:pw@db:5432/shelf"


@pytest.mark.parametrize(
    "url",
    [
        "postgresql://user:pw@db:5432/shelf",
        "postgresql+psycopg://user:pw@db:5432/shelf",
        "sqlite+aiosqlite:///./shelf.db",
    ],
)
def test_engine_url_matches_settings(monkeypatch: pytest.MonkeyPatch, url: str) -> None:
    monkeypatch.setenv("DATABASE_URL", url)
    configured = AppSettings()

    assert get_database_url() == configured.resolved_database_url
    assert get_database_type() == configured.database_type


@pytest.mark.parametrize("url", ["", "mysql://root@localhost/app"])
def test_engine_rejects_malformed_url_like_settings(
    monkeypatch: pytest.MonkeyPatch, url: str
) -> None:
    monkeypatch.setenv("DATABASE_URL", url)

    with pytest.raises(RuntimeError, match="DATABASE_URL"):
        get_database_url()
