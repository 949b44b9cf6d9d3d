"""Business logic behind the ``/to-watch-items`` endpoints.

The service receives the caller's ``user_id`` explicitly from the route layer,
which resolved it from the session. Nothing below this module reads request
or cookie state, so every call can be exercised with plain arguments.

Repository failures other than a duplicate key are logged here and re-raised
as :class:`DependencyFailureError` with a caller-safe message.

Writes are committed here, before the route answers, so a failed commit is
reported to the caller instead of surfacing after the response was sent.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Protocol

from fastapi import Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from mediashelf.db.connection import get_db
from mediashelf.db.repositories import ToWatchRepository
from mediashelf.errors import DependencyFailureError
from mediashelf.schemas.to_watch import (
    NewToWatchItem,
    ToWatchEntry,
    ToWatchItem,
    ToWatchListResponse,
)

logger = logging.getLogger(__name__)


class ToWatchRepositoryProtocol(Protocol):
    async def add(self, item: NewToWatchItem) -> ToWatchItem:
        ...

    async def list(self, user_id: str) -> Sequence[ToWatchItem]:
        ...

    async def remove(self, user_id: str, media_id: str) -> None:
        ...

    async def commit(self) -> None:
        ...


class ToWatchService:
    """Coordinates the repository on behalf of an already-authorized user."""

    def __init__(self, repository: ToWatchRepositoryProtocol) -> None:
        self._repository = repository

    async def list_items(self, *, user_id: str) -> ToWatchListResponse:
        try:
            items = await self._repository.list(user_id)
        except SQLAlchemyError as exc:
            logger.exception("Error listing to-watch items for user %s", user_id)
            raise DependencyFailureError("Failed to load list") from exc
        return ToWatchListResponse(items=list(items))

    async def add_item(self, *, user_id: str, entry: ToWatchEntry) -> ToWatchItem:
        """Persist ``entry`` for ``user_id``.

        ``ToWatchConflictError`` from the repository propagates unchanged so
        the route can answer 409.
        """

        new_item = NewToWatchItem(
            user_id=user_id,
            media_id=entry.media_id,
            type=entry.type,
            title=entry.title,
            poster=entry.poster,
            year=entry.year,
            tmdb_id=entry.tmdb_id,
        )
        try:
            stored = await self._repository.add(new_item)
            await self._repository.commit()
        except SQLAlchemyError as exc:
            logger.exception("Error adding to-watch item %s", entry.media_id)
            raise DependencyFailureError("Failed to save item") from exc
        return stored

    async def remove_item(self, *, user_id: str, media_id: str) -> None:
        try:
            await self._repository.remove(user_id, media_id)
            await self._repository.commit()
        except SQLAlchemyError as exc:
            logger.exception("Error removing to-watch item %s", media_id)
            raise DependencyFailureError("Failed to remove item") from exc


async def get_to_watch_service(
    session: AsyncSession = Depends(get_db),
) -> ToWatchService:
    """FastAPI dependency that wires the service to a request-scoped session."""

    return ToWatchService(ToWatchRepository(session))
