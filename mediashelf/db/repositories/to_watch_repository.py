"""Persistence for the per-user to-watch list.

Uniqueness of ``(user_id, media_id)`` is enforced by a conditional insert
(``INSERT ... ON CONFLICT DO NOTHING``) rather than a read-then-write check,
so concurrent adds for the same key resolve inside the database: exactly one
row lands and every other writer observes a zero row count.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from mediashelf.db.models import ToWatchItemRecord, utcnow
from mediashelf.errors import ToWatchConflictError
from mediashelf.schemas.to_watch import NewToWatchItem, ToWatchItem

logger = logging.getLogger(__name__)

_CONFLICT_KEYS = ("user_id", "media_id")


def _record_to_item(record: ToWatchItemRecord) -> ToWatchItem:
    return ToWatchItem(
        user_id=record.user_id,
        media_id=record.media_id,
        type=record.type,
        title=record.title,
        poster=record.poster,
        year=record.year,
        tmdb_id=record.tmdb_id,
        created_at=record.created_at,
    )


class ToWatchRepository:
    """SQLAlchemy-backed store for :class:`ToWatchItemRecord` rows."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    def _insert(self):
        dialect = self._session.get_bind().dialect.name
        if dialect == "postgresql":
            return pg_insert(ToWatchItemRecord)
        if dialect == "sqlite":
            return sqlite_insert(ToWatchItemRecord)
        raise RuntimeError(f"Unsupported database dialect for to-watch store: {dialect}")

    async def add(self, item: NewToWatchItem) -> ToWatchItem:
        """Insert ``item`` unless the user already saved the same media.

        Raises :class:`ToWatchConflictError` when the key exists.
        """

        created_at = item.created_at or utcnow()
        values = {
            "user_id": item.user_id,
            "media_id": item.media_id,
            "type": item.type.value,
            "title": item.title,
            "poster": item.poster,
            "year": item.year,
            "tmdb_id": item.tmdb_id,
            "created_at": created_at,
        }
        stmt = self._insert().values(**values).on_conflict_do_nothing(
            index_elements=list(_CONFLICT_KEYS)
        )
        result = await self._session.execute(stmt)
        if not result.rowcount:
            logger.info(
                "Conditional insert skipped for user %s media %s (already saved)",
                item.user_id,
                item.media_id,
            )
            raise ToWatchConflictError()

        return ToWatchItem(
            user_id=item.user_id,
            media_id=item.media_id,
            type=item.type,
            title=item.title,
            poster=item.poster,
            year=item.year,
            tmdb_id=item.tmdb_id,
            created_at=created_at,
        )

    async def list(self, user_id: str) -> Sequence[ToWatchItem]:
        """Return every item saved by ``user_id``, oldest first."""

        query = (
            select(ToWatchItemRecord)
            .where(ToWatchItemRecord.user_id == user_id)
            .order_by(ToWatchItemRecord.created_at, ToWatchItemRecord.media_id)
        )
        result = await self._session.execute(query)
        return [_record_to_item(record) for record in result.scalars().all()]

    async def remove(self, user_id: str, media_id: str) -> None:
        """Delete the item if present. Deleting a missing item is not an error."""

        stmt = delete(ToWatchItemRecord).where(
            ToWatchItemRecord.user_id == user_id,
            ToWatchItemRecord.media_id == media_id,
        )
        await self._session.execute(stmt)

    async def commit(self) -> None:
        """Make pending writes durable."""

        await self._session.commit()


__all__ = ["ToWatchRepository"]
