"""SQLAlchemy ORM models for the to-watch store.

The store is a single table keyed by ``(user_id, media_id)``. Rows are written
once and deleted by their owner; there is no update path, so the model carries
no ``updated_at`` column.
"""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    """Return current UTC datetime."""
    return datetime.now(UTC)


class Base(DeclarativeBase):
    pass


class ToWatchItemRecord(Base):
    """A title a user has saved to watch later."""

    __tablename__ = "to_watch_items"

    user_id: Mapped[str] = mapped_column(
        String(128),
        primary_key=True,
        doc=(
            "Opaque identifier taken from the session. Stored as a string so"
            " identity-provider subject ids can be forwarded untouched."
        ),
    )
    media_id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        doc='Composite "<type>:<tmdbId>" key distinguishing movies from shows.',
    )
    type: Mapped[str] = mapped_column(String(8), nullable=False)
    title: Mapped[str] = mapped_column(String(512), nullable=False)
    poster: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    tmdb_id: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )


__all__ = ["Base", "ToWatchItemRecord", "utcnow"]
