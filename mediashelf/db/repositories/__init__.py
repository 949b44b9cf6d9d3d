"""Repository package for the database access layer."""

from mediashelf.db.repositories.to_watch_repository import ToWatchRepository

__all__ = ["ToWatchRepository"]
