"""Pydantic schemas and payload parsing for the to-watch list.

The wire format is camelCase (``mediaId``, ``tmdbId``, ``createdAt``) while the
Python attributes stay snake_case; ``populate_by_name`` lets tests and
internal callers construct models with either spelling.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictInt,
    StrictStr,
    ValidationError,
    field_validator,
)
from pydantic.alias_generators import to_camel

from mediashelf.errors import PayloadValidationError

REQUIRED_CREATE_FIELDS: tuple[str, ...] = (
    "mediaId",
    "type",
    "title",
    "poster",
    "year",
    "tmdbId",
)


class MediaType(str, Enum):
    """Catalog kinds a to-watch entry can reference."""

    MOVIE = "movie"
    TV = "tv"


def build_media_id(media_type: MediaType | str, external_id: int | str) -> str:
    """Return the composite ``"<type>:<externalId>"`` identifier."""

    kind = media_type.value if isinstance(media_type, MediaType) else media_type
    return f"{kind}:{external_id}"


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ToWatchEntry(_CamelModel):
    """Display metadata for a saved title as exchanged with the client.

    Values are copied from the catalog at save time and never refreshed.
    """

    media_id: StrictStr = Field(..., min_length=1, description='Composite "<type>:<id>" key')
    type: MediaType
    title: StrictStr
    poster: StrictStr | None = Field(None, description="Absolute poster URL, if any")
    year: StrictInt
    tmdb_id: StrictInt
    created_at: datetime | None = Field(
        None, description="ISO-8601 timestamp assigned by the server at first write"
    )

    @field_validator("created_at")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        # SQLite drops tzinfo on round-trip; every stored timestamp is UTC.
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value


class NewToWatchItem(ToWatchEntry):
    """Repository input: an entry bound to its owner."""

    user_id: StrictStr = Field(..., min_length=1)


class ToWatchItem(ToWatchEntry):
    """Persisted record returned by the repository and the list endpoint."""

    user_id: StrictStr
    created_at: datetime


class ToWatchListResponse(_CamelModel):
    items: list[ToWatchItem] = Field(default_factory=list)


class ToWatchCreatedResponse(BaseModel):
    success: bool = True


def parse_create_payload(body: Any) -> ToWatchEntry:
    """Validate a POST body and return the entry it describes.

    Checks run in a fixed order so the client always sees the most useful
    message first: missing or null fields, then the media type, then the
    remaining field types.
    """

    if not isinstance(body, dict):
        raise PayloadValidationError("Request body must be a JSON object")

    missing = [key for key in REQUIRED_CREATE_FIELDS if body.get(key) is None]
    if missing:
        raise PayloadValidationError(f"Missing fields: {', '.join(missing)}")

    if body["type"] not in (MediaType.MOVIE.value, MediaType.TV.value):
        raise PayloadValidationError('type must be "movie" or "tv"')

    candidate = {key: body[key] for key in REQUIRED_CREATE_FIELDS}
    try:
        return ToWatchEntry.model_validate(candidate)
    except ValidationError as exc:
        invalid = sorted(
            {str(error["loc"][0]) for error in exc.errors() if error.get("loc")}
        )
        raise PayloadValidationError(f"Invalid fields: {', '.join(invalid)}") from exc


def parse_delete_payload(body: Any) -> str:
    """Return the ``mediaId`` named by a DELETE body."""

    media_id = body.get("mediaId") if isinstance(body, dict) else None
    if not media_id or not isinstance(media_id, str):
        raise PayloadValidationError("mediaId is required")
    return media_id


__all__ = [
    "MediaType",
    "NewToWatchItem",
    "REQUIRED_CREATE_FIELDS",
    "ToWatchCreatedResponse",
    "ToWatchEntry",
    "ToWatchItem",
    "ToWatchListResponse",
    "build_media_id",
    "parse_create_payload",
    "parse_delete_payload",
]
