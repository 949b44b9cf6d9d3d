"""Schemas describing the caller's server-side session."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ServerSession(BaseModel):
    """Identity resolved from the signed session cookie."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    is_authenticated: bool = False
    user_id: str | None = None
    username: str | None = None


class SessionCreateRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user_id: str | None = Field(None, max_length=128)
    username: str | None = Field(None, max_length=256)


class SessionActionResponse(BaseModel):
    success: bool = True
