"""Session cookie endpoints used by the front end after sign-in and sign-out."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, Response

from mediashelf.auth.session import (
    SessionAccessor,
    clear_session_cookie,
    get_server_session,
    get_session_accessor,
    set_session_cookie,
)
from mediashelf.errors import FeatureDisabledError, PayloadValidationError
from mediashelf.schemas.session import (
    ServerSession,
    SessionActionResponse,
    SessionCreateRequest,
)
from mediashelf.settings import get_settings

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/session", response_model=ServerSession)
async def read_session(
    session: ServerSession = Depends(get_server_session),
) -> ServerSession:
    return session


@router.post("/session", response_model=SessionActionResponse)
async def create_session(
    request: Request,
    response: Response,
    accessor: SessionAccessor = Depends(get_session_accessor),
) -> SessionActionResponse:
    """Issue a signed session cookie for an identity verified upstream.

    Answers 404 unless ``SESSION_BOOTSTRAP_ENABLED`` is true.
    """

    settings = get_settings()
    if not settings.session_bootstrap_enabled:
        raise FeatureDisabledError()

    try:
        payload = SessionCreateRequest.model_validate(await request.json())
    except ValueError as exc:
        # pydantic's ValidationError and json's JSONDecodeError are both ValueErrors.
        raise PayloadValidationError("userId and username are required") from exc

    if not payload.user_id or not payload.username:
        raise PayloadValidationError("userId and username are required")

    set_session_cookie(
        response, accessor.encode(payload.user_id, payload.username), settings
    )
    logger.info("Issued session cookie for user %s", payload.user_id)
    return SessionActionResponse()


@router.post("/signout", response_model=SessionActionResponse)
async def sign_out(response: Response) -> SessionActionResponse:
    clear_session_cookie(response)
    return SessionActionResponse()
