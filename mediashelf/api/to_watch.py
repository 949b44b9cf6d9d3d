"""FastAPI router exposing the caller's to-watch list."""

from __future__ import annotations

import json
from typing import Any

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse

from mediashelf.auth.session import require_user_id
from mediashelf.errors import PayloadValidationError
from mediashelf.schemas.to_watch import (
    ToWatchCreatedResponse,
    ToWatchListResponse,
    parse_create_payload,
    parse_delete_payload,
)
from mediashelf.services.to_watch_service import ToWatchService, get_to_watch_service

router = APIRouter()


async def _read_json_body(request: Request) -> Any:
    raw = await request.body()
    if not raw:
        return None
    try:
        return json.loads(raw)
    except (ValueError, UnicodeDecodeError) as exc:
        raise PayloadValidationError("Request body must be valid JSON") from exc


@router.get("", response_model=ToWatchListResponse)
async def list_to_watch_items(
    user_id: str = Depends(require_user_id),
    service: ToWatchService = Depends(get_to_watch_service),
) -> ToWatchListResponse:
    """Return every saved title for the signed-in user."""

    return await service.list_items(user_id=user_id)


@router.post("", status_code=status.HTTP_201_CREATED)
async def add_to_watch_item(
    request: Request,
    user_id: str = Depends(require_user_id),
    service: ToWatchService = Depends(get_to_watch_service),
) -> JSONResponse:
    """Save a title; answers 409 when it is already on the list."""

    entry = parse_create_payload(await _read_json_body(request))
    await service.add_item(user_id=user_id, entry=entry)
    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content=ToWatchCreatedResponse().model_dump(),
    )


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def remove_to_watch_item(
    request: Request,
    user_id: str = Depends(require_user_id),
    service: ToWatchService = Depends(get_to_watch_service),
) -> Response:
    """Remove a title. Removing an absent title still answers 204."""

    media_id = parse_delete_payload(await _read_json_body(request))
    await service.remove_item(user_id=user_id, media_id=media_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
