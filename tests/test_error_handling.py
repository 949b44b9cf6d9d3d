"""Tests for the error response builders and the handlers in ``mediashelf.main``."""

from __future__ import annotations

import json
from datetime import UTC, datetime

import pytest
from fastapi import Request, status
from sqlalchemy.exc import OperationalError
from starlette.datastructures import Headers

import mediashelf.main as mediashelf_main
from mediashelf.errors import (
    AppError,
    DependencyFailureError,
    PayloadValidationError,
    ToWatchConflictError,
    UnauthorizedError,
)
from mediashelf.schemas.error import ErrorType, ValidationErrorDetail
from mediashelf.utils import error_responses
from mediashelf.utils.error_responses import (
    build_app_error_body,
    build_error_response,
    build_validation_error_response,
)
from mediashelf.utils.request_context import clear_request_id, set_request_id


def _build_request(path: str = "/resource") -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": path,
        "headers": Headers().raw,
    }
    return Request(scope)


def _freeze_timestamp(monkeypatch: pytest.MonkeyPatch, fixed: datetime) -> None:
    monkeypatch.setattr(error_responses, "_current_timestamp", lambda: fixed)


def test_validation_error_response_includes_context_metadata(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    fixed_timestamp = datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC)
    _freeze_timestamp(monkeypatch, fixed_timestamp)

    token = set_request_id("req-123")
    try:
        errors = [ValidationErrorDetail(field="path.kind", message="Invalid", value="x")]
        response = build_validation_error_response(
            message="Request validation failed",
            detail="1 validation error(s)",
            status_code=422,
            path="/tmdb/x/1/recommendations",
            errors=errors,
        )
    finally:
        clear_request_id(token)

    assert response.request_id == "req-123"
    assert response.timestamp == fixed_timestamp
    assert response.errors == errors


def test_error_response_prefers_explicit_request_id() -> None:
    clear_request_id()

    response = build_error_response(
        error_type=ErrorType.INTERNAL_ERROR,
        message="Something went wrong",
        detail="Unexpected condition",
        status_code=500,
        path="/health",
        request_id="override-id",
    )

    assert response.request_id == "override-id"
    assert response.retry_after is None


@pytest.mark.parametrize(
    ("error", "status_code", "message"),
    [
        (UnauthorizedError(), 401, "Unauthorized"),
        (PayloadValidationError("mediaId is required"), 400, "mediaId is required"),
        (ToWatchConflictError(), 409, "Item already saved"),
        (DependencyFailureError("Failed to save item"), 500, "Failed to save item"),
    ],
)
def test_app_errors_carry_status_and_message(
    error: AppError, status_code: int, message: str
) -> None:
    assert error.status_code == status_code
    assert error.message == message
    assert build_app_error_body(error.message) == {"error": message}


@pytest.mark.asyncio
async def test_app_error_handler_renders_compact_body() -> None:
    response = await mediashelf_main.app_error_handler(
        _build_request("/to-watch-items"), ToWatchConflictError()
    )

    assert response.status_code == status.HTTP_409_CONFLICT
    assert json.loads(response.body) == {"error": "Item already saved"}


@pytest.mark.asyncio
async def test_database_connection_handler_returns_503() -> None:
    token = set_request_id("req-db")
    try:
        response = await mediashelf_main.database_connection_exception_handler(
            _build_request("/to-watch-items"),
            OperationalError("SELECT 1", {}, Exception("down")),
        )
    finally:
        clear_request_id(token)

    body = json.loads(response.body)
    assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
    assert body["error_type"] == "database_error"
    assert body["request_id"] == "req-db"
    assert body["retry_after"] == 5


@pytest.mark.asyncio
async def test_generic_handler_sets_request_id_header() -> None:
    token = set_request_id("req-boom")
    try:
        response = await mediashelf_main.generic_exception_handler(
            _build_request("/tmdb"), KeyError("boom")
        )
    finally:
        clear_request_id(token)

    body = json.loads(response.body)
    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert body["error_type"] == "internal_error"
    assert body["detail"] == "An unexpected error occurred: KeyError"
    assert response.headers["X-Request-ID"] == "req-boom"
