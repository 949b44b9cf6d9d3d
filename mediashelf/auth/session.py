"""Signed session cookies and the FastAPI dependencies that read them.

A session token is ``<payload>.<signature>`` where ``payload`` is the
base64url-encoded JSON ``{"userId", "username", "iat"}`` and ``signature`` is
the base64url HMAC-SHA256 of the encoded payload keyed by ``SESSION_SECRET``.
Reading never raises: anything missing, tampered, expired or malformed
resolves to an unauthenticated :class:`ServerSession`.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import logging
import time
from collections.abc import Callable

from fastapi import Depends, Request, Response

from mediashelf.errors import UnauthorizedError
from mediashelf.schemas.session import ServerSession
from mediashelf.settings import AppSettings, get_settings

logger = logging.getLogger(__name__)


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _b64decode(value: str) -> bytes:
    padding = "=" * (-len(value) % 4)
    return base64.urlsafe_b64decode(value + padding)


class SessionAccessor:
    """Encode and verify session tokens for a single signing secret."""

    def __init__(
        self,
        *,
        secret: str,
        max_age_seconds: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not secret:
            raise RuntimeError("SESSION_SECRET must not be empty")
        self._secret = secret.encode("utf-8")
        self._max_age = max_age_seconds
        self._clock = clock

    def _sign(self, payload_b64: str) -> str:
        digest = hmac.new(self._secret, payload_b64.encode("utf-8"), hashlib.sha256)
        return _b64encode(digest.digest())

    def encode(self, user_id: str, username: str) -> str:
        payload = {"userId": user_id, "username": username, "iat": int(self._clock())}
        payload_b64 = _b64encode(
            json.dumps(payload, separators=(",", ":")).encode("utf-8")
        )
        return f"{payload_b64}.{self._sign(payload_b64)}"

    def read(self, token: str | None) -> ServerSession:
        if not token:
            return ServerSession()

        payload_b64, _, signature = token.partition(".")
        expected = self._sign(payload_b64).encode("ascii")
        if not signature or not hmac.compare_digest(signature.encode("utf-8"), expected):
            logger.debug("Rejected session cookie with invalid signature")
            return ServerSession()

        try:
            payload = json.loads(_b64decode(payload_b64))
        except (ValueError, UnicodeDecodeError):
            return ServerSession()
        if not isinstance(payload, dict):
            return ServerSession()

        issued_at = payload.get("iat")
        if not isinstance(issued_at, int) or issued_at + self._max_age < self._clock():
            return ServerSession()

        user_id = payload.get("userId")
        if not isinstance(user_id, str) or not user_id:
            return ServerSession()

        username = payload.get("username")
        return ServerSession(
            is_authenticated=True,
            user_id=user_id,
            username=username if isinstance(username, str) else None,
        )


def get_session_accessor() -> SessionAccessor:
    settings = get_settings()
    return SessionAccessor(
        secret=settings.session_secret,
        max_age_seconds=settings.session_max_age_seconds,
    )


def get_server_session(
    request: Request,
    accessor: SessionAccessor = Depends(get_session_accessor),
) -> ServerSession:
    """Resolve the caller's session from the request cookie."""

    token = request.cookies.get(get_settings().session_cookie_name)
    return accessor.read(token)


def require_user_id(session: ServerSession = Depends(get_server_session)) -> str:
    """Return the authenticated user's id or raise :class:`UnauthorizedError`."""

    if not session.is_authenticated or not session.user_id:
        raise UnauthorizedError()
    return session.user_id


def set_session_cookie(
    response: Response, token: str, settings: AppSettings | None = None
) -> None:
    settings = settings or get_settings()
    response.set_cookie(
        settings.session_cookie_name,
        token,
        max_age=settings.session_max_age_seconds,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
    )


def clear_session_cookie(response: Response, settings: AppSettings | None = None) -> None:
    settings = settings or get_settings()
    response.delete_cookie(
        settings.session_cookie_name,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
    )


__all__ = [
    "SessionAccessor",
    "clear_session_cookie",
    "get_server_session",
    "get_session_accessor",
    "require_user_id",
    "set_session_cookie",
]
