"""Client-side copy of the to-watch list with optimistic add and remove.

Every mutation runs in two phases. The tentative change (list edit plus
``pending`` mark) is applied synchronously before the first ``await``, so a
caller that schedules :meth:`ToWatchSynchronizer.toggle` as a task sees the new
state immediately. The HTTP call then either commits (nothing left to do) or
fails and the tentative change is rolled back.

The only concurrency guard is ``pending``: a toggle for a ``mediaId`` that is
already in flight is ignored.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Literal

import httpx

from mediashelf.schemas.to_watch import ToWatchEntry

logger = logging.getLogger(__name__)

LOAD_FAILED_MESSAGE = "Failed to load list"
SAVE_FAILED_MESSAGE = "Failed to save item"
REMOVE_FAILED_MESSAGE = "Failed to remove item"


@dataclass(frozen=True)
class MutationResult:
    """Outcome of one optimistic add or remove."""

    action: Literal["add", "remove"]
    media_id: str
    committed: bool
    status_code: int | None = None


class ToWatchSynchronizer:
    """Keeps a local list in step with the ``/to-watch-items`` endpoint."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        initial_items: Iterable[ToWatchEntry] | None = None,
        endpoint: str = "/to-watch-items",
    ) -> None:
        self._http = http_client
        self._endpoint = endpoint
        self.items: list[ToWatchEntry] = list(initial_items or [])
        self.pending: set[str] = set()
        self.error: str | None = None
        self.loading = True
        self.unauthenticated = False

    @property
    def pending_ids(self) -> list[str]:
        return sorted(self.pending)

    def is_saved(self, media_id: str) -> bool:
        return any(item.media_id == media_id for item in self.items)

    async def initialize(self) -> None:
        """Load the list unless the synchronizer was seeded with items."""

        if self.items:
            self.loading = False
            return
        await self.refresh()

    async def refresh(self) -> None:
        self.loading = True
        try:
            response = await self._http.get(self._endpoint)
            if response.status_code == httpx.codes.UNAUTHORIZED:
                self.items = []
                self.unauthenticated = True
                self.error = None
                return
            response.raise_for_status()
            payload = response.json()
            self.items = [
                ToWatchEntry.model_validate(raw) for raw in payload.get("items") or []
            ]
            self.unauthenticated = False
            self.error = None
        except (httpx.HTTPError, ValueError, AttributeError) as exc:
            logger.warning("Loading the to-watch list failed: %s", exc)
            self.error = LOAD_FAILED_MESSAGE
        finally:
            self.loading = False

    async def toggle(self, item: ToWatchEntry) -> MutationResult | None:
        """Add ``item`` when absent, remove it when saved.

        Returns ``None`` without side effects if ``item`` is already pending.
        """

        if item.media_id in self.pending:
            return None
        if self.is_saved(item.media_id):
            return await self._remove(item.media_id)
        return await self._add(item)

    async def _add(self, item: ToWatchEntry) -> MutationResult:
        media_id = item.media_id
        self.pending.add(media_id)
        if not self.is_saved(media_id):
            self.items = [*self.items, item]

        status_code: int | None = None
        committed = False
        try:
            response = await self._http.post(
                self._endpoint,
                json=item.model_dump(by_alias=True, mode="json", exclude={"created_at"}),
            )
            status_code = response.status_code
            response.raise_for_status()
            committed = True
        except httpx.HTTPError as exc:
            logger.warning("Saving %s failed: %s", media_id, exc)
        finally:
            # 409 rolls back like any other failure, as does cancellation.
            if not committed:
                self.items = [i for i in self.items if i.media_id != media_id]
                self.error = SAVE_FAILED_MESSAGE
            self.pending.discard(media_id)

        return MutationResult("add", media_id, committed=committed, status_code=status_code)

    async def _remove(self, media_id: str) -> MutationResult:
        snapshot = list(self.items)
        self.pending.add(media_id)
        self.items = [i for i in self.items if i.media_id != media_id]

        status_code: int | None = None
        committed = False
        try:
            response = await self._http.request(
                "DELETE", self._endpoint, json={"mediaId": media_id}
            )
            status_code = response.status_code
            response.raise_for_status()
            committed = True
        except httpx.HTTPError as exc:
            logger.warning("Removing %s failed: %s", media_id, exc)
        finally:
            if not committed:
                self.items = snapshot
                self.error = REMOVE_FAILED_MESSAGE
            self.pending.discard(media_id)

        return MutationResult(
            "remove", media_id, committed=committed, status_code=status_code
        )


__all__ = [
    "LOAD_FAILED_MESSAGE",
    "MutationResult",
    "REMOVE_FAILED_MESSAGE",
    "SAVE_FAILED_MESSAGE",
    "ToWatchSynchronizer",
]
