"""TMDB catalog access for the discovery pages.

The catalog is best-effort: a missing API key, an upstream error or a
malformed payload all degrade to empty result lists with a log line, so the
dashboard renders without the affected rail instead of failing the request.
Successful responses are cached for ``CATALOG_CACHE_TTL_SECONDS``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import Any

import httpx
from fastapi import Depends
from pydantic import ValidationError

from mediashelf.cache import CacheClient, catalog_key, get_cache_client
from mediashelf.schemas.catalog import CatalogMovie, CatalogShow, TrendingResponse
from mediashelf.schemas.to_watch import MediaType, ToWatchEntry, build_media_id
from mediashelf.settings import get_settings

logger = logging.getLogger(__name__)

PLACEHOLDER_POSTER = "/placeholder-poster.png"
TRENDING_LIMIT = 10
RECOMMENDATIONS_LIMIT = 10
_REQUEST_TIMEOUT_SECONDS = 10.0


def _parse_year(value: str | None) -> int:
    """Return the year prefix of a TMDB date string, or 0 when unknown."""

    if not value:
        return 0
    try:
        return int(value[:4])
    except ValueError:
        return 0


class CatalogService:
    """Thin async client over the TMDB v3 REST API."""

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient,
        cache: CacheClient,
        api_key: str | None,
        image_base_url: str,
        cache_ttl: int,
    ) -> None:
        self._http = http_client
        self._cache = cache
        self._api_key = api_key
        self._image_base_url = image_base_url.rstrip("/")
        self._cache_ttl = cache_ttl

    @property
    def enabled(self) -> bool:
        return bool(self._api_key)

    def poster_url(self, poster_path: str | None) -> str:
        if not poster_path:
            return PLACEHOLDER_POSTER
        return f"{self._image_base_url}{poster_path}"

    async def popular(self, kind: MediaType) -> list[CatalogMovie] | list[CatalogShow]:
        results = await self._fetch_results(f"/{kind.value}/popular", page=1)
        return self._parse(kind, results)

    async def trending(self) -> TrendingResponse:
        movies, shows = await asyncio.gather(
            self._fetch_results("/trending/movie/day", limit=TRENDING_LIMIT),
            self._fetch_results("/trending/tv/day", limit=TRENDING_LIMIT),
        )
        return TrendingResponse(
            movies=self._parse(MediaType.MOVIE, movies),
            tv_shows=self._parse(MediaType.TV, shows),
        )

    async def recommendations(
        self, kind: MediaType, tmdb_id: int
    ) -> list[CatalogMovie] | list[CatalogShow]:
        results = await self._fetch_results(
            f"/{kind.value}/{tmdb_id}/recommendations",
            page=1,
            limit=RECOMMENDATIONS_LIMIT,
        )
        return self._parse(kind, results)

    def to_watch_entry(
        self, kind: MediaType, result: CatalogMovie | CatalogShow
    ) -> ToWatchEntry:
        """Build the payload saved when a user adds a catalog title to their list."""

        if isinstance(result, CatalogMovie):
            title, released = result.title, result.release_date
        else:
            title, released = result.name, result.first_air_date
        return ToWatchEntry(
            media_id=build_media_id(kind, result.id),
            type=kind,
            title=title,
            poster=self.poster_url(result.poster_path),
            year=_parse_year(released),
            tmdb_id=result.id,
        )

    async def _fetch_results(
        self,
        path: str,
        *,
        page: int | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        if not self._api_key:
            logger.warning("TMDB_API_KEY not found - TMDB features will be disabled")
            return []

        key = catalog_key(path, page or "", limit or "")
        cached = await self._cache.get_json(key)
        if cached is not None:
            return cached

        params: dict[str, Any] = {"api_key": self._api_key, "language": "en-US"}
        if page is not None:
            params["page"] = page

        try:
            response = await self._http.get(path, params=params)
            response.raise_for_status()
            results = response.json().get("results") or []
        except (httpx.HTTPError, ValueError, AttributeError) as exc:
            logger.error("Failed to fetch TMDB %s: %s", path, exc)
            return []

        if limit is not None:
            results = results[:limit]
        await self._cache.set_json(key, results, ttl=self._cache_ttl)
        return results

    @staticmethod
    def _parse(
        kind: MediaType, results: list[dict[str, Any]]
    ) -> list[CatalogMovie] | list[CatalogShow]:
        model = CatalogMovie if kind is MediaType.MOVIE else CatalogShow
        parsed = []
        for raw in results:
            try:
                parsed.append(model.model_validate(raw))
            except ValidationError:
                logger.debug("Skipping malformed TMDB %s result: %r", kind.value, raw)
        return parsed


async def get_catalog_service(
    cache: CacheClient = Depends(get_cache_client),
) -> AsyncIterator[CatalogService]:
    """FastAPI dependency yielding a service bound to a request-scoped HTTP client."""

    settings = get_settings()
    async with httpx.AsyncClient(
        base_url=settings.tmdb_base_url, timeout=_REQUEST_TIMEOUT_SECONDS
    ) as http_client:
        yield CatalogService(
            http_client=http_client,
            cache=cache,
            api_key=settings.tmdb_api_key,
            image_base_url=settings.tmdb_image_base_url,
            cache_ttl=settings.catalog_cache_ttl_seconds,
        )
