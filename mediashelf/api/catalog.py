"""Catalog discovery endpoints backed by TMDB."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Path, Query

from mediashelf.errors import DependencyFailureError
from mediashelf.schemas.catalog import (
    PopularMoviesResponse,
    PopularShowsResponse,
    RecommendationsResponse,
    TrendingResponse,
)
from mediashelf.schemas.to_watch import MediaType
from mediashelf.services.catalog_service import CatalogService, get_catalog_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=None)
async def get_catalog(
    catalog_type: str = Query(
        "trending",
        alias="type",
        description="movies, shows or trending; unknown values fall back to trending",
    ),
    service: CatalogService = Depends(get_catalog_service),
) -> PopularMoviesResponse | PopularShowsResponse | TrendingResponse:
    try:
        if catalog_type == "movies":
            return PopularMoviesResponse(movies=await service.popular(MediaType.MOVIE))
        if catalog_type == "shows":
            return PopularShowsResponse(shows=await service.popular(MediaType.TV))
        return await service.trending()
    except Exception as exc:
        logger.exception("TMDB route failed for type=%s", catalog_type)
        raise DependencyFailureError("Failed to fetch TMDB data") from exc


@router.get(
    "/{kind}/{tmdb_id}/recommendations",
    response_model=RecommendationsResponse,
)
async def get_recommendations(
    kind: MediaType,
    tmdb_id: int = Path(..., gt=0),
    service: CatalogService = Depends(get_catalog_service),
) -> RecommendationsResponse:
    """Return up to ten titles TMDB recommends alongside ``tmdb_id``."""

    try:
        results = await service.recommendations(kind, tmdb_id)
    except Exception as exc:
        logger.exception("TMDB recommendations failed for %s:%s", kind.value, tmdb_id)
        raise DependencyFailureError("Failed to fetch TMDB data") from exc
    return RecommendationsResponse(results=list(results))
