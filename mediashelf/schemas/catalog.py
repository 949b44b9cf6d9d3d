"""Schemas for TMDB catalog payloads surfaced by the discovery endpoints."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class CatalogMovie(BaseModel):
    """Subset of a TMDB movie result consumed by the front end."""

    model_config = ConfigDict(extra="ignore")

    id: int
    title: str
    overview: str = ""
    poster_path: str | None = None
    release_date: str | None = None
    vote_average: float = 0.0
    vote_count: int = 0


class CatalogShow(BaseModel):
    """Subset of a TMDB TV result consumed by the front end."""

    model_config = ConfigDict(extra="ignore")

    id: int
    name: str
    overview: str = ""
    poster_path: str | None = None
    first_air_date: str | None = None
    vote_average: float = 0.0
    vote_count: int = 0


class PopularMoviesResponse(BaseModel):
    movies: list[CatalogMovie] = Field(default_factory=list)


class PopularShowsResponse(BaseModel):
    shows: list[CatalogShow] = Field(default_factory=list)


class TrendingResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    movies: list[CatalogMovie] = Field(default_factory=list)
    tv_shows: list[CatalogShow] = Field(default_factory=list, alias="tvShows")


class RecommendationsResponse(BaseModel):
    results: list[CatalogMovie | CatalogShow] = Field(default_factory=list)
