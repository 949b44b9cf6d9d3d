"""Pydantic schemas for API requests and responses."""

from mediashelf.schemas.catalog import (  # noqa: F401
    CatalogMovie,
    CatalogShow,
    PopularMoviesResponse,
    PopularShowsResponse,
    RecommendationsResponse,
    TrendingResponse,
)
from mediashelf.schemas.session import (  # noqa: F401
    ServerSession,
    SessionActionResponse,
    SessionCreateRequest,
)
from mediashelf.schemas.to_watch import (  # noqa: F401
    MediaType,
    NewToWatchItem,
    ToWatchCreatedResponse,
    ToWatchEntry,
    ToWatchItem,
    ToWatchListResponse,
)
