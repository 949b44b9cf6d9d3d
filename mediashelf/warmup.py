"""Startup warmup so the first request does not pay connection costs.

Failures are logged and swallowed: a cold pool or an unreachable Redis must
not prevent the API from starting.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from mediashelf.db.connection import begin_engine_transaction

logger = logging.getLogger(__name__)


async def warmup_database(
    resolve_engine: Callable[[], AsyncEngine] | None = None,
) -> None:
    """Open a pooled connection and run ``SELECT 1``."""
    try:
        if resolve_engine is None:
            from mediashelf.db.connection import get_engine as resolve_engine

        start = time.time()
        engine = resolve_engine()
        async with begin_engine_transaction(engine) as conn:
            await conn.execute(text("SELECT 1"))

        elapsed = (time.time() - start) * 1000
        logger.info("Database connection warmed up (%.0fms)", elapsed)
    except Exception as exc:
        logger.warning("Database warmup failed: %s", exc)


async def warmup_redis() -> None:
    from mediashelf.cache import get_redis

    try:
        start = time.time()
        redis = await get_redis()
        if redis is None:
            logger.info("Redis warmup skipped (connection unavailable)")
            return

        elapsed = (time.time() - start) * 1000
        logger.info("Redis connection warmed up (%.0fms)", elapsed)
    except Exception as exc:
        logger.warning("Redis warmup failed: %s", exc)


async def warmup_all(
    resolve_engine: Callable[[], AsyncEngine] | None = None,
) -> None:
    logger.info("=" * 60)
    logger.info("Warming up backend connections...")
    logger.info("=" * 60)

    start = time.time()
    await warmup_database(resolve_engine=resolve_engine)
    await warmup_redis()

    total_elapsed = (time.time() - start) * 1000
    logger.info("Backend warmup complete (%.0fms)", total_elapsed)
