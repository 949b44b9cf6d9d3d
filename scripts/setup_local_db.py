#!/usr/bin/env python
"""Create the to-watch table in the database named by DATABASE_URL."""
import asyncio
import logging

from dotenv import load_dotenv

load_dotenv()

from mediashelf.db.connection import create_engine, get_database_url  # noqa: E402
from mediashelf.db.models import Base  # noqa: E402
from mediashelf.main import _validate_environment  # noqa: E402

logger = logging.getLogger("setup_local_db")


async def setup_local_db() -> None:
    # create_all skips tables that already exist.
    engine = create_engine(get_database_url())
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    finally:
        await engine.dispose()
    logger.info("to_watch_items table is ready")


if __name__ == "__main__":
    _validate_environment()
    asyncio.run(setup_local_db())
