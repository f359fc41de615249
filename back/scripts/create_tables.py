#!/usr/bin/env python
"""
Create the Civic Desk database tables.
"""

# Standard library imports
import asyncio
import sys

# Local application imports
from civicdesk.core.db import async_engine
from civicdesk.core.monitoring.logging import get_logger
from civicdesk.models import Base

logger = get_logger("civicdesk.scripts.create_tables")


async def create_tables() -> None:
    """Create all tables in the database"""
    logger.info("Creating database tables...")

    try:
        async with async_engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    except Exception as e:
        logger.error(f"Error creating tables: {e}")
        sys.exit(1)
    finally:
        await async_engine.dispose()

    logger.info(f"Tables ready: {', '.join(sorted(Base.metadata.tables))}")


if __name__ == "__main__":
    asyncio.run(create_tables())
