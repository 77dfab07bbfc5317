#!/usr/bin/env python3
"""
Initialize database tables without alembic
Creates all tables defined in tripplanner.db.models
"""

import asyncio
import logging
import sys
from pathlib import Path

# Ensure backend/ is on sys.path for "tripplanner.*" imports
PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from sqlalchemy import inspect

from tripplanner.core.settings import Settings
from tripplanner.db.session import DatabaseManager

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def init_database(settings: Settings) -> list:
    """Create missing tables and return the table names now present"""
    db = DatabaseManager(settings)
    await db.initialize()
    try:
        await db.init_db()
        async with db.engine.connect() as conn:
            return await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
    finally:
        await db.close()


def main():
    try:
        logger.info("Connecting to database...")
        tables = asyncio.run(init_database(Settings()))
        logger.info(f"Tables present: {', '.join(sorted(tables))}")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
