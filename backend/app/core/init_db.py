"""
Database initialization script.

Creates every table registered on ``Base`` and seeds the bootstrap admin.
Run directly (``python -m backend.app.core.init_db``) or let the app do it
on startup via ``CREATE_TABLES_ON_STARTUP``.
"""

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncEngine

from backend.app.core.database import Base, engine as default_engine, get_db_context
import backend.app.models  # noqa: F401  registers the tables on Base

logger = logging.getLogger(__name__)


async def create_tables(engine: AsyncEngine = default_engine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ensured")


async def drop_all_tables(engine: AsyncEngine = default_engine) -> None:
    """Drop all tables (use with caution!)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    logger.warning("All tables dropped")


async def init_database() -> None:
    from backend.app.services.auth_service import seed_default_admin

    await create_tables()
    async with get_db_context() as session:
        await seed_default_admin(session)


if __name__ == "__main__":
    import sys

    from backend.app.core.config import get_settings
    from backend.app.core.logging import setup_logging

    setup_logging(get_settings().log_level)

    if len(sys.argv) > 1 and sys.argv[1] == "--drop":
        confirm = input("This will drop all tables. Type 'yes' to confirm: ")
        if confirm == "yes":
            asyncio.run(drop_all_tables())
        else:
            print("Aborted.")
    else:
        asyncio.run(init_database())
