"""Async engine, session factory and the declarative base for all ORM models."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from backend.app.core.config import get_settings

settings = get_settings()

engine_kwargs = {"echo": settings.debug}
connect_args = {}

if settings.database_url.startswith("sqlite"):
    connect_args["check_same_thread"] = False
elif settings.db_ssl_mode == "require":
    connect_args["ssl"] = "require"

if connect_args:
    engine_kwargs["connect_args"] = connect_args

if "postgresql" in settings.database_url:
    engine_kwargs.update({
        "pool_size": settings.database_pool_size,
        "max_overflow": settings.database_max_overflow,
        "pool_pre_ping": True,
    })

engine = create_async_engine(settings.database_url, **engine_kwargs)


def _unicode_lower(value):
    return value.lower() if isinstance(value, str) else value


@event.listens_for(Engine, "connect")
def _register_sqlite_functions(dbapi_connection, connection_record):
    """SQLite's built-in lower() folds ASCII only; use Python's full case mapping."""
    if hasattr(dbapi_connection, "create_function"):
        dbapi_connection.create_function("lower", 1, _unicode_lower)


async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    pass


@asynccontextmanager
async def get_db_context() -> AsyncGenerator[AsyncSession, None]:
    """
    Unit of work: commits when the block exits cleanly, rolls back on error.
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency; one unit of work per request."""
    async with get_db_context() as session:
        yield session
