"""Async SQLAlchemy engine and session factory.

SQLAlchemy 2.0 async mode — create_async_engine for connection pooling,
AsyncSession for per-request database access, dependency injection via
FastAPI. The gates, populators and handlers of one request all share the
session yielded by get_db().
"""

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from postboard.config import settings


def make_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create an engine; pool sizing only applies to server databases."""
    kwargs = {"echo": echo}
    if make_url(database_url).get_backend_name() != "sqlite":
        # Connection pool: min 5, max 20 connections.
        kwargs.update(pool_size=5, max_overflow=15)
    return create_async_engine(database_url, **kwargs)


engine = make_engine(settings.database_url, echo=settings.debug)

# Session factory — each request gets its own session.
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncSession:
    """FastAPI dependency — yields a session per request, auto-closes."""
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()
