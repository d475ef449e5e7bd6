"""Async engine and session handling.

One SQLite file holds the report settings, the per-pair snapshot, the
exchange rate history and the run log.
"""

from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from reportsync.config import settings


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_async_engine(url, echo=echo, connect_args=connect_args)


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)
async_session_factory = build_session_factory(engine)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency that yields an async database session."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def create_schema(bind: AsyncEngine) -> None:
    """Create the report tables on ``bind`` if they are missing."""
    import reportsync.models  # noqa: F401 - register tables
    from reportsync.models.base import Base

    async with bind.begin() as conn:
        if bind.dialect.name == "sqlite":
            await conn.execute(text("PRAGMA journal_mode=WAL"))
        await conn.run_sync(Base.metadata.create_all)


async def init_db() -> None:
    await create_schema(engine)


@asynccontextmanager
async def isolated_session(url: str) -> AsyncIterator[AsyncSession]:
    """Session on a dedicated engine with its schema created, disposed on exit.

    For callers that run in their own event loop, where the shared engine's
    pooled connections cannot be reused.
    """
    own_engine = build_engine(url)
    try:
        await create_schema(own_engine)
        async with build_session_factory(own_engine)() as session:
            yield session
    finally:
        await own_engine.dispose()
