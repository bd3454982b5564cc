"""Async engine, session factory and transaction helper for the CRM database."""
from __future__ import annotations

from collections.abc import AsyncGenerator, AsyncIterator, Callable
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from ..core.config import settings

connect_args: dict[str, object] = {}
if settings.database_ssl_required:
    connect_args["ssl"] = True

engine = create_async_engine(
    settings.database_async_url,
    echo=False,
    pool_pre_ping=True,
    connect_args=connect_args,
)
SessionLocal = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)

SessionFactory = Callable[[], AsyncSession]


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency to provide an async session."""

    async with SessionLocal() as session:
        yield session


@asynccontextmanager
async def transaction(factory: SessionFactory = SessionLocal) -> AsyncIterator[AsyncSession]:
    """Yield a session inside one transaction; commit on exit, roll back on error."""

    async with factory() as session:
        async with session.begin():
            yield session


async def dispose_engine() -> None:
    await engine.dispose()
