from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from colorspec.core.config import settings


def engine_options(database_url: str, *, echo: bool = False) -> dict[str, Any]:
    """Keyword arguments for ``create_async_engine``.

    SQLite runs on one shared connection so an in-memory database outlives a
    single session; server databases get a pre-ping pool.
    """
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        opts: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if url.database in (None, "", ":memory:"):
            opts["poolclass"] = StaticPool
    else:
        opts = {"pool_pre_ping": True, "pool_size": settings.database_pool_size}
    opts["echo"] = echo
    return opts


def build_engine(database_url: str | None = None) -> AsyncEngine:
    url = database_url or settings.database_url
    return create_async_engine(url, **engine_options(url, echo=settings.database_echo))


engine = build_engine()
async_session_factory = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def get_session() -> AsyncIterator[AsyncSession]:
    async with async_session_factory() as session:
        yield session
