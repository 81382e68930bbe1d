"""Database session management utilities."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from ..models.base import Base

from .session import SessionLocal, build_engine, build_session_factory, engine as _engine


@asynccontextmanager
async def session_scope(
    factory: async_sessionmaker | None = None,
) -> AsyncIterator[AsyncSession]:
    """Provide a transactional scope that commits on success."""

    session = (factory or SessionLocal)()
    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()


def get_session_factory() -> async_sessionmaker:
    """FastAPI dependency returning the configured session factory."""

    return SessionLocal


def get_engine() -> AsyncEngine:
    """Return the configured SQLAlchemy engine."""

    return _engine


async def create_all(bind: AsyncEngine | None = None) -> None:
    """Create every table registered on :data:`Base`."""

    async with (bind or _engine).begin() as connection:
        await connection.run_sync(Base.metadata.create_all)


__all__ = [
    "Base",
    "build_engine",
    "build_session_factory",
    "create_all",
    "get_engine",
    "get_session_factory",
    "session_scope",
]
