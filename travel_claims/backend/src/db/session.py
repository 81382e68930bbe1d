"""SQLAlchemy async engine and session factory configuration."""

from __future__ import annotations

from pathlib import Path

import structlog
from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

from travel_claims.backend.src.core.config import get_settings

LOGGER = structlog.get_logger(__name__)
PROJECT_ROOT = Path(__file__).resolve().parents[4]


def _normalize_database_url(raw_url: str) -> URL:
    """Return an absolute :class:`~sqlalchemy.engine.URL` for SQLite databases."""

    url = make_url(raw_url)
    if not url.drivername.startswith("sqlite"):
        return url

    database = url.database or ""
    if database in {"", ":memory:"}:
        return url

    db_path = Path(database)
    if db_path.is_absolute():
        resolved = db_path
    else:
        resolved = PROJECT_ROOT / db_path

    resolved = resolved.resolve()
    if resolved != db_path:
        LOGGER.info(
            "database_path_normalized",
            original=str(db_path),
            resolved=str(resolved),
        )

    return url.set(database=str(resolved))


def build_engine(raw_url: str) -> AsyncEngine:
    """Create an async engine for ``raw_url``."""

    url = _normalize_database_url(raw_url)
    options: dict[str, object] = {"future": True}
    if not url.drivername.startswith("sqlite"):
        options["pool_pre_ping"] = True
    return create_async_engine(url, **options)


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        bind=bind,
        autoflush=False,
        expire_on_commit=False,
    )


_settings = get_settings()
engine = build_engine(_settings.database_url)
SessionLocal = build_session_factory(engine)

LOGGER.info("database_engine_initialized", url=str(engine.url))

__all__ = ["SessionLocal", "build_engine", "build_session_factory", "engine"]
