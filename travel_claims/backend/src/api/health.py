"""Health check endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from sqlalchemy import text
from sqlalchemy.ext.asyncio import async_sessionmaker

from ..db import get_session_factory

router = APIRouter(tags=["health"])


@router.get("/health/live")
async def liveness() -> dict[str, str]:
    """Return a liveness indicator."""

    return {"status": "live"}


@router.get("/health/ready")
async def readiness(
    session_factory: Annotated[async_sessionmaker, Depends(get_session_factory)],
) -> dict[str, str]:
    """Return readiness information, ensuring the database connection is healthy."""

    async with session_factory() as session:
        await session.execute(text("SELECT 1"))
    return {"status": "ready"}


@router.get("/metrics")
def metrics() -> Response:
    """Expose Prometheus metrics."""

    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
