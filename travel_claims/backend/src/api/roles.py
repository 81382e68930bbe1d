"""Caller role endpoint."""

from __future__ import annotations

from fastapi import APIRouter

from ..schemas.role import RoleSummary
from ..services.roles import summarize_role
from .dependencies import CallerRole

router = APIRouter(prefix="/roles", tags=["roles"])


@router.get("/me", response_model=RoleSummary)
async def my_role(role: CallerRole) -> RoleSummary:
    """Return the caller's role, permissions and the levels they may approve."""

    return summarize_role(role)
