"""Service wiring and result-to-HTTP translation shared by the routers."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Annotated, Any

from fastapi import Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import async_sessionmaker

from ..core.clock import Clock, SystemClock
from ..core.config import Settings, get_settings
from ..core.enums import RoleType
from ..core.errors import ClaimFlowError, ErrorKind, ServiceResult
from ..core.policy_cache import build_policy_cache
from ..core.security import CallerIdentity, get_current_identity
from ..db import get_session_factory
from ..schemas.role import UserRole
from ..services.claims import ClaimLifecycleEngine
from ..services.directory import EmployeeDirectory
from ..services.roles import RoleClassifier
from ..services.travel_limits import MonthlyLimitLedger
from ..services.travel_policy import PolicyTable

_STATUS_FOR_KIND = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.AUTHORIZATION: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.STALE_STATE: status.HTTP_409_CONFLICT,
    ErrorKind.DEPENDENCY: status.HTTP_503_SERVICE_UNAVAILABLE,
}


@dataclass(frozen=True)
class Services:
    directory: EmployeeDirectory
    policy: PolicyTable
    ledger: MonthlyLimitLedger
    roles: RoleClassifier
    claims: ClaimLifecycleEngine


@lru_cache()
def get_policy_table() -> PolicyTable:
    """Process-wide policy table so the lookup cache survives across requests."""

    settings = get_settings()
    return PolicyTable(
        build_policy_cache(settings),
        fuel_price_per_liter=settings.fuel_price_per_liter,
    )


def get_clock() -> Clock:
    return SystemClock()


def get_services(
    session_factory: Annotated[async_sessionmaker, Depends(get_session_factory)],
    policy: Annotated[PolicyTable, Depends(get_policy_table)],
    settings: Annotated[Settings, Depends(get_settings)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> Services:
    directory = EmployeeDirectory(session_factory, clock=clock)
    ledger = MonthlyLimitLedger(session_factory, policy, clock=clock)
    roles = RoleClassifier(directory, settings=settings)
    claims = ClaimLifecycleEngine(
        session_factory,
        directory=directory,
        ledger=ledger,
        roles=roles,
        policy=policy,
        clock=clock,
    )
    return Services(directory=directory, policy=policy, ledger=ledger, roles=roles, claims=claims)


async def get_caller_role(
    identity: Annotated[CallerIdentity, Depends(get_current_identity)],
    services: Annotated[Services, Depends(get_services)],
) -> UserRole:
    return await services.roles.classify_role(identity.identifier)


async def require_admin(
    role: Annotated[UserRole, Depends(get_caller_role)],
) -> UserRole:
    if role.type is not RoleType.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Administrator access required",
        )
    return role


def raise_for_result(result: ServiceResult) -> ServiceResult:
    """Return ``result`` unchanged on success; otherwise raise the mapped HTTP error."""

    if result.success:
        return result
    status_code = _STATUS_FOR_KIND.get(result.error_kind, status.HTTP_400_BAD_REQUEST)
    detail: dict[str, Any] = {
        "error": result.error,
        "error_kind": result.error_kind.value if result.error_kind else None,
    }
    raise HTTPException(status_code=status_code, detail=detail)


async def claim_flow_error_handler(request: Request, exc: ClaimFlowError) -> JSONResponse:
    """Translate domain errors raised outside a result envelope (directory admin)."""

    return JSONResponse(
        status_code=_STATUS_FOR_KIND.get(exc.kind, status.HTTP_400_BAD_REQUEST),
        content={"detail": {"error": exc.message, "error_kind": exc.kind.value}},
    )


ServicesDep = Annotated[Services, Depends(get_services)]
CallerRole = Annotated[UserRole, Depends(get_caller_role)]
AdminRole = Annotated[UserRole, Depends(require_admin)]
Identity = Annotated[CallerIdentity, Depends(get_current_identity)]


__all__ = [
    "AdminRole",
    "CallerRole",
    "Identity",
    "Services",
    "ServicesDep",
    "claim_flow_error_handler",
    "get_caller_role",
    "get_clock",
    "get_policy_table",
    "get_services",
    "raise_for_result",
    "require_admin",
]
