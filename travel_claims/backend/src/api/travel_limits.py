"""Monthly travel-limit endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Query, status

from ..core.errors import NotFoundError, ServiceResult
from ..schemas.policy import PolicySummary
from ..schemas.travel_limit import LimitCheckRequest
from .dependencies import AdminRole, CallerRole, Identity, ServicesDep, raise_for_result

router = APIRouter(prefix="/travel-limits", tags=["travel-limits"])


@router.get("/me", response_model=ServiceResult)
async def my_monthly_usage(
    identity: Identity,
    role: CallerRole,
    services: ServicesDep,
    month: str | None = Query(default=None, description="YYYY-MM; defaults to the current month"),
) -> ServiceResult:
    """Return the caller's ledger row; ``data`` is null before the first claim of the month."""

    employee_id = role.employee_id or identity.identifier
    return raise_for_result(await services.ledger.get_monthly_travel_data(employee_id, month))


@router.get("", response_model=ServiceResult)
async def monthly_usage_report(
    _: AdminRole,
    services: ServicesDep,
    month: str | None = Query(default=None, description="YYYY-MM; defaults to the current month"),
) -> ServiceResult:
    return raise_for_result(await services.ledger.list_monthly_travel_data(month))


@router.post("/validate", response_model=ServiceResult, status_code=status.HTTP_200_OK)
async def validate_proposed_amount(
    payload: LimitCheckRequest,
    identity: Identity,
    services: ServicesDep,
) -> ServiceResult:
    """Advisory check of a proposed amount against the caller's remaining limit."""

    employee = await services.directory.get_employee_by_identifier(identity.identifier)
    if employee is None:
        return raise_for_result(
            ServiceResult.fail(NotFoundError(f"Employee {identity.identifier} not found."))
        )
    return raise_for_result(
        await services.ledger.validate_monthly_limit(employee.employee_id, employee.grade, payload.amount)
    )


@router.get("/policy", response_model=PolicySummary)
async def my_policy(identity: Identity, services: ServicesDep) -> PolicySummary:
    """Return the caller's grade entitlements, vehicle rule and monthly cap."""

    employee = await services.directory.get_employee_by_identifier(identity.identifier)
    if employee is None:
        raise NotFoundError(f"Employee {identity.identifier} not found.")
    policy = services.policy
    return PolicySummary(
        grade=employee.grade,
        entitlement=await policy.lookup_policy(employee.grade),
        vehicle=await policy.vehicle_info(employee.grade),
        monthly_limit=policy.lookup_monthly_limit(employee.grade),
    )
