"""Claim submission, lookup and approval endpoints."""

from __future__ import annotations

from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Body, HTTPException, Query, status

from ..core.enums import RoleType
from ..core.errors import ServiceResult, ValidationError
from ..core.security import CallerIdentity
from ..schemas.claim import ApprovePayload, RejectPayload
from ..schemas.role import UserRole
from ..services.approval_chain import parse_level, pending_status_for
from ..services.roles import can_view_claim, permissions_for_role
from .dependencies import CallerRole, Identity, Services, ServicesDep, raise_for_result

LOGGER = structlog.get_logger(__name__)

router = APIRouter(tags=["claims"])


def _acting_id(role: UserRole, identity: CallerIdentity) -> str:
    return role.employee_id or identity.identifier


async def _approver_details(
    services: Services, role: UserRole, identity: CallerIdentity
) -> tuple[str, str, str]:
    """Return ``(id, name, email)`` recorded on the approval row."""

    employee = await services.directory.get_employee_by_identifier(identity.identifier)
    if employee is not None:
        return employee.employee_id, employee.name, employee.email
    email = identity.identifier if "@" in identity.identifier else ""
    return _acting_id(role, identity), identity.identifier, email


@router.post("/claims", response_model=ServiceResult, status_code=status.HTTP_201_CREATED)
async def create_claim(
    payload: Annotated[dict[str, Any], Body()],
    identity: Identity,
    role: CallerRole,
    services: ServicesDep,
) -> ServiceResult:
    """Submit a claim for the caller; any ``employee_id`` in the body is ignored."""

    if not permissions_for_role(role).can_create_claims:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Role cannot submit claims")
    submission = {**payload, "employee_id": _acting_id(role, identity)}
    return raise_for_result(await services.claims.create_claim(submission))


@router.get("/claims/mine", response_model=ServiceResult)
async def list_my_claims(identity: Identity, role: CallerRole, services: ServicesDep) -> ServiceResult:
    return raise_for_result(
        await services.claims.list_claims_for_employee(_acting_id(role, identity))
    )


@router.get("/claims", response_model=ServiceResult)
async def list_claims(
    role: CallerRole,
    services: ServicesDep,
    claim_status: str | None = Query(default=None, alias="status"),
) -> ServiceResult:
    if role.type is not RoleType.ADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Administrator access required")
    return raise_for_result(await services.claims.list_all_claims(claim_status))


@router.get("/claims/{claim_id}", response_model=ServiceResult)
async def get_claim(
    claim_id: str, identity: Identity, role: CallerRole, services: ServicesDep
) -> ServiceResult:
    result = raise_for_result(await services.claims.get_claim(claim_id))
    if not can_view_claim(role, _acting_id(role, identity), result.data):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not your claim")
    return result


@router.get("/approvals/pending", response_model=ServiceResult)
async def list_pending_approvals(
    identity: Identity,
    role: CallerRole,
    services: ServicesDep,
    level: str = Query(default="L1"),
) -> ServiceResult:
    """Claims waiting on the caller at ``level``; admins see every claim at that level."""

    if role.type is RoleType.ADMIN:
        try:
            pending = pending_status_for(parse_level(level))
        except ValidationError as exc:
            return raise_for_result(ServiceResult.fail(exc))
        return raise_for_result(await services.claims.list_all_claims(pending))
    return raise_for_result(
        await services.claims.list_pending_claims_for_approver(_acting_id(role, identity), level)
    )


@router.post("/claims/{claim_id}/approve", response_model=ServiceResult)
async def approve_claim(
    claim_id: str,
    payload: ApprovePayload,
    identity: Identity,
    role: CallerRole,
    services: ServicesDep,
) -> ServiceResult:
    approver_id, approver_name, approver_email = await _approver_details(services, role, identity)
    result = await services.claims.approve_claim(
        claim_id,
        approver_id,
        approver_name,
        approver_email,
        payload.level,
        payload.comments,
    )
    LOGGER.info("approve_requested", claim_id=claim_id, approver_id=approver_id, success=result.success)
    return raise_for_result(result)


@router.post("/claims/{claim_id}/reject", response_model=ServiceResult)
async def reject_claim(
    claim_id: str,
    payload: RejectPayload,
    identity: Identity,
    role: CallerRole,
    services: ServicesDep,
) -> ServiceResult:
    approver_id, approver_name, approver_email = await _approver_details(services, role, identity)
    result = await services.claims.reject_claim(
        claim_id,
        approver_id,
        approver_name,
        approver_email,
        payload.level,
        payload.reason,
    )
    LOGGER.info("reject_requested", claim_id=claim_id, approver_id=approver_id, success=result.success)
    return raise_for_result(result)
