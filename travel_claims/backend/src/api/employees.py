"""Administrative endpoints for the employee directory and approval chains."""

from __future__ import annotations

import structlog
from fastapi import APIRouter

from ..schemas.employee import ApprovalChainIssue, ApprovalChainUpdate, EmployeeRead
from .dependencies import AdminRole, ServicesDep

LOGGER = structlog.get_logger(__name__)

router = APIRouter(prefix="/employees", tags=["employees"])


@router.get("", response_model=list[EmployeeRead])
async def list_employees(_: AdminRole, services: ServicesDep) -> list[EmployeeRead]:
    employees = await services.directory.get_all_employees()
    return [EmployeeRead.model_validate(employee) for employee in employees]


@router.get("/approval-chain-issues", response_model=list[ApprovalChainIssue])
async def approval_chain_issues(_: AdminRole, services: ServicesDep) -> list[ApprovalChainIssue]:
    """List chains pointing at missing, inactive or self approvers, and missing L1 slots."""

    return await services.directory.find_approval_chain_issues()


@router.put("/{employee_id}/approval-chain", response_model=EmployeeRead)
async def assign_approval_chain(
    employee_id: str,
    payload: ApprovalChainUpdate,
    admin: AdminRole,
    services: ServicesDep,
) -> EmployeeRead:
    """Replace an employee's chain. Claims already submitted keep their snapshot."""

    employee = await services.directory.assign_approval_chain(employee_id, payload.as_chain())
    LOGGER.info("approval_chain_updated_by_admin", employee_id=employee_id, admin=admin.employee_id)
    return EmployeeRead.model_validate(employee)


@router.patch("/{employee_id}/deactivate", response_model=EmployeeRead)
async def deactivate_employee(
    employee_id: str,
    admin: AdminRole,
    services: ServicesDep,
) -> EmployeeRead:
    employee = await services.directory.deactivate_employee(employee_id)
    LOGGER.info("employee_deactivated", employee_id=employee_id, admin=admin.employee_id)
    return EmployeeRead.model_validate(employee)
