"""Employee directory backed by the ``employees`` table."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import structlog
from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from ..core.clock import Clock, SystemClock
from ..core.errors import DependencyError, NotFoundError, ValidationError
from ..models import Employee
from ..schemas.employee import ApprovalChainIssue
from .approval_chain import LEVEL_ORDER, parse_level

LOGGER = structlog.get_logger(__name__)

UPDATABLE_FIELDS: frozenset[str] = frozenset(
    {
        "name",
        "phone",
        "grade",
        "designation",
        "department",
        "approver_l1_id",
        "approver_l2_id",
        "approver_l3_id",
        "is_active",
    }
)

_CHAIN_COLUMNS = {
    "L1": "approver_l1_id",
    "L2": "approver_l2_id",
    "L3": "approver_l3_id",
}


class EmployeeDirectory:
    """Read and administer employee records.

    Storage failures surface as :class:`DependencyError`.
    """

    def __init__(self, session_factory: async_sessionmaker, clock: Clock | None = None) -> None:
        self._session_factory = session_factory
        self._clock = clock or SystemClock()

    async def get_employee_by_identifier(self, identifier: str) -> Employee | None:
        """Find an employee by business id or (case-insensitive) email."""

        candidate = (identifier or "").strip()
        if not candidate:
            return None
        statement = select(Employee).where(
            or_(
                Employee.employee_id == candidate,
                func.lower(Employee.email) == candidate.lower(),
            )
        )
        try:
            async with self._session_factory() as session:
                return (await session.execute(statement)).scalars().first()
        except SQLAlchemyError as exc:
            LOGGER.warning("directory_lookup_failed", identifier=candidate, error=str(exc))
            raise DependencyError() from exc

    async def get_all_employees(self) -> list[Employee]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(select(Employee).order_by(Employee.employee_id))
                return list(result.scalars().all())
        except SQLAlchemyError as exc:
            LOGGER.warning("directory_fetch_failed", error=str(exc))
            raise DependencyError() from exc

    async def update_employee(self, employee_id: str, partial: Mapping[str, Any]) -> Employee:
        unknown = set(partial) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update field(s): {', '.join(sorted(unknown))}")

        try:
            async with self._session_factory() as session:
                employee = await self._load(session, employee_id)
                for field, value in partial.items():
                    setattr(employee, field, value)
                employee.updated_at = self._clock.now()
                await session.commit()
        except SQLAlchemyError as exc:
            raise DependencyError() from exc

        LOGGER.info("employee_updated", employee_id=employee_id, fields=sorted(partial))
        return employee

    async def assign_approval_chain(self, employee_id: str, chain: Mapping[str, str]) -> Employee:
        """Replace an employee's chain after checking every approver is selectable.

        Only claims submitted afterwards see the new chain; in-flight claims
        keep their snapshot.
        """

        normalized = {parse_level(level).value: approver for level, approver in chain.items() if approver}
        if employee_id in normalized.values():
            raise ValidationError("An employee cannot approve their own claims.")

        for level, approver_id in normalized.items():
            approver = await self.get_employee_by_identifier(approver_id)
            if approver is None or approver.employee_id != approver_id:
                raise ValidationError(f"{level} approver {approver_id} does not exist.")
            if not approver.is_active:
                raise ValidationError(f"{level} approver {approver_id} is inactive.")

        partial = {
            column: normalized.get(level) for level, column in _CHAIN_COLUMNS.items()
        }
        employee = await self.update_employee(employee_id, partial)
        LOGGER.info("approval_chain_assigned", employee_id=employee_id, chain=normalized)
        return employee

    async def deactivate_employee(self, employee_id: str) -> Employee:
        return await self.update_employee(employee_id, {"is_active": False})

    async def find_approval_chain_issues(self) -> list[ApprovalChainIssue]:
        """Report chain entries that point at missing, inactive or self approvers."""

        employees = await self.get_all_employees()
        by_id = {employee.employee_id: employee for employee in employees}
        issues: list[ApprovalChainIssue] = []
        for employee in employees:
            if not employee.is_active:
                continue
            chain = employee.approval_chain
            for level in LEVEL_ORDER:
                approver_id = chain.get(level.value)
                if not approver_id:
                    continue
                approver = by_id.get(approver_id)
                if approver is None:
                    problem = "approver not found"
                elif approver_id == employee.employee_id:
                    problem = "employee approves own claims"
                elif not approver.is_active:
                    problem = "approver inactive"
                else:
                    continue
                issues.append(
                    ApprovalChainIssue(
                        employee_id=employee.employee_id,
                        level=level,
                        approver_id=approver_id,
                        problem=problem,
                    )
                )
            if "L1" not in chain:
                issues.append(
                    ApprovalChainIssue(
                        employee_id=employee.employee_id,
                        level="L1",
                        approver_id="",
                        problem="no L1 approver; new claims cannot progress",
                    )
                )
        return issues

    @staticmethod
    async def _load(session, employee_id: str) -> Employee:
        employee = (
            await session.execute(select(Employee).where(Employee.employee_id == employee_id))
        ).scalar_one_or_none()
        if employee is None:
            raise NotFoundError(f"Employee {employee_id} not found.")
        return employee


__all__ = ["EmployeeDirectory", "UPDATABLE_FIELDS"]
