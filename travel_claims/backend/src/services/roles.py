"""Role classification and the permission matrix derived from it."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable
from typing import Any, Protocol

import structlog

from ..core.config import Settings, get_settings
from ..core.enums import ApprovalLevel, RoleType
from ..core.errors import DependencyError
from ..schemas.role import RolePermissions, RoleSummary, UserRole
from . import metrics
from .approval_chain import LEVEL_ORDER, level_rank

LOGGER = structlog.get_logger(__name__)

MANAGER_GRADES: tuple[str, ...] = ("manager", "senior manager", "l1", "l2", "l3")
MANAGER_KEYWORDS: tuple[str, ...] = ("manager", "lead", "head", "supervisor", "director")


class Directory(Protocol):
    async def get_all_employees(self) -> list[Any]: ...


def is_admin_identifier(
    identifier: str,
    *,
    admin_identifiers: Iterable[str] = (),
    keyword: str = "admin",
) -> bool:
    """Return ``True`` when the identifier alone designates an administrator."""

    normalized = (identifier or "").strip().lower()
    if not normalized:
        return False
    if normalized in {value.lower() for value in admin_identifiers}:
        return True
    return bool(keyword) and keyword.lower() in normalized


def is_manager_by_profile(employee: Any) -> bool:
    """Heuristic manager check from grade, designation, name and email.

    Independent of whether anyone reports to the employee. Swap this predicate
    out once the directory carries an explicit manager flag.
    """

    grade = (getattr(employee, "grade", None) or "").lower()
    designation = (getattr(employee, "designation", None) or "").lower()
    name = (getattr(employee, "name", None) or "").lower()
    email = (getattr(employee, "email", None) or "").lower()

    if any(token in grade or token in designation for token in MANAGER_GRADES):
        return True
    return any(
        keyword in name or keyword in email or keyword in designation
        for keyword in MANAGER_KEYWORDS
    )


def _matches(employee: Any, identifier: str) -> bool:
    lowered = identifier.strip().lower()
    return (
        getattr(employee, "employee_id", None) == identifier.strip()
        or (getattr(employee, "email", None) or "").lower() == lowered
    )


class RoleClassifier:
    """Derive a caller's effective role from the employee directory."""

    def __init__(
        self,
        directory: Directory,
        *,
        settings: Settings | None = None,
        manager_predicate: Callable[[Any], bool] = is_manager_by_profile,
        timeout_seconds: float | None = None,
    ) -> None:
        settings = settings or get_settings()
        self._directory = directory
        self._manager_predicate = manager_predicate
        self._admin_identifiers = settings.admin_identifiers
        self._admin_keyword = settings.admin_email_keyword
        self.timeout_seconds = (
            timeout_seconds if timeout_seconds is not None else settings.role_lookup_timeout_seconds
        )

    async def classify_role(self, identifier: str) -> UserRole:
        """Return the caller's role; fails closed to ``employee`` on lookup trouble."""

        if is_admin_identifier(
            identifier,
            admin_identifiers=self._admin_identifiers,
            keyword=self._admin_keyword,
        ):
            return UserRole(type=RoleType.ADMIN)

        try:
            employees = await asyncio.wait_for(
                self._directory.get_all_employees(), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError:
            LOGGER.warning(
                "role_lookup_timeout",
                identifier=identifier,
                timeout_seconds=self.timeout_seconds,
            )
            metrics.role_lookup_fallbacks_total.labels(reason="timeout").inc()
            return UserRole(type=RoleType.EMPLOYEE)
        except DependencyError as exc:
            LOGGER.warning("role_lookup_unavailable", identifier=identifier, error=exc.message)
            metrics.role_lookup_fallbacks_total.labels(reason="dependency").inc()
            return UserRole(type=RoleType.EMPLOYEE)

        current = next((employee for employee in employees if _matches(employee, identifier)), None)
        if current is None:
            LOGGER.info("role_lookup_unknown_identity", identifier=identifier)
            return UserRole(type=RoleType.EMPLOYEE)

        employee_id = current.employee_id
        if getattr(current, "is_admin", False):
            return UserRole(type=RoleType.ADMIN, employee_id=employee_id)

        managed, level = self._scan_reports(employees, employee_id)
        if managed:
            return UserRole(
                type=RoleType.MANAGER,
                level=level,
                managed_employee_ids=managed,
                employee_id=employee_id,
            )
        if self._manager_predicate(current):
            return UserRole(type=RoleType.MANAGER, level=ApprovalLevel.L1, employee_id=employee_id)
        return UserRole(type=RoleType.EMPLOYEE, employee_id=employee_id)

    @staticmethod
    def _scan_reports(
        employees: Iterable[Any], approver_id: str
    ) -> tuple[list[str], ApprovalLevel | None]:
        """Collect reports naming ``approver_id`` and the lowest level seen."""

        managed: list[str] = []
        best: ApprovalLevel | None = None
        for employee in employees:
            try:
                chain = employee.approval_chain or {}
                for level in LEVEL_ORDER:
                    if chain.get(level.value) != approver_id:
                        continue
                    managed.append(employee.employee_id)
                    if best is None or level_rank(level) < level_rank(best):
                        best = level
                    break
            except (AttributeError, TypeError, ValueError) as exc:
                LOGGER.warning(
                    "role_scan_record_skipped",
                    employee=getattr(employee, "employee_id", None),
                    error=str(exc),
                )
        return managed, best


def permissions_for_role(role: UserRole) -> RolePermissions:
    if role.type is RoleType.ADMIN:
        return RolePermissions(
            can_create_claims=False,
            can_approve_claims=True,
            can_view_all_claims=True,
            can_manage_employees=True,
            approval_level=ApprovalLevel.L3,
        )
    if role.type is RoleType.MANAGER:
        return RolePermissions(
            can_create_claims=True,
            can_approve_claims=True,
            can_view_all_claims=True,
            can_manage_employees=False,
            approval_level=role.level,
        )
    return RolePermissions(
        can_create_claims=True,
        can_approve_claims=False,
        can_view_all_claims=False,
        can_manage_employees=False,
    )


def can_approve_at_level(role: UserRole, claim_level: ApprovalLevel | str) -> bool:
    """Admins approve anywhere; managers at their own level or lower-ranked ones."""

    if role.type is RoleType.ADMIN:
        return True
    if role.type is not RoleType.MANAGER:
        return False
    return level_rank(role.level or ApprovalLevel.L1) >= level_rank(claim_level)


def can_view_claim(role: UserRole, viewer_id: str, claim: Any) -> bool:
    """Employees see their own claims; managers also see their reports' claims.

    A manager counts a claim as theirs to see when the submitter is in their
    managed list or when they hold any slot of the claim's approval chain.
    """

    if role.type is RoleType.ADMIN:
        return True
    if claim.employee_id == viewer_id:
        return True
    if role.type is not RoleType.MANAGER:
        return False
    if claim.employee_id in role.managed_employee_ids:
        return True
    return viewer_id in (claim.approval_chain or {}).values()


def summarize_role(role: UserRole) -> RoleSummary:
    return RoleSummary(
        role=role,
        permissions=permissions_for_role(role),
        approvable_levels=[level for level in LEVEL_ORDER if can_approve_at_level(role, level)],
    )


__all__ = [
    "MANAGER_GRADES",
    "MANAGER_KEYWORDS",
    "RoleClassifier",
    "can_approve_at_level",
    "can_view_claim",
    "is_admin_identifier",
    "is_manager_by_profile",
    "permissions_for_role",
    "summarize_role",
]
