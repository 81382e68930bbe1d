"""Claim lifecycle: submission, sequential approval and rejection.

Status moves ``pending_l1`` -> ``pending_l2`` -> ``pending_l3`` -> ``approved``
skipping levels absent from the claim's snapshot chain; a rejection at any
pending level is terminal. Every transition is a compare-and-swap on the
current status, so two concurrent actions on one claim cannot both succeed.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from decimal import Decimal
from typing import Any

import structlog
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from ..core.clock import Clock, SystemClock
from ..core.enums import ApprovalAction, ApprovalLevel, ClaimStatus, ClaimType, RoleType
from ..core.errors import (
    AuthorizationError,
    NotFoundError,
    ServiceResult,
    StaleStateError,
    ValidationError,
    service_result,
)
from ..models import Claim, ClaimApproval, Employee
from ..schemas.claim import ClaimCreate, ClaimCreated, ClaimDecision, ClaimRead
from ..schemas.role import UserRole
from ..schemas.travel_limit import LedgerUpdate
from . import metrics
from .approval_chain import (
    is_unapprovable,
    next_level_after,
    parse_level,
    pending_status_for,
    snapshot_approval_chain,
)
from .directory import EmployeeDirectory
from .roles import RoleClassifier
from .travel_limits import MonthlyLimitLedger, format_rupees
from .travel_policy import PolicyTable

LOGGER = structlog.get_logger(__name__)

_CHAIN_COLUMNS = {
    ApprovalLevel.L1: Claim.approver_l1_id,
    ApprovalLevel.L2: Claim.approver_l2_id,
    ApprovalLevel.L3: Claim.approver_l3_id,
}


def advance(
    status: ClaimStatus | str,
    chain: Mapping[str, str],
    action: ApprovalAction | str,
    level: ApprovalLevel | str,
) -> ClaimStatus:
    """Return the status after ``action`` at ``level``; pure, no side effects."""

    current = ClaimStatus(status)
    level = parse_level(level)
    expected = pending_status_for(level)
    if current != expected:
        raise StaleStateError(
            f"Claim is {current.value}, not awaiting {level.value} approval. "
            "Refresh the claim and retry."
        )
    if ApprovalAction(action) is ApprovalAction.REJECTED:
        return ClaimStatus.REJECTED
    following = next_level_after(chain, level)
    if following is None:
        return ClaimStatus.APPROVED
    return pending_status_for(following)


def replay_status(chain: Mapping[str, str], approvals: Iterable[Any]) -> ClaimStatus:
    """Rebuild a claim's status from its approval history."""

    status = ClaimStatus.PENDING_L1
    for entry in approvals:
        status = advance(status, chain, entry.action, entry.level)
    return status


def _parse_create(payload: ClaimCreate | Mapping[str, Any]) -> ClaimCreate:
    if isinstance(payload, ClaimCreate):
        return payload
    try:
        return ClaimCreate.model_validate(payload)
    except PydanticValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        )
        raise ValidationError(f"Invalid claim: {problems}") from None


class ClaimLifecycleEngine:
    """Creates claims and applies approve/reject transitions."""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        *,
        directory: EmployeeDirectory,
        ledger: MonthlyLimitLedger,
        roles: RoleClassifier,
        policy: PolicyTable,
        clock: Clock | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._directory = directory
        self._ledger = ledger
        self._roles = roles
        self._policy = policy
        self._clock = clock or SystemClock()

    async def on_claim_created(
        self, session: AsyncSession, claim: Claim, employee: Employee
    ) -> LedgerUpdate:
        """Record the claim against the monthly limit at submission time.

        Runs inside the creation transaction. Rejections later on do not
        reverse this.
        """

        return await self._ledger.accumulate(
            session,
            employee_id=claim.employee_id,
            employee_name=claim.employee_name,
            grade=employee.grade,
            amount=claim.amount,
            distance=claim.distance,
            is_fuel=claim.type == ClaimType.FUEL.value,
        )

    @service_result("create_claim")
    async def create_claim(self, payload: ClaimCreate | Mapping[str, Any]) -> ServiceResult:
        data = _parse_create(payload)

        employee = await self._directory.get_employee_by_identifier(data.employee_id)
        if employee is None:
            raise NotFoundError(f"Employee {data.employee_id} not found.")
        if not employee.is_active:
            raise ValidationError(f"Employee {employee.employee_id} is inactive and cannot submit claims.")

        chain = snapshot_approval_chain(employee)
        now = self._clock.now()
        claim = Claim(
            employee_id=employee.employee_id,
            employee_name=employee.name,
            employee_email=employee.email,
            type=data.type.value,
            amount=data.amount,
            distance=data.distance,
            description=data.description,
            location=data.location,
            notes=data.notes,
            expense_date=data.expense_date,
            status=ClaimStatus.PENDING_L1.value,
            approver_l1_id=chain.get("L1"),
            approver_l2_id=chain.get("L2"),
            approver_l3_id=chain.get("L3"),
            submitted_at=now,
            updated_at=now,
            approvals=[],
        )

        async with self._session_factory() as session:
            session.add(claim)
            await session.flush()
            ledger_update = await self.on_claim_created(session, claim, employee)
            await session.commit()

        metrics.claims_created_total.labels(type=claim.type).inc()
        LOGGER.info(
            "claim_created",
            claim_id=claim.id,
            employee_id=claim.employee_id,
            type=claim.type,
            amount=str(claim.amount),
            chain=chain,
        )

        warnings = list(ledger_update.warnings)
        warnings.extend(await self._policy_warnings(employee.grade, data))
        if is_unapprovable(ClaimStatus.PENDING_L1, chain):
            warnings.append(
                "No L1 approver is configured; this claim cannot be approved until one is assigned."
            )

        created = ClaimCreated(
            claim_id=claim.id,
            initial_status=ClaimStatus.PENDING_L1,
            claim=ClaimRead.model_validate(claim),
            ledger=ledger_update.record,
        )
        return ServiceResult.ok(created, warnings=warnings)

    async def _policy_warnings(self, grade: str, data: ClaimCreate) -> list[str]:
        warnings: list[str] = []
        check = await self._policy.validate_claim_amount(grade, data.type, data.amount)
        if not check.is_valid:
            warnings.append(f"Amount is above the {data.type.value} entitlement. {check.message}")
        if data.type is ClaimType.FUEL and data.distance:
            entitlement = await self._policy.calculate_fuel_entitlement(grade, data.distance)
            if entitlement and data.amount > entitlement:
                warnings.append(
                    f"Fuel claim exceeds the entitlement of {format_rupees(Decimal(entitlement))} "
                    f"for {format(Decimal(data.distance).normalize(), 'f')} km"
                )
        return warnings

    @service_result("get_claim")
    async def get_claim(self, claim_id: str) -> ClaimRead:
        async with self._session_factory() as session:
            claim = await self._load_claim(session, claim_id)
        return ClaimRead.model_validate(claim)

    @service_result("list_claims_for_employee")
    async def list_claims_for_employee(self, employee_id: str) -> list[ClaimRead]:
        statement = (
            select(Claim)
            .options(selectinload(Claim.approvals))
            .where(Claim.employee_id == employee_id)
            .order_by(Claim.submitted_at.desc())
        )
        return await self._fetch(statement)

    @service_result("list_pending_claims_for_approver")
    async def list_pending_claims_for_approver(
        self, approver_id: str, level: ApprovalLevel | str
    ) -> list[ClaimRead]:
        level = parse_level(level)
        statement = (
            select(Claim)
            .options(selectinload(Claim.approvals))
            .where(
                Claim.status == pending_status_for(level).value,
                _CHAIN_COLUMNS[level] == approver_id,
            )
            .order_by(Claim.submitted_at.desc())
        )
        return await self._fetch(statement)

    @service_result("list_all_claims")
    async def list_all_claims(self, status: ClaimStatus | str | None = None) -> list[ClaimRead]:
        statement = select(Claim).options(selectinload(Claim.approvals))
        if status is not None:
            try:
                statement = statement.where(Claim.status == ClaimStatus(status).value)
            except ValueError:
                raise ValidationError(f"Unknown claim status {status!r}.") from None
        return await self._fetch(statement.order_by(Claim.submitted_at.desc()))

    @service_result("approve_claim")
    async def approve_claim(
        self,
        claim_id: str,
        approver_id: str,
        approver_name: str,
        approver_email: str,
        level: ApprovalLevel | str,
        comments: str | None = None,
    ) -> ClaimDecision:
        return await self._transition(
            claim_id,
            action=ApprovalAction.APPROVED,
            level=parse_level(level),
            approver_id=approver_id,
            approver_name=approver_name,
            approver_email=approver_email,
            comments=comments or "",
        )

    @service_result("reject_claim")
    async def reject_claim(
        self,
        claim_id: str,
        approver_id: str,
        approver_name: str,
        approver_email: str,
        level: ApprovalLevel | str,
        reason: str | None,
    ) -> ClaimDecision:
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("A rejection reason is required.")
        return await self._transition(
            claim_id,
            action=ApprovalAction.REJECTED,
            level=parse_level(level),
            approver_id=approver_id,
            approver_name=approver_name,
            approver_email=approver_email,
            comments=reason,
        )

    async def _transition(
        self,
        claim_id: str,
        *,
        action: ApprovalAction,
        level: ApprovalLevel,
        approver_id: str,
        approver_name: str,
        approver_email: str,
        comments: str,
    ) -> ClaimDecision:
        expected = pending_status_for(level)

        async with self._session_factory() as session:
            claim = await self._load_claim(session, claim_id)
            chain = claim.approval_chain
            new_status = advance(claim.status, chain, action, level)
            await self._authorize(claim, level, approver_id)

            now = self._clock.now()
            values: dict[str, Any] = {"status": new_status.value, "updated_at": now}
            if action is ApprovalAction.REJECTED:
                values["rejection_reason"] = comments

            result = await session.execute(
                update(Claim)
                .where(Claim.id == claim_id, Claim.status == expected.value)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                await session.rollback()
                metrics.claim_transitions_total.labels(action=action.value, outcome="conflict").inc()
                LOGGER.info(
                    "claim_transition_conflict",
                    claim_id=claim_id,
                    level=level.value,
                    approver_id=approver_id,
                )
                raise StaleStateError(
                    "The claim was updated by someone else. Refresh the claim and retry."
                )

            session.add(
                ClaimApproval(
                    claim_id=claim_id,
                    sequence=len(claim.approvals) + 1,
                    level=level.value,
                    approver_id=approver_id,
                    approver_name=approver_name,
                    approver_email=approver_email,
                    action=action.value,
                    comments=comments,
                    created_at=now,
                )
            )
            await session.commit()

        metrics.claim_transitions_total.labels(action=action.value, outcome="applied").inc()
        LOGGER.info(
            "claim_transitioned",
            claim_id=claim_id,
            action=action.value,
            level=level.value,
            approver_id=approver_id,
            new_status=new_status.value,
        )

        async with self._session_factory() as session:
            refreshed = await self._load_claim(session, claim_id)
        return ClaimDecision(
            claim_id=claim_id,
            new_status=new_status,
            claim=ClaimRead.model_validate(refreshed),
        )

    async def _authorize(self, claim: Claim, level: ApprovalLevel, approver_id: str) -> UserRole:
        """Admins act at any level; everyone else must hold the snapshot slot."""

        role = await self._roles.classify_role(approver_id)
        if role.type is RoleType.ADMIN:
            return role

        acting_as = role.employee_id or approver_id
        if acting_as == claim.employee_id:
            raise AuthorizationError("Approvers cannot act on their own claims.")
        if role.type is RoleType.MANAGER and claim.approval_chain.get(level.value) == acting_as:
            return role

        LOGGER.info(
            "claim_action_forbidden",
            claim_id=claim.id,
            level=level.value,
            approver_id=approver_id,
            role=role.type.value,
        )
        raise AuthorizationError(
            f"{approver_id} is not the {level.value} approver for this claim."
        )

    @staticmethod
    async def _load_claim(session: AsyncSession, claim_id: str) -> Claim:
        claim = (
            await session.execute(
                select(Claim)
                .options(selectinload(Claim.approvals))
                .where(Claim.id == claim_id)
                .execution_options(populate_existing=True)
            )
        ).scalar_one_or_none()
        if claim is None:
            raise NotFoundError(f"Claim {claim_id} not found.")
        return claim

    async def _fetch(self, statement) -> list[ClaimRead]:
        async with self._session_factory() as session:
            claims = (await session.execute(statement)).scalars().all()
        return [ClaimRead.model_validate(claim) for claim in claims]


__all__ = [
    "ClaimLifecycleEngine",
    "advance",
    "replay_status",
]
