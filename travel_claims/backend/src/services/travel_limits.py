"""Monthly travel-limit ledger.

One row per employee per calendar month accumulates every submitted claim.
The ledger never refuses to record; limit checks only produce warnings.
"""

from __future__ import annotations

import re
from decimal import Decimal

import structlog
from sqlalchemy import case, select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..core.clock import Clock, SystemClock, month_key
from ..core.errors import DependencyError, ValidationError, service_result
from ..models import MonthlyTravelData
from ..schemas.travel_limit import LedgerUpdate, LimitCheck, MonthlyTravelDataRead
from . import metrics
from .travel_policy import LOW_BALANCE_THRESHOLD, PolicyTable

LOGGER = structlog.get_logger(__name__)

_MONTH_PATTERN = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")
_UPSERT_BY_DIALECT = {
    "postgresql": postgresql_insert,
    "sqlite": sqlite_insert,
}


def format_rupees(amount: Decimal) -> str:
    """Render an amount as ``₹1234`` or ``₹1234.5`` without trailing zeros."""

    quantized = Decimal(amount).quantize(Decimal("0.01"))
    text = format(quantized.normalize(), "f")
    return f"₹{text}"


def _resolve_month(month: str | None, clock: Clock) -> str:
    if month is None:
        return month_key(clock.now())
    if not _MONTH_PATTERN.match(month):
        raise ValidationError(f"Month must look like YYYY-MM, got {month!r}.")
    return month


def ledger_warnings(record: MonthlyTravelData | MonthlyTravelDataRead) -> list[str]:
    warnings: list[str] = []
    if record.exceeds_limit:
        overage = record.total_amount - record.policy_limit
        warnings.append(f"Monthly travel limit exceeded by {format_rupees(overage)}")
    if Decimal(0) < record.remaining_limit < LOW_BALANCE_THRESHOLD:
        warnings.append(f"Only {format_rupees(record.remaining_limit)} remaining in monthly limit")
    return warnings


class MonthlyLimitLedger:
    """Per-employee, per-month spend totals compared against the grade limit."""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        policy: PolicyTable,
        clock: Clock | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._policy = policy
        self._clock = clock or SystemClock()

    async def accumulate(
        self,
        session: AsyncSession,
        *,
        employee_id: str,
        employee_name: str,
        grade: str,
        amount: Decimal,
        distance: Decimal | None = None,
        is_fuel: bool = False,
    ) -> LedgerUpdate:
        """Add one claim to the current month inside the caller's transaction.

        A single ``INSERT ... ON CONFLICT DO UPDATE`` adds the deltas in the
        database, so concurrent submissions for the same month never lose an
        update. The limit applied is the grade's current one.

        PostgreSQL does the sums in exact ``NUMERIC``. SQLite binds ``Numeric``
        values as floats, so there the sums and the ``exceeds_limit`` comparison
        run in binary floating point and are read back rounded to paise. That
        is exact for paise-valued amounts at dev magnitudes, not in general.
        """

        now = self._clock.now()
        month = month_key(now)
        amount = Decimal(amount)
        distance = Decimal(distance or 0)
        limit = self._policy.lookup_monthly_limit(grade)

        insert = _UPSERT_BY_DIALECT.get(session.bind.dialect.name)
        if insert is None:
            raise DependencyError(
                f"No atomic upsert available for dialect {session.bind.dialect.name}"
            )

        table = MonthlyTravelData.__table__
        statement = insert(table).values(
            employee_id=employee_id,
            employee_name=employee_name,
            month=month,
            year=now.year,
            month_number=now.month,
            total_claims=1,
            total_amount=amount,
            total_distance=distance,
            fuel_claims=1 if is_fuel else 0,
            fuel_amount=amount if is_fuel else Decimal(0),
            policy_limit=limit,
            remaining_limit=max(Decimal(0), limit - amount),
            exceeds_limit=amount > limit,
            last_updated=now,
        )
        excluded = statement.excluded
        new_total = table.c.total_amount + excluded.total_amount
        headroom = excluded.policy_limit - new_total
        statement = statement.on_conflict_do_update(
            index_elements=["employee_id", "month"],
            set_={
                "employee_name": excluded.employee_name,
                "total_claims": table.c.total_claims + excluded.total_claims,
                "total_amount": new_total,
                "total_distance": table.c.total_distance + excluded.total_distance,
                "fuel_claims": table.c.fuel_claims + excluded.fuel_claims,
                "fuel_amount": table.c.fuel_amount + excluded.fuel_amount,
                "policy_limit": excluded.policy_limit,
                "remaining_limit": case((headroom > 0, headroom), else_=0),
                "exceeds_limit": new_total > excluded.policy_limit,
                "last_updated": excluded.last_updated,
            },
        )
        await session.execute(statement)

        record = (
            await session.execute(
                select(MonthlyTravelData)
                .where(
                    MonthlyTravelData.employee_id == employee_id,
                    MonthlyTravelData.month == month,
                )
                .execution_options(populate_existing=True)
            )
        ).scalar_one()
        snapshot = MonthlyTravelDataRead.model_validate(record)
        metrics.ledger_updates_total.inc()
        LOGGER.info(
            "monthly_ledger_updated",
            employee_id=employee_id,
            month=month,
            total_amount=str(snapshot.total_amount),
            exceeds_limit=snapshot.exceeds_limit,
        )
        return LedgerUpdate(record=snapshot, warnings=ledger_warnings(snapshot))

    @service_result("record_claim")
    async def record_claim(
        self,
        employee_id: str,
        employee_name: str,
        grade: str,
        amount: Decimal,
        distance: Decimal | None = None,
        is_fuel: bool = False,
    ) -> LedgerUpdate:
        if Decimal(amount) <= 0:
            raise ValidationError("Amount must be greater than zero.")
        async with self._session_factory() as session:
            update = await self.accumulate(
                session,
                employee_id=employee_id,
                employee_name=employee_name,
                grade=grade,
                amount=amount,
                distance=distance,
                is_fuel=is_fuel,
            )
            await session.commit()
        return update

    @service_result("get_monthly_travel_data")
    async def get_monthly_travel_data(
        self, employee_id: str, month: str | None = None
    ) -> MonthlyTravelDataRead | None:
        target = _resolve_month(month, self._clock)
        async with self._session_factory() as session:
            record = (
                await session.execute(
                    select(MonthlyTravelData).where(
                        MonthlyTravelData.employee_id == employee_id,
                        MonthlyTravelData.month == target,
                    )
                )
            ).scalar_one_or_none()
        if record is None:
            return None
        return MonthlyTravelDataRead.model_validate(record)

    @service_result("list_monthly_travel_data")
    async def list_monthly_travel_data(self, month: str | None = None) -> list[MonthlyTravelDataRead]:
        target = _resolve_month(month, self._clock)
        async with self._session_factory() as session:
            records = (
                await session.execute(
                    select(MonthlyTravelData)
                    .where(MonthlyTravelData.month == target)
                    .order_by(MonthlyTravelData.total_amount.desc())
                )
            ).scalars().all()
        return [MonthlyTravelDataRead.model_validate(record) for record in records]

    @service_result("validate_monthly_limit")
    async def validate_monthly_limit(
        self, employee_id: str, grade: str, proposed_amount: Decimal
    ) -> LimitCheck:
        """Advisory check of a proposed claim against this month's running total."""

        proposed = Decimal(proposed_amount)
        limit = self._policy.lookup_monthly_limit(grade)
        month = month_key(self._clock.now())
        async with self._session_factory() as session:
            current = (
                await session.execute(
                    select(MonthlyTravelData.total_amount).where(
                        MonthlyTravelData.employee_id == employee_id,
                        MonthlyTravelData.month == month,
                    )
                )
            ).scalar_one_or_none()

        if current is None:
            return LimitCheck(
                is_valid=proposed <= limit,
                warning=(
                    f"Claim exceeds monthly limit of {format_rupees(limit)}"
                    if proposed > limit
                    else None
                ),
                current_total=Decimal(0),
                limit=limit,
            )

        current_total = Decimal(current)
        new_total = current_total + proposed
        warning = None
        if new_total > limit:
            warning = (
                f"Total monthly claims would exceed limit by {format_rupees(new_total - limit)}"
            )
        return LimitCheck(
            is_valid=new_total <= limit,
            warning=warning,
            current_total=current_total,
            limit=limit,
        )


__all__ = ["MonthlyLimitLedger", "format_rupees", "ledger_warnings"]
