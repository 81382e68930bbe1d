"""Unit tests for the monthly travel-limit ledger."""

from __future__ import annotations

import asyncio
import sys
from decimal import Decimal
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[4]))

from travel_claims.backend.src.core.errors import ErrorKind
from travel_claims.backend.src.services.travel_limits import MonthlyLimitLedger, format_rupees


async def _record(ledger: MonthlyLimitLedger, amount: str, *, grade: str = "C Class", **kwargs):  # type: ignore[no-untyped-def]
    result = await ledger.record_claim("E1", "Esha Gupta", grade, Decimal(amount), **kwargs)
    assert result.success, result.error
    return result


def test_format_rupees() -> None:
    assert format_rupees(Decimal("3000.00")) == "₹3000"
    assert format_rupees(Decimal("499.50")) == "₹499.5"
    assert format_rupees(Decimal("0")) == "₹0"


async def test_ledger_is_additive_within_a_month(ledger: MonthlyLimitLedger) -> None:
    await _record(ledger, "1000")
    await _record(ledger, "2000", distance=Decimal("40"), is_fuel=True)
    result = await _record(ledger, "1500")

    record = result.data.record
    assert record.month == "2025-03"
    assert record.total_claims == 3
    assert record.total_amount == Decimal("4500")
    assert record.total_distance == Decimal("40")
    assert record.fuel_claims == 1
    assert record.fuel_amount == Decimal("2000")
    assert record.policy_limit == Decimal("5000")
    assert record.exceeds_limit is False
    assert record.remaining_limit == Decimal("500")
    assert result.data.warnings == ["Only ₹500 remaining in monthly limit"]


async def test_staff_grade_without_own_cap_uses_default_limit(ledger: MonthlyLimitLedger) -> None:
    result = await _record(ledger, "4500", grade="Executive")

    assert result.data.record.policy_limit == Decimal("10000")
    assert result.data.record.remaining_limit == Decimal("5500")


async def test_paise_amounts_landing_exactly_on_the_limit(ledger: MonthlyLimitLedger) -> None:
    await _record(ledger, "4999.90")
    result = await _record(ledger, "0.10")

    record = result.data.record
    assert record.total_amount == Decimal("5000.00")
    assert record.exceeds_limit is False
    assert record.remaining_limit == Decimal("0")
    assert result.data.warnings == []


async def test_l2_scenario_with_advisory_check(ledger: MonthlyLimitLedger) -> None:
    first = await _record(ledger, "20000", grade="L2")
    assert first.data.record.total_amount == Decimal("20000")
    assert first.data.record.remaining_limit == Decimal("5000")
    assert first.data.record.exceeds_limit is False
    assert first.data.warnings == []

    check = await ledger.validate_monthly_limit("E1", "L2", Decimal("8000"))
    assert check.success
    assert check.data.is_valid is False
    assert check.data.current_total == Decimal("20000")
    assert check.data.limit == Decimal("25000")
    assert check.data.warning == "Total monthly claims would exceed limit by ₹3000"

    second = await _record(ledger, "8000", grade="L2")
    assert second.data.record.total_amount == Decimal("28000")
    assert second.data.record.remaining_limit == Decimal("0")
    assert second.data.record.exceeds_limit is True
    assert second.data.warnings == ["Monthly travel limit exceeded by ₹3000"]


async def test_validate_without_history(ledger: MonthlyLimitLedger) -> None:
    within = await ledger.validate_monthly_limit("E9", "C Class", Decimal("4000"))
    over = await ledger.validate_monthly_limit("E9", "C Class", Decimal("6000"))

    assert within.data.is_valid is True
    assert within.data.warning is None
    assert over.data.is_valid is False
    assert over.data.warning == "Claim exceeds monthly limit of ₹5000"


async def test_limit_follows_current_grade(ledger: MonthlyLimitLedger) -> None:
    await _record(ledger, "4000", grade="C Class")
    result = await _record(ledger, "2000", grade="L2")

    assert result.data.record.policy_limit == Decimal("25000")
    assert result.data.record.exceeds_limit is False


async def test_new_month_starts_a_new_bucket(ledger: MonthlyLimitLedger, clock) -> None:  # type: ignore[no-untyped-def]
    await _record(ledger, "1000")
    clock.advance(days=30)
    await _record(ledger, "700")

    march = await ledger.get_monthly_travel_data("E1", "2025-03")
    april = await ledger.get_monthly_travel_data("E1")

    assert march.data.total_amount == Decimal("1000")
    assert april.data.month == "2025-04"
    assert april.data.total_amount == Decimal("700")


async def test_missing_month_returns_none(ledger: MonthlyLimitLedger) -> None:
    result = await ledger.get_monthly_travel_data("E1", "2024-01")

    assert result.success is True
    assert result.data is None


async def test_malformed_month_is_a_validation_error(ledger: MonthlyLimitLedger) -> None:
    result = await ledger.get_monthly_travel_data("E1", "March")

    assert result.success is False
    assert result.error_kind is ErrorKind.VALIDATION


async def test_non_positive_amount_is_rejected(ledger: MonthlyLimitLedger) -> None:
    result = await ledger.record_claim("E1", "Esha Gupta", "L2", Decimal("0"))

    assert result.success is False
    assert result.error_kind is ErrorKind.VALIDATION
    assert (await ledger.get_monthly_travel_data("E1")).data is None


async def test_concurrent_records_do_not_lose_updates(ledger: MonthlyLimitLedger) -> None:
    results = await asyncio.gather(
        *(ledger.record_claim("E1", "Esha Gupta", "L2", Decimal("100")) for _ in range(5))
    )

    assert all(result.success for result in results)
    totals = await ledger.get_monthly_travel_data("E1")
    assert totals.data.total_claims == 5
    assert totals.data.total_amount == Decimal("500")


async def test_monthly_report_lists_largest_first(ledger: MonthlyLimitLedger) -> None:
    await ledger.record_claim("E1", "Esha Gupta", "L2", Decimal("100"))
    await ledger.record_claim("E2", "Farhan Ali", "L2", Decimal("900"))

    report = await ledger.list_monthly_travel_data()

    assert [row.employee_id for row in report.data] == ["E2", "E1"]
