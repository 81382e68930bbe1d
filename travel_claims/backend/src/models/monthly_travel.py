"""Monthly travel spend ledger model."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import Boolean, DateTime, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class MonthlyTravelData(Base):
    """Running per-employee, per-month totals checked against the grade limit."""

    __tablename__ = "monthly_travel_data"
    __table_args__ = (
        UniqueConstraint("employee_id", "month", name="uq_monthly_travel_employee_month"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    employee_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    employee_name: Mapped[str] = mapped_column(String(255), nullable=False)
    month: Mapped[str] = mapped_column(String(7), nullable=False, index=True)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month_number: Mapped[int] = mapped_column(Integer, nullable=False)
    total_claims: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=0)
    total_distance: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)
    fuel_claims: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    fuel_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=0)
    policy_limit: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    remaining_limit: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    exceeds_limit: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    last_updated: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


__all__ = ["MonthlyTravelData"]
