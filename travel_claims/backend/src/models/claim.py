"""Expense claim model."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import uuid4

from sqlalchemy import Date, DateTime, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base


def _new_claim_id() -> str:
    return uuid4().hex


class Claim(Base):
    """Represents an expense claim moving through the approval chain.

    The ``approver_l*_id`` columns are a snapshot of the submitter's chain at
    submission time and are never rewritten afterwards.
    """

    __tablename__ = "claims"
    __table_args__ = (
        Index("ix_claims_status_l1", "status", "approver_l1_id"),
        Index("ix_claims_status_l2", "status", "approver_l2_id"),
        Index("ix_claims_status_l3", "status", "approver_l3_id"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_claim_id)
    employee_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    employee_name: Mapped[str] = mapped_column(String(255), nullable=False)
    employee_email: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    distance: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    expense_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(32), nullable=False)
    approver_l1_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    approver_l2_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    approver_l3_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    submitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    approvals: Mapped[list["ClaimApproval"]] = relationship(
        "ClaimApproval",
        back_populates="claim",
        order_by="ClaimApproval.sequence",
    )

    @property
    def approval_chain(self) -> dict[str, str]:
        chain = {
            "L1": self.approver_l1_id,
            "L2": self.approver_l2_id,
            "L3": self.approver_l3_id,
        }
        return {level: approver for level, approver in chain.items() if approver}


__all__ = ["Claim"]
