"""Employee directory model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class Employee(Base):
    """Represents an employee record in the directory."""

    __tablename__ = "employees"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    employee_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    grade: Mapped[str] = mapped_column(String(64), nullable=False)
    designation: Mapped[str | None] = mapped_column(String(255), nullable=True)
    department: Mapped[str | None] = mapped_column(String(255), nullable=True)
    approver_l1_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    approver_l2_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    approver_l3_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default="1"
    )
    is_admin: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="0"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    @property
    def approval_chain(self) -> dict[str, str]:
        """Return the configured approvers keyed by level, skipping empty levels."""

        chain = {
            "L1": self.approver_l1_id,
            "L2": self.approver_l2_id,
            "L3": self.approver_l3_id,
        }
        return {level: approver for level, approver in chain.items() if approver}


__all__ = ["Employee"]
