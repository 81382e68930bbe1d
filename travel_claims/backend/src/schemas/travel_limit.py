"""Monthly travel ledger schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class MonthlyTravelDataRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    employee_id: str
    employee_name: str
    month: str
    year: int
    month_number: int
    total_claims: int
    total_amount: Decimal
    total_distance: Decimal
    fuel_claims: int
    fuel_amount: Decimal
    policy_limit: Decimal
    remaining_limit: Decimal
    exceeds_limit: bool
    last_updated: datetime


class LedgerUpdate(BaseModel):
    record: MonthlyTravelDataRead
    warnings: list[str] = Field(default_factory=list)


class LimitCheck(BaseModel):
    """Advisory outcome of checking a proposed claim against the monthly cap."""

    is_valid: bool
    warning: str | None = None
    current_total: Decimal
    limit: Decimal


class LimitCheckRequest(BaseModel):
    amount: Decimal = Field(gt=0)
