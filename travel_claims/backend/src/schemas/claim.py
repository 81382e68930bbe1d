"""Claim schemas."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, computed_field

from ..core.enums import ApprovalAction, ApprovalLevel, ClaimStatus, ClaimType
from ..services.approval_chain import is_unapprovable
from .travel_limit import MonthlyTravelDataRead


class ClaimCreate(BaseModel):
    """Payload for submitting a new claim."""

    employee_id: str = Field(min_length=1)
    type: ClaimType
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    description: str = ""
    expense_date: date
    location: str | None = None
    distance: Decimal | None = Field(default=None, ge=0)
    notes: str | None = None


class ClaimApprovalRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    sequence: int
    level: ApprovalLevel
    approver_id: str
    approver_name: str
    approver_email: str
    action: ApprovalAction
    comments: str | None
    created_at: datetime


class ClaimRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    employee_id: str
    employee_name: str
    employee_email: str
    type: ClaimType
    amount: Decimal
    distance: Decimal | None
    description: str
    location: str | None
    notes: str | None
    expense_date: date
    status: ClaimStatus
    approval_chain: dict[ApprovalLevel, str]
    approvals: list[ClaimApprovalRead] = []
    rejection_reason: str | None
    submitted_at: datetime
    updated_at: datetime

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_stuck(self) -> bool:
        """True when the claim waits on a level nobody holds."""

        return is_unapprovable(self.status, self.approval_chain)


class ClaimCreated(BaseModel):
    claim_id: str
    initial_status: ClaimStatus
    claim: ClaimRead
    ledger: MonthlyTravelDataRead


class ClaimDecision(BaseModel):
    claim_id: str
    new_status: ClaimStatus
    claim: ClaimRead


class ApprovePayload(BaseModel):
    level: str
    comments: str | None = None


class RejectPayload(BaseModel):
    level: str
    reason: str | None = None
