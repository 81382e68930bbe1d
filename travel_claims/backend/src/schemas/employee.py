"""Employee directory schemas."""

from pydantic import BaseModel, ConfigDict

from ..core.enums import ApprovalLevel


class EmployeeRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    employee_id: str
    name: str
    email: str
    grade: str
    designation: str | None
    department: str | None
    approval_chain: dict[ApprovalLevel, str]
    is_active: bool


class ApprovalChainUpdate(BaseModel):
    """New approvers per level; ``None`` clears a level."""

    L1: str | None = None
    L2: str | None = None
    L3: str | None = None

    def as_chain(self) -> dict[str, str]:
        return {
            level: approver.strip()
            for level, approver in self.model_dump().items()
            if approver and approver.strip()
        }


class ApprovalChainIssue(BaseModel):
    employee_id: str
    level: ApprovalLevel
    approver_id: str
    problem: str
