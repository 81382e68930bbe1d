"""Role and permission schemas."""

from pydantic import BaseModel, Field

from ..core.enums import ApprovalLevel, RoleType


class UserRole(BaseModel):
    type: RoleType
    level: ApprovalLevel | None = None
    managed_employee_ids: list[str] = Field(default_factory=list)
    employee_id: str | None = None


class RolePermissions(BaseModel):
    can_create_claims: bool
    can_approve_claims: bool
    can_view_all_claims: bool
    can_manage_employees: bool
    approval_level: ApprovalLevel | None = None


class RoleSummary(BaseModel):
    role: UserRole
    permissions: RolePermissions
    approvable_levels: list[ApprovalLevel] = Field(default_factory=list)
