"""ORM models exposed for easy imports."""

from .approval import ClaimApproval
from .claim import Claim
from .employee import Employee
from .monthly_travel import MonthlyTravelData

__all__ = [
    "Claim",
    "ClaimApproval",
    "Employee",
    "MonthlyTravelData",
]
