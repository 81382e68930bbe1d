"""Closed value sets shared by models, schemas and services."""

from __future__ import annotations

from enum import Enum


class ClaimType(str, Enum):
    TRAVEL = "travel"
    ACCOMMODATION = "accommodation"
    FOOD = "food"
    FUEL = "fuel"
    COMMUNICATION = "communication"
    OTHER = "other"
    MEDICAL = "medical"


class ClaimStatus(str, Enum):
    PENDING_L1 = "pending_l1"
    PENDING_L2 = "pending_l2"
    PENDING_L3 = "pending_l3"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self in (ClaimStatus.APPROVED, ClaimStatus.REJECTED)


class ApprovalLevel(str, Enum):
    L1 = "L1"
    L2 = "L2"
    L3 = "L3"


class ApprovalAction(str, Enum):
    APPROVED = "approved"
    REJECTED = "rejected"


class RoleType(str, Enum):
    EMPLOYEE = "employee"
    MANAGER = "manager"
    ADMIN = "admin"


class LocationType(str, Enum):
    FOOD = "food"
    TOWN = "town"
    CAPITAL = "capital"
    METRO = "metro"


__all__ = [
    "ApprovalAction",
    "ApprovalLevel",
    "ClaimStatus",
    "ClaimType",
    "LocationType",
    "RoleType",
]
