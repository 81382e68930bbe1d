"""Utilities for seeding development data."""

from __future__ import annotations

from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Employee

DEMO_EMPLOYEES: tuple[dict[str, object], ...] = (
    {
        "employee_id": "ADMIN001",
        "name": "Asha Rao",
        "email": "admin@travelclaims.example",
        "grade": "Director",
        "designation": "Finance Director",
        "department": "Finance",
        "is_admin": True,
    },
    {
        "employee_id": "HR001",
        "name": "Imran Sheikh",
        "email": "imran.sheikh@travelclaims.example",
        "grade": "GM",
        "designation": "HR Head",
        "department": "Human Resources",
        "approver_l3_id": "ADMIN001",
    },
    {
        "employee_id": "MGR001",
        "name": "Kavita Menon",
        "email": "kavita.menon@travelclaims.example",
        "grade": "Manager",
        "designation": "Regional Sales Manager",
        "department": "Sales",
        "approver_l2_id": "HR001",
        "approver_l3_id": "ADMIN001",
    },
    {
        "employee_id": "MGR002",
        "name": "Rohit Verma",
        "email": "rohit.verma@travelclaims.example",
        "grade": "Sr. Manager",
        "designation": "Operations Lead",
        "department": "Operations",
        "approver_l2_id": "HR001",
        "approver_l3_id": "ADMIN001",
    },
    {
        "employee_id": "EMP001",
        "name": "Priya Nair",
        "email": "priya.nair@travelclaims.example",
        "grade": "Executive",
        "designation": "Sales Executive",
        "department": "Sales",
        "approver_l1_id": "MGR001",
        "approver_l2_id": "HR001",
        "approver_l3_id": "ADMIN001",
    },
    {
        "employee_id": "EMP002",
        "name": "Arjun Das",
        "email": "arjun.das@travelclaims.example",
        "grade": "Sr. Executive",
        "designation": "Field Engineer",
        "department": "Operations",
        "approver_l1_id": "MGR002",
        "approver_l2_id": "HR001",
        "approver_l3_id": "ADMIN001",
    },
    {
        "employee_id": "EMP003",
        "name": "Meera Iyer",
        "email": "meera.iyer@travelclaims.example",
        "grade": "Officer",
        "designation": "Sales Executive",
        "department": "Sales",
        "approver_l1_id": "MGR001",
        "approver_l3_id": "ADMIN001",
    },
    {
        "employee_id": "EMP004",
        "name": "Sanjay Kulkarni",
        "email": "sanjay.kulkarni@travelclaims.example",
        "grade": "Asst. Manager",
        "designation": "Service Technician",
        "department": "Operations",
        "approver_l1_id": "MGR002",
        "approver_l2_id": "HR001",
    },
)


@dataclass
class SeedResult:
    """Employee ids created or refreshed by a seeding run."""

    created: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)


async def seed_demo_directory(
    session: AsyncSession,
    employees: tuple[dict[str, object], ...] = DEMO_EMPLOYEES,
) -> SeedResult:
    """Ensure the demo directory exists; existing rows are brought back in line.

    Approvers are listed before their reports so chains never point forward.
    """

    result = SeedResult()
    for record in employees:
        employee = (
            await session.execute(
                select(Employee).where(Employee.employee_id == record["employee_id"])
            )
        ).scalar_one_or_none()
        if employee is None:
            session.add(Employee(**record))
            result.created.append(str(record["employee_id"]))
            continue

        desired = {"approver_l1_id": None, "approver_l2_id": None, "approver_l3_id": None, **record}
        changed = False
        for key, value in desired.items():
            if getattr(employee, key) != value:
                setattr(employee, key, value)
                changed = True
        if changed:
            result.updated.append(employee.employee_id)

    await session.flush()
    return result
