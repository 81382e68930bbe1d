"""Unit tests for the employee directory service."""

from __future__ import annotations

import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[4]))

import pytest

from travel_claims.backend.src.core.errors import DependencyError, NotFoundError, ValidationError
from travel_claims.backend.src.services.directory import EmployeeDirectory

pytestmark = pytest.mark.usefixtures("seeded")


async def test_lookup_by_id_or_email(directory: EmployeeDirectory) -> None:
    by_id = await directory.get_employee_by_identifier("E1")
    by_email = await directory.get_employee_by_identifier("ESHA@example.com")

    assert by_id is not None and by_email is not None
    assert by_id.employee_id == by_email.employee_id == "E1"
    assert await directory.get_employee_by_identifier("nobody") is None
    assert await directory.get_employee_by_identifier("  ") is None


async def test_update_employee_rejects_unknown_fields(directory: EmployeeDirectory) -> None:
    with pytest.raises(ValidationError):
        await directory.update_employee("E1", {"is_admin": True})

    updated = await directory.update_employee("E1", {"grade": "Sr. Executive"})
    assert updated.grade == "Sr. Executive"
    assert updated.updated_at is not None


async def test_update_missing_employee(directory: EmployeeDirectory) -> None:
    with pytest.raises(NotFoundError):
        await directory.update_employee("NOPE", {"grade": "L2"})


async def test_assign_approval_chain_replaces_levels(directory: EmployeeDirectory) -> None:
    employee = await directory.assign_approval_chain("E3", {"l1": "M1", "L3": "A1"})

    assert employee.approval_chain == {"L1": "M1", "L3": "A1"}


@pytest.mark.parametrize(
    ("chain", "message"),
    [
        ({"L1": "E3"}, "cannot approve their own"),
        ({"L1": "GHOST"}, "does not exist"),
        ({"L2": "X1"}, "inactive"),
    ],
)
async def test_assign_approval_chain_validates_approvers(
    directory: EmployeeDirectory, chain: dict[str, str], message: str
) -> None:
    with pytest.raises(ValidationError) as excinfo:
        await directory.assign_approval_chain("E3", chain)

    assert message in excinfo.value.message
    unchanged = await directory.get_employee_by_identifier("E3")
    assert unchanged is not None
    assert unchanged.approval_chain == {"L2": "H1", "L3": "A1"}


async def test_deactivate_and_chain_issues(directory: EmployeeDirectory) -> None:
    await directory.deactivate_employee("H1")

    issues = await directory.find_approval_chain_issues()
    problems = {(issue.employee_id, issue.level.value, issue.problem) for issue in issues}

    assert ("E1", "L2", "approver inactive") in problems
    assert ("E3", "L2", "approver inactive") in problems
    assert ("E3", "L1", "no L1 approver; new claims cannot progress") in problems
    assert all(issue.employee_id != "X1" for issue in issues)


async def test_storage_failure_is_a_dependency_error(db_engine, session_factory) -> None:  # type: ignore[no-untyped-def]
    directory = EmployeeDirectory(session_factory)
    async with db_engine.begin() as connection:
        await connection.exec_driver_sql("DROP TABLE employees")

    with pytest.raises(DependencyError):
        await directory.get_all_employees()
