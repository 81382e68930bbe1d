"""Shared fixtures: a throwaway SQLite file database and wired-up services."""

from __future__ import annotations

import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[4]))

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test_travel_claims.db")

import pytest

from travel_claims.backend.src.core.config import Settings
from travel_claims.backend.src.core.policy_cache import PolicyCache
from travel_claims.backend.src.db import build_engine, build_session_factory, create_all
from travel_claims.backend.src.models import Employee
from travel_claims.backend.src.services.claims import ClaimLifecycleEngine
from travel_claims.backend.src.services.directory import EmployeeDirectory
from travel_claims.backend.src.services.roles import RoleClassifier
from travel_claims.backend.src.services.travel_limits import MonthlyLimitLedger
from travel_claims.backend.src.services.travel_policy import PolicyTable


class FrozenClock:
    def __init__(self, moment: datetime) -> None:
        self.moment = moment

    def now(self) -> datetime:
        return self.moment

    def advance(self, **delta: float) -> None:
        self.moment = self.moment + timedelta(**delta)


DIRECTORY: tuple[dict[str, object], ...] = (
    {"employee_id": "A1", "name": "Anil Kapoor", "email": "anil@example.com", "grade": "Director"},
    {"employee_id": "H1", "name": "Hema Joshi", "email": "hema@example.com", "grade": "GM"},
    {"employee_id": "M1", "name": "Mohan Lal", "email": "mohan@example.com", "grade": "Manager"},
    {
        "employee_id": "E1",
        "name": "Esha Gupta",
        "email": "esha@example.com",
        "grade": "Executive",
        "approver_l1_id": "M1",
        "approver_l2_id": "H1",
        "approver_l3_id": "A1",
    },
    {
        "employee_id": "E2",
        "name": "Farhan Ali",
        "email": "farhan@example.com",
        "grade": "L2",
        "approver_l1_id": "M1",
    },
    {
        "employee_id": "E3",
        "name": "Gita Bose",
        "email": "gita@example.com",
        "grade": "Executive",
        "approver_l2_id": "H1",
        "approver_l3_id": "A1",
    },
    {
        "employee_id": "E4",
        "name": "Isha Sen",
        "email": "isha@example.com",
        "grade": "Executive",
        "approver_l1_id": "M1",
        "approver_l3_id": "A1",
    },
    {
        "employee_id": "X1",
        "name": "Xavier Pinto",
        "email": "xavier@example.com",
        "grade": "Officer",
        "approver_l1_id": "M1",
        "is_active": False,
    },
    {
        "employee_id": "S1",
        "name": "Sunita Rao",
        "email": "sunita@example.com",
        "grade": "Director",
        "is_admin": True,
    },
)


@pytest.fixture()
def clock() -> FrozenClock:
    return FrozenClock(datetime(2025, 3, 14, 9, 30, tzinfo=timezone.utc))


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        admin_identifiers_raw="",
        admin_email_keyword="admin",
        role_lookup_timeout_seconds=2.0,
    )


@pytest.fixture()
async def db_engine(tmp_path: Path):  # type: ignore[no-untyped-def]
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'claims.db'}")
    await create_all(engine)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_factory(db_engine):  # type: ignore[no-untyped-def]
    return build_session_factory(db_engine)


@pytest.fixture()
async def seeded(session_factory) -> None:  # type: ignore[no-untyped-def]
    async with session_factory() as session:
        session.add_all(Employee(**record) for record in DIRECTORY)
        await session.commit()


@pytest.fixture()
def policy() -> PolicyTable:
    return PolicyTable(PolicyCache())


@pytest.fixture()
def directory(session_factory, clock) -> EmployeeDirectory:  # type: ignore[no-untyped-def]
    return EmployeeDirectory(session_factory, clock=clock)


@pytest.fixture()
def ledger(session_factory, policy, clock) -> MonthlyLimitLedger:  # type: ignore[no-untyped-def]
    return MonthlyLimitLedger(session_factory, policy, clock=clock)


@pytest.fixture()
def roles(directory, settings) -> RoleClassifier:  # type: ignore[no-untyped-def]
    return RoleClassifier(directory, settings=settings)


@pytest.fixture()
def claims(session_factory, directory, ledger, roles, policy, clock) -> ClaimLifecycleEngine:  # type: ignore[no-untyped-def]
    return ClaimLifecycleEngine(
        session_factory,
        directory=directory,
        ledger=ledger,
        roles=roles,
        policy=policy,
        clock=clock,
    )
