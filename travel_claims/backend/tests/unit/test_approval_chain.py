"""Unit tests for chain sequencing and the pure status transition."""

from __future__ import annotations

import sys
from datetime import date, datetime, timezone
from decimal import Decimal
from pathlib import Path
from types import SimpleNamespace

sys.path.append(str(Path(__file__).resolve().parents[4]))

import pytest

from travel_claims.backend.src.core.enums import ApprovalAction, ApprovalLevel, ClaimStatus
from travel_claims.backend.src.core.errors import StaleStateError, ValidationError
from travel_claims.backend.src.schemas.claim import ClaimRead
from travel_claims.backend.src.services.approval_chain import (
    is_unapprovable,
    level_for_status,
    level_rank,
    next_level_after,
    parse_level,
    present_levels,
    snapshot_approval_chain,
)
from travel_claims.backend.src.services.claims import advance, replay_status

FULL_CHAIN = {"L1": "M1", "L2": "H1", "L3": "A1"}


def test_parse_level_is_case_insensitive() -> None:
    assert parse_level("l2") is ApprovalLevel.L2
    assert parse_level(" L3 ") is ApprovalLevel.L3
    with pytest.raises(ValidationError):
        parse_level("L4")


def test_level_ranks() -> None:
    assert [level_rank(level) for level in ("L1", "L2", "L3")] == [1, 2, 3]


def test_present_levels_skip_gaps() -> None:
    assert present_levels({"L1": "M1", "L3": "A1"}) == [ApprovalLevel.L1, ApprovalLevel.L3]
    assert next_level_after({"L1": "M1", "L3": "A1"}, "L1") is ApprovalLevel.L3
    assert next_level_after({"L1": "M1"}, "L1") is None


def test_snapshot_copies_present_levels_only() -> None:
    employee = SimpleNamespace(approval_chain={"L1": "M1", "L2": None, "L3": "A1"})

    assert snapshot_approval_chain(employee) == {"L1": "M1", "L3": "A1"}


def test_full_chain_walks_every_level() -> None:
    status = ClaimStatus.PENDING_L1
    for level, expected in (
        ("L1", ClaimStatus.PENDING_L2),
        ("L2", ClaimStatus.PENDING_L3),
        ("L3", ClaimStatus.APPROVED),
    ):
        status = advance(status, FULL_CHAIN, ApprovalAction.APPROVED, level)
        assert status is expected


def test_missing_l2_skips_straight_to_l3() -> None:
    chain = {"L1": "M1", "L3": "A1"}

    assert advance("pending_l1", chain, "approved", "L1") is ClaimStatus.PENDING_L3


def test_single_level_chain_approves_at_l1() -> None:
    assert advance("pending_l1", {"L1": "M1"}, "approved", "L1") is ClaimStatus.APPROVED


def test_rejection_is_terminal_at_any_level() -> None:
    assert advance("pending_l2", FULL_CHAIN, "rejected", "L2") is ClaimStatus.REJECTED


@pytest.mark.parametrize(
    ("status", "level"),
    [("pending_l2", "L1"), ("approved", "L3"), ("rejected", "L1"), ("pending_l1", "L2")],
)
def test_precondition_mismatch_is_stale(status: str, level: str) -> None:
    with pytest.raises(StaleStateError):
        advance(status, FULL_CHAIN, "approved", level)


def test_replay_reproduces_status() -> None:
    history = [
        SimpleNamespace(level="L1", action="approved"),
        SimpleNamespace(level="L2", action="approved"),
    ]

    assert replay_status(FULL_CHAIN, history) is ClaimStatus.PENDING_L3
    assert replay_status(FULL_CHAIN, []) is ClaimStatus.PENDING_L1
    assert (
        replay_status(FULL_CHAIN, history[:1] + [SimpleNamespace(level="L2", action="rejected")])
        is ClaimStatus.REJECTED
    )


def test_unapprovable_when_waiting_on_empty_slot() -> None:
    no_l1 = {"L2": "H1", "L3": "A1"}

    assert is_unapprovable("pending_l1", no_l1) is True
    assert is_unapprovable("pending_l2", no_l1) is False
    assert is_unapprovable("approved", no_l1) is False
    assert level_for_status("approved") is None


@pytest.mark.parametrize(
    ("status", "chain", "stuck"),
    [
        ("pending_l1", {"L2": "H1"}, True),
        ("pending_l3", {"L1": "M1", "L2": "H1"}, True),
        ("pending_l2", {"L1": "M1", "L2": "H1"}, False),
        ("rejected", {}, False),
    ],
)
def test_claim_read_is_stuck_follows_empty_slot_rule(
    status: str, chain: dict[str, str], stuck: bool
) -> None:
    moment = datetime(2025, 3, 14, 9, 30, tzinfo=timezone.utc)
    claim = ClaimRead(
        id="c-1",
        employee_id="E1",
        employee_name="Esha Gupta",
        employee_email="esha@example.com",
        type="travel",
        amount=Decimal("100"),
        distance=None,
        description="",
        location=None,
        notes=None,
        expense_date=date(2025, 3, 10),
        status=status,
        approval_chain=chain,
        rejection_reason=None,
        submitted_at=moment,
        updated_at=moment,
    )

    assert claim.is_stuck is stuck
    assert claim.is_stuck is is_unapprovable(status, chain)
