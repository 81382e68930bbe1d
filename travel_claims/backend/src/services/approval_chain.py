"""Approval chain snapshotting and level sequencing.

A chain maps levels to approver employee ids. Levels may be absent, so the
number of hops per claim is whatever the snapshot holds; all sequencing works
over the ordered list of present levels.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..core.enums import ApprovalLevel, ClaimStatus
from ..core.errors import ValidationError

LEVEL_ORDER: tuple[ApprovalLevel, ...] = (ApprovalLevel.L1, ApprovalLevel.L2, ApprovalLevel.L3)

_PENDING_STATUS = {
    ApprovalLevel.L1: ClaimStatus.PENDING_L1,
    ApprovalLevel.L2: ClaimStatus.PENDING_L2,
    ApprovalLevel.L3: ClaimStatus.PENDING_L3,
}
_LEVEL_FOR_STATUS = {status: level for level, status in _PENDING_STATUS.items()}


def level_rank(level: ApprovalLevel | str) -> int:
    return LEVEL_ORDER.index(parse_level(level)) + 1


def parse_level(value: ApprovalLevel | str) -> ApprovalLevel:
    """Normalize ``value`` (any case) to an :class:`ApprovalLevel`."""

    if isinstance(value, ApprovalLevel):
        return value
    candidate = str(value or "").strip().upper()
    try:
        return ApprovalLevel(candidate)
    except ValueError:
        raise ValidationError(f"Unknown approval level {value!r}; use L1, L2 or L3.") from None


def pending_status_for(level: ApprovalLevel | str) -> ClaimStatus:
    return _PENDING_STATUS[parse_level(level)]


def level_for_status(status: ClaimStatus | str) -> ApprovalLevel | None:
    """Return the level a pending status waits on, or ``None`` for terminal states."""

    return _LEVEL_FOR_STATUS.get(ClaimStatus(status))


def is_unapprovable(status: ClaimStatus | str, chain: Mapping[str, str]) -> bool:
    """True when the claim waits on a level with no approver in its snapshot."""

    level = level_for_status(status)
    return level is not None and not chain.get(level.value)


def snapshot_approval_chain(employee: Any) -> dict[str, str]:
    """Copy the employee's current chain verbatim (present levels only)."""

    chain: Mapping[str, str | None] = getattr(employee, "approval_chain", None) or {}
    return {
        level.value: chain[level.value]
        for level in LEVEL_ORDER
        if chain.get(level.value)
    }


def present_levels(chain: Mapping[Any, str | None]) -> list[ApprovalLevel]:
    """Return the levels that have an approver, in approval order."""

    present: list[ApprovalLevel] = []
    for level in LEVEL_ORDER:
        if chain.get(level.value) or chain.get(level):
            present.append(level)
    return present


def next_level_after(
    chain: Mapping[Any, str | None], current: ApprovalLevel | str
) -> ApprovalLevel | None:
    """Return the next level with an approver after ``current``, if any."""

    rank = level_rank(current)
    for level in present_levels(chain):
        if level_rank(level) > rank:
            return level
    return None


__all__ = [
    "LEVEL_ORDER",
    "is_unapprovable",
    "level_for_status",
    "level_rank",
    "next_level_after",
    "parse_level",
    "pending_status_for",
    "present_levels",
    "snapshot_approval_chain",
]
