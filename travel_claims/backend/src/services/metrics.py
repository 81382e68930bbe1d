"""Prometheus metric definitions for the claims workflow."""

from __future__ import annotations

from prometheus_client import Counter

claims_created_total = Counter(
    "claims_created_total",
    "Claims submitted, by claim type.",
    labelnames=["type"],
)

claim_transitions_total = Counter(
    "claim_transitions_total",
    "Approval actions on claims by action and outcome.",
    labelnames=["action", "outcome"],
)

ledger_updates_total = Counter(
    "ledger_updates_total",
    "Monthly travel ledger accumulations.",
)

role_lookup_fallbacks_total = Counter(
    "role_lookup_fallbacks_total",
    "Role lookups that fell back to the employee role.",
    labelnames=["reason"],
)

__all__ = [
    "claim_transitions_total",
    "claims_created_total",
    "ledger_updates_total",
    "role_lookup_fallbacks_total",
]
