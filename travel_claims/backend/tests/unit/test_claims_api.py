"""API tests for the claims, approvals, travel-limit and directory endpoints."""

from __future__ import annotations

import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[4]))

import httpx
import pytest

from travel_claims.backend.src.api.dependencies import get_clock
from travel_claims.backend.src.core.config import get_settings
from travel_claims.backend.src.db import get_session_factory
from travel_claims.backend.src.main import app

pytestmark = pytest.mark.usefixtures("seeded")

CLAIM = {
    "type": "travel",
    "amount": "1200.50",
    "description": "Cab to plant",
    "expense_date": "2025-03-10",
}


@pytest.fixture()
async def client(session_factory, clock, settings):  # type: ignore[no-untyped-def]
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_settings] = lambda: settings
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        yield http
    app.dependency_overrides.clear()


def _as(user: str) -> dict[str, str]:
    return {"X-User-Id": user}


async def _submit(client: httpx.AsyncClient, user: str = "E1", **overrides: object) -> str:
    response = await client.post("/api/claims", json={**CLAIM, **overrides}, headers=_as(user))
    assert response.status_code == 201, response.text
    return response.json()["data"]["claim_id"]


async def test_health_and_metrics(client: httpx.AsyncClient) -> None:
    assert (await client.get("/api/health/live")).json() == {"status": "live"}
    assert (await client.get("/api/health/ready")).json() == {"status": "ready"}

    await _submit(client)
    metrics = await client.get("/api/metrics")
    assert metrics.status_code == 200
    assert "claims_created_total" in metrics.text


async def test_identity_header_is_required(client: httpx.AsyncClient) -> None:
    response = await client.get("/api/claims/mine")

    assert response.status_code == 401


async def test_submit_for_self_ignores_other_employee_id(client: httpx.AsyncClient) -> None:
    response = await client.post(
        "/api/claims",
        json={**CLAIM, "employee_id": "E2"},
        headers=_as("esha@example.com"),
    )

    body = response.json()
    assert response.status_code == 201
    assert body["success"] is True
    assert body["data"]["claim"]["employee_id"] == "E1"
    assert body["data"]["initial_status"] == "pending_l1"
    assert body["data"]["ledger"]["total_amount"] == "1200.50"


async def test_admin_cannot_submit_claims(client: httpx.AsyncClient) -> None:
    response = await client.post(
        "/api/claims", json={**CLAIM, "employee_id": "E2"}, headers=_as("S1")
    )

    assert response.status_code == 403
    mine = await client.get("/api/claims/mine", headers=_as("E2"))
    assert mine.json()["data"] == []


async def test_invalid_submission_is_400(client: httpx.AsyncClient) -> None:
    response = await client.post("/api/claims", json={**CLAIM, "amount": -5}, headers=_as("E1"))

    assert response.status_code == 400
    assert response.json()["detail"]["error_kind"] == "validation"


async def test_approval_flow_over_http(client: httpx.AsyncClient) -> None:
    claim_id = await _submit(client)

    queue = await client.get("/api/approvals/pending", params={"level": "L1"}, headers=_as("M1"))
    assert [claim["id"] for claim in queue.json()["data"]] == [claim_id]

    approved = await client.post(
        f"/api/claims/{claim_id}/approve",
        json={"level": "L1", "comments": "fine"},
        headers=_as("mohan@example.com"),
    )
    assert approved.status_code == 200
    assert approved.json()["data"]["new_status"] == "pending_l2"
    entry = approved.json()["data"]["claim"]["approvals"][0]
    assert (entry["approver_id"], entry["approver_name"]) == ("M1", "Mohan Lal")

    replayed = await client.post(
        f"/api/claims/{claim_id}/approve", json={"level": "L1"}, headers=_as("M1")
    )
    assert replayed.status_code == 409
    assert replayed.json()["detail"]["error_kind"] == "stale_state"

    no_reason = await client.post(
        f"/api/claims/{claim_id}/reject", json={"level": "L2"}, headers=_as("H1")
    )
    assert no_reason.status_code == 400

    rejected = await client.post(
        f"/api/claims/{claim_id}/reject",
        json={"level": "L2", "reason": "Missing receipt"},
        headers=_as("H1"),
    )
    assert rejected.json()["data"]["new_status"] == "rejected"


async def test_wrong_approver_is_403(client: httpx.AsyncClient) -> None:
    claim_id = await _submit(client)

    response = await client.post(
        f"/api/claims/{claim_id}/approve", json={"level": "L1"}, headers=_as("H1")
    )

    assert response.status_code == 403
    assert response.json()["detail"]["error_kind"] == "authorization"


async def test_unknown_claim_is_404(client: httpx.AsyncClient) -> None:
    response = await client.get("/api/claims/nope", headers=_as("S1"))

    assert response.status_code == 404


async def test_claim_visibility(client: httpx.AsyncClient) -> None:
    claim_id = await _submit(client)

    assert (await client.get(f"/api/claims/{claim_id}", headers=_as("E1"))).status_code == 200
    assert (await client.get(f"/api/claims/{claim_id}", headers=_as("E3"))).status_code == 403
    assert (await client.get(f"/api/claims/{claim_id}", headers=_as("M1"))).status_code == 200

    mine = await client.get("/api/claims/mine", headers=_as("E1"))
    assert [claim["id"] for claim in mine.json()["data"]] == [claim_id]

    assert (await client.get("/api/claims", headers=_as("E1"))).status_code == 403
    everything = await client.get("/api/claims", params={"status": "pending_l1"}, headers=_as("S1"))
    assert len(everything.json()["data"]) == 1


async def test_manager_view_is_scoped_to_managed_claims(client: httpx.AsyncClient) -> None:
    managed = await _submit(client, "E1")
    unmanaged = await _submit(client, "E2")

    assert (await client.get(f"/api/claims/{managed}", headers=_as("H1"))).status_code == 200
    assert (await client.get(f"/api/claims/{unmanaged}", headers=_as("H1"))).status_code == 403
    assert (await client.get(f"/api/claims/{unmanaged}", headers=_as("M1"))).status_code == 200
    assert (await client.get(f"/api/claims/{unmanaged}", headers=_as("S1"))).status_code == 200


async def test_travel_limit_endpoints(client: httpx.AsyncClient) -> None:
    empty = await client.get("/api/travel-limits/me", headers=_as("E2"))
    assert empty.json()["data"] is None

    await _submit(client, "E2", amount="20000")

    mine = await client.get("/api/travel-limits/me", headers=_as("E2"))
    assert mine.json()["data"]["remaining_limit"] == "5000.00"

    check = await client.post("/api/travel-limits/validate", json={"amount": "8000"}, headers=_as("E2"))
    assert check.json()["data"]["is_valid"] is False
    assert check.json()["data"]["warning"] == "Total monthly claims would exceed limit by ₹3000"

    assert (await client.get("/api/travel-limits", headers=_as("E2"))).status_code == 403
    report = await client.get("/api/travel-limits", params={"month": "2025-03"}, headers=_as("S1"))
    assert [row["employee_id"] for row in report.json()["data"]] == ["E2"]

    bad_month = await client.get("/api/travel-limits/me", params={"month": "2025-13"}, headers=_as("E2"))
    assert bad_month.status_code == 400


async def test_policy_summary(client: httpx.AsyncClient) -> None:
    summary = (await client.get("/api/travel-limits/policy", headers=_as("E2"))).json()

    assert summary["entitlement"]["hotel_max"] == 1500
    assert summary["vehicle"]["type"] == "Car"
    assert summary["monthly_limit"] == "25000"

    unknown = await client.get("/api/travel-limits/policy", headers=_as("ghost@example.com"))
    assert unknown.status_code == 404


async def test_role_endpoint(client: httpx.AsyncClient) -> None:
    manager = (await client.get("/api/roles/me", headers=_as("H1"))).json()
    employee = (await client.get("/api/roles/me", headers=_as("E1"))).json()

    assert manager["role"]["type"] == "manager"
    assert manager["role"]["level"] == "L2"
    assert manager["approvable_levels"] == ["L1", "L2"]
    assert employee["permissions"]["can_approve_claims"] is False


async def test_directory_administration(client: httpx.AsyncClient) -> None:
    assert (await client.get("/api/employees", headers=_as("E1"))).status_code == 403

    listing = await client.get("/api/employees", headers=_as("S1"))
    assert len(listing.json()) == 9

    updated = await client.put(
        "/api/employees/E3/approval-chain",
        json={"L1": "M1", "L2": "H1"},
        headers=_as("S1"),
    )
    assert updated.status_code == 200
    assert updated.json()["approval_chain"] == {"L1": "M1", "L2": "H1"}

    invalid = await client.put(
        "/api/employees/E3/approval-chain", json={"L1": "X1"}, headers=_as("S1")
    )
    assert invalid.status_code == 400
    assert invalid.json()["detail"]["error_kind"] == "validation"

    missing = await client.patch("/api/employees/NOPE/deactivate", headers=_as("S1"))
    assert missing.status_code == 404

    deactivated = await client.patch("/api/employees/M1/deactivate", headers=_as("S1"))
    assert deactivated.json()["is_active"] is False

    issues = await client.get("/api/employees/approval-chain-issues", headers=_as("S1"))
    assert {"employee_id": "E1", "level": "L1", "approver_id": "M1", "problem": "approver inactive"} in issues.json()
