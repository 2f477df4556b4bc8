from decimal import Decimal
from types import SimpleNamespace

import pytest

from voltbuild.core.change_orders.impact import change_order_impact


async def _create(client, headers, project_id, **extra):
    resp = await client.post(
        f"/api/v1/projects/{project_id}/change-orders",
        json={"title": "Upsize main transformer", **extra},
        headers=headers,
    )
    assert resp.status_code == 201
    return resp.json()


async def _act(client, headers, project_id, co_id, action, **extra):
    return await client.post(
        f"/api/v1/projects/{project_id}/change-orders/{co_id}/action",
        json={"action": action, **extra},
        headers=headers,
    )


def test_impact_counts_only_committed_orders():
    orders = [
        SimpleNamespace(status="draft", cost_delta=Decimal("999"), schedule_delta_days=9),
        SimpleNamespace(status="submitted", cost_delta=Decimal("1500.00"), schedule_delta_days=3),
        SimpleNamespace(status="approved", cost_delta=Decimal("25000.00"), schedule_delta_days=5),
        SimpleNamespace(status="implemented", cost_delta=Decimal("-4000.00"), schedule_delta_days=-2),
        SimpleNamespace(status="rejected", cost_delta=Decimal("70000.00"), schedule_delta_days=30),
    ]
    impact = change_order_impact(orders)
    assert impact.total == 5
    assert impact.pending_approval == 1
    assert impact.net_cost_delta == Decimal("21000.00")
    assert impact.net_schedule_delta_days == 3
    assert impact.pending_cost_delta == Decimal("1500.00")


@pytest.mark.asyncio
async def test_numbers_and_defaults(client, auth_headers, project, owner_user):
    first = await _create(client, auth_headers, project["id"], cost_delta="48000.00")
    second = await _create(client, auth_headers, project["id"])
    assert first["change_order_number"] == "CO-001"
    assert first["status"] == "draft"
    assert first["requested_by"] == owner_user.full_name
    assert Decimal(first["cost_delta"]) == Decimal("48000.00")
    assert second["change_order_number"] == "CO-002"


@pytest.mark.asyncio
async def test_task_link_sets_phase(client, auth_headers, project):
    pid = project["id"]
    task = (await client.get(f"/api/v1/projects/{pid}/tasks", headers=auth_headers)).json()["tasks"][0]
    co = await _create(client, auth_headers, pid, task_id=task["id"])
    assert co["task_id"] == task["id"]
    assert co["phase_id"] == task["phase_id"]


@pytest.mark.asyncio
async def test_full_workflow_applies_budget_and_schedule(client, auth_headers, project, owner_user):
    pid = project["id"]
    co = await _create(
        client, auth_headers, pid, cost_delta="250000.00", schedule_delta_days=14
    )

    resp = await _act(client, auth_headers, pid, co["id"], "approve")
    assert resp.status_code == 400
    assert "Cannot transition" in resp.json()["detail"]

    assert (await _act(client, auth_headers, pid, co["id"], "submit")).status_code == 200
    resp = await _act(client, auth_headers, pid, co["id"], "approve", approved_by="Site Director")
    approved = resp.json()
    assert approved["status"] == "approved"
    assert approved["approved_by"] == "Site Director"
    assert approved["approved_at"] is not None

    resp = await _act(client, auth_headers, pid, co["id"], "implement")
    assert resp.json()["implemented_at"] is not None

    proj = (await client.get(f"/api/v1/projects/{pid}", headers=auth_headers)).json()
    assert Decimal(proj["capex_budget"]) == Decimal("10250000.00")
    assert proj["planned_end_date"] == "2025-06-15"

    impact = (await client.get(f"/api/v1/projects/{pid}/change-orders/impact", headers=auth_headers)).json()
    assert impact["implemented"] == 1
    assert Decimal(impact["net_cost_delta"]) == Decimal("250000.00")
    assert impact["net_schedule_delta_days"] == 14


@pytest.mark.asyncio
async def test_rejected_order_can_be_revised(client, auth_headers, project):
    pid = project["id"]
    co = await _create(client, auth_headers, pid)
    url = f"/api/v1/projects/{pid}/change-orders/{co['id']}"

    await _act(client, auth_headers, pid, co["id"], "submit")
    resp = await client.patch(url, json={"title": "Edited"}, headers=auth_headers)
    assert resp.status_code == 400

    await _act(client, auth_headers, pid, co["id"], "reject")
    resp = await _act(client, auth_headers, pid, co["id"], "revise")
    assert resp.json()["status"] == "draft"

    resp = await client.patch(url, json={"title": "Edited", "cost_delta": "-1200.50"}, headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["title"] == "Edited"
    assert Decimal(resp.json()["cost_delta"]) == Decimal("-1200.50")


@pytest.mark.asyncio
async def test_unknown_action(client, auth_headers, project):
    co = await _create(client, auth_headers, project["id"])
    resp = await _act(client, auth_headers, project["id"], co["id"], "escalate")
    assert resp.status_code == 400
    assert "action must be one of" in resp.json()["detail"]


@pytest.mark.asyncio
async def test_implemented_orders_cannot_be_deleted(client, auth_headers, project):
    pid = project["id"]
    co = await _create(client, auth_headers, pid)
    for action in ("submit", "approve", "implement"):
        await _act(client, auth_headers, pid, co["id"], action)
    resp = await client.delete(f"/api/v1/projects/{pid}/change-orders/{co['id']}", headers=auth_headers)
    assert resp.status_code == 400

    draft = await _create(client, auth_headers, pid)
    resp = await client.delete(f"/api/v1/projects/{pid}/change-orders/{draft['id']}", headers=auth_headers)
    assert resp.status_code == 204
    listed = (await client.get(f"/api/v1/projects/{pid}/change-orders", headers=auth_headers)).json()
    assert [c["change_order_number"] for c in listed] == ["CO-001"]


@pytest.mark.asyncio
async def test_other_owner_is_forbidden(client, auth_headers, other_headers, project):
    resp = await client.get(f"/api/v1/projects/{project['id']}/change-orders", headers=other_headers)
    assert resp.status_code == 403
