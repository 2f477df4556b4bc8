from datetime import date, timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest

from voltbuild.core.procurement.summary import delivery_outlook, line_total, procurement_stats


async def _item(client, headers, project_id, **extra):
    resp = await client.post(
        f"/api/v1/projects/{project_id}/procurement/items",
        json={"item_name": "34.5 kV pad-mount transformer", "category": "transformers", **extra},
        headers=headers,
    )
    assert resp.status_code == 201
    return resp.json()


async def _po(client, headers, project_id, **extra):
    return await client.post(
        f"/api/v1/projects/{project_id}/procurement/purchase-orders",
        json={"vendor": "Northern Switchgear Ltd", **extra},
        headers=headers,
    )


def test_line_total_rounds_to_cents():
    assert line_total(Decimal("3"), Decimal("0.335")) == Decimal("1.01")
    assert line_total(Decimal("2"), Decimal("185000")) == Decimal("370000.00")


def test_delivery_outlook():
    today = date(2025, 3, 10)
    late = SimpleNamespace(status="in_transit", expected_delivery_date=date(2025, 3, 8))
    soon = SimpleNamespace(status="ordered", expected_delivery_date=date(2025, 3, 17))
    landed = SimpleNamespace(status="delivered", expected_delivery_date=date(2025, 3, 1))

    assert delivery_outlook(late, today).overdue
    assert delivery_outlook(late, today).days_until_delivery == -2
    assert delivery_outlook(soon, today).due_soon
    assert not delivery_outlook(landed, today).overdue


def test_stats_flag_unordered_long_lead_items():
    today = date(2025, 3, 10)
    items = [
        SimpleNamespace(item_name="Main transformer", category="transformers", status="planned",
                        expected_delivery_date=None, total_cost=Decimal("400000.00")),
        SimpleNamespace(item_name="Fiber spools", category="fiber", status="planned",
                        expected_delivery_date=None, total_cost=Decimal("9000.00")),
        SimpleNamespace(item_name="Containers", category="containers", status="delivered",
                        expected_delivery_date=date(2025, 3, 1), total_cost=Decimal("120000.00")),
    ]
    stats = procurement_stats(items, today)
    assert stats.total == 3
    assert stats.planned == 2
    assert stats.overdue == 0
    assert stats.unordered_long_lead == ["Main transformer"]
    assert stats.total_cost == Decimal("529000.00")
    assert stats.delivered_cost == Decimal("120000.00")


@pytest.mark.asyncio
async def test_item_total_cost_follows_quantity(client, auth_headers, project):
    pid = project["id"]
    item = await _item(client, auth_headers, pid, quantity="2", unit_cost="185000.00")
    assert item["status"] == "planned"
    assert Decimal(item["total_cost"]) == Decimal("370000.00")

    resp = await client.patch(
        f"/api/v1/projects/{pid}/procurement/items/{item['id']}",
        json={"quantity": "3"},
        headers=auth_headers,
    )
    assert Decimal(resp.json()["total_cost"]) == Decimal("555000.00")


@pytest.mark.asyncio
async def test_status_changes_stamp_dates(client, auth_headers, project):
    pid = project["id"]
    item = await _item(client, auth_headers, pid)
    url = f"/api/v1/projects/{pid}/procurement/items/{item['id']}"

    resp = await client.patch(url, json={"status": "ordered"}, headers=auth_headers)
    assert resp.json()["order_date"] == date.today().isoformat()

    resp = await client.patch(url, json={"status": "delivered"}, headers=auth_headers)
    data = resp.json()
    assert data["actual_delivery_date"] == date.today().isoformat()
    assert data["overdue"] is False


@pytest.mark.asyncio
async def test_filters_and_stats(client, auth_headers, project):
    pid = project["id"]
    late = (date.today() - timedelta(days=5)).isoformat()
    await _item(client, auth_headers, pid, status="in_transit", expected_delivery_date=late)
    await _item(client, auth_headers, pid, item_name="Cat6 patch panels", category="fiber")

    resp = await client.get(
        f"/api/v1/projects/{pid}/procurement/items", params={"category": "fiber"}, headers=auth_headers
    )
    assert [i["item_name"] for i in resp.json()] == ["Cat6 patch panels"]

    stats = (await client.get(f"/api/v1/projects/{pid}/procurement/items/stats", headers=auth_headers)).json()
    assert stats["total"] == 2
    assert stats["in_transit"] == 1
    assert stats["overdue"] == 1


@pytest.mark.asyncio
async def test_item_rejects_foreign_task(client, auth_headers, project, empty_project):
    task = (await client.get(f"/api/v1/projects/{project['id']}/tasks", headers=auth_headers)).json()["tasks"][0]
    resp = await client.post(
        f"/api/v1/projects/{empty_project['id']}/procurement/items",
        json={"item_name": "Switchgear lineup", "task_id": task["id"]},
        headers=auth_headers,
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_po_numbers_skip_taken_and_reject_duplicates(client, auth_headers, project):
    pid = project["id"]
    first = (await _po(client, auth_headers, pid, amount="120000.00")).json()
    assert first["po_number"] == "PO-001"
    assert first["status"] == "draft"

    manual = await _po(client, auth_headers, pid, po_number="PO-007")
    assert manual.status_code == 201
    nxt = (await _po(client, auth_headers, pid)).json()
    assert nxt["po_number"] == "PO-008"

    dup = await _po(client, auth_headers, pid, po_number="PO-001")
    assert dup.status_code == 409


@pytest.mark.asyncio
async def test_po_lifecycle_and_totals(client, auth_headers, project):
    pid = project["id"]
    po = (await _po(client, auth_headers, pid, amount="50000.00")).json()
    await _po(client, auth_headers, pid, amount="2500.00")
    url = f"/api/v1/projects/{pid}/procurement/purchase-orders/{po['id']}"

    resp = await client.patch(url, json={"status": "paid"}, headers=auth_headers)
    assert resp.status_code == 400

    for status in ("sent", "accepted"):
        resp = await client.patch(url, json={"status": status}, headers=auth_headers)
        assert resp.status_code == 200

    resp = await client.patch(url, json={"amount": "1.00"}, headers=auth_headers)
    assert resp.status_code == 400

    resp = await client.delete(url, headers=auth_headers)
    assert resp.status_code == 400

    totals = (
        await client.get(f"/api/v1/projects/{pid}/procurement/purchase-orders/totals", headers=auth_headers)
    ).json()
    assert totals["count"] == 2
    assert Decimal(totals["total"]) == Decimal("52500.00")
    assert Decimal(totals["by_status"]["accepted"]) == Decimal("50000.00")
    assert Decimal(totals["by_status"]["draft"]) == Decimal("2500.00")
