from datetime import date

import pytest


@pytest.mark.asyncio
async def test_generate_weekly_report(client, auth_headers, project):
    pid = project["id"]
    base = f"/api/v1/projects/{pid}"
    await client.post(
        f"{base}/labor",
        json={"entry_date": "2025-03-05", "trade_type": "Electrician", "headcount": 4, "hours_worked": 32},
        headers=auth_headers,
    )
    await client.post(
        f"{base}/labor",
        json={"entry_date": "2025-02-20", "trade_type": "Electrician", "headcount": 4, "hours_worked": 40},
        headers=auth_headers,
    )
    await client.post(
        f"{base}/safety/incidents",
        json={"occurred_on": "2025-03-04", "severity": "first_aid", "description": "Cut hand"},
        headers=auth_headers,
    )

    resp = await client.post(
        f"{base}/reports", json={"report_type": "weekly", "period_end": "2025-03-07"}, headers=auth_headers
    )
    assert resp.status_code == 201
    report = resp.json()
    assert report["period_start"] == "2025-03-01"
    assert report["period_end"] == "2025-03-07"

    kpis = report["kpis"]
    assert kpis["labor_hours"] == 32.0
    assert kpis["safety_incidents"] == 1
    assert kpis["tasks_completed"] == 0
    assert kpis["days_to_rfs"] == (date(2025, 6, 1) - date(2025, 3, 7)).days
    assert kpis["capex_budget"] == 10000000.0
    assert kpis["projected_capex"] is None
    assert report["summary"].startswith("Test Facility 20 MW is 0% complete")


@pytest.mark.asyncio
async def test_generate_report_without_body(client, auth_headers, project):
    resp = await client.post(f"/api/v1/projects/{project['id']}/reports", headers=auth_headers)
    assert resp.status_code == 201
    data = resp.json()
    assert data["report_type"] == "weekly"
    assert data["period_end"] == date.today().isoformat()


@pytest.mark.asyncio
async def test_monthly_report_period(client, auth_headers, project):
    resp = await client.post(
        f"/api/v1/projects/{project['id']}/reports",
        json={"report_type": "monthly", "period_end": "2025-03-30"},
        headers=auth_headers,
    )
    assert resp.json()["period_start"] == "2025-03-01"


@pytest.mark.asyncio
async def test_report_uses_latest_forecast(client, auth_headers, project):
    base = f"/api/v1/projects/{project['id']}"
    await client.post(f"{base}/forecasts", headers=auth_headers)
    resp = await client.post(f"{base}/reports", headers=auth_headers)
    assert resp.json()["kpis"]["projected_capex"] == 10000000.0


@pytest.mark.asyncio
async def test_list_and_latest_reports(client, auth_headers, project):
    base = f"/api/v1/projects/{project['id']}/reports"
    resp = await client.get(f"{base}/latest", headers=auth_headers)
    assert resp.status_code == 404

    await client.post(base, json={"report_type": "weekly"}, headers=auth_headers)
    await client.post(base, json={"report_type": "monthly"}, headers=auth_headers)

    listing = (await client.get(base, headers=auth_headers)).json()
    assert listing["total"] == 2
    assert [r["report_type"] for r in listing["reports"]] == ["monthly", "weekly"]

    weekly = (await client.get(base, params={"report_type": "weekly"}, headers=auth_headers)).json()
    assert weekly["total"] == 1

    latest = await client.get(f"{base}/latest", headers=auth_headers)
    assert latest.json()["report_type"] == "monthly"
