from datetime import date

import pytest


@pytest.mark.asyncio
async def test_daily_logs_paginated_newest_first(client, auth_headers, project, owner_user):
    url = f"/api/v1/projects/{project['id']}/daily-logs"
    for day in ("2025-03-03", "2025-03-05", "2025-03-04"):
        resp = await client.post(
            url,
            json={"log_date": day, "work_summary": f"Work on {day}", "crew_count": 12, "weather": "Clear"},
            headers=auth_headers,
        )
        assert resp.status_code == 201
        assert resp.json()["author_id"] == str(owner_user.id)

    page = (await client.get(url, params={"page_size": 2}, headers=auth_headers)).json()
    assert page["total"] == 3
    assert page["total_pages"] == 2
    assert [log["log_date"] for log in page["items"]] == ["2025-03-05", "2025-03-04"]

    page = (await client.get(
        url, params={"sort_by": "log_date", "sort_order": "asc"}, headers=auth_headers
    )).json()
    assert page["items"][0]["log_date"] == "2025-03-03"


@pytest.mark.asyncio
async def test_delete_daily_log(client, auth_headers, project):
    url = f"/api/v1/projects/{project['id']}/daily-logs"
    log = (await client.post(
        url, json={"log_date": "2025-03-03", "work_summary": "Grading"}, headers=auth_headers
    )).json()

    resp = await client.delete(f"{url}/{log['id']}", headers=auth_headers)
    assert resp.status_code == 204
    assert (await client.get(url, headers=auth_headers)).json()["total"] == 0


@pytest.mark.asyncio
async def test_labor_summary_by_trade(client, auth_headers, project):
    url = f"/api/v1/projects/{project['id']}/labor"
    entries = [
        {"trade_type": "Electrician", "headcount": 6, "hours_worked": 48},
        {"trade_type": "Electrician", "headcount": 2, "hours_worked": 16, "shift": "night"},
        {"trade_type": "Civil", "headcount": 3, "hours_worked": 30},
        {"trade_type": "Civil", "headcount": 1},
    ]
    for entry in entries:
        resp = await client.post(url, json={"entry_date": "2025-03-05", **entry}, headers=auth_headers)
        assert resp.status_code == 201
    await client.post(
        url, json={"entry_date": "2025-03-06", "trade_type": "Civil", "headcount": 9}, headers=auth_headers
    )

    summary = (await client.get(
        f"{url}/summary", params={"entry_date": "2025-03-05"}, headers=auth_headers
    )).json()
    assert summary["total_headcount"] == 12
    assert summary["total_hours"] == 94.0
    assert summary["by_trade"] == [
        {"trade_type": "Civil", "headcount": 4, "hours": 30.0},
        {"trade_type": "Electrician", "headcount": 8, "hours": 64.0},
    ]

    listing = await client.get(url, params={"entry_date": "2025-03-06"}, headers=auth_headers)
    assert len(listing.json()) == 1


@pytest.mark.asyncio
async def test_labor_summary_defaults_to_today(client, auth_headers, project):
    resp = await client.get(f"/api/v1/projects/{project['id']}/labor/summary", headers=auth_headers)
    assert resp.json()["entry_date"] == date.today().isoformat()
    assert resp.json()["total_headcount"] == 0


@pytest.mark.asyncio
async def test_labor_rejects_foreign_phase(client, auth_headers, project, empty_project):
    phases = (await client.get(f"/api/v1/projects/{project['id']}/phases", headers=auth_headers)).json()
    resp = await client.post(
        f"/api/v1/projects/{empty_project['id']}/labor",
        json={
            "entry_date": "2025-03-05",
            "trade_type": "Civil",
            "headcount": 2,
            "phase_id": phases["phases"][0]["id"],
        },
        headers=auth_headers,
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_checkin_and_checkout(client, auth_headers, project, owner_user):
    url = f"/api/v1/projects/{project['id']}/checkins"
    resp = await client.post(url, json={"coarse_location": "Substation"}, headers=auth_headers)
    assert resp.status_code == 201
    checkin = resp.json()
    assert checkin["user_name"] == owner_user.full_name
    assert checkin["on_site"] is True

    await client.post(url, json={"user_name": "Visitor"}, headers=auth_headers)
    on_site = await client.get(url, params={"on_site": True}, headers=auth_headers)
    assert len(on_site.json()) == 2

    resp = await client.post(f"{url}/{checkin['id']}/checkout", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["on_site"] is False

    resp = await client.post(f"{url}/{checkin['id']}/checkout", headers=auth_headers)
    assert resp.status_code == 400

    on_site = await client.get(url, params={"on_site": True}, headers=auth_headers)
    assert [c["user_name"] for c in on_site.json()] == ["Visitor"]
