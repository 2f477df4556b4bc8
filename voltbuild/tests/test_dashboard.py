from datetime import date, timedelta

import pytest


@pytest.mark.asyncio
async def test_project_dashboard(client, auth_headers, project):
    response = await client.get(f"/api/v1/projects/{project['id']}/dashboard", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()

    for section in (
        "project_summary", "phase_progress", "task_summary", "risk_summary",
        "latest_forecast", "health", "field",
    ):
        assert section in data

    summary = data["project_summary"]
    assert summary["name"] == "Test Facility 20 MW"
    assert summary["cooling_type"] == "immersion"
    assert summary["days_to_target"] == (date(2025, 6, 1) - date.today()).days

    assert len(data["phase_progress"]) == 6
    assert data["task_summary"]["by_status"]["not_started"] == data["task_summary"]["total"]
    assert data["task_summary"]["by_status"]["blocked"] == 0
    assert data["latest_forecast"] is None
    assert data["health"]["status_label"] == "Delayed"
    assert data["field"] == {
        "open_punch_items": 0,
        "open_rfis": 0,
        "overdue_rfis": 0,
        "unresolved_utility_alerts": 0,
        "on_site": 0,
    }


@pytest.mark.asyncio
async def test_dashboard_reflects_activity(client, auth_headers, project):
    pid = project["id"]
    base = f"/api/v1/projects/{pid}"

    phases = (await client.get(f"{base}/phases", headers=auth_headers)).json()["phases"]
    tasks = (await client.get(f"{base}/tasks", headers=auth_headers)).json()["tasks"]
    first_phase = [t for t in tasks if t["phase_id"] == phases[0]["id"]]
    for task in first_phase:
        await client.patch(f"{base}/tasks/{task['id']}", json={"status": "complete"}, headers=auth_headers)

    await client.post(f"{base}/risks", json={"title": "Transformer", "severity": "high"}, headers=auth_headers)
    await client.post(f"{base}/punch-items", json={"description": "Missing gland"}, headers=auth_headers)
    overdue = (date.today() - timedelta(days=3)).isoformat()
    await client.post(
        f"{base}/rfis",
        json={
            "subject": "Cable size",
            "question": "Confirm feeder size",
            "submitted_date": (date.today() - timedelta(days=10)).isoformat(),
            "due_date": overdue,
        },
        headers=auth_headers,
    )
    await client.post(
        f"{base}/utility/alerts", json={"utility": "AltaLink", "message": "Outage window moved"},
        headers=auth_headers,
    )
    await client.post(f"{base}/checkins", json={}, headers=auth_headers)
    await client.post(f"{base}/forecasts", headers=auth_headers)

    data = (await client.get(f"{base}/dashboard", headers=auth_headers)).json()
    assert data["phase_progress"][0]["progress"] == 100
    assert data["phase_progress"][0]["completed_count"] == len(first_phase)
    assert data["project_summary"]["progress"] == 17
    assert data["risk_summary"]["open_total"] == 1
    assert data["risk_summary"]["by_severity"]["high"] == 1
    assert data["latest_forecast"] is not None
    assert data["field"] == {
        "open_punch_items": 1,
        "open_rfis": 1,
        "overdue_rfis": 1,
        "unresolved_utility_alerts": 1,
        "on_site": 1,
    }


@pytest.mark.asyncio
async def test_dashboard_forbidden_for_other_owner(client, other_headers, project):
    resp = await client.get(f"/api/v1/projects/{project['id']}/dashboard", headers=other_headers)
    assert resp.status_code == 403
