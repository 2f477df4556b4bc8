import pytest


@pytest.mark.asyncio
async def test_toolbox_talks(client, auth_headers, project):
    url = f"/api/v1/projects/{project['id']}/safety/talks"
    resp = await client.post(
        url,
        json={"talk_date": "2025-03-03", "topic": "Arc flash PPE", "attendee_count": 14},
        headers=auth_headers,
    )
    assert resp.status_code == 201
    talks = (await client.get(url, headers=auth_headers)).json()
    assert [t["topic"] for t in talks] == ["Arc flash PPE"]


@pytest.mark.asyncio
async def test_incident_close_and_reopen(client, auth_headers, project):
    url = f"/api/v1/projects/{project['id']}/safety/incidents"
    resp = await client.post(
        url,
        json={"occurred_on": "2025-03-04", "severity": "near_miss", "description": "Dropped tool"},
        headers=auth_headers,
    )
    assert resp.status_code == 201
    incident = resp.json()
    assert incident["status"] == "open"
    assert incident["closed_at"] is None

    resp = await client.patch(
        f"{url}/{incident['id']}",
        json={"status": "closed", "corrective_action": "Tool lanyards required"},
        headers=auth_headers,
    )
    assert resp.json()["closed_at"] is not None
    assert resp.json()["corrective_action"] == "Tool lanyards required"

    open_only = await client.get(url, params={"status": "open"}, headers=auth_headers)
    assert open_only.json() == []

    resp = await client.patch(f"{url}/{incident['id']}", json={"status": "open"}, headers=auth_headers)
    assert resp.json()["closed_at"] is None


@pytest.mark.asyncio
async def test_invalid_incident_severity(client, auth_headers, project):
    resp = await client.post(
        f"/api/v1/projects/{project['id']}/safety/incidents",
        json={"occurred_on": "2025-03-04", "severity": "catastrophic", "description": "x"},
        headers=auth_headers,
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_safety_permits(client, auth_headers, project):
    url = f"/api/v1/projects/{project['id']}/safety/permits"
    resp = await client.post(
        url,
        json={"permit_type": "Hot work", "issued_to": "Prairie Electric", "valid_from": "2025-03-01"},
        headers=auth_headers,
    )
    assert resp.status_code == 201
    permit = resp.json()
    assert permit["status"] == "requested"

    resp = await client.patch(
        f"{url}/{permit['id']}", json={"valid_until": "2025-02-01"}, headers=auth_headers
    )
    assert resp.status_code == 400

    resp = await client.patch(
        f"{url}/{permit['id']}", json={"status": "active", "valid_until": "2025-03-15"}, headers=auth_headers
    )
    assert resp.json()["status"] == "active"

    active = await client.get(url, params={"status": "active"}, headers=auth_headers)
    assert len(active.json()) == 1
