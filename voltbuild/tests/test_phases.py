import pytest


async def _create_phase(client, headers, project_id, name, **extra):
    resp = await client.post(
        f"/api/v1/projects/{project_id}/phases", json={"name": name, **extra}, headers=headers
    )
    assert resp.status_code == 201
    return resp.json()


async def _create_task(client, headers, project_id, phase_id, name):
    resp = await client.post(
        f"/api/v1/projects/{project_id}/tasks",
        json={"phase_id": phase_id, "name": name},
        headers=headers,
    )
    assert resp.status_code == 201
    return resp.json()


@pytest.mark.asyncio
async def test_create_phase_appends_order_index(client, auth_headers, empty_project):
    pid = empty_project["id"]
    first = await _create_phase(client, auth_headers, pid, "Civil")
    second = await _create_phase(client, auth_headers, pid, "Electrical")
    assert first["order_index"] == 0
    assert second["order_index"] == 1
    assert second["status"] == "not_started"
    assert second["progress"] == 0


@pytest.mark.asyncio
async def test_list_phases_in_order(client, auth_headers, empty_project):
    pid = empty_project["id"]
    await _create_phase(client, auth_headers, pid, "Later", order_index=5)
    await _create_phase(client, auth_headers, pid, "Sooner", order_index=1)

    response = await client.get(f"/api/v1/projects/{pid}/phases", headers=auth_headers)
    assert [p["name"] for p in response.json()["phases"]] == ["Sooner", "Later"]


@pytest.mark.asyncio
async def test_update_phase_visible_after_cached_read(client, auth_headers, empty_project):
    pid = empty_project["id"]
    phase = await _create_phase(client, auth_headers, pid, "Civil")
    await client.get(f"/api/v1/projects/{pid}/phases", headers=auth_headers)

    resp = await client.patch(
        f"/api/v1/projects/{pid}/phases/{phase['id']}",
        json={"name": "Civil Works"},
        headers=auth_headers,
    )
    assert resp.status_code == 200

    listing = await client.get(f"/api/v1/projects/{pid}/phases", headers=auth_headers)
    assert listing.json()["phases"][0]["name"] == "Civil Works"


@pytest.mark.asyncio
async def test_phase_rejects_inverted_dates(client, auth_headers, empty_project):
    resp = await client.post(
        f"/api/v1/projects/{empty_project['id']}/phases",
        json={"name": "Bad", "planned_start_date": "2025-03-01", "planned_end_date": "2025-02-01"},
        headers=auth_headers,
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_delete_phase_recomputes_project(client, auth_headers, empty_project):
    pid = empty_project["id"]
    done = await _create_phase(client, auth_headers, pid, "Done")
    idle = await _create_phase(client, auth_headers, pid, "Idle")
    task = await _create_task(client, auth_headers, pid, done["id"], "Only task")
    await _create_task(client, auth_headers, pid, idle["id"], "Waiting")
    await client.patch(
        f"/api/v1/projects/{pid}/tasks/{task['id']}", json={"status": "complete"}, headers=auth_headers
    )

    project = await client.get(f"/api/v1/projects/{pid}", headers=auth_headers)
    assert project.json()["progress"] == 50

    resp = await client.delete(f"/api/v1/projects/{pid}/phases/{idle['id']}", headers=auth_headers)
    assert resp.status_code == 204

    project = await client.get(f"/api/v1/projects/{pid}", headers=auth_headers)
    assert project.json()["progress"] == 100

    tasks = await client.get(f"/api/v1/projects/{pid}/tasks", headers=auth_headers)
    assert [t["name"] for t in tasks.json()["tasks"]] == ["Only task"]


@pytest.mark.asyncio
async def test_recalculate_endpoint(client, auth_headers, project):
    resp = await client.post(
        f"/api/v1/projects/{project['id']}/phases/recalculate", headers=auth_headers
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["total"] == 6
    assert all(p["status"] == "not_started" for p in data["phases"])


@pytest.mark.asyncio
async def test_phase_in_other_project_not_found(client, auth_headers, project, empty_project):
    phases = await client.get(f"/api/v1/projects/{project['id']}/phases", headers=auth_headers)
    phase_id = phases.json()["phases"][0]["id"]

    resp = await client.patch(
        f"/api/v1/projects/{empty_project['id']}/phases/{phase_id}",
        json={"name": "Hijack"},
        headers=auth_headers,
    )
    assert resp.status_code == 404
