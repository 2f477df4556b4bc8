from datetime import date

import pytest

from voltbuild.common.cache import query_cache


async def _phase_with_tasks(client, headers, project_id, name, task_names):
    phase = (await client.post(
        f"/api/v1/projects/{project_id}/phases", json={"name": name}, headers=headers
    )).json()
    tasks = []
    for task_name in task_names:
        resp = await client.post(
            f"/api/v1/projects/{project_id}/tasks",
            json={"phase_id": phase["id"], "name": task_name},
            headers=headers,
        )
        assert resp.status_code == 201
        tasks.append(resp.json())
    return phase, tasks


async def _set_status(client, headers, project_id, task_id, status):
    resp = await client.patch(
        f"/api/v1/projects/{project_id}/tasks/{task_id}", json={"status": status}, headers=headers
    )
    assert resp.status_code == 200
    return resp.json()


async def _phase(client, headers, project_id, phase_id):
    phases = (await client.get(f"/api/v1/projects/{project_id}/phases", headers=headers)).json()
    return next(p for p in phases["phases"] if p["id"] == phase_id)


@pytest.mark.asyncio
async def test_create_task_defaults(client, auth_headers, empty_project):
    pid = empty_project["id"]
    _, tasks = await _phase_with_tasks(client, auth_headers, pid, "Civil", ["Grade", "Pour"])
    assert tasks[0]["status"] == "not_started"
    assert tasks[0]["assigned_role"] == "owner"
    assert tasks[0]["order_index"] == 0
    assert tasks[1]["order_index"] == 1


@pytest.mark.asyncio
async def test_create_task_unknown_phase(client, auth_headers, empty_project):
    resp = await client.post(
        f"/api/v1/projects/{empty_project['id']}/tasks",
        json={"phase_id": "00000000-0000-0000-0000-000000000000", "name": "Orphan"},
        headers=auth_headers,
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_status_change_stamps_actual_dates(client, auth_headers, empty_project):
    pid = empty_project["id"]
    _, tasks = await _phase_with_tasks(client, auth_headers, pid, "Civil", ["Grade"])
    task_id = tasks[0]["id"]

    started = await _set_status(client, auth_headers, pid, task_id, "in_progress")
    assert started["actual_start_date"] == date.today().isoformat()
    assert started["actual_end_date"] is None

    finished = await _set_status(client, auth_headers, pid, task_id, "complete")
    assert finished["actual_start_date"] == date.today().isoformat()
    assert finished["actual_end_date"] == date.today().isoformat()


@pytest.mark.asyncio
async def test_status_change_keeps_existing_dates(client, auth_headers, empty_project):
    pid = empty_project["id"]
    _, tasks = await _phase_with_tasks(client, auth_headers, pid, "Civil", ["Grade"])
    await client.patch(
        f"/api/v1/projects/{pid}/tasks/{tasks[0]['id']}",
        json={"actual_start_date": "2025-01-10"},
        headers=auth_headers,
    )
    data = await _set_status(client, auth_headers, pid, tasks[0]["id"], "in_progress")
    assert data["actual_start_date"] == "2025-01-10"


@pytest.mark.asyncio
async def test_task_updates_roll_up_to_phase_and_project(client, auth_headers, empty_project):
    pid = empty_project["id"]
    phase, tasks = await _phase_with_tasks(client, auth_headers, pid, "Electrical", ["A", "B", "C"])

    await _set_status(client, auth_headers, pid, tasks[0]["id"], "complete")
    await _set_status(client, auth_headers, pid, tasks[1]["id"], "complete")
    await _set_status(client, auth_headers, pid, tasks[2]["id"], "blocked")

    data = await _phase(client, auth_headers, pid, phase["id"])
    assert data["progress"] == 67
    assert data["status"] == "blocked"

    project = (await client.get(f"/api/v1/projects/{pid}", headers=auth_headers)).json()
    assert project["progress"] == 67


@pytest.mark.asyncio
async def test_blocked_task_holds_phase_back(client, auth_headers, empty_project):
    pid = empty_project["id"]
    phase, tasks = await _phase_with_tasks(client, auth_headers, pid, "Civil", ["A", "B", "C", "D"])
    for task in tasks[:3]:
        await _set_status(client, auth_headers, pid, task["id"], "complete")
    await _set_status(client, auth_headers, pid, tasks[3]["id"], "blocked")

    data = await _phase(client, auth_headers, pid, phase["id"])
    assert data["progress"] == 75
    assert data["status"] == "blocked"

    await _set_status(client, auth_headers, pid, tasks[3]["id"], "complete")
    data = await _phase(client, auth_headers, pid, phase["id"])
    assert data["progress"] == 100
    assert data["status"] == "complete"


@pytest.mark.asyncio
async def test_project_progress_is_mean_of_phases(client, auth_headers, empty_project):
    pid = empty_project["id"]
    _, done = await _phase_with_tasks(client, auth_headers, pid, "Done", ["A"])
    await _phase_with_tasks(client, auth_headers, pid, "Untouched", ["B"])
    await _set_status(client, auth_headers, pid, done[0]["id"], "complete")

    project = (await client.get(f"/api/v1/projects/{pid}", headers=auth_headers)).json()
    assert project["progress"] == 50


@pytest.mark.asyncio
async def test_move_task_between_phases(client, auth_headers, empty_project):
    pid = empty_project["id"]
    source, tasks = await _phase_with_tasks(client, auth_headers, pid, "Source", ["Done", "Moving"])
    target, _ = await _phase_with_tasks(client, auth_headers, pid, "Target", ["Waiting"])
    await _set_status(client, auth_headers, pid, tasks[0]["id"], "complete")
    assert (await _phase(client, auth_headers, pid, source["id"]))["progress"] == 50

    resp = await client.patch(
        f"/api/v1/projects/{pid}/tasks/{tasks[1]['id']}",
        json={"phase_id": target["id"]},
        headers=auth_headers,
    )
    assert resp.status_code == 200
    assert resp.json()["phase_id"] == target["id"]

    assert (await _phase(client, auth_headers, pid, source["id"]))["progress"] == 100
    assert (await _phase(client, auth_headers, pid, target["id"]))["progress"] == 0


@pytest.mark.asyncio
async def test_list_tasks_filters(client, auth_headers, empty_project):
    pid = empty_project["id"]
    first, tasks = await _phase_with_tasks(client, auth_headers, pid, "First", ["A", "B"])
    await _phase_with_tasks(client, auth_headers, pid, "Second", ["C"])
    await _set_status(client, auth_headers, pid, tasks[0]["id"], "blocked")

    resp = await client.get(
        f"/api/v1/projects/{pid}/tasks", params={"phase_id": first["id"]}, headers=auth_headers
    )
    assert resp.json()["total"] == 2

    resp = await client.get(
        f"/api/v1/projects/{pid}/tasks", params={"status": "blocked"}, headers=auth_headers
    )
    assert [t["name"] for t in resp.json()["tasks"]] == ["A"]


@pytest.mark.asyncio
async def test_task_edit_invalidates_cached_list(client, auth_headers, empty_project):
    pid = empty_project["id"]
    _, tasks = await _phase_with_tasks(client, auth_headers, pid, "Civil", ["Grade"])
    await client.get(f"/api/v1/projects/{pid}/tasks", headers=auth_headers)
    assert query_cache.get("tasks", pid) is not None

    await client.patch(
        f"/api/v1/projects/{pid}/tasks/{tasks[0]['id']}",
        json={"name": "Rough grade"},
        headers=auth_headers,
    )
    assert query_cache.get("tasks", pid) is None

    resp = await client.get(f"/api/v1/projects/{pid}/tasks", headers=auth_headers)
    assert resp.json()["tasks"][0]["name"] == "Rough grade"


@pytest.mark.asyncio
async def test_delete_task_recomputes_phase(client, auth_headers, empty_project):
    pid = empty_project["id"]
    phase, tasks = await _phase_with_tasks(client, auth_headers, pid, "Civil", ["Done", "Open"])
    await _set_status(client, auth_headers, pid, tasks[0]["id"], "complete")

    resp = await client.delete(f"/api/v1/projects/{pid}/tasks/{tasks[1]['id']}", headers=auth_headers)
    assert resp.status_code == 204

    data = await _phase(client, auth_headers, pid, phase["id"])
    assert data["progress"] == 100
    assert data["status"] == "complete"

    resp = await client.get(f"/api/v1/projects/{pid}/tasks/{tasks[1]['id']}", headers=auth_headers)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_comments(client, auth_headers, empty_project, owner_user):
    pid = empty_project["id"]
    _, tasks = await _phase_with_tasks(client, auth_headers, pid, "Civil", ["Grade"])
    url = f"/api/v1/projects/{pid}/tasks/{tasks[0]['id']}/comments"

    resp = await client.post(url, json={"body": "Survey stakes are in"}, headers=auth_headers)
    assert resp.status_code == 201
    assert resp.json()["author_id"] == str(owner_user.id)

    resp = await client.get(url, headers=auth_headers)
    assert [c["body"] for c in resp.json()] == ["Survey stakes are in"]


@pytest.mark.asyncio
async def test_other_owner_cannot_touch_tasks(client, auth_headers, other_headers, empty_project):
    pid = empty_project["id"]
    _, tasks = await _phase_with_tasks(client, auth_headers, pid, "Civil", ["Grade"])
    resp = await client.patch(
        f"/api/v1/projects/{pid}/tasks/{tasks[0]['id']}",
        json={"status": "complete"},
        headers=other_headers,
    )
    assert resp.status_code == 403
