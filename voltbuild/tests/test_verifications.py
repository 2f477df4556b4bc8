import uuid
from types import SimpleNamespace

import pytest

from voltbuild.core.progress.rollup import round_half_up
from voltbuild.core.verification.scoring import phase_verification_scores


async def _tasks(client, headers, project_id):
    resp = await client.get(f"/api/v1/projects/{project_id}/tasks", headers=headers)
    return resp.json()["tasks"]


async def _submit(client, headers, project_id, task_id, **extra):
    resp = await client.post(
        f"/api/v1/projects/{project_id}/verifications",
        json={"task_id": task_id, "file_url": "https://files.example/pour.jpg", **extra},
        headers=headers,
    )
    assert resp.status_code == 201
    return resp.json()


def test_scores_round_half_up_per_phase():
    civil = SimpleNamespace(id=uuid.uuid4(), name="Civil")
    empty = SimpleNamespace(id=uuid.uuid4(), name="Punch")
    tasks = [SimpleNamespace(id=uuid.uuid4(), phase_id=civil.id) for _ in range(8)]
    verifications = [
        SimpleNamespace(task_id=tasks[0].id, status="approved"),
        SimpleNamespace(task_id=tasks[0].id, status="approved"),
        SimpleNamespace(task_id=tasks[1].id, status="pending"),
        SimpleNamespace(task_id=tasks[2].id, status="rejected"),
    ]
    scores = phase_verification_scores([civil, empty], tasks, verifications)
    assert scores[0].verified_tasks == 1
    assert scores[0].score == 13
    assert scores[1].model_dump(include={"tasks", "score"}) == {"tasks": 0, "score": 0}


@pytest.mark.asyncio
async def test_submit_takes_phase_from_task(client, auth_headers, project, owner_user):
    task = (await _tasks(client, auth_headers, project["id"]))[0]
    v = await _submit(client, auth_headers, project["id"], task["id"], verification_type="inspection")
    assert v["phase_id"] == task["phase_id"]
    assert v["status"] == "pending"
    assert v["submitted_by"] == str(owner_user.id)


@pytest.mark.asyncio
async def test_approve_once(client, auth_headers, project, owner_user):
    pid = project["id"]
    task = (await _tasks(client, auth_headers, pid))[0]
    v = await _submit(client, auth_headers, pid, task["id"])
    url = f"/api/v1/projects/{pid}/verifications/{v['id']}"

    resp = await client.post(f"{url}/approve", headers=auth_headers)
    data = resp.json()
    assert data["status"] == "approved"
    assert data["reviewed_by"] == owner_user.full_name

    resp = await client.post(f"{url}/reject", json={"notes": "Too late"}, headers=auth_headers)
    assert resp.status_code == 400
    assert "already approved" in resp.json()["detail"]


@pytest.mark.asyncio
async def test_reject_needs_notes(client, auth_headers, project):
    pid = project["id"]
    task = (await _tasks(client, auth_headers, pid))[0]
    v = await _submit(client, auth_headers, pid, task["id"])
    url = f"/api/v1/projects/{pid}/verifications/{v['id']}"

    resp = await client.post(f"{url}/reject", json={"notes": "  "}, headers=auth_headers)
    assert resp.status_code == 400

    resp = await client.post(f"{url}/reject", json={"notes": "Photo is blurry"}, headers=auth_headers)
    assert resp.json()["review_notes"] == "Photo is blurry"


@pytest.mark.asyncio
async def test_scores_endpoint(client, auth_headers, project):
    pid = project["id"]
    tasks = await _tasks(client, auth_headers, pid)
    task = tasks[0]
    v = await _submit(client, auth_headers, pid, task["id"])
    await client.post(f"/api/v1/projects/{pid}/verifications/{v['id']}/approve", headers=auth_headers)

    scores = (await client.get(f"/api/v1/projects/{pid}/verifications/scores", headers=auth_headers)).json()
    phase_score = next(s for s in scores if s["phase_id"] == task["phase_id"])
    phase_tasks = [t for t in tasks if t["phase_id"] == task["phase_id"]]
    assert phase_score["tasks"] == len(phase_tasks)
    assert phase_score["verified_tasks"] == 1
    assert phase_score["score"] == round_half_up(100 / len(phase_tasks))
    assert all(s["verified_tasks"] == 0 for s in scores if s["phase_id"] != task["phase_id"])


@pytest.mark.asyncio
async def test_task_from_another_project(client, auth_headers, project, empty_project):
    task = (await _tasks(client, auth_headers, project["id"]))[0]
    resp = await client.post(
        f"/api/v1/projects/{empty_project['id']}/verifications",
        json={"task_id": task["id"], "file_url": "https://files.example/x.jpg"},
        headers=auth_headers,
    )
    assert resp.status_code == 404
