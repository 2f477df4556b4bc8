import pytest

from voltbuild.tasks.common import active_project_ids, run_async


def test_run_async_returns_result():
    async def answer():
        return 42

    assert run_async(answer()) == 42


@pytest.mark.asyncio
async def test_active_projects_skip_complete_and_deleted(client, auth_headers, db_session):
    ids = []
    for name in ("Active", "Done", "Gone"):
        resp = await client.post(
            "/api/v1/projects", json={"name": name, "seed_template": False}, headers=auth_headers
        )
        ids.append(resp.json()["id"])

    await client.patch(f"/api/v1/projects/{ids[1]}", json={"status": "in_progress"}, headers=auth_headers)
    await client.patch(f"/api/v1/projects/{ids[1]}", json={"status": "complete"}, headers=auth_headers)
    await client.delete(f"/api/v1/projects/{ids[2]}", headers=auth_headers)

    assert await active_project_ids(db_session) == [ids[0]]
