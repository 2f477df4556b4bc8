import pytest


@pytest.mark.asyncio
async def test_create_project_seeds_default_plan(client, auth_headers, project):
    assert project["name"] == "Test Facility 20 MW"
    assert project["status"] == "planning"
    assert project["cooling_type"] == "immersion"
    assert project["capex_budget"] == "10000000.00"
    assert project["progress"] == 0

    phases = await client.get(f"/api/v1/projects/{project['id']}/phases", headers=auth_headers)
    names = [p["name"] for p in phases.json()["phases"]]
    assert names[0] == "Site Preparation"
    assert names[-1] == "Commissioning"
    assert len(names) == 6

    tasks = await client.get(f"/api/v1/projects/{project['id']}/tasks", headers=auth_headers)
    assert tasks.json()["total"] > 0
    assert all(t["status"] == "not_started" for t in tasks.json()["tasks"])


@pytest.mark.asyncio
async def test_create_project_without_template(client, auth_headers, empty_project):
    phases = await client.get(
        f"/api/v1/projects/{empty_project['id']}/phases", headers=auth_headers
    )
    assert phases.json()["total"] == 0


@pytest.mark.asyncio
async def test_contractor_cannot_create_project(client, contractor_headers):
    response = await client.post(
        "/api/v1/projects", json={"name": "Nope"}, headers=contractor_headers
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_create_project_rejects_inverted_dates(client, auth_headers):
    response = await client.post(
        "/api/v1/projects",
        json={"name": "Backwards", "planned_start_date": "2025-06-01", "planned_end_date": "2025-01-01"},
        headers=auth_headers,
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_list_projects_scoped_to_owner(client, auth_headers, other_headers, project):
    mine = await client.get("/api/v1/projects", headers=auth_headers)
    assert mine.json()["total"] == 1

    theirs = await client.get("/api/v1/projects", headers=other_headers)
    assert theirs.json()["total"] == 0


@pytest.mark.asyncio
async def test_admin_sees_all_projects(client, admin_headers, project):
    response = await client.get("/api/v1/projects", headers=admin_headers)
    assert response.json()["total"] == 1

    detail = await client.get(f"/api/v1/projects/{project['id']}", headers=admin_headers)
    assert detail.status_code == 200


@pytest.mark.asyncio
async def test_other_owner_forbidden(client, other_headers, project):
    response = await client.get(f"/api/v1/projects/{project['id']}", headers=other_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_update_project(client, auth_headers, project):
    response = await client.patch(
        f"/api/v1/projects/{project['id']}",
        headers=auth_headers,
        json={"name": "Renamed", "capex_budget": "12500000"},
    )
    assert response.status_code == 200
    assert response.json()["name"] == "Renamed"
    assert response.json()["capex_budget"] == "12500000.00"


@pytest.mark.asyncio
async def test_project_status_transition(client, auth_headers, project):
    response = await client.patch(
        f"/api/v1/projects/{project['id']}",
        headers=auth_headers,
        json={"status": "in_progress"},
    )
    assert response.status_code == 200
    assert response.json()["status"] == "in_progress"
    assert response.json()["actual_start_date"] is not None


@pytest.mark.asyncio
async def test_invalid_status_transition(client, auth_headers, project):
    response = await client.patch(
        f"/api/v1/projects/{project['id']}",
        headers=auth_headers,
        json={"status": "complete"},
    )
    assert response.status_code == 400
    assert "Cannot transition" in response.json()["detail"]


@pytest.mark.asyncio
async def test_delete_project(client, auth_headers, project):
    response = await client.delete(f"/api/v1/projects/{project['id']}", headers=auth_headers)
    assert response.status_code == 204

    get_resp = await client.get(f"/api/v1/projects/{project['id']}", headers=auth_headers)
    assert get_resp.status_code == 404


@pytest.mark.asyncio
async def test_get_nonexistent_project(client, auth_headers):
    response = await client.get(
        "/api/v1/projects/00000000-0000-0000-0000-000000000000",
        headers=auth_headers,
    )
    assert response.status_code == 404
