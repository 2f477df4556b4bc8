import pytest


async def _first_task(client, headers, project):
    tasks = await client.get(f"/api/v1/projects/{project['id']}/tasks", headers=headers)
    return tasks.json()["tasks"][0]


@pytest.mark.asyncio
async def test_list_secure_share_documents(client, auth_headers):
    resp = await client.get("/api/v1/secure-share/documents", headers=auth_headers)
    assert resp.status_code == 200
    ids = [d["id"] for d in resp.json()]
    assert "ss-doc-001" in ids
    assert len(ids) == 6


@pytest.mark.asyncio
async def test_search_secure_share_documents(client, auth_headers):
    resp = await client.get(
        "/api/v1/secure-share/documents", params={"search": "geotech"}, headers=auth_headers
    )
    assert [d["id"] for d in resp.json()] == ["ss-doc-003"]


@pytest.mark.asyncio
async def test_attach_and_detach(client, auth_headers, project):
    task = await _first_task(client, auth_headers, project)
    url = f"/api/v1/projects/{project['id']}/tasks/{task['id']}/documents"

    resp = await client.post(url, json={"secure_share_id": "ss-doc-001"}, headers=auth_headers)
    assert resp.status_code == 201
    doc = resp.json()
    assert doc["filename"] == "Interconnection_Agreement_Draft.pdf"

    listing = await client.get(url, headers=auth_headers)
    assert [d["secure_share_id"] for d in listing.json()] == ["ss-doc-001"]

    resp = await client.delete(f"{url}/{doc['id']}", headers=auth_headers)
    assert resp.status_code == 204
    listing = await client.get(url, headers=auth_headers)
    assert listing.json() == []


@pytest.mark.asyncio
async def test_attach_twice_conflicts(client, auth_headers, project):
    task = await _first_task(client, auth_headers, project)
    url = f"/api/v1/projects/{project['id']}/tasks/{task['id']}/documents"

    await client.post(url, json={"secure_share_id": "ss-doc-002"}, headers=auth_headers)
    resp = await client.post(url, json={"secure_share_id": "ss-doc-002"}, headers=auth_headers)
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_reattach_after_detach(client, auth_headers, project):
    task = await _first_task(client, auth_headers, project)
    url = f"/api/v1/projects/{project['id']}/tasks/{task['id']}/documents"

    doc = (await client.post(url, json={"secure_share_id": "ss-doc-004"}, headers=auth_headers)).json()
    await client.delete(f"{url}/{doc['id']}", headers=auth_headers)

    resp = await client.post(url, json={"secure_share_id": "ss-doc-004"}, headers=auth_headers)
    assert resp.status_code == 201
    assert resp.json()["id"] == doc["id"]


@pytest.mark.asyncio
async def test_attach_unknown_document(client, auth_headers, project):
    task = await _first_task(client, auth_headers, project)
    resp = await client.post(
        f"/api/v1/projects/{project['id']}/tasks/{task['id']}/documents",
        json={"secure_share_id": "ss-doc-999"},
        headers=auth_headers,
    )
    assert resp.status_code == 404
