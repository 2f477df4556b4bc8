import pytest


@pytest.mark.asyncio
async def test_register(client):
    response = await client.post(
        "/api/v1/auth/register",
        json={
            "email": "NewUser@VoltBuild.io",
            "password": "securepass123",
            "full_name": "New User",
            "company": "Hashworks",
            "role": "engineer",
        },
    )
    assert response.status_code == 201
    data = response.json()
    assert data["email"] == "newuser@voltbuild.io"
    assert data["role"] == "engineer"
    assert data["company"] == "Hashworks"
    assert "id" in data


@pytest.mark.asyncio
async def test_register_admin_role_rejected(client):
    response = await client.post(
        "/api/v1/auth/register",
        json={
            "email": "sneaky@voltbuild.io",
            "password": "securepass123",
            "full_name": "Sneaky",
            "role": "admin",
        },
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_register_short_password(client):
    response = await client.post(
        "/api/v1/auth/register",
        json={"email": "short@voltbuild.io", "password": "abc", "full_name": "Short"},
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_register_duplicate_email(client):
    payload = {
        "email": "duplicate@voltbuild.io",
        "password": "securepass123",
        "full_name": "First User",
    }
    await client.post("/api/v1/auth/register", json=payload)

    response = await client.post("/api/v1/auth/register", json=payload)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_login_and_refresh(client):
    await client.post(
        "/api/v1/auth/register",
        json={"email": "login@voltbuild.io", "password": "mypassword", "full_name": "Login User"},
    )

    response = await client.post(
        "/api/v1/auth/login",
        json={"email": "login@voltbuild.io", "password": "mypassword"},
    )
    assert response.status_code == 200
    tokens = response.json()
    assert tokens["token_type"] == "bearer"

    refreshed = await client.post(
        "/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]}
    )
    assert refreshed.status_code == 200
    assert "access_token" in refreshed.json()


@pytest.mark.asyncio
async def test_refresh_rejects_access_token(client, owner_user):
    from voltbuild.common.security import create_access_token

    token = create_access_token({"sub": str(owner_user.id)})
    response = await client.post("/api/v1/auth/refresh", json={"refresh_token": token})
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_login_invalid_credentials(client):
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": "nobody@voltbuild.io", "password": "wrong"},
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_get_me(client, auth_headers):
    response = await client.get("/api/v1/auth/me", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["role"] == "owner"


@pytest.mark.asyncio
async def test_get_me_no_auth(client):
    response = await client.get("/api/v1/auth/me")
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_get_me_bad_token(client):
    response = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 403
