from fastapi import status
import pytest

from fshome.security import make_access_token, make_refresh_token

PASSWORD = "supersecret"  # matches the seeded admins


@pytest.mark.asyncio
async def test_login_me_refresh(client, admin_user):
    r = await client.post("/auth/login", json={"email": "ops@fshome.app", "password": PASSWORD})
    assert r.status_code == 200
    tokens = r.json()
    assert "access" in tokens and "refresh" in tokens

    me = await client.get("/auth/me", headers={"Authorization": f"Bearer {tokens['access']}"})
    assert me.status_code == 200
    body = me.json()
    assert body["email"] == "ops@fshome.app"
    assert body["role"] == "admin"

    r = await client.post("/auth/refresh", headers={"Authorization": f"Bearer {tokens['refresh']}"})
    assert r.status_code == 200
    assert r.json()["access"] != tokens["access"]


@pytest.mark.asyncio
async def test_login_wrong_password(client, admin_user):
    r = await client.post("/auth/login", json={"email": "ops@fshome.app", "password": "nope"})
    assert r.status_code == status.HTTP_401_UNAUTHORIZED
    r = await client.post("/auth/login", json={"email": "ghost@fshome.app", "password": PASSWORD})
    assert r.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.asyncio
async def test_token_types_are_not_interchangeable(client, admin_user):
    refresh = make_refresh_token(str(admin_user.id))
    r = await client.get("/auth/me", headers={"Authorization": f"Bearer {refresh}"})
    assert r.status_code == 401
    access = make_access_token(str(admin_user.id))
    r = await client.post("/auth/refresh", headers={"Authorization": f"Bearer {access}"})
    assert r.status_code == 401
    r = await client.get("/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_deactivated_admin_is_locked_out(client, session, admin_user, auth):
    admin_user.is_active = False
    await session.commit()
    r = await client.get("/seasons", headers=auth)
    assert r.status_code == 403
    r = await client.post("/auth/login", json={"email": "ops@fshome.app", "password": PASSWORD})
    assert r.status_code == 403
