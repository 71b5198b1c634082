import pytest
from fastapi import status

from cinestream.core.config import settings
from cinestream.core.security import create_access_token


@pytest.mark.asyncio
async def test_login_success_returns_token_and_cookie(client, admin_password):
    async with client as ac:
        response = await ac.post(
            "/api/auth/login", json={"username": "admin", "password": admin_password}
        )

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["token"]
    assert body["user"] == {
        "kind": "admin",
        "id": "admin",
        "username": "admin",
        "name": "Admin",
        "isAdmin": True,
    }
    set_cookie = response.headers["set-cookie"]
    assert f"{settings.AUTH_COOKIE_NAME}={body['token']}" in set_cookie
    assert "HttpOnly" in set_cookie


@pytest.mark.asyncio
async def test_login_wrong_password_is_401(client):
    async with client as ac:
        response = await ac.post(
            "/api/auth/login", json={"username": "admin", "password": "not-the-password"}
        )

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert "set-cookie" not in response.headers


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"username": "ad", "password": "long-enough-pw"},
        {"username": "admin", "password": "short"},
        {"username": "admin"},
    ],
)
async def test_login_bad_shape_is_400(client, payload):
    async with client as ac:
        response = await ac.post("/api/auth/login", json=payload)

    assert response.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.asyncio
async def test_me_with_bearer_token(client, admin_headers):
    async with client as ac:
        response = await ac.get("/api/auth/me", headers=admin_headers)

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["username"] == "admin"


@pytest.mark.asyncio
async def test_me_with_cookie(client, admin_token):
    async with client as ac:
        response = await ac.get(
            "/api/auth/me",
            headers={"Cookie": f"{settings.AUTH_COOKIE_NAME}={admin_token}"},
        )

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["kind"] == "admin"


@pytest.mark.asyncio
async def test_me_without_token_is_401(client):
    async with client as ac:
        response = await ac.get("/api/auth/me")

    assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.asyncio
async def test_me_for_unknown_identity_is_404(client):
    token = create_access_token(subject="admin", username="someone-else", is_admin=True)
    async with client as ac:
        response = await ac.get(
            "/api/auth/me", headers={"Authorization": f"Bearer {token}"}
        )

    assert response.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.asyncio
async def test_expired_token_is_401(client):
    from datetime import timedelta

    token = create_access_token(
        subject="admin", username="admin", is_admin=True, expires_delta=timedelta(minutes=-1)
    )
    async with client as ac:
        response = await ac.get(
            "/api/auth/me", headers={"Authorization": f"Bearer {token}"}
        )

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["detail"] == "Token has expired"


@pytest.mark.asyncio
async def test_logout_clears_cookie(client):
    async with client as ac:
        response = await ac.post("/api/auth/logout")

    assert response.status_code == status.HTTP_200_OK
    set_cookie = response.headers["set-cookie"]
    assert set_cookie.startswith(f"{settings.AUTH_COOKIE_NAME}=")
    assert "Max-Age=0" in set_cookie
