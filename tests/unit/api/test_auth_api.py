"""Unit tests for the auth router (notesuite/api/auth.py)."""

from typing import Any

import pytest

PASSWORD = "TestPassword123!"  # shared by every fixture user


def _json_ok(resp) -> dict[str, Any]:
    assert resp.status_code in (200, 201), resp.text
    return resp.json()


async def _login(client, email="owner@example.com") -> dict[str, Any]:
    return _json_ok(await client.post("/api/auth/login", json={"email": email, "password": PASSWORD}))


def _bearer(tokens) -> dict[str, str]:
    return {"Authorization": f"Bearer {tokens['access_token']}"}


@pytest.mark.asyncio
async def test_register(async_client):
    resp = await async_client.post(
        "/api/auth/register",
        json={"email": "New.User@Example.com", "password": PASSWORD, "confirm_password": PASSWORD},
    )

    assert resp.status_code == 201
    data = resp.json()
    assert data["token_type"] == "bearer"
    assert data["expires_in"] == 900
    assert data["user"]["email"] == "new.user@example.com"
    assert data["refresh_token"]


@pytest.mark.asyncio
async def test_register_password_mismatch(async_client):
    resp = await async_client.post(
        "/api/auth/register",
        json={"email": "x@example.com", "password": PASSWORD, "confirm_password": "different1"},
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_check_email(async_client, owner):
    taken = _json_ok(await async_client.get("/api/auth/check-email", params={"email": "owner@example.com"}))
    free = _json_ok(await async_client.get("/api/auth/check-email", params={"email": "free@example.com"}))

    assert taken["available"] is False
    assert free["available"] is True


@pytest.mark.asyncio
async def test_me(async_client, owner):
    tokens = await _login(async_client)

    me = _json_ok(await async_client.get("/api/auth/me", headers=_bearer(tokens)))

    assert me["id"] == str(owner.id)
    assert me["last_login_at"] is not None


@pytest.mark.asyncio
async def test_inactive_account_login_looks_like_bad_password(async_client, make_user):
    await make_user("sleeping@example.com", is_active=False)

    inactive = await async_client.post(
        "/api/auth/login", json={"email": "sleeping@example.com", "password": PASSWORD}
    )
    unknown = await async_client.post(
        "/api/auth/login", json={"email": "nobody@example.com", "password": PASSWORD}
    )

    assert inactive.status_code == unknown.status_code == 401
    assert inactive.json()["message"] == unknown.json()["message"]


@pytest.mark.asyncio
async def test_refresh_with_garbage_is_401(async_client):
    resp = await async_client.post("/api/auth/refresh", json={"refresh_token": "not-a-token"})

    assert resp.status_code == 401
    assert resp.json()["error"] == "token_invalid"


@pytest.mark.asyncio
async def test_logout_revokes_tokens(async_client, owner):
    tokens = await _login(async_client)

    resp = await async_client.post(
        "/api/auth/logout", json={"refresh_token": tokens["refresh_token"]}, headers=_bearer(tokens)
    )
    assert _json_ok(resp)["data"] == {"refresh_token_revoked": True}

    # access token is blacklisted
    assert (await async_client.get("/api/auth/me", headers=_bearer(tokens))).status_code == 401
    refreshed = await async_client.post(
        "/api/auth/refresh", json={"refresh_token": tokens["refresh_token"]}
    )
    assert refreshed.status_code == 401
    assert refreshed.json()["error"] == "token_revoked"


@pytest.mark.asyncio
async def test_logout_without_body(async_client, owner):
    tokens = await _login(async_client)

    resp = await async_client.post("/api/auth/logout", headers=_bearer(tokens))
    assert _json_ok(resp)["data"] == {"refresh_token_revoked": False}


@pytest.mark.asyncio
async def test_sessions_and_logout_all(async_client, owner):
    first = await _login(async_client)
    second = await _login(async_client)

    sessions = _json_ok(await async_client.get("/api/auth/sessions", headers=_bearer(second)))
    # a new login ends the previous session
    assert len(sessions) == 1
    assert sessions[0]["ip_address"] == "127.0.0.1"

    resp = await async_client.post("/api/auth/logout-all", headers=_bearer(second))
    assert _json_ok(resp)["data"] == {"revoked": 1}

    for tokens in (first, second):
        refreshed = await async_client.post(
            "/api/auth/refresh", json={"refresh_token": tokens["refresh_token"]}
        )
        assert refreshed.status_code == 401
