"""Integration test: refresh token rotation and replay rejection."""

import pytest


@pytest.mark.asyncio
async def test_rotation_rejects_replayed_token(async_client, owner):
    login = await async_client.post(
        "/api/auth/login", json={"email": "owner@example.com", "password": "TestPassword123!"}
    )
    assert login.status_code == 200
    original = login.json()["refresh_token"]

    rotated = await async_client.post("/api/auth/refresh", json={"refresh_token": original})
    assert rotated.status_code == 200
    successor = rotated.json()["refresh_token"]
    assert successor != original

    replay = await async_client.post("/api/auth/refresh", json={"refresh_token": original})
    assert replay.status_code == 401
    assert replay.json()["error"] == "token_revoked"
    assert replay.json()["details"]["reason"] == "rotation"

    again = await async_client.post("/api/auth/refresh", json={"refresh_token": successor})
    assert again.status_code == 200

    # the new access token works
    me = await async_client.get(
        "/api/auth/me", headers={"Authorization": f"Bearer {again.json()['access_token']}"}
    )
    assert me.status_code == 200
    assert me.json()["email"] == "owner@example.com"


@pytest.mark.asyncio
async def test_maintenance_cleanup_endpoint(async_client, owner, auth_headers):
    resp = await async_client.post("/api/maintenance/cleanup", headers=auth_headers(owner))

    assert resp.status_code == 200
    assert set(resp.json()) == {"refresh_tokens", "shares_deactivated", "public_links_deleted"}

    stats = await async_client.get("/api/maintenance/refresh-tokens/stats", headers=auth_headers(owner))
    assert stats.json() == {"total": 0, "valid": 0, "revoked": 0, "expired": 0}
