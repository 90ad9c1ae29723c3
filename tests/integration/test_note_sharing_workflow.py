"""Integration test for the complete note sharing workflow over HTTP."""

import pytest

PASSWORD = "testpass123"


async def _register(client, email) -> dict:
    resp = await client.post("/api/auth/register", json={"email": email, "password": PASSWORD})
    assert resp.status_code == 201, resp.text
    return resp.json()


def _bearer(tokens) -> dict:
    return {"Authorization": f"Bearer {tokens['access_token']}"}


class TestNoteSharingWorkflow:
    """Owner shares, recipient reads but cannot edit, owner revokes."""

    @pytest.mark.asyncio
    async def test_complete_sharing_workflow(self, async_client):
        alice = await _register(async_client, "alice@example.com")
        bob = await _register(async_client, "bob@example.com")

        # Step 1: Alice creates a private note
        created = await async_client.post(
            "/api/notes/",
            json={"title": "Q4 plan", "content": "draft", "tags": ["planning"]},
            headers=_bearer(alice),
        )
        assert created.status_code == 201
        note = created.json()
        assert note["visibility"] == "PRIVATE"

        # Bob sees nothing yet
        denied = await async_client.get(f"/api/notes/{note['id']}", headers=_bearer(bob))
        assert denied.status_code == 403

        # Step 2: Alice shares READ with Bob
        shared = await async_client.post(
            f"/api/notes/{note['id']}/shares",
            json={"shared_with_email": "Bob@Example.com", "permission": "READ"},
            headers=_bearer(alice),
        )
        assert shared.status_code == 201
        share = shared.json()
        assert share["shared_with_user_id"] == bob["user"]["id"]

        # Step 3: Bob reads it and finds it in his lists
        read = await async_client.get(f"/api/notes/{note['id']}", headers=_bearer(bob))
        assert read.status_code == 200
        assert read.json()["permission"] == "READ"
        assert read.json()["can_edit"] is False

        shared_with_me = await async_client.get("/api/notes/shared-with-me", headers=_bearer(bob))
        assert [item["id"] for item in shared_with_me.json()["items"]] == [note["id"]]

        received = await async_client.get("/api/shares/received", headers=_bearer(bob))
        assert received.json()["total"] == 1

        permission = await async_client.get(
            f"/api/notes/{note['id']}/permission", headers=_bearer(bob)
        )
        assert permission.json()["via"] == "share"

        # Step 4: Bob cannot edit with READ
        edit = await async_client.put(
            f"/api/notes/{note['id']}", json={"content": "hijacked"}, headers=_bearer(bob)
        )
        assert edit.status_code == 403

        # Step 5: Alice upgrades to WRITE, Bob edits
        upgraded = await async_client.patch(
            f"/api/shares/{share['id']}", json={"permission": "WRITE"}, headers=_bearer(alice)
        )
        assert upgraded.json()["permission"] == "WRITE"

        edit = await async_client.put(
            f"/api/notes/{note['id']}", json={"content": "reviewed"}, headers=_bearer(bob)
        )
        assert edit.status_code == 200
        assert edit.json()["content"] == "reviewed"

        # but visibility stays the owner's call
        publish = await async_client.put(
            f"/api/notes/{note['id']}", json={"visibility": "PUBLIC"}, headers=_bearer(bob)
        )
        assert publish.status_code == 403

        counts = await async_client.get(
            f"/api/notes/{note['id']}/shares/counts", headers=_bearer(alice)
        )
        assert counts.json()["counts"]["WRITE"] == 1

        # Step 6: Alice revokes, Bob loses access
        revoked = await async_client.post(
            f"/api/shares/{share['id']}/revoke", headers=_bearer(alice)
        )
        assert revoked.status_code == 200
        assert revoked.json()["is_active"] is False

        after = await async_client.get(f"/api/notes/{note['id']}", headers=_bearer(bob))
        assert after.status_code == 403

        history = await async_client.get(
            f"/api/notes/{note['id']}/shares",
            params={"include_inactive": True},
            headers=_bearer(alice),
        )
        assert len(history.json()) == 1

    @pytest.mark.asyncio
    async def test_deleting_note_removes_shares(self, async_client):
        alice = await _register(async_client, "alice@example.com")
        bob = await _register(async_client, "bob@example.com")

        note = (
            await async_client.post(
                "/api/notes/", json={"title": "temp", "content": "x"}, headers=_bearer(alice)
            )
        ).json()
        await async_client.post(
            f"/api/notes/{note['id']}/shares",
            json={"shared_with_email": "bob@example.com"},
            headers=_bearer(alice),
        )

        deleted = await async_client.delete(f"/api/notes/{note['id']}", headers=_bearer(alice))
        assert deleted.status_code == 204

        received = await async_client.get("/api/shares/received", headers=_bearer(bob))
        assert received.json()["total"] == 0
        gone = await async_client.get(f"/api/notes/{note['id']}", headers=_bearer(bob))
        assert gone.status_code == 404
