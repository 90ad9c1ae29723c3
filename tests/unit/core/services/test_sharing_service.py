"""Unit tests for SharingService."""

import uuid
from datetime import timedelta, timezone

import pytest

from notesuite.core.errors import ConflictError, NotFoundError, UnauthorizedError, ValidationError
from notesuite.core.models import Permission
from notesuite.core.models.base import utcnow
from notesuite.core.schemas.sharing import ShareRequest, ShareUpdate
from notesuite.core.services.note_service import NoteService
from notesuite.core.services.sharing_service import SharingService


@pytest.fixture
async def note(owner, make_note):
    return await make_note(owner, title="Quarterly report")


def _request(user, permission=Permission.READ, expires_at=None):
    return ShareRequest(shared_with_email=user.email, permission=permission, expires_at=expires_at)


class TestShareNote:
    @pytest.mark.asyncio
    async def test_share_grants_access(self, test_session, note, owner, other_user):
        share = await SharingService(test_session).share_note(
            note.id, owner.id, _request(other_user, Permission.WRITE)
        )

        assert share.note_id == note.id
        assert share.note_title == "Quarterly report"
        assert share.shared_with_user_id == other_user.id
        assert share.shared_with_email == "other@example.com"
        assert share.shared_by_user_id == owner.id
        assert share.permission == Permission.WRITE
        assert share.is_active and not share.is_expired

        permission = await NoteService(test_session).get_permission(note.id, other_user.id)
        assert permission.permission == Permission.WRITE
        assert permission.via == "share"
        assert permission.can_write and not permission.can_admin

    @pytest.mark.asyncio
    async def test_email_lookup_is_case_insensitive(self, test_session, note, owner, other_user):
        request = ShareRequest(shared_with_email="Other@Example.com")
        share = await SharingService(test_session).share_note(note.id, owner.id, request)
        assert share.shared_with_user_id == other_user.id

    @pytest.mark.asyncio
    async def test_only_owner_can_share(self, test_session, note, other_user, make_user, make_share):
        third = await make_user("third@example.com")
        # an ADMIN share is still not ownership
        await make_share(note, other_user, Permission.ADMIN)
        with pytest.raises(UnauthorizedError):
            await SharingService(test_session).share_note(note.id, other_user.id, _request(third))

    @pytest.mark.asyncio
    async def test_unknown_recipient(self, test_session, note, owner):
        request = ShareRequest(shared_with_email="nobody@example.com")
        with pytest.raises(NotFoundError):
            await SharingService(test_session).share_note(note.id, owner.id, request)

    @pytest.mark.asyncio
    async def test_inactive_recipient(self, test_session, note, owner, make_user):
        dormant = await make_user("dormant@example.com", is_active=False)
        with pytest.raises(NotFoundError):
            await SharingService(test_session).share_note(note.id, owner.id, _request(dormant))

    @pytest.mark.asyncio
    async def test_self_share_rejected(self, test_session, note, owner):
        with pytest.raises(ValidationError):
            await SharingService(test_session).share_note(note.id, owner.id, _request(owner))

    @pytest.mark.asyncio
    async def test_missing_note(self, test_session, owner, other_user):
        with pytest.raises(NotFoundError):
            await SharingService(test_session).share_note(uuid.uuid4(), owner.id, _request(other_user))

    @pytest.mark.asyncio
    async def test_past_expiry_rejected(self, test_session, note, owner, other_user, past):
        with pytest.raises(ValidationError):
            await SharingService(test_session).share_note(
                note.id, owner.id, _request(other_user, expires_at=past)
            )

    @pytest.mark.asyncio
    async def test_offset_expiry_still_grants_access(self, test_session, note, owner, other_user):
        eastern = timezone(timedelta(hours=-5))
        expires_at = (utcnow() + timedelta(hours=2)).astimezone(eastern)

        share = await SharingService(test_session).share_note(
            note.id, owner.id, _request(other_user, expires_at=expires_at)
        )
        assert share.expires_at == expires_at
        assert not share.is_expired

        fetched = await NoteService(test_session).get_note(note.id, other_user.id)
        assert fetched.id == note.id

    @pytest.mark.asyncio
    async def test_duplicate_active_share_conflicts(self, test_session, note, owner, other_user):
        service = SharingService(test_session)
        await service.share_note(note.id, owner.id, _request(other_user))
        with pytest.raises(ConflictError):
            await service.share_note(note.id, owner.id, _request(other_user, Permission.WRITE))

    @pytest.mark.asyncio
    async def test_expired_share_can_be_replaced(self, test_session, note, owner, other_user, make_share):
        old = await make_share(note, other_user, Permission.READ, expires_in=timedelta(seconds=-5))
        service = SharingService(test_session)

        new = await service.share_note(note.id, owner.id, _request(other_user, Permission.WRITE))

        assert new.id != old.id
        shares = await service.list_note_shares(note.id, owner.id, include_inactive=True)
        by_id = {s.id: s for s in shares}
        assert by_id[old.id].is_active is False
        assert by_id[new.id].is_active is True

    @pytest.mark.asyncio
    async def test_revoked_share_can_be_reissued(self, test_session, note, owner, other_user):
        service = SharingService(test_session)
        first = await service.share_note(note.id, owner.id, _request(other_user))
        await service.revoke_share(first.id, owner.id)

        second = await service.share_note(note.id, owner.id, _request(other_user))
        assert second.id != first.id


class TestShareLifecycle:
    @pytest.mark.asyncio
    async def test_revoke_removes_access(self, test_session, note, owner, other_user):
        sharing = SharingService(test_session)
        notes = NoteService(test_session)
        share = await sharing.share_note(note.id, owner.id, _request(other_user))
        assert (await notes.get_note(note.id, other_user.id)).id == note.id

        revoked = await sharing.revoke_share(share.id, owner.id)
        assert revoked.is_active is False

        with pytest.raises(UnauthorizedError):
            await notes.get_note(note.id, other_user.id)

    @pytest.mark.asyncio
    async def test_update_permission_and_expiry(self, test_session, note, owner, other_user, future):
        service = SharingService(test_session)
        share = await service.share_note(note.id, owner.id, _request(other_user))

        updated = await service.update_share(
            share.id, owner.id, ShareUpdate(permission=Permission.ADMIN, expires_at=future)
        )
        assert updated.permission == Permission.ADMIN
        assert updated.expires_at is not None

        cleared = await service.update_share(share.id, owner.id, ShareUpdate(clear_expiry=True))
        assert cleared.expires_at is None
        assert cleared.permission == Permission.ADMIN

    @pytest.mark.asyncio
    async def test_update_revoked_share_rejected(self, test_session, note, owner, other_user):
        service = SharingService(test_session)
        share = await service.share_note(note.id, owner.id, _request(other_user))
        await service.revoke_share(share.id, owner.id)
        with pytest.raises(ValidationError):
            await service.update_share(share.id, owner.id, ShareUpdate(permission=Permission.WRITE))

    @pytest.mark.asyncio
    async def test_recipient_cannot_manage_share(self, test_session, note, owner, other_user):
        service = SharingService(test_session)
        share = await service.share_note(note.id, owner.id, _request(other_user, Permission.ADMIN))
        with pytest.raises(UnauthorizedError):
            await service.revoke_share(share.id, other_user.id)
        with pytest.raises(UnauthorizedError):
            await service.update_share(share.id, other_user.id, ShareUpdate(permission=Permission.READ))

    @pytest.mark.asyncio
    async def test_delete_share(self, test_session, note, owner, other_user):
        service = SharingService(test_session)
        share = await service.share_note(note.id, owner.id, _request(other_user))
        assert await service.delete_share(share.id, owner.id)
        with pytest.raises(NotFoundError):
            await service.revoke_share(share.id, owner.id)

    @pytest.mark.asyncio
    async def test_revoke_all_and_counts(self, test_session, note, owner, other_user, make_user):
        service = SharingService(test_session)
        third = await make_user("third@example.com")
        await service.share_note(note.id, owner.id, _request(other_user, Permission.WRITE))
        await service.share_note(note.id, owner.id, _request(third))

        counts = await service.count_by_permission(note.id, owner.id)
        assert counts.counts == {"READ": 1, "WRITE": 1, "ADMIN": 0}
        assert counts.total == 2

        assert await service.revoke_all(note.id, owner.id) == 2
        assert (await service.count_by_permission(note.id, owner.id)).total == 0
        assert await service.list_note_shares(note.id, owner.id) == []

    @pytest.mark.asyncio
    async def test_received_shares(self, test_session, owner, other_user, make_note):
        service = SharingService(test_session)
        for title in ("a", "b", "c"):
            note = await make_note(owner, title=title)
            await service.share_note(note.id, owner.id, _request(other_user))

        page = await service.list_received(other_user.id, page=1, per_page=2)
        assert page.total == 3
        assert len(page.items) == 2
        assert page.has_next
        assert all(item.shared_with_user_id == other_user.id for item in page.items)

        assert (await service.list_received(owner.id)).total == 0

    @pytest.mark.asyncio
    async def test_cleanup_expired(self, test_session, note, owner, other_user, make_user, make_share):
        third = await make_user("third@example.com")
        await make_share(note, other_user, expires_in=timedelta(seconds=-1))
        await make_share(note, third, expires_in=timedelta(days=1))

        assert await SharingService(test_session).cleanup_expired() == 1
        active = await SharingService(test_session).list_note_shares(note.id, owner.id)
        assert [s.shared_with_user_id for s in active] == [third.id]
