"""Unit tests for NoteService: CRUD, permissions and listings."""

import asyncio
import uuid

import pytest

from notesuite.core.errors import NotFoundError, UnauthorizedError
from notesuite.core.models import NoteVisibility, Permission
from notesuite.core.schemas.notes import NoteCreate, NoteUpdate
from notesuite.core.services.note_service import NoteService
from notesuite.core.services.tag_service import TagService


async def _create(session, user, **fields):
    data = {"title": "Test Note", "content": "body"}
    data.update(fields)
    return await NoteService(session).create_note(user.id, NoteCreate(**data))


class TestCreateAndRead:
    @pytest.mark.asyncio
    async def test_create_note(self, test_session, owner):
        note = await _create(test_session, owner, tags=["Work", "ideas", "work"])

        assert note.owner_id == owner.id
        assert note.is_owner
        assert note.permission == Permission.ADMIN
        assert note.can_edit
        assert note.visibility == NoteVisibility.PRIVATE
        assert note.view_count == 0
        assert note.tags == ["ideas", "work"]

    @pytest.mark.asyncio
    async def test_each_read_bumps_view_count(self, test_session, owner):
        note = await _create(test_session, owner)
        service = NoteService(test_session)

        assert (await service.get_note(note.id, owner.id)).view_count == 1
        assert (await service.get_note(note.id, owner.id)).view_count == 2

    @pytest.mark.asyncio
    async def test_denied_read_does_not_count(self, test_session, owner, other_user):
        note = await _create(test_session, owner)
        service = NoteService(test_session)

        with pytest.raises(UnauthorizedError):
            await service.get_note(note.id, other_user.id)
        assert (await service.get_note(note.id, owner.id)).view_count == 1

    @pytest.mark.asyncio
    async def test_missing_note(self, test_session, owner):
        with pytest.raises(NotFoundError):
            await NoteService(test_session).get_note(uuid.uuid4(), owner.id)

    @pytest.mark.asyncio
    async def test_public_note_readable_anonymously(self, test_session, owner):
        note = await _create(test_session, owner, visibility=NoteVisibility.PUBLIC)
        read = await NoteService(test_session).get_note(note.id, None)

        assert read.is_owner is False
        assert read.permission == Permission.READ
        assert read.can_edit is False

    @pytest.mark.asyncio
    async def test_private_note_hidden_from_anonymous(self, test_session, owner):
        note = await _create(test_session, owner)
        with pytest.raises(UnauthorizedError):
            await NoteService(test_session).get_note(note.id, None)

    @pytest.mark.asyncio
    async def test_share_grants_read_on_private_note(
        self, test_session, owner, other_user, make_note, make_share
    ):
        note = await make_note(owner)
        await make_share(note, other_user, Permission.READ)

        read = await NoteService(test_session).get_note(note.id, other_user.id)
        assert read.permission == Permission.READ
        assert read.can_edit is False


class TestUpdate:
    @pytest.mark.asyncio
    async def test_owner_updates_everything(self, test_session, owner):
        note = await _create(test_session, owner, tags=["a"])
        updated = await NoteService(test_session).update_note(
            note.id,
            owner.id,
            NoteUpdate(title="New", content="changed", tags=["b"], visibility=NoteVisibility.PUBLIC),
        )
        assert updated.title == "New"
        assert updated.content == "changed"
        assert updated.tags == ["b"]
        assert updated.visibility == NoteVisibility.PUBLIC

    @pytest.mark.asyncio
    async def test_write_share_can_edit(self, test_session, owner, other_user, make_note, make_share):
        note = await make_note(owner)
        await make_share(note, other_user, Permission.WRITE)

        updated = await NoteService(test_session).update_note(
            note.id, other_user.id, NoteUpdate(content="edited by collaborator")
        )
        assert updated.content == "edited by collaborator"
        assert updated.permission == Permission.WRITE

    @pytest.mark.asyncio
    async def test_read_share_cannot_edit(self, test_session, owner, other_user, make_note, make_share):
        note = await make_note(owner, content="original")
        await make_share(note, other_user, Permission.READ)
        service = NoteService(test_session)

        with pytest.raises(UnauthorizedError):
            await service.update_note(note.id, other_user.id, NoteUpdate(content="nope"))
        assert (await service.get_note(note.id, owner.id)).content == "original"

    @pytest.mark.asyncio
    async def test_public_note_not_writable_by_strangers(self, test_session, owner, other_user):
        note = await _create(test_session, owner, visibility=NoteVisibility.PUBLIC)
        with pytest.raises(UnauthorizedError):
            await NoteService(test_session).update_note(note.id, other_user.id, NoteUpdate(title="x"))

    @pytest.mark.asyncio
    async def test_visibility_change_is_owner_only(
        self, test_session, owner, other_user, make_note, make_share
    ):
        note = await make_note(owner)
        await make_share(note, other_user, Permission.ADMIN)

        with pytest.raises(UnauthorizedError):
            await NoteService(test_session).update_note(
                note.id, other_user.id, NoteUpdate(visibility=NoteVisibility.PUBLIC)
            )

    @pytest.mark.asyncio
    async def test_update_bumps_updated_at(self, test_session, owner):
        note = await _create(test_session, owner)
        await asyncio.sleep(0.01)
        updated = await NoteService(test_session).update_note(note.id, owner.id, NoteUpdate(title="t2"))
        assert updated.updated_at > note.updated_at


class TestOwnerOperations:
    @pytest.mark.asyncio
    async def test_delete_note_releases_tags(self, test_session, owner):
        note = await _create(test_session, owner, tags=["gone"])
        service = NoteService(test_session)

        assert await service.delete_note(note.id, owner.id)
        with pytest.raises(NotFoundError):
            await service.get_note(note.id, owner.id)

        tags = await TagService(test_session).list_tags(include_unused=True)
        assert [(t.name, t.usage_count) for t in tags] == [("gone", 0)]

    @pytest.mark.asyncio
    async def test_delete_requires_owner(self, test_session, owner, other_user, make_note, make_share):
        note = await make_note(owner)
        await make_share(note, other_user, Permission.ADMIN)
        with pytest.raises(UnauthorizedError):
            await NoteService(test_session).delete_note(note.id, other_user.id)

    @pytest.mark.asyncio
    async def test_toggle_favorite(self, test_session, owner, other_user):
        note = await _create(test_session, owner)
        service = NoteService(test_session)

        assert (await service.toggle_favorite(note.id, owner.id)).is_favorite is True
        assert (await service.toggle_favorite(note.id, owner.id)).is_favorite is False
        with pytest.raises(UnauthorizedError):
            await service.toggle_favorite(note.id, other_user.id)

    @pytest.mark.asyncio
    async def test_permission_for_stranger(self, test_session, owner, other_user):
        note = await _create(test_session, owner)
        permission = await NoteService(test_session).get_permission(note.id, other_user.id)
        assert permission.permission is None
        assert not permission.can_read


class TestListings:
    @pytest.mark.asyncio
    async def test_list_filters(self, test_session, owner, other_user):
        service = NoteService(test_session)
        await _create(test_session, owner, title="Groceries", content="milk", tags=["home"])
        await _create(test_session, owner, title="Sprint", content="tickets", tags=["work"])
        public = await _create(
            test_session, owner, title="Blog draft", content="hello", visibility=NoteVisibility.PUBLIC
        )
        await _create(test_session, other_user, title="Not mine")
        await service.toggle_favorite(public.id, owner.id)

        assert (await service.list_user_notes(owner.id)).total == 3
        by_text = await service.list_user_notes(owner.id, search="MILK")
        assert [n.title for n in by_text.items] == ["Groceries"]
        by_tag = await service.list_user_notes(owner.id, tag_filter=["Work"])
        assert [n.title for n in by_tag.items] == ["Sprint"]
        by_visibility = await service.list_user_notes(owner.id, visibility=NoteVisibility.PUBLIC)
        assert [n.title for n in by_visibility.items] == ["Blog draft"]
        favorites = await service.list_user_notes(owner.id, favorites_only=True)
        assert [n.id for n in favorites.items] == [public.id]

    @pytest.mark.asyncio
    async def test_pagination(self, test_session, owner):
        service = NoteService(test_session)
        for i in range(5):
            await _create(test_session, owner, title=f"n{i}")

        page = await service.list_user_notes(owner.id, page=2, per_page=2)
        assert page.total == 5
        assert page.pages == 3
        assert len(page.items) == 2
        assert page.has_prev and page.has_next

    @pytest.mark.asyncio
    async def test_shared_with_me_and_public(self, test_session, owner, other_user, make_share):
        service = NoteService(test_session)
        private = await _create(test_session, owner, title="private")
        await _create(test_session, owner, title="public", visibility=NoteVisibility.PUBLIC)
        note_row = await service.note_repo.get_by_id(private.id)
        await make_share(note_row, other_user, Permission.READ)

        shared = await service.list_shared_with_me(other_user.id)
        assert [n.title for n in shared.items] == ["private"]
        assert shared.items[0].owner_id == owner.id

        public = await service.list_public_notes()
        assert [n.title for n in public.items] == ["public"]
