"""Note service implementation."""

from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from ...config import get_settings
from ...database import unit_of_work
from ..errors import UnauthorizedError
from ..logging import get_logger
from ..models.base import as_utc, utcnow
from ..models.note import Note, NoteVisibility
from ..models.share import Permission
from ..repositories.note_repository import NoteRepository
from ..schemas.notes import (
    NoteCreate,
    NoteListItem,
    NoteListResponse,
    NotePermissionResponse,
    NoteResponse,
    NoteUpdate,
)
from .access_control import AccessControl, effective_capability, ensure_allowed
from .interfaces import INoteService
from .tag_service import TagService

logger = get_logger("services.notes")


class NoteService(INoteService):
    """Note CRUD. Every call names its principal explicitly."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.note_repo = NoteRepository(session)
        self.access = AccessControl(session)
        self.tags = TagService(session)
        self.settings = get_settings()

    def _page_bounds(self, page: int, per_page: int) -> tuple[int, int]:
        if page < 1:
            page = 1
        if per_page < 1 or per_page > self.settings.max_page_size:
            per_page = self.settings.default_page_size
        return page, per_page

    async def create_note(self, user_id: UUID, request: NoteCreate) -> NoteResponse:
        """Create new note."""
        async with unit_of_work(self.session):
            note = await self.note_repo.create_note(
                {
                    "title": request.title,
                    "content": request.content,
                    "visibility": request.visibility,
                    "owner_id": user_id,
                }
            )
            if request.tags:
                await self.tags.set_note_tags(note.id, request.tags)
            note_id = note.id

        note = await self.note_repo.get_by_id(note_id)
        logger.info("Note created", extra={"note_id": str(note_id), "owner_id": str(user_id)})
        return self._to_response(note, user_id, Permission.ADMIN)

    async def get_note(self, note_id: UUID, user_id: Optional[UUID]) -> NoteResponse:
        """Read a note; each successful read bumps its view counter once."""
        note, shares = await self.access.load(note_id, user_id)
        decision = ensure_allowed(note, user_id, Permission.READ, shares)

        async with unit_of_work(self.session):
            view_count = await self.note_repo.increment_view_count(note_id)

        granted, _ = effective_capability(note, user_id, shares)
        response = self._to_response(note, user_id, granted)
        response.view_count = view_count if view_count is not None else note.view_count
        logger.debug("Note read", extra={"note_id": str(note_id), "via": decision.via})
        return response

    async def update_note(self, note_id: UUID, user_id: UUID, request: NoteUpdate) -> NoteResponse:
        """Edit title/content/tags (WRITE) or visibility (owner only)."""
        note, shares = await self.access.load(note_id, user_id)
        ensure_allowed(note, user_id, Permission.WRITE, shares)

        if request.visibility is not None and request.visibility != note.visibility:
            if note.owner_id != user_id:
                raise UnauthorizedError("Only the note owner can change visibility")

        changes = {}
        if request.title is not None:
            changes["title"] = request.title
        if request.content is not None:
            changes["content"] = request.content
        if request.visibility is not None:
            changes["visibility"] = request.visibility

        async with unit_of_work(self.session):
            if changes:
                await self.note_repo.update_note(note, changes)
            if request.tags is not None:
                await self.tags.set_note_tags(note_id, request.tags)

        note = await self.note_repo.get_by_id(note_id)
        granted, _ = effective_capability(note, user_id, shares)
        logger.info(
            "Note updated",
            extra={"note_id": str(note_id), "user_id": str(user_id), "fields": sorted(changes)},
        )
        return self._to_response(note, user_id, granted)

    async def delete_note(self, note_id: UUID, user_id: UUID) -> bool:
        """Delete note with its shares, links and tag links (owner only)."""
        await self.access.require_owner(note_id, user_id)
        async with unit_of_work(self.session):
            await self.tags.clear_note_tags(note_id)
            deleted = await self.note_repo.delete_note(note_id)
        logger.info("Note deleted", extra={"note_id": str(note_id), "owner_id": str(user_id)})
        return deleted

    async def toggle_favorite(self, note_id: UUID, user_id: UUID) -> NoteResponse:
        """Flip the favourite flag (owner only)."""
        note = await self.access.require_owner(note_id, user_id)
        async with unit_of_work(self.session):
            await self.note_repo.update_note(note, {"is_favorite": not note.is_favorite})
        note = await self.note_repo.get_by_id(note_id)
        return self._to_response(note, user_id, Permission.ADMIN)

    async def get_permission(self, note_id: UUID, user_id: UUID) -> NotePermissionResponse:
        note, shares = await self.access.load(note_id, user_id)
        granted, via = effective_capability(note, user_id, shares)
        return NotePermissionResponse(
            note_id=note_id,
            permission=granted,
            via=via,
            can_read=granted is not None,
            can_write=granted is not None and granted.satisfies(Permission.WRITE),
            can_admin=granted is not None and granted.satisfies(Permission.ADMIN),
        )

    async def list_user_notes(
        self,
        user_id: UUID,
        page: int = 1,
        per_page: int = 20,
        tag_filter: Optional[List[str]] = None,
        search: Optional[str] = None,
        visibility: Optional[NoteVisibility] = None,
        favorites_only: bool = False,
    ) -> NoteListResponse:
        """List the caller's notes with pagination and filters."""
        page, per_page = self._page_bounds(page, per_page)
        notes, total = await self.note_repo.list_user_notes(
            user_id,
            page,
            per_page,
            search=search,
            tag_filter=tag_filter,
            visibility=visibility,
            favorites_only=favorites_only,
        )
        return NoteListResponse.create(
            items=[self._to_list_item(note) for note in notes], total=total, page=page, per_page=per_page
        )

    async def list_shared_with_me(
        self, user_id: UUID, page: int = 1, per_page: int = 20, search: Optional[str] = None
    ) -> NoteListResponse:
        page, per_page = self._page_bounds(page, per_page)
        notes, total = await self.note_repo.list_shared_with(
            user_id, utcnow(), page, per_page, search=search
        )
        return NoteListResponse.create(
            items=[self._to_list_item(note) for note in notes], total=total, page=page, per_page=per_page
        )

    async def list_public_notes(
        self, page: int = 1, per_page: int = 20, search: Optional[str] = None
    ) -> NoteListResponse:
        page, per_page = self._page_bounds(page, per_page)
        notes, total = await self.note_repo.list_public(page, per_page, search=search)
        return NoteListResponse.create(
            items=[self._to_list_item(note) for note in notes], total=total, page=page, per_page=per_page
        )

    def _to_response(
        self, note: Note, user_id: Optional[UUID], granted: Optional[Permission]
    ) -> NoteResponse:
        return NoteResponse(
            id=note.id,
            title=note.title,
            content=note.content,
            tags=note.tag_names,
            visibility=note.visibility,
            is_favorite=note.is_favorite,
            view_count=note.view_count,
            owner_id=note.owner_id,
            is_owner=user_id is not None and note.owner_id == user_id,
            permission=granted,
            can_edit=granted is not None and granted.satisfies(Permission.WRITE),
            created_at=as_utc(note.created_at),
            updated_at=as_utc(note.updated_at),
        )

    def _to_list_item(self, note: Note) -> NoteListItem:
        return NoteListItem(
            id=note.id,
            title=note.title,
            content_preview=note.preview,
            tags=note.tag_names,
            visibility=note.visibility,
            is_favorite=note.is_favorite,
            view_count=note.view_count,
            owner_id=note.owner_id,
            created_at=as_utc(note.created_at),
            updated_at=as_utc(note.updated_at),
        )
