"""Note repository for database operations."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import and_, delete, desc, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models.note import Note, NoteVisibility
from ..models.share import Share
from ..models.tag import NoteTag, Tag


class NoteRepository:
    """Repository for note database operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_note(self, note_data: dict) -> Note:
        """Create new note (flushed, not committed)."""
        note = Note(**note_data)
        self.session.add(note)
        await self.session.flush()
        return note

    async def get_by_id(self, note_id: UUID) -> Optional[Note]:
        """Get note by ID with its tags, bypassing stale session state."""
        stmt = (
            select(Note)
            .options(selectinload(Note.tags))
            .where(Note.id == note_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def update_note(self, note: Note, update_data: dict) -> Note:
        """Apply column changes to a loaded note."""
        for key, value in update_data.items():
            setattr(note, key, value)
        await self.session.flush()
        return note

    async def delete_note(self, note_id: UUID) -> bool:
        """Delete a note; shares, links and tag links go with it (ON DELETE CASCADE)."""
        stmt = delete(Note).where(Note.id == note_id).execution_options(synchronize_session=False)
        result = await self.session.execute(stmt)
        return (result.rowcount or 0) > 0

    async def increment_view_count(self, note_id: UUID) -> Optional[int]:
        """Atomic view counter bump. Returns the new count (None if the note is gone)."""
        stmt = (
            update(Note)
            .where(Note.id == note_id)
            .values(view_count=Note.view_count + 1)
            .returning(Note.view_count)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    def _apply_filters(
        self,
        stmt,
        search: Optional[str] = None,
        tag_filter: Optional[List[str]] = None,
        visibility: Optional[NoteVisibility] = None,
        favorites_only: bool = False,
    ):
        has_query = search and search.strip() and search.strip() != "*"
        if has_query:
            pattern = f"%{search.strip()}%"
            stmt = stmt.where(or_(Note.title.ilike(pattern), Note.content.ilike(pattern)))

        if tag_filter:
            # subquery avoids duplicating rows when several tags match
            tagged = (
                select(NoteTag.note_id)
                .join(Tag, Tag.id == NoteTag.tag_id)
                .where(Tag.name.in_([Tag.normalize_name(t) for t in tag_filter]))
            )
            stmt = stmt.where(Note.id.in_(tagged))

        if visibility is not None:
            stmt = stmt.where(Note.visibility == visibility)
        if favorites_only:
            stmt = stmt.where(Note.is_favorite.is_(True))
        return stmt

    async def _paginate(self, condition, page: int, per_page: int, **filters) -> tuple[List[Note], int]:
        offset = (page - 1) * per_page

        count_stmt = self._apply_filters(select(func.count(Note.id)).where(condition), **filters)
        total_result = await self.session.execute(count_stmt)
        total_count = total_result.scalar() or 0

        stmt = self._apply_filters(
            select(Note).options(selectinload(Note.tags)).where(condition), **filters
        )
        stmt = stmt.order_by(desc(Note.updated_at)).offset(offset).limit(per_page)
        result = await self.session.execute(stmt)
        return list(result.scalars()), total_count

    async def list_user_notes(
        self,
        user_id: UUID,
        page: int = 1,
        per_page: int = 20,
        search: Optional[str] = None,
        tag_filter: Optional[List[str]] = None,
        visibility: Optional[NoteVisibility] = None,
        favorites_only: bool = False,
    ) -> tuple[List[Note], int]:
        """List notes owned by a user with optional search/tag/visibility filters."""
        return await self._paginate(
            Note.owner_id == user_id,
            page,
            per_page,
            search=search,
            tag_filter=tag_filter,
            visibility=visibility,
            favorites_only=favorites_only,
        )

    async def list_shared_with(
        self,
        user_id: UUID,
        now: datetime,
        page: int = 1,
        per_page: int = 20,
        search: Optional[str] = None,
    ) -> tuple[List[Note], int]:
        """Notes other users shared with this user through a currently valid share."""
        shared_ids = select(Share.note_id).where(
            and_(
                Share.shared_with_user_id == user_id,
                Share.is_active.is_(True),
                or_(Share.expires_at.is_(None), Share.expires_at > now),
            )
        )
        return await self._paginate(Note.id.in_(shared_ids), page, per_page, search=search)

    async def list_public(
        self, page: int = 1, per_page: int = 20, search: Optional[str] = None
    ) -> tuple[List[Note], int]:
        return await self._paginate(
            Note.visibility == NoteVisibility.PUBLIC, page, per_page, search=search
        )
