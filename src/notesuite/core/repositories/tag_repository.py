"""Tag repository - tags and note/tag association rows."""

from typing import List, Sequence
from uuid import UUID

from sqlalchemy import and_, delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.tag import NoteTag, Tag


class TagRepository:
    """Repository for tag database operations.

    usage_count is kept in step with the association rows through atomic
    UPDATE statements issued alongside each attach/detach.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_names(self, names: Sequence[str]) -> List[Tag]:
        if not names:
            return []
        stmt = select(Tag).where(Tag.name.in_(list(names)))
        result = await self.session.execute(stmt)
        return list(result.scalars())

    async def get_or_create(self, names: Sequence[str]) -> List[Tag]:
        """Return tags for the (already normalized) names, creating missing ones."""
        existing = {tag.name: tag for tag in await self.get_by_names(names)}
        tags = []
        for name in names:
            tag = existing.get(name)
            if tag is None:
                tag = Tag(name=name, usage_count=0)
                self.session.add(tag)
                existing[name] = tag
            tags.append(tag)
        await self.session.flush()
        return tags

    async def get_note_tag_ids(self, note_id: UUID) -> List[UUID]:
        stmt = select(NoteTag.tag_id).where(NoteTag.note_id == note_id)
        result = await self.session.execute(stmt)
        return list(result.scalars())

    async def attach(self, note_id: UUID, tag_ids: Sequence[UUID]) -> None:
        for tag_id in tag_ids:
            self.session.add(NoteTag(note_id=note_id, tag_id=tag_id))
        await self.session.flush()
        await self._shift_usage(tag_ids, 1)

    async def detach(self, note_id: UUID, tag_ids: Sequence[UUID]) -> None:
        if not tag_ids:
            return
        stmt = delete(NoteTag).where(
            and_(NoteTag.note_id == note_id, NoteTag.tag_id.in_(list(tag_ids)))
        )
        await self.session.execute(stmt.execution_options(synchronize_session=False))
        await self._shift_usage(tag_ids, -1)

    async def _shift_usage(self, tag_ids: Sequence[UUID], delta: int) -> None:
        if not tag_ids:
            return
        conditions = [Tag.id.in_(list(tag_ids))]
        if delta < 0:
            conditions.append(Tag.usage_count > 0)
        stmt = (
            update(Tag)
            .where(and_(*conditions))
            .values(usage_count=Tag.usage_count + delta)
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)

    async def list_tags(self, include_unused: bool = True) -> List[Tag]:
        stmt = select(Tag).execution_options(populate_existing=True)
        if not include_unused:
            stmt = stmt.where(Tag.usage_count > 0)
        stmt = stmt.order_by(Tag.usage_count.desc(), Tag.name)
        result = await self.session.execute(stmt)
        return list(result.scalars())

    async def delete_unused(self) -> int:
        """Delete tags that no note uses."""
        stmt = delete(Tag).where(Tag.usage_count <= 0)
        result = await self.session.execute(stmt.execution_options(synchronize_session=False))
        return result.rowcount or 0
