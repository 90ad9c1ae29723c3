"""Tag service - note tagging and tag housekeeping."""

from typing import List, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from ...database import unit_of_work
from ..logging import get_logger
from ..models.tag import Tag
from ..repositories.tag_repository import TagRepository
from ..schemas.tags import TagResponse

logger = get_logger("services.tags")


class TagService:
    """Keeps note/tag links and tag usage counts consistent."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.tag_repo = TagRepository(session)

    async def set_note_tags(self, note_id: UUID, names: Sequence[str]) -> None:
        """Make ``names`` the exact tag set of a note.

        Runs inside the caller's unit of work (flushes, never commits).
        """
        wanted = []
        for name in names:
            clean = Tag.normalize_name(name)
            if clean not in wanted:
                wanted.append(clean)

        current_ids = set(await self.tag_repo.get_note_tag_ids(note_id))
        tags = await self.tag_repo.get_or_create(wanted)
        wanted_ids = {tag.id for tag in tags}

        await self.tag_repo.detach(note_id, [tid for tid in current_ids if tid not in wanted_ids])
        await self.tag_repo.attach(note_id, [tag.id for tag in tags if tag.id not in current_ids])

    async def clear_note_tags(self, note_id: UUID) -> None:
        """Detach every tag of a note (inside the caller's unit of work)."""
        await self.tag_repo.detach(note_id, await self.tag_repo.get_note_tag_ids(note_id))

    async def list_tags(self, include_unused: bool = True) -> List[TagResponse]:
        tags = await self.tag_repo.list_tags(include_unused=include_unused)
        return [TagResponse.model_validate(tag) for tag in tags]

    async def prune_unused(self) -> int:
        """Delete tags no note uses any more. Never runs automatically."""
        async with unit_of_work(self.session):
            deleted = await self.tag_repo.delete_unused()
        logger.info("Unused tags pruned", extra={"count": deleted})
        return deleted
