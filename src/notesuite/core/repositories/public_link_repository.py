"""Public link repository for database operations."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import and_, case, delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.note import Note
from ..models.public_link import PublicLink


class PublicLinkRepository:
    """Repository for public link database operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_link(self, link_data: dict) -> PublicLink:
        """Create new link (flushed, not committed)."""
        link = PublicLink(**link_data)
        self.session.add(link)
        await self.session.flush()
        return link

    async def get_by_id(self, link_id: UUID) -> Optional[PublicLink]:
        stmt = (
            select(PublicLink)
            .where(PublicLink.id == link_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_token(self, url_token: str) -> Optional[PublicLink]:
        stmt = (
            select(PublicLink)
            .where(PublicLink.url_token == url_token)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def token_exists(self, url_token: str) -> bool:
        stmt = select(func.count(PublicLink.id)).where(PublicLink.url_token == url_token)
        result = await self.session.execute(stmt)
        return (result.scalar() or 0) > 0

    async def list_for_note(self, note_id: UUID) -> List[PublicLink]:
        stmt = (
            select(PublicLink)
            .where(PublicLink.note_id == note_id)
            .order_by(PublicLink.created_at.desc())
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars())

    async def consume_access(self, link_id: UUID, now: datetime) -> Optional[int]:
        """Count one access if the link is still valid.

        Single conditional UPDATE: the database serialises concurrent
        resolutions, so a capped link is never admitted past its cap.
        Returns the new access count, or None when the link no longer
        qualifies.
        """
        stmt = (
            update(PublicLink)
            .where(
                and_(
                    PublicLink.id == link_id,
                    PublicLink.is_active.is_(True),
                    or_(PublicLink.expires_at.is_(None), PublicLink.expires_at > now),
                    or_(
                        PublicLink.max_access_count.is_(None),
                        PublicLink.access_count < PublicLink.max_access_count,
                    ),
                )
            )
            .values(access_count=PublicLink.access_count + 1)
            .returning(PublicLink.access_count)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def update_link(self, link: PublicLink, update_data: dict) -> PublicLink:
        for key, value in update_data.items():
            setattr(link, key, value)
        await self.session.flush()
        return link

    async def delete_link(self, link_id: UUID) -> bool:
        stmt = delete(PublicLink).where(PublicLink.id == link_id)
        result = await self.session.execute(stmt.execution_options(synchronize_session=False))
        return (result.rowcount or 0) > 0

    async def delete_expired(self, now: datetime) -> int:
        stmt = delete(PublicLink).where(
            and_(PublicLink.expires_at.is_not(None), PublicLink.expires_at <= now)
        )
        result = await self.session.execute(stmt.execution_options(synchronize_session=False))
        return result.rowcount or 0

    async def get_stats(self, now: datetime, owner_id: Optional[UUID] = None) -> dict:
        """Link counters, optionally limited to one owner's notes."""
        valid = and_(
            PublicLink.is_active.is_(True),
            or_(PublicLink.expires_at.is_(None), PublicLink.expires_at > now),
        )
        stmt = select(
            func.count(PublicLink.id),
            func.coalesce(func.sum(case((valid, 1), else_=0)), 0),
            func.coalesce(
                func.sum(case((PublicLink.password_hash.is_not(None), 1), else_=0)), 0
            ),
            func.coalesce(
                func.sum(
                    case(
                        (
                            and_(
                                valid,
                                or_(
                                    PublicLink.max_access_count.is_(None),
                                    PublicLink.access_count < PublicLink.max_access_count,
                                ),
                            ),
                            1,
                        ),
                        else_=0,
                    )
                ),
                0,
            ),
            func.coalesce(func.sum(PublicLink.access_count), 0),
        )
        if owner_id is not None:
            owned = select(Note.id).where(Note.owner_id == owner_id)
            stmt = stmt.where(PublicLink.note_id.in_(owned))
        result = await self.session.execute(stmt)
        total, active, protected, with_remaining, accesses = result.one()
        return {
            "total": int(total or 0),
            "active": int(active or 0),
            "password_protected": int(protected or 0),
            "with_remaining_access": int(with_remaining or 0),
            "total_accesses": int(accesses or 0),
        }
