"""Share repository for database operations."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import and_, delete, desc, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models.share import Permission, Share


class ShareRepository:
    """Repository for share database operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    @staticmethod
    def _valid_condition(now: datetime):
        return and_(
            Share.is_active.is_(True),
            or_(Share.expires_at.is_(None), Share.expires_at > now),
        )

    async def create_share(self, share_data: dict) -> Share:
        """Create new share (flushed, not committed)."""
        share = Share(**share_data)
        self.session.add(share)
        await self.session.flush()
        return share

    async def get_by_id(self, share_id: UUID) -> Optional[Share]:
        """Get share by ID with note and recipient loaded."""
        stmt = (
            select(Share)
            .options(selectinload(Share.note), selectinload(Share.shared_with_user))
            .where(Share.id == share_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_active_share(self, note_id: UUID, shared_with_user_id: UUID) -> Optional[Share]:
        """The share holding the active slot for (note, user), expired or not."""
        stmt = select(Share).where(
            and_(
                Share.note_id == note_id,
                Share.shared_with_user_id == shared_with_user_id,
                Share.is_active.is_(True),
            )
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_principal_shares(self, note_id: UUID, user_id: UUID) -> List[Share]:
        """All shares of one note granted to one user, for access decisions."""
        stmt = select(Share).where(
            and_(Share.note_id == note_id, Share.shared_with_user_id == user_id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars())

    async def list_note_shares(self, note_id: UUID, include_inactive: bool = False) -> List[Share]:
        stmt = (
            select(Share)
            .options(selectinload(Share.shared_with_user))
            .where(Share.note_id == note_id)
            .execution_options(populate_existing=True)
        )
        if not include_inactive:
            stmt = stmt.where(Share.is_active.is_(True))
        stmt = stmt.order_by(desc(Share.created_at))
        result = await self.session.execute(stmt)
        return list(result.scalars())

    async def list_shares_received(
        self, user_id: UUID, now: datetime, page: int = 1, per_page: int = 20
    ) -> tuple[List[Share], int]:
        """Currently valid shares granted to a user."""
        offset = (page - 1) * per_page
        condition = and_(Share.shared_with_user_id == user_id, self._valid_condition(now))

        count_stmt = select(func.count(Share.id)).where(condition)
        total_result = await self.session.execute(count_stmt)
        total_count = total_result.scalar() or 0

        stmt = (
            select(Share)
            .options(selectinload(Share.note), selectinload(Share.shared_with_user))
            .where(condition)
            .order_by(desc(Share.created_at))
            .offset(offset)
            .limit(per_page)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars()), total_count

    async def update_share(self, share: Share, update_data: dict) -> Share:
        for key, value in update_data.items():
            setattr(share, key, value)
        await self.session.flush()
        return share

    async def deactivate(self, share_id: UUID) -> int:
        stmt = (
            update(Share)
            .where(and_(Share.id == share_id, Share.is_active.is_(True)))
            .values(is_active=False)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0

    async def deactivate_note_shares(self, note_id: UUID) -> int:
        """Revoke every active share of a note."""
        stmt = (
            update(Share)
            .where(and_(Share.note_id == note_id, Share.is_active.is_(True)))
            .values(is_active=False)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0

    async def deactivate_expired(self, now: datetime) -> int:
        """Mark active shares whose expiry has passed as inactive; rows are kept."""
        stmt = (
            update(Share)
            .where(
                and_(
                    Share.is_active.is_(True),
                    Share.expires_at.is_not(None),
                    Share.expires_at <= now,
                )
            )
            .values(is_active=False)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0

    async def delete_share(self, share_id: UUID) -> bool:
        stmt = delete(Share).where(Share.id == share_id)
        result = await self.session.execute(stmt.execution_options(synchronize_session=False))
        return (result.rowcount or 0) > 0

    async def count_by_permission(self, note_id: UUID, now: datetime) -> dict:
        """Valid shares of a note grouped by permission."""
        stmt = (
            select(Share.permission, func.count(Share.id))
            .where(and_(Share.note_id == note_id, self._valid_condition(now)))
            .group_by(Share.permission)
        )
        result = await self.session.execute(stmt)
        counts = {permission.value: 0 for permission in Permission}
        for permission, count in result.all():
            counts[Permission(permission).value] = int(count)
        return counts
