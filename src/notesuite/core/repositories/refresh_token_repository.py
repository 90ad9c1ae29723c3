"""Refresh token repository - storage for the token ledger."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import and_, case, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.refresh_token import RefreshToken


class RefreshTokenRepository:
    """Repository for refresh token database operations.

    Revocation always goes through conditional UPDATE statements so the
    database serialises competing rotations of the same token.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_token(self, token_data: dict) -> RefreshToken:
        """Create new refresh token (flushed, not committed)."""
        token = RefreshToken(**token_data)
        self.session.add(token)
        await self.session.flush()
        return token

    async def get_by_token(self, token: str) -> Optional[RefreshToken]:
        """Get refresh token by token string."""
        stmt = select(RefreshToken).where(RefreshToken.token == token)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def reload_by_token(self, token: str) -> Optional[RefreshToken]:
        """Re-read the current row state, discarding anything cached in the session."""
        stmt = (
            select(RefreshToken)
            .where(RefreshToken.token == token)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def token_exists(self, token: str) -> bool:
        stmt = select(func.count(RefreshToken.id)).where(RefreshToken.token == token)
        result = await self.session.execute(stmt)
        return (result.scalar() or 0) > 0

    async def claim_token(self, token: str, reason: str, now: datetime) -> int:
        """Revoke a still-usable token. Returns 1 for the single winner, 0 otherwise."""
        stmt = (
            update(RefreshToken)
            .where(
                and_(
                    RefreshToken.token == token,
                    RefreshToken.is_revoked.is_(False),
                    RefreshToken.expires_at > now,
                )
            )
            .values(is_revoked=True, revoked_at=now, revocation_reason=reason, last_used_at=now)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0

    async def revoke_token(self, token: str, reason: str, now: datetime) -> int:
        """Revoke a token whatever its expiry; already revoked rows are untouched."""
        stmt = (
            update(RefreshToken)
            .where(and_(RefreshToken.token == token, RefreshToken.is_revoked.is_(False)))
            .values(is_revoked=True, revoked_at=now, revocation_reason=reason)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0

    async def revoke_user_tokens(
        self, user_id: UUID, reason: str, now: datetime, exclude_id: Optional[UUID] = None
    ) -> int:
        """Revoke every active token of a user."""
        conditions = [
            RefreshToken.user_id == user_id,
            RefreshToken.is_revoked.is_(False),
            RefreshToken.expires_at > now,
        ]
        if exclude_id is not None:
            conditions.append(RefreshToken.id != exclude_id)

        stmt = (
            update(RefreshToken)
            .where(and_(*conditions))
            .values(is_revoked=True, revoked_at=now, revocation_reason=reason)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0

    async def set_successor(self, token_id: UUID, successor_id: UUID) -> None:
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.id == token_id)
            .values(replaced_by_token_id=successor_id)
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)

    async def list_active(self, user_id: UUID, now: datetime) -> List[RefreshToken]:
        stmt = (
            select(RefreshToken)
            .where(
                and_(
                    RefreshToken.user_id == user_id,
                    RefreshToken.is_revoked.is_(False),
                    RefreshToken.expires_at > now,
                )
            )
            .order_by(RefreshToken.created_at.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars())

    async def delete_expired_before(self, cutoff: datetime) -> int:
        """Delete tokens whose expiry passed before the cutoff."""
        stmt = delete(RefreshToken).where(RefreshToken.expires_at < cutoff)
        result = await self.session.execute(stmt.execution_options(synchronize_session=False))
        return result.rowcount or 0

    async def delete_revoked_before(self, cutoff: datetime) -> int:
        """Delete tokens revoked before the cutoff."""
        stmt = delete(RefreshToken).where(
            and_(RefreshToken.is_revoked.is_(True), RefreshToken.revoked_at < cutoff)
        )
        result = await self.session.execute(stmt.execution_options(synchronize_session=False))
        return result.rowcount or 0

    async def delete_created_before(self, cutoff: datetime) -> int:
        """Delete any token created before the cutoff."""
        stmt = delete(RefreshToken).where(RefreshToken.created_at < cutoff)
        result = await self.session.execute(stmt.execution_options(synchronize_session=False))
        return result.rowcount or 0

    async def get_stats(self, now: datetime) -> dict:
        """Counts of valid, revoked and expired (unrevoked) tokens."""
        valid_case = case(
            (and_(RefreshToken.is_revoked.is_(False), RefreshToken.expires_at > now), 1),
            else_=0,
        )
        revoked_case = case((RefreshToken.is_revoked.is_(True), 1), else_=0)
        expired_case = case(
            (and_(RefreshToken.is_revoked.is_(False), RefreshToken.expires_at <= now), 1),
            else_=0,
        )
        stmt = select(
            func.count(RefreshToken.id),
            func.coalesce(func.sum(valid_case), 0),
            func.coalesce(func.sum(revoked_case), 0),
            func.coalesce(func.sum(expired_case), 0),
        )
        result = await self.session.execute(stmt)
        total, valid, revoked, expired = result.one()
        return {
            "total": int(total or 0),
            "valid": int(valid or 0),
            "revoked": int(revoked or 0),
            "expired": int(expired or 0),
        }
