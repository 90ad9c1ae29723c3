"""Refresh token ledger.

Lifecycle of a refresh token::

    Active --revoke/rotate--> Revoked   (terminal, reason + optional successor)
    Active --time passes----> Expired   (implicit: now >= expires_at)

Every revocation is a conditional UPDATE, so when two requests rotate the
same token concurrently the database lets exactly one of them win.

The ledger flushes but does not commit: callers run it inside
``database.unit_of_work`` together with whatever else the request changes.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from ...config import Settings, get_settings
from ...security.tokens import generate_unique_token
from ..errors import TokenExpiredError, TokenInvalidError, TokenRevokedError
from ..logging import get_logger, token_preview
from ..models.base import utcnow
from ..models.refresh_token import RefreshToken
from ..repositories.refresh_token_repository import RefreshTokenRepository

logger = get_logger("services.token_ledger")


class RevocationReason:
    ROTATION = "rotation"
    LOGOUT = "logout"
    LOGOUT_ALL = "logout_all"
    MANUAL = "manual"


@dataclass(frozen=True)
class DeviceInfo:
    """Client metadata recorded with a token. Informational only."""

    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


@dataclass(frozen=True)
class CleanupReport:
    expired: int = 0
    revoked: int = 0
    aged_out: int = 0

    @property
    def total(self) -> int:
        return self.expired + self.revoked + self.aged_out


class TokenLedger:
    """Issues, rotates, validates and revokes refresh tokens."""

    def __init__(self, session: AsyncSession, settings: Optional[Settings] = None):
        self.session = session
        self.repo = RefreshTokenRepository(session)
        self.settings = settings or get_settings()

    @staticmethod
    def _check_usable(token: Optional[RefreshToken]) -> RefreshToken:
        if token is None:
            raise TokenInvalidError("Invalid refresh token")
        if token.is_revoked:
            raise TokenRevokedError(
                "Refresh token has been revoked",
                details={"reason": token.revocation_reason},
            )
        if token.is_expired:
            raise TokenExpiredError()
        return token

    async def _create(self, user_id: UUID, device: Optional[DeviceInfo], now: datetime) -> RefreshToken:
        device = device or DeviceInfo()
        value = await generate_unique_token(
            self.repo.token_exists,
            self.settings.refresh_token_bytes,
            self.settings.token_generation_max_attempts,
        )
        return await self.repo.create_token(
            {
                "token": value,
                "user_id": user_id,
                "expires_at": now + timedelta(days=self.settings.refresh_token_expire_days),
                "ip_address": device.ip_address,
                "user_agent": device.user_agent,
                "created_at": now,
                "updated_at": now,
            }
        )

    async def issue(self, user_id: UUID, device: Optional[DeviceInfo] = None) -> RefreshToken:
        """Start a new session chain, revoking every other active token of the user."""
        now = utcnow()
        revoked = await self.repo.revoke_user_tokens(user_id, RevocationReason.ROTATION, now)
        token = await self._create(user_id, device, now)
        logger.info(
            "Refresh token issued",
            extra={
                "user_id": str(user_id),
                "token": token_preview(token.token),
                "revoked_previous": revoked,
            },
        )
        return token

    async def rotate(self, old_value: str, device: Optional[DeviceInfo] = None) -> RefreshToken:
        """Exchange a usable token for a new one.

        Raises TokenInvalidError, TokenRevokedError or TokenExpiredError.
        A lost race against a concurrent rotation surfaces as TokenRevokedError.
        """
        current = self._check_usable(await self.repo.get_by_token(old_value))
        now = utcnow()

        if not await self.repo.claim_token(old_value, RevocationReason.ROTATION, now):
            # someone else changed the row between our read and the update
            logger.warning(
                "Refresh token claim lost",
                extra={"user_id": str(current.user_id), "token": token_preview(old_value)},
            )
            self._check_usable(await self.repo.reload_by_token(old_value))
            raise TokenRevokedError(
                "Refresh token has been revoked", details={"reason": RevocationReason.ROTATION}
            )

        self._warn_on_device_change(current, device)

        user_id = current.user_id
        await self.repo.revoke_user_tokens(user_id, RevocationReason.ROTATION, now)
        successor = await self._create(user_id, device, now)
        await self.repo.set_successor(current.id, successor.id)
        # refresh the cached old row so later reads in this session see the revocation
        await self.repo.reload_by_token(old_value)

        logger.info(
            "Refresh token rotated",
            extra={
                "user_id": str(user_id),
                "old_token": token_preview(old_value),
                "new_token": token_preview(successor.token),
            },
        )
        return successor

    def _warn_on_device_change(self, token: RefreshToken, device: Optional[DeviceInfo]) -> None:
        if device is None:
            return
        changed = {}
        if token.ip_address and device.ip_address and token.ip_address != device.ip_address:
            changed["ip_address"] = {"was": token.ip_address, "now": device.ip_address}
        if token.user_agent and device.user_agent and token.user_agent != device.user_agent:
            changed["user_agent"] = {"was": token.user_agent, "now": device.user_agent}
        if changed:
            logger.warning(
                "Refresh token used from a different device",
                extra={"user_id": str(token.user_id), "token": token.token_preview, **changed},
            )

    async def validate(self, value: str) -> RefreshToken:
        """Read-only validity check with the same errors as ``rotate``."""
        return self._check_usable(await self.repo.get_by_token(value))

    async def revoke(self, value: str, reason: str = RevocationReason.MANUAL) -> bool:
        """Revoke one token. Idempotent; returns whether anything changed."""
        changed = await self.repo.revoke_token(value, reason, utcnow()) > 0
        if changed:
            await self.repo.reload_by_token(value)
            logger.info("Refresh token revoked", extra={"token": token_preview(value), "reason": reason})
        return changed

    async def revoke_all(self, user_id: UUID, reason: str = RevocationReason.LOGOUT_ALL) -> int:
        """Revoke every active token of a user; returns how many."""
        count = await self.repo.revoke_user_tokens(user_id, reason, utcnow())
        logger.info(
            "Refresh tokens revoked for user",
            extra={"user_id": str(user_id), "count": count, "reason": reason},
        )
        return count

    async def get_owned(self, value: str, user_id: UUID) -> Optional[RefreshToken]:
        token = await self.repo.get_by_token(value)
        if token is None or token.user_id != user_id:
            return None
        return token

    async def list_active(self, user_id: UUID) -> List[RefreshToken]:
        return await self.repo.list_active(user_id, utcnow())

    async def stats(self) -> dict:
        return await self.repo.get_stats(utcnow())

    async def cleanup(self, now: Optional[datetime] = None) -> CleanupReport:
        """Delete tokens past their retention windows."""
        now = now or utcnow()
        report = CleanupReport(
            expired=await self.repo.delete_expired_before(
                now - timedelta(days=self.settings.refresh_token_retention_days)
            ),
            revoked=await self.repo.delete_revoked_before(
                now - timedelta(days=self.settings.revoked_token_retention_days)
            ),
            aged_out=await self.repo.delete_created_before(
                now - timedelta(days=self.settings.refresh_token_max_age_days)
            ),
        )
        logger.info(
            "Refresh token cleanup finished",
            extra={"expired": report.expired, "revoked": report.revoked, "aged_out": report.aged_out},
        )
        return report
