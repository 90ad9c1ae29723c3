# Refresh token ledger rows
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import BaseModel, as_utc, utcnow
from .types import GUID


class RefreshToken(BaseModel):
    """One entry of a user's refresh token chain.

    A token is usable while it is not revoked and has not expired. Revocation
    is terminal; a rotated token points at its successor through
    ``replaced_by_token_id``.
    """

    __tablename__ = "refresh_tokens"

    token: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    user_id: Mapped[uuid.UUID] = mapped_column(
        GUID(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    is_revoked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    revoked_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    revocation_reason: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    replaced_by_token_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        GUID(), ForeignKey("refresh_tokens.id", ondelete="SET NULL"), nullable=True
    )

    # device metadata, informational only
    ip_address: Mapped[Optional[str]] = mapped_column(String(45), nullable=True)  # IPv6 support
    user_agent: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    last_used_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("idx_refresh_tokens_user_id", "user_id"),
        Index("idx_refresh_tokens_expires_at", "expires_at"),
        Index("idx_refresh_tokens_user_revoked", "user_id", "is_revoked"),
    )

    def __repr__(self) -> str:
        return (
            f"<RefreshToken(user_id={self.user_id}, token={self.token_preview}, "
            f"revoked={self.is_revoked})>"
        )

    @property
    def token_preview(self) -> str:
        return f"{self.token[:8]}..." if self.token else "None"

    @property
    def is_expired(self) -> bool:
        expires_at = as_utc(self.expires_at)
        if expires_at is None:
            return True
        return utcnow() >= expires_at

    @property
    def is_valid(self) -> bool:
        """Usable iff not revoked and not expired."""
        return not self.is_revoked and not self.is_expired
