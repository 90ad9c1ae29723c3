# Anonymous public links to notes
import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import BigInteger, Boolean, CheckConstraint, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import BaseModel, as_utc, utcnow
from .types import GUID

if TYPE_CHECKING:
    from .note import Note


class LinkState:
    """Reasons a public link can stop granting access."""

    VALID = "valid"
    INACTIVE = "inactive"
    EXPIRED = "expired"
    ACCESS_LIMIT_REACHED = "access_limit_reached"


class PublicLink(BaseModel):
    """Tokenised read-only link to a note, optionally capped and protected."""

    __tablename__ = "public_links"

    note_id: Mapped[uuid.UUID] = mapped_column(
        GUID(), ForeignKey("notes.id", ondelete="CASCADE"), nullable=False
    )
    url_token: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)

    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    max_access_count: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    access_count: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    password_hash: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    note: Mapped["Note"] = relationship("Note", lazy="raise")

    __table_args__ = (
        CheckConstraint("access_count >= 0", name="ck_public_links_access_count_positive"),
        CheckConstraint(
            "max_access_count IS NULL OR max_access_count >= 1",
            name="ck_public_links_max_access_positive",
        ),
        Index("idx_public_links_note_id", "note_id"),
        Index("idx_public_links_expires_at", "expires_at"),
    )

    def __repr__(self) -> str:
        return f"<PublicLink(note_id={self.note_id}, token={self.token_preview}, active={self.is_active})>"

    @property
    def token_preview(self) -> str:
        return f"{self.url_token[:8]}..." if self.url_token else "None"

    @property
    def is_password_protected(self) -> bool:
        return bool(self.password_hash)

    @property
    def is_expired(self) -> bool:
        expires_at = as_utc(self.expires_at)
        return expires_at is not None and utcnow() >= expires_at

    @property
    def is_exhausted(self) -> bool:
        return self.max_access_count is not None and self.access_count >= self.max_access_count

    @property
    def remaining_access(self) -> Optional[int]:
        if self.max_access_count is None:
            return None
        return max(0, self.max_access_count - (self.access_count or 0))

    @property
    def state(self) -> str:
        """First failing validity condition, or ``valid``."""
        if not self.is_active:
            return LinkState.INACTIVE
        if self.is_expired:
            return LinkState.EXPIRED
        if self.is_exhausted:
            return LinkState.ACCESS_LIMIT_REACHED
        return LinkState.VALID

    @property
    def is_valid(self) -> bool:
        return self.state == LinkState.VALID
