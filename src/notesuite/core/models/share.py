# Note sharing between users
import uuid
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, text
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import BaseModel, as_utc, utcnow
from .types import GUID

if TYPE_CHECKING:
    from .note import Note
    from .user import User


class Permission(str, Enum):
    """Capability a principal holds over a note. ADMIN > WRITE > READ."""

    READ = "READ"
    WRITE = "WRITE"
    ADMIN = "ADMIN"

    @property
    def rank(self) -> int:
        return _PERMISSION_RANK[self]

    def satisfies(self, required: "Permission") -> bool:
        """True when this level includes the required one."""
        return self.rank >= Permission(required).rank


_PERMISSION_RANK = {Permission.READ: 1, Permission.WRITE: 2, Permission.ADMIN: 3}


class Share(BaseModel):
    """Grant of a permission on one note to one other user."""

    __tablename__ = "shares"

    note_id: Mapped[uuid.UUID] = mapped_column(
        GUID(), ForeignKey("notes.id", ondelete="CASCADE"), nullable=False
    )
    shared_with_user_id: Mapped[uuid.UUID] = mapped_column(
        GUID(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    shared_by_user_id: Mapped[uuid.UUID] = mapped_column(
        GUID(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    permission: Mapped[Permission] = mapped_column(
        SAEnum(Permission, native_enum=False, length=20, validate_strings=True),
        default=Permission.READ,
        nullable=False,
    )
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    note: Mapped["Note"] = relationship("Note", lazy="raise")
    shared_with_user: Mapped["User"] = relationship(
        "User", foreign_keys=[shared_with_user_id], lazy="raise"
    )

    __table_args__ = (
        # one active share per (note, recipient); inactive rows stay for audit
        Index(
            "uq_shares_active_note_recipient",
            "note_id",
            "shared_with_user_id",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active = 1"),
        ),
        Index("idx_shares_note_id", "note_id"),
        Index("idx_shares_shared_with", "shared_with_user_id"),
        Index("idx_shares_expires_at", "expires_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<Share(note_id={self.note_id}, shared_with={self.shared_with_user_id}, "
            f"permission={self.permission}, active={self.is_active})>"
        )

    @property
    def is_expired(self) -> bool:
        expires_at = as_utc(self.expires_at)
        return expires_at is not None and utcnow() >= expires_at

    @property
    def is_valid(self) -> bool:
        """Active and not expired - only such shares grant access."""
        return bool(self.is_active) and not self.is_expired

    def revoke(self) -> None:
        self.is_active = False
