"""
User model - the credential store's record.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import BaseModel, utcnow


class User(BaseModel):
    """User account with email/password auth."""

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    last_login_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint("email = lower(email)", name="ck_users_email_lowercase"),
        Index("idx_users_active", "is_active"),
    )

    def __repr__(self) -> str:
        return f"<User(email='{self.email}')>"

    @classmethod
    def normalize_email(cls, email: str) -> str:
        return email.strip().lower()

    def can_login(self) -> bool:
        """Only active accounts may authenticate."""
        return bool(self.is_active)

    def record_login(self) -> None:
        self.last_login_at = utcnow()
