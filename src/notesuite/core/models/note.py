# Note model for user content
import uuid
from enum import Enum
from typing import TYPE_CHECKING, List

from sqlalchemy import BigInteger, Boolean, CheckConstraint, ForeignKey, Index, String, Text
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import BaseModel
from .types import GUID

if TYPE_CHECKING:
    from .tag import Tag


class NoteVisibility(str, Enum):
    """Who may read a note without owning it."""

    PRIVATE = "PRIVATE"
    SHARED = "SHARED"
    PUBLIC = "PUBLIC"


class Note(BaseModel):
    """Markdown note owned by a single user."""

    __tablename__ = "notes"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    visibility: Mapped[NoteVisibility] = mapped_column(
        SAEnum(NoteVisibility, native_enum=False, length=20, validate_strings=True),
        default=NoteVisibility.PRIVATE,
        nullable=False,
    )

    view_count: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    is_favorite: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    owner_id: Mapped[uuid.UUID] = mapped_column(
        GUID(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    # Loaded explicitly with selectinload(Note.tags); never lazily.
    tags: Mapped[List["Tag"]] = relationship(
        "Tag",
        secondary="note_tags",
        lazy="raise",
        viewonly=True,
        order_by="Tag.name",
    )

    __table_args__ = (
        CheckConstraint("view_count >= 0", name="ck_notes_view_count_positive"),
        Index("idx_notes_owner_id", "owner_id"),
        Index("idx_notes_visibility", "visibility"),
        Index("idx_notes_owner_updated", "owner_id", "updated_at"),
    )

    def __repr__(self) -> str:
        truncated = self.title if len(self.title) <= 30 else (self.title[:30] + "...")
        return f"<Note(title='{truncated}', owner_id={self.owner_id})>"

    @property
    def preview(self) -> str:
        """First 200 characters of the content."""
        content = self.content or ""
        if len(content) <= 200:
            return content
        return content[:200] + "..."

    @property
    def tag_names(self) -> List[str]:
        """Names of the eagerly loaded tags."""
        return [tag.name for tag in self.__dict__.get("tags", [])]

    def is_owned_by(self, user_id: uuid.UUID) -> bool:
        return self.owner_id == user_id
