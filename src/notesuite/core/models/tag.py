# Tag models for organizing notes
import uuid
from typing import Optional

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String, UniqueConstraint, event
from sqlalchemy.orm import Mapped, mapped_column

from .base import BaseModel
from .types import GUID


class Tag(BaseModel):
    """Label shared by every note that carries it."""

    __tablename__ = "tags"

    name: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    usage_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    color: Mapped[Optional[str]] = mapped_column(String(7), nullable=True)  # #rrggbb

    __table_args__ = (
        UniqueConstraint("name", name="uq_tags_name"),
        CheckConstraint("name = lower(name)", name="ck_tags_name_lowercase"),
        CheckConstraint("usage_count >= 0", name="ck_tags_usage_count_positive"),
        Index("idx_tags_usage_count", "usage_count"),
    )

    def __repr__(self) -> str:
        return f"<Tag(name='{self.name}', usage={self.usage_count})>"

    @classmethod
    def normalize_name(cls, name: str) -> str:
        """Clean up tag name."""
        clean = name.strip().lower()
        if not clean:
            raise ValueError("Tag name cannot be empty")
        return clean

    @property
    def is_unused(self) -> bool:
        return (self.usage_count or 0) <= 0


@event.listens_for(Tag, "before_insert", propagate=True)
def _normalize_tag_name_before_insert(mapper, connection, target: Tag):
    target.name = Tag.normalize_name(target.name)


@event.listens_for(Tag, "before_update", propagate=True)
def _normalize_tag_name_before_update(mapper, connection, target: Tag):
    target.name = Tag.normalize_name(target.name)


class NoteTag(BaseModel):
    """Association row between a note and a tag."""

    __tablename__ = "note_tags"

    note_id: Mapped[uuid.UUID] = mapped_column(
        GUID(), ForeignKey("notes.id", ondelete="CASCADE"), nullable=False
    )
    tag_id: Mapped[uuid.UUID] = mapped_column(
        GUID(), ForeignKey("tags.id", ondelete="CASCADE"), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("note_id", "tag_id", name="uq_note_tags_note_tag"),
        Index("idx_note_tags_note_id", "note_id"),
        Index("idx_note_tags_tag_id", "tag_id"),
    )

    def __repr__(self) -> str:
        return f"<NoteTag(note_id={self.note_id}, tag_id={self.tag_id})>"
