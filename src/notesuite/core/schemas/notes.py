"""
Note management schemas.

API contracts for note CRUD, listing filters and permission lookups.
"""

import re
import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..models.note import NoteVisibility
from ..models.share import Permission
from .common import PaginationResponse

_TAG_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")


def _validate_tags(v: Optional[List[str]]) -> Optional[List[str]]:
    if v is None:
        return v
    normalized = []
    for tag in v:
        tag = tag.strip()
        if len(tag) < 1 or len(tag) > 50:
            raise ValueError("Tags must be between 1 and 50 characters")
        if not _TAG_PATTERN.match(tag):
            raise ValueError("Tags can only contain letters, numbers, hyphens, and underscores")
        normalized.append(tag.lower())
    if len(normalized) != len(set(normalized)):
        raise ValueError("Duplicate tags are not allowed")
    return normalized


class NoteCreate(BaseModel):
    """Note creation request schema."""

    title: str = Field(min_length=1, max_length=255, description="Note title")
    content: str = Field(default="", description="Note content (Markdown)")
    tags: List[str] = Field(default_factory=list, max_length=20, description="Note tags")
    visibility: NoteVisibility = Field(default=NoteVisibility.PRIVATE)

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v):
        """Validate tag format and uniqueness."""
        return _validate_tags(v)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        if not v.strip():
            raise ValueError("Title cannot be blank")
        return v.strip()

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Meeting Notes - Q4 Planning",
                "content": "## Agenda\n\n1. Review Q3 performance\n2. Set Q4 objectives",
                "tags": ["meeting", "planning"],
                "visibility": "PRIVATE",
            }
        }
    )


class NoteUpdate(BaseModel):
    """Partial note update. Visibility changes are owner-only."""

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    content: Optional[str] = Field(default=None)
    tags: Optional[List[str]] = Field(default=None, max_length=20)
    visibility: Optional[NoteVisibility] = Field(default=None)

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v):
        return _validate_tags(v)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        if v is not None and not v.strip():
            raise ValueError("Title cannot be blank")
        return v.strip() if v is not None else v


class NoteResponse(BaseModel):
    """Note response schema."""

    id: uuid.UUID = Field(description="Note unique identifier")
    title: str
    content: str
    tags: List[str] = Field(default_factory=list)
    visibility: NoteVisibility
    is_favorite: bool = False
    view_count: int = 0

    owner_id: uuid.UUID
    is_owner: bool = Field(description="Whether the caller owns the note")
    permission: Optional[Permission] = Field(
        default=None, description="Highest capability the caller holds"
    )
    can_edit: bool = False

    created_at: datetime
    updated_at: datetime


class NoteListItem(BaseModel):
    """Note summary used in lists."""

    id: uuid.UUID
    title: str
    content_preview: str = Field(description="First 200 chars of content")
    tags: List[str] = Field(default_factory=list)
    visibility: NoteVisibility
    is_favorite: bool = False
    view_count: int = 0
    owner_id: uuid.UUID
    created_at: datetime
    updated_at: datetime


NoteListResponse = PaginationResponse[NoteListItem]


class NotePermissionResponse(BaseModel):
    """What the caller may do with a note."""

    note_id: uuid.UUID
    permission: Optional[Permission]
    via: Optional[str] = Field(default=None, description="owner, public or share")
    can_read: bool
    can_write: bool
    can_admin: bool
