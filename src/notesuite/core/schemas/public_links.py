"""
Public link schemas - owner management and anonymous access.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class PublicLinkCreate(BaseModel):
    """Options for a new public link."""

    expires_at: Optional[datetime] = Field(default=None, description="Must lie in the future")
    max_access_count: Optional[int] = Field(default=None, description="Access cap, at least 1")
    password: Optional[str] = Field(default=None, max_length=128, description="Blank means none")
    description: Optional[str] = Field(default=None, max_length=500)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "expires_at": "2030-01-01T00:00:00Z",
                "max_access_count": 10,
                "password": "open-sesame",
                "description": "For the review board",
            }
        }
    )


class PublicLinkUpdate(BaseModel):
    """Partial update. password: None keeps it, "" removes it."""

    expires_at: Optional[datetime] = None
    clear_expiry: bool = False
    max_access_count: Optional[int] = None
    clear_access_limit: bool = False
    password: Optional[str] = Field(default=None, max_length=128)
    description: Optional[str] = Field(default=None, max_length=500)


class PublicLinkResponse(BaseModel):
    """Owner view of a link, token included."""

    id: uuid.UUID
    note_id: uuid.UUID
    url_token: str
    expires_at: Optional[datetime] = None
    max_access_count: Optional[int] = None
    access_count: int
    remaining_access: Optional[int] = None
    is_active: bool
    is_password_protected: bool
    description: Optional[str] = None
    state: str = Field(description="valid, inactive, expired or access_limit_reached")
    created_at: datetime
    updated_at: datetime


class PublicLinkInfo(BaseModel):
    """Anonymous metadata; reading it does not consume an access."""

    is_password_protected: bool
    expires_at: Optional[datetime] = None
    max_access_count: Optional[int] = None
    access_count: int
    remaining_access: Optional[int] = None
    description: Optional[str] = None


class PasswordSubmission(BaseModel):
    password: str = Field(min_length=1, max_length=128)


class PublicNoteSnapshot(BaseModel):
    """Link and note state as of one successful access."""

    note_id: uuid.UUID
    title: str
    content: str
    tags: List[str] = Field(default_factory=list)
    view_count: int
    access_count: int
    max_access_count: Optional[int] = None
    remaining_access: Optional[int] = None
    expires_at: Optional[datetime] = None
    accessed_at: datetime


class PublicLinkStats(BaseModel):
    total: int
    active: int
    password_protected: int
    with_remaining_access: int
    total_accesses: int
