"""
Note sharing schemas.
"""

import uuid
from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from ..models.share import Permission
from .common import PaginationResponse


class ShareRequest(BaseModel):
    """Share a note with another user, identified by email."""

    shared_with_email: EmailStr = Field(description="Recipient's account email")
    permission: Permission = Field(default=Permission.READ)
    expires_at: Optional[datetime] = Field(default=None, description="Optional expiry (UTC)")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "shared_with_email": "grace@example.com",
                "permission": "WRITE",
                "expires_at": None,
            }
        }
    )


class ShareUpdate(BaseModel):
    """Change permission and/or expiry of an active share."""

    permission: Optional[Permission] = None
    expires_at: Optional[datetime] = None
    clear_expiry: bool = Field(default=False, description="Remove any expiry")


class ShareResponse(BaseModel):
    """Share response schema."""

    id: uuid.UUID
    note_id: uuid.UUID
    note_title: Optional[str] = None
    shared_with_user_id: uuid.UUID
    shared_with_email: Optional[str] = None
    shared_by_user_id: uuid.UUID
    permission: Permission
    expires_at: Optional[datetime] = None
    is_active: bool
    is_expired: bool = False
    created_at: datetime
    updated_at: datetime


ShareListResponse = PaginationResponse[ShareResponse]


class ShareCountsResponse(BaseModel):
    """Valid shares of a note counted by permission."""

    note_id: uuid.UUID
    counts: Dict[str, int]
    total: int
