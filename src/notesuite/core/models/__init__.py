"""
Database models for NoteSuite.

SQLAlchemy ORM models for users, notes, shares, tags, public links and the
refresh token ledger. Relationships are never lazy loaded; repositories
fetch related rows explicitly.
"""

from .base import BaseModel
from .note import Note, NoteVisibility
from .public_link import LinkState, PublicLink
from .refresh_token import RefreshToken
from .share import Permission, Share
from .tag import NoteTag, Tag
from .user import User

__all__ = [
    "BaseModel",
    "User",
    "Note",
    "NoteVisibility",
    "Tag",
    "NoteTag",
    "Share",
    "Permission",
    "PublicLink",
    "LinkState",
    "RefreshToken",
]
