"""Repository layer for data access.

Repositories flush but never commit; services own the transaction through
``database.unit_of_work``.
"""

from .note_repository import NoteRepository
from .public_link_repository import PublicLinkRepository
from .refresh_token_repository import RefreshTokenRepository
from .share_repository import ShareRepository
from .tag_repository import TagRepository
from .user_repository import UserRepository

__all__ = [
    "UserRepository",
    "NoteRepository",
    "ShareRepository",
    "TagRepository",
    "PublicLinkRepository",
    "RefreshTokenRepository",
]
