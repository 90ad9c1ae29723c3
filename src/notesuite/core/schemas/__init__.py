"""
Pydantic schemas for validating and documenting API requests and responses.

Input/output contracts for authentication, notes, sharing, public links,
tags, maintenance and the common response formats.
"""

from .auth import LoginRequest, RegisterRequest, TokenResponse, UserResponse
from .common import ErrorResponse, HealthCheckResponse, PaginationResponse, SuccessResponse
from .notes import NoteCreate, NoteListItem, NoteListResponse, NoteResponse, NoteUpdate
from .public_links import PublicLinkCreate, PublicLinkResponse, PublicNoteSnapshot
from .sharing import ShareRequest, ShareResponse, ShareUpdate
from .tags import TagResponse

__all__ = [
    # Auth schemas
    "LoginRequest",
    "TokenResponse",
    "RegisterRequest",
    "UserResponse",
    # Note schemas
    "NoteCreate",
    "NoteUpdate",
    "NoteResponse",
    "NoteListItem",
    "NoteListResponse",
    # Sharing schemas
    "ShareRequest",
    "ShareUpdate",
    "ShareResponse",
    # Public link schemas
    "PublicLinkCreate",
    "PublicLinkResponse",
    "PublicNoteSnapshot",
    # Tags
    "TagResponse",
    # Common schemas
    "PaginationResponse",
    "ErrorResponse",
    "SuccessResponse",
    "HealthCheckResponse",
]
