"""
Service interfaces for the NoteSuite application.

Every method takes the acting principal as an explicit ``user_id``
argument and reports failures by raising ``core.errors.DomainError``.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
from uuid import UUID

from ..models.note import NoteVisibility
from ..schemas.auth import (
    LoginRequest,
    RefreshTokenRequest,
    RegisterRequest,
    SessionResponse,
    TokenResponse,
    UserResponse,
)
from ..schemas.common import HealthCheckResponse
from ..schemas.notes import (
    NoteCreate,
    NoteListResponse,
    NotePermissionResponse,
    NoteResponse,
    NoteUpdate,
)
from ..schemas.sharing import (
    ShareCountsResponse,
    ShareListResponse,
    ShareRequest,
    ShareResponse,
    ShareUpdate,
)


class IAuthService(ABC):
    """Auth service for user management."""

    @abstractmethod
    async def register_user(self, request: RegisterRequest, device=None) -> TokenResponse:
        """Register new user and log them in."""

    @abstractmethod
    async def authenticate_user(self, request: LoginRequest, device=None) -> TokenResponse:
        """Login user and return a token pair."""

    @abstractmethod
    async def refresh_token(self, request: RefreshTokenRequest, device=None) -> TokenResponse:
        """Rotate the refresh token."""

    @abstractmethod
    async def get_current_user(self, user_id: UUID) -> UserResponse:
        """Get user by ID."""

    @abstractmethod
    async def logout_user(
        self, user_id: UUID, access_token: str, refresh_token: Optional[str] = None
    ) -> bool:
        """Logout the current session."""

    @abstractmethod
    async def logout_all(self, user_id: UUID, access_token: str) -> int:
        """Logout every session of the user."""

    @abstractmethod
    async def list_sessions(self, user_id: UUID) -> List[SessionResponse]:
        """Active refresh tokens of the user."""


class INoteService(ABC):
    """Note service for CRUD operations."""

    @abstractmethod
    async def create_note(self, user_id: UUID, request: NoteCreate) -> NoteResponse:
        """Create new note."""

    @abstractmethod
    async def get_note(self, note_id: UUID, user_id: Optional[UUID]) -> NoteResponse:
        """Get note by ID."""

    @abstractmethod
    async def update_note(self, note_id: UUID, user_id: UUID, request: NoteUpdate) -> NoteResponse:
        """Update existing note."""

    @abstractmethod
    async def delete_note(self, note_id: UUID, user_id: UUID) -> bool:
        """Delete note."""

    @abstractmethod
    async def toggle_favorite(self, note_id: UUID, user_id: UUID) -> NoteResponse:
        """Flip the favourite flag."""

    @abstractmethod
    async def get_permission(self, note_id: UUID, user_id: UUID) -> NotePermissionResponse:
        """Caller's effective permission on a note."""

    @abstractmethod
    async def list_user_notes(
        self,
        user_id: UUID,
        page: int = 1,
        per_page: int = 20,
        tag_filter: Optional[List[str]] = None,
        search: Optional[str] = None,
        visibility: Optional[NoteVisibility] = None,
        favorites_only: bool = False,
    ) -> NoteListResponse:
        """List user notes with pagination."""


class ISharingService(ABC):
    """Note sharing service."""

    @abstractmethod
    async def share_note(self, note_id: UUID, owner_id: UUID, request: ShareRequest) -> ShareResponse:
        """Share note with another user."""

    @abstractmethod
    async def update_share(self, share_id: UUID, owner_id: UUID, request: ShareUpdate) -> ShareResponse:
        """Change permission or expiry."""

    @abstractmethod
    async def revoke_share(self, share_id: UUID, owner_id: UUID) -> ShareResponse:
        """Revoke note share."""

    @abstractmethod
    async def delete_share(self, share_id: UUID, owner_id: UUID) -> bool:
        """Hard-delete a share."""

    @abstractmethod
    async def list_received(self, user_id: UUID, page: int = 1, per_page: int = 20) -> ShareListResponse:
        """Shares granted to the user."""

    @abstractmethod
    async def count_by_permission(self, note_id: UUID, owner_id: UUID) -> ShareCountsResponse:
        """Share counts of a note by permission."""


class IHealthService(ABC):
    """Health check service."""

    @abstractmethod
    async def get_health_status(self) -> HealthCheckResponse:
        """Get app health status."""

    @abstractmethod
    async def check_database_health(self) -> Dict[str, Any]:
        """Check DB connection."""

    @abstractmethod
    async def check_redis_health(self) -> Dict[str, Any]:
        """Check Redis connection."""
