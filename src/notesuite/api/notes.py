"""Notes API endpoints."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.models.note import NoteVisibility
from ..core.schemas.notes import (
    NoteCreate,
    NoteListResponse,
    NotePermissionResponse,
    NoteResponse,
    NoteUpdate,
)
from ..core.services import NoteService
from ..database import get_db_session
from ..middleware.auth import get_current_user_id, get_optional_user_id

router = APIRouter(prefix="/notes", tags=["notes"])


@router.post("/", response_model=NoteResponse, status_code=201)
async def create_note(
    request: NoteCreate,
    current_user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
):
    """Create a new note."""
    note_service = NoteService(session)
    return await note_service.create_note(current_user_id, request)


@router.get("/", response_model=NoteListResponse)
async def list_notes(
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    tags: Optional[List[str]] = Query(None),
    search: Optional[str] = Query(None, max_length=200),
    visibility: Optional[NoteVisibility] = Query(None),
    favorites_only: bool = Query(False),
    current_user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
):
    """List the caller's notes with optional tag, text and visibility filters."""
    note_service = NoteService(session)
    return await note_service.list_user_notes(
        user_id=current_user_id,
        page=page,
        per_page=per_page,
        tag_filter=tags,
        search=search,
        visibility=visibility,
        favorites_only=favorites_only,
    )


@router.get("/favorites", response_model=NoteListResponse)
async def list_favorites(
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    current_user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
):
    note_service = NoteService(session)
    return await note_service.list_user_notes(
        user_id=current_user_id, page=page, per_page=per_page, favorites_only=True
    )


@router.get("/shared-with-me", response_model=NoteListResponse)
async def list_shared_with_me(
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=200),
    current_user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
):
    """Notes other users shared with the caller."""
    note_service = NoteService(session)
    return await note_service.list_shared_with_me(current_user_id, page, per_page, search)


@router.get("/public", response_model=NoteListResponse)
async def list_public_notes(
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=200),
    session: AsyncSession = Depends(get_db_session),
):
    """Browse PUBLIC notes; no authentication required."""
    note_service = NoteService(session)
    return await note_service.list_public_notes(page, per_page, search)


@router.get("/{note_id}", response_model=NoteResponse)
async def get_note(
    note_id: UUID,
    current_user_id: Optional[UUID] = Depends(get_optional_user_id),
    session: AsyncSession = Depends(get_db_session),
):
    """Get a specific note. Anonymous callers can only read PUBLIC notes."""
    note_service = NoteService(session)
    return await note_service.get_note(note_id, current_user_id)


@router.put("/{note_id}", response_model=NoteResponse)
async def update_note(
    note_id: UUID,
    request: NoteUpdate,
    current_user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
):
    """Update a note."""
    note_service = NoteService(session)
    return await note_service.update_note(note_id, current_user_id, request)


@router.delete("/{note_id}", status_code=204)
async def delete_note(
    note_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
):
    """Delete a note together with its shares and public links."""
    note_service = NoteService(session)
    await note_service.delete_note(note_id, current_user_id)


@router.post("/{note_id}/favorite", response_model=NoteResponse)
async def toggle_favorite(
    note_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
):
    note_service = NoteService(session)
    return await note_service.toggle_favorite(note_id, current_user_id)


@router.get("/{note_id}/permission", response_model=NotePermissionResponse)
async def get_permission(
    note_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
):
    """The caller's effective capability on a note."""
    note_service = NoteService(session)
    return await note_service.get_permission(note_id, current_user_id)
