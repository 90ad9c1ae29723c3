"""Sharing API endpoints."""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.schemas.common import SuccessResponse
from ..core.schemas.sharing import (
    ShareCountsResponse,
    ShareListResponse,
    ShareRequest,
    ShareResponse,
    ShareUpdate,
)
from ..core.services import SharingService
from ..database import get_db_session
from ..middleware.auth import get_current_user_id

router = APIRouter(tags=["sharing"])


@router.post("/notes/{note_id}/shares", response_model=ShareResponse, status_code=201)
async def share_note(
    note_id: UUID,
    request: ShareRequest,
    current_user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
):
    """Share a note with another user. Only the owner may share."""
    sharing_service = SharingService(session)
    return await sharing_service.share_note(note_id, current_user_id, request)


@router.get("/notes/{note_id}/shares", response_model=List[ShareResponse])
async def list_note_shares(
    note_id: UUID,
    include_inactive: bool = Query(False),
    current_user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
):
    sharing_service = SharingService(session)
    return await sharing_service.list_note_shares(note_id, current_user_id, include_inactive)


@router.get("/notes/{note_id}/shares/counts", response_model=ShareCountsResponse)
async def count_note_shares(
    note_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
):
    """Valid shares of a note grouped by permission."""
    sharing_service = SharingService(session)
    return await sharing_service.count_by_permission(note_id, current_user_id)


@router.delete("/notes/{note_id}/shares", response_model=SuccessResponse)
async def revoke_all_shares(
    note_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
):
    """Revoke every active share of a note."""
    sharing_service = SharingService(session)
    revoked = await sharing_service.revoke_all(note_id, current_user_id)
    return SuccessResponse(message="Shares revoked", data={"revoked": revoked})


@router.get("/shares/received", response_model=ShareListResponse)
async def list_received_shares(
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    current_user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
):
    """Shares other users granted to the caller."""
    sharing_service = SharingService(session)
    return await sharing_service.list_received(current_user_id, page, per_page)


@router.patch("/shares/{share_id}", response_model=ShareResponse)
async def update_share(
    share_id: UUID,
    request: ShareUpdate,
    current_user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
):
    sharing_service = SharingService(session)
    return await sharing_service.update_share(share_id, current_user_id, request)


@router.post("/shares/{share_id}/revoke", response_model=ShareResponse)
async def revoke_share(
    share_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
):
    """Revoke a share; the row is kept for history."""
    sharing_service = SharingService(session)
    return await sharing_service.revoke_share(share_id, current_user_id)


@router.delete("/shares/{share_id}", status_code=204)
async def delete_share(
    share_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
):
    sharing_service = SharingService(session)
    await sharing_service.delete_share(share_id, current_user_id)
