"""Public link API endpoints.

Owner routes manage links; the ``/p/{token}`` routes are anonymous.
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Header, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.schemas.common import SuccessResponse
from ..core.schemas.public_links import (
    PasswordSubmission,
    PublicLinkCreate,
    PublicLinkInfo,
    PublicLinkResponse,
    PublicLinkStats,
    PublicLinkUpdate,
    PublicNoteSnapshot,
)
from ..core.services import PublicLinkService
from ..database import get_db_session
from ..middleware.auth import get_current_user_id

router = APIRouter(tags=["public links"])


@router.post("/notes/{note_id}/public-links", response_model=PublicLinkResponse, status_code=201)
async def create_public_link(
    note_id: UUID,
    request: PublicLinkCreate,
    current_user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
):
    """Create a public link for a note the caller owns."""
    link_service = PublicLinkService(session)
    return await link_service.create(note_id, current_user_id, request)


@router.get("/notes/{note_id}/public-links", response_model=List[PublicLinkResponse])
async def list_public_links(
    note_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
):
    link_service = PublicLinkService(session)
    return await link_service.list_for_note(note_id, current_user_id)


@router.get("/public-links/stats", response_model=PublicLinkStats)
async def public_link_stats(
    current_user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
):
    """Counters over the caller's links."""
    link_service = PublicLinkService(session)
    return await link_service.stats(owner_id=current_user_id)


@router.delete("/public-links/by-token/{token}", status_code=204)
async def delete_public_link_by_token(
    token: str,
    current_user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
):
    link_service = PublicLinkService(session)
    await link_service.delete_by_token(token, current_user_id)


@router.get("/public-links/{link_id}", response_model=PublicLinkResponse)
async def get_public_link(
    link_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
):
    link_service = PublicLinkService(session)
    return await link_service.get(link_id, current_user_id)


@router.patch("/public-links/{link_id}", response_model=PublicLinkResponse)
async def update_public_link(
    link_id: UUID,
    request: PublicLinkUpdate,
    current_user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
):
    """Change expiry, access cap, password or description."""
    link_service = PublicLinkService(session)
    return await link_service.update(link_id, current_user_id, request)


@router.post("/public-links/{link_id}/deactivate", response_model=PublicLinkResponse)
async def deactivate_public_link(
    link_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
):
    link_service = PublicLinkService(session)
    return await link_service.deactivate(link_id, current_user_id)


@router.post("/public-links/{link_id}/reactivate", response_model=PublicLinkResponse)
async def reactivate_public_link(
    link_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
):
    link_service = PublicLinkService(session)
    return await link_service.reactivate(link_id, current_user_id)


@router.delete("/public-links/{link_id}", status_code=204)
async def delete_public_link(
    link_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
):
    link_service = PublicLinkService(session)
    await link_service.delete(link_id, current_user_id)


# Anonymous access


@router.get("/p/{token}", response_model=PublicNoteSnapshot)
async def resolve_public_link(
    token: str,
    password: Optional[str] = Query(None, max_length=128),
    x_link_password: Optional[str] = Header(None, max_length=128),
    session: AsyncSession = Depends(get_db_session),
):
    """Open a note through its public link. Each call consumes one access."""
    link_service = PublicLinkService(session)
    return await link_service.resolve(token, x_link_password or password)


@router.get("/p/{token}/info", response_model=PublicLinkInfo)
async def public_link_info(token: str, session: AsyncSession = Depends(get_db_session)):
    """Link metadata; does not consume an access."""
    link_service = PublicLinkService(session)
    return await link_service.info(token)


@router.post("/p/{token}/verify-password", response_model=PublicNoteSnapshot)
async def verify_public_link_password(
    token: str,
    request: PasswordSubmission,
    session: AsyncSession = Depends(get_db_session),
):
    """Submit the link password; on success the note is returned."""
    link_service = PublicLinkService(session)
    return await link_service.verify_password(token, request.password)
