"""Tag API endpoints."""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.schemas.common import SuccessResponse
from ..core.schemas.tags import TagResponse
from ..core.services import TagService
from ..database import get_db_session
from ..middleware.auth import get_current_user_id

router = APIRouter(prefix="/tags", tags=["tags"])


@router.get("/", response_model=List[TagResponse])
async def list_tags(
    include_unused: bool = Query(False),
    current_user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
):
    """All tags ordered by name."""
    tag_service = TagService(session)
    return await tag_service.list_tags(include_unused=include_unused)


@router.post("/prune", response_model=SuccessResponse)
async def prune_unused_tags(
    current_user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
):
    """Delete tags no note uses any more."""
    tag_service = TagService(session)
    removed = await tag_service.prune_unused()
    return SuccessResponse(message="Unused tags removed", data={"removed": removed})
