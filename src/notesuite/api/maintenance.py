"""Maintenance API endpoints."""

from typing import Any, Dict
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.schemas.maintenance import MaintenanceReport
from ..core.services import MaintenanceService, TokenLedger
from ..database import get_db_session
from ..middleware.auth import get_current_user_id

router = APIRouter(prefix="/maintenance", tags=["maintenance"])


@router.post("/cleanup", response_model=MaintenanceReport)
async def run_cleanup(
    current_user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
):
    """Purge old refresh tokens, expired shares and expired public links."""
    maintenance_service = MaintenanceService(session)
    return await maintenance_service.run_cleanup()


@router.get("/refresh-tokens/stats", response_model=Dict[str, Any])
async def refresh_token_stats(
    current_user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
):
    ledger = TokenLedger(session)
    return await ledger.stats()
