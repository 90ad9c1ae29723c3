"""Authentication API endpoints."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query, status
from pydantic import EmailStr
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.schemas.auth import (
    EmailAvailabilityResponse,
    LoginRequest,
    LogoutRequest,
    RefreshTokenRequest,
    RegisterRequest,
    SessionResponse,
    TokenResponse,
    UserResponse,
)
from ..core.schemas.common import SuccessResponse
from ..core.services import AuthService, DeviceInfo
from ..database import get_db_session
from ..middleware.auth import get_access_token, get_current_user_id
from .deps import get_device_info

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(
    request: RegisterRequest,
    device: DeviceInfo = Depends(get_device_info),
    session: AsyncSession = Depends(get_db_session),
):
    """Register a new user and start a session."""
    auth_service = AuthService(session)
    return await auth_service.register_user(request, device)


@router.post("/login", response_model=TokenResponse)
async def login(
    request: LoginRequest,
    device: DeviceInfo = Depends(get_device_info),
    session: AsyncSession = Depends(get_db_session),
):
    """Login user and get an access/refresh token pair."""
    auth_service = AuthService(session)
    return await auth_service.authenticate_user(request, device)


@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(
    request: RefreshTokenRequest,
    device: DeviceInfo = Depends(get_device_info),
    session: AsyncSession = Depends(get_db_session),
):
    """Exchange a refresh token for a new pair. The old token stops working."""
    auth_service = AuthService(session)
    return await auth_service.refresh_token(request, device)


@router.get("/check-email", response_model=EmailAvailabilityResponse)
async def check_email(
    email: EmailStr = Query(...),
    session: AsyncSession = Depends(get_db_session),
):
    auth_service = AuthService(session)
    available = await auth_service.is_email_available(email)
    return EmailAvailabilityResponse(email=email, available=available)


@router.get("/me", response_model=UserResponse)
async def get_current_user(
    current_user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
):
    """Get current user profile."""
    auth_service = AuthService(session)
    return await auth_service.get_current_user(current_user_id)


@router.get("/sessions", response_model=List[SessionResponse])
async def list_sessions(
    current_user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
):
    """Active refresh tokens of the current user."""
    auth_service = AuthService(session)
    return await auth_service.list_sessions(current_user_id)


@router.post("/logout", response_model=SuccessResponse)
async def logout(
    request: Optional[LogoutRequest] = Body(default=None),
    current_user_id: UUID = Depends(get_current_user_id),
    access_token: str = Depends(get_access_token),
    session: AsyncSession = Depends(get_db_session),
):
    """Logout the current session."""
    auth_service = AuthService(session)
    refresh = request.refresh_token if request else None
    revoked = await auth_service.logout_user(current_user_id, access_token, refresh)
    return SuccessResponse(message="Logged out successfully", data={"refresh_token_revoked": revoked})


@router.post("/logout-all", response_model=SuccessResponse)
async def logout_all(
    current_user_id: UUID = Depends(get_current_user_id),
    access_token: str = Depends(get_access_token),
    session: AsyncSession = Depends(get_db_session),
):
    """Logout from every device."""
    auth_service = AuthService(session)
    count = await auth_service.logout_all(current_user_id, access_token)
    return SuccessResponse(message="All sessions revoked", data={"revoked": count})
