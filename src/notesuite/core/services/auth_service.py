"""Authentication service implementation."""

from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ...config import get_settings
from ...database import unit_of_work
from ...security import blacklist_token, create_access_token, hash_password, needs_update, verify_password
from ..errors import ConflictError, InvalidCredentialsError, NotFoundError, UnauthorizedError
from ..logging import get_logger
from ..models.base import as_utc, utcnow
from ..models.refresh_token import RefreshToken
from ..models.user import User
from ..repositories.user_repository import UserRepository
from ..schemas.auth import (
    LoginRequest,
    RefreshTokenRequest,
    RegisterRequest,
    SessionResponse,
    TokenResponse,
    UserResponse,
)
from .interfaces import IAuthService
from .token_ledger import DeviceInfo, RevocationReason, TokenLedger

logger = get_logger("services.auth")

# compared against when the email is unknown so that path costs one hash too
_DUMMY_PASSWORD_HASH = hash_password("notesuite-unknown-account")


def _user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        is_active=user.is_active,
        created_at=as_utc(user.created_at),
        updated_at=as_utc(user.updated_at),
        last_login_at=as_utc(user.last_login_at),
    )


class AuthService(IAuthService):
    """Registration, login and the refresh token exchange."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.user_repo = UserRepository(session)
        self.ledger = TokenLedger(session)
        self.settings = get_settings()

    def _token_response(self, user: User, refresh_token: RefreshToken) -> TokenResponse:
        return TokenResponse(
            access_token=create_access_token(data={"sub": str(user.id)}),
            refresh_token=refresh_token.token,
            token_type="bearer",
            expires_in=self.settings.access_token_expire_seconds,
            user=_user_response(user),
        )

    async def register_user(
        self, request: RegisterRequest, device: Optional[DeviceInfo] = None
    ) -> TokenResponse:
        """Create an account and start its first session."""
        if await self.user_repo.is_email_taken(request.email):
            raise ConflictError("Email already registered", code="email_taken")

        try:
            async with unit_of_work(self.session):
                user = await self.user_repo.create_user(
                    {
                        "email": User.normalize_email(request.email),
                        "password_hash": hash_password(request.password),
                        "is_active": True,
                    }
                )
                refresh_token = await self.ledger.issue(user.id, device)
        except IntegrityError as e:
            raise ConflictError("Email already registered", code="email_taken") from e

        logger.info("User registered", extra={"user_id": str(user.id)})
        return self._token_response(user, refresh_token)

    async def authenticate_user(
        self, request: LoginRequest, device: Optional[DeviceInfo] = None
    ) -> TokenResponse:
        """Login. Unknown email, wrong password and inactive account look the same."""
        user = await self.user_repo.get_by_email(request.email)
        if user is None:
            verify_password(request.password, _DUMMY_PASSWORD_HASH)
        if user is None or not verify_password(request.password, user.password_hash):
            logger.info("Login failed", extra={"reason": "bad_credentials"})
            raise InvalidCredentialsError()
        if not user.can_login():
            logger.info("Login failed", extra={"reason": "inactive", "user_id": str(user.id)})
            raise InvalidCredentialsError()

        async with unit_of_work(self.session):
            if needs_update(user.password_hash):
                user.password_hash = hash_password(request.password)
            user.record_login()
            await self.session.flush()
            refresh_token = await self.ledger.issue(user.id, device)

        logger.info("User logged in", extra={"user_id": str(user.id)})
        return self._token_response(user, refresh_token)

    async def refresh_token(
        self, request: RefreshTokenRequest, device: Optional[DeviceInfo] = None
    ) -> TokenResponse:
        """Rotate a refresh token and mint a new access token."""
        async with unit_of_work(self.session):
            refresh_token = await self.ledger.rotate(request.refresh_token, device)
            user = await self.user_repo.get_by_id(refresh_token.user_id)
            if not user or not user.can_login():
                raise UnauthorizedError("User account inactive", code="account_inactive")

        return self._token_response(user, refresh_token)

    async def get_current_user(self, user_id: UUID) -> UserResponse:
        user = await self.user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return _user_response(user)

    async def is_email_available(self, email: str) -> bool:
        return not await self.user_repo.is_email_taken(email)

    async def logout_user(
        self, user_id: UUID, access_token: str, refresh_token: Optional[str] = None
    ) -> bool:
        """Blacklist the access token and revoke the given refresh token."""
        await blacklist_token(access_token)

        revoked = False
        if refresh_token:
            async with unit_of_work(self.session):
                owned = await self.ledger.get_owned(refresh_token, user_id)
                if owned is not None:
                    revoked = await self.ledger.revoke(refresh_token, RevocationReason.LOGOUT)

        logger.info("User logged out", extra={"user_id": str(user_id), "revoked": revoked})
        return revoked

    async def logout_all(self, user_id: UUID, access_token: str) -> int:
        """Logout from every device."""
        await blacklist_token(access_token)
        async with unit_of_work(self.session):
            count = await self.ledger.revoke_all(user_id, RevocationReason.LOGOUT_ALL)
        return count

    async def list_sessions(self, user_id: UUID) -> List[SessionResponse]:
        tokens = await self.ledger.list_active(user_id)
        return [
            SessionResponse(
                id=token.id,
                created_at=as_utc(token.created_at),
                expires_at=as_utc(token.expires_at),
                last_used_at=as_utc(token.last_used_at),
                ip_address=token.ip_address,
                user_agent=token.user_agent,
            )
            for token in tokens
        ]
