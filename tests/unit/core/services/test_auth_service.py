"""Unit tests for AuthService."""

import pytest

from notesuite.core.errors import (
    ConflictError,
    InvalidCredentialsError,
    TokenRevokedError,
    UnauthorizedError,
)
from notesuite.core.schemas.auth import LoginRequest, RefreshTokenRequest, RegisterRequest
from notesuite.core.services import auth_service as auth_service_module
from notesuite.core.services.auth_service import AuthService
from notesuite.core.services.token_ledger import DeviceInfo
from notesuite.security.jwt import decode_token, get_user_id_from_token

PASSWORD = "TestPassword123!"


async def _register(session, email="ada@example.com"):
    return await AuthService(session).register_user(
        RegisterRequest(email=email, password=PASSWORD), DeviceInfo("127.0.0.1", "pytest")
    )


class TestRegister:
    @pytest.mark.asyncio
    async def test_register_returns_token_pair(self, test_session):
        tokens = await _register(test_session, "Ada@Example.com")

        assert tokens.token_type == "bearer"
        assert tokens.expires_in == 15 * 60
        assert tokens.user.email == "ada@example.com"
        assert tokens.refresh_token
        payload = decode_token(tokens.access_token)
        assert payload["sub"] == str(tokens.user.id)
        assert payload["type"] == "access"
        assert payload["jti"]

    @pytest.mark.asyncio
    async def test_duplicate_email_conflicts(self, test_session):
        await _register(test_session)
        with pytest.raises(ConflictError) as exc_info:
            await _register(test_session, "ADA@example.com")
        assert exc_info.value.code == "email_taken"

    @pytest.mark.asyncio
    async def test_email_availability(self, test_session):
        service = AuthService(test_session)
        assert await service.is_email_available("ada@example.com")
        await _register(test_session)
        assert not await service.is_email_available("ada@example.com")


class TestLogin:
    @pytest.mark.asyncio
    async def test_login_success_records_login(self, test_session, owner):
        service = AuthService(test_session)
        tokens = await service.authenticate_user(LoginRequest(email=owner.email, password=PASSWORD))

        assert tokens.user.id == owner.id
        assert tokens.user.last_login_at is not None

    @pytest.mark.asyncio
    async def test_login_failures_are_indistinguishable(self, test_session, owner, make_user):
        inactive = await make_user("inactive@example.com", is_active=False)
        service = AuthService(test_session)

        errors = []
        for request in (
            LoginRequest(email="missing@example.com", password=PASSWORD),
            LoginRequest(email=owner.email, password="wrong-password"),
            LoginRequest(email=inactive.email, password=PASSWORD),
        ):
            with pytest.raises(InvalidCredentialsError) as exc_info:
                await service.authenticate_user(request)
            errors.append(exc_info.value.to_dict())

        assert errors[0] == errors[1] == errors[2]

    @pytest.mark.asyncio
    async def test_unknown_email_still_checks_a_hash(self, test_session, monkeypatch):
        checked = []
        real_verify = auth_service_module.verify_password

        def recording_verify(password, password_hash):
            checked.append(password_hash)
            return real_verify(password, password_hash)

        monkeypatch.setattr(auth_service_module, "verify_password", recording_verify)

        with pytest.raises(InvalidCredentialsError):
            await AuthService(test_session).authenticate_user(
                LoginRequest(email="missing@example.com", password=PASSWORD)
            )

        assert checked == [auth_service_module._DUMMY_PASSWORD_HASH]
        assert checked[0].startswith("$bcrypt-sha256$")

    @pytest.mark.asyncio
    async def test_login_starts_new_session_chain(self, test_session, owner):
        service = AuthService(test_session)
        first = await service.authenticate_user(LoginRequest(email=owner.email, password=PASSWORD))
        await service.authenticate_user(LoginRequest(email=owner.email, password=PASSWORD))

        with pytest.raises(TokenRevokedError):
            await service.refresh_token(RefreshTokenRequest(refresh_token=first.refresh_token))


class TestRefresh:
    @pytest.mark.asyncio
    async def test_refresh_rotates(self, test_session):
        service = AuthService(test_session)
        tokens = await _register(test_session)

        rotated = await service.refresh_token(RefreshTokenRequest(refresh_token=tokens.refresh_token))
        assert rotated.refresh_token != tokens.refresh_token
        assert rotated.user.id == tokens.user.id

        with pytest.raises(TokenRevokedError):
            await service.refresh_token(RefreshTokenRequest(refresh_token=tokens.refresh_token))

    @pytest.mark.asyncio
    async def test_inactive_user_cannot_refresh(self, test_session):
        tokens = await _register(test_session)
        service = AuthService(test_session)
        user = await service.user_repo.get_by_id(tokens.user.id)
        user.is_active = False
        await test_session.commit()

        with pytest.raises(UnauthorizedError) as exc_info:
            await service.refresh_token(RefreshTokenRequest(refresh_token=tokens.refresh_token))
        assert exc_info.value.code == "account_inactive"
        # the failed exchange was rolled back with everything else
        assert (await service.ledger.validate(tokens.refresh_token)).is_valid


class TestLogout:
    @pytest.mark.asyncio
    async def test_logout_revokes_and_blacklists(self, test_session, fake_redis):
        tokens = await _register(test_session)
        service = AuthService(test_session)

        assert await service.logout_user(tokens.user.id, tokens.access_token, tokens.refresh_token)

        assert await get_user_id_from_token(tokens.access_token) is None
        assert len(fake_redis.store) == 1
        with pytest.raises(TokenRevokedError):
            await service.refresh_token(RefreshTokenRequest(refresh_token=tokens.refresh_token))

    @pytest.mark.asyncio
    async def test_logout_ignores_foreign_refresh_token(self, test_session, owner):
        mine = await _register(test_session)
        service = AuthService(test_session)
        theirs = await service.authenticate_user(LoginRequest(email=owner.email, password=PASSWORD))

        assert not await service.logout_user(mine.user.id, mine.access_token, theirs.refresh_token)
        assert (await service.ledger.validate(theirs.refresh_token)).is_valid

    @pytest.mark.asyncio
    async def test_logout_all_and_sessions(self, test_session):
        tokens = await _register(test_session)
        service = AuthService(test_session)

        sessions = await service.list_sessions(tokens.user.id)
        assert len(sessions) == 1
        assert sessions[0].user_agent == "pytest"

        assert await service.logout_all(tokens.user.id, tokens.access_token) == 1
        assert await service.list_sessions(tokens.user.id) == []
