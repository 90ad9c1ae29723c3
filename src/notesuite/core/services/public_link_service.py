"""Public link engine - tokenised anonymous access to notes."""

from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from ...config import get_settings
from ...database import unit_of_work
from ...security.password import hash_password
from ...security.password import verify_password as check_password
from ...security.tokens import generate_unique_token
from ..errors import GoneError, NotFoundError, UnauthorizedError, ValidationError
from ..logging import get_logger, token_preview
from ..models.base import as_utc, utcnow
from ..models.public_link import LinkState, PublicLink
from ..repositories.note_repository import NoteRepository
from ..repositories.public_link_repository import PublicLinkRepository
from ..schemas.public_links import (
    PublicLinkCreate,
    PublicLinkInfo,
    PublicLinkResponse,
    PublicLinkStats,
    PublicLinkUpdate,
    PublicNoteSnapshot,
)
from .access_control import AccessControl

logger = get_logger("services.public_links")

_GONE_MESSAGES = {
    LinkState.INACTIVE: "This link has been deactivated",
    LinkState.EXPIRED: "This link has expired",
    LinkState.ACCESS_LIMIT_REACHED: "This link has reached its access limit",
}


def _ensure_usable(link: PublicLink) -> None:
    state = link.state
    if state != LinkState.VALID:
        raise GoneError(_GONE_MESSAGES[state], reason=state)


def _normalize_password(password: Optional[str]) -> Optional[str]:
    if password is None or not password.strip():
        return None
    return password


def _to_response(link: PublicLink) -> PublicLinkResponse:
    return PublicLinkResponse(
        id=link.id,
        note_id=link.note_id,
        url_token=link.url_token,
        expires_at=as_utc(link.expires_at),
        max_access_count=link.max_access_count,
        access_count=link.access_count,
        remaining_access=link.remaining_access,
        is_active=link.is_active,
        is_password_protected=link.is_password_protected,
        description=link.description,
        state=link.state,
        created_at=as_utc(link.created_at),
        updated_at=as_utc(link.updated_at),
    )


class PublicLinkService:
    """Creates, resolves and manages public links.

    Resolution is anonymous; every management operation is owner-only.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.link_repo = PublicLinkRepository(session)
        self.note_repo = NoteRepository(session)
        self.access = AccessControl(session)
        self.settings = get_settings()

    def _validate_options(self, expires_at, max_access_count) -> None:
        if expires_at is not None and as_utc(expires_at) <= utcnow():
            raise ValidationError(
                "Expiration date must be in the future", details={"field": "expires_at"}
            )
        if max_access_count is not None and max_access_count < 1:
            raise ValidationError(
                "max_access_count must be at least 1", details={"field": "max_access_count"}
            )

    async def _get_owned(self, link_id: UUID, owner_id: UUID) -> PublicLink:
        link = await self.link_repo.get_by_id(link_id)
        if not link:
            raise NotFoundError("Public link not found", details={"link_id": str(link_id)})
        await self.access.require_owner(link.note_id, owner_id)
        return link

    async def _get_by_token(self, token: str) -> PublicLink:
        link = await self.link_repo.get_by_token(token)
        if not link:
            raise NotFoundError("Public link not found")
        return link

    # Owner management

    async def create(self, note_id: UUID, owner_id: UUID, request: PublicLinkCreate) -> PublicLinkResponse:
        """Create a link for a note the caller owns."""
        await self.access.require_owner(note_id, owner_id)
        self._validate_options(request.expires_at, request.max_access_count)

        password = _normalize_password(request.password)
        async with unit_of_work(self.session):
            url_token = await generate_unique_token(
                self.link_repo.token_exists,
                self.settings.public_link_token_bytes,
                self.settings.token_generation_max_attempts,
            )
            link = await self.link_repo.create_link(
                {
                    "note_id": note_id,
                    "url_token": url_token,
                    "expires_at": as_utc(request.expires_at),
                    "max_access_count": request.max_access_count,
                    "access_count": 0,
                    "is_active": True,
                    "password_hash": hash_password(password) if password else None,
                    "description": request.description,
                }
            )

        logger.info(
            "Public link created",
            extra={
                "note_id": str(note_id),
                "link_id": str(link.id),
                "token": token_preview(link.url_token),
                "password_protected": link.is_password_protected,
            },
        )
        return _to_response(link)

    async def list_for_note(self, note_id: UUID, owner_id: UUID) -> List[PublicLinkResponse]:
        await self.access.require_owner(note_id, owner_id)
        return [_to_response(link) for link in await self.link_repo.list_for_note(note_id)]

    async def get(self, link_id: UUID, owner_id: UUID) -> PublicLinkResponse:
        return _to_response(await self._get_owned(link_id, owner_id))

    async def update(self, link_id: UUID, owner_id: UUID, request: PublicLinkUpdate) -> PublicLinkResponse:
        """Change expiry, cap, description or password.

        ``password=None`` keeps the current one, a blank password removes it.
        """
        link = await self._get_owned(link_id, owner_id)
        self._validate_options(request.expires_at, request.max_access_count)

        changes = {}
        if request.clear_expiry:
            changes["expires_at"] = None
        elif request.expires_at is not None:
            changes["expires_at"] = as_utc(request.expires_at)
        if request.clear_access_limit:
            changes["max_access_count"] = None
        elif request.max_access_count is not None:
            changes["max_access_count"] = request.max_access_count
        if request.description is not None:
            changes["description"] = request.description
        if request.password is not None:
            password = _normalize_password(request.password)
            changes["password_hash"] = hash_password(password) if password else None

        async with unit_of_work(self.session):
            link = await self.link_repo.update_link(link, changes)

        logger.info(
            "Public link updated",
            extra={"link_id": str(link_id), "fields": sorted(changes)},
        )
        return _to_response(link)

    async def _set_active(self, link_id: UUID, owner_id: UUID, active: bool) -> PublicLinkResponse:
        link = await self._get_owned(link_id, owner_id)
        async with unit_of_work(self.session):
            link = await self.link_repo.update_link(link, {"is_active": active})
        logger.info(
            f"Public link {'reactivated' if active else 'deactivated'}",
            extra={"link_id": str(link_id)},
        )
        return _to_response(link)

    async def deactivate(self, link_id: UUID, owner_id: UUID) -> PublicLinkResponse:
        return await self._set_active(link_id, owner_id, False)

    async def reactivate(self, link_id: UUID, owner_id: UUID) -> PublicLinkResponse:
        return await self._set_active(link_id, owner_id, True)

    async def delete(self, link_id: UUID, owner_id: UUID) -> bool:
        await self._get_owned(link_id, owner_id)
        async with unit_of_work(self.session):
            deleted = await self.link_repo.delete_link(link_id)
        logger.info("Public link deleted", extra={"link_id": str(link_id)})
        return deleted

    async def delete_by_token(self, token: str, owner_id: UUID) -> bool:
        link = await self._get_by_token(token)
        return await self.delete(link.id, owner_id)

    async def cleanup_expired(self) -> int:
        """Delete links whose expiry has passed."""
        async with unit_of_work(self.session):
            deleted = await self.link_repo.delete_expired(utcnow())
        logger.info("Expired public links deleted", extra={"count": deleted})
        return deleted

    async def stats(self, owner_id: Optional[UUID] = None) -> PublicLinkStats:
        return PublicLinkStats(**await self.link_repo.get_stats(utcnow(), owner_id))

    # Anonymous access

    async def info(self, token: str) -> PublicLinkInfo:
        """Link metadata without consuming an access."""
        link = await self._get_by_token(token)
        _ensure_usable(link)
        return PublicLinkInfo(
            is_password_protected=link.is_password_protected,
            expires_at=as_utc(link.expires_at),
            max_access_count=link.max_access_count,
            access_count=link.access_count,
            remaining_access=link.remaining_access,
            description=link.description,
        )

    async def resolve(self, token: str, password: Optional[str] = None) -> PublicNoteSnapshot:
        """Consume one access and return the note as seen through the link.

        NotFoundError for unknown tokens, GoneError once the link is inactive,
        expired or out of accesses, ValidationError when a required password
        is missing and UnauthorizedError when it is wrong.
        """
        link = await self._get_by_token(token)
        _ensure_usable(link)

        if link.is_password_protected:
            if not password:
                raise ValidationError("This link requires a password", code="password_required")
            if not check_password(password, link.password_hash):
                logger.warning(
                    "Wrong public link password", extra={"token": token_preview(token)}
                )
                raise UnauthorizedError("Invalid password", code="invalid_password")

        link_id, note_id = link.id, link.note_id
        async with unit_of_work(self.session):
            now = utcnow()
            access_count = await self.link_repo.consume_access(link_id, now)
            if access_count is None:
                # lost a race: report what the link looks like now
                latest = await self.link_repo.get_by_id(link_id)
                if latest is None:
                    raise NotFoundError("Public link not found")
                _ensure_usable(latest)
                raise GoneError(
                    _GONE_MESSAGES[LinkState.ACCESS_LIMIT_REACHED],
                    reason=LinkState.ACCESS_LIMIT_REACHED,
                )

            view_count = await self.note_repo.increment_view_count(note_id)
            note = await self.note_repo.get_by_id(note_id)
            if note is None:
                raise NotFoundError("Note not found")

        remaining = None
        if link.max_access_count is not None:
            remaining = max(0, link.max_access_count - access_count)

        logger.info(
            "Public link resolved",
            extra={
                "link_id": str(link_id),
                "token": token_preview(token),
                "access_count": access_count,
                "remaining_access": remaining,
            },
        )
        return PublicNoteSnapshot(
            note_id=note.id,
            title=note.title,
            content=note.content,
            tags=note.tag_names,
            view_count=view_count if view_count is not None else note.view_count,
            access_count=access_count,
            max_access_count=link.max_access_count,
            remaining_access=remaining,
            expires_at=as_utc(link.expires_at),
            accessed_at=now,
        )

    async def verify_password(self, token: str, password: str) -> PublicNoteSnapshot:
        """Password check endpoint; counts as an access like ``resolve``."""
        return await self.resolve(token, password)
