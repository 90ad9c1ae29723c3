"""Sharing service implementation."""

from typing import List
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ...config import get_settings
from ...database import unit_of_work
from ..errors import ConflictError, NotFoundError, ValidationError
from ..logging import get_logger
from ..models.base import as_utc, utcnow
from ..models.share import Share
from ..repositories.share_repository import ShareRepository
from ..repositories.user_repository import UserRepository
from ..schemas.sharing import (
    ShareCountsResponse,
    ShareListResponse,
    ShareRequest,
    ShareResponse,
    ShareUpdate,
)
from .access_control import AccessControl
from .interfaces import ISharingService

logger = get_logger("services.sharing")


def _to_response(share: Share) -> ShareResponse:
    loaded = share.__dict__
    note = loaded.get("note")
    recipient = loaded.get("shared_with_user")
    return ShareResponse(
        id=share.id,
        note_id=share.note_id,
        note_title=note.title if note is not None else None,
        shared_with_user_id=share.shared_with_user_id,
        shared_with_email=recipient.email if recipient is not None else None,
        shared_by_user_id=share.shared_by_user_id,
        permission=share.permission,
        expires_at=as_utc(share.expires_at),
        is_active=share.is_active,
        is_expired=share.is_expired,
        created_at=as_utc(share.created_at),
        updated_at=as_utc(share.updated_at),
    )


class SharingService(ISharingService):
    """Grants, changes and revokes shares. Every operation is owner-only."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.share_repo = ShareRepository(session)
        self.user_repo = UserRepository(session)
        self.access = AccessControl(session)
        self.settings = get_settings()

    async def _get_owned_share(self, share_id: UUID, owner_id: UUID) -> Share:
        share = await self.share_repo.get_by_id(share_id)
        if not share:
            raise NotFoundError("Share not found", details={"share_id": str(share_id)})
        await self.access.require_owner(share.note_id, owner_id)
        return share

    @staticmethod
    def _check_expiry(expires_at) -> None:
        if expires_at is not None and as_utc(expires_at) <= utcnow():
            raise ValidationError(
                "Expiration date must be in the future", details={"field": "expires_at"}
            )

    async def share_note(self, note_id: UUID, owner_id: UUID, request: ShareRequest) -> ShareResponse:
        """Share a note with one user.

        A still-valid active share for the same user is a conflict; an
        active share that has merely expired is retired first.
        """
        await self.access.require_owner(note_id, owner_id)
        self._check_expiry(request.expires_at)

        recipient = await self.user_repo.get_by_email(request.shared_with_email)
        if not recipient or not recipient.is_active:
            raise NotFoundError("User not found", details={"email": request.shared_with_email})
        if recipient.id == owner_id:
            raise ValidationError("Cannot share note with yourself")

        existing = await self.share_repo.get_active_share(note_id, recipient.id)
        if existing is not None and existing.is_valid:
            raise ConflictError(
                "Note is already shared with this user",
                details={"share_id": str(existing.id)},
            )

        try:
            async with unit_of_work(self.session):
                if existing is not None:
                    await self.share_repo.deactivate(existing.id)
                share = await self.share_repo.create_share(
                    {
                        "note_id": note_id,
                        "shared_with_user_id": recipient.id,
                        "shared_by_user_id": owner_id,
                        "permission": request.permission,
                        "expires_at": as_utc(request.expires_at),
                        "is_active": True,
                    }
                )
                share_id = share.id
        except IntegrityError as e:
            # lost a race for the (note, user) active slot
            raise ConflictError("Note is already shared with this user") from e

        logger.info(
            "Note shared",
            extra={
                "note_id": str(note_id),
                "share_id": str(share_id),
                "shared_with": str(recipient.id),
                "permission": request.permission.value,
            },
        )
        return _to_response(await self.share_repo.get_by_id(share_id))

    async def list_note_shares(
        self, note_id: UUID, owner_id: UUID, include_inactive: bool = False
    ) -> List[ShareResponse]:
        await self.access.require_owner(note_id, owner_id)
        shares = await self.share_repo.list_note_shares(note_id, include_inactive=include_inactive)
        return [_to_response(share) for share in shares]

    async def list_received(self, user_id: UUID, page: int = 1, per_page: int = 20) -> ShareListResponse:
        """Valid shares other users granted to the caller."""
        if page < 1:
            page = 1
        if per_page < 1 or per_page > self.settings.max_page_size:
            per_page = self.settings.default_page_size
        shares, total = await self.share_repo.list_shares_received(user_id, utcnow(), page, per_page)
        return ShareListResponse.create(
            items=[_to_response(share) for share in shares], total=total, page=page, per_page=per_page
        )

    async def update_share(self, share_id: UUID, owner_id: UUID, request: ShareUpdate) -> ShareResponse:
        share = await self._get_owned_share(share_id, owner_id)
        if not share.is_active:
            raise ValidationError("Cannot update a revoked share")
        self._check_expiry(request.expires_at)

        changes = {}
        if request.permission is not None:
            changes["permission"] = request.permission
        if request.clear_expiry:
            changes["expires_at"] = None
        elif request.expires_at is not None:
            changes["expires_at"] = as_utc(request.expires_at)

        async with unit_of_work(self.session):
            await self.share_repo.update_share(share, changes)

        logger.info("Share updated", extra={"share_id": str(share_id), "fields": sorted(changes)})
        return _to_response(await self.share_repo.get_by_id(share_id))

    async def revoke_share(self, share_id: UUID, owner_id: UUID) -> ShareResponse:
        """Deactivate a share; the row is kept for audit."""
        await self._get_owned_share(share_id, owner_id)
        async with unit_of_work(self.session):
            changed = await self.share_repo.deactivate(share_id)
        logger.info("Share revoked", extra={"share_id": str(share_id), "changed": bool(changed)})
        return _to_response(await self.share_repo.get_by_id(share_id))

    async def delete_share(self, share_id: UUID, owner_id: UUID) -> bool:
        await self._get_owned_share(share_id, owner_id)
        async with unit_of_work(self.session):
            deleted = await self.share_repo.delete_share(share_id)
        logger.info("Share deleted", extra={"share_id": str(share_id)})
        return deleted

    async def revoke_all(self, note_id: UUID, owner_id: UUID) -> int:
        """Revoke every active share of a note."""
        await self.access.require_owner(note_id, owner_id)
        async with unit_of_work(self.session):
            count = await self.share_repo.deactivate_note_shares(note_id)
        logger.info("All shares revoked", extra={"note_id": str(note_id), "count": count})
        return count

    async def count_by_permission(self, note_id: UUID, owner_id: UUID) -> ShareCountsResponse:
        await self.access.require_owner(note_id, owner_id)
        counts = await self.share_repo.count_by_permission(note_id, utcnow())
        return ShareCountsResponse(note_id=note_id, counts=counts, total=sum(counts.values()))

    async def cleanup_expired(self) -> int:
        """Deactivate active shares whose expiry has passed."""
        async with unit_of_work(self.session):
            count = await self.share_repo.deactivate_expired(utcnow())
        logger.info("Expired shares deactivated", extra={"count": count})
        return count
