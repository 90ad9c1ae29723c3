"""Access control engine.

Decides what a principal may do with a note. The decision functions are
pure: they receive the note and the principal's shares already loaded and
return an ``AccessDecision`` value. ``AccessControl`` wraps them with the
explicit lookups needed by the services.
"""

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import NotFoundError, UnauthorizedError
from ..logging import get_logger
from ..models.note import Note, NoteVisibility
from ..models.share import Permission, Share
from ..repositories.note_repository import NoteRepository
from ..repositories.share_repository import ShareRepository

logger = get_logger("services.access_control")

VIA_OWNER = "owner"
VIA_PUBLIC = "public"
VIA_SHARE = "share"

DENIED = "unauthorized"


@dataclass(frozen=True)
class AccessDecision:
    """Outcome of one authorization check."""

    allowed: bool
    reason: str
    granted: Optional[Permission] = None
    via: Optional[str] = None

    def __bool__(self) -> bool:
        return self.allowed


def _best_share(principal_id: Optional[UUID], shares: Iterable[Share]) -> Optional[Share]:
    best = None
    for share in shares:
        if share.shared_with_user_id != principal_id or not share.is_valid:
            continue
        if best is None or share.permission.rank > best.permission.rank:
            best = share
    return best


def authorize(
    note: Note,
    principal_id: Optional[UUID],
    capability: Permission,
    shares: Iterable[Share] = (),
) -> AccessDecision:
    """Decide whether ``principal_id`` holds ``capability`` on ``note``.

    Rules, first match wins:
      1. the owner is allowed everything (implicit ADMIN);
      2. anyone may READ a PUBLIC note;
      3. a valid share of the principal allows capabilities up to its level;
      4. everything else is denied.

    ``principal_id`` is None for anonymous callers.
    """
    capability = Permission(capability)

    if principal_id is not None and note.owner_id == principal_id:
        return AccessDecision(True, VIA_OWNER, Permission.ADMIN, VIA_OWNER)

    if note.visibility == NoteVisibility.PUBLIC and capability == Permission.READ:
        return AccessDecision(True, VIA_PUBLIC, Permission.READ, VIA_PUBLIC)

    share = _best_share(principal_id, shares) if principal_id is not None else None
    if share is not None and share.permission.satisfies(capability):
        return AccessDecision(True, VIA_SHARE, share.permission, VIA_SHARE)

    return AccessDecision(False, DENIED)


def effective_capability(
    note: Note, principal_id: Optional[UUID], shares: Iterable[Share] = ()
) -> Tuple[Optional[Permission], Optional[str]]:
    """Highest capability the principal holds on the note, and where it comes from."""
    if principal_id is not None and note.owner_id == principal_id:
        return Permission.ADMIN, VIA_OWNER

    share = _best_share(principal_id, shares) if principal_id is not None else None
    if share is not None:
        return share.permission, VIA_SHARE

    if note.visibility == NoteVisibility.PUBLIC:
        return Permission.READ, VIA_PUBLIC
    return None, None


def ensure_allowed(
    note: Note,
    principal_id: Optional[UUID],
    capability: Permission,
    shares: Iterable[Share] = (),
) -> AccessDecision:
    """``authorize`` that raises UnauthorizedError on denial."""
    decision = authorize(note, principal_id, capability, shares)
    if not decision.allowed:
        logger.info(
            "Access denied",
            extra={
                "note_id": str(note.id),
                "principal_id": str(principal_id) if principal_id else None,
                "capability": Permission(capability).value,
            },
        )
        raise UnauthorizedError(
            "You do not have permission to access this note",
            details={"required": Permission(capability).value},
        )
    return decision


class AccessControl:
    """Loads notes and shares by key and applies ``authorize``."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.note_repo = NoteRepository(session)
        self.share_repo = ShareRepository(session)

    async def load(self, note_id: UUID, principal_id: Optional[UUID]) -> Tuple[Note, list]:
        """Note plus the principal's shares on it; a missing note is NotFound, not a denial."""
        note = await self.note_repo.get_by_id(note_id)
        if not note:
            raise NotFoundError("Note not found", details={"note_id": str(note_id)})
        shares = []
        if principal_id is not None and note.owner_id != principal_id:
            shares = await self.share_repo.list_principal_shares(note_id, principal_id)
        return note, shares

    async def check_note_access(
        self, note_id: UUID, principal_id: Optional[UUID], capability: Permission
    ) -> AccessDecision:
        note, shares = await self.load(note_id, principal_id)
        return authorize(note, principal_id, capability, shares)

    async def require(
        self, note_id: UUID, principal_id: Optional[UUID], capability: Permission
    ) -> Tuple[Note, AccessDecision]:
        """Load the note and raise UnauthorizedError unless access is allowed."""
        note, shares = await self.load(note_id, principal_id)
        return note, ensure_allowed(note, principal_id, capability, shares)

    async def require_owner(self, note_id: UUID, principal_id: UUID) -> Note:
        """Owner-only operations; no share level delegates them."""
        note = await self.note_repo.get_by_id(note_id)
        if not note:
            raise NotFoundError("Note not found", details={"note_id": str(note_id)})
        if note.owner_id != principal_id:
            raise UnauthorizedError("Only the note owner can perform this action")
        return note
