"""Opaque token generation for refresh tokens and public links."""

import secrets
from typing import Awaitable, Callable, Optional

from ..config import get_settings
from ..core.errors import ConflictError


def generate_token(nbytes: int) -> str:
    """URL-safe random token carrying ``nbytes`` of entropy."""
    return secrets.token_urlsafe(nbytes)


async def generate_unique_token(
    exists: Callable[[str], Awaitable[bool]],
    nbytes: int,
    max_attempts: Optional[int] = None,
) -> str:
    """Generate a token the store does not know yet.

    ``exists`` is the repository lookup. Collisions are astronomically
    unlikely, but after ``max_attempts`` of them we give up with a conflict.
    """
    attempts = max_attempts
    if attempts is None:
        attempts = get_settings().token_generation_max_attempts
    for _ in range(attempts):
        candidate = generate_token(nbytes)
        if not await exists(candidate):
            return candidate
    raise ConflictError(
        "Could not generate a unique token", code="token_generation_failed"
    )
