"""JWT access token utilities."""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from uuid import UUID

from jose import JWTError, jwt

from ..config import get_settings
from ..core.logging import get_logger
from ..core.redis_client import get_redis_client

logger = get_logger("security.jwt")


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token with a JTI so it can be blacklisted on logout."""
    settings = get_settings()
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.access_token_expire_minutes
        )

    to_encode.update({"exp": expire, "type": "access", "jti": str(uuid.uuid4())})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_token(token: str) -> Optional[Dict[str, Any]]:
    """Signature and expiry check only."""
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None
    if payload.get("type") != "access":
        return None
    return payload


async def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Decode and validate access token, checking the Redis blacklist."""
    payload = decode_token(token)
    if not payload:
        return None

    jti = payload.get("jti")
    if jti:
        redis_client = get_redis_client()
        try:
            await redis_client.connect()
            if await redis_client.is_token_blacklisted(jti):
                return None
        except Exception as e:
            # Redis down: validation continues without the blacklist
            logger.warning("Blacklist unavailable", extra={"error": str(e)})

    return payload


async def get_user_id_from_token(token: str) -> Optional[UUID]:
    """Extract user ID from token."""
    payload = await decode_access_token(token)
    if not payload:
        return None

    user_id = payload.get("sub")
    if not user_id:
        return None

    try:
        return UUID(user_id)
    except ValueError:
        return None


async def blacklist_token(token: str) -> bool:
    """Blacklist an access token for the rest of its lifetime."""
    payload = decode_token(token)
    if not payload or not payload.get("jti") or not payload.get("exp"):
        return False

    expire_time = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
    remaining_seconds = int((expire_time - datetime.now(timezone.utc)).total_seconds())
    if remaining_seconds <= 0:
        return False

    redis_client = get_redis_client()
    try:
        await redis_client.connect()
    except Exception as e:
        logger.error("Blacklist token error", extra={"error": str(e)})
        return False
    return await redis_client.add_to_blacklist(payload["jti"], remaining_seconds)
