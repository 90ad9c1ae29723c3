"""Request authentication dependencies."""

from .auth import JWTBearer, get_access_token, get_current_user_id, get_optional_user_id

__all__ = ["get_current_user_id", "get_optional_user_id", "get_access_token", "JWTBearer"]
