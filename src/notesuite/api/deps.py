"""Shared router dependencies."""

from fastapi import Request

from ..core.services.token_ledger import DeviceInfo


def get_device_info(request: Request) -> DeviceInfo:
    """Client address and user agent, recorded alongside refresh tokens."""
    return DeviceInfo(
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
