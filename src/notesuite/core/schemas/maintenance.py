"""Maintenance (cleanup) schemas."""

from pydantic import BaseModel, Field


class TokenCleanupResponse(BaseModel):
    expired: int = Field(description="Tokens expired beyond retention")
    revoked: int = Field(description="Tokens revoked beyond retention")
    aged_out: int = Field(description="Tokens older than the maximum age")
    total: int


class MaintenanceReport(BaseModel):
    """Result of one on-demand cleanup run."""

    refresh_tokens: TokenCleanupResponse
    shares_deactivated: int
    public_links_deleted: int
