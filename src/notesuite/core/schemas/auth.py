"""
Authentication schemas.

API contracts for registration, login, the refresh token exchange and
session management.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator


class LoginRequest(BaseModel):
    """User login request schema."""

    email: EmailStr = Field(description="Account email")
    password: str = Field(min_length=1, max_length=128, description="User password")

    model_config = ConfigDict(
        json_schema_extra={"example": {"email": "ada@example.com", "password": "securepassword123"}}
    )


class RegisterRequest(BaseModel):
    """User registration request schema."""

    email: EmailStr = Field(description="Unique account email")
    password: str = Field(min_length=8, max_length=128, description="User password")
    confirm_password: Optional[str] = Field(
        default=None, max_length=128, description="Password confirmation"
    )

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()

    @model_validator(mode="after")
    def passwords_match(self):
        """Validate that passwords match when a confirmation is sent."""
        if self.confirm_password is not None and self.confirm_password != self.password:
            raise ValueError("Passwords do not match")
        return self

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "email": "ada@example.com",
                "password": "securepassword123",
                "confirm_password": "securepassword123",
            }
        }
    )


class UserResponse(BaseModel):
    """User information response schema."""

    id: uuid.UUID = Field(description="User unique identifier")
    email: str = Field(description="Account email")
    is_active: bool = Field(description="Whether user account is active")
    created_at: datetime = Field(description="Account creation timestamp")
    updated_at: Optional[datetime] = Field(default=None, description="Last update timestamp")
    last_login_at: Optional[datetime] = Field(default=None, description="Last successful login")

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": "123e4567-e89b-12d3-a456-426614174000",
                "email": "ada@example.com",
                "is_active": True,
                "created_at": "2025-09-13T10:30:00Z",
                "updated_at": "2025-09-13T11:00:00Z",
                "last_login_at": "2025-09-13T11:00:00Z",
            }
        },
    )


class TokenResponse(BaseModel):
    """Access/refresh token pair."""

    access_token: str = Field(description="JWT access token")
    refresh_token: str = Field(description="Opaque refresh token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(description="Access token lifetime in seconds")
    user: UserResponse = Field(description="User information")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "access_token": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...",
                "refresh_token": "mV3x0cQ1f2...",
                "token_type": "bearer",
                "expires_in": 900,
                "user": {
                    "id": "123e4567-e89b-12d3-a456-426614174000",
                    "email": "ada@example.com",
                    "is_active": True,
                    "created_at": "2025-09-13T10:30:00Z",
                },
            }
        }
    )


class RefreshTokenRequest(BaseModel):
    """Refresh token request schema."""

    refresh_token: str = Field(min_length=1, max_length=255, description="Refresh token")

    model_config = ConfigDict(json_schema_extra={"example": {"refresh_token": "mV3x0cQ1f2..."}})


class LogoutRequest(BaseModel):
    """Logout body; the refresh token is optional."""

    refresh_token: Optional[str] = Field(default=None, max_length=255)


class EmailAvailabilityResponse(BaseModel):
    email: str
    available: bool


class SessionResponse(BaseModel):
    """An active refresh token, without its secret value."""

    id: uuid.UUID
    created_at: datetime
    expires_at: datetime
    last_used_at: Optional[datetime] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
