"""Pydantic schemas for authentication API."""

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

_EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


def _check_password_strength(value: str) -> str:
    if len(value) < 8 or not re.search(r"\d", value) or not re.search(r"[A-Za-z]", value):
        raise ValueError("Password must be at least 8 characters long and contain numbers and letters")
    return value


class RegisterRequest(BaseModel):
    """Request for account registration."""

    username: str = Field(
        ...,
        min_length=3,
        max_length=50,
        pattern=r"^[a-zA-Z][a-zA-Z0-9_]*$",
        description="Username (3-50 chars, alphanumeric and underscore, must start with letter)",
    )
    email: str = Field(..., max_length=254, pattern=_EMAIL_PATTERN)
    nickname: str | None = Field(None, max_length=50)
    password: str = Field(..., max_length=128)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return _check_password_strength(v)


class LoginRequest(BaseModel):
    """Request for login."""

    email: str = Field(..., min_length=1, max_length=254)
    password: str = Field(..., min_length=1)


class RefreshRequest(BaseModel):
    """Request for token refresh."""

    refresh_token: str = Field(..., min_length=1)


class ChangePasswordRequest(BaseModel):
    """Request for password change.

    Confirmation mismatch and reuse of the current password are checked by
    the service (400), not here (422).
    """

    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., max_length=128)
    confirm_password: str = Field(..., min_length=1)

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, v: str) -> str:
        return _check_password_strength(v)


class TokenResponse(BaseModel):
    """Response with access and refresh tokens."""

    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int = Field(description="Access token expiry in seconds")


class MessageResponse(BaseModel):
    """Generic message response."""

    message: str


class UserResponse(BaseModel):
    """Response with user information."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    email: str
    nickname: str | None
    is_active: bool
    created_at: datetime
