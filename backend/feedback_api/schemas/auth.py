"""Pydantic v2 schemas for principal registration and sign-in."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import EmailStr, Field

from feedback_api.schemas.common import ApiModel


class RegisterRequest(ApiModel):
    email: EmailStr
    password: str = Field(..., max_length=128)
    name: str | None = Field(default=None, max_length=255)


class LoginRequest(ApiModel):
    email: EmailStr
    password: str


class TokenResponse(ApiModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Lifetime in seconds.")


class PrincipalResponse(ApiModel):
    id: uuid.UUID
    email: str
    name: str | None
    created_at: datetime
