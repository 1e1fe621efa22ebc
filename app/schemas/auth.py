"""Auth schema module."""

from __future__ import annotations

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    email: str = Field(min_length=3, max_length=320)
    password: str = Field(min_length=1, max_length=256)


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class RefreshRequest(BaseModel):
    refresh_token: str


class SessionResponse(BaseModel):
    user_id: str
    role: str
    email: str | None = None
    full_name: str | None = None


class PasswordResetRequest(BaseModel):
    email: str = Field(min_length=3, max_length=320)


class PasswordResetRequested(BaseModel):
    status: str = "ok"
    reset_token: str | None = None


class PasswordResetConfirm(BaseModel):
    reset_token: str
    new_password: str = Field(max_length=256)
