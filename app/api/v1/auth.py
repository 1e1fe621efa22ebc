"""Auth endpoints for API v1."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Header
from sqlalchemy.orm import Session

from app.auth.jwt import TokenPair
from app.core.config import Config
from app.core.dependencies import extract_bearer_token, get_db_session, get_settings
from app.core.exceptions import AuthenticationError
from app.schemas.auth import (
    LoginRequest,
    PasswordResetConfirm,
    PasswordResetRequest,
    PasswordResetRequested,
    RefreshRequest,
    SessionResponse,
    TokenResponse,
)
from app.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


def _token_response(tokens: TokenPair) -> TokenResponse:
    return TokenResponse(
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        token_type=tokens.token_type,
    )


@router.post("/login", response_model=TokenResponse)
def login(
    payload: LoginRequest,
    db: Session = Depends(get_db_session),
    settings: Config = Depends(get_settings),
) -> TokenResponse:
    return _token_response(AuthService(db, settings).sign_in(payload.email, payload.password))


@router.post("/refresh", response_model=TokenResponse)
def refresh(
    payload: RefreshRequest,
    db: Session = Depends(get_db_session),
    settings: Config = Depends(get_settings),
) -> TokenResponse:
    return _token_response(AuthService(db, settings).refresh(payload.refresh_token))


@router.get("/session", response_model=SessionResponse)
def session(
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
    settings: Config = Depends(get_settings),
) -> SessionResponse:
    actor = AuthService(db, settings).get_session(extract_bearer_token(authorization))
    if actor is None:
        raise AuthenticationError("Session is missing or expired.")
    return SessionResponse(
        user_id=actor.user_id,
        role=actor.role.value,
        email=actor.email,
        full_name=actor.full_name,
    )


@router.post("/logout")
def logout(
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
    settings: Config = Depends(get_settings),
) -> dict:
    AuthService(db, settings).sign_out(extract_bearer_token(authorization))
    return {"status": "ok"}


@router.post("/password-reset", response_model=PasswordResetRequested)
def request_password_reset(
    payload: PasswordResetRequest,
    db: Session = Depends(get_db_session),
    settings: Config = Depends(get_settings),
) -> PasswordResetRequested:
    token = AuthService(db, settings).request_password_reset(payload.email)
    return PasswordResetRequested(reset_token=token)


@router.post("/password-reset/confirm")
def confirm_password_reset(
    payload: PasswordResetConfirm,
    db: Session = Depends(get_db_session),
    settings: Config = Depends(get_settings),
) -> dict:
    AuthService(db, settings).confirm_password_reset(payload.reset_token, payload.new_password)
    return {"status": "ok"}
