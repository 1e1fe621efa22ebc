"""Sign-in, session lookup and password reset against local profiles."""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.auth.actor import Actor, from_claims, resolve_role
from app.auth.jwt import (
    TOKEN_USE_ACCESS,
    TOKEN_USE_REFRESH,
    TOKEN_USE_RESET,
    TokenPair,
    create_reset_token,
    create_token_pair,
    decode_jwt,
    password_fingerprint,
)
from app.core.config import Config, get_config
from app.core.exceptions import AuthenticationError, UpstreamUnavailableError, ValidationError
from app.core.security import hash_password, verify_password
from app.models import Profile
from app.services.base_service import BaseService

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


class AuthService(BaseService):
    def __init__(self, db: Session, config: Config | None = None) -> None:
        super().__init__(db)
        self.config = config or get_config()

    def _profile_by_email(self, email: str) -> Profile | None:
        stmt = select(Profile).where(func.lower(Profile.email) == email.strip().lower())
        try:
            return self.db.scalars(stmt).first()
        except SQLAlchemyError as exc:
            raise UpstreamUnavailableError("Could not reach the profile store.") from exc

    def _profile_by_id(self, profile_id: str) -> Profile | None:
        try:
            return self.db.get(Profile, profile_id)
        except SQLAlchemyError as exc:
            raise UpstreamUnavailableError("Could not reach the profile store.") from exc

    def _issue_tokens(self, profile: Profile) -> TokenPair:
        return create_token_pair(
            user_id=profile.id,
            role=resolve_role(profile.role).value,
            secret=self.config.JWT_SECRET,
            email=profile.email,
            name=profile.full_name,
            access_ttl_minutes=self.config.JWT_ACCESS_TTL_MINUTES,
            refresh_ttl_days=self.config.JWT_REFRESH_TTL_DAYS,
        )

    def create_profile(self, email: str, password: str, full_name: str | None = None, role: str = "assistant") -> Profile:
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
        if self._profile_by_email(email) is not None:
            raise ValidationError(f"A profile already exists for {email}.")
        profile = Profile(
            email=email.strip().lower(),
            full_name=full_name,
            role=role,
            hashed_password=hash_password(password, pepper=self.config.PASSWORD_PEPPER),
        )
        self.db.add(profile)
        self.commit()
        return profile

    def sign_in(self, email: str, password: str) -> TokenPair:
        profile = self._profile_by_email(email or "")
        if (
            profile is None
            or not profile.is_active
            or not verify_password(password or "", profile.hashed_password, pepper=self.config.PASSWORD_PEPPER)
        ):
            logger.info("auth.sign_in.rejected", extra={"event": "auth.sign_in.rejected"})
            raise AuthenticationError("Invalid credentials.")
        logger.info("auth.sign_in.accepted", extra={"event": "auth.sign_in.accepted", "user_id": profile.id})
        return self._issue_tokens(profile)

    def refresh(self, refresh_token: str) -> TokenPair:
        claims = decode_jwt(refresh_token, secret=self.config.JWT_SECRET, expected_use=TOKEN_USE_REFRESH)
        profile = self._profile_by_id(str(claims.get("sub")))
        if profile is None or not profile.is_active:
            raise AuthenticationError("Profile is no longer active.")
        return self._issue_tokens(profile)

    def get_session(self, access_token: str | None) -> Actor | None:
        """Actor for a valid access token, or None when there is no usable session."""
        if not access_token:
            return None
        try:
            claims = decode_jwt(access_token, secret=self.config.JWT_SECRET, expected_use=TOKEN_USE_ACCESS)
            return from_claims(claims)
        except AuthenticationError:
            return None

    def sign_out(self, access_token: str | None) -> None:
        """Tokens are stateless; the caller discards them."""
        actor = self.get_session(access_token)
        logger.info(
            "auth.sign_out",
            extra={"event": "auth.sign_out", "user_id": actor.user_id if actor else None},
        )

    def request_password_reset(self, email: str) -> str | None:
        """Reset token for delivery to the profile owner; None for unknown e-mails."""
        profile = self._profile_by_email(email or "")
        if profile is None or not profile.is_active:
            logger.info("auth.password_reset.unknown_email", extra={"event": "auth.password_reset.unknown_email"})
            return None
        return create_reset_token(
            user_id=profile.id,
            password_fingerprint=password_fingerprint(profile.hashed_password),
            secret=self.config.JWT_SECRET,
            ttl_minutes=self.config.PASSWORD_RESET_TTL_MINUTES,
        )

    def confirm_password_reset(self, reset_token: str, new_password: str) -> None:
        if len(new_password or "") < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
        claims = decode_jwt(reset_token, secret=self.config.JWT_SECRET, expected_use=TOKEN_USE_RESET)
        profile = self._profile_by_id(str(claims.get("sub")))
        if profile is None or claims.get("pwf") != password_fingerprint(profile.hashed_password):
            raise AuthenticationError("Reset link is invalid or has already been used.")
        profile.hashed_password = hash_password(new_password, pepper=self.config.PASSWORD_PEPPER)
        self.commit()
        logger.info("auth.password_reset.completed", extra={"event": "auth.password_reset.completed", "user_id": profile.id})
