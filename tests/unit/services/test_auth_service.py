from __future__ import annotations

import pytest

from app.core.exceptions import AuthenticationError, ValidationError
from app.models.enums import UserRole
from app.services.auth_service import AuthService


@pytest.fixture
def auth(db, test_config):
    service = AuthService(db, test_config)
    service.create_profile("Owner@Example.com", "correct horse", full_name="Owner", role="admin")
    service.create_profile("helper@example.com", "battery staple", role="Processor")
    return service


def test_sign_in_and_session(auth):
    tokens = auth.sign_in("owner@example.com", "correct horse")
    actor = auth.get_session(tokens.access_token)
    assert actor.role is UserRole.ADMIN
    assert actor.email == "owner@example.com"
    assert actor.full_name == "Owner"


def test_any_non_admin_role_resolves_to_assistant(auth):
    tokens = auth.sign_in("helper@example.com", "battery staple")
    assert auth.get_session(tokens.access_token).role is UserRole.ASSISTANT


def test_wrong_password_and_unknown_email(auth):
    with pytest.raises(AuthenticationError):
        auth.sign_in("owner@example.com", "nope")
    with pytest.raises(AuthenticationError):
        auth.sign_in("ghost@example.com", "correct horse")


def test_refresh_token_is_not_an_access_token(auth):
    tokens = auth.sign_in("owner@example.com", "correct horse")
    assert auth.get_session(tokens.refresh_token) is None
    assert auth.get_session(None) is None
    refreshed = auth.refresh(tokens.refresh_token)
    assert auth.get_session(refreshed.access_token).user_id == auth.get_session(tokens.access_token).user_id
    with pytest.raises(AuthenticationError):
        auth.refresh(tokens.access_token)


def test_profile_validation(auth):
    with pytest.raises(ValidationError):
        auth.create_profile("short@example.com", "1234")
    with pytest.raises(ValidationError):
        auth.create_profile("OWNER@example.com", "long enough pw")


def test_password_reset_is_single_use(auth):
    token = auth.request_password_reset("helper@example.com")
    assert token is not None
    assert auth.request_password_reset("ghost@example.com") is None

    auth.confirm_password_reset(token, "new secret value")
    auth.sign_in("helper@example.com", "new secret value")
    with pytest.raises(AuthenticationError):
        auth.sign_in("helper@example.com", "battery staple")
    with pytest.raises(AuthenticationError):
        auth.confirm_password_reset(token, "another secret")


def test_password_reset_rejects_short_password(auth):
    token = auth.request_password_reset("helper@example.com")
    with pytest.raises(ValidationError):
        auth.confirm_password_reset(token, "short")
