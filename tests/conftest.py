from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from app.auth.actor import Actor
from app.core.config import get_config
from app.database.db import build_engine, build_session_factory, create_schema
from app.events.change_feed import ChangeFeed
from app.models.enums import UserRole


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def test_config():
    return replace(
        get_config(),
        DATABASE_URL="sqlite://",
        JWT_SECRET="test-secret",
        EMAIL_SANDBOX_MODE=True,
        RESEND_API_KEY=None,
        TASK_EMAIL_FROM=None,
        ASSIGNEE_EMAILS={"Assistant": "assistant@example.com"},
    )


@pytest.fixture
def session_factory():
    engine = build_engine("sqlite://")
    create_schema(engine)
    yield build_session_factory(engine)
    engine.dispose()


@pytest.fixture
def file_session_factory(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'pipeline_test.db'}")
    create_schema(engine)
    yield build_session_factory(engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def change_feed():
    return ChangeFeed(buffer_size=50)


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def admin():
    return Actor(user_id="admin-1", role=UserRole.ADMIN, email="admin@example.com")


@pytest.fixture
def assistant():
    return Actor(user_id="assistant-1", role=UserRole.ASSISTANT, email="assistant@example.com")
