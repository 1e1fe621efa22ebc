from __future__ import annotations

from dataclasses import replace

import requests
from sqlalchemy import select

from app.models import EmailLog, NotificationStatus
from app.services.notification_service import TaskNotifier, build_task_created_email
from app.services.task_service import TaskService


class _Response:
    def __init__(self, status_code: int = 200) -> None:
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class _FakeHTTP:
    def __init__(self, response=None, error=None) -> None:
        self.response = response or _Response()
        self.error = error
        self.calls = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response


def _live_config(test_config):
    return replace(
        test_config,
        EMAIL_SANDBOX_MODE=False,
        RESEND_API_KEY="re_test",
        TASK_EMAIL_FROM="Pipeline <tasks@example.com>",
    )


def test_email_escapes_user_content():
    message = build_task_created_email("a@example.com", "<b>Docs</b>", client_name="O'Neil & Co", notes="line1\nline2")
    assert message.subject == "New task: <b>Docs</b>"
    assert "&lt;b&gt;Docs&lt;/b&gt;" in message.html
    assert "O&#x27;Neil &amp; Co" in message.html
    assert "line1<br>line2" in message.html


def test_untitled_subject():
    assert build_task_created_email(None, "").subject == "New task: Untitled task"


def test_posts_to_resend_when_live(db, test_config):
    http = _FakeHTTP()
    notifier = TaskNotifier(_live_config(test_config), http)

    created = TaskService(db, notifier=notifier).create_task({"title": "Call banker", "assigned_to": "Assistant"})

    assert created.notification.status is NotificationStatus.SENT
    assert len(http.calls) == 1
    call = http.calls[0]
    assert call["url"] == test_config.RESEND_API_URL
    assert call["json"]["to"] == ["assistant@example.com"]
    assert call["headers"]["Authorization"] == "Bearer re_test"


def test_delivery_failure_is_a_warning_not_an_error(db, test_config):
    http = _FakeHTTP(error=requests.ConnectionError("connection refused"))
    notifier = TaskNotifier(_live_config(test_config), http)

    created = TaskService(db, notifier=notifier).create_task({"title": "Call banker", "assigned_to": "Assistant"})

    assert created.task.id is not None
    assert created.notification.status is NotificationStatus.FAILED
    assert "connection refused" in created.warning
    log = db.scalars(select(EmailLog)).one()
    assert log.send_status == "failed"


def test_http_error_status_is_reported_as_failed(db, test_config):
    notifier = TaskNotifier(_live_config(test_config), _FakeHTTP(response=_Response(500)))
    result = TaskService(db, notifier=notifier).create_task({"title": "x", "assigned_to": "Assistant"}).notification
    assert result.status is NotificationStatus.FAILED


def test_unknown_assignee_is_skipped_without_http_call(db, test_config):
    http = _FakeHTTP()
    notifier = TaskNotifier(_live_config(test_config), http)

    result = TaskService(db, notifier=notifier).create_task({"title": "x", "assigned_to": "Nobody"}).notification

    assert result.status is NotificationStatus.SKIPPED
    assert http.calls == []


def test_missing_credentials_skip_delivery(db, test_config):
    config = replace(test_config, EMAIL_SANDBOX_MODE=False)
    http = _FakeHTTP()
    result = TaskService(db, notifier=TaskNotifier(config, http)).create_task(
        {"title": "x", "assigned_to": "Assistant"}
    ).notification
    assert result.status is NotificationStatus.SKIPPED
    assert result.warning == "E-mail delivery is not configured."
    assert http.calls == []
