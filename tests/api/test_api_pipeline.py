from __future__ import annotations

from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient

from app.api.v1._authz import map_domain_error
from app.core.exceptions import ConflictError, UpstreamUnavailableError
from app.database.db import session_scope
from app.main import create_app
from app.services.auth_service import AuthService
from app.services.history_service import HistoryService
from app.services.notification_service import TaskNotifier

ADMIN = ("admin@example.com", "admin-password")
ASSISTANT = ("assistant@example.com", "assistant-password")


@pytest.fixture
def api(session_factory, test_config, change_feed):
    with session_scope(session_factory) as db:
        auth = AuthService(db, test_config)
        auth.create_profile(*ADMIN, full_name="Admin", role="admin")
        auth.create_profile(*ASSISTANT, full_name="Assistant")
    app = create_app(
        config=test_config,
        session_factory=session_factory,
        change_feed=change_feed,
        notifier=TaskNotifier(test_config),
    )
    return TestClient(app)


def _headers(api, credentials):
    email, password = credentials
    response = api.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def admin_headers(api):
    return _headers(api, ADMIN)


@pytest.fixture
def assistant_headers(api):
    return _headers(api, ASSISTANT)


def _create_client(api, headers, **fields):
    payload = {"name": "Casey Morgan", **fields}
    response = api.post("/api/v1/clients", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def test_health_is_public(api):
    response = api.get("/api/v1/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_protected_routes_require_bearer_token(api):
    response = api.get("/api/v1/clients")
    assert response.status_code == 401
    assert response.json()["error_code"] == "unauthenticated"

    response = api.get("/api/v1/clients", headers={"Authorization": "Bearer nope"})
    assert response.status_code == 401


def test_login_rejects_bad_password(api):
    response = api.post("/api/v1/auth/login", json={"email": ADMIN[0], "password": "wrong"})
    assert response.status_code == 401


def test_session_refresh_and_logout(api):
    login = api.post("/api/v1/auth/login", json={"email": ASSISTANT[0], "password": ASSISTANT[1]}).json()
    headers = {"Authorization": f"Bearer {login['access_token']}"}

    session = api.get("/api/v1/auth/session", headers=headers)
    assert session.status_code == 200
    assert session.json()["role"] == "assistant"

    refreshed = api.post("/api/v1/auth/refresh", json={"refresh_token": login["refresh_token"]})
    assert refreshed.status_code == 200
    assert api.post("/api/v1/auth/logout", headers=headers).json() == {"status": "ok"}


def test_password_reset_flow(api):
    requested = api.post("/api/v1/auth/password-reset", json={"email": ASSISTANT[0]})
    token = requested.json()["reset_token"]
    assert token

    confirmed = api.post(
        "/api/v1/auth/password-reset/confirm",
        json={"reset_token": token, "new_password": "a brand new password"},
    )
    assert confirmed.status_code == 200
    assert api.post(
        "/api/v1/auth/login", json={"email": ASSISTANT[0], "password": "a brand new password"}
    ).status_code == 200


def test_client_lifecycle_and_stage_badge(api, assistant_headers):
    created = _create_client(api, assistant_headers, stage="Docs Received", email="casey@example.com")
    assert created["stage"] == "Docs Received"
    assert created["stage_age"]["days"] == 0
    assert created["stage_age"]["tier"] == "neutral"

    fetched = api.get(f"/api/v1/clients/{created['id']}", headers=assistant_headers)
    assert fetched.json()["email"] == "casey@example.com"

    patched = api.patch(
        f"/api/v1/clients/{created['id']}", json={"bank": "Harbour Bank"}, headers=assistant_headers
    )
    assert patched.json()["bank"] == "Harbour Bank"

    stage_edit = api.patch(
        f"/api/v1/clients/{created['id']}", json={"stage": "Completed"}, headers=assistant_headers
    )
    assert stage_edit.status_code == 422

    listed = api.get("/api/v1/clients", headers=assistant_headers).json()
    assert [item["id"] for item in listed] == [created["id"]]


def test_invalid_client_payload_is_422(api, assistant_headers):
    response = api.post("/api/v1/clients", json={"name": "   "}, headers=assistant_headers)
    assert response.status_code == 422
    assert response.json()["error_code"] == "validation_error"


def test_stage_transition_rules_over_http(api, assistant_headers, admin_headers):
    client = _create_client(api, assistant_headers, stage="Structuring Phase")
    url = f"/api/v1/clients/{client['id']}/stage"

    blocked = api.post(url, json={"stage": "Ready to Send to Banker"}, headers=assistant_headers)
    assert blocked.status_code == 403
    assert blocked.json()["error_code"] == "forbidden"

    allowed = api.post(url, json={"stage": "Ready to Send to Banker"}, headers=admin_headers)
    assert allowed.status_code == 200
    assert allowed.json()["changed"] is True
    assert allowed.json()["from_stage"] == "Structuring Phase"

    noop = api.post(url, json={"stage": "Ready to Send to Banker"}, headers=admin_headers)
    assert noop.json()["changed"] is False

    unknown = api.post(url, json={"stage": "Underwriting"}, headers=admin_headers)
    assert unknown.status_code == 422

    missing = api.post("/api/v1/clients/missing/stage", json={"stage": "Lead"}, headers=admin_headers)
    assert missing.status_code == 404

    history = api.get(f"/api/v1/clients/{client['id']}/history", headers=assistant_headers).json()
    assert [(item["from_stage"], item["to_stage"]) for item in history] == [
        (None, "Structuring Phase"),
        ("Structuring Phase", "Ready to Send to Banker"),
    ]


def test_archive_and_admin_delete(api, assistant_headers, admin_headers):
    client = _create_client(api, assistant_headers)

    archived = api.post(f"/api/v1/clients/{client['id']}/archive", headers=assistant_headers)
    assert archived.json()["is_archived"] is True
    assert api.get("/api/v1/clients", headers=assistant_headers).json() == []
    assert len(api.get("/api/v1/clients?archived=true", headers=assistant_headers).json()) == 1

    restored = api.post(f"/api/v1/clients/{client['id']}/unarchive", headers=assistant_headers)
    assert restored.json()["is_archived"] is False

    assert api.delete(f"/api/v1/clients/{client['id']}", headers=assistant_headers).status_code == 403
    assert api.delete(f"/api/v1/clients/{client['id']}", headers=admin_headers).status_code == 204
    assert api.get(f"/api/v1/clients/{client['id']}", headers=admin_headers).status_code == 404


def test_csv_import(api, assistant_headers):
    csv_body = "Client Name,Email,Stage\nRiley Park,riley@example.com,Checklist Sent\nSam Ode,,\n"
    response = api.post(
        "/api/v1/clients/import",
        files={"file": ("clients.csv", csv_body, "text/csv")},
        headers=assistant_headers,
    )
    assert response.status_code == 201, response.text
    assert response.json()["imported"] == 2

    bad = api.post(
        "/api/v1/clients/import",
        files={"file": ("clients.csv", "Email\nx@example.com\n", "text/csv")},
        headers=assistant_headers,
    )
    assert bad.status_code == 422


def test_task_endpoints(api, assistant_headers):
    client = _create_client(api, assistant_headers)
    due = (date.today() - timedelta(days=1)).isoformat()

    created = api.post(
        "/api/v1/tasks",
        json={"title": "Chase paystubs", "assigned_to": "Assistant", "due_date": due, "client_id": client["id"]},
        headers=assistant_headers,
    )
    assert created.status_code == 201, created.text
    body = created.json()
    assert body["notification_status"] == "sandbox_sent"
    task_id = body["task"]["id"]

    empty = api.post("/api/v1/tasks", json={"title": " "}, headers=assistant_headers)
    assert empty.status_code == 422

    overdue = api.get("/api/v1/tasks?filter=Overdue", headers=assistant_headers).json()
    assert [item["id"] for item in overdue] == [task_id]

    completed = api.post(f"/api/v1/tasks/{task_id}/complete", headers=assistant_headers)
    assert completed.json()["status"] == "completed"
    assert api.get("/api/v1/tasks?filter=Open", headers=assistant_headers).json() == []
    assert api.post(f"/api/v1/tasks/{task_id}/reopen", headers=assistant_headers).json()["status"] == "open"

    note = api.post(f"/api/v1/tasks/{task_id}/notes", json={"body": "Left voicemail"}, headers=assistant_headers)
    assert note.status_code == 201
    notes = api.get(f"/api/v1/tasks/{task_id}/notes", headers=assistant_headers).json()
    assert [item["body"] for item in notes] == ["Left voicemail"]

    patched = api.patch(f"/api/v1/tasks/{task_id}", json={"title": "Chase T4s"}, headers=assistant_headers)
    assert patched.json()["title"] == "Chase T4s"
    assert api.get("/api/v1/tasks/missing", headers=assistant_headers).status_code == 404


def test_reports(api, assistant_headers, admin_headers):
    client = _create_client(api, assistant_headers)
    api.post(f"/api/v1/clients/{client['id']}/stage", json={"stage": "Sent to Banker"}, headers=admin_headers)
    api.post(
        "/api/v1/tasks",
        json={"title": "Follow up", "due_date": date.today().isoformat(), "client_id": client["id"]},
        headers=assistant_headers,
    )

    timing = api.get("/api/v1/analytics/stage-timing", headers=assistant_headers).json()
    assert timing["stages"][0]["stage"] == "Lead"
    assert timing["stages"][0]["samples"] == 1
    assert len(timing["recent_history"]) == 2

    summary = api.get("/api/v1/dashboard/summary", headers=assistant_headers).json()
    assert summary["sent_to_banker"] == 1
    assert summary["stage_counts"]["Sent to Banker"] == 1
    assert summary["tasks_by_client"][client["id"]] == {"open": 1, "total": 1}

    calendar = api.get("/api/v1/calendar/tasks.ics", headers=assistant_headers)
    assert calendar.status_code == 200
    assert calendar.headers["content-type"].startswith("text/calendar")
    assert "tasks.ics" in calendar.headers["content-disposition"]
    assert calendar.headers["cache-control"] == "no-store"
    assert "SUMMARY:Follow up — Casey Morgan" in calendar.text

    changes = api.get("/api/v1/changes", headers=assistant_headers).json()
    actions = [(item["entity_type"], item["action"]) for item in changes["items"]]
    assert ("clients", "stage_changed") in actions
    later = api.get(
        f"/api/v1/changes?after={changes['last_sequence']}&entity_type=clients", headers=assistant_headers
    ).json()
    assert later["items"] == []


def test_domain_error_mapping():
    assert map_domain_error(ConflictError("stale"))[0] == 409
    assert map_domain_error(UpstreamUnavailableError("down"))[0] == 503


def test_stage_timing_reads_history_once(api, admin_headers, monkeypatch):
    client = _create_client(api, admin_headers)
    api.post(f"/api/v1/clients/{client['id']}/stage", json={"stage": "Checklist Sent"}, headers=admin_headers)
    calls = []
    original = HistoryService.list_history

    def counting_list_history(self, client_id=None):
        calls.append(client_id)
        return original(self, client_id)

    monkeypatch.setattr(HistoryService, "list_history", counting_list_history)

    timing = api.get("/api/v1/analytics/stage-timing", headers=admin_headers).json()

    assert calls == [None]
    assert sum(item["samples"] for item in timing["stages"]) == 1
    assert len(timing["recent_history"]) == 2
