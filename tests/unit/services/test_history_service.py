from __future__ import annotations

from datetime import timedelta

from app.models.enums import StageAgeTier
from app.services.client_service import ClientService
from app.services.history_service import HistoryService
from app.services.transition_service import TransitionService


def test_history_and_stage_durations(db, clock, admin):
    clients = ClientService(db, clock=clock)
    moved = clients.create_client({"name": "Moved"})
    idle = clients.create_client({"name": "Idle"})
    clock.advance(days=2)
    TransitionService(db, clock=clock).transition(moved.id, "Checklist Sent", admin)
    clock.advance(days=3)

    service = HistoryService(db)
    history = service.list_history(moved.id)
    assert [(entry.from_stage, entry.to_stage) for entry in history] == [(None, "Lead"), ("Lead", "Checklist Sent")]

    durations = service.stage_durations([moved, idle], now=clock.now)
    assert durations[moved.id].days == 3
    assert durations[moved.id].tier is StageAgeTier.WARNING
    assert durations[idle.id].days == 5
    assert durations[idle.id].stage == "Lead"


def test_stage_timing_uses_catalog_order(db, clock, admin):
    client = ClientService(db, clock=clock).create_client({"name": "Timed"})
    clock.advance(days=4)
    TransitionService(db, clock=clock).transition(client.id, "Docs Received", admin)

    rows = {row.stage: row for row in HistoryService(db).stage_timing()}
    assert rows["Lead"].samples == 1
    assert rows["Lead"].average_days == 4.0
    assert rows["Docs Received"].samples == 0


def test_current_stage_entries_empty_input(db):
    assert HistoryService(db).current_stage_entries([]) == {}


def test_current_stage_entries_picks_latest(db, clock, admin):
    client = ClientService(db, clock=clock).create_client({"name": "Latest"})
    first = clock.now
    clock.advance(hours=30)
    TransitionService(db, clock=clock).transition(client.id, "Checklist Sent", admin)

    entered = HistoryService(db).current_stage_entries([client.id])[client.id]
    assert entered.replace(tzinfo=None) == (first + timedelta(hours=30)).replace(tzinfo=None)
