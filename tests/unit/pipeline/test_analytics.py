from __future__ import annotations

from datetime import datetime, timedelta, timezone

from app.pipeline.analytics import dwell_samples, recent_history, stage_dwell_times

DAY0 = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _entry(client_id, to_stage, day, from_stage=None):
    return {
        "client_id": client_id,
        "from_stage": from_stage,
        "to_stage": to_stage,
        "changed_at": DAY0 + timedelta(days=day),
    }


def _two_client_history():
    return [
        _entry("A", "Lead", 0),
        _entry("A", "Checklist Sent", 2, "Lead"),
        _entry("A", "Docs Received", 5, "Checklist Sent"),
        _entry("B", "Lead", 0),
        _entry("B", "Checklist Sent", 1, "Lead"),
    ]


def test_lead_average_over_two_clients():
    rows = {row.stage: row for row in stage_dwell_times(_two_client_history())}
    assert rows["Lead"].samples == 2
    assert rows["Lead"].average_days == 1.5
    assert rows["Checklist Sent"].samples == 1
    assert rows["Checklist Sent"].average_days == 3.0


def test_open_final_entry_contributes_nothing():
    rows = {row.stage: row for row in stage_dwell_times(_two_client_history())}
    assert rows["Docs Received"].samples == 0
    assert rows["Docs Received"].average_days == 0.0


def test_rows_follow_catalog_order():
    rows = stage_dwell_times([])
    assert [row.stage for row in rows][:3] == ["Lead", "Checklist Sent", "Docs Received"]
    assert all(row.samples == 0 for row in rows)


def test_unsorted_input_and_legacy_labels():
    history = [
        _entry("A", "Sent to Banker", 6),
        _entry("A", "Numbers Done", 3),
    ]
    samples = dwell_samples(history)
    assert samples == {"Structuring Phase": [3.0]}


def test_recent_history_keeps_tail():
    history = list(range(10))
    assert recent_history(history, limit=3) == [7, 8, 9]
    assert recent_history(history, limit=0) == []
