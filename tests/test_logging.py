from __future__ import annotations

import json
import logging

from app.core.logging_config import JsonFormatter


def test_json_formatter_includes_extra_fields():
    record = logging.LogRecord("app.test", logging.INFO, __file__, 1, "client.stage.transitioned", (), None)
    record.event = "client.stage.transitioned"
    record.client_id = "c1"

    payload = json.loads(JsonFormatter().format(record))

    assert payload["message"] == "client.stage.transitioned"
    assert payload["event"] == "client.stage.transitioned"
    assert payload["client_id"] == "c1"
    assert payload["level"] == "INFO"
    assert "args" not in payload
