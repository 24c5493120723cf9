from __future__ import annotations

import json
import logging

from app.logger import JsonFormatter, setup_logging


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        "app.services.quota", logging.WARNING, __file__, 1,
        "Usage limit reached on %s (%d/%d)", ("email", 10, 10), None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_fields():
    line = JsonFormatter().format(_record())
    data = json.loads(line)
    assert data["level"] == "warning"
    assert data["logger"] == "app.services.quota"
    assert data["message"] == "Usage limit reached on email (10/10)"
    assert "data" not in data
    assert "exc" not in data


def test_json_formatter_extra_data():
    line = JsonFormatter().format(
        _record(extra_data={"limit_type": "email", "current": 10})
    )
    assert json.loads(line)["data"] == {"limit_type": "email", "current": 10}


def test_json_formatter_keeps_unicode():
    record = _record()
    record.msg, record.args = "Solicitud recibida: diseño", ()
    assert "Solicitud recibida: diseño" in JsonFormatter().format(record)


def test_setup_logging_level_names(monkeypatch):
    calls: list[dict] = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kw: calls.append(kw))
    monkeypatch.setattr(logging.getLogger("httpx"), "level", logging.NOTSET)

    setup_logging("debug")
    setup_logging("not-a-level")

    assert [c["level"] for c in calls] == [logging.DEBUG, logging.INFO]
    assert isinstance(calls[0]["handlers"][0].formatter, JsonFormatter)
    assert logging.getLogger("httpx").level == logging.WARNING
