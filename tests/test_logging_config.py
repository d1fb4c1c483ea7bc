"""
test_logging_config.py — Request-scoped log context and formatters.

Run with:
    pytest tests/test_logging_config.py -v
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import List

import pytest

from backend.app.core.logging_config import (
    JSONFormatter,
    PrettyFormatter,
    bind_request_context,
    get_request_context,
    set_request_context,
)

FINGERPRINT = "1700000000000-37.422--122.084"


def _record(msg: str = "Dispatching alert", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        "backend.app.alerts.alert_service", logging.INFO, __file__, 1, msg, None, None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class _FormattingHandler(logging.Handler):
    """Formats at emit time, while the emitting context is still active."""

    def __init__(self):
        super().__init__(logging.DEBUG)
        self.setFormatter(JSONFormatter())
        self.lines: List[str] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.lines.append(self.format(record))


@pytest.fixture(autouse=True)
def _clean_context():
    set_request_context()
    yield
    set_request_context()


class TestRequestContext:

    def test_bind_keeps_middleware_keys(self):
        set_request_context(request_id="abc123", endpoint="/api/send-alert")
        bind_request_context(fingerprint=FINGERPRINT)
        assert get_request_context() == {
            "request_id": "abc123",
            "endpoint": "/api/send-alert",
            "fingerprint": FINGERPRINT,
        }

    def test_set_replaces_bound_keys(self):
        bind_request_context(fingerprint=FINGERPRINT)
        set_request_context(request_id="next")
        assert "fingerprint" not in get_request_context()


class TestFormatters:

    def test_json_carries_context_and_extras(self):
        set_request_context(request_id="abc123")
        bind_request_context(fingerprint=FINGERPRINT)

        entry = json.loads(JSONFormatter().format(_record(contact_count=3)))

        assert entry["context"]["fingerprint"] == FINGERPRINT
        assert entry["context"]["request_id"] == "abc123"
        assert entry["contact_count"] == 3
        assert entry["service"] == "Accident Alert Relay"

    def test_json_without_context(self):
        entry = json.loads(JSONFormatter().format(_record()))
        assert "context" not in entry

    def test_pretty_tags_request_and_alert(self):
        set_request_context(request_id="3f9a1c2e55aa")
        bind_request_context(fingerprint=FINGERPRINT)

        line = PrettyFormatter().format(_record())

        assert f"[3f9a1c2e alert={FINGERPRINT}]" in line
        assert line.endswith("backend.app.alerts.alert_service: Dispatching alert")


class TestAlertServiceBinding:

    def test_service_logs_carry_fingerprint(self, alert_service):
        logger = logging.getLogger("backend.app.alerts.alert_service")
        handler = _FormattingHandler()
        previous_level = logger.level
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
        try:
            asyncio.run(alert_service.send_alert({
                "contacts": ["4155551234"],
                "location": {"lat": 37.422, "lng": -122.084},
                "timestamp": 1700000000000,
            }))
        finally:
            logger.removeHandler(handler)
            logger.setLevel(previous_level)

        entries = [json.loads(line) for line in handler.lines]
        assert entries
        assert all(e["context"]["fingerprint"] == FINGERPRINT for e in entries)
