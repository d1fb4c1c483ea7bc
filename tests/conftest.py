"""
Shared fixtures: fake messaging backends, a controllable clock, and an
application wired to them (no real provider calls, no pacing sleeps).
"""

from __future__ import annotations

from typing import List, Tuple

import pytest
from fastapi.testclient import TestClient

from backend.app.alerts.alert_service import AlertService
from backend.app.alerts.dedup import AlertDeduplicator
from backend.app.alerts.dispatch import DispatchCoordinator
from backend.app.alerts.models import SendResult
from backend.app.core.config import Settings
from backend.app.main import create_app


class RecordingSender:
    """Records every call; fails or raises for configured destinations."""

    provider = "fake"

    def __init__(self, fail: Tuple[str, ...] = (), explode: Tuple[str, ...] = ()):
        self.calls: List[Tuple[str, str]] = []
        self.fail = set(fail)
        self.explode = set(explode)

    async def send(self, destination: str, body: str) -> SendResult:
        self.calls.append((destination, body))
        if destination in self.explode:
            raise RuntimeError("provider connection reset")
        if destination in self.fail:
            return SendResult.failure("Twilio could not find a Channel with the specified From address")
        return SendResult(success=True, sid=f"SM{len(self.calls):04d}", status="queued")


class FakeClock:
    """Epoch-millisecond clock that only moves when told to."""

    def __init__(self, start: float = 1_700_000_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, *, minutes: float = 0, seconds: float = 0) -> None:
        self.now += (minutes * 60 + seconds) * 1000


@pytest.fixture
def sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def deduplicator(clock: FakeClock) -> AlertDeduplicator:
    return AlertDeduplicator(clock=clock)


@pytest.fixture
def alert_service(sender: RecordingSender, deduplicator: AlertDeduplicator) -> AlertService:
    dispatcher = DispatchCoordinator(sender, delay_seconds=0)
    return AlertService(deduplicator, dispatcher)


@pytest.fixture
def app_settings() -> Settings:
    return Settings(
        RATE_LIMIT_ENABLED=False,
        DISPATCH_DELAY_SECONDS=0,
        MESSAGING_PROVIDER="simulation",
        TWILIO_ACCOUNT_SID=None,
        TWILIO_AUTH_TOKEN=None,
    )


@pytest.fixture
def client(app_settings: Settings, alert_service: AlertService):
    app = create_app(app_settings, alert_service=alert_service)
    with TestClient(app) as test_client:
        yield test_client

