"""
base.py — The outbound messaging contract.

Anything with an async ``send(destination, body) -> SendResult`` can be
plugged into the dispatcher: the Twilio gateway, the simulation backend,
or a fake in tests.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from backend.app.alerts.models import SendResult


@runtime_checkable
class MessageSender(Protocol):
    """Delivers one message body to one E.164 destination."""

    provider: str

    async def send(self, destination: str, body: str) -> SendResult:
        ...
