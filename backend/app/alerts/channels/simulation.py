"""
simulation.py — Log-only messaging backend for development.

Selected with MESSAGING_PROVIDER=simulation. Every send "succeeds" and
is written to the log instead of reaching a handset.
"""

from __future__ import annotations

import logging
import uuid

from backend.app.alerts.models import SendResult
from backend.app.alerts.phone import normalize_phone

logger = logging.getLogger(__name__)


class SimulatedMessageSender:
    provider = "simulation"

    def __init__(self, default_country_code: str = "1"):
        self.default_country_code = default_country_code

    async def send(self, destination: str, body: str) -> SendResult:
        to = normalize_phone(destination, self.default_country_code)
        sid = f"SM{uuid.uuid4().hex}"
        logger.info(
            "[SIMULATION] → %s: %d chars → '%s'",
            to, len(body), body[:60] + ("..." if len(body) > 60 else ""),
            extra={"sid": sid, "provider": self.provider},
        )
        return SendResult(success=True, sid=sid, status="simulated")
