"""
dispatch.py — Per-contact delivery with error isolation and pacing.

═══════════════════════════════════════════════════════════════════════════
DISPATCH LOOP
═══════════════════════════════════════════════════════════════════════════

    for contact in contacts:            (input order, one at a time)
        ├── invalid phone?  → record failure, no provider call
        ├── sender.send()   → record provider outcome
        │     └── raised?   → record failure with the exception text
        └── pause DISPATCH_DELAY_SECONDS after a provider call,
            unless this was the last contact

Results line up 1:1 with the submitted contacts. A failure for one
contact is terminal for that contact only; the loop always visits every
contact and never raises. The pause keeps bursts under the provider's
per-second sending limits.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Iterable, List, Sequence, Tuple

from backend.app.alerts.channels.base import MessageSender
from backend.app.alerts.models import Contact, DispatchResult, DispatchSummary
from backend.app.alerts.phone import normalize_phone, validate_phone

logger = logging.getLogger(__name__)

INVALID_PHONE_ERROR = "Invalid phone number format"


class DispatchCoordinator:
    """
    Sends one message body to a list of contacts through a MessageSender.

    Parameters
    ----------
    sender : MessageSender
        Outbound messaging capability.
    delay_seconds : float
        Pause after each provider call (0 disables pacing).
    default_country_code : str
        Used when normalising bare national numbers.
    sleep : callable
        Awaitable sleep, injectable for tests.
    """

    def __init__(
        self,
        sender: MessageSender,
        *,
        delay_seconds: float = 0.5,
        default_country_code: str = "1",
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.sender = sender
        self.delay_seconds = delay_seconds
        self.default_country_code = default_country_code
        self._sleep = sleep

    async def send_one(self, contact: Contact, message: str) -> DispatchResult:
        """Deliver ``message`` to a single contact; never raises."""
        result, _ = await self._deliver(contact, message)
        return result

    async def _deliver(self, contact: Contact, message: str) -> Tuple[DispatchResult, bool]:
        """Result plus whether the provider was called."""
        if not validate_phone(contact.phone):
            logger.warning("Skipping %s (%s): invalid phone", contact.name, contact.phone)
            return DispatchResult(
                phone=contact.phone,
                name=contact.name,
                success=False,
                error=INVALID_PHONE_ERROR,
            ), False

        destination = normalize_phone(contact.phone, self.default_country_code)
        try:
            outcome = await self.sender.send(destination, message)
        except Exception as exc:
            logger.error(
                "Sender %s raised for %s: %s",
                getattr(self.sender, "provider", type(self.sender).__name__),
                destination, exc,
            )
            return DispatchResult(
                phone=contact.phone,
                name=contact.name,
                success=False,
                error=str(exc) or type(exc).__name__,
            ), True

        return DispatchResult.from_send(contact, outcome), True

    async def send_all(
        self,
        contacts: Sequence[Contact],
        message: str,
    ) -> List[DispatchResult]:
        """Deliver to every contact sequentially, preserving input order."""
        results: List[DispatchResult] = []
        last = len(contacts) - 1

        for index, contact in enumerate(contacts):
            result, provider_called = await self._deliver(contact, message)
            results.append(result)

            if provider_called and index < last and self.delay_seconds > 0:
                await self._sleep(self.delay_seconds)

        return results


def summarize(results: Iterable[DispatchResult]) -> DispatchSummary:
    """Count successful and failed deliveries."""
    successful = failed = 0
    for result in results:
        if result.success:
            successful += 1
        else:
            failed += 1
    return DispatchSummary(successful=successful, failed=failed)
