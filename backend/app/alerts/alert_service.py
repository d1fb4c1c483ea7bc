"""
alert_service.py — Request-level orchestration for the alert relay.

═══════════════════════════════════════════════════════════════════════════
ORCHESTRATION FLOW
═══════════════════════════════════════════════════════════════════════════

    ┌─────────────────────┐
    │  1. Validate        │  contacts: non-empty list   → else 400
    │     request shape   │  location.lat/lng: numbers  → else 400
    └─────────┬───────────┘
              ▼
    ┌─────────────────────┐
    │  2. Deduplicate     │  fingerprint seen in window → 429
    └─────────┬───────────┘
              ▼
    ┌─────────────────────┐
    │  3. Compose         │  alert template + maps link + local time
    └─────────┬───────────┘
              ▼
    ┌─────────────────────┐
    │  4. Dispatch        │  sequential per-contact sends, paced,
    │                     │  failures isolated per contact
    └─────────┬───────────┘
              ▼
    ┌─────────────────────┐
    │  5. Aggregate       │  "Alerts sent: N successful, M failed"
    └─────────────────────┘

Steps 1–2 short-circuit before any provider call. Once dispatch starts
the request always completes with a per-contact breakdown, even if every
contact failed.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from backend.app.alerts.channels.base import MessageSender
from backend.app.alerts.channels.simulation import SimulatedMessageSender
from backend.app.alerts.channels.whatsapp_gateway import TwilioMessageSender
from backend.app.alerts.composer import compose_alert, compose_test
from backend.app.alerts.dedup import AlertDeduplicator, fingerprint
from backend.app.alerts.dispatch import DispatchCoordinator, summarize
from backend.app.alerts.models import AlertOutcome, AlertRequest, Contact, Location
from backend.app.alerts.phone import normalize_phone
from backend.app.core.config import Settings
from backend.app.core.errors import DuplicateAlertError, RequestValidationFailed
from backend.app.core.health import utc_timestamp
from backend.app.core.logging_config import bind_request_context

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# Request Parsing
# ═══════════════════════════════════════════════════════════════════════════

def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_alert_request(payload: Any) -> AlertRequest:
    """
    Validate a raw JSON body and convert it into an AlertRequest.

    Raises
    ------
    RequestValidationFailed
        "No contacts provided" or "Invalid location data".
    """
    body: Mapping[str, Any] = payload if isinstance(payload, Mapping) else {}

    contacts = body.get("contacts")
    if not isinstance(contacts, list) or not contacts:
        raise RequestValidationFailed("No contacts provided", field="contacts")

    location = body.get("location")
    if (
        not isinstance(location, Mapping)
        or not _is_number(location.get("lat"))
        or not _is_number(location.get("lng"))
    ):
        raise RequestValidationFailed("Invalid location data", field="location")

    user_name = body.get("userName")
    return AlertRequest(
        contacts=[Contact.from_raw(raw) for raw in contacts],
        location=Location(lat=location["lat"], lng=location["lng"]),
        timestamp=body.get("timestamp"),
        user_name=str(user_name) if user_name else None,
    )


# ═══════════════════════════════════════════════════════════════════════════
# Service
# ═══════════════════════════════════════════════════════════════════════════

class AlertService:
    """
    Ties together deduplication, message composition and dispatch.

    Built once per process (see build_alert_service) and shared by all
    requests, so the deduplicator sees every submission.
    """

    def __init__(
        self,
        deduplicator: AlertDeduplicator,
        dispatcher: DispatchCoordinator,
        *,
        tz_name: str = "UTC",
    ):
        self.deduplicator = deduplicator
        self.dispatcher = dispatcher
        self.tz_name = tz_name

    @property
    def sender(self) -> MessageSender:
        return self.dispatcher.sender

    async def send_alert(self, payload: Any) -> AlertOutcome:
        """Run one alert request from validation through aggregation."""
        request = parse_alert_request(payload)

        key = fingerprint(request.timestamp, request.location)
        bind_request_context(fingerprint=key)
        if self.deduplicator.check_and_record(key).duplicate:
            raise DuplicateAlertError(key)

        message = compose_alert(
            request.user_name, request.location, request.timestamp,
            tz_name=self.tz_name,
        )

        logger.info(
            "Dispatching alert %s for %s to %d contact(s)",
            key, request.user_name or "anonymous user", len(request.contacts),
            extra={"fingerprint": key, "contact_count": len(request.contacts)},
        )

        results = await self.dispatcher.send_all(request.contacts, message)
        summary = summarize(results)

        logger.info(
            "Alert %s complete: %d successful, %d failed",
            key, summary.successful, summary.failed,
            extra={
                "fingerprint": key,
                "successful": summary.successful,
                "failed": summary.failed,
            },
        )

        return AlertOutcome(results=results, summary=summary, timestamp=utc_timestamp())

    async def send_test_message(self, phone: Any, name: Optional[str] = None) -> Dict[str, Any]:
        """Send the fixed test template to one number."""
        if not phone:
            raise RequestValidationFailed("Phone number required", field="phone")

        destination = normalize_phone(str(phone), self.dispatcher.default_country_code)
        logger.info("Sending test message to %s (%s)", destination, name or "unnamed")

        result = await self.sender.send(destination, compose_test())
        return {
            "success": result.success,
            "message": "Test message sent!" if result.success else "Failed to send test message",
            "details": result.to_dict(),
        }


# ═══════════════════════════════════════════════════════════════════════════
# Factory
# ═══════════════════════════════════════════════════════════════════════════

def create_sender(app_settings: Settings) -> MessageSender:
    """Pick the messaging backend named by MESSAGING_PROVIDER."""
    provider = app_settings.MESSAGING_PROVIDER.lower()
    if provider == "simulation":
        return SimulatedMessageSender(app_settings.DEFAULT_COUNTRY_CODE)
    if provider == "twilio":
        return TwilioMessageSender(
            app_settings.TWILIO_ACCOUNT_SID,
            app_settings.TWILIO_AUTH_TOKEN,
            app_settings.TWILIO_WHATSAPP_NUMBER,
            channel=app_settings.MESSAGING_CHANNEL.lower(),
            default_country_code=app_settings.DEFAULT_COUNTRY_CODE,
        )
    raise ValueError(f"Unknown messaging provider: {app_settings.MESSAGING_PROVIDER}")


def build_alert_service(
    app_settings: Settings,
    *,
    sender: Optional[MessageSender] = None,
    deduplicator: Optional[AlertDeduplicator] = None,
) -> AlertService:
    """Assemble an AlertService from settings; components may be injected."""
    dispatcher = DispatchCoordinator(
        sender or create_sender(app_settings),
        delay_seconds=app_settings.DISPATCH_DELAY_SECONDS,
        default_country_code=app_settings.DEFAULT_COUNTRY_CODE,
    )
    dedup = deduplicator or AlertDeduplicator(
        window_ms=app_settings.DEDUP_WINDOW_SECONDS * 1000,
        max_entries=app_settings.DEDUP_MAX_ENTRIES,
    )
    return AlertService(dedup, dispatcher, tz_name=app_settings.ALERT_TIMEZONE)
