"""
whatsapp_gateway.py — Delivery through the Twilio Messaging API.

Delivery mechanism:
    App → twilio.rest.Client.messages.create → Twilio → WhatsApp / carrier → Handset

Addressing:
    whatsapp channel:  from "whatsapp:+14155238886"  to "whatsapp:+<E.164>"
    sms channel:       from "+14155238886"           to "+<E.164>"

The destination is normalised once more here, so callers may pass either
display-formatted or canonical numbers.

The Twilio SDK is synchronous; each call runs in a worker thread so the
event loop keeps serving other requests while a send is in flight.
Provider errors (TwilioRestException, network failures, missing
credentials) become SendResult(success=False) — this sender never raises.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from twilio.base.exceptions import TwilioException
from twilio.rest import Client

from backend.app.alerts.models import SendResult
from backend.app.alerts.phone import normalize_phone

logger = logging.getLogger(__name__)

WHATSAPP_PREFIX = "whatsapp:"


def _address(number: str, channel: str) -> str:
    """Apply or strip the ``whatsapp:`` scheme for the active channel."""
    bare = number[len(WHATSAPP_PREFIX):] if number.startswith(WHATSAPP_PREFIX) else number
    if channel == "whatsapp":
        return f"{WHATSAPP_PREFIX}{bare}"
    return bare


class TwilioMessageSender:
    """
    Twilio-backed MessageSender.

    Parameters
    ----------
    account_sid, auth_token : str | None
        Twilio credentials. When either is missing, every send fails with
        a "not configured" error instead of raising.
    from_number : str
        Registered sender, e.g. "whatsapp:+14155238886".
    channel : str
        "whatsapp" or "sms".
    default_country_code : str
        Prepended to bare 10-digit destinations.
    client : twilio.rest.Client | None
        Pre-built client (tests inject a mock here).
    """

    provider = "twilio"

    def __init__(
        self,
        account_sid: Optional[str],
        auth_token: Optional[str],
        from_number: str,
        *,
        channel: str = "whatsapp",
        default_country_code: str = "1",
        client: Optional[Any] = None,
    ):
        if channel not in ("whatsapp", "sms"):
            raise ValueError(f"Unknown messaging channel: {channel}")
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = _address(from_number, channel)
        self.channel = channel
        self.default_country_code = default_country_code
        self._client = client

    @property
    def configured(self) -> bool:
        return self._client is not None or bool(self.account_sid and self.auth_token)

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = Client(self.account_sid, self.auth_token)
        return self._client

    async def send(self, destination: str, body: str) -> SendResult:
        """Send ``body`` to ``destination``; failures are returned, not raised."""
        to = _address(normalize_phone(destination, self.default_country_code), self.channel)

        if not self.configured:
            logger.error("[Twilio] Credentials missing — cannot send to %s", to)
            return SendResult.failure("Twilio credentials are not configured")

        try:
            client = self._get_client()
            message = await asyncio.to_thread(
                client.messages.create,
                body=body,
                from_=self.from_number,
                to=to,
            )
        except TwilioException as exc:
            logger.error("[Twilio] Send to %s failed: %s", to, exc)
            return SendResult.failure(getattr(exc, "msg", None) or str(exc))
        except Exception as exc:
            logger.error("[Twilio] Unexpected error sending to %s: %s", to, exc)
            return SendResult.failure(str(exc))

        logger.info(
            "[Twilio] %s → %s: sid=%s status=%s",
            self.channel, to, message.sid, message.status,
            extra={"sid": message.sid, "provider": self.provider},
        )
        return SendResult(success=True, sid=message.sid, status=message.status)
