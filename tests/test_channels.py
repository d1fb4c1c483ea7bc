"""
test_channels.py — Messaging backends (Twilio gateway, simulation).

The Twilio REST client is replaced by a MagicMock; no network traffic.

Run with:
    pytest tests/test_channels.py -v
"""

from __future__ import annotations

import asyncio
from unittest.mock import MagicMock, patch

import pytest
from twilio.base.exceptions import TwilioRestException

from backend.app.alerts.alert_service import create_sender
from backend.app.alerts.channels.base import MessageSender
from backend.app.alerts.channels.simulation import SimulatedMessageSender
from backend.app.alerts.channels.whatsapp_gateway import TwilioMessageSender
from backend.app.core.config import Settings


def _mock_client(sid: str = "SM123", status: str = "queued") -> MagicMock:
    client = MagicMock()
    client.messages.create.return_value = MagicMock(sid=sid, status=status)
    return client


def _sender(client=None, **kwargs) -> TwilioMessageSender:
    return TwilioMessageSender(
        "AC_test", "token", "whatsapp:+14155238886",
        client=client, **kwargs,
    )


class TestTwilioMessageSender:

    def test_whatsapp_addressing_and_normalisation(self):
        client = _mock_client()
        result = asyncio.run(_sender(client).send("(415) 555-1234", "hello"))

        client.messages.create.assert_called_once_with(
            body="hello",
            from_="whatsapp:+14155238886",
            to="whatsapp:+14155551234",
        )
        assert result.success is True
        assert result.sid == "SM123"
        assert result.status == "queued"

    def test_sms_channel_strips_whatsapp_scheme(self):
        client = _mock_client()
        asyncio.run(_sender(client, channel="sms").send("+442079460958", "hello"))

        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["from_"] == "+14155238886"
        assert kwargs["to"] == "+442079460958"

    def test_twilio_error_returned_not_raised(self):
        client = MagicMock()
        client.messages.create.side_effect = TwilioRestException(
            400, "https://api.twilio.com", msg="Invalid 'To' Phone Number",
        )
        result = asyncio.run(_sender(client).send("+14155551234", "hello"))

        assert result.success is False
        assert result.error == "Invalid 'To' Phone Number"

    def test_network_error_returned_not_raised(self):
        client = MagicMock()
        client.messages.create.side_effect = ConnectionError("timed out")
        result = asyncio.run(_sender(client).send("+14155551234", "hello"))

        assert result.success is False
        assert result.error == "timed out"

    def test_missing_credentials(self):
        sender = TwilioMessageSender(None, None, "whatsapp:+14155238886")
        assert sender.configured is False

        result = asyncio.run(sender.send("+14155551234", "hello"))

        assert result.success is False
        assert "not configured" in result.error

    def test_client_built_lazily_from_credentials(self):
        with patch(
            "backend.app.alerts.channels.whatsapp_gateway.Client",
            return_value=_mock_client(),
        ) as factory:
            sender = _sender()
            factory.assert_not_called()
            asyncio.run(sender.send("+14155551234", "hello"))
            factory.assert_called_once_with("AC_test", "token")

    def test_unknown_channel_rejected(self):
        with pytest.raises(ValueError):
            _sender(channel="pigeon")

    def test_satisfies_protocol(self):
        assert isinstance(_sender(_mock_client()), MessageSender)


class TestSimulatedMessageSender:

    def test_always_succeeds(self):
        result = asyncio.run(SimulatedMessageSender().send("4155551234", "hello"))
        assert result.success is True
        assert result.status == "simulated"
        assert result.sid.startswith("SM")


class TestCreateSender:

    def test_simulation(self):
        sender = create_sender(Settings(MESSAGING_PROVIDER="simulation"))
        assert isinstance(sender, SimulatedMessageSender)

    def test_twilio(self):
        sender = create_sender(Settings(
            MESSAGING_PROVIDER="twilio",
            MESSAGING_CHANNEL="sms",
            TWILIO_ACCOUNT_SID="AC1",
            TWILIO_AUTH_TOKEN="tok",
        ))
        assert isinstance(sender, TwilioMessageSender)
        assert sender.channel == "sms"

    def test_unknown_provider(self):
        with pytest.raises(ValueError):
            create_sender(Settings(MESSAGING_PROVIDER="carrier-pigeon"))
