"""
composer.py — Message templates for emergency and test alerts.

Emergency alert (WhatsApp markdown, *bold*):

    🚨 *EMERGENCY ALERT* 🚨

    An accident has been detected for *{user}*!

    📍 *Location:* https://maps.google.com/?q={lat},{lng}
    🕐 *Time:* {M/D/YYYY, h:mm:ss AM|PM}
    ...

Timestamps arrive as epoch milliseconds (number or numeric string) or as
ISO-8601 strings. Anything unparseable renders as "Invalid Date" rather
than failing the alert.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from backend.app.alerts.models import DEFAULT_USER_NAME, Location, Timestamp

logger = logging.getLogger(__name__)

MAPS_URL = "https://maps.google.com/?q={lat},{lng}"
INVALID_DATE = "Invalid Date"

ALERT_TEMPLATE = """🚨 *EMERGENCY ALERT* 🚨

An accident has been detected for *{user_name}*!

📍 *Location:* {maps_link}
🕐 *Time:* {formatted_time}

⚠️ *IMPORTANT:* This is an automated emergency alert. Please respond or dispatch help immediately!

---
Sent via Smart Accident Alert System"""

TEST_TEMPLATE = (
    "🧪 *Test Message*\n\n"
    "This is a test from the Smart Accident Alert System.\n\n"
    "If you receive this, your WhatsApp integration is working correctly!\n\n"
    "✅ System Status: Operational"
)


def _resolve_tz(tz_name: str) -> tzinfo:
    if tz_name.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r — rendering alert times in UTC", tz_name)
        return timezone.utc


def _number(value: float) -> str:
    """Render coordinates the way a JSON client sent them (no trailing .0)."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def maps_link(location: Location) -> str:
    return MAPS_URL.format(lat=_number(location.lat), lng=_number(location.lng))


def parse_timestamp(timestamp: Timestamp) -> Optional[datetime]:
    """Interpret epoch milliseconds or an ISO-8601 string; None if neither."""
    if timestamp is None or isinstance(timestamp, bool):
        return None

    if isinstance(timestamp, str):
        text = timestamp.strip()
        try:
            timestamp = float(text)
        except ValueError:
            if text.endswith("Z"):
                text = text[:-1] + "+00:00"
            try:
                parsed = datetime.fromisoformat(text)
            except ValueError:
                return None
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
            return parsed

    try:
        return datetime.fromtimestamp(timestamp / 1000, tz=timezone.utc)
    except (OverflowError, OSError, ValueError, TypeError):
        return None


def format_timestamp(timestamp: Timestamp, tz_name: str = "UTC") -> str:
    """Locale-style rendering, e.g. ``11/14/2023, 10:13:20 PM``."""
    moment = parse_timestamp(timestamp)
    if moment is None:
        return INVALID_DATE

    local = moment.astimezone(_resolve_tz(tz_name))
    hour = local.hour % 12 or 12
    meridiem = "AM" if local.hour < 12 else "PM"
    return (
        f"{local.month}/{local.day}/{local.year}, "
        f"{hour}:{local.minute:02d}:{local.second:02d} {meridiem}"
    )


def compose_alert(
    user_name: Optional[str],
    location: Location,
    timestamp: Timestamp,
    *,
    tz_name: str = "UTC",
) -> str:
    """Render the emergency alert body."""
    return ALERT_TEMPLATE.format(
        user_name=user_name or DEFAULT_USER_NAME,
        maps_link=maps_link(location),
        formatted_time=format_timestamp(timestamp, tz_name),
    )


def compose_test() -> str:
    return TEST_TEMPLATE
