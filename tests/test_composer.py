"""
test_composer.py — Alert and test message templates.

Run with:
    pytest tests/test_composer.py -v
"""

from __future__ import annotations

from backend.app.alerts.composer import (
    INVALID_DATE,
    compose_alert,
    compose_test,
    format_timestamp,
    maps_link,
    parse_timestamp,
)
from backend.app.alerts.models import Location

MOUNTAIN_VIEW = Location(lat=37.422, lng=-122.084)


class TestMapsLink:

    def test_coordinates_verbatim(self):
        assert maps_link(MOUNTAIN_VIEW) == "https://maps.google.com/?q=37.422,-122.084"

    def test_whole_number_coordinates(self):
        assert maps_link(Location(lat=10.0, lng=20)) == "https://maps.google.com/?q=10,20"


class TestFormatTimestamp:
    """Locale-style M/D/YYYY, h:mm:ss AM|PM rendering."""

    def test_epoch_millis(self):
        assert format_timestamp(1700000000000) == "11/14/2023, 10:13:20 PM"

    def test_numeric_string(self):
        assert format_timestamp("1700000000000") == "11/14/2023, 10:13:20 PM"

    def test_iso_string_with_z(self):
        assert format_timestamp("2024-01-05T09:03:07Z") == "1/5/2024, 9:03:07 AM"

    def test_midnight_is_twelve_am(self):
        assert format_timestamp("2024-01-05T00:00:00+00:00") == "1/5/2024, 12:00:00 AM"

    def test_noon_is_twelve_pm(self):
        assert format_timestamp("2024-01-05T12:30:00") == "1/5/2024, 12:30:00 PM"

    def test_invalid_values(self):
        assert format_timestamp(None) == INVALID_DATE
        assert format_timestamp("not a date") == INVALID_DATE
        assert format_timestamp(True) == INVALID_DATE
        assert format_timestamp(1e30) == INVALID_DATE

    def test_unknown_timezone_falls_back_to_utc(self):
        assert format_timestamp(1700000000000, "Not/AZone") == "11/14/2023, 10:13:20 PM"

    def test_parse_returns_aware_datetime(self):
        parsed = parse_timestamp("2024-01-05T09:03:07")
        assert parsed is not None
        assert parsed.tzinfo is not None


class TestComposeAlert:

    def test_contains_user_link_and_time(self):
        body = compose_alert("Alice", MOUNTAIN_VIEW, 1700000000000)
        assert "*Alice*" in body
        assert "https://maps.google.com/?q=37.422,-122.084" in body
        assert "11/14/2023, 10:13:20 PM" in body
        assert "EMERGENCY ALERT" in body

    def test_default_user_name(self):
        assert "*User*" in compose_alert(None, MOUNTAIN_VIEW, 1700000000000)
        assert "*User*" in compose_alert("", MOUNTAIN_VIEW, 1700000000000)

    def test_deterministic(self):
        a = compose_alert("Alice", MOUNTAIN_VIEW, 1700000000000)
        b = compose_alert("Alice", MOUNTAIN_VIEW, 1700000000000)
        assert a == b


class TestComposeTest:

    def test_fixed_template(self):
        body = compose_test()
        assert "Test Message" in body
        assert "System Status: Operational" in body
        assert compose_test() == body
