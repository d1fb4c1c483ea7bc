"""
test_phone.py — Phone number validation and normalisation.

Run with:
    pytest tests/test_phone.py -v
"""

from __future__ import annotations

import pytest

from backend.app.alerts.phone import normalize_phone, validate_phone


class TestValidatePhone:
    """E.164-like validation."""

    @pytest.mark.parametrize("phone", [
        "+14155551234",
        "14155551234",
        "+44 20 7946 0958",
        "4155551234",
        "+12",
    ])
    def test_accepts(self, phone):
        assert validate_phone(phone) is True

    @pytest.mark.parametrize("phone", [
        "abc",
        "+0123",
        "",
        "123456789012345678",
        "(415) 555-1234",
        "+",
        "1",
    ])
    def test_rejects(self, phone):
        assert validate_phone(phone) is False

    def test_fifteen_digits_is_the_limit(self):
        assert validate_phone("+123456789012345")
        assert not validate_phone("+1234567890123456")

    def test_non_string_rejected(self):
        assert validate_phone(None) is False
        assert validate_phone(4155551234) is False


class TestNormalizePhone:
    """Best-effort canonical +digits form."""

    def test_us_display_format(self):
        assert normalize_phone("(415) 555-1234") == "+14155551234"

    def test_international_with_spaces(self):
        assert normalize_phone("+44 20 7946 0958") == "+442079460958"

    def test_bare_ten_digits_gets_country_code(self):
        assert normalize_phone("4155551234") == "+14155551234"

    def test_eleven_digits_untouched(self):
        assert normalize_phone("14155551234") == "+14155551234"

    def test_custom_country_code(self):
        assert normalize_phone("9876543210", default_country_code="91") == "+919876543210"

    def test_plus_does_not_exempt_ten_digits(self):
        assert normalize_phone("+4155551234") == "+14155551234"
        assert normalize_phone("+4420794609") == "+14420794609"

    @pytest.mark.parametrize("phone", [
        "(415) 555-1234",
        "+44 20 7946 0958",
        "4155551234",
        "555-0100",
        "+4420794609",
    ])
    def test_idempotent(self, phone):
        once = normalize_phone(phone)
        assert normalize_phone(once) == once

    def test_normalised_numbers_validate(self):
        assert validate_phone(normalize_phone("(415) 555-1234"))
