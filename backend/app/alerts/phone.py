"""
phone.py — Phone number validation and normalisation.

Validation accepts E.164-like numbers: an optional leading "+", a first
digit 1–9, then 1–14 more digits (2–15 significant digits). Whitespace
anywhere in the input is ignored.

Normalisation is a best-effort heuristic for display-formatted input
such as "(415) 555-1234":

    1. Drop every non-digit character (a leading "+" goes with them)
    2. If exactly 10 digits remain, prepend the default country code
       (a bare national number)
    3. Prefix "+"

It does not validate; run validate_phone() where correctness matters.
"""

from __future__ import annotations

import re

E164_PATTERN = re.compile(r"^\+?[1-9]\d{1,14}$")
NATIONAL_NUMBER_LENGTH = 10

_WHITESPACE = re.compile(r"\s")
_NON_DIGIT = re.compile(r"\D")


def validate_phone(phone: str) -> bool:
    """True if ``phone`` (whitespace ignored) looks like an E.164 number."""
    if not isinstance(phone, str):
        return False
    return bool(E164_PATTERN.match(_WHITESPACE.sub("", phone)))


def normalize_phone(phone: str, default_country_code: str = "1") -> str:
    """
    Reduce ``phone`` to canonical ``+<digits>`` form.

    Any 10-digit result is treated as national, even "+4155551234".
    Idempotent: the output never has exactly 10 digits.
    """
    digits = _NON_DIGIT.sub("", phone)
    if len(digits) == NATIONAL_NUMBER_LENGTH:
        digits = default_country_code + digits
    return f"+{digits}"
