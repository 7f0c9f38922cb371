"""Phone number normalization to E.164.

Both sides of the handoff (form webhook and voice agent init) carry phone
numbers in whatever shape their producer chose. Keys only match when both
are reduced to the same canonical text.
"""

import re

from lead_store.schemas import DEFAULT_COUNTRY_CODE

# E.164: plus, non-zero leading digit, 7-15 digits total
E164_REGEX = re.compile(r"^\+[1-9]\d{6,14}$")

_NON_DIGITS = re.compile(r"\D")


def validate_phone_e164(phone: str) -> bool:
    """Validate phone number is in E.164 format."""
    return bool(E164_REGEX.match(phone))


def to_e164(raw: str | None) -> str | None:
    """Convert arbitrary phone text to E.164, or None if no canonical form exists.

    Examples:
        "(281) 456-2323"   -> "+12814562323"
        "1-281-456-2323"   -> "+12814562323"
        "+44 20 7123 4567" -> "+442071234567"
        "555"              -> None
    """
    if not raw:
        return None

    text = str(raw).strip()
    digits = _NON_DIGITS.sub("", text)
    if not digits:
        return None

    if text.startswith("+"):
        candidate = f"+{digits}"
        return candidate if validate_phone_e164(candidate) else None

    domestic_digit = DEFAULT_COUNTRY_CODE.lstrip("+")

    if len(digits) == 10:
        return f"{DEFAULT_COUNTRY_CODE}{digits}"

    if len(digits) == 11 and digits.startswith(domestic_digit):
        return f"+{digits}"

    return None
