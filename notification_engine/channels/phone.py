"""Phone number normalization to E.164 for chat and SMS addressing."""

import re

from ..domain.exceptions import PhoneNumberError

# Country codes whose national numbers are commonly written with a leading
# trunk prefix that must be dropped in international format.
TRUNK_PREFIX_MAP: dict[str, str] = {
    "44": "0",  # UK
    "61": "0",  # Australia
    "65": "0",  # Singapore
    "33": "0",  # France
    "49": "0",  # Germany
    "39": "0",  # Italy
    "34": "0",  # Spain
    "81": "0",  # Japan
    "82": "0",  # South Korea
    "86": "0",  # China
    "60": "0",  # Malaysia
    "66": "0",  # Thailand
    "971": "0",  # UAE
    "966": "0",  # Saudi Arabia
    "91": "0",  # India
    "92": "0",  # Pakistan
    "94": "0",  # Sri Lanka
    "90": "0",  # Turkey
    "30": "0",  # Greece
    "31": "0",  # Netherlands
    "32": "0",  # Belgium
    "43": "0",  # Austria
    "47": "0",  # Norway
    "48": "0",  # Poland
    "51": "0",  # Peru
    "52": "0",  # Mexico
    "54": "0",  # Argentina
    "55": "0",  # Brazil
}

E164_PATTERN = re.compile(r"^\+[1-9]\d{7,14}$")

_NON_DIGITS = re.compile(r"\D")


def normalize_national_number(phone: str, country_code: str) -> str:
    """Strip formatting and the country's trunk prefix from a national number."""
    digits = _NON_DIGITS.sub("", phone or "")
    prefix = TRUNK_PREFIX_MAP.get(_NON_DIGITS.sub("", country_code or ""))
    if prefix and digits.startswith(prefix):
        digits = digits[len(prefix):]
    return digits


def format_e164(phone: str, country_code: str) -> str:
    """
    Format a national number and country code as E.164.

    Args:
        phone: National number, any formatting, optionally trunk-prefixed
        country_code: Country calling code with or without "+"

    Returns:
        "+<country code><national number>"

    Raises:
        PhoneNumberError: If either part is missing or the length is out of bounds
    """
    if not phone or not country_code:
        raise PhoneNumberError("Phone number and country code are required")

    clean_country_code = _NON_DIGITS.sub("", country_code)
    if not clean_country_code:
        raise PhoneNumberError("Invalid country code")

    national = normalize_national_number(phone, clean_country_code)
    if not 6 <= len(national) <= 14:
        raise PhoneNumberError("Invalid phone number length (must be 6-14 digits after normalization)")

    full_number = clean_country_code + national
    if not 8 <= len(full_number) <= 15:
        raise PhoneNumberError(f"Invalid E.164 phone number length: {len(full_number)} digits (must be 8-15)")

    return f"+{full_number}"


def is_e164(value: str) -> bool:
    return bool(E164_PATTERN.match(value or ""))
