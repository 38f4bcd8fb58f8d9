"""Tests for E.164 phone normalization."""

import pytest

from notification_engine.channels.phone import format_e164, is_e164, normalize_national_number
from notification_engine.domain.exceptions import PhoneNumberError


class TestFormatE164:
    def test_indian_number(self) -> None:
        assert format_e164("9876543210", "+91") == "+919876543210"

    def test_uk_trunk_prefix_is_stripped(self) -> None:
        assert format_e164("07911123456", "+44") == "+447911123456"

    def test_trunk_prefixed_indian_number(self) -> None:
        assert format_e164("09876543210", "+91") == "+919876543210"

    def test_country_code_without_plus(self) -> None:
        assert format_e164("9876543210", "91") == "+919876543210"

    def test_formatting_characters_are_ignored(self) -> None:
        assert format_e164("(987) 654-3210", "+91") == "+919876543210"

    def test_no_trunk_stripping_for_unlisted_country(self) -> None:
        """North American numbers have no trunk prefix to drop."""
        assert format_e164("2025550123", "+1") == "+12025550123"

    @pytest.mark.parametrize(
        "phone,country_code",
        [("", "+91"), ("9876543210", ""), ("9876543210", "+"), ("12345", "+91"), ("123456789012345", "+91")],
    )
    def test_invalid_input(self, phone, country_code) -> None:
        with pytest.raises(PhoneNumberError):
            format_e164(phone, country_code)


class TestHelpers:
    def test_normalize_national_number(self) -> None:
        assert normalize_national_number("0 20 7946 0958", "44") == "2079460958"

    def test_is_e164(self) -> None:
        assert is_e164("+919876543210") is True
        assert is_e164("919876543210") is False
        assert is_e164("+0123456789") is False
        assert is_e164("+1234567") is False
        assert is_e164("") is False
