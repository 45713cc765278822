"""Unit tests for phone canonicalization."""

import pytest

from typequiz.services.phone import ANONYMOUS_PHONE, canonicalize, format_phone_display, is_anonymous


class TestCanonicalize:
    """Tests for canonicalize."""

    def test_domestic_and_international_forms_match(self) -> None:
        """Test that 8- and +7-prefixed forms of one number are the same key."""
        assert canonicalize("8 915 123 45 67") == "79151234567"
        assert canonicalize("+7 (915) 123-45-67") == "79151234567"

    def test_ten_digits_get_country_code(self) -> None:
        """Test that a bare 10-digit number is prefixed with 7."""
        assert canonicalize("915 123 45 67") == "79151234567"

    def test_no_digits_is_anonymous(self) -> None:
        """Test that input without digits maps to the sentinel."""
        assert canonicalize("") == ANONYMOUS_PHONE
        assert canonicalize(None) == ANONYMOUS_PHONE
        assert canonicalize("call me") == ANONYMOUS_PHONE

    def test_long_input_keeps_last_eleven_digits(self) -> None:
        """Test that overlong input is truncated from the left."""
        assert canonicalize("00 7 915 123 45 67") == "79151234567"

    def test_short_input_is_kept(self) -> None:
        """Test that short numbers are returned without padding."""
        assert canonicalize("12345") == "12345"

    @pytest.mark.parametrize("raw", ["8 915 123 45 67", "+7 915 1234567", "79151234567", "9151234567"])
    def test_idempotent(self, raw: str) -> None:
        """Test that canonicalizing twice changes nothing."""
        once = canonicalize(raw)
        assert canonicalize(once) == once


class TestIsAnonymous:
    """Tests for is_anonymous."""

    def test_sentinel(self) -> None:
        assert is_anonymous(ANONYMOUS_PHONE) is True
        assert is_anonymous("") is True

    def test_real_number(self) -> None:
        assert is_anonymous("+7 915 123 45 67") is False


class TestFormatPhoneDisplay:
    """Tests for format_phone_display."""

    def test_masks_canonical_phone(self) -> None:
        """Test that a canonical phone renders with the domestic prefix."""
        assert format_phone_display("79151234567") == "8 915 123 45 67"

    def test_partial_input(self) -> None:
        """Test that partial input renders only the typed groups."""
        assert format_phone_display("8915") == "8 915"

    def test_empty(self) -> None:
        assert format_phone_display("") == ""
