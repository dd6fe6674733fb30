"""Tests for auth helper functions.

Bearer header parsing and password strength validation.
"""

import pytest

from userauth.core.auth import parse_bearer_header, validate_password_strength
from userauth.core.errors import (
    InputError,
    MalformedHeaderError,
    MissingHeaderError,
    ValidationError,
)

_TOKEN = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"


class TestParseBearerHeader:
    """Tests for parse_bearer_header()."""

    def test_returns_token_part(self):
        """A well-formed header yields the token."""
        assert parse_bearer_header(f"Bearer {_TOKEN}") == _TOKEN

    def test_does_not_check_token_length(self):
        """Length is the authenticator's concern, not the parser's."""
        assert parse_bearer_header("Bearer short") == "short"

    def test_none_raises_missing_header(self):
        """Absent header is MissingHeaderError."""
        with pytest.raises(MissingHeaderError):
            parse_bearer_header(None)

    def test_empty_string_raises_missing_header(self):
        """Empty header is treated as absent."""
        with pytest.raises(MissingHeaderError):
            parse_bearer_header("")

    @pytest.mark.parametrize(
        "header",
        [
            "Bearer",
            _TOKEN,
            f"bearer {_TOKEN}",
            f"BEARER {_TOKEN}",
            f"Basic {_TOKEN}",
            f"Bearer  {_TOKEN}",
            f"Bearer {_TOKEN} extra",
            f"Token {_TOKEN}",
        ],
    )
    def test_malformed_headers_raise(self, header):
        """Anything other than exactly 'Bearer <token>' is rejected."""
        with pytest.raises(MalformedHeaderError):
            parse_bearer_header(header)

    def test_header_errors_are_input_errors_with_401(self):
        """Header failures answer 401 but stay in the input family."""
        for error in (MissingHeaderError(), MalformedHeaderError()):
            assert isinstance(error, InputError)
            assert error.status_code == 401
            assert error.code == "INVALID_INPUT"

    def test_header_errors_carry_distinct_reasons(self):
        """Logs can tell a missing header from a malformed one."""
        assert MissingHeaderError().reason == "missing_authorization_header"
        assert MalformedHeaderError().reason == "malformed_authorization_header"


class TestValidatePasswordStrength:
    """Tests for validate_password_strength()."""

    def test_accepts_valid_password(self):
        """Password meeting all rules passes."""
        validate_password_strength("Secure12")

    def test_rejects_too_short(self):
        """Fewer than 8 characters is rejected."""
        with pytest.raises(ValidationError, match="at least 8"):
            validate_password_strength("Abc123")

    def test_rejects_too_long(self):
        """More than 72 bytes is rejected."""
        with pytest.raises(ValidationError, match="at most 72"):
            validate_password_strength("a1" * 37)

    def test_accepts_exactly_72_bytes(self):
        """72 bytes is the upper bound, inclusive."""
        validate_password_strength("a1" * 36)

    def test_rejects_no_letter(self):
        """Digits only is rejected."""
        with pytest.raises(ValidationError, match="letter"):
            validate_password_strength("12345678")

    def test_rejects_no_digit(self):
        """Letters only is rejected."""
        with pytest.raises(ValidationError, match="number"):
            validate_password_strength("abcdefgh")
