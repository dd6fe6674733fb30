"""Authentication helpers for bearer headers and password rules.

Pipeline:
- parse_bearer_header: Authorization header -> plaintext token (no I/O)
- validate_password_strength: format rules for signup and reset (no I/O)
"""

import re

from userauth.core.errors import MalformedHeaderError, MissingHeaderError, ValidationError
from userauth.core.passwords import MAX_PASSWORD_BYTES

AUTHORIZATION_HEADER = "Authorization"
BEARER_SCHEME = "Bearer"

_MIN_PASSWORD_LENGTH = 8


def parse_bearer_header(header_value: str | None) -> str:
    """Extract the plaintext token from an Authorization header value.

    The header must be exactly two space-separated parts, the first being
    the literal ``Bearer`` (case-sensitive).

    Args:
        header_value: Raw header value, or None when absent.

    Returns:
        The token part of the header.

    Raises:
        MissingHeaderError: If the header is absent or empty.
        MalformedHeaderError: If the header is not ``Bearer <token>``.
    """
    if not header_value:
        raise MissingHeaderError

    parts = header_value.split(" ")
    if len(parts) != 2 or parts[0] != BEARER_SCHEME:
        raise MalformedHeaderError

    return parts[1]


def validate_password_strength(password: str) -> None:
    """Validate password meets strength requirements.

    8-72 characters (72 bytes is bcrypt's input limit), at least one letter
    and one number.

    Args:
        password: Plain-text password to validate.

    Raises:
        ValidationError: If password doesn't meet requirements.
    """
    if len(password) < _MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {_MIN_PASSWORD_LENGTH} characters"
        )
    if len(password.encode()) > MAX_PASSWORD_BYTES:
        raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    if not re.search(r"[a-zA-Z]", password):
        raise ValidationError("Password must contain at least one letter")
    if not re.search(r"\d", password):
        raise ValidationError("Password must contain at least one number")
