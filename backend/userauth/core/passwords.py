"""Password hashing and verification.

bcrypt with a per-hash random salt. The cost factor and salt are encoded
in the hash itself, so verification needs nothing but the stored value.
"""

import functools
import re

import bcrypt

from userauth.core.config import settings
from userauth.core.errors import HashingError, MalformedHashError

# bcrypt only consumes the first 72 bytes of input.
MAX_PASSWORD_BYTES = 72

# $2b$<cost>$<22 char salt><31 char digest>
_BCRYPT_HASH_PATTERN = re.compile(rb"\$2[abxy]\$\d{2}\$[./A-Za-z0-9]{53}")

# Input for the throwaway hash checked on user-not-found.
_DUMMY_PASSWORD = b"userauth-dummy-password"


def hash_password(password: str, *, rounds: int | None = None) -> str:
    """Hash a password with bcrypt.

    Args:
        password: Plain-text password.
        rounds: bcrypt cost factor. Defaults to settings.bcrypt_rounds.

    Returns:
        Self-describing bcrypt hash (algorithm, cost, salt, digest).

    Raises:
        HashingError: If the password exceeds 72 bytes or bcrypt fails.
    """
    password_bytes = password.encode()
    if len(password_bytes) > MAX_PASSWORD_BYTES:
        raise HashingError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")

    try:
        salt = bcrypt.gensalt(rounds=rounds or settings.bcrypt_rounds)
        return bcrypt.hashpw(password_bytes, salt).decode()
    except (ValueError, TypeError, OSError) as exc:
        raise HashingError from exc


def verify_password(password_hash: str | bytes, password: str) -> bool:
    """Constant-time comparison of a password against a bcrypt hash.

    Args:
        password_hash: Stored bcrypt hash.
        password: Plain-text password presented by the caller.

    Returns:
        True on match, False on a well-formed mismatch.

    Raises:
        MalformedHashError: If the stored hash is not a valid bcrypt hash.
    """
    hashed = (
        password_hash.encode() if isinstance(password_hash, str) else password_hash
    )
    if not _BCRYPT_HASH_PATTERN.fullmatch(hashed):
        raise MalformedHashError

    password_bytes = password.encode()
    # Nothing longer than 72 bytes is ever hashed, so it cannot match.
    if len(password_bytes) > MAX_PASSWORD_BYTES:
        return False

    try:
        return bcrypt.checkpw(password_bytes, hashed)
    except ValueError as exc:
        raise MalformedHashError from exc


@functools.cache
def dummy_hash(rounds: int) -> bytes:
    """Throwaway bcrypt hash at the given cost, computed once per cost."""
    return bcrypt.hashpw(_DUMMY_PASSWORD, bcrypt.gensalt(rounds=rounds))


def burn_verification(password: str) -> None:
    """Run a throwaway bcrypt check at the configured cost factor.

    Used when no stored hash exists so that response time does not reveal
    whether the account exists. The dummy hash is at settings.bcrypt_rounds.
    """
    bcrypt.checkpw(
        password.encode()[:MAX_PASSWORD_BYTES],
        dummy_hash(settings.bcrypt_rounds),
    )
