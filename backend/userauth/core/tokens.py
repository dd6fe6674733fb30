"""Opaque bearer token generation and lookup digests.

A token is 16 bytes from the OS CSPRNG, base32-encoded without padding,
which always yields 26 characters from ``A-Z2-7``. Only the SHA-256 digest
of the plaintext is stored; presenting the plaintext again recomputes the
same digest for lookup.
"""

import base64
import hashlib
import secrets

from userauth.core.errors import RandomnessError

TOKEN_LENGTH = 26
TOKEN_ALPHABET = frozenset("ABCDEFGHIJKLMNOPQRSTUVWXYZ234567")
DIGEST_SIZE = 32

_TOKEN_ENTROPY_BYTES = 16


def hash_token(plaintext: str) -> bytes:
    """Compute the SHA-256 digest of a plaintext token.

    Args:
        plaintext: Token as handed to the client.

    Returns:
        32-byte digest.
    """
    return hashlib.sha256(plaintext.encode()).digest()


def generate_token() -> tuple[str, bytes]:
    """Generate a fresh plaintext token and its lookup digest.

    Returns:
        Tuple of (plaintext, digest).

    Raises:
        RandomnessError: If the secure random source is unavailable.
    """
    try:
        random_bytes = secrets.token_bytes(_TOKEN_ENTROPY_BYTES)
    except (OSError, NotImplementedError) as exc:
        raise RandomnessError from exc

    plaintext = base64.b32encode(random_bytes).decode("ascii").rstrip("=")
    return plaintext, hash_token(plaintext)
