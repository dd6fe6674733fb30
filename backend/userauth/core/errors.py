"""Error taxonomy for the API and the authentication core.

Each error knows its wire ``code``, a client-safe ``message`` and the HTTP
status it maps to; ``userauth.main`` renders them into the error envelope.

Families:

- InputError: malformed headers or bodies. Caller's fault, no retry.
- CredentialError: unknown user, wrong password, unknown/expired/orphaned
  token. One public message for all of them; ``reason`` tells them apart
  in logs.
- PersistenceError: store unavailable, timed out, or constraint violated.
- RandomnessError / HashingError: primitive failures, fatal to the operation.
"""

from sqlalchemy.exc import DBAPIError, SQLAlchemyError

# Uniform message for every credential failure.
# Security: Never reveal whether the email exists or the password was wrong.
_INVALID_CREDENTIALS_MESSAGE = "Invalid credentials"

# Generic message for store failures; details go to logs only.
_PERSISTENCE_MESSAGE = "The credential store is unavailable"

# PostgreSQL SQLSTATE codes for constraint violations
_SQLSTATE_UNIQUE_VIOLATION = "23505"
_SQLSTATE_STRING_DATA_RIGHT_TRUNCATION = "22001"
_SQLSTATE_FOREIGN_KEY_VIOLATION = "23503"


class APIError(Exception):
    """Root of every error that reaches the HTTP layer.

    Attributes:
        code: Stable identifier clients can branch on, e.g. "NOT_FOUND".
        message: Client-safe description.
        status_code: HTTP status the handler answers with.
        details: Optional per-field error entries.
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: list[dict] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details


class ValidationError(APIError):
    """Request data failed a business rule (400)."""

    def __init__(self, message: str, details: list[dict] | None = None) -> None:
        super().__init__("VALIDATION_ERROR", message, 400, details)


class NotFoundError(APIError):
    """Addressed resource does not exist (404)."""

    def __init__(self, resource: str, resource_id: str | int | None = None) -> None:
        what = resource
        if resource_id is not None:
            what = f"{resource} with id '{resource_id}'"
        super().__init__("NOT_FOUND", f"{what} not found", 404)


class InternalError(APIError):
    """Fallback for unhandled exceptions (500). Carries no internals."""

    def __init__(self, message: str = "An unexpected error occurred") -> None:
        super().__init__("INTERNAL_ERROR", message, 500)


# =============================================================================
# Input errors
# =============================================================================


class InputError(APIError):
    """Malformed request input (400). Not retryable."""

    def __init__(
        self,
        message: str = "Malformed request",
        *,
        status_code: int = 400,
        reason: str = "malformed_input",
    ) -> None:
        self.reason = reason
        super().__init__(
            code="INVALID_INPUT",
            message=message,
            status_code=status_code,
        )


class MissingHeaderError(InputError):
    """No Authorization header on a request that needs one (401)."""

    def __init__(self) -> None:
        super().__init__(
            "Authentication required",
            status_code=401,
            reason="missing_authorization_header",
        )


class MalformedHeaderError(InputError):
    """Authorization header is not ``Bearer <token>`` (401)."""

    def __init__(self) -> None:
        super().__init__(
            "Authentication required",
            status_code=401,
            reason="malformed_authorization_header",
        )


# =============================================================================
# Credential errors
# =============================================================================


class CredentialError(APIError):
    """Credentials or token rejected (401).

    Subclasses only differ in ``reason``; the public code and message are
    identical so responses cannot be used for account enumeration.

    Attributes:
        reason: Internal discriminator for logging. Never sent to clients.
    """

    reason = "invalid_credentials"

    def __init__(self) -> None:
        super().__init__(
            code="INVALID_CREDENTIALS",
            message=_INVALID_CREDENTIALS_MESSAGE,
            status_code=401,
        )


class UserNotFoundError(CredentialError):
    """No user with the presented email."""

    reason = "user_not_found"


class InvalidCredentialsError(CredentialError):
    """Password mismatch, or the stored hash could not be checked."""

    reason = "password_mismatch"


class WrongTokenLengthError(CredentialError):
    """Presented token is not exactly 26 characters."""

    reason = "wrong_token_length"


class TokenNotFoundError(CredentialError):
    """No stored token matches the presented plaintext."""

    reason = "token_not_found"


class ExpiredTokenError(CredentialError):
    """Stored token exists but its expiry has passed."""

    reason = "expired_token"


class OrphanedTokenError(CredentialError):
    """Stored token references a user that no longer exists."""

    reason = "orphaned_token"


# =============================================================================
# Persistence errors
# =============================================================================


class PersistenceError(APIError):
    """Credential store failure (503 unless a subclass says otherwise).

    Not retried by the core; the caller decides.
    """

    def __init__(
        self,
        message: str = _PERSISTENCE_MESSAGE,
        *,
        code: str = "PERSISTENCE_ERROR",
        status_code: int = 503,
    ) -> None:
        super().__init__(code=code, message=message, status_code=status_code)


class StoreTimeoutError(PersistenceError):
    """A store operation exceeded its time budget."""

    def __init__(self) -> None:
        super().__init__(code="STORE_TIMEOUT")


class DuplicateKeyError(PersistenceError):
    """Unique constraint violated (409)."""

    def __init__(self) -> None:
        super().__init__(
            "Duplicate key value violates unique constraint",
            code="DUPLICATE_KEY",
            status_code=409,
        )


class ValueTooLargeError(PersistenceError):
    """Value exceeds its column size (422)."""

    def __init__(self) -> None:
        super().__init__(
            "The value you are trying to add is too large",
            code="VALUE_TOO_LARGE",
            status_code=422,
        )


class ForeignKeyViolationError(PersistenceError):
    """Referenced row does not exist (400)."""

    def __init__(self) -> None:
        super().__init__(
            "Foreign key violation",
            code="FOREIGN_KEY_VIOLATION",
            status_code=400,
        )


def translate_db_error(exc: SQLAlchemyError) -> PersistenceError:
    """Map a SQLAlchemy error onto the persistence taxonomy.

    Constraint violations are recognized by the driver's SQLSTATE;
    everything else becomes a generic PersistenceError.

    Args:
        exc: Error raised by SQLAlchemy.

    Returns:
        PersistenceError subclass to raise in its place.
    """
    sqlstate = None
    if isinstance(exc, DBAPIError):
        sqlstate = getattr(exc.orig, "sqlstate", None) or getattr(
            exc.orig, "pgcode", None
        )

    if sqlstate == _SQLSTATE_UNIQUE_VIOLATION:
        return DuplicateKeyError()
    if sqlstate == _SQLSTATE_STRING_DATA_RIGHT_TRUNCATION:
        return ValueTooLargeError()
    if sqlstate == _SQLSTATE_FOREIGN_KEY_VIOLATION:
        return ForeignKeyViolationError()
    return PersistenceError()


# =============================================================================
# Primitive failures
# =============================================================================


class HashingError(APIError):
    """Password hashing primitive failed (500)."""

    def __init__(self, message: str = "Password hashing failed") -> None:
        super().__init__(
            code="HASHING_ERROR",
            message=message,
            status_code=500,
        )


class MalformedHashError(HashingError):
    """Stored password hash is corrupt or not a bcrypt hash."""

    def __init__(self) -> None:
        super().__init__("Stored password hash is malformed")


class RandomnessError(APIError):
    """Secure random source unavailable (500). Not retried."""

    def __init__(self) -> None:
        super().__init__(
            code="RANDOMNESS_ERROR",
            message="Secure random source unavailable",
            status_code=500,
        )
