"""Login, token issuance, and bearer request authentication.

Login flow (each call is one full pass):
    credentials -> user lookup -> password check -> token generation
    -> persistence (supersedes the user's previous token) -> plaintext

Request authentication (read-only):
    header -> shape check -> length check -> token lookup -> expiry check
    -> owner lookup -> User

Checks run cheapest first and in the same order for every entry point
(existence, then expiry, then owner), so the header path and
validate_token() always agree.

The authenticator never logs. Every failure is raised to the caller, which
decides what to record.
"""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from userauth.core.auth import parse_bearer_header
from userauth.core.config import settings
from userauth.core.errors import (
    CredentialError,
    ExpiredTokenError,
    InvalidCredentialsError,
    MalformedHashError,
    NotFoundError,
    OrphanedTokenError,
    TokenNotFoundError,
    UserNotFoundError,
    ValidationError,
    WrongTokenLengthError,
)
from userauth.core.passwords import burn_verification, verify_password
from userauth.core.tokens import TOKEN_LENGTH, generate_token
from userauth.models.token import Token
from userauth.models.user import User
from userauth.repositories.token_repository import TokenRepository
from userauth.repositories.user_repository import UserRepository


@dataclass(frozen=True)
class IssuedToken:
    """A freshly persisted token together with its one-time plaintext.

    Attributes:
        plaintext: Token for the client. Not recoverable after this.
        token: Stored token row (digest only).
        ttl: Lifetime the token was issued with.
    """

    plaintext: str
    token: Token
    ttl: timedelta


class Authenticator:
    """Credential checks and bearer tokens on top of an injected session.

    Args:
        db: Async database session owned by the caller.
        login_ttl: Lifetime of login-issued tokens. Defaults to
            settings.login_token_ttl (24 hours).
    """

    def __init__(
        self,
        db: AsyncSession,
        *,
        login_ttl: timedelta | None = None,
    ) -> None:
        self._db = db
        self._login_ttl = (
            settings.login_token_ttl if login_ttl is None else login_ttl
        )

    async def authenticate(self, email: str, password: str) -> IssuedToken:
        """Log a user in with email and password.

        Args:
            email: Account email.
            password: Plain-text password.

        Returns:
            IssuedToken valid for the login TTL.

        Raises:
            UserNotFoundError: No account for the email.
            InvalidCredentialsError: Wrong password or unreadable stored hash.
            RandomnessError: Token generation failed.
            PersistenceError: Token could not be stored.
        """
        user = await UserRepository.get_by_email(self._db, email)
        if user is None:
            # Security: same bcrypt cost as a real check, so timing does
            # not reveal whether the account exists.
            burn_verification(password)
            raise UserNotFoundError

        try:
            matches = verify_password(user.password_hash, password)
        except MalformedHashError as exc:
            raise InvalidCredentialsError from exc
        if not matches:
            raise InvalidCredentialsError

        return await self._issue(user, self._login_ttl)

    async def issue_token(self, user_id: int, ttl: timedelta) -> IssuedToken:
        """Issue a token for a user with a caller-chosen lifetime.

        Args:
            user_id: Owning user's ID.
            ttl: Lifetime, positive and at most settings.max_token_ttl.

        Returns:
            IssuedToken for the user.

        Raises:
            ValidationError: TTL out of range.
            NotFoundError: No such user.
            RandomnessError: Token generation failed.
            PersistenceError: Token could not be stored.
        """
        if ttl <= timedelta(0) or ttl > settings.max_token_ttl:
            raise ValidationError(
                "Token lifetime must be positive and at most "
                f"{int(settings.max_token_ttl.total_seconds())} seconds"
            )

        user = await UserRepository.get_by_id(self._db, user_id)
        if user is None:
            raise NotFoundError("User", user_id)

        return await self._issue(user, ttl)

    async def authenticate_request(self, authorization: str | None) -> User:
        """Resolve the user behind an ``Authorization: Bearer`` header.

        Args:
            authorization: Raw header value, or None when absent.

        Returns:
            The authenticated User.

        Raises:
            MissingHeaderError: No header.
            MalformedHeaderError: Not ``Bearer <token>``.
            WrongTokenLengthError: Token is not 26 characters.
            TokenNotFoundError: No stored token matches.
            ExpiredTokenError: Token expired.
            OrphanedTokenError: Token's user no longer exists.
            PersistenceError: Store failure.
        """
        plaintext = parse_bearer_header(authorization)
        return await self._resolve(plaintext)

    async def validate_token(self, plaintext: str) -> bool:
        """Check a plaintext token without header parsing.

        Args:
            plaintext: Token as handed to the client.

        Returns:
            True if the token exists, has not expired, and its user exists.

        Raises:
            PersistenceError: Store failure. Credential failures return False.
        """
        try:
            await self._resolve(plaintext)
        except CredentialError:
            return False
        return True

    async def logout(self, plaintext: str) -> None:
        """Delete the token matching a plaintext. Unknown tokens are ignored."""
        await TokenRepository.delete_by_plaintext(self._db, plaintext)

    async def _issue(self, user: User, ttl: timedelta) -> IssuedToken:
        plaintext, digest = generate_token()
        token = Token(
            token_hash=digest,
            expiry=datetime.now(UTC) + ttl,
        )
        token = await TokenRepository.save(self._db, token, user)
        return IssuedToken(plaintext=plaintext, token=token, ttl=ttl)

    async def _resolve(self, plaintext: str) -> User:
        # Length guard first: no store round-trip for obviously bad input.
        if len(plaintext) != TOKEN_LENGTH:
            raise WrongTokenLengthError

        token = await TokenRepository.get_by_plaintext(self._db, plaintext)
        if token is None:
            raise TokenNotFoundError

        # Evaluated on every check; never cached.
        if datetime.now(UTC) >= token.expiry:
            raise ExpiredTokenError

        user = await TokenRepository.get_user_for_token(self._db, token)
        if user is None:
            raise OrphanedTokenError

        return user
