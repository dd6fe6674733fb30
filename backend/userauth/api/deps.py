"""Shared dependencies for API endpoints.

Bearer authentication: every protected endpoint resolves the caller from
the ``Authorization: Bearer <token>`` header through the Authenticator.
The database session is injected per request; nothing here holds global
mutable state.
"""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from userauth.core.auth import AUTHORIZATION_HEADER, parse_bearer_header
from userauth.core.database import get_db
from userauth.models import User
from userauth.services.authenticator import Authenticator

DbSession = Annotated[AsyncSession, Depends(get_db)]


def get_authenticator(db: DbSession) -> Authenticator:
    """Build an Authenticator bound to the request's session."""
    return Authenticator(db)


AuthenticatorDep = Annotated[Authenticator, Depends(get_authenticator)]


async def get_current_user(
    request: Request,
    authenticator: AuthenticatorDep,
) -> User:
    """Get the User behind the request's bearer token.

    Args:
        request: HTTP request (injected by FastAPI).
        authenticator: Authenticator for this request (injected).

    Returns:
        Authenticated User.

    Raises:
        InputError: Missing or malformed Authorization header (401).
        CredentialError: Token rejected (401).
        PersistenceError: Store failure.
    """
    return await authenticator.authenticate_request(
        request.headers.get(AUTHORIZATION_HEADER)
    )


def get_bearer_token(request: Request) -> str:
    """Get the plaintext bearer token from the request headers.

    Raises:
        InputError: Missing or malformed Authorization header (401).
    """
    return parse_bearer_header(request.headers.get(AUTHORIZATION_HEADER))


# Reusable type aliases for dependency injection
CurrentUser = Annotated[User, Depends(get_current_user)]
BearerToken = Annotated[str, Depends(get_bearer_token)]
