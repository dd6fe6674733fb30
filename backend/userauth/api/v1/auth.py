"""Authentication endpoints: login, logout, token issuance, validation.

Security considerations:
- login: unknown email and wrong password answer identically
  (INVALID_CREDENTIALS, 401) and cost the same bcrypt work
- logout: deletes only the token presented in the request
- validate: answers {"valid": false} for every credential failure
"""

from datetime import timedelta

from fastapi import APIRouter

from userauth.api.deps import AuthenticatorDep, BearerToken, CurrentUser
from userauth.core.responses import DataResponse
from userauth.schemas.auth import (
    IssuedTokenResponse,
    IssueTokenRequest,
    LoginRequest,
    ValidateTokenRequest,
    ValidateTokenResponse,
)

router = APIRouter()


@router.post("/users/login")
async def login(
    body: LoginRequest,
    authenticator: AuthenticatorDep,
) -> DataResponse[IssuedTokenResponse]:
    """Verify email + password and issue a bearer token.

    Any token previously issued to the user is superseded.
    """
    issued = await authenticator.authenticate(body.email, body.password)
    return DataResponse(
        data=IssuedTokenResponse.from_issued(issued),
        message="Signed in",
    )


@router.post("/users/logout")
async def logout(
    current_user: CurrentUser,  # noqa: ARG001 - token must be valid to log out
    token: BearerToken,
    authenticator: AuthenticatorDep,
) -> DataResponse[dict]:
    """Delete the bearer token used for this request."""
    await authenticator.logout(token)
    return DataResponse(data={}, message="Signed out")


@router.post("/tokens", status_code=201)
async def issue_token(
    body: IssueTokenRequest,
    current_user: CurrentUser,
    authenticator: AuthenticatorDep,
) -> DataResponse[IssuedTokenResponse]:
    """Issue a token for the caller with a chosen lifetime.

    Replaces the token used for this request.
    """
    issued = await authenticator.issue_token(
        current_user.id, timedelta(seconds=body.ttl_seconds)
    )
    return DataResponse(
        data=IssuedTokenResponse.from_issued(issued),
        message="Token generated",
    )


@router.post("/tokens/validate")
async def validate_token(
    body: ValidateTokenRequest,
    authenticator: AuthenticatorDep,
) -> DataResponse[ValidateTokenResponse]:
    """Report whether a plaintext token is currently valid."""
    valid = await authenticator.validate_token(body.token)
    return DataResponse(data=ValidateTokenResponse(valid=valid))
