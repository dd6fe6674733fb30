"""Auth API request/response schemas.

The token wire shape carries the plaintext token only in issuance
responses. The stored digest is never serialized.
All request schemas use ConfigDict(extra="forbid") to reject unexpected fields.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from userauth.core.config import settings
from userauth.services.authenticator import IssuedToken

# Upper bounds on accepted input lengths.
_MAX_PASSWORD_INPUT = 128
_MAX_TOKEN_INPUT = 256


class LoginRequest(BaseModel):
    """Request body for POST /users/login."""

    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    password: str = Field(min_length=1, max_length=_MAX_PASSWORD_INPUT)


class IssueTokenRequest(BaseModel):
    """Request body for POST /tokens."""

    model_config = ConfigDict(extra="forbid")

    ttl_seconds: int = Field(gt=0, le=settings.max_token_ttl_seconds)


class ValidateTokenRequest(BaseModel):
    """Request body for POST /tokens/validate."""

    model_config = ConfigDict(extra="forbid")

    token: str = Field(max_length=_MAX_TOKEN_INPUT)


class TokenResponse(BaseModel):
    """Token wire shape returned at issuance.

    Attributes:
        id: Token ID.
        user_id: Owning user's ID.
        email: Owner's email at issuance time.
        token: Plaintext token. Only ever returned here.
        created_at: Issuance time.
        updated_at: Last modification time.
        expiry: Absolute expiry time.
    """

    id: int
    user_id: int
    email: str
    token: str
    created_at: datetime
    updated_at: datetime
    expiry: datetime

    @classmethod
    def from_issued(cls, issued: IssuedToken) -> "TokenResponse":
        """Build the wire shape from a freshly issued token."""
        return cls(
            id=issued.token.id,
            user_id=issued.token.user_id,
            email=issued.token.email,
            token=issued.plaintext,
            created_at=issued.token.created_at,
            updated_at=issued.token.updated_at,
            expiry=issued.token.expiry,
        )


class IssuedTokenResponse(BaseModel):
    """Response data for login and explicit issuance."""

    token: TokenResponse
    ttl_seconds: int

    @classmethod
    def from_issued(cls, issued: IssuedToken) -> "IssuedTokenResponse":
        """Wrap an issued token with its lifetime in seconds."""
        return cls(
            token=TokenResponse.from_issued(issued),
            ttl_seconds=int(issued.ttl.total_seconds()),
        )


class ValidateTokenResponse(BaseModel):
    """Response data for POST /tokens/validate."""

    valid: bool
